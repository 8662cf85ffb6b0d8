"""Keyword similarity scoring used by image search."""


def score(query: str, candidate: str) -> float:
    """Score how well ``query`` matches ``candidate``, case-insensitively.

    - identical strings score ``1.0``
    - one string contained in the other scores ``0.8``
    - otherwise the fraction of query words found among the candidate words,
      divided by the longer word list

    Two empty strings score ``0.0``.

    Args:
        query: Search text.
        candidate: Text to compare against (joined keywords).

    Returns:
        A score between 0.0 and 1.0.
    """
    query_lower = query.lower()
    candidate_lower = candidate.lower()

    if not query_lower and not candidate_lower:
        return 0.0
    if query_lower == candidate_lower:
        return 1.0
    if query_lower in candidate_lower or candidate_lower in query_lower:
        return 0.8

    query_words = query_lower.split()
    candidate_words = candidate_lower.split()
    longest = max(len(query_words), len(candidate_words))
    if longest == 0:
        return 0.0

    candidate_set = set(candidate_words)
    matches = sum(1 for word in query_words if word in candidate_set)
    return matches / longest
