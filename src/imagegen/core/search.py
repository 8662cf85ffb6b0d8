"""Keyword search over a directory's image index."""

from __future__ import annotations

import logging
from pathlib import Path

from imagegen.core import similarity
from imagegen.core.errors import ValidationError
from imagegen.core.index_store import IndexStore
from imagegen.core.models import ImageRecord, SearchResult

logger = logging.getLogger(__name__)

TOOL_NAME = "image/search"
DEFAULT_LIMIT = 10


class SearchOrchestrator:
    """Scores every indexed record against a query.

    Args:
        index_store: Index to read records from.
    """

    def __init__(self, index_store: IndexStore) -> None:
        self._index_store = index_store

    def search(
        self, query: str, directory: str | Path, limit: int = DEFAULT_LIMIT
    ) -> list[SearchResult]:
        """Return the best-matching records of ``directory``.

        Each record's keywords are joined with spaces and scored with
        :func:`imagegen.core.similarity.score`.  Zero scores are dropped, the
        rest are sorted by score (stable, descending) and cut to ``limit``.

        Raises:
            ValidationError: If ``query`` is empty or ``limit`` is not positive.
            IndexNotFoundError: If ``directory`` has no index yet.
        """
        if not query or not query.strip():
            raise ValidationError("Query is required")
        if limit < 1:
            raise ValidationError("Limit must be a positive integer")

        records = self._index_store.read_records(directory)

        scored: list[tuple[float, ImageRecord]] = []
        for record in records:
            value = similarity.score(query, " ".join(record.keywords))
            if value > 0:
                scored.append((value, record))

        scored.sort(key=lambda item: item[0], reverse=True)
        top = scored[:limit]

        logger.info(f"[{TOOL_NAME}] Found {len(scored)} matches, returning top {len(top)}")

        return [
            SearchResult(
                filename=record.filename,
                path=f"{directory}/{record.filename}",
                score=value,
                mime_type=record.mime_type,
                width=record.width,
                height=record.height,
                keywords=list(record.keywords),
            )
            for value, record in top
        ]
