"""Line-delimited image index persistence.

Each managed directory holds one ``image_index.json`` file with one
:class:`~imagegen.core.models.ImageRecord` JSON object per line:

- appending a record adds exactly one line, creating the file if needed
- a reindex overwrites the whole file
- there is no enclosing array and no blank line between records

The index is never reconciled against the directory contents except by a full
reindex, and there is no locking: a reindex racing an append can drop the
appended record.  Duplicate filenames are tolerated.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from imagegen.collaborators.storage import FileStorage
from imagegen.core.errors import IndexNotFoundError
from imagegen.core.models import ImageRecord

logger = logging.getLogger(__name__)

INDEX_FILENAME = "image_index.json"


def index_path(directory: str | Path) -> str:
    """Return the index file path for ``directory``."""
    return f"{directory}/{INDEX_FILENAME}"


def parse_line(line: str) -> ImageRecord | None:
    """Parse one index line into a record.

    A line must carry a ``keywords`` list; every other field falls back to
    the record defaults.

    Returns:
        The record, or ``None`` when the line is not valid JSON or does not
        have the shape of an image record.  A warning is logged in that case.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse index line: {line}")
        return None

    if not isinstance(payload, dict) or not isinstance(payload.get("keywords"), list):
        logger.warning(f"Failed to parse index line: {line}")
        return None

    try:
        return ImageRecord.model_validate(payload)
    except PydanticValidationError as e:
        logger.warning(f"Invalid index entry {line}: {e.error_count()} validation error(s)")
        return None


def parse_lines(lines: Iterable[str]) -> list[ImageRecord]:
    """Parse index lines, skipping malformed ones."""
    records: list[ImageRecord] = []
    for line in lines:
        record = parse_line(line)
        if record is not None:
            records.append(record)
    return records


class IndexStore:
    """Reads and writes ``image_index.json`` through a :class:`FileStorage`.

    Args:
        storage: File storage collaborator.
    """

    def __init__(self, storage: FileStorage) -> None:
        self._storage = storage

    def append(self, directory: str | Path, record: ImageRecord) -> None:
        """Append one record to the directory's index.

        Raises:
            OSError: If the storage backend cannot be written.
        """
        self._storage.append_file(index_path(directory), record.to_line() + "\n")

    def read_all(self, directory: str | Path) -> list[str]:
        """Return the non-empty lines of the directory's index in file order.

        Raises:
            IndexNotFoundError: If the directory has no index file.
        """
        path = index_path(directory)
        content = self._storage.read_file(path)
        if content is None:
            raise IndexNotFoundError(path)
        return [line for line in content.split("\n") if line.strip()]

    def read_records(self, directory: str | Path) -> list[ImageRecord]:
        """Read and parse every well-formed record of the directory's index."""
        return parse_lines(self.read_all(directory))

    def write_all(self, directory: str | Path, records: Iterable[ImageRecord]) -> None:
        """Replace the directory's index with ``records``."""
        lines = [record.to_line() for record in records]
        content = "\n".join(lines) + "\n" if lines else ""
        self._storage.write_file(index_path(directory), content)
