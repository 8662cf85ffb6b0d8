"""Rebuild a directory's image index from embedded metadata."""

from __future__ import annotations

import glob
import logging
from pathlib import Path, PurePath

from imagegen.collaborators.metadata import MetadataTool
from imagegen.collaborators.storage import FileStorage
from imagegen.core.errors import MetadataError
from imagegen.core.index_store import IndexStore
from imagegen.core.models import DEFAULT_MIME_TYPE, ImageRecord

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


def _as_dimension(value) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def record_from_metadata(path: str, metadata: dict) -> ImageRecord:
    """Build an :class:`ImageRecord` from tags returned by the metadata tool.

    Missing tags fall back to ``image/jpeg``, ``0`` dimensions and no keywords.
    """
    keywords = metadata.get("Keywords") or []
    if isinstance(keywords, str):
        keywords = [keywords]

    return ImageRecord(
        filename=PurePath(path).name,
        mime_type=metadata.get("MIMEType") or DEFAULT_MIME_TYPE,
        width=_as_dimension(metadata.get("ImageWidth")),
        height=_as_dimension(metadata.get("ImageHeight")),
        keywords=[str(keyword) for keyword in keywords],
    )


class Reindexer:
    """Scans a directory and rewrites its ``image_index.json``.

    Only files directly inside the directory are considered, and extensions
    are matched case-insensitively (``photo.JPG`` is indexed).  Files whose
    metadata cannot be read are logged and left out; they never abort the
    rebuild.

    Args:
        storage: File storage used to enumerate the directory.
        metadata: Metadata tool used to read each image.
        index_store: Index store the rebuilt records are written to.
    """

    def __init__(self, storage: FileStorage, metadata: MetadataTool, index_store: IndexStore) -> None:
        self._storage = storage
        self._metadata = metadata
        self._index_store = index_store

    def find_images(self, directory: str | Path) -> list[str]:
        """Return image paths directly inside ``directory``, sorted by name."""
        matches = self._storage.glob(f"{glob.escape(str(directory))}/*")
        return sorted(path for path in matches if PurePath(path).suffix.lower() in IMAGE_EXTENSIONS)

    def reindex(self, directory: str | Path) -> int:
        """Rebuild the index of ``directory``.

        Returns:
            Number of records written.

        Raises:
            MetadataError: If the metadata tool cannot be started.  The
                existing index is left untouched in that case.
        """
        logger.info(f"Reindexing images in {directory}...")

        records: list[ImageRecord] = []
        with self._metadata.session():
            for path in self.find_images(directory):
                try:
                    metadata = self._metadata.read(path)
                    records.append(record_from_metadata(path, metadata))
                except (MetadataError, ValueError) as e:
                    logger.warning(f"Failed to read metadata for {path}: {e}")

        self._index_store.write_all(directory, records)
        logger.info(f"Reindexed {len(records)} images")
        return len(records)
