"""Embedded image metadata collaborator.

Reads dimensions, MIME type and keywords from image files and writes keyword
and description tags back into them.  :class:`ExifToolMetadata` drives the
``exiftool`` binary through pyexiftool; the executable must be on ``PATH``.

Read results use plain exiftool tag names without group prefixes::

    {"MIMEType": "image/png", "ImageWidth": 1024, "ImageHeight": 1024,
     "Keywords": ["sunset", "beach"]}

Absent tags are simply missing from the dictionary.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Any, Protocol

from exiftool import ExifToolHelper  # type: ignore[attr-defined]
from exiftool.exceptions import ExifToolException, ExifToolExecuteError

from imagegen.core.errors import MetadataError

logger = logging.getLogger(__name__)

READ_TAGS = ["MIMEType", "ImageWidth", "ImageHeight", "Keywords", "Subject"]


class MetadataTool(Protocol):
    """Interface for reading and writing embedded image tags."""

    def session(self) -> AbstractContextManager[None]:
        """Keep the underlying tool ready for every call made inside the block."""
        ...

    def read(self, path: str | Path) -> dict[str, Any]:
        """Return the known tags of ``path``.

        Raises:
            MetadataError: If the file cannot be inspected.
        """
        ...

    def write(self, path: str | Path, tags: dict[str, Any]) -> None:
        """Write ``tags`` into ``path`` in place.

        Raises:
            MetadataError: If the tags cannot be written.
        """
        ...


def _strip_groups(block: dict[str, Any]) -> dict[str, Any]:
    """Drop exiftool group prefixes (``"PNG:ImageWidth"`` -> ``"ImageWidth"``).

    When several groups carry the same tag the first one reported wins.
    """
    tags: dict[str, Any] = {}
    for key, value in block.items():
        if key == "SourceFile":
            continue
        name = key.rsplit(":", 1)[-1]
        if name not in tags and value not in (None, ""):
            tags[name] = value
    return tags


def _as_keyword_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if str(item).strip()]
    text = str(value).strip()
    return [text] if text else []


class ExifToolMetadata:
    """:class:`MetadataTool` implemented with pyexiftool.

    Args:
        executable: Optional path to the exiftool binary.
    """

    def __init__(self, executable: str | None = None) -> None:
        self._executable = executable
        self._session: ExifToolHelper | None = None

    def _helper(self) -> ExifToolHelper:
        if self._executable:
            return ExifToolHelper(executable=self._executable)
        return ExifToolHelper()

    @contextmanager
    def session(self) -> Iterator[None]:
        """Run one exiftool process for every read and write inside the block.

        Without a session each call starts and stops its own process.

        Raises:
            MetadataError: If exiftool cannot be started.
        """
        if self._session is not None:
            yield
            return

        try:
            helper = self._helper()
            helper.run()
        except (ExifToolException, OSError) as e:
            raise MetadataError(f"Failed to start exiftool: {e}") from e

        self._session = helper
        try:
            yield
        finally:
            self._session = None
            helper.terminate()

    @contextmanager
    def _open(self) -> Iterator[ExifToolHelper]:
        if self._session is not None:
            yield self._session
        else:
            with self._helper() as et:
                yield et

    def read(self, path: str | Path) -> dict[str, Any]:
        try:
            with self._open() as et:
                blocks = et.get_tags(files=[str(path)], tags=READ_TAGS)
        except (ExifToolExecuteError, ExifToolException, OSError, ValueError, TypeError) as e:
            raise MetadataError(f"Failed to read metadata from {path}: {e}") from e

        if not blocks:
            raise MetadataError(f"exiftool returned no metadata for {path}")

        tags = _strip_groups(blocks[0])

        # XMP stores keywords as dc:Subject; IPTC as Keywords.
        subject = tags.pop("Subject", None)
        if "Keywords" not in tags and subject is not None:
            tags["Keywords"] = subject
        if "Keywords" in tags:
            tags["Keywords"] = _as_keyword_list(tags["Keywords"])

        return tags

    def write(self, path: str | Path, tags: dict[str, Any]) -> None:
        if not tags:
            return
        try:
            with self._open() as et:
                et.set_tags(
                    files=[str(path)],
                    tags=tags,
                    params=["-overwrite_original"],
                )
        except (ExifToolExecuteError, ExifToolException, OSError, ValueError, TypeError) as e:
            raise MetadataError(f"Failed to write metadata to {path}: {e}") from e
        logger.debug(f"Wrote tags {sorted(tags)} to {path}")
