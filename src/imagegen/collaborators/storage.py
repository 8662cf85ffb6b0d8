"""File storage collaborator.

The orchestrators only talk to storage through :class:`FileStorage`, so the
index can live on any backend that offers write, append, read and glob.
:class:`LocalFileStorage` is the local-disk implementation used by default.
"""

from __future__ import annotations

import glob as _glob
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class FileStorage(Protocol):
    """Minimal file-system interface consumed by the index and orchestrators."""

    def write_file(self, path: str | Path, content: bytes | str) -> None:
        """Create or overwrite ``path`` with ``content``."""
        ...

    def append_file(self, path: str | Path, content: str) -> None:
        """Append ``content`` to ``path``, creating the file if absent."""
        ...

    def read_file(self, path: str | Path) -> str | None:
        """Return the text of ``path``, or ``None`` if it does not exist."""
        ...

    def glob(self, pattern: str) -> list[str]:
        """Return paths matching a shell-style ``pattern``."""
        ...


class LocalFileStorage:
    """:class:`FileStorage` backed by the local file system.

    Text is read and written as UTF-8.  Parent directories are created on
    write and append.
    """

    def write_file(self, path: str | Path, content: bytes | str) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote {target}")

    def append_file(self, path: str | Path, content: str) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a", encoding="utf-8") as handle:
            handle.write(content)

    def read_file(self, path: str | Path) -> str | None:
        target = Path(path)
        try:
            return target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def glob(self, pattern: str) -> list[str]:
        return sorted(_glob.glob(pattern))
