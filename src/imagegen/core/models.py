"""Domain models shared by the index, reindexer and orchestrators."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MIME_TYPE = "image/jpeg"

# Aspect ratio name -> (width, height) in pixels.
ASPECT_RATIO_SIZES: dict[str, tuple[int, int]] = {
    "square": (1024, 1024),
    "tall": (1024, 1536),
    "wide": (1536, 1024),
}


def resolve_dimensions(aspect_ratio: str | None) -> tuple[int, int]:
    """Return ``(width, height)`` for an aspect ratio name.

    Unknown or missing names fall back to the square size.
    """
    return ASPECT_RATIO_SIZES.get(aspect_ratio or "square", ASPECT_RATIO_SIZES["square"])


class ImageRecord(BaseModel):
    """One indexed image.

    Serialized with the ``mimeType`` key so that index files stay readable by
    any consumer of the line-delimited format.

    Attributes:
        filename: Base filename inside the indexed directory.
        mime_type: MIME type reported for the file.
        width: Width in pixels, ``0`` when unknown.
        height: Height in pixels, ``0`` when unknown.
        keywords: Keywords in stored order.  May be empty or repeat values.
    """

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(..., min_length=1)
    mime_type: str = Field(default=DEFAULT_MIME_TYPE, alias="mimeType")
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    keywords: list[str] = Field(default_factory=list)

    @field_validator("filename")
    @classmethod
    def _no_path_separators(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError(f"filename must not contain path separators: {value!r}")
        return value

    def to_line(self) -> str:
        """Serialize the record as a single JSON line (no trailing newline)."""
        return self.model_dump_json(by_alias=True)


class SearchResult(BaseModel):
    """A scored search hit, as returned to the agent."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    path: str
    score: float
    mime_type: str = Field(alias="mimeType")
    width: int
    height: int
    keywords: list[str]


class GenerationResult(BaseModel):
    """Outcome of a successful generation request."""

    success: bool = True
    path: str
    message: str
