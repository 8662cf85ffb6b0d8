"""Pydantic request models for the imagegen HTTP API.

Generation and search reuse the tool input schemas from :mod:`imagegen.tools`
so the HTTP API and the agent tools validate identically.

Models
------
ReindexRequest
    Payload for ``POST /api/images/reindex``.
CommandRequest
    Payload for ``POST /api/commands/image``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from imagegen.tools import GenerateImageInput, SearchImagesInput

__all__ = ["CommandRequest", "GenerateImageInput", "ReindexRequest", "SearchImagesInput"]


class ReindexRequest(BaseModel):
    """Request body for ``POST /api/images/reindex``.

    Attributes:
        directory: Directory to rebuild.  ``None`` means the configured
            output directory.
    """

    directory: str | None = Field(
        default=None,
        description="Directory to reindex (defaults to the configured output directory).",
    )


class CommandRequest(BaseModel):
    """Request body for ``POST /api/commands/image``.

    Attributes:
        args: Everything after ``/image`` (e.g. ``"reindex ./images"``).
    """

    args: str = Field(
        default="",
        description="Arguments after '/image', e.g. 'reindex ./images'.",
    )
