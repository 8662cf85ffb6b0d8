"""Agent tool definitions for image generation and search.

Each tool bundles a name, a description shown to the model, a Pydantic input
schema and an ``execute`` callable.  Input schemas accept the camelCase keys
agents send (``aspectRatio``, ``outputDirectory``) as well as snake_case.

    >>> tool = TOOLS["image/search"]
    >>> tool.execute(tool.input_schema(query="sunset"), service)
    {'success': True, 'results': [...], 'message': 'Found 1 images matching "sunset"'}
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from imagegen.core.service import ImageGenerationService


class GenerateImageInput(BaseModel):
    """Input for the ``image/generate`` tool."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., description="Description of the image to generate")
    aspect_ratio: Literal["square", "tall", "wide"] = Field(
        default="square",
        alias="aspectRatio",
        description="square (1024x1024), tall (1024x1536) or wide (1536x1024)",
    )
    output_directory: str | None = Field(
        default=None,
        alias="outputDirectory",
        description="Output directory (defaults to the configured one)",
    )
    model: str | None = Field(default=None, description="Image generation model to use")
    keywords: list[str] | None = Field(
        default=None,
        description="Keywords to add to image EXIF/IPTC metadata",
    )


class SearchImagesInput(BaseModel):
    """Input for the ``image/search`` tool."""

    query: str = Field(..., description="Search query to match against image keywords")
    limit: int | None = Field(
        default=None,
        gt=0,
        description="Maximum number of results to return (default 10)",
    )


def execute_generate(params: GenerateImageInput, service: ImageGenerationService) -> dict:
    result = service.generate(
        params.prompt,
        aspect_ratio=params.aspect_ratio,
        keywords=params.keywords,
        model=params.model,
        output_directory=params.output_directory,
    )
    return result.model_dump()


def execute_search(params: SearchImagesInput, service: ImageGenerationService) -> dict:
    results = service.search(params.query, limit=params.limit)
    return {
        "success": True,
        "results": [result.model_dump(by_alias=True) for result in results],
        "message": f'Found {len(results)} images matching "{params.query}"',
    }


@dataclass(frozen=True)
class ToolDefinition:
    """An agent-callable tool."""

    name: str
    description: str
    input_schema: type[BaseModel]
    execute: Callable[[Any, ImageGenerationService], dict]

    def json_schema(self) -> dict:
        return self.input_schema.model_json_schema(by_alias=True)


generate_tool = ToolDefinition(
    name="image/generate",
    description="Generate an AI image and save it to a configured output directory",
    input_schema=GenerateImageInput,
    execute=execute_generate,
)

search_tool = ToolDefinition(
    name="image/search",
    description="Search for images in the index based on keyword similarity",
    input_schema=SearchImagesInput,
    execute=execute_search,
)

TOOLS: dict[str, ToolDefinition] = {tool.name: tool for tool in (generate_tool, search_tool)}
