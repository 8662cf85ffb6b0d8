"""imagegen: FastAPI application.

Exposes the image tools and the ``/image`` command over HTTP, and provides
the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`imagegen.core.config.config`.
- **The service** (:class:`~imagegen.core.service.ImageGenerationService`) is
  built in the lifespan handler and stored on ``app.state``.  Routes obtain
  it through the :func:`get_service` dependency.
- **Errors** from the core are mapped to HTTP status codes: validation 400,
  missing index 404, synthesis failure 502, no online model 503.

Endpoints
---------
========  ==========================  ====================================
Method    Path                        Purpose
========  ==========================  ====================================
GET       ``/api/config``             Version, output dir, model, clients
GET       ``/api/tools``              Tool names, descriptions and schemas
POST      ``/api/images/generate``    Generate, save and index one image
POST      ``/api/images/search``      Keyword search over the index
POST      ``/api/images/reindex``     Rebuild a directory's index
POST      ``/api/commands/image``     Run an ``/image`` chat command
========  ==========================  ====================================

Usage
-----
CLI (installed entry point)::

    imagegen

Direct invocation::

    python -m imagegen.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request

from imagegen import __version__, commands
from imagegen.api.models import CommandRequest, GenerateImageInput, ReindexRequest, SearchImagesInput
from imagegen.core.config import config
from imagegen.core.errors import (
    ImageGenError,
    IndexNotFoundError,
    ModelUnavailableError,
    SynthesisError,
    ValidationError,
)
from imagegen.core.service import ImageGenerationService, build_service
from imagegen.tools import TOOLS, generate_tool, search_tool

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the service on startup and release synthesis clients on shutdown."""
    app.state.service = build_service(config)
    logger.info("ImageGenerationService initialised.")

    yield

    app.state.service.close()
    logger.info("ImageGenerationService closed on shutdown.")


app = FastAPI(
    title="imagegen",
    description="AI image generation with keyword-indexed storage.",
    version=__version__,
    lifespan=lifespan,
)


def get_service(request: Request) -> ImageGenerationService:
    return request.app.state.service


def _to_http_error(error: ImageGenError) -> HTTPException:
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, IndexNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ModelUnavailableError):
        return HTTPException(status_code=503, detail=str(error))
    if isinstance(error, SynthesisError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


@app.get("/api/config")
async def get_config(service: ImageGenerationService = Depends(get_service)) -> dict:
    """Return version, output directory, default model and synthesis clients."""
    return {
        "version": __version__,
        "output_directory": service.get_output_directory(),
        "model": service.get_model(),
        "clients": [
            service.registry.get(name).get_client_info()
            for name in service.registry.list_available()
        ],
    }


@app.get("/api/tools")
async def list_tools() -> list[dict]:
    """Return the agent tool definitions with their JSON input schemas."""
    return [
        {"name": tool.name, "description": tool.description, "input_schema": tool.json_schema()}
        for tool in TOOLS.values()
    ]


@app.post("/api/images/generate")
def generate_image(
    req: GenerateImageInput, service: ImageGenerationService = Depends(get_service)
) -> dict:
    """Generate one image, embed its metadata and append it to the index.

    Returns:
        Dictionary with ``success``, ``path`` and ``message``.
    """
    try:
        return generate_tool.execute(req, service)
    except ImageGenError as e:
        raise _to_http_error(e) from e


@app.post("/api/images/search")
def search_images(
    req: SearchImagesInput, service: ImageGenerationService = Depends(get_service)
) -> dict:
    """Search the output directory's index by keyword similarity.

    Returns:
        Dictionary with ``success``, ``results`` and ``message``.
    """
    try:
        return search_tool.execute(req, service)
    except ImageGenError as e:
        raise _to_http_error(e) from e


@app.post("/api/images/reindex")
def reindex_images(
    req: ReindexRequest, service: ImageGenerationService = Depends(get_service)
) -> dict:
    """Rebuild the index of the requested (or configured) directory."""
    directory = req.directory or service.get_output_directory()
    try:
        count = service.reindex(directory)
    except ImageGenError as e:
        raise _to_http_error(e) from e
    return {
        "success": True,
        "count": count,
        "message": f"Reindexed {count} images in {directory}",
    }


@app.post("/api/commands/image")
def run_image_command(
    req: CommandRequest, service: ImageGenerationService = Depends(get_service)
) -> dict:
    """Run an ``/image`` chat command and return its text output."""
    try:
        return {"output": commands.execute(req.args, service)}
    except ImageGenError as e:
        raise _to_http_error(e) from e


def main() -> None:
    """Launch the uvicorn ASGI server on ``server_host:server_port``."""
    import uvicorn

    uvicorn.run(
        "imagegen.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
