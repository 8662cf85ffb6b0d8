"""Image generation service.

:class:`ImageGenerationService` is the object the agent-facing tools, the
``/image`` command and the HTTP API talk to.  It owns the configured output
directory and default model and wires the three collaborators (synthesis
registry, file storage, metadata tool) into the orchestrators.  Collaborators
are passed in explicitly; :func:`build_service` assembles the default set
from configuration.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from imagegen.collaborators.metadata import ExifToolMetadata, MetadataTool
from imagegen.collaborators.storage import FileStorage, LocalFileStorage
from imagegen.collaborators.synthesis import SynthesisRegistry
from imagegen.core.config import ImageGenConfig
from imagegen.core.generation import GenerationOrchestrator
from imagegen.core.index_store import IndexStore
from imagegen.core.models import GenerationResult, SearchResult
from imagegen.core.reindexer import Reindexer
from imagegen.core.search import SearchOrchestrator

logger = logging.getLogger(__name__)


class ImageGenerationService:
    """Image generation with a configured output directory.

    Requests are handled one at a time: generation, search and reindex hold a
    lock for their whole duration, so a reindex never interleaves with an
    append and a synthesis client only ever serves one request.

    Args:
        output_directory: Directory generated images and the index live in.
        model: Default synthesis model name.
        registry: Synthesis clients.
        storage: File storage collaborator.
        metadata: Metadata tool collaborator.
        default_search_limit: Result count used when a search gives no limit.
    """

    name = "ImageGenerationService"
    description = "Image generation with configurable output directories"

    def __init__(
        self,
        output_directory: str | Path,
        model: str,
        registry: SynthesisRegistry,
        storage: FileStorage,
        metadata: MetadataTool,
        default_search_limit: int = 10,
    ) -> None:
        self.output_directory = str(output_directory)
        self.model = model
        self.registry = registry
        self.default_search_limit = default_search_limit
        self._lock = threading.Lock()

        self.index_store = IndexStore(storage)
        self._generator = GenerationOrchestrator(registry, storage, metadata, self.index_store)
        self._searcher = SearchOrchestrator(self.index_store)
        self._reindexer = Reindexer(storage, metadata, self.index_store)

    def get_output_directory(self) -> str:
        return self.output_directory

    def get_model(self) -> str:
        return self.model

    def generate(
        self,
        prompt: str | None,
        *,
        aspect_ratio: str | None = "square",
        keywords: list[str] | None = None,
        model: str | None = None,
        output_directory: str | Path | None = None,
    ) -> GenerationResult:
        """Generate one image into ``output_directory`` (default: the configured one)."""
        with self._lock:
            return self._generator.generate(
                prompt,
                output_directory or self.output_directory,
                aspect_ratio=aspect_ratio,
                keywords=keywords,
                model=model or self.model,
            )

    def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        """Search the configured output directory's index."""
        if limit is None:
            limit = self.default_search_limit
        with self._lock:
            return self._searcher.search(query, self.output_directory, limit=limit)

    def reindex(self, directory: str | Path | None = None) -> int:
        """Rebuild the index of ``directory`` (default: the configured output directory)."""
        with self._lock:
            return self._reindexer.reindex(directory or self.output_directory)

    def close(self) -> None:
        with self._lock:
            self.registry.close()


def build_registry(config: ImageGenConfig) -> SynthesisRegistry:
    """Register the configured provider first and the other one as fallback."""
    from imagegen.collaborators.diffusers_client import DiffusersImageClient
    from imagegen.collaborators.openai_client import OpenAIImageClient

    registry = SynthesisRegistry()
    clients = {
        "openai": lambda: OpenAIImageClient(config),
        "diffusers": lambda: DiffusersImageClient(config),
    }
    registry.register(clients.pop(config.provider)())
    for factory in clients.values():
        registry.register(factory())
    return registry


def build_service(config: ImageGenConfig) -> ImageGenerationService:
    """Create a service with local storage, exiftool metadata and the configured providers."""
    service = ImageGenerationService(
        output_directory=config.output_dir,
        model=config.model,
        registry=build_registry(config),
        storage=LocalFileStorage(),
        metadata=ExifToolMetadata(),
        default_search_limit=config.default_search_limit,
    )
    logger.info(f"ImageGenerationService ready (output: {service.output_directory})")
    return service
