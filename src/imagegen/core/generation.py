"""Image generation orchestration.

One request runs these steps strictly in order:

1. Validate the prompt.
2. Map the aspect ratio to a fixed pixel size.
3. Ask the first online synthesis client for exactly one image.
4. Save the bytes under a fresh UUID filename in the output directory.
5. Embed keywords and the prompt as description (best effort).
6. Append the new record to the directory's index.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from imagegen.collaborators.metadata import MetadataTool
from imagegen.collaborators.storage import FileStorage
from imagegen.collaborators.synthesis import SynthesisRegistry
from imagegen.core.errors import MetadataError, SynthesisError, ValidationError
from imagegen.core.index_store import IndexStore
from imagegen.core.models import GenerationResult, ImageRecord, resolve_dimensions

logger = logging.getLogger(__name__)

TOOL_NAME = "image/generate"


class GenerationOrchestrator:
    """Generates an image, stores it, tags it and indexes it.

    Args:
        registry: Synthesis clients to generate with.
        storage: File storage the image bytes are written to.
        metadata: Metadata tool used to embed keywords and description.
        index_store: Index the new record is appended to.
    """

    def __init__(
        self,
        registry: SynthesisRegistry,
        storage: FileStorage,
        metadata: MetadataTool,
        index_store: IndexStore,
    ) -> None:
        self._registry = registry
        self._storage = storage
        self._metadata = metadata
        self._index_store = index_store

    def generate(
        self,
        prompt: str | None,
        output_directory: str | Path,
        *,
        aspect_ratio: str | None = "square",
        keywords: list[str] | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Generate and persist one image.

        Args:
            prompt: Description of the image.  Required.
            output_directory: Directory the image and index live in.
            aspect_ratio: ``square``, ``tall`` or ``wide``.  Anything else is
                treated as ``square``.
            keywords: Keywords to embed and index.
            model: Model name passed to the synthesis registry.

        Returns:
            The saved path and a user-facing message.

        Raises:
            ValidationError: If ``prompt`` is empty.
            ModelUnavailableError: If no synthesis client is online.
            SynthesisError: If the client returns no image.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required")

        keywords = list(keywords or [])
        width, height = resolve_dimensions(aspect_ratio)
        size = f"{width}x{height}"

        logger.info(f'[{TOOL_NAME}] Generating image: "{prompt}"')

        client = self._registry.get_first_online_client(model)
        images = client.generate(prompt, size=size, n=1, model=model)
        if not images:
            raise SynthesisError(f"Synthesis client '{client.name}' returned no images")
        image = images[0]

        filename = f"{uuid.uuid4()}.{image.extension}"
        file_path = f"{output_directory}/{filename}"
        self._storage.write_file(file_path, image.data)

        tags: dict = {"ImageDescription": prompt}
        if keywords:
            tags["Keywords"] = keywords
        try:
            self._metadata.write(file_path, tags)
            logger.info(f"[{TOOL_NAME}] Added metadata to EXIF data")
        except MetadataError as e:
            logger.warning(f"[{TOOL_NAME}] Failed to write EXIF data: {e}")

        record = ImageRecord(
            filename=filename,
            mime_type=image.media_type,
            width=width,
            height=height,
            keywords=keywords,
        )
        self._index_store.append(output_directory, record)

        logger.info(f"[{TOOL_NAME}] Image saved: {file_path}")
        return GenerationResult(
            success=True,
            path=file_path,
            message=f"Image generated and saved to {file_path}",
        )
