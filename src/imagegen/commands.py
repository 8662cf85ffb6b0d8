"""The ``/image`` chat command."""

from __future__ import annotations

import logging

from imagegen.core.service import ImageGenerationService

logger = logging.getLogger(__name__)

DESCRIPTION = "/image [action] - Manage image generation"

HELP = """# /image - Manage image generation

## /image reindex [directory]

Regenerate the image_index.json file for a directory by scanning all images and reading their metadata.

If no directory is specified, the configured output directory is used.

### Examples

/image reindex ./images
/image reindex
"""


def execute(remainder: str, service: ImageGenerationService) -> str:
    """Run ``/image <remainder>`` and return the text to show the user."""
    action, *args = remainder.split() or [""]

    if action == "reindex":
        directory = args[0] if args else service.get_output_directory()
        count = service.reindex(directory)
        return f"Reindexed {count} images in {directory}"

    return HELP
