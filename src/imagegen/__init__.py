"""imagegen - AI image generation with keyword-indexed storage."""

__version__ = "0.1.0"

from imagegen.core.config import ImageGenConfig, config
from imagegen.core.models import ImageRecord
from imagegen.core.service import ImageGenerationService, build_service

__all__ = [
    "ImageGenConfig",
    "ImageGenerationService",
    "ImageRecord",
    "build_service",
    "config",
]
