"""Core functionality for image generation, indexing and search.

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with IMAGEGEN_ in .env files

2. **Index Layer** (similarity.py, models.py, index_store.py, reindexer.py):
   - Keyword similarity scoring
   - ``ImageRecord`` validated at the parse boundary
   - Line-delimited ``image_index.json`` per directory
   - Full rebuild from embedded metadata

3. **Orchestration Layer** (generation.py, search.py, service.py):
   - Generate, save, tag and index one image
   - Rank indexed images against a query
   - ``ImageGenerationService`` wiring the collaborators together

Usage Example
-------------
    from imagegen.core import build_service, config

    service = build_service(config)
    result = service.generate("a lighthouse at dusk", aspect_ratio="wide",
                              keywords=["lighthouse", "dusk"])
    hits = service.search("lighthouse")
"""

from imagegen.core.config import ImageGenConfig, config
from imagegen.core.errors import (
    ImageGenError,
    IndexNotFoundError,
    MetadataError,
    ModelUnavailableError,
    SynthesisError,
    ValidationError,
)
from imagegen.core.models import ImageRecord, SearchResult
from imagegen.core.service import ImageGenerationService, build_service

__all__ = [
    "ImageGenConfig",
    "ImageGenError",
    "ImageGenerationService",
    "ImageRecord",
    "IndexNotFoundError",
    "MetadataError",
    "ModelUnavailableError",
    "SearchResult",
    "SynthesisError",
    "ValidationError",
    "build_service",
    "config",
]
