"""Exception types raised by the imagegen core.

Messages are written to be shown to the user directly.
"""


class ImageGenError(Exception):
    """Base class for all imagegen errors."""


class ValidationError(ImageGenError):
    """User-friendly validation error.

    Raised when a request is missing required input (e.g. an empty prompt).
    The whole operation fails immediately and is not retried.
    """


class IndexNotFoundError(ImageGenError):
    """Raised when a directory has no ``image_index.json`` yet."""

    def __init__(self, index_path) -> None:
        self.index_path = index_path
        super().__init__(f"No index found at {index_path}. Run /image reindex first.")


class MetadataError(ImageGenError):
    """Raised when embedded metadata cannot be read from or written to a file."""


class SynthesisError(ImageGenError):
    """Raised when a synthesis provider fails or returns no image."""


class ModelUnavailableError(SynthesisError):
    """Raised when no online synthesis client can serve the requested model."""
