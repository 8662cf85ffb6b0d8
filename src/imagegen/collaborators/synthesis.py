"""Base classes and registry for image synthesis clients.

Every synthesis backend (a hosted OpenAI-compatible API, a local diffusers
pipeline, ...) is wrapped in a :class:`SynthesisClient` that turns a prompt
and a ``"WxH"`` size into raw image bytes plus a media type.  The
orchestrators never talk to a backend directly; they ask a
:class:`SynthesisRegistry` for the first online client able to serve the
requested model.

Usage Example
-------------
    >>> registry = SynthesisRegistry()
    >>> registry.register(OpenAIImageClient(config))
    >>> client = registry.get_first_online_client("gpt-image-1")
    >>> [image] = client.generate("a lighthouse at dusk", size="1024x1024", n=1)
    >>> image.media_type
    'image/png'

The registry is an ordinary object handed to the service at construction
time; there is no process-wide instance.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from imagegen.core.errors import ModelUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedImage:
    """Raw output of a synthesis client.

    Attributes:
        data: Encoded image bytes.
        media_type: ``"<type>/<subtype>"`` string, e.g. ``"image/png"``.
    """

    data: bytes
    media_type: str

    @property
    def extension(self) -> str:
        """File extension derived from the media subtype (``png``, ``jpeg``...)."""
        return self.media_type.split("/", 1)[-1].split(";", 1)[0].strip()


def parse_size(size: str) -> tuple[int, int]:
    """Split a ``"WxH"`` size string into ``(width, height)``.

    Raises:
        ValueError: If ``size`` is not of the form ``"<int>x<int>"``.
    """
    width, sep, height = size.lower().partition("x")
    if not sep:
        raise ValueError(f"Invalid size {size!r}, expected 'WIDTHxHEIGHT'")
    return int(width), int(height)


class SynthesisClient(ABC):
    """Abstract base class for synthesis clients.

    Attributes
    ----------
    name : str
        Human-readable client name (e.g. ``"openai"``)
    description : str
        Brief description of the backend
    models : tuple[str, ...]
        Model names the client serves.  Empty means any model.
    """

    name: str = "base"
    description: str = "Base class for synthesis clients"
    models: tuple[str, ...] = ()

    def supports(self, model: str | None) -> bool:
        """Whether this client can serve ``model`` (``None`` matches any)."""
        return model is None or not self.models or model in self.models

    @abstractmethod
    def is_online(self) -> bool:
        """Whether the backend is currently usable."""

    @abstractmethod
    def generate(
        self, prompt: str, size: str, n: int = 1, model: str | None = None
    ) -> list[GeneratedImage]:
        """Generate ``n`` images for ``prompt`` at ``size`` (``"WxH"``).

        ``model`` overrides the client's default model when given.

        Raises
        ------
        SynthesisError
            If the backend fails or returns no image
        """

    def close(self) -> None:
        """Release any resources held by the client."""

    def get_client_info(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "models": list(self.models),
            "online": self.is_online(),
        }


class SynthesisRegistry:
    """Ordered collection of synthesis clients.

    Clients are consulted in registration order.
    """

    def __init__(self) -> None:
        self._clients: dict[str, SynthesisClient] = {}

    def register(self, client: SynthesisClient) -> None:
        """Register a client under its ``name``, replacing any previous one."""
        if client.name in self._clients:
            logger.warning(f"Synthesis client '{client.name}' is already registered, overwriting")
        self._clients[client.name] = client
        logger.info(f"Registered synthesis client: {client.name}")

    def get(self, name: str) -> SynthesisClient | None:
        return self._clients.get(name)

    def list_available(self) -> list[str]:
        return list(self._clients.keys())

    def get_first_online_client(self, model: str | None = None) -> SynthesisClient:
        """Return the first registered, online client that serves ``model``.

        Raises
        ------
        ModelUnavailableError
            If no such client exists
        """
        for client in self._clients.values():
            if client.supports(model) and client.is_online():
                return client

        available = ", ".join(self.list_available()) or "none"
        raise ModelUnavailableError(
            f"No online image generation client for model '{model}'. "
            f"Registered clients: {available}"
        )

    def close(self) -> None:
        """Close every registered client."""
        for client in self._clients.values():
            client.close()
