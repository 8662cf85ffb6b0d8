"""OpenAI-compatible image generation client.

Processing flow:
    1. Build a JSON payload (model, prompt, size, n).
    2. POST it to ``{api_base_url}/images/generations`` with a bearer token.
    3. Decode every ``data[i].b64_json`` entry into raw bytes.

Works with the OpenAI Images API and with local servers exposing the same
endpoint (LM Studio, LocalAI, ...).

Error handling strategy:
    - Transport errors and non-2xx responses raise ``SynthesisError``.
    - A response without any decodable image raises ``SynthesisError``.
"""

from __future__ import annotations

import base64
import binascii
import logging

import httpx

from imagegen.collaborators.synthesis import GeneratedImage, SynthesisClient
from imagegen.core.config import ImageGenConfig
from imagegen.core.errors import SynthesisError

logger = logging.getLogger(__name__)


class OpenAIImageClient(SynthesisClient):
    """Synthesis client for ``/images/generations`` endpoints.

    The client is online whenever an API key is configured.

    Args:
        config: Configuration providing ``api_base_url``, ``api_key``,
            ``model`` and ``request_timeout``.
        http_client: Optional pre-built ``httpx.Client`` (used in tests).
    """

    name = "openai"
    description = "OpenAI-compatible images API"

    def __init__(self, config: ImageGenConfig, http_client: httpx.Client | None = None) -> None:
        self._config = config
        self._default_model = config.model
        self._http = http_client or httpx.Client(
            base_url=config.api_base_url.rstrip("/"),
            timeout=config.request_timeout,
        )

    def is_online(self) -> bool:
        return bool(self._config.api_key)

    def _build_payload(self, prompt: str, size: str, n: int, model: str | None) -> dict:
        model = model or self._default_model
        payload: dict = {"model": model, "prompt": prompt, "size": size, "n": n}
        # DALL-E models return URLs unless asked otherwise; gpt-image models
        # always return base64 and reject the parameter.
        if model.startswith("dall-e"):
            payload["response_format"] = "b64_json"
        return payload

    def generate(
        self, prompt: str, size: str, n: int = 1, model: str | None = None
    ) -> list[GeneratedImage]:
        payload = self._build_payload(prompt, size, n, model)
        headers = {"Authorization": f"Bearer {self._config.api_key}"}

        logger.info(f"Requesting {n} image(s) from {self.name} ({payload['model']}, {size})")

        try:
            response = self._http.post("/images/generations", json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise SynthesisError(
                f"Image request failed with status {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise SynthesisError(f"Image request failed: {e}") from e
        except ValueError as e:
            raise SynthesisError(f"Image response was not valid JSON: {e}") from e

        media_type = f"image/{data.get('output_format') or 'png'}"
        images: list[GeneratedImage] = []
        for item in data.get("data") or []:
            encoded = item.get("b64_json") if isinstance(item, dict) else None
            if not encoded:
                continue
            try:
                images.append(GeneratedImage(data=base64.b64decode(encoded), media_type=media_type))
            except (binascii.Error, ValueError) as e:
                raise SynthesisError(f"Image response contained invalid base64: {e}") from e

        if not images:
            raise SynthesisError("Image provider returned no images")
        return images

    def close(self) -> None:
        self._http.close()
