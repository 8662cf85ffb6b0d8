"""Local HuggingFace diffusers synthesis client.

:class:`DiffusersImageClient` keeps at most one diffusers pipeline in memory
and renders each generated PIL image to PNG bytes, so it plugs into the same
:class:`~imagegen.collaborators.synthesis.SynthesisClient` interface as the
hosted providers.

Key Responsibilities
--------------------
- **Lazy model loading**: the pipeline is loaded on the first ``generate()``
  call, or explicitly through ``load_model()``.
- **Model switching**: requesting a different HuggingFace model unloads the
  current pipeline and frees CUDA memory first.
- **Turbo-model enforcement**: models whose ID contains ``"turbo"``
  (case-insensitive) always run with ``guidance_scale=0.0``.
- **Optional dependencies**: ``torch`` and ``diffusers`` are imported inside
  the methods, so the package imports without the ``diffusers`` extra.  The
  client reports itself offline when they are missing.
"""

from __future__ import annotations

import gc
import importlib.util
import io
import logging

from PIL import Image

from imagegen.collaborators.synthesis import GeneratedImage, SynthesisClient, parse_size
from imagegen.core.config import ImageGenConfig
from imagegen.core.errors import SynthesisError

logger = logging.getLogger(__name__)

_DTYPE_MAP: dict | None = None


def _get_dtype_map() -> dict:
    """Return the dtype string -> ``torch.dtype`` mapping, importing torch lazily."""
    global _DTYPE_MAP
    if _DTYPE_MAP is None:
        import torch

        _DTYPE_MAP = {
            "bfloat16": torch.bfloat16,
            "float16": torch.float16,
            "float32": torch.float32,
        }
    return _DTYPE_MAP


class DiffusersImageClient(SynthesisClient):
    """Synthesis client backed by a local diffusers text-to-image pipeline.

    Attributes:
        _config (ImageGenConfig):
            Device, dtype, cache directory and performance flags.
        _pipeline:
            The loaded diffusers pipeline, or ``None``.
        _current_model_id (str | None):
            HuggingFace ID of the loaded model, or ``None``.
    """

    name = "diffusers"
    description = "Local HuggingFace diffusers pipeline"

    def __init__(self, config: ImageGenConfig) -> None:
        self._config = config
        self._pipeline = None
        self._current_model_id: str | None = None

    def is_online(self) -> bool:
        return (
            importlib.util.find_spec("torch") is not None
            and importlib.util.find_spec("diffusers") is not None
        )

    def _resolve_model_id(self, model: str | None) -> str:
        # Only HuggingFace repository IDs ("org/name") can be loaded locally;
        # hosted model names fall back to the configured pipeline.
        if model and "/" in model:
            return model
        return self._config.diffusers_model_id

    def load_model(self, hf_id: str) -> None:
        """Load a diffusers pipeline by HuggingFace model identifier.

        A no-op when ``hf_id`` is already loaded.  A different loaded model is
        unloaded first.

        Raises:
            SynthesisError: If the pipeline cannot be loaded.
        """
        if self._current_model_id == hf_id and self._pipeline is not None:
            logger.info("Model '%s' is already loaded, skipping.", hf_id)
            return

        if self._pipeline is not None:
            logger.info(
                "Switching from '%s' to '%s', unloading current model.",
                self._current_model_id,
                hf_id,
            )
            self.unload()

        import torch
        from diffusers import AutoPipelineForText2Image

        torch_dtype = _get_dtype_map().get(self._config.torch_dtype, torch.bfloat16)

        logger.info(
            "Loading model '%s' (dtype=%s, device=%s, cache=%s).",
            hf_id,
            self._config.torch_dtype,
            self._config.device,
            self._config.models_dir,
        )

        try:
            pipeline = AutoPipelineForText2Image.from_pretrained(
                hf_id,
                torch_dtype=torch_dtype,
                cache_dir=str(self._config.models_dir),
            )

            if self._config.enable_model_cpu_offload:
                pipeline.enable_sequential_cpu_offload()
                logger.info("Sequential CPU offloading enabled.")
            else:
                pipeline = pipeline.to(self._config.device)

            if self._config.enable_attention_slicing:
                pipeline.enable_attention_slicing()
                logger.info("Attention slicing enabled.")

        except Exception as e:
            # Leave a clean state so a later call does not reuse a half-loaded pipeline.
            self._pipeline = None
            self._current_model_id = None
            logger.exception("Failed to load model '%s'.", hf_id)
            raise SynthesisError(f"Failed to load model '{hf_id}': {e}") from e

        self._pipeline = pipeline
        self._current_model_id = hf_id
        logger.info("Model '%s' loaded successfully.", hf_id)

    def _render(self, prompt: str, width: int, height: int) -> Image.Image:
        guidance_scale = self._config.guidance_scale
        if self._current_model_id and "turbo" in self._current_model_id.lower():
            if guidance_scale != 0.0:
                logger.warning(
                    "Turbo model detected ('%s'), forcing guidance_scale from %.1f to 0.0.",
                    self._current_model_id,
                    guidance_scale,
                )
                guidance_scale = 0.0

        output = self._pipeline(
            prompt=prompt,
            width=width,
            height=height,
            num_inference_steps=self._config.num_inference_steps,
            guidance_scale=guidance_scale,
        )
        return output.images[0]

    def generate(
        self, prompt: str, size: str, n: int = 1, model: str | None = None
    ) -> list[GeneratedImage]:
        width, height = parse_size(size)
        self.load_model(self._resolve_model_id(model))

        logger.info("Generating %d image(s): %dx%d.", n, width, height)

        images: list[GeneratedImage] = []
        for _ in range(n):
            try:
                image = self._render(prompt, width, height)
            except Exception as e:
                logger.exception("Diffusers pipeline failed.")
                raise SynthesisError(f"Local generation failed: {e}") from e

            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            images.append(GeneratedImage(data=buffer.getvalue(), media_type="image/png"))
        return images

    def unload(self) -> None:
        """Unload the current pipeline and free GPU memory.  Safe when nothing is loaded."""
        if self._pipeline is None:
            return

        model_id = self._current_model_id
        logger.info("Unloading model '%s'.", model_id)

        del self._pipeline
        self._pipeline = None
        self._current_model_id = None

        gc.collect()

        try:
            import torch

            if torch.cuda.is_available():
                torch.cuda.empty_cache()
                logger.info("CUDA cache cleared after unloading '%s'.", model_id)
        except ImportError:
            pass

    def close(self) -> None:
        self.unload()

    @property
    def is_loaded(self) -> bool:
        """Whether a pipeline is currently loaded in memory."""
        return self._pipeline is not None

    @property
    def current_model_id(self) -> str | None:
        return self._current_model_id
