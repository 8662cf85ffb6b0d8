"""Configuration management for the imagegen plugin.

All configuration is loaded with Pydantic Settings from environment variables
carrying the ``IMAGEGEN_`` prefix, so deployments can be tuned without code
changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (IMAGEGEN_* prefix)
2. .env file in the working directory
3. Default values defined in ImageGenConfig

Example .env file:
    IMAGEGEN_OUTPUT_DIR=images
    IMAGEGEN_MODEL=gpt-image-1
    IMAGEGEN_PROVIDER=openai
    IMAGEGEN_API_KEY=sk-...

Global Configuration Instance
------------------------------
A global ``config`` instance is created at module import time and used by the
HTTP layer.  Library code never reads it directly: the service receives its
configuration (and its collaborators) through constructor arguments.

    from imagegen.core.config import config

    print(config.output_dir)
    print(config.model)

Providers
---------
- ``openai``: any OpenAI-compatible ``/images/generations`` endpoint.
- ``diffusers``: a local HuggingFace diffusers pipeline (requires the
  ``diffusers`` extra).
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ImageGenConfig(BaseSettings):
    """Main configuration for the imagegen plugin.

    Attributes
    ----------
    Output:
        output_dir : Path
            Directory where generated images and ``image_index.json`` live
        default_search_limit : int
            Number of search results returned when no limit is given

    Synthesis:
        provider : Literal["openai", "diffusers"]
            Which synthesis backend to register as the default client
        model : str
            Default model name requested from the provider

    OpenAI-compatible provider:
        api_base_url : str
            Base URL of the images API
        api_key : str | None
            Bearer token; the provider is offline while this is unset
        request_timeout : float
            HTTP timeout in seconds for one generation request

    Local diffusers provider:
        diffusers_model_id, device, torch_dtype, models_dir,
        num_inference_steps, guidance_scale, enable_attention_slicing,
        enable_model_cpu_offload

    Server:
        server_host : str
            Bind address for the uvicorn server
        server_port : int
            Server port (1024-65535)

    Notes
    -----
    - ``output_dir`` is created automatically if it does not exist
    - Configuration is immutable after initialization; set environment
      variables and restart to change it
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMAGEGEN_",
        case_sensitive=False,
    )

    # Output
    output_dir: Path = Field(
        default=Path("images"),
        description="Directory to save generated images and the image index",
    )
    default_search_limit: int = Field(
        default=10,
        description="Maximum number of search results when no limit is given",
        ge=1,
    )

    # Synthesis
    provider: Literal["openai", "diffusers"] = Field(
        default="openai",
        description="Synthesis backend used for image generation",
    )
    model: str = Field(
        default="gpt-image-1",
        description="Default image generation model",
    )

    # OpenAI-compatible provider
    api_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible images API",
    )
    api_key: str | None = Field(
        default=None,
        description="API key for the images API (provider is offline without it)",
    )
    request_timeout: float = Field(
        default=180.0,
        description="HTTP timeout in seconds for a generation request",
        gt=0,
    )

    # Local diffusers provider
    diffusers_model_id: str = Field(
        default="stabilityai/sdxl-turbo",
        description="HuggingFace model ID for the local diffusers provider",
    )
    device: str = Field(
        default="cuda",
        description="Device to run local inference on (cuda/mps/cpu)",
    )
    torch_dtype: Literal["bfloat16", "float16", "float32"] = Field(
        default="bfloat16",
        description="Torch dtype for local inference",
    )
    models_dir: Path = Field(
        default=Path("models"),
        description="Directory to cache downloaded diffusers models",
    )
    num_inference_steps: int = Field(
        default=4,
        description="Number of diffusion inference steps",
        ge=1,
        le=100,
    )
    guidance_scale: float = Field(
        default=0.0,
        description="Guidance scale (forced to 0.0 for turbo models)",
    )
    enable_attention_slicing: bool = Field(
        default=False,
        description="Enable attention slicing for lower VRAM usage",
    )
    enable_model_cpu_offload: bool = Field(
        default=False,
        description="Enable CPU offloading for memory-constrained setups",
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=7870,
        description="Server port",
        ge=1024,
        le=65535,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the output directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.output_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance, loaded from IMAGEGEN_* variables and .env.
config = ImageGenConfig()
