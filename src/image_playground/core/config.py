"""Configuration management for the GPT Image Playground API.

This module provides the application configuration using Pydantic Settings.
Values are loaded from environment variables (no prefix, so the variable names
used by existing deployments keep working) and from an optional ``.env`` file.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Keyword overrides passed to ``PlaygroundConfig(...)``
2. Environment variables
3. ``.env`` file in the working directory
4. Default values defined in PlaygroundConfig

Example .env file:
    OPENAI_API_KEY=sk-...
    MODEL_NAME=gpt-image-1
    APP_PASSWORD=hunter2
    NEXT_PUBLIC_IMAGE_STORAGE_MODE=fs

Per-request Configuration
-------------------------
Unlike a module-level singleton, the configuration is read when a request
arrives: route handlers receive it through the :func:`get_config` FastAPI
dependency.  Tests replace that dependency with a hand-built instance.

Instances are frozen; to change a value, change the environment and let the
next request pick it up.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

#: API version sent to Azure when ``AZURE_OPENAI_APIVERSION`` is unset.
DEFAULT_AZURE_API_VERSION = "2025-04-01-preview"

#: Upstream model used when ``MODEL_NAME`` is unset.
DEFAULT_MODEL_NAME = "gpt-image-1"

StorageMode = Literal["fs", "indexeddb"]


class PlaygroundConfig(BaseSettings):
    """Main configuration for the GPT Image Playground API.

    Attributes
    ----------
    Provider Settings:
        openai_api_key : str | None
            Generic API key, used by the standard client and as the Azure
            fallback key.
        openai_api_base_url : str | None
            Optional base URL override for the standard client.
        azure_openai_api_base_url : str | None
            When set, requests go to Azure instead of the standard endpoint.
        azure_openai_api_key : str | None
            Azure-specific key (preferred over ``openai_api_key``).
        azure_openai_apiversion : str | None
            Azure API version.
        model_name : str
            Upstream image model.

    Access Settings:
        app_password : str | None
            Shared secret.  When set, callers must send its SHA-256 hex digest
            as ``passwordHash``.

    Storage Settings:
        image_storage_mode : str | None
            Explicit storage mode (``fs`` or ``indexeddb``).  Any other value
            is ignored.
        vercel : str | None
            Managed-hosting signal; ``"1"`` selects ``indexeddb`` when no
            explicit mode is configured.
        output_dir : Path
            Directory that receives generated images in ``fs`` mode.

    Server Settings:
        server_host : str
        server_port : int
        log_level : str
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        protected_namespaces=(),
    )

    # Provider settings
    openai_api_key: str | None = Field(
        default=None,
        description="Generic OpenAI API key",
    )
    openai_api_base_url: str | None = Field(
        default=None,
        description="Optional base URL for the standard OpenAI client",
    )
    azure_openai_api_base_url: str | None = Field(
        default=None,
        description="Azure OpenAI base URL; enables the Azure client when set",
    )
    azure_openai_api_key: str | None = Field(
        default=None,
        description="Azure OpenAI API key (falls back to OPENAI_API_KEY)",
    )
    azure_openai_apiversion: str | None = Field(
        default=None,
        description="Azure OpenAI API version",
    )
    model_name: str = Field(
        default=DEFAULT_MODEL_NAME,
        description="Upstream image model name",
    )

    # Access settings
    app_password: str | None = Field(
        default=None,
        description="Shared secret required from callers (as a SHA-256 hash)",
    )

    # Storage settings
    image_storage_mode: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "image_storage_mode",
            "NEXT_PUBLIC_IMAGE_STORAGE_MODE",
            "IMAGE_STORAGE_MODE",
        ),
        description="Explicit storage mode: 'fs' or 'indexeddb'",
    )
    vercel: str | None = Field(
        default=None,
        description="Managed-hosting flag ('1' when running on Vercel)",
    )
    output_dir: Path = Field(
        default=Path("generated-images"),
        validation_alias=AliasChoices("output_dir", "IMAGE_OUTPUT_DIR"),
        description="Directory to save generated images in fs mode",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=3000,
        description="Server port",
        ge=1,
        le=65535,
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level for the CLI entry point",
    )

    @property
    def uses_azure(self) -> bool:
        """Whether requests should be routed to the Azure endpoint."""
        return bool(self.azure_openai_api_base_url)

    @property
    def is_managed_hosting(self) -> bool:
        return self.vercel == "1"


def get_config() -> PlaygroundConfig:
    """Build the configuration for the current request.

    Used as a FastAPI dependency so that environment changes are picked up
    without a restart and so tests can override it.
    """
    return PlaygroundConfig()
