"""Provider client selection for the image API.

Two client variants share one small capability interface
(:class:`ImageClient`): ``generate`` and ``edit``.  :func:`select_client`
picks the variant once per request from the configuration:

- ``AZURE_OPENAI_API_BASE_URL`` set -> :class:`AzureImageClient`
- otherwise -> :class:`OpenAIImageClient`

Clients are cheap to build and are created fresh for every request; there is
no pooling and the SDK's own retries are disabled, so a failed call surfaces
immediately.

Usage
-----
::

    from image_playground.core.clients import select_client
    from image_playground.core.config import get_config

    client = select_client(get_config())
    result = await client.generate(model="gpt-image-1", prompt="a cat", n=1)
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from openai import AsyncAzureOpenAI, AsyncOpenAI

from image_playground.core.config import DEFAULT_AZURE_API_VERSION, PlaygroundConfig
from image_playground.core.errors import ConfigError

logger = logging.getLogger(__name__)


class ImageClient(Protocol):
    """Capability shared by every provider client variant."""

    kind: str

    async def generate(self, **params: Any) -> Any: ...

    async def edit(self, *, extra_query: dict[str, str] | None = None, **params: Any) -> Any: ...

    def edit_options(self) -> dict[str, Any]: ...


class OpenAIImageClient:
    """Client for the standard OpenAI endpoint (or a compatible base URL)."""

    kind = "openai"

    def __init__(self, api_key: str, base_url: str | None = None) -> None:
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    async def generate(self, **params: Any) -> Any:
        return await self.client.images.generate(**params)

    async def edit(self, *, extra_query: dict[str, str] | None = None, **params: Any) -> Any:
        if extra_query:
            params["extra_query"] = extra_query
        return await self.client.images.edit(**params)

    def edit_options(self) -> dict[str, Any]:
        return {}


class AzureImageClient(OpenAIImageClient):
    """Client for an Azure-hosted deployment.

    Azure requires an ``api-version`` query parameter.  The SDK adds it to
    every call, but edit requests routed through OpenAI-compatible Azure
    endpoints need an explicitly configured version passed as a query
    override, which :meth:`edit_options` provides.
    """

    kind = "azure"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        api_version: str,
        edit_api_version: str | None = None,
    ) -> None:
        self.api_version = api_version
        self.edit_api_version = edit_api_version
        self.client = AsyncAzureOpenAI(
            api_key=api_key,
            base_url=base_url,
            api_version=api_version,
            max_retries=0,
        )

    def edit_options(self) -> dict[str, Any]:
        if not self.edit_api_version:
            return {}
        return {"extra_query": {"api-version": self.edit_api_version}}


def resolve_api_key(config: PlaygroundConfig) -> str | None:
    """Return the API key the selected client variant will use."""
    if config.uses_azure:
        return config.azure_openai_api_key or config.openai_api_key
    return config.openai_api_key


def require_api_key(config: PlaygroundConfig) -> str:
    """Return the API key for the configured variant.

    Raises:
        ConfigError: If the required key is not configured.
    """
    api_key = resolve_api_key(config)
    if not api_key:
        missing = "AZURE_OPENAI_API_KEY or OPENAI_API_KEY" if config.uses_azure else "OPENAI_API_KEY"
        logger.error(f"{missing} is not set.")
        raise ConfigError("Server configuration error: API key not found.")
    return api_key


def select_client(config: PlaygroundConfig) -> ImageClient:
    """Build the provider client for this request.

    Args:
        config: Configuration for the current request.

    Returns:
        An :class:`AzureImageClient` when an Azure base URL is configured,
        otherwise an :class:`OpenAIImageClient`.

    Raises:
        ConfigError: If no usable API key is configured.
    """
    api_key = require_api_key(config)

    client: ImageClient
    if config.uses_azure:
        client = AzureImageClient(
            api_key=api_key,
            base_url=config.azure_openai_api_base_url,
            api_version=config.azure_openai_apiversion or DEFAULT_AZURE_API_VERSION,
            edit_api_version=config.azure_openai_apiversion,
        )
    else:
        client = OpenAIImageClient(api_key=api_key, base_url=config.openai_api_base_url)

    logger.info(f"Using {client.kind} image client")
    return client
