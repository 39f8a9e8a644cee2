"""Core building blocks: configuration, error taxonomy and provider clients.

Modules
-------
config
    Pydantic Settings configuration read from the environment.
errors
    Exceptions reported to API callers, each with its HTTP status.
clients
    Standard and Azure provider clients and the per-request selector.
"""

from image_playground.core.clients import (
    AzureImageClient,
    ImageClient,
    OpenAIImageClient,
    select_client,
)
from image_playground.core.config import PlaygroundConfig, get_config
from image_playground.core.errors import (
    BadRequest,
    ConfigError,
    PlaygroundError,
    StorageError,
    Unauthorized,
    UpstreamDataError,
    UpstreamError,
)

__all__ = [
    "AzureImageClient",
    "BadRequest",
    "ConfigError",
    "ImageClient",
    "OpenAIImageClient",
    "PlaygroundConfig",
    "PlaygroundError",
    "StorageError",
    "Unauthorized",
    "UpstreamDataError",
    "UpstreamError",
    "get_config",
    "select_client",
]
