"""Shared pytest fixtures for image playground tests."""

from __future__ import annotations

import base64
import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from image_playground.api.main import app, get_client_selector
from image_playground.core.config import PlaygroundConfig, get_config

# Variables that would otherwise leak from the developer's shell into configs.
_CONFIG_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_API_BASE_URL",
    "AZURE_OPENAI_API_BASE_URL",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_APIVERSION",
    "MODEL_NAME",
    "APP_PASSWORD",
    "NEXT_PUBLIC_IMAGE_STORAGE_MODE",
    "IMAGE_STORAGE_MODE",
    "VERCEL",
    "IMAGE_OUTPUT_DIR",
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


class FakeImageClient:
    """Stand-in for a provider client that records every call."""

    kind = "openai"

    def __init__(
        self,
        response: Any = None,
        error: Exception | None = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        self.response = response if response is not None else make_images_response(1)
        self.error = error
        self.options = options or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def generate(self, **params: Any) -> Any:
        self.calls.append(("generate", params))
        if self.error is not None:
            raise self.error
        return self.response

    async def edit(self, *, extra_query: dict[str, str] | None = None, **params: Any) -> Any:
        if extra_query is not None:
            params["extra_query"] = extra_query
        self.calls.append(("edit", params))
        if self.error is not None:
            raise self.error
        return self.response

    def edit_options(self) -> dict[str, Any]:
        return dict(self.options)


def make_images_response(count: int, b64_json: str | None = PNG_B64, usage: Any = None) -> Any:
    """Build an object shaped like the SDK's ``ImagesResponse``."""
    return SimpleNamespace(
        data=[SimpleNamespace(b64_json=b64_json) for _ in range(count)],
        usage=usage,
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provider and storage variables from the environment."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    """Image output directory (not created yet)."""
    return temp_dir / "generated-images"


@pytest.fixture
def test_config(output_dir: Path) -> PlaygroundConfig:
    """Configuration with a fake key and file-system storage.

    Args:
        output_dir: Output directory from fixture

    Returns:
        PlaygroundConfig instance for testing
    """
    return PlaygroundConfig(
        _env_file=None,
        openai_api_key="sk-test",
        image_storage_mode="fs",
        output_dir=output_dir,
    )


@pytest.fixture
def fake_client() -> FakeImageClient:
    """Provider client returning a single PNG."""
    return FakeImageClient()


@pytest.fixture
def api_state(test_config: PlaygroundConfig, fake_client: FakeImageClient) -> SimpleNamespace:
    """Mutable holder for the config and client the app sees.

    Tests replace ``api_state.config`` or ``api_state.client`` before making a
    request to change what the route receives.
    """
    return SimpleNamespace(config=test_config, client=fake_client)


@pytest.fixture
def test_client(api_state: SimpleNamespace) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with configuration and provider client injected."""
    app.dependency_overrides[get_config] = lambda: api_state.config
    app.dependency_overrides[get_client_selector] = lambda: (lambda config: api_state.client)
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def images_response():
    """Factory for SDK-shaped images responses."""
    return make_images_response


@pytest.fixture
def make_fake_client():
    """Factory for :class:`FakeImageClient` instances."""
    return FakeImageClient


@pytest.fixture
def png_b64() -> str:
    """Base64 payload returned by the fake provider."""
    return PNG_B64


@pytest.fixture
def png_bytes() -> bytes:
    """Decoded bytes of :func:`png_b64`."""
    return PNG_BYTES
