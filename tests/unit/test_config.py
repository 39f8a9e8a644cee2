"""Tests for image_playground.core.config — configuration management.

Tests cover:
- Default values for all configuration fields.
- Environment variable overrides, including the storage mode aliases.
- Pydantic validation constraints (port range).
- Immutability of configuration instances.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from image_playground.core.config import DEFAULT_MODEL_NAME, PlaygroundConfig, get_config


class TestConfigDefaults:
    """Verify that PlaygroundConfig provides sensible defaults."""

    def test_provider_defaults(self):
        cfg = PlaygroundConfig(_env_file=None)
        assert cfg.openai_api_key is None
        assert cfg.openai_api_base_url is None
        assert cfg.azure_openai_api_base_url is None
        assert cfg.model_name == DEFAULT_MODEL_NAME == "gpt-image-1"
        assert cfg.uses_azure is False

    def test_access_and_storage_defaults(self):
        cfg = PlaygroundConfig(_env_file=None)
        assert cfg.app_password is None
        assert cfg.image_storage_mode is None
        assert cfg.is_managed_hosting is False
        assert cfg.output_dir == Path("generated-images")

    def test_default_server_port(self):
        """Default server port should be 3000."""
        assert PlaygroundConfig(_env_file=None).server_port == 3000


class TestConfigEnvironment:
    """Verify that environment variables are picked up."""

    def test_api_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("MODEL_NAME", "gpt-image-1-mini")
        monkeypatch.setenv("AZURE_OPENAI_API_BASE_URL", "https://example.openai.azure.com/openai")
        monkeypatch.setenv("AZURE_OPENAI_APIVERSION", "2024-12-01")
        cfg = PlaygroundConfig(_env_file=None)
        assert cfg.openai_api_key == "sk-env"
        assert cfg.model_name == "gpt-image-1-mini"
        assert cfg.uses_azure is True
        assert cfg.azure_openai_apiversion == "2024-12-01"

    def test_public_storage_mode_variable(self, monkeypatch):
        monkeypatch.setenv("NEXT_PUBLIC_IMAGE_STORAGE_MODE", "indexeddb")
        assert PlaygroundConfig(_env_file=None).image_storage_mode == "indexeddb"

    def test_plain_storage_mode_variable(self, monkeypatch):
        monkeypatch.setenv("IMAGE_STORAGE_MODE", "fs")
        assert PlaygroundConfig(_env_file=None).image_storage_mode == "fs"

    def test_managed_hosting_flag(self, monkeypatch):
        monkeypatch.setenv("VERCEL", "1")
        assert PlaygroundConfig(_env_file=None).is_managed_hosting is True

    def test_output_dir_from_env(self, monkeypatch, temp_dir: Path):
        monkeypatch.setenv("IMAGE_OUTPUT_DIR", str(temp_dir / "out"))
        assert PlaygroundConfig(_env_file=None).output_dir == temp_dir / "out"

    def test_dotenv_file(self, temp_dir: Path):
        env_file = temp_dir / ".env"
        env_file.write_text("OPENAI_API_KEY=sk-dotenv\nAPP_PASSWORD=hunter2\n")
        cfg = PlaygroundConfig(_env_file=env_file)
        assert cfg.openai_api_key == "sk-dotenv"
        assert cfg.app_password == "hunter2"

    def test_get_config_reads_current_environment(self, monkeypatch):
        monkeypatch.setenv("APP_PASSWORD", "first")
        assert get_config().app_password == "first"
        monkeypatch.setenv("APP_PASSWORD", "second")
        assert get_config().app_password == "second"


class TestConfigValidation:
    """Verify Pydantic validation constraints on config fields."""

    def test_invalid_port_too_high(self):
        with pytest.raises(ValidationError):
            PlaygroundConfig(_env_file=None, server_port=70000)

    def test_valid_port(self):
        assert PlaygroundConfig(_env_file=None, server_port=8080).server_port == 8080

    def test_config_is_frozen(self):
        cfg = PlaygroundConfig(_env_file=None)
        with pytest.raises(ValidationError):
            cfg.openai_api_key = "sk-changed"
