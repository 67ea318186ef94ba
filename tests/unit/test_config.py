"""
Unit tests for client configuration.

Tests cover:
- Environment loading
- Anonymous project ID persistence
- Project ID resolution
"""

import logging

import pytest
from bson import ObjectId

from onenode.config import (
    Settings,
    load_or_create_anonymous_project_id,
    resolve_project_id,
)
from onenode.errors import ConfigurationError


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Defaults apply when nothing is set."""
        for name in ("API_KEY", "PROJECT_ID", "BASE_URL", "ANON_PROJECT_FILE", "TIMEOUT"):
            monkeypatch.delenv(f"ONENODE_{name}", raising=False)

        settings = Settings()

        assert settings.api_key == ""
        assert settings.base_url == "https://api.onenode.ai/v0"
        assert settings.anon_project_file == ".onenode"
        assert settings.timeout == 30.0
        assert settings.is_anonymous is True

    def test_from_environment(self, monkeypatch):
        """ONENODE_ variables are read."""
        monkeypatch.setenv("ONENODE_API_KEY", "secret")
        monkeypatch.setenv("ONENODE_PROJECT_ID", "proj-1")
        monkeypatch.setenv("ONENODE_TIMEOUT", "5")

        settings = Settings()

        assert settings.api_key == "secret"
        assert settings.project_id == "proj-1"
        assert settings.timeout == 5.0
        assert settings.is_anonymous is False


class TestAnonymousProject:
    """Tests for load_or_create_anonymous_project_id."""

    def test_creates_and_persists(self, tmp_path):
        """A new ID is generated and written."""
        path = tmp_path / ".onenode"

        project_id = load_or_create_anonymous_project_id(path)

        assert ObjectId.is_valid(project_id)
        assert path.read_text() == project_id

    def test_reuses_existing(self, tmp_path):
        """An existing valid ID is reused."""
        path = tmp_path / ".onenode"
        path.write_text("65a1b2c3d4e5f60718293a4b\n")

        assert load_or_create_anonymous_project_id(path) == "65a1b2c3d4e5f60718293a4b"

    def test_replaces_invalid(self, tmp_path, caplog):
        """A corrupt file is replaced with a fresh ID."""
        path = tmp_path / ".onenode"
        path.write_text("garbage")

        with caplog.at_level(logging.WARNING, logger="onenode.config"):
            project_id = load_or_create_anonymous_project_id(path)

        assert project_id != "garbage"
        assert path.read_text() == project_id
        assert "invalid anonymous project ID" in caplog.text

    def test_unwritable_location(self, tmp_path, caplog):
        """Failure to persist is logged and the ID still returned."""
        path = tmp_path / "missing-dir" / ".onenode"

        with caplog.at_level(logging.WARNING, logger="onenode.config"):
            project_id = load_or_create_anonymous_project_id(path)

        assert ObjectId.is_valid(project_id)
        assert "Could not persist" in caplog.text


class TestResolveProjectId:
    """Tests for resolve_project_id."""

    def test_authenticated(self):
        """The configured project ID is used with an API key."""
        settings = Settings(api_key="secret", project_id="proj-1")
        assert resolve_project_id(settings) == "proj-1"

    def test_api_key_without_project_raises(self):
        """An API key without a project ID is a configuration error."""
        settings = Settings(api_key="secret", project_id="")

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_project_id(settings)

        assert exc_info.value.setting == "project_id"

    def test_anonymous_uses_file(self, tmp_path):
        """Anonymous mode reads the anonymous project file."""
        path = tmp_path / ".onenode"
        path.write_text("65a1b2c3d4e5f60718293a4b")
        settings = Settings(api_key="", anon_project_file=str(path))

        assert resolve_project_id(settings) == "65a1b2c3d4e5f60718293a4b"
