"""
Configuration for OneNode SDK.

Uses pydantic-settings for environment variable loading:
- ONENODE_API_KEY: API key (empty means anonymous mode)
- ONENODE_PROJECT_ID: Project ID (required with an API key)
- ONENODE_BASE_URL: Service base URL
- ONENODE_ANON_PROJECT_FILE: Where the anonymous project ID is kept
- ONENODE_TIMEOUT: Request timeout in seconds

Invariants:
    - The API key is never logged
    - An anonymous project ID is reused across runs when its file is readable
"""

from __future__ import annotations

import logging
from pathlib import Path

from bson import ObjectId
from pydantic import Field
from pydantic_settings import BaseSettings

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Client configuration loaded from environment."""

    api_key: str = Field(default="", description="API key; empty enables anonymous mode")
    project_id: str = Field(default="", description="Project ID for authenticated mode")
    base_url: str = Field(default="https://api.onenode.ai/v0", description="Service base URL")
    anon_project_file: str = Field(
        default=".onenode", description="File holding the anonymous project ID"
    )
    timeout: float = Field(default=30.0, description="Request timeout seconds")

    model_config = {"env_prefix": "ONENODE_"}

    @property
    def is_anonymous(self) -> bool:
        """Whether requests are sent without an API key."""
        return not self.api_key


def load_or_create_anonymous_project_id(path: str | Path) -> str:
    """Load the anonymous project ID from path, creating one if needed.

    A file that is missing or does not hold a valid ObjectId is replaced
    by a freshly generated ID. Failing to persist the new ID is logged and
    the ID is used for this process only.
    """
    path = Path(path)
    if path.exists():
        try:
            project_id = path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning(f"Could not read anonymous project file {path}: {e}")
        else:
            if ObjectId.is_valid(project_id):
                return project_id
            logger.warning(f"Ignoring invalid anonymous project ID in {path}")

    project_id = str(ObjectId())
    try:
        path.write_text(project_id, encoding="utf-8")
        logger.info(f"Created anonymous project {project_id} ({path})")
    except OSError as e:
        logger.warning(f"Could not persist anonymous project ID to {path}: {e}")
    return project_id


def resolve_project_id(settings: Settings) -> str:
    """Project ID to address requests to.

    Raises:
        ConfigurationError: If an API key is set without a project ID
    """
    if settings.is_anonymous:
        return load_or_create_anonymous_project_id(settings.anon_project_file)

    if not settings.project_id:
        raise ConfigurationError(
            "Missing Project ID: set it in the ONENODE_PROJECT_ID environment variable "
            "or pass Settings(project_id=...).",
            setting="project_id",
        )
    return settings.project_id
