"""
Application configuration management.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Triggers
    trigger_message: str
    trigger_tag: str
    target_branch: str = "develop"

    # GitLab
    gitlab_token: str
    gitlab_url: str = "https://gitlab.com"
    gitlab_timeout_seconds: float = 30.0

    # Commit identity used for merge commits
    git_email: str = "vcs@example.com"
    git_user: str = "vcs"

    # Webhook
    secret_token: Optional[str] = None

    # Application
    workspace_root: str = "/gitlab-combiner"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator(
        "trigger_message",
        "trigger_tag",
        "target_branch",
        "gitlab_token",
        "gitlab_url",
        "git_email",
        "git_user",
    )
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("gitlab_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("secret_token")
    @classmethod
    def _blank_secret_is_unset(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @property
    def gitlab_api_url(self) -> str:
        return f"{self.gitlab_url}/api/v4"


# Global settings instance
settings = Settings()
