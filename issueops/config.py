"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file and override existing env vars
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # GitHub
    github_token: str = Field(default="")
    github_api_url: str = "https://api.github.com"
    github_webhook_secret: str = Field(default="")
    github_timeout_seconds: float = 30.0
    # e.g. "https://ci.example.com/runs/{run_id}" - linked from the triggered comment
    run_url_template: str | None = None

    # Run store (JSON mirror of run state, disabled when unset)
    state_directory: str | None = None

    # Deploy command inputs
    trigger: str = ".deploy"
    help_trigger: str = ".help"
    noop_trigger: str = "noop"
    reaction: str = "eyes"
    prefix_only: bool = True
    environment: str = "production"
    stable_branch: str = "main"
    environment_targets: str = "production,development,staging"
    environment_urls: str = ""
    environment_url_in_comment: bool = True
    production_environment: str = "production"
    update_branch: Literal["disabled", "warn", "force"] = "warn"
    required_contexts: str = "false"
    allow_forks: bool = True
    skip_ci: str = ""
    skip_reviews: str = ""
    merge_deploy_mode: bool = False
    admins: str = "false"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_directory: str | None = None
    log_file_name: str = "issueops.log"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"


def _split_list(value: str) -> list[str]:
    """Split a comma separated input, dropping blanks and the literal 'false'."""
    if not value or value.strip() == "false":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class DeployConfig(BaseModel):
    """Inputs that drive a single deploy run.

    Built from ``Settings`` in production; tests construct it directly.
    """

    model_config = ConfigDict(frozen=True)

    trigger: str = ".deploy"
    help_trigger: str = ".help"
    noop_trigger: str = "noop"
    reaction: str = "eyes"
    prefix_only: bool = True
    environment: str = "production"
    stable_branch: str = "main"
    environment_targets: str = "production,development,staging"
    environment_urls: str = ""
    environment_url_in_comment: bool = True
    production_environment: str = "production"
    update_branch: Literal["disabled", "warn", "force"] = "warn"
    required_contexts: str = "false"
    allow_forks: bool = True
    skip_ci: str = ""
    skip_reviews: str = ""
    merge_deploy_mode: bool = False
    admins: str = "false"

    @classmethod
    def from_settings(cls, source: Settings) -> "DeployConfig":
        """Copy the deploy inputs out of the application settings."""
        return cls(**source.model_dump(include=set(cls.model_fields)))

    @property
    def targets(self) -> list[str]:
        return _split_list(self.environment_targets)

    @property
    def required_context_list(self) -> list[str]:
        return _split_list(self.required_contexts)

    @property
    def skip_ci_environments(self) -> list[str]:
        return _split_list(self.skip_ci)

    @property
    def skip_review_environments(self) -> list[str]:
        return _split_list(self.skip_reviews)

    @property
    def admin_list(self) -> list[str]:
        return [admin.lower() for admin in _split_list(self.admins)]

    @property
    def auto_merge(self) -> bool:
        return self.update_branch != "disabled"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
