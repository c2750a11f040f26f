"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - history_repo_dir defaults to the directory holding the data file

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: `python -m issueboard` works out-of-the-box
    - PORT and AUTO_PUSH keep their conventional env names (case-insensitive match)
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Snapshot
    data_file: str = "issues.json"
    reload_before_mutate: bool = True

    # Version history
    history_enabled: bool = True
    auto_push: bool = True
    history_remote: str = "origin"
    history_repo_dir: str | None = None
    history_queue_size: int = 100
    history_command_timeout_seconds: float = 30.0
    history_shutdown_grace_seconds: float = 5.0

    @field_validator("auto_push", mode="before")
    @classmethod
    def parse_auto_push(cls, v: object) -> object:
        """Anything but the literal 'false' enables pushing."""
        if isinstance(v, str):
            return v.strip().lower() != "false"
        return v

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["http://localhost:3000"]
    static_dir: str = "public"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def resolved_history_repo_dir(self) -> Path:
        if self.history_repo_dir:
            return Path(self.history_repo_dir)
        return Path(self.data_file).resolve().parent


@lru_cache
def get_settings() -> Settings:
    return Settings()
