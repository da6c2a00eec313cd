"""Application configuration using pydantic-settings."""
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserConfig(BaseModel):
    """Headless browser configuration."""

    headless: bool = True
    cdp_url: Optional[str] = None
    launch_retries: int = 3
    retry_delay: float = 2.0
    navigation_timeout_ms: int = 30000
    navigation_retries: int = 1
    locator_timeout_ms: int = 5000
    user_agent: Optional[str] = None


class FormsConfig(BaseModel):
    """Form filling policy and selector extensions."""

    auto_submit: bool = False
    submit_wait_ms: int = 3000
    extra_selectors: dict[str, list[str]] = Field(default_factory=dict)


class QueueConfig(BaseModel):
    """Durable application queue configuration."""

    database_url: str = "sqlite:///data/resumeflow.db"
    concurrency: int = 1
    lease_seconds: float = 600.0
    poll_interval: float = 1.0
    claim_candidates: int = 5


class ProvidersConfig(BaseModel):
    """Job listing provider credentials."""

    jsearch_api_key: str = ""
    jsearch_host: str = "jsearch.p.rapidapi.com"
    adzuna_app_id: str = ""
    adzuna_api_key: str = ""
    adzuna_country: str = "us"
    timeout: float = 30.0


class ApiConfig(BaseModel):
    """HTTP intake server configuration."""

    host: str = "0.0.0.0"
    port: int = 10000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    run_consumers: bool = True


class Settings(BaseSettings):
    """Application settings loaded from YAML or environment."""

    model_config = SettingsConfigDict(
        env_prefix="RESUMEFLOW_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    browser: BrowserConfig = BrowserConfig()
    forms: FormsConfig = FormsConfig()
    queue: QueueConfig = QueueConfig()
    providers: ProvidersConfig = ProvidersConfig()
    api: ApiConfig = ApiConfig()

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        """Load from YAML when the file exists, otherwise from the environment."""
        if path is not None and path.exists():
            return cls.from_yaml(path)
        return cls()
