"""Configuration management utilities for the budget mind map tools.

Provides:
- Config: base class that exposes its public settings as a dict
- AppConfig: application settings loaded from environment variables
"""

import os
from pathlib import Path
from typing import Dict, Any

DEFAULT_DATA_PATH = Path("data") / "th_budget_FY2025.json"
DEFAULT_NOTES_PATH = Path("notes.json")


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all public config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the tools work out of the box.

    Environment variables:
        BUDGET_DATA_PATH: Default dataset file (default: data/th_budget_FY2025.json)
        BUDGET_NOTES_PATH: Notes JSON file (default: notes.json)
        BUDGET_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        BUDGET_LOG_LEVEL: Root log level name (default: INFO)
        BUDGET_MAX_DEPTH: Maximum dataset nesting depth (default: 256)
        BUDGET_API_HOST: API server bind address (default: 127.0.0.1)
        BUDGET_API_PORT: API server port (default: 8000)
        BUDGET_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        BUDGET_CURRENCY: Currency code shown after amounts (default: THB)
    """

    def __init__(self) -> None:
        super().__init__()
        self.data_path = Path(os.getenv("BUDGET_DATA_PATH", str(DEFAULT_DATA_PATH)))
        self.notes_path = Path(os.getenv("BUDGET_NOTES_PATH", str(DEFAULT_NOTES_PATH)))
        self.log_format = os.getenv("BUDGET_LOG_FORMAT", "text").lower()
        self.log_level = os.getenv("BUDGET_LOG_LEVEL", "INFO").upper()
        self.max_depth = _env_int("BUDGET_MAX_DEPTH", 256)
        self.api_host = os.getenv("BUDGET_API_HOST", "127.0.0.1")
        self.api_port = _env_int("BUDGET_API_PORT", 8000)
        raw_origins = os.getenv("BUDGET_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins.strip() == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.currency = os.getenv("BUDGET_CURRENCY", "THB")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
