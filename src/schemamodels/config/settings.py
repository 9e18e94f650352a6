"""Library settings using Pydantic Settings."""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv


def find_and_load_env_file():
    """Find and load .env file in current directory or parent directories."""
    current = Path.cwd().resolve()
    # Check current directory and up to 3 levels up
    for _ in range(4):
        env_path = current / ".env"
        if env_path.exists():
            # Existing environment variables win over the file
            load_dotenv(env_path, override=False)
            return str(env_path)
        parent = current.parent
        if parent == current:  # Reached root
            break
        current = parent
    return None


class Settings(BaseSettings):
    """Library configuration settings."""

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    # Attribute holding a model's natural identifier
    id_attribute: str = "id"

    # Directory searched for schemas that are not registered in a factory
    schema_dir: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="SCHEMAMODELS_",
        env_file=None,  # We load it manually with dotenv
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        """Initialize settings and create the log directory if needed."""
        find_and_load_env_file()
        super().__init__(**kwargs)
        if self.log_file:
            self.log_file = Path(self.log_file)
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
        if self.schema_dir:
            self.schema_dir = Path(self.schema_dir)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the global settings instance so the next call re-reads the environment."""
    global _settings
    _settings = None
