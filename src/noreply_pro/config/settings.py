"""
Application configuration.

Centralizes environment variables, constants, and settings
using dataclasses for type safety and immutability.
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class StorageSettings:
    """Local storage settings."""
    
    # One of: file, sqlite, memory
    backend: str = field(
        default_factory=lambda: os.environ.get("NOREPLY_STORAGE_BACKEND", "file").lower()
    )
    data_dir: str = field(
        default_factory=lambda: os.environ.get("NOREPLY_DATA_DIR", "data")
    )
    sqlite_path: str = field(
        default_factory=lambda: os.environ.get("NOREPLY_SQLITE_PATH", "")
    )
    
    followups_key: str = field(
        default_factory=lambda: os.environ.get("FOLLOWUPS_KEY", "noreply_pro_db_v2")
    )
    rules_key: str = field(
        default_factory=lambda: os.environ.get("RULES_KEY", "noreply_pro_rules_v2")
    )
    templates_key: str = field(
        default_factory=lambda: os.environ.get("TEMPLATES_KEY", "noreply_pro_templates_v2")
    )
    
    @property
    def resolved_sqlite_path(self) -> str:
        """SQLite database path, defaulting to a file inside data_dir."""
        return self.sqlite_path or os.path.join(self.data_dir, "noreply.db")


@dataclass(frozen=True)
class DraftWriterSettings:
    """Gemini drafting service settings."""
    
    api_key: str = field(
        default_factory=lambda: os.environ.get(
            "GEMINI_API_KEY", os.environ.get("API_KEY", "")
        )
    )
    model: str = field(
        default_factory=lambda: os.environ.get("GEMINI_MODEL", "gemini-3-flash-preview")
    )
    base_url: str = field(
        default_factory=lambda: os.environ.get(
            "GEMINI_BASE_URL",
            "https://generativelanguage.googleapis.com/v1beta",
        ).rstrip("/")
    )
    timeout_seconds: int = 30
    temperature: float = 0.8
    top_p: float = 0.9
    
    @property
    def is_configured(self) -> bool:
        """Check if the drafting service is properly configured."""
        return bool(self.api_key)
    
    @property
    def generate_url(self) -> str:
        """Get the generateContent endpoint URL."""
        return f"{self.base_url}/models/{self.model}:generateContent"


@dataclass(frozen=True)
class Settings:
    """Main application settings."""
    
    storage: StorageSettings = field(default_factory=StorageSettings)
    draft_writer: DraftWriterSettings = field(default_factory=DraftWriterSettings)
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", 8080)))
    debug: bool = field(default_factory=lambda: os.environ.get("DEBUG", "false").lower() == "true")


# Singleton settings instance
settings = Settings()
