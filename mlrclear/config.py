"""
MLRClear Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    API_VERSION: str = "1"

    # --- Pattern Library ---
    # Optional JSON rule file. Empty = built-in default library.
    PATTERN_LIBRARY_PATH: str = os.getenv("MLRCLEAR_PATTERN_LIBRARY", "")

    # --- Claim Detection ---
    SCAN_WORKERS: int = int(os.getenv("MLRCLEAR_SCAN_WORKERS", "1"))
    CONTEXT_WINDOW: int = int(os.getenv("MLRCLEAR_CONTEXT_WINDOW", "50"))

    # --- Collaborators ---
    BRAND_RULES_DIR: str = os.getenv("MLRCLEAR_BRAND_RULES_DIR", "")
    PROVIDER_TIMEOUT: float = float(os.getenv("MLRCLEAR_PROVIDER_TIMEOUT", "5"))
    PROVIDER_CACHE_TTL: int = int(os.getenv("MLRCLEAR_PROVIDER_CACHE_TTL", "3600"))

    # --- Server ---
    HOST: str = os.getenv("MLRCLEAR_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("MLRCLEAR_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("MLRCLEAR_CORS_ORIGINS", "*")


settings = Settings()
