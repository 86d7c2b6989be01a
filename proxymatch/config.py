"""
Proxy Match: Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Keyword vocabulary used to turn free-text bios into interest tags.
DEFAULT_INTEREST_VOCABULARY: List[str] = [
    "music", "coffee", "adventure", "adventures", "photography", "photographer",
    "dj", "art", "dog", "dogs", "tech", "dancing", "dance", "food", "foodie",
    "karaoke", "startup", "yoga", "plants", "sunset", "chef", "cooking",
    "netflix", "writer", "writing", "finance", "comedy", "stand-up",
    "fashion", "vintage", "brunch", "medical", "gym", "fitness", "study",
    "music producer", "vinyl", "night owl", "architecture", "architect",
    "museum", "museums", "sketching", "bartender", "hiking", "travel",
    "books", "reading", "gaming", "running", "cycling", "surfing", "wine",
    "cocktails", "film", "movies", "theatre", "poetry", "skateboarding",
    "climbing", "board games",
]


class Settings(BaseSettings):
    """Central configuration for the Proxy Match service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Geo-index
    # ------------------------------------------------------------------ #
    GEO_CELL_SIZE_DEGREES: float = 0.01       # ~1.1 km of latitude
    POSITION_TTL_SECONDS: float = 900.0       # inactivity timeout
    EXPIRY_SWEEP_INTERVAL_SECONDS: float = 60.0

    # ------------------------------------------------------------------ #
    # Connections
    # ------------------------------------------------------------------ #
    DECLINE_COOLDOWN_SECONDS: float = 86400.0

    # ------------------------------------------------------------------ #
    # Discovery ranking
    # ------------------------------------------------------------------ #
    TAG_MATCH_WEIGHT: float = 10.0
    DISTANCE_PENALTY_DIVISOR: float = 100.0
    DISCOVERY_DEFAULT_LIMIT: int = 20
    DISCOVERY_MAX_LIMIT: int = 100

    # Named discovery radii in metres
    PROXIMITY_LEVELS: Dict[str, float] = {
        "venue": 15.0,
        "nearby": 50.0,
        "neighborhood": 500.0,
        "city": 50000.0,
    }

    # ------------------------------------------------------------------ #
    # Crossed-paths history
    # ------------------------------------------------------------------ #
    CROSSED_PATHS_LIMIT: int = 50

    # ------------------------------------------------------------------ #
    # Interest tag extraction
    # ------------------------------------------------------------------ #
    INTEREST_VOCABULARY: List[str] = DEFAULT_INTEREST_VOCABULARY
    INTEREST_VOCABULARY_FILE: str = ""  # one keyword per line; overrides the list

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def interest_vocabulary(self) -> list[str]:
        """Return the tag vocabulary, preferring the file when one is set."""
        if not self.INTEREST_VOCABULARY_FILE:
            return list(self.INTEREST_VOCABULARY)
        lines = Path(self.INTEREST_VOCABULARY_FILE).read_text(encoding="utf-8").splitlines()
        return [line.strip() for line in lines if line.strip() and not line.startswith("#")]

    @field_validator(
        "GEO_CELL_SIZE_DEGREES",
        "POSITION_TTL_SECONDS",
        "EXPIRY_SWEEP_INTERVAL_SECONDS",
        "DISTANCE_PENALTY_DIVISOR",
        "REQUEST_TIMEOUT_SECONDS",
    )
    @classmethod
    def _must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("DECLINE_COOLDOWN_SECONDS")
    @classmethod
    def _cooldown_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Cooldown cannot be negative, got {v}")
        return v

    @field_validator("DISCOVERY_DEFAULT_LIMIT", "DISCOVERY_MAX_LIMIT", "CROSSED_PATHS_LIMIT")
    @classmethod
    def _limit_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Limit must be at least 1, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from proxymatch.config import get_settings
        settings = get_settings()
    """
    return Settings()
