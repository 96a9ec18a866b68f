"""Environment-driven settings for the Recap backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .constants import EXTRACTION_MODEL, FOLLOWUP_MODELS, TRANSCRIPTION_MODEL
from .errors import ConfigurationError

# Load environment variables from .env file
load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./recap.db"


@dataclass(frozen=True)
class Settings:
    """Credentials and tunables for one pipeline invocation."""

    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    database_url: str = DEFAULT_DATABASE_URL
    upload_dir: Path = Path("uploads")
    transcription_model: str = TRANSCRIPTION_MODEL
    extraction_model: str = EXTRACTION_MODEL
    followup_provider: str = "openai"
    followup_model: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        provider = os.getenv("FOLLOWUP_PROVIDER", "openai").strip().lower()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            upload_dir=Path(os.getenv("UPLOAD_DIR", "uploads")),
            transcription_model=os.getenv("TRANSCRIPTION_MODEL", TRANSCRIPTION_MODEL),
            extraction_model=os.getenv("EXTRACTION_MODEL", EXTRACTION_MODEL),
            followup_provider=provider,
            followup_model=os.getenv("FOLLOWUP_MODEL") or None,
        )

    @property
    def resolved_followup_model(self) -> str:
        if self.followup_model:
            return self.followup_model
        if self.followup_provider not in FOLLOWUP_MODELS:
            raise ConfigurationError(f"Unknown FOLLOWUP_PROVIDER: {self.followup_provider}")
        return FOLLOWUP_MODELS[self.followup_provider]

    def require_openai_key(self) -> str:
        """Return the OpenAI key or raise ConfigurationError."""
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not defined in the environment variables")
        return self.openai_api_key

    def require_followup_key(self) -> str:
        """Return the credential for the configured follow-up provider."""
        if self.followup_provider == "openai":
            return self.require_openai_key()
        if self.followup_provider == "anthropic":
            if not self.anthropic_api_key:
                raise ConfigurationError(
                    "ANTHROPIC_API_KEY is not defined in the environment variables"
                )
            return self.anthropic_api_key
        raise ConfigurationError(f"Unknown FOLLOWUP_PROVIDER: {self.followup_provider}")


def get_settings() -> Settings:
    """Dependency for FastAPI routes to get the current settings."""
    return Settings.from_env()
