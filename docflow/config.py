"""
Configuration module for the docflow backend.

Loads environment variables and validates required settings.
"""
import os
from typing import List
from dotenv import load_dotenv

# Load .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    # Application Settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Settings (only enforced in production, see main._get_cors_origins)
    CORS_ALLOWED_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    # Google Gemini API (vision + text analysis)
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")
    GEMINI_VISION_MODEL: str = os.getenv("GEMINI_VISION_MODEL", "gemini-2.5-flash")
    GEMINI_TEXT_MODEL: str = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")

    # Upload handling
    # base64 grows ~33%, so the HTTP body limit must be set accordingly upstream
    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "50"))

    # Temporary artifact (decoded upload kept for debugging while the request runs)
    SAVE_UPLOADS: bool = _env_bool("SAVE_UPLOADS", "true")
    ARTIFACT_BACKEND: str = os.getenv("ARTIFACT_BACKEND", "local").strip().lower()
    UPLOADS_DIR: str = os.getenv("UPLOADS_DIR", "uploads")

    # Supabase Storage (only when ARTIFACT_BACKEND=supabase)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_STORAGE_BUCKET: str = os.getenv("SUPABASE_STORAGE_BUCKET", "uploads")

    # Issuer identity used when an invoice payload does not carry one
    ISSUER_NAME: str = os.getenv("ISSUER_NAME", "N/A")
    ISSUER_RFC: str = os.getenv("ISSUER_RFC", "N/A")
    ISSUER_ADDRESS: str = os.getenv("ISSUER_ADDRESS", "")
    ISSUER_FISCAL_REGIME: str = os.getenv("ISSUER_FISCAL_REGIME", "N/A")
    DEFAULT_EXPEDITION_PLACE: str = os.getenv("DEFAULT_EXPEDITION_PLACE", "N/A")

    @property
    def MAX_UPLOAD_BYTES(self) -> int:
        """Upload size limit in bytes."""
        return self.MAX_UPLOAD_MB * 1024 * 1024

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required settings are configured.

        Raises:
            ValueError: If any required setting is missing.
        """
        required_settings = {
            "GOOGLE_API_KEY": cls.GOOGLE_API_KEY,
        }
        if cls.ARTIFACT_BACKEND == "supabase":
            required_settings["SUPABASE_URL"] = cls.SUPABASE_URL
            required_settings["SUPABASE_KEY"] = cls.SUPABASE_KEY

        missing = [key for key, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Please check your .env file."
            )

        if cls.ARTIFACT_BACKEND not in ("local", "supabase"):
            raise ValueError(
                f"Unknown ARTIFACT_BACKEND '{cls.ARTIFACT_BACKEND}'. "
                "Expected 'local' or 'supabase'."
            )

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_staging(cls) -> bool:
        """Check if running in staging environment."""
        return cls.ENVIRONMENT.lower() == "staging"

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment."""
        return cls.ENVIRONMENT.lower() == "development"


# Create a singleton instance
settings = Settings()

# Validate settings on module import (will fail fast if misconfigured)
# Skip validation during tests or when importing for introspection
if os.getenv("VALIDATE_CONFIG", "true").lower() == "true":
    try:
        settings.validate()
    except ValueError as e:
        # In development, warn but don't crash
        if settings.is_development():
            print(f"⚠️  Warning: {e}")
            print("   The app may not work correctly until you configure your .env file.")
        else:
            # In production or staging, fail immediately
            raise
