"""
Application configuration with Docker secrets support.

Secrets are read using the _read_secret() pattern:
  1. Direct env var (e.g., LLM_API_KEY)
  2. File-based env var (e.g., LLM_API_KEY_FILE → reads file path)
  3. Raises ValueError if neither is set
"""

import os
import logging

logger = logging.getLogger(__name__)


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., LLM_API_KEY)
        file_env_var: File path env var name (e.g., LLM_API_KEY_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    # Priority 1: Direct env var
    value = os.environ.get(env_var)
    if value:
        return value

    # Priority 2: File-based (Docker secrets pattern)
    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error(f"Secret file not found: {file_path} (from {file_env_var})")
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path} (from {file_env_var})")

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


def _optional_int(env_var: str) -> int | None:
    raw = os.environ.get(env_var, "").strip()
    if not raw:
        return None
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{env_var} must be a positive integer, got {raw!r}")
    return value


class Settings:
    """Application settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Secrets (loaded lazily on first access via properties)
        self._llm_api_key: str | None = None

        # LLM collaborator
        self.llm_provider = os.environ.get("LLM_PROVIDER", "openai")
        self.llm_model = os.environ.get("LLM_MODEL", "gpt-4o-mini")

        # Uploads
        self.max_upload_size = int(os.environ.get("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))

        # Font overrides for suggestions that don't carry their own
        self.default_font_family = os.environ.get("DEFAULT_FONT_FAMILY") or None
        self.default_font_size = _optional_int("DEFAULT_FONT_SIZE")

        # Public config
        self.allowed_origins = [
            origin.strip()
            for origin in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]

    @property
    def llm_api_key(self) -> str:
        if self._llm_api_key is None:
            self._llm_api_key = _read_secret("LLM_API_KEY")
        return self._llm_api_key


settings = Settings()
