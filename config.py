"""
Application settings.

Settings are read once from environment variables. API keys are not part of
the settings: each model provider reads its own key when it is built.
"""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL_ALIAS = "Gemini 2.5 Flash (Google)"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the app."""

    model_alias: str = DEFAULT_MODEL_ALIAS
    request_timeout: float = 120.0
    data_dir: Path = Path.home() / ".roadmap_architect"
    max_upload_mb: int = 20

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def _read_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> Settings:
    """Build settings from the environment, falling back to defaults."""
    defaults = Settings()
    data_dir = os.getenv("STUDY_DATA_DIR")
    return Settings(
        model_alias=os.getenv("STUDY_MODEL", defaults.model_alias),
        request_timeout=_read_number(
            "STUDY_REQUEST_TIMEOUT", defaults.request_timeout, float
        ),
        data_dir=Path(data_dir).expanduser() if data_dir else defaults.data_dir,
        max_upload_mb=_read_number("STUDY_MAX_UPLOAD_MB", defaults.max_upload_mb, int),
    )
