"""Simplified configuration management."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "Saviora Dream Server"
DEFAULT_APP_VERSION = "0.1.0"
DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _get_port() -> int:
    """Get server port, checking the platform PORT first, then SAVIORA_PORT."""
    port = os.getenv("PORT") or os.getenv("SAVIORA_PORT")
    if port:
        try:
            return int(port)
        except ValueError:
            pass
    return 8001


class Settings(BaseModel):
    """Application settings with lightweight env fallbacks."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Server runtime
    server_host: str = Field(default=os.getenv("SAVIORA_HOST", "0.0.0.0"))
    server_port: int = Field(default_factory=_get_port)
    data_dir: Path = Field(default=Path(os.getenv("SAVIORA_DATA_DIR", str(DEFAULT_DATA_DIR))))

    # Text generation
    llm_api_key: Optional[str] = Field(default=os.getenv("DEEPSEEK_API_KEY"))
    llm_base_url: str = Field(default=os.getenv("SAVIORA_LLM_BASE_URL", "https://api.deepseek.com/v1"))
    llm_model: str = Field(default=os.getenv("SAVIORA_LLM_MODEL", "deepseek-chat"))
    llm_timeout_seconds: float = Field(default=_env_float("SAVIORA_LLM_TIMEOUT", 60.0))

    # Identity supplied by the upstream gateway
    identity_header: str = Field(default=os.getenv("SAVIORA_IDENTITY_HEADER", "X-User-Id"))

    # HTTP behaviour
    cors_allow_origins_raw: str = Field(default=os.getenv("SAVIORA_CORS_ALLOW_ORIGINS", "*"))
    enable_docs: bool = Field(default=os.getenv("SAVIORA_ENABLE_DOCS", "1") != "0")
    docs_url: Optional[str] = Field(default=os.getenv("SAVIORA_DOCS_URL", "/docs"))

    # Rate limiting actor
    rate_limit_max_requests: int = Field(default=_env_int("SAVIORA_RATE_LIMIT_MAX_REQUESTS", 50))
    rate_limit_window_ms: int = Field(default=_env_int("SAVIORA_RATE_LIMIT_WINDOW_MS", 30_000))
    rate_limit_stale_buffer_ms: int = Field(default=_env_int("SAVIORA_RATE_LIMIT_STALE_BUFFER_MS", 300_000))
    actor_alarm_interval_ms: int = Field(default=_env_int("SAVIORA_ACTOR_ALARM_INTERVAL_MS", 60_000))
    actor_alarm_poll_seconds: float = Field(default=_env_float("SAVIORA_ACTOR_ALARM_POLL_SECONDS", 5.0))

    # Summarisation controls
    summary_update_threshold: int = Field(default=_env_int("SAVIORA_SUMMARY_UPDATE_THRESHOLD", 6))
    summary_anchor_max_chars: int = Field(default=2000)
    summary_max_tokens: int = Field(default=300)
    summary_temperature: float = Field(default=0.3)

    # Interpretation controls
    block_text_max_chars: int = Field(default=4000)
    block_interpretation_max_tokens: int = Field(default=600)
    dream_interpretation_max_tokens: int = Field(default=800)
    interpretation_temperature: float = Field(default=0.7)

    # Dialogue turns
    dialogue_max_tokens: int = Field(default=500)
    dialogue_temperature: float = Field(default=0.7)
    dialogue_recent_turns: int = Field(default=_env_int("SAVIORA_DIALOGUE_RECENT_TURNS", 20))

    @property
    def cors_allow_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allow_origins_raw.strip() in {"", "*"}:
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()]

    @property
    def resolved_docs_url(self) -> Optional[str]:
        """Return documentation URL when docs are enabled."""
        return (self.docs_url or "/docs") if self.enable_docs else None

    @property
    def database_path(self) -> Path:
        return self.data_dir / "saviora.db"

    @property
    def actor_database_path(self) -> Path:
        return self.data_dir / "actors.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
