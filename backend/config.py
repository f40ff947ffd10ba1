from __future__ import annotations

from dataclasses import dataclass
import os


def _parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    anthropic_api_key: str
    llm_model: str
    llm_timeout_seconds: float
    llm_max_retries: int
    llm_retry_backoff_seconds: float
    db_path: str
    upload_dir: str
    public_upload_base: str
    cors_origins: list[str]
    log_level: str
    max_upload_bytes: int


def load_settings() -> Settings:
    return Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        llm_model=os.getenv("LLM_MODEL", "claude-haiku-4-5"),
        llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "30")),
        llm_max_retries=int(os.getenv("LLM_MAX_RETRIES", "0")),
        llm_retry_backoff_seconds=float(os.getenv("LLM_RETRY_BACKOFF_SECONDS", "0.5")),
        db_path=os.getenv("DB_PATH", "/data/receiptlens.db"),
        upload_dir=os.getenv("UPLOAD_DIR", "/data/uploads"),
        public_upload_base=os.getenv("PUBLIC_UPLOAD_BASE", "/uploads"),
        cors_origins=_parse_csv(os.getenv("CORS_ORIGINS")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
    )


def get_settings() -> Settings:
    """FastAPI dependency.  Reads the environment on each call so tests can
    override it through ``app.dependency_overrides`` instead of mutating env."""
    return load_settings()
