"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping

from libassist.embedding.encoder import DEFAULT_MODEL
from libassist.sync.catalog import DEFAULT_CATALOG_URL, FETCH_TIMEOUT
from libassist.sync.scheduler import DEFAULT_INTERVAL

DEFAULT_CHAT_MODEL = "gpt-4o-mini"
ENV_PREFIX = "LIBASSIST_"


def _get_default_db_path() -> Path:
    """Prefer a local data/ directory when running from a checkout."""
    local_db = Path("data/libassist.db")
    if local_db.parent.exists():
        return local_db
    return Path.home() / ".libassist" / "libassist.db"


def _coerce(raw: str, current: object) -> object:
    if isinstance(current, bool):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    if isinstance(current, Path) or current is None:
        return Path(raw) if raw else None
    return raw


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    store_backend: str = "sqlite"
    embedding_backend: str = "sentence-transformers"
    model_name: str = DEFAULT_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    chunk_chars: int = 1000
    overlap: int = 200
    request_timeout: float = 30.0
    catalog_url: str = DEFAULT_CATALOG_URL
    catalog_timeout: float = FETCH_TIMEOUT
    sync_interval: float = DEFAULT_INTERVAL
    sync_on_startup: bool = False
    history_limit: int = 10
    similarity_threshold: float = 0.5
    rag_top_k: int = 3
    default_language: str = "uk"

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if self.store_backend not in {"sqlite", "memory"}:
            raise ValueError(f"Unknown store backend: {self.store_backend}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config from ``LIBASSIST_*`` environment variables."""
        environ = os.environ if environ is None else environ
        defaults = cls()
        overrides = {}
        for item in fields(cls):
            raw = environ.get(ENV_PREFIX + item.name.upper())
            if raw is not None:
                overrides[item.name] = _coerce(raw, getattr(defaults, item.name))
        return cls(**overrides)

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
