"""
Application settings.

Values come from the environment; a local .env file is loaded first so
development setups don't need exported variables. Settings are built once per
process and passed explicitly to the components that need them.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./localrag.db"

    # Embedding
    embedder: str = "hashing"
    embed_dim: int = 128
    embed_max_chars: int = 20000
    embed_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Ingestion / retrieval
    chunk_size: int = 900
    top_k: int = 3
    default_collection_name: str = "Personal Library"
    reembed_on_mismatch: bool = True

    # Answer generation
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    ollama_url: str = "http://localhost:11434"
    default_model: Optional[str] = None
    generation_timeout: float = 60.0

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()  # no effect when variables are already provided
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            embedder=os.getenv("EMBEDDER", cls.embedder),
            embed_dim=int(os.getenv("EMBED_DIM", cls.embed_dim)),
            embed_max_chars=int(os.getenv("EMBED_MAX_CHARS", cls.embed_max_chars)),
            embed_model=os.getenv("EMBED_MODEL", cls.embed_model),
            chunk_size=int(os.getenv("CHUNK_SIZE", cls.chunk_size)),
            top_k=int(os.getenv("TOP_K", cls.top_k)),
            default_collection_name=os.getenv("DEFAULT_COLLECTION_NAME", cls.default_collection_name),
            reembed_on_mismatch=_env_bool("REEMBED_ON_MISMATCH", cls.reembed_on_mismatch),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            ollama_url=os.getenv("OLLAMA_URL", cls.ollama_url),
            default_model=os.getenv("DEFAULT_MODEL") or None,
            generation_timeout=float(os.getenv("GENERATION_TIMEOUT", cls.generation_timeout)),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            json_logs=_env_bool("JSON_LOGS", cls.json_logs),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings.from_env()
