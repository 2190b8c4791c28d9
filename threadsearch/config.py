import json
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from threadsearch.constants import (
    ANSWER_RESULT_LIMIT,
    EXPANSION_CACHE_TTL,
    EXPANSION_RESULT_LIMIT,
    LEXICAL_RESULT_LIMIT,
    RECENT_MESSAGE_DAYS,
    RRF_K,
    SEMANTIC_RESULT_LIMIT,
)
from threadsearch.embedder import EmbeddingConfig
from threadsearch.llm.models import get_embedding_model, list_embedding_models, list_models
from threadsearch.logging import get_logger

THREADSEARCH_DIR = Path.home() / ".threadsearch"
SETTINGS_PATH = THREADSEARCH_DIR / "settings.json"

_logger = get_logger(__name__)


def load_user_settings() -> dict:
    if not SETTINGS_PATH.exists():
        return {}
    try:
        return json.loads(SETTINGS_PATH.read_text())
    except (json.JSONDecodeError, OSError):
        _logger.warning("Failed to load user settings", exc_info=True)
        return {}


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="THREADSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    # API keys, read from the standard env vars
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")

    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"

    data_dir: Path = THREADSEARCH_DIR

    # Retrieval and ranking
    semantic_limit: int = SEMANTIC_RESULT_LIMIT
    lexical_limit: int = LEXICAL_RESULT_LIMIT
    expansion_limit: int = EXPANSION_RESULT_LIMIT
    expansion_ttl_seconds: float = EXPANSION_CACHE_TTL
    rrf_k: int = RRF_K
    answer_limit: int = ANSWER_RESULT_LIMIT
    recency_days: int = RECENT_MESSAGE_DAYS

    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = False

    @field_validator("chat_model")
    @classmethod
    def _validate_chat_model(cls, v: str) -> str:
        valid = list_models()
        if v not in valid:
            raise ValueError(f"Unsupported model: {v}. Must be one of: {', '.join(valid)}")
        return v

    @field_validator("embedding_model")
    @classmethod
    def _validate_embedding_model(cls, v: str) -> str:
        valid = list_embedding_models()
        if v not in valid:
            raise ValueError(f"Unsupported embedding model: {v}. Must be one of: {', '.join(valid)}")
        return v

    @field_validator("semantic_limit", "lexical_limit", "expansion_limit", "answer_limit", "rrf_k")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def embedding(self) -> EmbeddingConfig:
        return EmbeddingConfig(
            model=self.embedding_model,
            dim=get_embedding_model(self.embedding_model).dim,
        )

    @property
    def index_db_path(self) -> Path:
        return self.data_dir / "index.db"

    @property
    def messages_db_path(self) -> Path:
        return self.data_dir / "messages.db"


PERSIST_KEYS = frozenset(
    {
        "chat_model",
        "embedding_model",
        "data_dir",
        "semantic_limit",
        "lexical_limit",
        "expansion_limit",
        "expansion_ttl_seconds",
        "answer_limit",
        "recency_days",
    }
)


def get_config() -> Config:
    settings = load_user_settings()
    # init args (settings.json) > env vars > defaults
    overrides = {k: settings[k] for k in PERSIST_KEYS if k in settings}
    return Config(**overrides)  # type: ignore - pydantic handles validation
