from dataclasses import dataclass
from enum import Enum


class Provider(Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass(frozen=True)
class Model:
    id: str
    provider: Provider
    max_context_tokens: int
    max_output_tokens: int = 4096


DEFAULTS = [
    Model("claude-sonnet-4-6", provider=Provider.ANTHROPIC, max_context_tokens=200_000, max_output_tokens=8192),
    Model("claude-haiku-4-5", provider=Provider.ANTHROPIC, max_context_tokens=200_000, max_output_tokens=8192),
    Model("gpt-5.2", provider=Provider.OPENAI, max_context_tokens=128_000, max_output_tokens=16384),
    Model("gpt-4o-mini", provider=Provider.OPENAI, max_context_tokens=128_000, max_output_tokens=16384),
]


@dataclass(frozen=True)
class EmbeddingModel:
    id: str
    provider: Provider
    dim: int


EMBEDDING_DEFAULTS = [
    EmbeddingModel("text-embedding-3-small", Provider.OPENAI, 1536),
    EmbeddingModel("text-embedding-3-large", Provider.OPENAI, 3072),
    EmbeddingModel("text-embedding-ada-002", Provider.OPENAI, 1536),
]


_models: dict[str, Model] = {m.id: m for m in DEFAULTS}
_embedding_models: dict[str, EmbeddingModel] = {m.id: m for m in EMBEDDING_DEFAULTS}


def get_model(model_id: str) -> Model:
    if model_id not in _models:
        raise ValueError(f"Unknown model: {model_id}. Available: {', '.join(_models)}")
    return _models[model_id]


def get_embedding_model(model_id: str) -> EmbeddingModel:
    if model_id not in _embedding_models:
        raise ValueError(f"Unknown embedding model: {model_id}. Available: {', '.join(_embedding_models)}")
    return _embedding_models[model_id]


def list_models() -> list[str]:
    return list(_models)


def list_embedding_models() -> list[str]:
    return list(_embedding_models)
