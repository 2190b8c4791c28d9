from threadsearch.config import Config, get_config
from threadsearch.constants import EXPANSION_MAX_TOKENS, EXPANSION_TEMPERATURE
from threadsearch.embedder import Embedder
from threadsearch.llm import router as llm_router
from threadsearch.llm.completer import LLMCompleter
from threadsearch.logging import get_logger
from threadsearch.messages.store import MessageStore
from threadsearch.search.assembler import AnswerAssembler
from threadsearch.search.expansion import QueryExpansionCache
from threadsearch.search.permissions import PermissionFilter
from threadsearch.search.retrieval import MultiStrategyRetriever
from threadsearch.search.service import SearchService
from threadsearch.search.store import MessageIndex

_logger = get_logger(__name__)


class Runtime:
    def __init__(self, config: Config | None = None):
        self.config = config or get_config()

        self.embedder = Embedder(self.config.embedding)
        self.index = MessageIndex(self.config.index_db_path, self.embedder, self.config.embedding.dim)
        self.messages = MessageStore(self.config.messages_db_path)
        self.completer = LLMCompleter(self.config.chat_model)
        self.expansion_completer = LLMCompleter(
            self.config.chat_model,
            temperature=EXPANSION_TEMPERATURE,
            max_tokens=EXPANSION_MAX_TOKENS,
        )
        self.expansion_cache = QueryExpansionCache(self.expansion_completer, ttl=self.config.expansion_ttl_seconds)

        self.search = SearchService(
            retriever=MultiStrategyRetriever(
                self.index,
                self.expansion_cache,
                semantic_limit=self.config.semantic_limit,
                lexical_limit=self.config.lexical_limit,
                expansion_limit=self.config.expansion_limit,
            ),
            permissions=PermissionFilter(self.messages),
            assembler=AnswerAssembler(self.completer, limit=self.config.answer_limit),
            rrf_k=self.config.rrf_k,
            recency_days=self.config.recency_days,
        )
        self._connected = False

    async def connect(self) -> None:
        if self._connected:
            return

        self.config.data_dir.mkdir(parents=True, exist_ok=True)
        llm_router.init(self.config)
        await self.index.connect()
        await self.messages.connect()
        self._connected = True
        _logger.info("runtime connected", data_dir=str(self.config.data_dir), chat_model=self.config.chat_model)

    async def close(self) -> None:
        if not self._connected:
            return

        self.expansion_cache.clear()
        await self.index.close()
        await self.messages.close()
        await llm_router.close()
        self._connected = False


_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    global _runtime
    if _runtime is None:
        _runtime = Runtime()
    return _runtime


async def get_runtime_async() -> Runtime:
    runtime = get_runtime()
    await runtime.connect()
    return runtime


async def reset_runtime() -> None:
    global _runtime
    if _runtime is not None:
        await _runtime.close()
        _runtime = None
