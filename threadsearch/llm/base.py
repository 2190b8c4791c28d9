from abc import ABC, abstractmethod

from threadsearch.llm.retry import with_retry


class CompletionClient(ABC):
    """Plain-text chat completion. Used for query rephrasing and answer synthesis."""

    @abstractmethod
    async def _completion(
        self,
        messages: list[dict],
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str: ...

    async def completion(
        self,
        messages: list[dict],
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        return await with_retry(
            "completion",
            model,
            self._completion,
            messages=messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @abstractmethod
    async def close(self) -> None: ...


class EmbeddingClient(ABC):
    """Batch text embedding for the message index."""

    @abstractmethod
    async def _embedding(self, texts: list[str], model: str) -> list[list[float]]: ...

    async def embedding(self, texts: list[str], model: str) -> list[list[float]]:
        return await with_retry("embedding", model, self._embedding, texts=texts, model=model)

    @abstractmethod
    async def close(self) -> None: ...
