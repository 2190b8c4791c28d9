import openai

from threadsearch.llm.base import CompletionClient, EmbeddingClient


class OpenAIClient(CompletionClient, EmbeddingClient):
    def __init__(self, base_url: str | None = None, api_key: str | None = None):
        self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _completion(
        self,
        messages: list[dict],
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        request: dict = {"model": model, "messages": messages}

        optional = {
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        }
        request.update({k: v for k, v in optional.items() if v is not None})

        response = await self._client.chat.completions.create(**request)
        return response.choices[0].message.content or ""

    async def _embedding(self, texts: list[str], model: str) -> list[list[float]]:
        response = await self._client.embeddings.create(
            model=model,
            input=texts,
        )
        sorted_data = sorted(response.data, key=lambda x: x.index)
        return [item.embedding for item in sorted_data]

    async def close(self) -> None:
        await self._client.close()
