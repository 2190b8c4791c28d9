import anthropic

from threadsearch.llm.base import CompletionClient
from threadsearch.llm.models import get_model


class AnthropicClient(CompletionClient):
    def __init__(self, api_key: str | None = None):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)

    async def _completion(
        self,
        messages: list[dict],
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        if max_tokens is None:
            max_tokens = get_model(model).max_output_tokens

        system, api_messages = self._split_system(messages)

        request: dict = {"model": model, "messages": api_messages, "max_tokens": max_tokens}
        if system:
            request["system"] = system
        if temperature is not None:
            request["temperature"] = temperature

        response = await self._client.messages.create(**request)
        return "".join(block.text for block in response.content if block.type == "text")

    async def close(self) -> None:
        await self._client.close()

    @staticmethod
    def _split_system(messages: list[dict]) -> tuple[str | None, list[dict]]:
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        rest = [m for m in messages if m["role"] != "system"]
        return ("\n\n".join(system_parts) or None), rest
