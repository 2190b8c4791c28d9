from threadsearch.constants import SYNTHESIS_TEMPERATURE
from threadsearch.llm.prompts import ANSWER_SYSTEM_PROMPT
from threadsearch.llm.router import get_completion_client
from threadsearch.logging import get_logger

_logger = get_logger(__name__)


class LLMCompleter:
    """Shared LLM access for query rephrasing and answer synthesis.

    With `context`, the messages block goes first as its own user turn and the
    prompt follows, under a system prompt that pins the answer to the context.
    Without it the prompt is sent on its own.
    """

    def __init__(
        self,
        model: str,
        temperature: float = SYNTHESIS_TEMPERATURE,
        max_tokens: int | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_messages(self, prompt: str, context: str | None = None) -> list[dict]:
        if not context:
            return [{"role": "user", "content": prompt}]
        return [
            {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
            {"role": "user", "content": context},
            {"role": "user", "content": prompt},
        ]

    async def complete(self, prompt: str, context: str | None = None) -> str:
        client = get_completion_client(self.model)
        text = await client.completion(
            messages=self.build_messages(prompt, context),
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        _logger.debug("completion done", model=self.model, chars=len(text))
        return text.strip()
