from collections.abc import Awaitable, Callable

from anthropic import APIConnectionError as AnthropicConnectionError
from anthropic import APIStatusError as AnthropicStatusError
from openai import APIConnectionError as OpenAIConnectionError
from openai import APIStatusError as OpenAIStatusError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from threadsearch.constants import LLM_RETRY_ATTEMPTS
from threadsearch.logging import get_logger

_logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})

_WAIT = wait_exponential_jitter(initial=0.5, max=8, jitter=2)


def is_retryable(exc: BaseException) -> bool:
    # connection errors cover timeouts on both SDKs
    if isinstance(exc, AnthropicConnectionError | OpenAIConnectionError):
        return True
    if isinstance(exc, AnthropicStatusError | OpenAIStatusError):
        return exc.status_code in RETRYABLE_STATUS_CODES or exc.status_code >= 500
    return False


def _log_retry(operation: str, model: str):
    def log(retry_state) -> None:
        _logger.warning(
            "LLM call failed, retrying",
            operation=operation,
            model=model,
            attempt=retry_state.attempt_number,
            max_attempts=LLM_RETRY_ATTEMPTS,
            error=str(retry_state.outcome.exception()),
        )

    return log


async def with_retry(operation: str, model: str, fn: Callable[..., Awaitable], /, **kwargs):
    """Run one provider call, retrying transient failures. `operation` and `model` label the logs."""
    async for attempt in AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(LLM_RETRY_ATTEMPTS),
        wait=_WAIT,
        reraise=True,
        before_sleep=_log_retry(operation, model),
    ):
        with attempt:
            return await fn(**kwargs)
