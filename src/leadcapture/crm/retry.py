"""Bounded retry with exponential backoff for outbound CRM calls.

Built on tenacity's AsyncRetrying so the policy (attempts, backoff base,
sleep function) can be chosen per call instead of fixed in a decorator.
Conflict (409) and bad-request (400) failures are raised immediately.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.leadcapture.core.monitoring import crm_retries_total
from src.leadcapture.crm.errors import is_non_retryable

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # seconds


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, Exception) and not is_non_retryable(exc)


def _log_retry(operation_name: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        crm_retries_total.inc()
        logger.warning(
            "crm.retry_attempt",
            operation=operation_name,
            attempt=retry_state.attempt_number,
            max_attempts=max_attempts,
            delay_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(exc),
        )

    return before_sleep


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    operation_name: str = "crm_operation",
) -> T:
    """Run ``operation`` up to ``max_attempts`` times.

    The delay after failed attempt n is ``base_delay * 2 ** (n - 1)``
    (1s, 2s, 4s for the defaults). Nothing is slept after the final attempt.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        max_attempts: Upper bound on calls to ``operation``.
        base_delay: Delay in seconds after the first failed attempt.
        sleep: Awaitable sleep function (injected in tests).
        operation_name: Label used in log events.

    Returns:
        The first successful result of ``operation``.

    Raises:
        The last exception raised by ``operation``, unchanged.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        retry=retry_if_exception(_is_retryable),
        before_sleep=_log_retry(operation_name, max_attempts),
        sleep=sleep,
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                return await operation()
    except Exception as exc:
        if not is_non_retryable(exc):
            logger.error(
                "crm.retry_exhausted",
                operation=operation_name,
                max_attempts=max_attempts,
                error=str(exc),
            )
        raise

    raise RuntimeError("retry loop ended without a result")  # pragma: no cover
