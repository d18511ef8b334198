# =============================================================================
# core/retry.py  —  Bounded Retry for Transient Notion / Network Failures
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   with_retry() runs one async operation up to `max_attempts` times.  It
#   only retries failures that are worth retrying:
#
#     RATE LIMITED   code "rate_limited" or HTTP status 429.
#                    Wait = Retry-After header (seconds) if usable,
#                    else base_delay_ms * attempt.
#     NETWORK        low-level code ECONNREFUSED / ENOTFOUND / ETIMEDOUT.
#                    Wait = base_delay_ms * attempt.
#     ANYTHING ELSE  raised immediately, zero retries.
#
#   Backoff is linear in the attempt number, with no jitter.  The wait is an
#   asyncio.sleep(), so other in-flight tool calls keep running.
#
# NO THIRD-PARTY IMPORTS:
#   Errors are classified by duck-typed attributes (`code`, `status`,
#   `headers`) and by the standard OSError family, so the Notion SDK's
#   APIResponseError and httpx's wrapped socket errors are both understood
#   without importing either library here.
# =============================================================================

import asyncio
import errno
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMITED_CODE = "rate_limited"
TOO_MANY_REQUESTS = 429

NETWORK_ERROR_CODES = frozenset({"ECONNREFUSED", "ENOTFOUND", "ETIMEDOUT"})

# The Notion SDK raises RequestTimeoutError with this code.
_CLIENT_TIMEOUT_CODE = "notionhq_client_request_timeout"


class RetryDecision(Enum):
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"


@dataclass
class RetryAttempt:
    """State of one with_retry() call.  Discarded when the call returns."""

    number: int = 1
    last_error: BaseException | None = None
    wait_ms: float = 0


def _low_level_code(error: BaseException) -> str | None:
    """Map an exception to an errno-style code, searching everything it wraps.

    httpcore re-raises with ``from None``, so the socket error is often only
    reachable through ``__context__``.  anyio reports multi-address connect
    failures as an OSError caused by an ExceptionGroup of per-address errors.
    """
    seen: set[int] = set()
    pending: list[BaseException] = [error]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))

        code = getattr(current, "code", None)
        if code == _CLIENT_TIMEOUT_CODE:
            return "ETIMEDOUT"
        if isinstance(code, str) and code in NETWORK_ERROR_CODES:
            return code

        if isinstance(current, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(current, OSError) and current.errno is not None:
            name = errno.errorcode.get(current.errno)
            if name in NETWORK_ERROR_CODES:
                return name
        if isinstance(current, TimeoutError):
            return "ETIMEDOUT"

        if isinstance(current, BaseExceptionGroup):
            pending.extend(current.exceptions)
        pending.extend(e for e in (current.__context__, current.__cause__) if e is not None)
    return None


def _is_rate_limited(error: BaseException) -> bool:
    code = getattr(error, "code", None)
    return code == RATE_LIMITED_CODE or getattr(error, "status", None) == TOO_MANY_REQUESTS


def classify_error(error: BaseException) -> RetryDecision | None:
    """Return why ``error`` is retryable, or ``None`` if it is not."""
    if _is_rate_limited(error):
        return RetryDecision.RATE_LIMITED
    if _low_level_code(error) is not None:
        return RetryDecision.NETWORK
    return None


def _retry_after_ms(error: BaseException) -> float | None:
    headers = getattr(error, "headers", None)
    if not headers:
        return None
    raw = headers.get("retry-after") or headers.get("Retry-After")
    try:
        seconds = int(raw)
    except (TypeError, ValueError):
        return None
    return seconds * 1000 if seconds > 0 else None


def retry_delay_ms(error: BaseException, attempt: int, base_delay_ms: float) -> float:
    """Wait before the next attempt after ``error`` on attempt ``attempt``."""
    if classify_error(error) is RetryDecision.RATE_LIMITED:
        hinted = _retry_after_ms(error)
        if hinted is not None:
            return hinted
    return base_delay_ms * attempt


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay_ms: float = 1000,
) -> T:
    """Await ``operation()``, retrying rate-limit and network failures.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per call,
            e.g. ``lambda: notion.pages.retrieve(page_id=page_id)``.
        max_attempts: Total attempts, including the first.
        base_delay_ms: Linear backoff unit in milliseconds.

    Returns:
        Whatever the operation returns on its first successful attempt.

    Raises:
        The most recent error, once a non-retryable error occurs or the
        attempts are exhausted.
    """
    state = RetryAttempt()
    while True:
        try:
            return await operation()
        except Exception as error:
            state.last_error = error
            if classify_error(error) is None or state.number >= max_attempts:
                raise

            state.wait_ms = retry_delay_ms(error, state.number, base_delay_ms)
            logger.warning(
                "[Retry] Attempt %d/%d failed (%s), retrying in %.0fms",
                state.number, max_attempts, _describe(error), state.wait_ms,
            )
            await asyncio.sleep(state.wait_ms / 1000)
            state.number += 1


def _describe(error: Any) -> str:
    code = getattr(error, "code", None) or getattr(error, "status", None)
    return f"{type(error).__name__}: {code}" if code else type(error).__name__
