"""Bounded retry for file operations that can fail transiently."""
from __future__ import annotations

import errno
import logging
import time
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Windows sharing and lock violations surface as PermissionError.
_WINDOWS_LOCK_ERRORS = {32, 33}
_PERMANENT_OS_ERRORS = (FileNotFoundError, IsADirectoryError, NotADirectoryError)
# Errnos that no amount of waiting will clear.
_PERMANENT_ERRNOS = {errno.ENAMETOOLONG, errno.ENOSPC, errno.EROFS, errno.EINVAL}


class RetryExhaustedError(OSError):
    """Raised when a transient I/O failure persists through every attempt."""

    def __init__(self, context: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{context} failed after {attempts} attempt(s): {last_error}")
        self.context = context
        self.attempts = attempts
        self.last_error = last_error


def is_transient_io_error(exc: BaseException) -> bool:
    """Return True for I/O failures expected to clear after a short wait (locks, busy files)."""
    if not isinstance(exc, OSError) or isinstance(exc, RetryExhaustedError):
        return False
    if isinstance(exc, _PERMANENT_OS_ERRORS):
        return False
    if exc.errno in _PERMANENT_ERRNOS:
        return False
    if isinstance(exc, PermissionError):
        return getattr(exc, "winerror", None) in _WINDOWS_LOCK_ERRORS
    return True


def retry_call(
    fn: Callable[[], T],
    *,
    attempts: int,
    delay: float,
    context: str = "operation",
    should_retry: Callable[[BaseException], bool] = is_transient_io_error,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
) -> T:
    """
    Call ``fn`` up to ``attempts`` times, sleeping ``delay`` seconds between tries.

    Errors rejected by ``should_retry`` propagate immediately. When the budget runs
    out the last transient error is wrapped in :class:`RetryExhaustedError`
    (itself an ``OSError``), chained to the original via ``__cause__``.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if not should_retry(exc):
                raise
            if attempt >= attempts:
                raise RetryExhaustedError(context, attempts, exc) from exc
            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.2fs",
                context,
                attempt,
                attempts,
                exc,
                delay,
            )
            if on_retry:
                on_retry(attempt, exc)
            sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
