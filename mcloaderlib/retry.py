from __future__ import annotations

from typing import Callable, TypeVar
import logging
import threading
import time

from .exceptions import InstallCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retries(
    func: Callable[[], T],
    *,
    attempts: int,
    backoff_seconds: float,
    retry_on: tuple[type[BaseException], ...],
    description: str,
    retry_if: Callable[[BaseException], bool] | None = None,
    cancel_event: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func`` until it succeeds, backing off 1x, 2x, 4x ... between tries.

    The last matching exception is re-raised once ``attempts`` is exhausted.
    """
    for attempt in range(1, attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise InstallCancelled(f"Cancelled before {description}.")
        try:
            return func()
        except retry_on as exc:
            if attempt == attempts or (retry_if is not None and not retry_if(exc)):
                raise
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                description,
                attempt,
                attempts,
                exc,
                delay,
            )
            if cancel_event is not None:
                if cancel_event.wait(delay):
                    raise InstallCancelled(f"Cancelled while retrying {description}.") from exc
            else:
                sleep(delay)
    raise AssertionError("unreachable")


def is_transient(exc: BaseException) -> bool:
    """Client errors other than timeouts and rate limits will not fix themselves."""
    status = getattr(exc, "context", {}).get("status")
    if status is None:
        return True
    return status >= 500 or status in (408, 429)
