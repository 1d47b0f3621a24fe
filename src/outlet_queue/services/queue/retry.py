"""Optimistic-concurrency retry loop."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from ...errors import WriteConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_conflict(
    operation: Callable[[], T],
    *,
    max_retries: int,
    backoff_seconds: float,
    description: str,
) -> T:
    """Run ``operation`` again from a fresh read whenever a write conflicts.

    Once ``max_retries`` is exhausted the ``WriteConflict`` propagates, which
    callers see as a retryable ``RepositoryError``.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except WriteConflict as exc:
            attempt += 1
            if attempt > max_retries:
                logger.warning(f"Giving up on {description} after {max_retries} retries: {exc}")
                raise
            wait_time = backoff_seconds * (2 ** (attempt - 1))
            logger.warning(
                f"Write conflict during {description}, retrying in {wait_time:.2f}s "
                f"(attempt {attempt}/{max_retries}): {exc}"
            )
            time.sleep(wait_time)
