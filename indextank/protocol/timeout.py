"""
Protocol - Timeout Wrapper

Races an in-flight request against a caller-supplied deadline.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from indextank.errors import InvalidArgumentError, SearchTimeoutError


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_late_outcome(task: "asyncio.Task") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Discarding failure of timed-out request: {exc!r}")
    else:
        logger.debug("Discarding result of timed-out request")


async def run_with_timeout(
    factory: Callable[[], Awaitable[T]],
    timeout_ms: float,
) -> T:
    """
    Await ``factory()`` for at most ``timeout_ms`` milliseconds.

    On expiry the request task is cancelled and detached: the caller gets a
    SearchTimeoutError straight away and any late result or error is
    discarded.

    Args:
        factory: Zero-argument callable returning the awaitable to run
        timeout_ms: Deadline in milliseconds, must be positive

    Returns:
        The awaitable's result
    """
    if timeout_ms is None or timeout_ms <= 0:
        raise InvalidArgumentError("Timeout is less than or equal to zero.")

    task = asyncio.ensure_future(factory())
    done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_discard_late_outcome)
    logger.warning(f"Request exceeded the {timeout_ms} ms timeout")
    raise SearchTimeoutError(f"The specified timeout of {timeout_ms} ms was exceeded.")
