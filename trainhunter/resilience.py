"""Retry and timeout wrappers.

Two retry policies with different failure semantics live here:

* ``with_retry`` guards a whole operation (e.g. a complete multi-date search). Delays grow
  exponentially and exhaustion raises ``NetworkError``.
* ``with_item_retry`` guards one work item inside a batch. Delays are constant and
  exhaustion is reported as a ``Failed`` value so sibling items keep running.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from .errors import NetworkError, ValidationError
from .models import Failed, ItemResult, Ok

R = TypeVar("R")


async def with_retry(operation: Callable[[], Awaitable[R]], max_attempts: int = 3, base_delay: float = 1.0,
                     context: str = "operation") -> R:
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except ValidationError:
            raise
        except Exception as error:  # noqa: BLE001
            if attempt == max_attempts:
                raise NetworkError(f"{context} failed after {max_attempts} attempts: {error}", error) from error
            delay = base_delay * 2 ** (attempt - 1)
            logging.warning("%s failed (attempt %d/%d). Retrying in %.1fs: %s",
                            context, attempt, max_attempts, delay, error)
            await asyncio.sleep(delay)
    raise ValueError("max_attempts must be at least 1")


async def with_item_retry(operation: Callable[[], Awaitable[R]], item_label: Any, max_attempts: int = 2,
                          delay: float = 2.0) -> ItemResult:
    reason = "no attempts made"
    for attempt in range(1, max_attempts + 1):
        try:
            return Ok(await operation())
        except Exception as error:  # noqa: BLE001
            reason = str(error) or type(error).__name__
            if attempt == max_attempts:
                logging.warning("Search for %s failed after %d attempts: %s", item_label, max_attempts, reason)
                break
            logging.debug("Search for %s failed (attempt %d/%d). Retrying in %.1fs: %s",
                          item_label, attempt, max_attempts, delay, reason)
            await asyncio.sleep(delay)
    return Failed(reason)


def _discard_outcome(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    if (error := task.exception()) is not None:
        logging.debug("Abandoned operation finished with %r after its timeout", error)


async def with_timeout(awaitable: Awaitable[R], timeout: float, context: str = "operation") -> R:
    """Wait at most ``timeout`` seconds for ``awaitable``.

    The underlying task is left running when the deadline passes; whatever it produces
    afterwards is dropped.
    """
    task = asyncio.ensure_future(awaitable)
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return task.result()
    task.add_done_callback(_discard_outcome)
    raise NetworkError(f"{context} timed out after {timeout:g}s")
