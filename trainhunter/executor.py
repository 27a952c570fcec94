"""Bounded-concurrency batch execution of independent search units.

Items are split into consecutive slices of ``concurrency`` items. A slice runs
concurrently and must fully settle before the next one starts, so there are never more
than ``concurrency`` workers in flight. A short pause between slices keeps the load on
the remote provider down.
"""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, Sequence, TypeVar

from tqdm import tqdm

from .errors import ValidationError
from .models import Ok, SearchOutcome
from .resilience import with_item_retry

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[str, int | None], None]


async def run_in_batches(
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
        on_progress: ProgressCallback | None = None,
        concurrency: int = 3,
        animate: bool = False,
        *,
        batch_delay: float = 0.5,
        item_attempts: int = 2,
        item_retry_delay: float = 2.0,
        label: Callable[[T], str] = str,
        desc: str = "Searching dates",
) -> SearchOutcome[R]:
    if concurrency < 1:
        raise ValidationError(f"Concurrency must be at least 1, got {concurrency}", "concurrency")

    outcome: SearchOutcome[R] = SearchOutcome()
    total = len(items)
    total_batches = math.ceil(total / concurrency)
    completed = 0
    started = time.monotonic()
    bar = tqdm(total=total, desc=desc, unit="date", leave=False) if animate and total else None

    def report(message: str, count: int | None) -> None:
        if bar is not None:
            bar.set_postfix_str(message)
        if on_progress is not None:
            on_progress(message, count)

    async def run_item(item: T) -> None:
        nonlocal completed
        result = await with_item_retry(lambda: worker(item), label(item), item_attempts, item_retry_delay)
        completed += 1
        if isinstance(result, Ok):
            outcome.results.append(result.value)
        else:
            outcome.failures.append(item)
        if bar is not None:
            bar.update(1)
        report(f"{desc}...", completed)

    try:
        for batch_number, offset in enumerate(range(0, total, concurrency), start=1):
            batch = items[offset:offset + concurrency]
            report(f"Batch {batch_number}/{total_batches}", completed)
            await asyncio.gather(*(run_item(item) for item in batch))
            if offset + concurrency < total:
                await asyncio.sleep(batch_delay)
    finally:
        if bar is not None:
            bar.close()

    logging.debug("Batch run finished in %.1fs: %d successful, %d failed",
                  time.monotonic() - started, outcome.success_count, outcome.failure_count)
    return outcome
