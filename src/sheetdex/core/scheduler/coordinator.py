import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Sequence, Tuple, TypeVar

T = TypeVar("T")


@dataclass
class BatchOutcome(Generic[T]):
    success: int = 0
    failed: int = 0
    failures: List[Tuple[T, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success + self.failed


class BatchCoordinator:
    """
    Runs a handler over items in fixed-size batches.

    Every task of a batch is awaited before the next batch starts. A handler
    returning ``False`` or raising is counted as a failure and logged; it does
    not cancel its siblings or stop later batches.
    """

    def __init__(self, max_concurrent: int = 4, logger=None):
        self.max_concurrent = max(1, int(max_concurrent))
        self.logger = logger or logging.getLogger("sheetdex.coordinator")

    def batches(self, items: Sequence[T]) -> List[Sequence[T]]:
        size = self.max_concurrent
        return [items[i:i + size] for i in range(0, len(items), size)]

    async def run(self, items: Sequence[T], handler: Callable[[T], Awaitable[bool]]) -> BatchOutcome[T]:
        outcome: BatchOutcome[T] = BatchOutcome()
        items = list(items)
        for index, batch in enumerate(self.batches(items), start=1):
            self.logger.debug("Dispatching batch %d (%d item(s))", index, len(batch))
            tasks = [asyncio.create_task(handler(item)) for item in batch]
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for item, result in zip(batch, results):
                if result is True:
                    outcome.success += 1
                    continue
                outcome.failed += 1
                if isinstance(result, BaseException):
                    reason = f"{type(result).__name__}: {result}"
                    self.logger.error("Task failed for %s: %s", item, reason)
                else:
                    reason = "handler reported failure"
                    self.logger.warning("Task reported failure for %s", item)
                outcome.failures.append((item, reason))
        return outcome
