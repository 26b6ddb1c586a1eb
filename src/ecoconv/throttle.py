"""Rate-limited execution of per-item external calls."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
import logging
import time
from typing import Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class TaskOutcome(Generic[T, R]):
    """Result of one item: either ``value`` or the captured ``error``."""

    index: int
    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ThrottledRunner:
    """Run a callable over items with a fixed delay between call starts.

    One failing item never aborts the sequence; its exception is kept on the
    outcome. With ``max_concurrency`` above one, calls overlap but their starts
    stay ``interval_seconds`` apart.
    """

    def __init__(
        self,
        interval_seconds: float,
        *,
        max_concurrency: int = 1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds cannot be negative")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._interval_seconds = interval_seconds
        self._max_concurrency = max_concurrency
        self._sleep = sleep

    def run(self, items: Sequence[T], func: Callable[[T], R]) -> list[TaskOutcome[T, R]]:
        if self._max_concurrency == 1:
            return self._run_sequential(items, func)
        return self._run_pooled(items, func)

    def _pause(self, index: int) -> None:
        if index > 0 and self._interval_seconds > 0:
            self._sleep(self._interval_seconds)

    def _run_sequential(self, items: Sequence[T], func: Callable[[T], R]) -> list[TaskOutcome[T, R]]:
        outcomes: list[TaskOutcome[T, R]] = []
        for index, item in enumerate(items):
            self._pause(index)
            outcomes.append(_call(index, item, func))
        return outcomes

    def _run_pooled(self, items: Sequence[T], func: Callable[[T], R]) -> list[TaskOutcome[T, R]]:
        futures: list[Future[TaskOutcome[T, R]]] = []
        with ThreadPoolExecutor(max_workers=self._max_concurrency) as executor:
            for index, item in enumerate(items):
                self._pause(index)
                futures.append(executor.submit(_call, index, item, func))
        return [future.result() for future in futures]


def _call(index: int, item: T, func: Callable[[T], R]) -> TaskOutcome[T, R]:
    try:
        return TaskOutcome(index=index, item=item, value=func(item))
    except Exception as exc:
        logger.warning("Item %d failed: %s", index, exc)
        return TaskOutcome(index=index, item=item, error=exc)
