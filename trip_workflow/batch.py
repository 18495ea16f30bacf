"""
Best-effort batch of independent async tasks.

Tasks run concurrently; one failing never cancels or undoes the others. The
report records every outcome so partial failure stays observable.
"""
import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple
from pydantic import BaseModel
import logging

logger = logging.getLogger(__name__)

# (label, coroutine factory)
BatchTask = Tuple[str, Callable[[], Awaitable[object]]]


class TaskOutcome(BaseModel):
    label: str
    succeeded: bool = False
    skipped: bool = False
    error: Optional[str] = None


class BatchReport(BaseModel):
    outcomes: List[TaskOutcome] = []

    @property
    def succeeded(self) -> List[TaskOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def skipped(self) -> List[TaskOutcome]:
        return [o for o in self.outcomes if o.skipped]

    @property
    def failed(self) -> List[TaskOutcome]:
        return [o for o in self.outcomes if not o.succeeded and not o.skipped]

    @property
    def complete(self) -> bool:
        return not self.failed


async def _run_one(
    label: str,
    factory: Callable[[], Awaitable[object]],
    is_skip: Optional[Callable[[Exception], bool]],
) -> TaskOutcome:
    try:
        await factory()
        return TaskOutcome(label=label, succeeded=True)
    except Exception as e:
        if is_skip is not None and is_skip(e):
            logger.info(f"{label}: skipped ({e})")
            return TaskOutcome(label=label, skipped=True, error=str(e))
        logger.error(f"{label}: failed ({e})")
        return TaskOutcome(label=label, error=str(e))


async def run_best_effort(
    tasks: Sequence[BatchTask],
    is_skip: Optional[Callable[[Exception], bool]] = None,
) -> BatchReport:
    """Run every task concurrently and collect one outcome per task, in order"""
    outcomes = await asyncio.gather(*(_run_one(label, factory, is_skip) for label, factory in tasks))
    return BatchReport(outcomes=list(outcomes))
