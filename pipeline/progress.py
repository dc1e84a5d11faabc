"""Run log, progress events and cooperative cancellation."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from schemas import ProgressEvent
from schemas.pipeline import ProgressStatus

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressEmitter:
    """Owns the append-only run log and emits snapshots of it.

    `found` never goes backwards across a run, even if a caller reports a
    smaller number.
    """

    def __init__(
        self,
        target: int,
        on_progress: Optional[ProgressCallback] = None,
        logs: Optional[List[str]] = None,
    ):
        self.target = target
        self.logs: List[str] = logs if logs is not None else []
        self._on_progress = on_progress
        self._found = 0

    def log(self, message: str) -> None:
        self.logs.append(message)
        logger.info(message)

    def extend(self, messages: List[str]) -> None:
        for message in messages:
            self.log(message)

    def emit(self, tier: str, status: ProgressStatus, current_source: str, found: int) -> None:
        self._found = max(self._found, found)
        if self._on_progress is None:
            return
        event = ProgressEvent(
            tier=tier,
            status=status,
            found=self._found,
            target=self.target,
            current_source=current_source,
            logs=list(self.logs),
        )
        try:
            self._on_progress(event)
        except Exception:
            logger.warning("Progress callback raised; continuing run", exc_info=True)


class RunCancelled(Exception):
    """The caller set the run's cancel event."""


async def await_or_cancel(aw: Awaitable[Any], cancel_event: Optional[asyncio.Event]) -> Any:
    """Await `aw`, abandoning it as soon as `cancel_event` is set.

    Raises:
        RunCancelled: the event was set before `aw` finished.
    """
    if cancel_event is None:
        return await aw
    if cancel_event.is_set():
        if asyncio.iscoroutine(aw):
            aw.close()
        else:
            await _cancel_and_wait(asyncio.ensure_future(aw))
        raise RunCancelled()

    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()
    if task.done():
        return task.result()
    await _cancel_and_wait(task)
    raise RunCancelled()


async def _cancel_and_wait(future: "asyncio.Future[Any]") -> None:
    # Abandoned calls finish unwinding before the run moves on.
    future.cancel()
    await asyncio.wait({future})
