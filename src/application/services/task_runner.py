"""In-process background execution of verification runs."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from src.commons.telemetry import get_logger

PipelineRun = Callable[[str], Awaitable[Any]]


class IngestionTaskRunner:
    """Schedules one verification task per upload on the running event loop.

    Keeps a strong reference to every task until it finishes, so tasks are
    not garbage collected mid-flight, and refuses to start a second task
    for an upload that already has one.
    """

    def __init__(self, run: PipelineRun) -> None:
        """Initialize the runner.

        Args:
            run: Coroutine function verifying one upload by id.
        """
        self._run = run
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self._closed = False
        self._logger = get_logger(__name__)

    @property
    def active_ids(self) -> list[str]:
        """Ids of uploads with a task in flight."""
        return list(self._tasks)

    def is_running(self, upload_id: str) -> bool:
        """Whether a task for the upload is in flight."""
        return upload_id in self._tasks

    def submit(self, upload_id: str) -> bool:
        """Start verifying an upload in the background.

        Returns:
            True if a task was started, False if one was already running or
            the runner is shut down.
        """
        if self._closed:
            self._logger.warning(
                "Runner is shut down, not scheduling", extra={"upload_id": upload_id}
            )
            return False
        if upload_id in self._tasks:
            self._logger.debug(
                "Verification already running", extra={"upload_id": upload_id}
            )
            return False

        task = asyncio.create_task(self._run(upload_id), name=f"verify-{upload_id}")
        self._tasks[upload_id] = task
        task.add_done_callback(lambda t: self._on_done(upload_id, t))
        return True

    def _on_done(self, upload_id: str, task: asyncio.Task[Any]) -> None:
        self._tasks.pop(upload_id, None)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error(
                "Verification task failed",
                exc_info=error,
                extra={"upload_id": upload_id},
            )

    async def wait_idle(self) -> None:
        """Wait until every in-flight task has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight tasks and wait for them to unwind."""
        self._closed = True
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            self._logger.info("Cancelled verification tasks", extra={"count": len(tasks)})
        self._tasks.clear()
