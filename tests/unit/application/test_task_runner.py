"""Unit tests for the background task runner."""

import asyncio

from src.application.services.task_runner import IngestionTaskRunner


class TestIngestionTaskRunner:
    """Tests for scheduling verification runs."""

    async def test_submit_runs_in_background(self):
        seen: list[str] = []

        async def run(upload_id: str) -> None:
            seen.append(upload_id)

        runner = IngestionTaskRunner(run)

        assert runner.submit("upload-1") is True
        assert runner.is_running("upload-1")
        await runner.wait_idle()

        assert seen == ["upload-1"]
        assert runner.active_ids == []

    async def test_one_task_per_upload(self):
        gate = asyncio.Event()
        calls = 0

        async def run(upload_id: str) -> None:
            nonlocal calls
            calls += 1
            await gate.wait()

        runner = IngestionTaskRunner(run)

        assert runner.submit("upload-1") is True
        assert runner.submit("upload-1") is False
        assert runner.submit("upload-2") is True
        gate.set()
        await runner.wait_idle()

        assert calls == 2

    async def test_failed_task_is_dropped(self):
        async def run(upload_id: str) -> None:
            raise RuntimeError("pipeline bug")

        runner = IngestionTaskRunner(run)
        runner.submit("upload-1")
        await runner.wait_idle()

        assert runner.active_ids == []
        assert runner.submit("upload-1") is True
        await runner.wait_idle()

    async def test_shutdown_cancels_and_refuses_new_work(self):
        cancelled = asyncio.Event()

        async def run(upload_id: str) -> None:
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        runner = IngestionTaskRunner(run)
        runner.submit("upload-1")
        await asyncio.sleep(0)

        await runner.shutdown()

        assert cancelled.is_set()
        assert runner.active_ids == []
        assert runner.submit("upload-2") is False
