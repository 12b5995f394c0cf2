"""Tests for the periodic task runner."""
import asyncio

from indexing import PeriodicTask


class TestPeriodicTask:
    """Tests for PeriodicTask."""

    def test_runs_repeatedly(self):
        """Test that the job runs after the initial delay and then periodically."""
        calls = []
        task = PeriodicTask("job", lambda: calls.append(1), initial_delay=0, period=0.01)

        async def _run():
            task.start()
            for _ in range(200):
                if task.runs >= 3:
                    break
                await asyncio.sleep(0.01)
            await task.stop()

        asyncio.run(_run())
        assert len(calls) >= 3

    def test_exception_does_not_stop_schedule(self):
        """Test that a failing job is logged and rescheduled."""
        def _boom():
            raise RuntimeError("boom")

        task = PeriodicTask("failing", _boom, initial_delay=0, period=0.01)

        async def _run():
            task.start()
            for _ in range(200):
                if task.runs >= 2:
                    break
                await asyncio.sleep(0.01)
            await task.stop()

        asyncio.run(_run())
        assert task.runs >= 2

    def test_stop_before_start(self):
        """Test that stopping an unstarted task is a no-op."""
        task = PeriodicTask("idle", lambda: None, initial_delay=0, period=1)
        asyncio.run(task.stop())
        assert task.runs == 0
