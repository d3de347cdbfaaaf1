"""Tests for the single-flight enrichment queue."""

import asyncio

import pytest

from recallion.core.errors import UpstreamError
from recallion.services.tasks import EnrichmentTaskQueue


class GatedPipeline:
    """Pipeline double whose runs block until released."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def run(self, memory_id: str, owner_id: str) -> None:
        self.calls.append((memory_id, owner_id))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            await self.release.wait()
            if self.fail:
                raise UpstreamError("boom")
        finally:
            self.active -= 1


class TestEnrichmentTaskQueue:
    """Tests for EnrichmentTaskQueue."""

    async def test_single_submit_runs_once(self) -> None:
        """Should run the pipeline once per submit when idle."""
        pipeline = GatedPipeline()
        queue = EnrichmentTaskQueue(pipeline)
        pipeline.release.set()

        queue.submit("m1", "owner")
        await queue.drain()

        assert pipeline.calls == [("m1", "owner")]
        assert queue.in_flight == 0

    async def test_submits_during_run_coalesce_into_one_rerun(self) -> None:
        """Should produce exactly two runs, never concurrently, for overlapping submits."""
        pipeline = GatedPipeline()
        queue = EnrichmentTaskQueue(pipeline)

        queue.submit("m1", "owner")
        await pipeline.started.wait()
        queue.submit("m1", "owner")
        queue.submit("m1", "owner")
        assert queue.is_running("m1")

        pipeline.release.set()
        await queue.drain()

        assert len(pipeline.calls) == 2
        assert pipeline.max_active == 1

    async def test_different_ids_run_independently(self) -> None:
        """Should allow concurrent runs for different memories."""
        pipeline = GatedPipeline()
        queue = EnrichmentTaskQueue(pipeline)

        queue.submit("m1", "owner")
        queue.submit("m2", "owner")
        await asyncio.sleep(0)
        assert queue.in_flight == 2

        pipeline.release.set()
        await queue.drain()
        assert sorted(call[0] for call in pipeline.calls) == ["m1", "m2"]

    async def test_failures_are_not_raised_to_submitter(self) -> None:
        """Should log pipeline failures and finish cleanly."""
        pipeline = GatedPipeline(fail=True)
        queue = EnrichmentTaskQueue(pipeline)
        pipeline.release.set()

        queue.submit("m1", "owner")
        await queue.drain()

        assert pipeline.calls == [("m1", "owner")]
        assert queue.in_flight == 0

    async def test_aclose_cancels_stuck_work(self) -> None:
        """Should cancel runs that outlive the shutdown grace period."""
        pipeline = GatedPipeline()
        queue = EnrichmentTaskQueue(pipeline)

        queue.submit("m1", "owner")
        await pipeline.started.wait()
        await queue.aclose(timeout=0.01)

        assert queue.in_flight == 0
        assert pipeline.active == 0

    async def test_inline_run_waits_for_background_run(self) -> None:
        """Should start the inline run only after the background run for the id ends."""
        pipeline = GatedPipeline()
        queue = EnrichmentTaskQueue(pipeline)

        queue.submit("m1", "owner")
        await pipeline.started.wait()
        inline = asyncio.create_task(queue.run_now("m1", "owner"))
        await asyncio.sleep(0)
        assert len(pipeline.calls) == 1

        pipeline.release.set()
        await inline
        await queue.drain()

        assert len(pipeline.calls) == 2
        assert pipeline.max_active == 1

    async def test_submits_during_inline_run_coalesce(self) -> None:
        """Should hold background submits until the inline run finishes, then run once."""
        pipeline = GatedPipeline()
        queue = EnrichmentTaskQueue(pipeline)

        inline = asyncio.create_task(queue.run_now("m1", "owner"))
        await pipeline.started.wait()
        queue.submit("m1", "owner")
        queue.submit("m1", "owner")
        assert len(pipeline.calls) == 1

        pipeline.release.set()
        await inline
        await queue.drain()

        assert len(pipeline.calls) == 2
        assert pipeline.max_active == 1
        assert queue.in_flight == 0

    async def test_inline_run_raises_pipeline_errors(self) -> None:
        """Should surface failures to the caller and free the slot."""
        pipeline = GatedPipeline(fail=True)
        queue = EnrichmentTaskQueue(pipeline)
        pipeline.release.set()

        with pytest.raises(UpstreamError):
            await queue.run_now("m1", "owner")

        assert queue.in_flight == 0
