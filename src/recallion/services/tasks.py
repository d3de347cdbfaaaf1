"""Background enrichment dispatch."""

import asyncio

from recallion.core.logging import get_logger
from recallion.domain.models import EnrichmentResult
from recallion.services.enrichment import EnrichmentPipeline

logger = get_logger(__name__)


class EnrichmentTaskQueue:
    """Single-flight enrichment per memory id.

    At most one pipeline run per id is in flight. Any number of submits
    arriving during a run collapse into exactly one follow-up run, which
    sees whatever content the record holds by then. Failures are logged
    and never propagate to the submitter.

    ``run_now`` takes the same per-id slot for a run awaited by the caller,
    so inline and background runs for one memory never overlap.
    """

    def __init__(self, pipeline: EnrichmentPipeline):
        self.pipeline = pipeline
        self._tasks: dict[str, asyncio.Future[None]] = {}
        self._rerun: dict[str, str] = {}

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def is_running(self, memory_id: str) -> bool:
        return memory_id in self._tasks

    def submit(self, memory_id: str, owner_id: str) -> None:
        if memory_id in self._tasks:
            self._rerun[memory_id] = owner_id
            logger.debug("Enrichment already running; re-run queued", memory_id=memory_id)
            return
        self._tasks[memory_id] = asyncio.create_task(
            self._run(memory_id, owner_id), name=f"enrich-{memory_id}"
        )

    async def run_now(self, memory_id: str, owner_id: str) -> EnrichmentResult:
        """Run enrichment in the caller once any in-flight run for the id is done.

        Pipeline errors propagate. Submits arriving during the run coalesce
        into one background re-run afterwards.
        """
        while (current := self._tasks.get(memory_id)) is not None:
            await asyncio.wait([current])

        slot: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._tasks[memory_id] = slot
        try:
            return await self.pipeline.run(memory_id, owner_id)
        finally:
            if self._tasks.get(memory_id) is slot:
                del self._tasks[memory_id]
            if not slot.done():
                slot.set_result(None)
            next_owner = self._rerun.pop(memory_id, None)
            if next_owner is not None:
                self.submit(memory_id, next_owner)

    async def _run(self, memory_id: str, owner_id: str) -> None:
        try:
            while True:
                try:
                    await self.pipeline.run(memory_id, owner_id)
                except Exception as e:
                    logger.warning("Background enrichment failed", memory_id=memory_id, error=str(e))
                next_owner = self._rerun.pop(memory_id, None)
                if next_owner is None:
                    return
                owner_id = next_owner
        finally:
            self._tasks.pop(memory_id, None)

    async def drain(self) -> None:
        """Wait until no enrichment is in flight, including queued re-runs."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def aclose(self, timeout: float = 10.0) -> None:
        """Give in-flight work ``timeout`` seconds to finish, then cancel the rest."""
        try:
            await asyncio.wait_for(self.drain(), timeout)
        except TimeoutError:
            logger.warning("Enrichment still running at shutdown; cancelling", in_flight=self.in_flight)
        tasks = list(self._tasks.values())
        self._rerun.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
