"""Tests for the review pipeline."""

import pytest

from recallion.core.errors import MalformedResponseError, RateLimitError
from recallion.core.result import Failure
from recallion.services.review import NOTHING_TO_REVIEW, ReviewPipeline, review_line
from tests.fakes import FakeGateway, content, make_memory, tool_call


def reviews(*items: tuple[str, int, str]) -> dict:
    return {"reviews": [{"id": i, "newImportance": n, "reviewInsight": r} for i, n, r in items]}


class FailingUpdateStore:
    """Wraps a store, failing updates for chosen ids."""

    def __init__(self, inner, failing: set[str]):
        self.inner = inner
        self.failing = failing

    def __getattr__(self, name):
        return getattr(self.inner, name)

    async def update(self, memory_id, patch, owner_id):
        if memory_id in self.failing:
            raise RuntimeError("write timeout")
        return await self.inner.update(memory_id, patch, owner_id)


class TestReviewPipeline:
    """Tests for ReviewPipeline.run."""

    async def test_no_memories_skips_gateway(self, store, gateway, owner_a) -> None:
        """Should return immediately without calling the model."""
        outcome = await ReviewPipeline(store, gateway).run(owner_a)

        assert gateway.complete_calls == []
        assert outcome.reviewed == 0
        assert outcome.message == NOTHING_TO_REVIEW
        assert outcome.success

    async def test_updates_importance_and_insight_only(self, store, owner_a) -> None:
        """Should overwrite importance and insight and leave other fields alone."""
        memory = await store.insert(make_memory(owner_a, "old note", summary="kept", importance=3))
        gateway = FakeGateway(completions=[tool_call(reviews((memory.id, 12, "Still relevant.")), "review_memories")])

        outcome = await ReviewPipeline(store, gateway).run(owner_a)

        stored = await store.get(memory.id)
        assert stored.importance == 10
        assert stored.ai_insight == "Still relevant."
        assert stored.summary == "kept"
        assert outcome.updated_ids == [memory.id]
        assert outcome.reviewed == 1

    async def test_prompt_lines_and_tool(self, store, owner_a) -> None:
        """Should send one line per memory with the review tool."""
        memory = await store.insert(make_memory(owner_a, "x" * 300, importance=4))
        gateway = FakeGateway(completions=[tool_call(reviews(), "review_memories")])

        await ReviewPipeline(store, gateway).run(owner_a)

        messages, tool = gateway.complete_calls[0]
        assert tool["function"]["name"] == "review_memories"
        expected = review_line(1, memory, 200)
        assert expected in messages[-1]["content"]
        assert f"| Content: {'x' * 200} | Importance: 4/10 |" in expected

    async def test_batch_limited_to_newest(self, store, owner_a) -> None:
        """Should review only the newest batch_size memories."""
        for i in range(5):
            await store.insert(make_memory(owner_a, f"note {i}", minutes_ago=i))
        gateway = FakeGateway(completions=[tool_call(reviews(), "review_memories")])

        outcome = await ReviewPipeline(store, gateway, batch_size=3).run(owner_a)

        prompt = gateway.complete_calls[0][0][-1]["content"]
        assert outcome.reviewed == 3
        assert "note 0" in prompt
        assert "note 3" not in prompt

    async def test_zero_batch_size_is_respected(self, store, gateway, owner_a) -> None:
        """Should review nothing, rather than the default batch, when batch_size is 0."""
        await store.insert(make_memory(owner_a))

        outcome = await ReviewPipeline(store, gateway, batch_size=0).run(owner_a)

        assert outcome.message == NOTHING_TO_REVIEW
        assert gateway.complete_calls == []

    async def test_duplicate_ids_last_wins(self, store, owner_a) -> None:
        """Should apply the last occurrence of a repeated id."""
        memory = await store.insert(make_memory(owner_a))
        payload = reviews((memory.id, 2, "first"), (memory.id, 7, "second"))
        gateway = FakeGateway(completions=[tool_call(payload, "review_memories")])

        outcome = await ReviewPipeline(store, gateway).run(owner_a)

        stored = await store.get(memory.id)
        assert (stored.importance, stored.ai_insight) == (7, "second")
        assert outcome.updated_ids == [memory.id]

    async def test_unknown_and_foreign_ids_are_failures(self, store, owner_a, owner_b) -> None:
        """Should report ids that are absent or belong to someone else."""
        mine = await store.insert(make_memory(owner_a))
        theirs = await store.insert(make_memory(owner_b, importance=2))
        payload = reviews((mine.id, 5, "ok"), ("invented", 5, "?"), (theirs.id, 9, "nope"))
        gateway = FakeGateway(completions=[tool_call(payload, "review_memories")])

        outcome = await ReviewPipeline(store, gateway).run(owner_a)

        assert outcome.updated_ids == [mine.id]
        assert {f.id for f in outcome.failures} == {"invented", theirs.id}
        assert not outcome.success
        assert (await store.get(theirs.id)).importance == 2

    async def test_write_failures_are_collected(self, store, owner_a) -> None:
        """Should keep going after a failed write and report it."""
        first = await store.insert(make_memory(owner_a, "first"))
        second = await store.insert(make_memory(owner_a, "second"))
        payload = reviews((first.id, 4, "a"), (second.id, 6, "b"))
        gateway = FakeGateway(completions=[tool_call(payload, "review_memories")])

        outcome = await ReviewPipeline(FailingUpdateStore(store, {first.id}), gateway).run(owner_a)

        assert outcome.updated_ids == [second.id]
        assert outcome.failures[0].id == first.id
        assert "write timeout" in outcome.failures[0].reason

    @pytest.mark.parametrize(
        "text",
        [
            '[{"id": "ID", "new_importance": 8, "review_insight": "snake"}]',
            '{"reviews": [{"id": "ID", "newImportance": 8, "reviewInsight": "snake"}]}',
        ],
    )
    async def test_free_form_payloads(self, store, owner_a, text) -> None:
        """Should accept a bare array or a reviews object as free-form content."""
        memory = await store.insert(make_memory(owner_a))
        gateway = FakeGateway(completions=[content(text.replace("ID", memory.id))])

        outcome = await ReviewPipeline(store, gateway).run(owner_a)

        assert outcome.updated_ids == [memory.id]
        assert (await store.get(memory.id)).importance == 8

    async def test_gateway_failure_updates_nothing(self, store, owner_a) -> None:
        """Should surface the gateway error and leave every record alone."""
        memory = await store.insert(make_memory(owner_a, importance=3))
        gateway = FakeGateway(completions=[Failure(RateLimitError())])

        with pytest.raises(RateLimitError):
            await ReviewPipeline(store, gateway).run(owner_a)
        assert (await store.get(memory.id)).importance == 3

    async def test_malformed_payload_updates_nothing(self, store, owner_a) -> None:
        """Should raise MalformedResponseError for unusable review output."""
        await store.insert(make_memory(owner_a))
        gateway = FakeGateway(completions=[content("I reviewed them, all good!")])

        with pytest.raises(MalformedResponseError):
            await ReviewPipeline(store, gateway).run(owner_a)
