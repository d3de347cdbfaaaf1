"""Tests for prompt context assembly."""

from recallion.services.context import NO_MEMORIES, ContextAssembler, build_system_prompt
from tests.fakes import make_memory


class TestContextAssembler:
    """Tests for ContextAssembler."""

    def test_empty_result_uses_sentinel(self) -> None:
        """Should render the fixed sentence when there are no memories."""
        assert ContextAssembler().assemble([]) == "The user has no stored memories yet."
        assert ContextAssembler().context_block([]) == NO_MEMORIES

    def test_numbered_lines_prefer_summary(self) -> None:
        """Should enumerate from 1, preferring summary over raw content."""
        memories = [
            make_memory("u", "raw text one", summary="Summary one", importance=8),
            make_memory("u", "raw text two", importance=3),
        ]
        assert ContextAssembler().assemble(memories) == (
            "[Memory 1] Summary one (importance: 8/10)\n[Memory 2] raw text two (importance: 3/10)"
        )

    def test_unrated_importance_renders_question_mark(self) -> None:
        """Should render a missing importance as '?'."""
        line = ContextAssembler().assemble([make_memory("u", "fresh")])
        assert line == "[Memory 1] fresh (importance: ?/10)"

    def test_context_block_has_heading(self) -> None:
        """Should introduce the lines with a heading."""
        block = ContextAssembler().context_block([make_memory("u", "x", importance=1)])
        assert block.splitlines()[0] == ContextAssembler.header
        assert block.splitlines()[1] == "[Memory 1] x (importance: 1/10)"


class TestSystemPrompt:
    """Tests for build_system_prompt."""

    def test_embeds_context_and_name(self) -> None:
        """Should name the assistant and include the context verbatim."""
        prompt = build_system_prompt(NO_MEMORIES, assistant_name="RECALLION")
        assert prompt.startswith("You are RECALLION")
        assert NO_MEMORIES in prompt
        assert "Be honest when you don't have relevant memories" in prompt
