"""Prompt context built from retrieved memories."""

from collections.abc import Sequence

from recallion.core.config import settings
from recallion.domain.models import IMPORTANCE_MAX, Memory

NO_MEMORIES = "The user has no stored memories yet."

SYSTEM_PROMPT_TEMPLATE = """You are {name}, an AI Memory Brain assistant. You help users by answering questions based on their stored memories and knowledge.

You have access to the user's memory base and should:
1. Ground your answers in the user's stored memories when relevant
2. Clearly indicate which memories you're referencing
3. Be honest when you don't have relevant memories to draw from
4. Provide thoughtful, insightful answers that connect different memories
5. Keep responses concise but comprehensive

{context}

When referencing memories, mention them naturally in your response. Be conversational and helpful."""  # noqa: E501


def format_memory_line(position: int, memory: Memory) -> str:
    importance = "?" if memory.importance is None else str(memory.importance)
    return f"[Memory {position}] {memory.display_text} (importance: {importance}/{IMPORTANCE_MAX})"


class ContextAssembler:
    """Render ranked memories as a numbered block, in rank order."""

    header = "Relevant memories from the user's knowledge base:"

    def assemble(self, memories: Sequence[Memory]) -> str:
        if not memories:
            return NO_MEMORIES
        return "\n".join(format_memory_line(i, m) for i, m in enumerate(memories, start=1))

    def context_block(self, memories: Sequence[Memory]) -> str:
        """The assembled lines under a heading, or the bare sentinel when empty."""
        if not memories:
            return NO_MEMORIES
        return f"{self.header}\n{self.assemble(memories)}"


def build_system_prompt(context: str, assistant_name: str | None = None) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(name=assistant_name or settings.assistant_name, context=context)
