"""Domain models for Recallion."""

from .chat import APOLOGY_MESSAGE, ChatMessage, ChatRole, ChatTranscript
from .extraction import (
    CompletionPayload,
    ContentPayload,
    MemoryExtraction,
    ReviewExtraction,
    ReviewItem,
    ToolCallPayload,
)
from .memory import (
    DERIVED_FIELDS,
    IMPORTANCE_MAX,
    IMPORTANCE_MIN,
    Memory,
    MemoryPatch,
    clamp_importance,
)
from .retrieval import RetrievalHit, RetrievalResult, RetrievalSource
from .review import EnrichmentResult, MemoryInsights, ReviewFailure, ReviewOutcome

__all__ = [
    "APOLOGY_MESSAGE",
    "DERIVED_FIELDS",
    "IMPORTANCE_MAX",
    "IMPORTANCE_MIN",
    # Chat
    "ChatMessage",
    "ChatRole",
    "ChatTranscript",
    # Extraction
    "CompletionPayload",
    "ContentPayload",
    "EnrichmentResult",
    # Memory
    "Memory",
    "MemoryExtraction",
    "MemoryInsights",
    "MemoryPatch",
    # Retrieval
    "RetrievalHit",
    "RetrievalResult",
    "RetrievalSource",
    "ReviewExtraction",
    "ReviewFailure",
    "ReviewItem",
    "ReviewOutcome",
    "ToolCallPayload",
    "clamp_importance",
]
