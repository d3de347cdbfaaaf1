from .store import InMemoryMemoryStore, cosine_similarity

__all__ = ["InMemoryMemoryStore", "cosine_similarity"]
