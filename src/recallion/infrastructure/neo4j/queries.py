"""Centralized Cypher for memory nodes.

Every owner-scoped statement matches on ``owner_id`` inside the query
itself; callers never filter results after the fact.
"""

from typing import LiteralString, cast

_ORDERABLE: dict[str, LiteralString] = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "importance": "importance",
}


class MemoryQueries:
    """All memory-related queries in one place."""

    VECTOR_INDEX: LiteralString = "memory_embeddings"

    # The vector index is global; over-fetch so owner filtering still leaves top_k
    SIMILARITY_OVERSAMPLE = 10

    @staticmethod
    def create_id_constraint() -> LiteralString:
        return "CREATE CONSTRAINT memory_id IF NOT EXISTS FOR (m:Memory) REQUIRE m.id IS UNIQUE"

    @staticmethod
    def create_owner_index() -> LiteralString:
        return "CREATE INDEX memory_owner IF NOT EXISTS FOR (m:Memory) ON (m.owner_id)"

    @staticmethod
    def create_vector_index(dimensions: int) -> LiteralString:
        # Index options do not accept parameters
        return cast(
            LiteralString,
            f"""
            CREATE VECTOR INDEX {MemoryQueries.VECTOR_INDEX} IF NOT EXISTS
            FOR (m:Memory) ON (m.embedding)
            OPTIONS {{indexConfig: {{
                `vector.dimensions`: {int(dimensions)},
                `vector.similarity_function`: 'cosine'
            }}}}
            """,
        )

    @staticmethod
    def get_by_id() -> LiteralString:
        return "MATCH (m:Memory {id: $id}) RETURN m"

    @staticmethod
    def list_by_owner(order_by: str, limited: bool) -> LiteralString:
        """Owner's memories, descending; unrated importance sorts last."""
        field = _ORDERABLE.get(order_by)
        if field is None:
            raise ValueError(f"Cannot order memories by {order_by!r}")
        query = (
            "MATCH (m:Memory {owner_id: $owner_id}) "
            "RETURN m "
            "ORDER BY m." + field + " IS NULL, m." + field + " DESC, m.created_at DESC"
        )
        if limited:
            query += " LIMIT $limit"
        return query

    @staticmethod
    def insert() -> LiteralString:
        return "CREATE (m:Memory) SET m = $properties RETURN m"

    @staticmethod
    def update_owned() -> LiteralString:
        return """
            MATCH (m:Memory {id: $id, owner_id: $owner_id})
            SET m += $properties, m.updated_at = $updated_at
            RETURN m
            """

    @staticmethod
    def delete_owned() -> LiteralString:
        return """
            MATCH (m:Memory {id: $id, owner_id: $owner_id})
            WITH m, properties(m) AS deleted
            DETACH DELETE m
            RETURN deleted AS m
            """

    @staticmethod
    def similarity_search() -> LiteralString:
        return """
            CALL db.index.vector.queryNodes($index, $candidates, $embedding)
            YIELD node, score
            WHERE node.owner_id = $owner_id AND score >= $threshold
            RETURN node AS m, score AS similarity
            ORDER BY similarity DESC
            LIMIT $limit
            """
