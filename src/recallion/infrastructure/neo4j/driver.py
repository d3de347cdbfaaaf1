"""Neo4j driver and connection management."""

from collections.abc import AsyncGenerator

from neo4j import AsyncDriver, AsyncGraphDatabase
from neo4j.exceptions import Neo4jError, ServiceUnavailable

from recallion.core.base import ServiceErrorDetails
from recallion.core.config import settings
from recallion.core.errors import ServiceUnavailableError
from recallion.core.logging import get_logger
from recallion.infrastructure.neo4j.queries import MemoryQueries

logger = get_logger(__name__)


async def create_neo4j_driver(
    max_connection_pool_size: int | None = None,
    max_connection_lifetime: int | None = None,
) -> AsyncGenerator[AsyncDriver]:
    """Create a Neo4j driver with proper resource management.

    Yields a connected driver and closes it when the generator is finalized,
    so it can back a FastAPI lifespan.

    Args:
        max_connection_pool_size: Maximum size of the connection pool
        max_connection_lifetime: Maximum lifetime of connections in seconds

    Yields:
        AsyncDriver: Connected Neo4j driver

    Raises:
        ServiceUnavailableError: If the database cannot be reached
    """
    pool_size = max_connection_pool_size or 50
    conn_lifetime = max_connection_lifetime or 3600

    logger.info(
        "Creating Neo4j driver",
        uri=settings.neo4j_uri,
        pool_size=pool_size,
        connection_lifetime=conn_lifetime,
    )

    driver = AsyncGraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password.get_secret_value()),
        max_connection_pool_size=pool_size,
        max_connection_lifetime=conn_lifetime,
    )

    try:
        await driver.verify_connectivity()
    except (ServiceUnavailable, Neo4jError, OSError) as e:
        await driver.close()
        raise ServiceUnavailableError(
            message=f"Cannot connect to Neo4j: {e!s}",
            details=ServiceErrorDetails(
                source="create_neo4j_driver",
                operation="verify_connectivity",
                service_name="neo4j",
                endpoint=settings.neo4j_uri,
            ),
        ) from e
    logger.info("Neo4j connection established")

    try:
        yield driver
    finally:
        await driver.close()
        logger.info("Neo4j driver closed")


async def ensure_vector_index(driver: AsyncDriver, dimensions: int) -> None:
    """Create the owner-filterable vector index and lookup constraints if missing."""
    async with driver.session() as session:
        await session.run(MemoryQueries.create_id_constraint())
        await session.run(MemoryQueries.create_owner_index())
        await session.run(MemoryQueries.create_vector_index(dimensions))
    logger.info("Vector index ready", index=MemoryQueries.VECTOR_INDEX, dimensions=dimensions)
