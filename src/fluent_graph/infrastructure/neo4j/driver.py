"""Neo4j driver and connection management.

This module provides the async driver resource and ``Neo4jChannel``, the
execution channel query builders send their finished Cypher text through.
"""

from collections.abc import AsyncGenerator, Sequence
from typing import TYPE_CHECKING, Any

import neo4j
from neo4j import AsyncDriver, AsyncGraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

if TYPE_CHECKING:
    from neo4j import Record

from fluent_graph.core import ErrorLevel, QueryErrorDetails
from fluent_graph.core.config import settings
from fluent_graph.core.decorators import with_error_handling
from fluent_graph.core.errors import QueryExecutionError
from fluent_graph.core.logging import get_logger
from fluent_graph.infrastructure.neo4j.query_builder.interfaces import AccessMode

logger = get_logger(__name__)


@with_error_handling(error_level=ErrorLevel.ERROR)
async def create_neo4j_driver(
    max_connection_pool_size: int | None = None,
    max_connection_lifetime: int | None = None,
) -> AsyncGenerator[AsyncDriver]:
    """Create a Neo4j driver with proper resource management.

    Args:
        max_connection_pool_size: Maximum size of the connection pool
        max_connection_lifetime: Maximum lifetime of connections in seconds

    Yields:
        AsyncDriver: Connected Neo4j driver
    """
    pool_size = max_connection_pool_size or settings.neo4j_max_connection_pool_size
    conn_lifetime = max_connection_lifetime or settings.neo4j_max_connection_lifetime

    logger.info(
        "Creating Neo4j driver",
        extra={
            "uri": settings.neo4j_uri,
            "pool_size": pool_size,
            "connection_lifetime": conn_lifetime,
        },
    )

    driver = AsyncGraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password),
        max_connection_pool_size=pool_size,
        max_connection_lifetime=conn_lifetime,
    )

    # Verify connectivity before proceeding
    await driver.verify_connectivity()
    logger.info("Neo4j connection established")

    yield driver

    await driver.close()
    logger.info("Neo4j driver closed")


class Neo4jChannel:
    """Runs Cypher text on a Neo4j driver.

    Each call opens its own session, with the access mode the builder asked
    for, on the configured database.
    """

    def __init__(self, driver: AsyncDriver, database: str | None = None) -> None:
        """Initialize the channel.

        Args:
            driver: Connected Neo4j AsyncDriver
            database: Target database, defaults to ``settings.neo4j_database``
        """
        self.driver: AsyncDriver = driver
        self.database = database if database is not None else settings.neo4j_database

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def execute(self, query: str, mode: AccessMode = AccessMode.READ) -> Sequence["Record"]:
        """Execute a statement and return every record.

        Args:
            query: Cypher statement
            mode: Session access mode

        Returns:
            Records in the order the server streamed them

        Raises:
            QueryExecutionError: If the driver reports a failure
        """
        access_mode = neo4j.WRITE_ACCESS if mode is AccessMode.WRITE else neo4j.READ_ACCESS
        logger.debug("Executing Neo4j query", extra={"query": query, "mode": mode.value, "database": self.database})

        try:
            async with self.driver.session(database=self.database, default_access_mode=access_mode) as session:
                result = await session.run(query)
                return [record async for record in result]
        except (Neo4jError, DriverError) as e:
            message: Any = getattr(e, "message", None) or e
            raise QueryExecutionError(
                f"ERROR: {message}",
                details=QueryErrorDetails(
                    source="Neo4jChannel.execute",
                    operation="Neo4j query",
                    query=query,
                    mode=mode.value,
                    database=self.database,
                ),
            ) from e


def create_neo4j_channel(driver: AsyncDriver, database: str | None = None) -> Neo4jChannel:
    """Create a Neo4jChannel from a driver.

    Args:
        driver: Connected Neo4j AsyncDriver
        database: Target database name

    Returns:
        Neo4jChannel: An execution channel for query builders
    """
    return Neo4jChannel(driver, database)
