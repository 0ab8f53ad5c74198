"""Neo4j driver construction.

The indexer never holds a module-level driver; callers build one here and
own its lifecycle (``await driver.close()``).
"""

from neo4j import AsyncDriver, AsyncGraphDatabase

from kgindex.core.config import Settings


def create_neo4j_driver(settings: Settings) -> AsyncDriver:
    """Create a Neo4j AsyncDriver from settings.

    Raises:
        ValueError: If the URI or credentials are not configured
    """
    if not settings.NEO4J_URI:
        raise ValueError("NEO4J_URI is not configured")
    if not settings.NEO4J_USERNAME:
        raise ValueError("NEO4J_USERNAME is not configured")
    if not settings.NEO4J_PASSWORD:
        raise ValueError("NEO4J_PASSWORD is not configured")

    return AsyncGraphDatabase.driver(
        settings.NEO4J_URI,
        auth=(settings.NEO4J_USERNAME, settings.NEO4J_PASSWORD),
        connection_timeout=60,
        max_transaction_retry_time=60,
        keep_alive=True,
    )
