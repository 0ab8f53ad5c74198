"""Neo4j graph sink.

Entities are created with ``CREATE`` under the shared ``KGEntity`` label plus
a per-kind label and are addressed by their ``elementId``. Edges are created
between two entities found by element id.
"""

import json
import re
from typing import Any

from neo4j import AsyncDriver

from kgindex.utils.logging import get_logger

logger = get_logger(__name__)

IDENTIFIER_RE = re.compile(r"[^A-Za-z0-9_]")


class GraphSinkError(Exception):
    """Raised when the graph store rejects a write."""
    pass


def _identifier(raw: str) -> str:
    """Cypher labels and relationship types cannot be parameters."""
    cleaned = IDENTIFIER_RE.sub("_", raw)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


def _label(kind: str) -> str:
    return "".join(part.capitalize() for part in _identifier(kind).split("_") if part) or "Entity"


def _cypher_properties(properties: dict[str, Any]) -> dict[str, Any]:
    """Drop nulls and JSON-encode values Neo4j cannot store as properties."""
    cleaned: dict[str, Any] = {}
    for key, value in properties.items():
        if value is None:
            continue
        if isinstance(value, dict) or (
            isinstance(value, list) and any(isinstance(v, (dict, list)) for v in value)
        ):
            value = json.dumps(value, sort_keys=True)
        cleaned[key] = value
    return cleaned


class Neo4jGraphSink:
    """GraphSink backed by a Neo4j AsyncDriver.

    Attributes:
        driver: Neo4j AsyncDriver instance, owned by the caller
        database: Name of the Neo4j database (default: "neo4j")
    """

    def __init__(self, driver: AsyncDriver, database: str = "neo4j"):
        self.driver = driver
        self.database = database
        logger.debug(f"Neo4jGraphSink initialized with database={database}")

    async def create_entity(self, label: str, properties: dict[str, Any]) -> str:
        """Create one entity node.

        Args:
            label: Entity kind (``document``, ``class``, ...); stored as the
                ``kind`` property and as a node label
            properties: Entity properties

        Returns:
            The node's element id

        Raises:
            GraphSinkError: If the store returned no node
        """
        query = f"""
        CREATE (n:KGEntity:{_label(label)})
        SET n = $properties, n.kind = $kind
        RETURN elementId(n) AS id
        """
        async with self.driver.session(database=self.database) as session:
            result = await session.run(query, properties=_cypher_properties(properties), kind=label)
            record = await result.single()

        if record is None:
            raise GraphSinkError(f"Entity creation returned no id [label={label}]")
        return record["id"]

    async def create_edge(
        self,
        from_id: str,
        to_id: str,
        edge_type: str,
        properties: dict[str, Any],
    ) -> None:
        """Create a relationship between two existing entities.

        Raises:
            GraphSinkError: If either endpoint does not exist
        """
        query = f"""
        MATCH (a:KGEntity) WHERE elementId(a) = $from_id
        MATCH (b:KGEntity) WHERE elementId(b) = $to_id
        CREATE (a)-[r:{_identifier(edge_type)}]->(b)
        SET r = $properties
        RETURN count(r) AS created
        """
        async with self.driver.session(database=self.database) as session:
            result = await session.run(
                query,
                from_id=from_id,
                to_id=to_id,
                properties=_cypher_properties(properties),
            )
            record = await result.single()

        if record is None or record["created"] == 0:
            raise GraphSinkError(
                f"Edge endpoints not found [type={edge_type}, from={from_id}, to={to_id}]"
            )
