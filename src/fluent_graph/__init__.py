"""Fluent Cypher query builder and object mapper for Neo4j."""

from fluent_graph.core import (
    ApplicationError,
    ConfigurationError,
    DeletedInstanceError,
    ModelNotFoundError,
    QueryExecutionError,
    RelationNotFoundError,
    RelationTypeMismatchError,
)
from fluent_graph.domain import (
    BaseRelation,
    Collection,
    Model,
    ModelRegistry,
    RelatedToMany,
    RelatedToOne,
)
from fluent_graph.infrastructure.neo4j.driver import Neo4jChannel, create_neo4j_channel, create_neo4j_driver
from fluent_graph.infrastructure.neo4j.query_builder import AccessMode, QueryBuilder
from fluent_graph.infrastructure.neo4j.transformer import Transformer

__version__ = "0.1.0"

__all__ = [
    "AccessMode",
    "ApplicationError",
    "BaseRelation",
    "Collection",
    "ConfigurationError",
    "DeletedInstanceError",
    "Model",
    "ModelNotFoundError",
    "ModelRegistry",
    "Neo4jChannel",
    "QueryBuilder",
    "QueryExecutionError",
    "RelatedToMany",
    "RelatedToOne",
    "RelationNotFoundError",
    "RelationTypeMismatchError",
    "Transformer",
    "create_neo4j_channel",
    "create_neo4j_driver",
]
