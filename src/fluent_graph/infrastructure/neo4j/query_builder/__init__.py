"""Fluent Cypher query builder.

This package renders Cypher text from chained method calls:

- ``encoding``: literal and identifier encoding
- ``patterns`` / ``clauses``: path fragments and keyword clauses
- ``conditions``: WHERE predicates
- ``builder``: the ``QueryBuilder`` orchestrating all of them
"""

from .builder import QueryBuilder
from .clauses import ClauseBuilder
from .conditions import ConditionBuilder
from .encoding import encode_field, encode_value, generate_variable
from .interfaces import AccessMode, ExecutionChannel, QueryOwner, RecordLike, RelationDefinition
from .patterns import NodePattern, PatternBuilder, RelationshipPattern
from .state import ClauseType, QueryState

__all__ = [
    "AccessMode",
    "ClauseBuilder",
    "ClauseType",
    "ConditionBuilder",
    "ExecutionChannel",
    "NodePattern",
    "PatternBuilder",
    "QueryBuilder",
    "QueryOwner",
    "QueryState",
    "RecordLike",
    "RelationDefinition",
    "RelationshipPattern",
    "encode_field",
    "encode_value",
    "generate_variable",
]
