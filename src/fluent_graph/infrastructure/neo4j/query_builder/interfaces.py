"""Query builder interfaces.

These protocols decouple the builder from the domain layer: anything that
looks like a model (a variable, a label, soft-delete flag, relation lookup)
can own a query, and anything that can run text against Neo4j can execute it.
"""

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class AccessMode(str, Enum):
    """Session access mode a statement is executed with."""

    READ = "read"
    WRITE = "write"


@runtime_checkable
class RecordLike(Protocol):
    """A raw result row: ``neo4j.Record`` or a plain mapping."""

    def items(self) -> Iterable[tuple[str, Any]]: ...


class ExecutionChannel(Protocol):
    """Transmits finished Cypher text and returns the raw records."""

    async def execute(self, query: str, mode: AccessMode) -> Sequence[RecordLike]:
        """Run ``query`` in a session opened with ``mode``.

        Raises:
            QueryExecutionError: If the statement fails
        """
        ...


class RelationDefinition(Protocol):
    """The parts of a relation the builder and transformer rely on."""

    variable: str
    relation_name: str
    is_reverse: bool
    is_singular: bool

    @property
    def attached_to(self) -> type["QueryOwner"]: ...


class QueryOwner(Protocol):
    """An entity (or relation) a query is bound to."""

    variable: str
    soft_deletes: bool

    @property
    def label(self) -> str: ...

    def resolve_relation(self, name: str) -> RelationDefinition: ...

    def spawn(self) -> "QueryOwner": ...

    def hydrate(
        self,
        identity: str,
        properties: dict[str, Any],
        relation_properties: dict[str, Any] | None = None,
    ) -> "QueryOwner": ...
