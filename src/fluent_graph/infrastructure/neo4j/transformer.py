"""Raw record to domain object conversion.

Records coming back from the driver are turned into plain Python values, or,
when the query was bound to a model, into model instances with their eager
loaded relations attached.
"""

import itertools
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from structlog.typing import FilteringBoundLogger

from fluent_graph.core.logging import get_logger
from fluent_graph.domain.collection import Collection

if TYPE_CHECKING:
    from fluent_graph.infrastructure.neo4j.query_builder.interfaces import QueryOwner, RecordLike

logger: FilteringBoundLogger = get_logger(name=__name__)

MAX_SAFE_INTEGER = 2**53 - 1

# Alias under which a relation load returns the edge next to each target
RELATION_PROPERTY_ALIAS = "__relationProperty"


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def convert_integer(value: int) -> int | str:
    """Keep integers JSON-safe: beyond 2**53 - 1 they become exact strings."""
    if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
        return value
    return str(value)


def is_node(value: Any) -> bool:
    return (
        hasattr(value, "element_id")
        and hasattr(value, "labels")
        and hasattr(value, "items")
        and not hasattr(value, "start_node")
    )


def is_relationship(value: Any) -> bool:
    return (
        hasattr(value, "element_id")
        and hasattr(value, "type")
        and hasattr(value, "start_node")
        and hasattr(value, "end_node")
    )


def identity_of(entity: Any) -> str:
    """Legacy numeric id of a node or relationship, as a string.

    Element ids look like ``4:<database uuid>:<id>``; the trailing part is the
    id that ``id()`` returns inside Cypher.
    """
    if entity is None:
        return ""
    return str(entity.element_id).rsplit(":", 1)[-1]


def to_primary_key(identity: str) -> int | str:
    return int(identity) if identity.lstrip("-").isdigit() else identity


class Transformer:
    """Converts raw records for a query bound to ``model`` (or to nothing).

    ``relations`` maps the names of eager-loaded relations to the variable
    their targets were collected under.
    """

    def __init__(self, model: "QueryOwner | None" = None, relations: Mapping[str, str] | None = None) -> None:
        self._model = model
        self._relations = dict(relations or {})

    def transform_records(self, records: Iterable["RecordLike"]) -> Collection[Any]:
        records = list(records)
        logger.debug(
            "Transforming records",
            extra={"count": len(records), "model": type(self._model).__name__ if self._model else None},
        )
        return Collection(itertools.chain.from_iterable(self._transform_record(record) for record in records))

    def _transform_record(self, record: "RecordLike") -> Iterator[Any]:
        values = dict(record.items())

        if self._model is None:
            yield {key: self._transform_value(value) for key, value in values.items()}
            return

        relation_property = values.pop(RELATION_PROPERTY_ALIAS, None)
        edge = self._relation_properties(relation_property) if relation_property is not None else None

        parent = self._transform_value(values.get(self._model.variable), relation_properties=edge)

        if self._relations and parent is not None:
            self._attach_relations(parent, values)
            yield parent
            return

        for key, value in values.items():
            yield parent if key == self._model.variable else self._transform_value(value)

    def _attach_relations(self, parent: Any, values: Mapping[str, Any]) -> None:
        for name, alias in self._relations.items():
            relation = parent.resolve_relation(name)
            collection = values.get(f"{alias}_collection")

            if is_integer(collection):
                parent.relations[f"{name}Count"] = convert_integer(collection)
                continue

            edges = values.get(f"{alias}_relationProperties") or []
            related = Collection(
                self._transform_value(
                    target,
                    model_cls=relation.attached_to,
                    relation_properties=self._correlate(target, edges, relation.is_reverse),
                )
                for target in collection or []
            )
            parent.relations[name] = related.first() if relation.is_singular else related

    def _correlate(self, target: Any, edges: Any, is_reverse: bool) -> dict[str, Any] | None:
        if is_integer(edges) or not edges:
            return None

        identity = identity_of(target)
        for edge in edges:
            endpoint = edge.start_node if is_reverse else edge.end_node
            if identity_of(endpoint) == identity:
                return self._relation_properties(edge)
        return None

    def _relation_properties(self, edge: Any) -> dict[str, Any]:
        properties = {key: self._transform_value(value) for key, value in edge.items()}
        properties["_id"] = to_primary_key(identity_of(edge))
        return properties

    def _transform_value(
        self,
        value: Any,
        model_cls: type | None = None,
        relation_properties: dict[str, Any] | None = None,
    ) -> Any:
        if value is None or isinstance(value, str | bool | float):
            return value

        if is_integer(value):
            return convert_integer(value)

        if is_node(value):
            return self._transform_node(value, model_cls, relation_properties)

        if is_relationship(value):
            return self._transform_relationship(value)

        if isinstance(value, list | tuple):
            return [self._transform_value(item) for item in value]

        if isinstance(value, Mapping):
            return {key: self._transform_value(item) for key, item in value.items()}

        return value

    def _transform_node(
        self,
        node: Any,
        model_cls: type | None,
        relation_properties: dict[str, Any] | None,
    ) -> Any:
        identity = identity_of(node)
        properties = {key: self._transform_value(value) for key, value in node.items()}

        if self._model is None:
            return {"identity": identity, "labels": sorted(node.labels), "properties": properties}

        instance = model_cls() if model_cls is not None else self._model.spawn()
        return instance.hydrate(identity, properties, relation_properties)

    def _transform_relationship(self, relationship: Any) -> Any:
        identity = identity_of(relationship)
        properties = {key: self._transform_value(value) for key, value in relationship.items()}

        if self._model is None:
            return {
                "identity": identity,
                "start": identity_of(relationship.start_node),
                "end": identity_of(relationship.end_node),
                "label": relationship.type,
                "properties": properties,
            }

        return self._model.spawn().hydrate(identity, properties)
