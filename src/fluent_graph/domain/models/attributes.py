"""Attribute storage shared by models and relations."""

from typing import Any, Self

from fluent_graph.core.errors import DeletedInstanceError
from fluent_graph.infrastructure.neo4j.transformer import to_primary_key


class AttributeContainer:
    """Property map of one node or relationship plus its persistence flags.

    Attributes are accessed explicitly (``get``/``set`` or item access) so
    they never shadow methods.
    """

    primary_key_name = "_id"

    def __init__(self) -> None:
        self._attributes: dict[str, Any] = {}
        self._relations: dict[str, Any] = {}
        self._relation_properties: dict[str, Any] = {}
        self._primary_key: int | str | None = None
        self._persisted = False
        self._deleted = False

    def __getitem__(self, name: str) -> Any:
        return self._attributes[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._attributes

    @property
    def attributes(self) -> dict[str, Any]:
        return self._attributes

    @property
    def primary_key(self) -> int | str | None:
        return self._primary_key

    @property
    def is_persisted(self) -> bool:
        return self._persisted

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    @property
    def relations(self) -> dict[str, Any]:
        """Loaded relations: a Collection, a single entity, or a count."""
        return self._relations

    @property
    def relation_properties(self) -> dict[str, Any]:
        """Properties of the edge this entity was reached through."""
        return self._relation_properties

    def get(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def set(self, name: str, value: Any) -> None:
        if self._deleted:
            raise DeletedInstanceError()
        self._attributes[name] = value
        self._persisted = False

    def fill(self, data: dict[str, Any]) -> Self:
        if self._deleted:
            raise DeletedInstanceError()
        self._attributes = dict(data)
        self._persisted = False
        return self

    def hydrate(
        self,
        identity: str,
        properties: dict[str, Any],
        relation_properties: dict[str, Any] | None = None,
    ) -> Self:
        """Populate from a stored node or relationship."""
        self._primary_key = to_primary_key(identity)
        self._attributes = {**properties, self.primary_key_name: self._primary_key}
        self._relation_properties = relation_properties or {}
        self._persisted = True
        return self

    def mark_persisted(self) -> None:
        self._persisted = True

    def mark_deleted(self) -> None:
        self._deleted = True
