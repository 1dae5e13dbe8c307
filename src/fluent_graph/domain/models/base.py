"""Base class for graph entities.

A model maps to nodes carrying its labels. Class-level operations build and
run queries over every node of the model; instance operations act on one
stored node identified by its primary key (the node's ``id()``).

Example:
    ```python
    class Person(Model):
        soft_deletes = True

        def acted_in_movies(self) -> RelatedToMany:
            return self.related_to_many("Movie", "ACTED_IN")


    person = await Person.create({"name": "Keanu Reeves"})
    await person.acted_in_movies().attach(movie, {"roles": ["Neo"]})
    actors = await Person.query().with_relation("acted_in_movies").return_().fetch()
    ```
"""

import inspect
from typing import TYPE_CHECKING, Any, ClassVar, Self

from structlog.typing import FilteringBoundLogger

from fluent_graph.core import ModelErrorDetails
from fluent_graph.core.errors import ConfigurationError, ModelNotFoundError, RelationNotFoundError
from fluent_graph.core.logging import get_logger
from fluent_graph.domain.collection import Collection
from fluent_graph.domain.models.attributes import AttributeContainer
from fluent_graph.domain.relations import BaseRelation, RelatedToMany, RelatedToOne
from fluent_graph.infrastructure.neo4j.query_builder import QueryBuilder
from fluent_graph.infrastructure.neo4j.query_builder.clauses import timestamp
from fluent_graph.infrastructure.neo4j.query_builder.encoding import RAW_PREFIX, generate_variable
from fluent_graph.infrastructure.neo4j.transformer import to_primary_key

if TYPE_CHECKING:
    from fluent_graph.domain.registry import ModelRegistry

logger: FilteringBoundLogger = get_logger(name=__name__)


class Model(AttributeContainer):
    """Base class for all node models.

    Class configuration:
        labels: Node labels, defaults to ``[ClassName]``
        timestamps: Maintain ``created_at``/``updated_at``
        soft_deletes: ``delete`` sets ``deleted_at`` and queries skip such nodes
        registry: Registry the model is bound to, provides the channel
    """

    labels: ClassVar[list[str] | None] = None
    timestamps: ClassVar[bool] = True
    soft_deletes: ClassVar[bool] = False
    registry: ClassVar["ModelRegistry | None"] = None

    def __init__(self, attributes: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.variable = generate_variable(type(self).__name__)
        if attributes:
            self._attributes = dict(attributes)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(primary_key={self._primary_key!r}, attributes={self._attributes!r})"

    @property
    def label(self) -> str:
        return ":".join(self.labels or [type(self).__name__])

    def spawn(self) -> Self:
        return type(self)()

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def related_to_many(
        self,
        target: "type[Model] | str",
        relation_type: str,
        is_reverse: bool = False,
    ) -> RelatedToMany:
        return RelatedToMany(self, target, relation_type, is_reverse)

    def related_to_one(
        self,
        target: "type[Model] | str",
        relation_type: str,
        is_reverse: bool = False,
    ) -> RelatedToOne:
        return RelatedToOne(self, target, relation_type, is_reverse)

    def resolve_relation(self, name: str) -> BaseRelation:
        """Call the relation method ``name`` and return its relation.

        Raises:
            RelationNotFoundError: If ``name`` is not a relation method
        """
        method = None if name.startswith("_") else getattr(self, name, None)
        if not callable(method) or inspect.iscoroutinefunction(method):
            raise RelationNotFoundError(name, type(self).__name__)

        try:
            relation = method()
        except TypeError as e:
            raise RelationNotFoundError(name, type(self).__name__) from e

        if not isinstance(relation, BaseRelation):
            raise RelationNotFoundError(name, type(self).__name__)
        return relation

    async def load(self, relation: str) -> Any:
        """Load a relation and keep the result on the instance."""
        result = await self.resolve_relation(relation).load()
        self._relations[relation] = result
        return result

    def get_related(self, relation: str) -> Any:
        return self._relations.get(relation)

    def get_relation_properties(self) -> dict[str, Any]:
        return self._relation_properties

    # ------------------------------------------------------------------
    # Class operations
    # ------------------------------------------------------------------

    @classmethod
    def query(cls) -> QueryBuilder:
        """Start a query bound to a fresh instance."""
        return QueryBuilder(cls())

    @classmethod
    def as_(cls, variable: str) -> Self:
        """Instance whose Cypher variable is ``variable``."""
        instance = cls()
        instance.variable = variable
        return instance

    @classmethod
    async def create(cls, data: dict[str, Any]) -> Self | None:
        return await cls()._insert(data)

    @classmethod
    async def create_many(cls, data: list[dict[str, Any]]) -> Collection[Self]:
        """Create one node per map in ``data`` with a single statement.

        Raises:
            ConfigurationError: If ``data`` is not a list
        """
        if not isinstance(data, list):
            raise ConfigurationError(
                "data must be a list",
                details=ModelErrorDetails(
                    source="models",
                    operation="create_many",
                    model=cls.__name__,
                    actual_value=type(data).__name__,
                ),
            )

        template = cls()
        return (
            await template.new_query()
            .with_trashed()
            .unwind(data, "map")
            .create(lambda c: c.node(template.variable, template.label))
            .set(template.variable, f"{RAW_PREFIX}map")
            .return_(template.variable)
            .fetch()
        )

    @classmethod
    async def all(cls) -> Collection[Self]:
        template = cls()
        return await template.new_query().return_(template.variable).fetch()

    @classmethod
    async def first(cls) -> Self | None:
        template = cls()
        return await template.new_query().return_(template.variable).first()

    @classmethod
    async def last(cls) -> Self | None:
        template = cls()
        return (
            await template.new_query()
            .return_(template.variable)
            .order_by(f"{RAW_PREFIX}id({template.variable})", "DESC")
            .first()
        )

    @classmethod
    async def find(cls, identity: int | str) -> Self | None:
        template = cls()
        return (
            await template.new_query()
            .where(f"{RAW_PREFIX}id({template.variable})", to_primary_key(str(identity)))
            .return_(template.variable)
            .first()
        )

    @classmethod
    async def find_or_fail(cls, identity: int | str) -> Self:
        """Like ``find``, but a missing node is an error.

        Raises:
            ModelNotFoundError: If no node has that id
        """
        model = await cls.find(identity)
        if model is None:
            raise ModelNotFoundError(
                f"Cannot find node for {identity} model",
                details=ModelErrorDetails(
                    source="models",
                    operation="find_or_fail",
                    model=cls.__name__,
                    actual_value=identity,
                ),
            )
        return model

    @classmethod
    async def update_all(cls, data: dict[str, Any]) -> Collection[Self]:
        """Merge ``data`` into every node of the model."""
        template = cls()
        return await template.new_query().set(template.variable, data, "+=").return_(template.variable).fetch()

    @classmethod
    async def count(cls) -> int:
        template = cls()
        return await template.new_query().count(template.variable)

    @classmethod
    async def destroy(cls, identity: int | str | list[int | str], detach: bool = True) -> Collection[Any]:
        """Delete one node by id, or several when given a list."""
        if identity is None or identity == [] or identity == "":
            raise ConfigurationError(
                "you must specify the id(s) to destroy",
                details=ModelErrorDetails(source="models", operation="destroy", model=cls.__name__),
            )

        template = cls()
        if isinstance(identity, list):
            operator, value = "IN", [to_primary_key(str(item)) for item in identity]
        else:
            operator, value = "=", to_primary_key(str(identity))

        return (
            await template.new_query()
            .where(f"{RAW_PREFIX}id({template.variable})", operator, value)
            .delete(template.variable, detach)
            .fetch()
        )

    @classmethod
    async def truncate(cls, detach: bool = True, force: bool = False) -> Collection[Any]:
        """Delete every node of the model."""
        template = cls()
        query = template.new_query()
        query = query.force_delete(template.variable, detach) if force else query.delete(template.variable, detach)
        return await query.fetch()

    @classmethod
    async def force_truncate(cls, detach: bool = True) -> Collection[Any]:
        return await cls.truncate(detach, force=True)

    # ------------------------------------------------------------------
    # Instance operations
    # ------------------------------------------------------------------

    def new_query(self) -> QueryBuilder:
        return QueryBuilder(self)

    def _sync(self, stored: "Model | None") -> None:
        if stored is None:
            return
        self._primary_key = stored.primary_key
        self._attributes = dict(stored.attributes)
        self.mark_persisted()
        stored.mark_persisted()

    def _payload(self) -> dict[str, Any]:
        return {key: value for key, value in self._attributes.items() if key != self.primary_key_name}

    async def _insert(self, data: dict[str, Any]) -> Self | None:
        data = dict(data)
        if self.timestamps:
            data["created_at"] = data["updated_at"] = timestamp()

        stored = (
            await self.new_query()
            .create(lambda c: c.node(self.variable, self.label, data))
            .with_trashed()
            .return_(self.variable)
            .first()
        )
        self._sync(stored)
        logger.debug("Model created", extra={"model": type(self).__name__, "primary_key": self._primary_key})
        return stored

    async def save(self) -> Self:
        """Insert the instance, or write its attributes back if stored."""
        if self._primary_key is not None:
            await self.update(self._payload())
        else:
            await self._insert(self._payload())
        return self

    async def update(self, data: dict[str, Any] | None = None) -> Self | None:
        """Merge ``data`` (default: the current attributes) into the stored node."""
        data = dict(data) if data is not None else self._payload()
        if self.timestamps:
            data["updated_at"] = timestamp()

        stored = (
            await self.new_query()
            .where(f"{RAW_PREFIX}id({self.variable})", self._primary_key)
            .set(self.variable, data, "+=")
            .return_(self.variable)
            .first()
        )
        self._sync(stored)
        return stored

    async def delete(self, detach: bool = True, force: bool = False) -> Collection[Any]:
        """Delete the node; soft-deleting models only get ``deleted_at`` set.

        The instance refuses attribute writes afterwards.
        """
        query = self.new_query().where(f"{RAW_PREFIX}id({self.variable})", self._primary_key)
        query = query.force_delete(self.variable, detach) if force else query.delete(self.variable, detach)
        response = await query.fetch()
        self.mark_deleted()
        return response

    async def force_delete(self, detach: bool = True) -> Collection[Any]:
        return await self.delete(detach, force=True)

    async def restore(self) -> Collection[Any]:
        """Clear ``deleted_at`` on the stored node."""
        response = await (
            self.new_query()
            .with_trashed()
            .where(f"{RAW_PREFIX}id({self.variable})", self._primary_key)
            .restore()
            .fetch()
        )
        self._deleted = False
        return response

    def to_dict(self) -> dict[str, Any]:
        result = dict(self._attributes)
        for name, related in self._relations.items():
            result[name] = related.to_dict() if hasattr(related, "to_dict") else related

        if self._relation_properties:
            result["__relationProperties"] = self._relation_properties

        result["_label"] = self.label
        return result
