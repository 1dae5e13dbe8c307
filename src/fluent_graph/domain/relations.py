"""Relations between models.

A relation is declared as a model method returning a relation object bound
to the instance it is called on::

    class Person(Model):
        def acted_in_movies(self) -> RelatedToMany:
            return self.related_to_many(Movie, "ACTED_IN")

The object knows how to load, attach, update and detach edges of that type.
Once hydrated from a stored relationship it also carries the edge's own
properties.
"""

from typing import TYPE_CHECKING, Any, Self

from fluent_graph.core import ModelErrorDetails
from fluent_graph.core.errors import ConfigurationError, RelationNotFoundError, RelationTypeMismatchError
from fluent_graph.core.logging import get_logger
from fluent_graph.domain.collection import Collection
from fluent_graph.domain.models.attributes import AttributeContainer
from fluent_graph.infrastructure.neo4j.query_builder import QueryBuilder
from fluent_graph.infrastructure.neo4j.query_builder.clauses import timestamp
from fluent_graph.infrastructure.neo4j.query_builder.conditions import ConditionBuilder, ConditionCallback
from fluent_graph.infrastructure.neo4j.query_builder.encoding import RAW_PREFIX, generate_variable
from fluent_graph.infrastructure.neo4j.query_builder.patterns import Direction, PatternBuilder

if TYPE_CHECKING:
    from fluent_graph.domain.models.base import Model
    from fluent_graph.domain.registry import ModelRegistry

logger = get_logger(__name__)


class BaseRelation(AttributeContainer):
    """Edges of one type between a parent instance and a target model."""

    soft_deletes = False
    is_singular = False

    def __init__(
        self,
        parent: "Model",
        attached_to: "type[Model] | str",
        relation_name: str,
        is_reverse: bool = False,
    ) -> None:
        super().__init__()
        self.parent = parent
        self.relation_name = relation_name
        self.is_reverse = is_reverse

        if isinstance(attached_to, str):
            if parent.registry is None:
                raise ConfigurationError(
                    f"Cannot resolve model {attached_to!r} without a registry",
                    details=ModelErrorDetails(
                        source="relations",
                        operation="resolve",
                        model=type(parent).__name__,
                        relation=relation_name,
                        expected=attached_to,
                    ),
                )
            attached_to = parent.registry.use(attached_to)
        self._attached_to = attached_to

        self.variable = generate_variable(type(parent).__name__, attached_to.__name__)

    def __repr__(self) -> str:
        parent, target = type(self.parent).__name__, self._attached_to.__name__
        return f"{type(self).__name__}({parent}-[:{self.relation_name}]-{target})"

    @property
    def attached_to(self) -> "type[Model]":
        return self._attached_to

    @property
    def label(self) -> str:
        return self.relation_name

    @property
    def direction(self) -> Direction:
        return "<-" if self.is_reverse else "->"

    @property
    def registry(self) -> "ModelRegistry | None":
        return self.parent.registry

    def resolve_relation(self, name: str) -> "BaseRelation":
        raise RelationNotFoundError(name, type(self).__name__)

    def spawn(self) -> Self:
        return type(self)(self.parent, self._attached_to, self.relation_name, self.is_reverse)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._attributes)

    def _path(self, model: "Model") -> PatternBuilder:
        parent = self.parent
        return (
            PatternBuilder()
            .node(parent.variable, parent.label)
            .relationship(self.variable, self.relation_name, direction=self.direction)
            .node(model.variable, model.label)
        )

    def _both_ends(self, model: "Model") -> ConditionCallback:
        def condition(c: ConditionBuilder) -> ConditionBuilder:
            return c.where(f"{RAW_PREFIX}id({self.parent.variable})", self.parent.primary_key).and_(
                f"{RAW_PREFIX}id({model.variable})", model.primary_key
            )

        return condition

    def _ensure_target(self, model: Any, message: str, operation: str) -> None:
        if isinstance(model, self._attached_to):
            return
        raise RelationTypeMismatchError(
            message,
            details=ModelErrorDetails(
                source="relations",
                operation=operation,
                model=type(self.parent).__name__,
                relation=self.relation_name,
                expected=self._attached_to.__name__,
                actual_value=type(model).__name__,
            ),
        )

    def _edge_data(self, data: dict[str, Any] | None, created: bool = False) -> dict[str, Any]:
        data = dict(data or {})
        if self.parent.timestamps:
            now = timestamp()
            if created:
                data["created_at"] = now
            data["updated_at"] = now
        return data

    async def load(self) -> Any:
        """Fetch every target along with the edge leading to it."""
        model = self._attached_to()
        return (
            await QueryBuilder(model)
            .match(self._path(model))
            .where(f"{RAW_PREFIX}id({self.parent.variable})", self.parent.primary_key)
            .return_(f"{RAW_PREFIX}{model.variable}", f"{RAW_PREFIX}{self.variable} as __relationProperty")
            .fetch()
        )

    async def attach(self, model: "Model", data: dict[str, Any] | None = None) -> Self | None:
        """Create an edge from the parent to ``model``.

        Args:
            model: Persisted target instance
            data: Edge properties

        Returns:
            The created edge

        Raises:
            RelationTypeMismatchError: If ``model`` is not a target instance
        """
        self._ensure_target(model, "can't attach to the wrong model", "attach")
        parent = self.parent
        data = self._edge_data(data, created=True)

        logger.debug(
            "Attaching relation",
            extra={"relation": self.relation_name, "parent": parent.primary_key, "target": model.primary_key},
        )
        return (
            await QueryBuilder(self)
            .match([lambda c: c.node(parent.variable, parent.label), lambda c: c.node(model.variable, model.label)])
            .where(self._both_ends(model))
            .create(
                lambda c: c.node(parent.variable)
                .relationship(self.variable, self.relation_name, data, direction=self.direction)
                .node(model.variable)
            )
            .return_(f"{RAW_PREFIX}{self.variable}")
            .first()
        )

    async def update(self, model: "Model", data: dict[str, Any] | None = None) -> Self | None:
        """Merge ``data`` into the properties of the edge to ``model``."""
        self._ensure_target(model, "can't attach to the wrong model", "update")

        return (
            await QueryBuilder(self)
            .match(self._path(model))
            .where(self._both_ends(model))
            .set(f"{RAW_PREFIX}{self.variable}", self._edge_data(data), "+=")
            .return_(f"{RAW_PREFIX}{self.variable}")
            .first()
        )

    async def detach(self, model: "Model") -> Collection[Any]:
        """Delete the edges between the parent and ``model``; nodes stay."""
        self._ensure_target(model, "can't detach the wrong model", "detach")

        return (
            await QueryBuilder(self.parent)
            .relationship(self.variable, self.relation_name, direction=self.direction)
            .node(model.variable, model.label)
            .where(self._both_ends(model))
            .force_delete(f"{RAW_PREFIX}{self.variable}", detach=False)
            .fetch()
        )

    async def exists(self, model: "Model") -> bool:
        """Whether at least one edge links the parent to ``model``."""
        self._ensure_target(model, "can't attach to the wrong model", "exists")

        total = await (
            QueryBuilder(self.parent).match(self._path(model)).where(self._both_ends(model)).count(self.variable)
        )
        return total > 0


class RelatedToMany(BaseRelation):
    """Any number of targets."""

    async def attach_many(
        self,
        models: list["Model"],
        data: list[dict[str, Any]] | None = None,
    ) -> Collection[Any]:
        """Attach each model in turn, ``data[i]`` holding the i-th edge's properties."""
        if not isinstance(models, list):
            raise ConfigurationError(
                "first argument must be a valid models array",
                details=ModelErrorDetails(
                    source="relations",
                    operation="attach_many",
                    model=type(self.parent).__name__,
                    relation=self.relation_name,
                    actual_value=type(models).__name__,
                ),
            )

        data = data or []
        results = []
        for index, model in enumerate(models):
            results.append(await self.attach(model, data[index] if index < len(data) else None))
        return Collection(results)


class RelatedToOne(BaseRelation):
    """At most one target."""

    is_singular = True

    async def load(self) -> Any:
        return (await super().load()).first()
