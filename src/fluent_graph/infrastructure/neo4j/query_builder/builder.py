"""Main Cypher query builder implementation.

``QueryBuilder`` accumulates statement blocks produced by the clause and
condition builders, optionally bound to a model. A bound builder adds the
model's ``MATCH`` when nothing else matched first, filters soft-deleted rows,
and can eager-load relations in the same round-trip.

Example:
    ```python
    people = await (
        Person.query()
        .where("age", ">", 18)
        .with_relation("acted_in_movies", lambda q: q.where("released", ">", 2000))
        .return_()
        .fetch()
    )
    ```
"""

from collections.abc import Callable, Mapping
from typing import Any, Self

from structlog.typing import FilteringBoundLogger

from fluent_graph.core.base import ModelErrorDetails
from fluent_graph.core.errors import ConfigurationError
from fluent_graph.core.logging import get_logger, update_log_context
from fluent_graph.domain.collection import Collection
from fluent_graph.infrastructure.neo4j.query_builder.clauses import ClauseBuilder, Pattern, Patterns
from fluent_graph.infrastructure.neo4j.query_builder.conditions import UNSET, ConditionBuilder, ConditionCallback
from fluent_graph.infrastructure.neo4j.query_builder.encoding import RAW_PREFIX, generate_variable
from fluent_graph.infrastructure.neo4j.query_builder.interfaces import (
    AccessMode,
    ExecutionChannel,
    QueryOwner,
)
from fluent_graph.infrastructure.neo4j.query_builder.patterns import Direction
from fluent_graph.infrastructure.neo4j.query_builder.state import ClauseType, QueryState
from fluent_graph.infrastructure.neo4j.transformer import Transformer

logger: FilteringBoundLogger = get_logger(name=__name__)

RelationCallback = Callable[["QueryBuilder"], Any]


class QueryBuilder:
    """Fluent Cypher query builder.

    A builder represents one logical query. ``fetch`` (and ``first``/``count``)
    executes it and resets the builder to empty, whether execution succeeded
    or not. Builders are not safe for concurrent use.
    """

    def __init__(self, model: QueryOwner | None = None, channel: ExecutionChannel | None = None) -> None:
        """Initialize a new query builder.

        Args:
            model: Model (or relation) the query is bound to, if any
            channel: Execution channel; defaults to the one of the model's registry
        """
        self._model = model
        self._channel = channel
        self._state = QueryState()

    def __str__(self) -> str:
        return self.to_cypher()

    @property
    def model(self) -> QueryOwner | None:
        return self._model

    @property
    def mode(self) -> AccessMode:
        return self._state.mode

    @property
    def relation_aliases(self) -> dict[str, str]:
        """Eager-loaded relation names mapped to their target variables."""
        return dict(self._state.relation_aliases)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clause(self) -> ClauseBuilder:
        return ClauseBuilder(self._model)

    def _condition(self) -> ConditionBuilder:
        return ConditionBuilder(self._model)

    def _write(self) -> None:
        self._state.mode = AccessMode.WRITE

    def _prepare_query_for_model(self) -> None:
        if self._model is None or self._state.leads_with(ClauseType.MATCH):
            return
        model = self._model
        self._state.prepend(self._clause().match(lambda c: c.node(model.variable, model.label)).build())

    def _add_clause(self, clause: ClauseBuilder, auto_match: bool = True) -> Self:
        if not auto_match:
            self._state.freeze_auto_match = True
        elif not self._state.freeze_auto_match and self._model is not None:
            self._prepare_query_for_model()
            self._state.freeze_auto_match = True

        self._state.append(clause.build())
        return self

    def _add_condition(self, condition: ConditionBuilder) -> Self:
        if self._state.writing_condition:
            self._state.extend_condition(condition.build())
            return self

        if self._model is not None and not self._state.freeze_auto_match:
            self._prepare_query_for_model()
        self._state.open_condition(condition.build())
        return self

    def _resolve_channel(self) -> ExecutionChannel:
        if self._channel is not None:
            return self._channel
        registry = getattr(self._model, "registry", None)
        channel = getattr(registry, "channel", None)
        if channel is None:
            raise ConfigurationError(
                "No execution channel bound to this query",
                details=ModelErrorDetails(
                    source="query_builder",
                    operation="fetch",
                    model=type(self._model).__name__ if self._model is not None else None,
                ),
            )
        return channel

    def _soft_delete_variable(self) -> str | None:
        if self._model is None or self._state.with_trashed:
            return None
        return self._model.variable if getattr(self._model, "soft_deletes", False) else None

    # ------------------------------------------------------------------
    # Global methods
    # ------------------------------------------------------------------

    def cypher(self, query: str) -> Self:
        """Append raw Cypher. Raw statements always run in write mode."""
        self._state.append(query)
        self._write()
        return self

    def with_trashed(self) -> Self:
        """Include soft-deleted rows."""
        self._state.with_trashed = True
        return self

    def is_with_trashed(self) -> bool:
        return self._state.with_trashed

    def freeze_auto_match(self) -> Self:
        """Never prepend the model's ``MATCH`` to this query."""
        self._state.freeze_auto_match = True
        return self

    def group(self, callback: RelationCallback) -> Self:
        """Append the rendered text of a sub-query bound to the same model.

        The grouped text never gets the model's MATCH or soft-delete filter
        of its own; both come from this query.
        """
        builder = QueryBuilder(self._model, self._channel).freeze_auto_match()
        result = callback(builder)
        builder = result if isinstance(result, QueryBuilder) else builder
        if builder.mode is AccessMode.WRITE:
            self._write()
        self._state.append(builder._state.render())
        return self

    def to_cypher(self) -> str:
        """Render the query, soft-delete filter included."""
        return self._state.render(self._soft_delete_variable())

    async def fetch(self) -> Collection[Any]:
        """Execute the query and transform the records.

        Returns:
            Collection of models when bound to a model, else of dicts

        Raises:
            QueryExecutionError: If the channel fails
            ConfigurationError: If no channel is available
        """
        query = self.to_cypher()
        mode = self._state.mode
        relations = dict(self._state.relation_aliases)

        update_log_context("cypher", query)
        logger.debug("Executing Cypher query", extra={"query": query, "mode": mode.value})

        try:
            records = await self._resolve_channel().execute(query, mode)
        finally:
            self._state.reset()

        return Transformer(self._model, relations).transform_records(records)

    async def first(self) -> Any:
        """Execute with ``LIMIT 1`` and return the first result or None."""
        self.limit(1)
        return (await self.fetch()).first()

    async def count(self, field: str = "*") -> int:
        """Return ``count(field)`` over the current query."""
        variable = generate_variable("__count")
        result = await self.return_(f"{RAW_PREFIX}count({field}) as {variable}").first()

        if isinstance(result, Mapping):
            result = result.get(variable)
        return int(result) if result is not None else 0

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def with_relation(
        self,
        relation: str,
        callback: RelationCallback | int | None = None,
        limit: int | None = None,
    ) -> Self:
        """Eager-load a relation of the bound model.

        Args:
            relation: Name of the relation method on the model
            callback: Receives the sub-query (bound to the related model) to
                filter it, or an int used as the limit
            limit: Maximum number of related models per parent

        Raises:
            RelationNotFoundError: If the model has no such relation
        """
        return self._with_relation(relation, callback, count=False, limit=limit)

    def with_count_relation(self, relation: str, callback: RelationCallback | None = None) -> Self:
        """Load only the number of related models, as ``<relation>Count``."""
        return self._with_relation(relation, callback, count=True)

    def _with_relation(
        self,
        name: str,
        callback: RelationCallback | int | None,
        count: bool,
        limit: int | None = None,
    ) -> Self:
        if self._model is None:
            return self

        parent = self._model
        relation = parent.resolve_relation(name)
        target = relation.attached_to()
        self._state.relation_aliases[name] = target.variable

        direction: Direction = "<-" if relation.is_reverse else "->"
        builder = QueryBuilder(target, self._channel).freeze_auto_match()
        if self._state.with_trashed:
            builder.with_trashed()

        builder.match(lambda c: c.node(parent.variable, parent.label)).optional_match(
            lambda c: c.node(parent.variable)
            .relationship(relation.variable, relation.relation_name, direction=direction)
            .node(target.variable, target.label)
        )

        if isinstance(callback, int) and not isinstance(callback, bool):
            limit = callback
        elif callable(callback):
            callback(builder)

        cap = f"[..{limit}]" if limit is not None else ""
        aggregate = "count" if count else "collect"
        collection = f"{target.variable}_collection"
        relation_properties = f"{target.variable}_relationProperties"

        builder.with_(
            f"{RAW_PREFIX}{parent.variable}",
            f"{RAW_PREFIX}{aggregate}({relation.variable}){cap} as {relation_properties}",
            f"{RAW_PREFIX}{aggregate}({target.variable}){cap} as {collection}",
            *self._state.requested_relations,
        )
        self._state.append(builder.to_cypher())

        self._state.add_returns(parent.variable, f"{RAW_PREFIX}{collection}", f"{RAW_PREFIX}{relation_properties}")
        self._state.requested_relations.extend([f"{RAW_PREFIX}{collection}", f"{RAW_PREFIX}{relation_properties}"])

        logger.debug("Eager loading relation", extra={"relation": name, "alias": target.variable})
        return self

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    def limit(self, count: int | str) -> Self:
        return self._add_clause(self._clause().limit(count))

    def skip(self, count: int | str) -> Self:
        return self._add_clause(self._clause().skip(count))

    def order_by(self, fields: Any, direction: str | None = None) -> Self:
        return self._add_clause(self._clause().order_by(fields, direction))

    def return_(self, *fields: Any) -> Self:
        """Add a RETURN clause.

        Without fields, returns the aliases accumulated by ``with_relation``,
        or the model itself.
        """
        if not fields:
            fields = tuple(self._state.additional_returns)
        return self._add_clause(self._clause().return_(*fields))

    def with_(self, *fields: Any) -> Self:
        return self._add_clause(self._clause().with_(*fields))

    def node(self, variable: str | None = None, label: Any = None, properties: Mapping[str, Any] | None = None) -> Self:
        return self._add_clause(self._clause().node(variable, label, properties))

    def relationship(
        self,
        variable: Any = None,
        label: Any = None,
        properties: Mapping[str, Any] | None = None,
        direction: Direction = "-",
    ) -> Self:
        return self._add_clause(self._clause().relationship(variable, label, properties, direction))

    def relation(self, variable: Any = None, label: Any = None, properties: Mapping[str, Any] | None = None) -> Self:
        return self._add_clause(self._clause().relation(variable, label, properties))

    def relation_in(self, variable: Any = None, label: Any = None, properties: Mapping[str, Any] | None = None) -> Self:
        return self._add_clause(self._clause().relation_in(variable, label, properties))

    def relation_out(
        self, variable: Any = None, label: Any = None, properties: Mapping[str, Any] | None = None
    ) -> Self:
        return self._add_clause(self._clause().relation_out(variable, label, properties))

    def relate(
        self, variable: str | None = None, label: Any = None, properties: Mapping[str, Any] | None = None
    ) -> Self:
        return self._add_clause(self._clause().relate(variable, label, properties))

    def match(self, patterns: Patterns = None) -> Self:
        """Add a MATCH clause; an explicit match disables the automatic one.

        Example:
            ```python
            query.match(lambda c: c.node("p", "Person").relation_out(":KNOWS").node("f"))
            ```
        """
        return self._add_clause(self._clause().match(patterns), auto_match=False)

    def optional_match(self, patterns: Patterns = None) -> Self:
        return self._add_clause(self._clause().optional_match(patterns), auto_match=False)

    def unwind(self, source: Any, alias: str) -> Self:
        return self._add_clause(self._clause().unwind(source, alias), auto_match=False)

    def create(self, patterns: Patterns = None) -> Self:
        self._write()
        return self._add_clause(self._clause().create(patterns), auto_match=False)

    def merge(self, pattern: Pattern | None = None) -> Self:
        self._write()
        return self._add_clause(self._clause().merge(pattern))

    def delete(self, field: Any = None, detach: bool = True) -> Self:
        """Delete ``field`` (soft delete when the model supports it)."""
        self._write()
        return self._add_clause(self._clause().delete(field, detach))

    def force_delete(self, field: Any = None, detach: bool = True) -> Self:
        self._write()
        return self._add_clause(self._clause().delete(field, detach, force=True))

    def restore(self, field: Any = None) -> Self:
        self._write()
        return self._add_clause(self._clause().restore(field))

    def set(self, field: Any, value: Any = None, operator: str = "=") -> Self:
        self._write()
        return self._add_clause(self._clause().set(field, value, operator))

    update = set

    def remove(self, field: Any) -> Self:
        self._write()
        return self._add_clause(self._clause().remove(field))

    def as_(self, alias: str) -> Self:
        return self._add_clause(self._clause().as_(alias))

    def call(self, target: str | Callable[[Any], Any]) -> Self:
        return self._add_clause(self._clause().call(target))

    def union(self, kind: str | None = None) -> Self:
        return self._add_clause(self._clause().union(kind))

    def on_match(self) -> Self:
        return self._add_clause(self._clause().on_match())

    def on_create(self) -> Self:
        return self._add_clause(self._clause().on_create())

    # ------------------------------------------------------------------
    # Conditions
    # ------------------------------------------------------------------

    def where(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        """Add a condition, opening a WHERE block if needed.

        Example:
            ```python
            query.where("a.age", ">=", 18).and_("a.name", "zorx")
            # WHERE a.age >= 18 AND a.name = 'zorx'
            ```
        """
        return self._add_condition(self._condition().where(field, operator, value))

    def where_not(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._add_condition(self._condition().where_not(field, operator, value))

    def and_(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._add_condition(self._condition().and_(field, operator, value))

    def and_not(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._add_condition(self._condition().and_not(field, operator, value))

    def or_(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._add_condition(self._condition().or_(field, operator, value))

    def or_not(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._add_condition(self._condition().or_not(field, operator, value))

    def xor(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._add_condition(self._condition().xor(field, operator, value))

    def xor_not(self, field: Any | ConditionCallback, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._add_condition(self._condition().xor_not(field, operator, value))

    def where_raw(self, condition: str) -> Self:
        return self._add_condition(self._condition().where_raw(condition))

    def where_between(
        self,
        field: Any,
        low: Any,
        high: Any,
        low_operator: str = "<=",
        high_operator: str = "<=",
    ) -> Self:
        return self._add_condition(self._condition().where_between(field, low, high, low_operator, high_operator))

    def where_exists(self, field: Any) -> Self:
        return self._add_condition(self._condition().where_exists(field))

    def where_id(self, field: Any, identity: Any = UNSET) -> Self:
        return self._add_condition(self._condition().where_id(field, identity))

    def where_id_in(self, field: Any, identities: Any = UNSET) -> Self:
        return self._add_condition(self._condition().where_id_in(field, identities))

    def where_contains(self, field: Any, value: Any) -> Self:
        return self._add_condition(self._condition().where_contains(field, value))

    def where_starts_with(self, field: Any, value: Any) -> Self:
        return self._add_condition(self._condition().where_starts_with(field, value))

    def where_ends_with(self, field: Any, value: Any) -> Self:
        return self._add_condition(self._condition().where_ends_with(field, value))

    def where_regex(self, field: Any, expression: Any) -> Self:
        return self._add_condition(self._condition().where_regex(field, expression))

    def where_in(self, field: Any, values: Any) -> Self:
        return self._add_condition(self._condition().where_in(field, values))

    def where_label(self, field: Any, label: str) -> Self:
        return self._add_condition(self._condition().where_label(field, label))
