"""Keyword clauses on top of the path builder.

``ClauseBuilder`` is what callbacks given to ``match``, ``merge``, ``call``
and friends receive, so that a nested sub-query can use every clause, not
only node and relationship fragments.
"""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, Self

from fluent_graph.core.config import settings
from fluent_graph.infrastructure.neo4j.query_builder.encoding import (
    RAW_PREFIX,
    encode_field,
    encode_value,
)
from fluent_graph.infrastructure.neo4j.query_builder.patterns import PatternBuilder

Pattern = Callable[[Any], Any] | PatternBuilder | str
Patterns = Pattern | Sequence[Pattern] | None


def timestamp() -> str:
    """Current local time formatted with ``settings.date_format``."""
    return datetime.now().strftime(settings.date_format)


class ClauseBuilder(PatternBuilder):
    """Fluent builder for Cypher clauses and the patterns inside them."""

    def _convert(self, field: Any) -> Any:
        return encode_field(field, self._owner)

    def _render_pattern(self, pattern: Pattern) -> str:
        if isinstance(pattern, PatternBuilder):
            return pattern.build()
        if callable(pattern):
            return self.nested(pattern)
        return str(pattern)

    def _render_patterns(self, patterns: Patterns) -> str:
        if patterns is None:
            return ""
        if isinstance(patterns, str) or not isinstance(patterns, Sequence):
            patterns = [patterns]
        rendered = (self._render_pattern(pattern) for pattern in patterns)
        return ",".join(f" {text}" if text else "" for text in rendered)

    def match(self, patterns: Patterns = None) -> Self:
        """``MATCH`` one pattern or several comma separated ones."""
        return self.append(f"MATCH{self._render_patterns(patterns)}")

    def optional_match(self, patterns: Patterns = None) -> Self:
        return self.append(f"OPTIONAL MATCH{self._render_patterns(patterns)}")

    def create(self, patterns: Patterns = None) -> Self:
        return self.append(f"CREATE{self._render_patterns(patterns)}")

    def merge(self, pattern: Pattern | None = None) -> Self:
        rendered = self._render_pattern(pattern) if pattern is not None else ""
        return self.append(f"MERGE {rendered}" if rendered else "MERGE")

    def limit(self, count: int | str) -> Self:
        return self.append(f"LIMIT {count}")

    def skip(self, count: int | str) -> Self:
        return self.append(f"SKIP {count}")

    def order_by(self, fields: Any, direction: str | None = None) -> Self:
        """Add an ORDER BY clause.

        Args:
            fields: A field, a mapping of field to direction, or a list of either
            direction: Direction applied to plain fields (``ASC``/``DESC``)

        Example:
            ```python
            builder.order_by([{"a.name": "DESC"}, "b.name"])
            # ORDER BY a.name DESC,b.name
            ```
        """
        suffix = f" {direction}" if direction else ""
        if isinstance(fields, str) or not isinstance(fields, Sequence):
            fields = [fields]

        parts: list[str] = []
        for field in fields:
            if isinstance(field, Mapping):
                parts.append(",".join(f"{self._convert(key)} {value}" for key, value in field.items()))
            else:
                parts.append(f"{self._convert(field)}{suffix}")

        return self.append("ORDER BY " + ",".join(parts))

    def return_(self, *fields: Any) -> Self:
        """``RETURN`` the given fields; no field returns the owner itself."""
        converted = [self._convert(field) for field in fields] if fields else [self._convert("")]
        return self.append("RETURN " + ",".join(str(field) for field in converted))

    def with_(self, *fields: Any) -> Self:
        return self.append("WITH " + ",".join(str(self._convert(field)) for field in fields))

    def unwind(self, source: Any, alias: str) -> Self:
        """``UNWIND source AS alias``; string sources are expressions, not literals."""
        source = RAW_PREFIX + source if isinstance(source, str) else source
        return self.append(f"UNWIND {encode_value(source)} AS {encode_value(RAW_PREFIX + alias)}")

    def delete(self, field: Any = None, detach: bool = True, force: bool = False) -> Self:
        """Delete ``field``, or mark it deleted when the owner soft-deletes.

        Args:
            field: Variable to delete, defaults to the owner
            detach: Emit ``DETACH DELETE``
            force: Really delete even when the owner soft-deletes
        """
        field = self._convert(field)

        if getattr(self._owner, "soft_deletes", False) and not force:
            return self.set(f"{RAW_PREFIX}{field}.deleted_at", timestamp())

        statement = f"DELETE {field}"
        return self.append(f"DETACH {statement}" if detach else statement)

    def restore(self, field: Any = None) -> Self:
        return self.append(f"SET {self._convert(field)}.deleted_at = null")

    def set(self, field: Any, value: Any = None, operator: str = "=") -> Self:
        """Add a SET clause.

        Args:
            field: Property, variable, or a mapping of property to value
            value: Value assigned when ``field`` is not a mapping
            operator: ``=`` replaces, ``+=`` merges a map into a variable

        Example:
            ```python
            builder.set("p", {"name": "Amine"})           # SET p = { name: 'Amine' }
            builder.set({"p.name": "Amine", "p.age": 3})  # SET p.name = 'Amine',p.age = 3
            ```
        """
        if isinstance(field, Mapping):
            body = ",".join(f"{self._convert(key)} {operator} {encode_value(val)}" for key, val in field.items())
        else:
            body = f"{self._convert(field)} {operator} {encode_value(value)}"
        return self.append(f"SET {body}")

    def remove(self, field: Any) -> Self:
        return self.append(f"REMOVE {self._convert(field)}")

    def as_(self, alias: str) -> Self:
        # Aliases are new names, never owner properties
        return self.append(f"AS {encode_field(alias)}")

    def call(self, target: str | Callable[[Any], Any]) -> Self:
        """``CALL procedure`` or ``CALL { sub-query }``."""
        body = f"{{ {self.nested(target)} }}" if callable(target) else target
        return self.append(f"CALL {body}")

    def union(self, kind: str | None = None) -> Self:
        return self.append(f"UNION {kind}" if kind else "UNION")

    def on_match(self) -> Self:
        return self.append("ON MATCH")

    def on_create(self) -> Self:
        return self.append("ON CREATE")
