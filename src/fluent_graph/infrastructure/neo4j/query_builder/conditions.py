"""Predicate builder for WHERE blocks.

Conditions render left to right exactly as written; nothing is re-associated.
Group with a callback when precedence matters::

    ConditionBuilder().where("a.name", "Peter").or_not(
        lambda c: c.where("n.name", "Timothy").or_("n.name", "Peter")
    ).build()
    # a.name = 'Peter' OR NOT (n.name = 'Timothy' OR n.name = 'Peter')
"""

from collections.abc import Callable
from typing import Any, Self

from fluent_graph.infrastructure.neo4j.query_builder.encoding import (
    VariableOwner,
    encode_field,
    encode_value,
)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Distinguishes "argument omitted" from an explicit None (rendered as null)
UNSET: Any = _Unset()


class ConditionBuilder:
    """Fluent builder for boolean conditions."""

    def __init__(self, owner: VariableOwner | None = None) -> None:
        self._owner = owner
        self._conditions: list[str] = []

    def build(self) -> str:
        return " ".join(self._conditions)

    def _convert(self, field: Any) -> Any:
        return encode_field(field, self._owner)

    def _push(self, condition: str) -> Self:
        self._conditions.append(condition)
        return self

    def _compare(self, prefix: str, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        field = self._convert(field)

        if callable(field):
            nested = ConditionBuilder(self._owner)
            result = field(nested)
            return self._push(f"{prefix}({(result if result is not None else nested).build()})")

        if value is UNSET:
            # Two-argument form: the operator slot holds the value
            operand = None if operator is UNSET else operator
            return self._push(f"{prefix}{field} = {encode_value(operand)}")

        return self._push(f"{prefix}{field} {operator} {encode_value(value)}")

    def where(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        """Compare a field with a value.

        Args:
            field: Field reference, or a callback building a nested group
            operator: Comparison operator, or the value for an equality test
            value: Value compared with ``operator``; ``$`` prefixed strings
                are identifiers, not literals

        Example:
            ```python
            builder.where("a.age", ">=", 18)      # a.age >= 18
            builder.where("a.name", "$b.name")    # a.name = b.name
            ```
        """
        return self._compare("", field, operator, value)

    def where_not(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._compare("NOT ", field, operator, value)

    def and_(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._compare("AND ", field, operator, value)

    def and_not(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._compare("AND NOT ", field, operator, value)

    def or_(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._compare("OR ", field, operator, value)

    def or_not(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._compare("OR NOT ", field, operator, value)

    def xor(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._compare("XOR ", field, operator, value)

    def xor_not(self, field: Any, operator: Any = UNSET, value: Any = UNSET) -> Self:
        return self._compare("XOR NOT ", field, operator, value)

    def where_raw(self, condition: str) -> Self:
        return self._push(condition)

    def where_between(
        self,
        field: Any,
        low: Any,
        high: Any,
        low_operator: str = "<=",
        high_operator: str = "<=",
    ) -> Self:
        """``low <= field <= high`` with configurable bounds."""
        field = self._convert(field)
        return self._push(f"{encode_value(low)} {low_operator} {field} {high_operator} {encode_value(high)}")

    def where_exists(self, field: Any) -> Self:
        return self._push(f"exists({self._convert(field)})")

    def where_id(self, field: Any, identity: Any = UNSET) -> Self:
        """``id(field) = identity``; with one argument the field is the owner.

        The identity is inlined as given, without quoting.
        """
        if identity is UNSET:
            field, identity = "", field
        return self._push(f"id({self._convert(field)}) = {identity}")

    def where_id_in(self, field: Any, identities: Any = UNSET) -> Self:
        if identities is UNSET:
            field, identities = "", field
        return self._push(f"id({self._convert(field)}) IN {encode_value(identities)}")

    def where_contains(self, field: Any, value: Any) -> Self:
        return self._push(f"{self._convert(field)} CONTAINS {encode_value(value)}")

    def where_starts_with(self, field: Any, value: Any) -> Self:
        return self._push(f"{self._convert(field)} STARTS WITH {encode_value(value)}")

    def where_ends_with(self, field: Any, value: Any) -> Self:
        return self._push(f"{self._convert(field)} ENDS WITH {encode_value(value)}")

    def where_regex(self, field: Any, expression: Any) -> Self:
        return self._push(f"{self._convert(field)} =~ {encode_value(expression)}")

    def where_in(self, field: Any, values: Any) -> Self:
        return self._push(f"{self._convert(field)} IN {encode_value(values)}")

    def where_label(self, field: Any, label: str) -> Self:
        return self._push(f"{self._convert(field)}:{label}")


ConditionCallback = Callable[[ConditionBuilder], ConditionBuilder | None]
