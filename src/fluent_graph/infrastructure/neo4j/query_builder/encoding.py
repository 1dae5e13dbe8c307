"""Literal and identifier encoding for Cypher fragments.

Values are inlined into the statement text rather than sent as parameters.
A string starting with ``$`` is treated as an expression that is already
valid Cypher (an identifier, a function call, a driver parameter once the
prefix is doubled) and is emitted without quoting.
"""

import itertools
import random
import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Protocol

RAW_PREFIX = "$"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Seeded once per process; monotonic so two entities never share a variable.
_variable_suffix = itertools.count(random.randint(1, 100_000))


class VariableOwner(Protocol):
    """Anything carrying a Cypher variable (a model or a relation)."""

    variable: str


def quote(text: str) -> str:
    """Render ``text`` as a single-quoted Cypher string literal."""
    escaped = text.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _encode_key(key: Any) -> str:
    key = str(key)
    return key if _IDENTIFIER.match(key) else f"`{key.replace('`', '``')}`"


def encode_value(value: Any) -> str:
    """Encode a Python value as a Cypher literal.

    Warning:
        Any string starting with ``$`` is emitted as raw Cypher, including
        user data such as ``"$100"``. Reject or strip a leading ``$`` from
        untrusted input before it reaches the builder.

    Examples:
        >>> encode_value("John")
        "'John'"
        >>> encode_value({"name": "John", "age": 3})
        "{ name: 'John', age: 3 }"
        >>> encode_value([1, 2, 3])
        '[1,2,3]'
        >>> encode_value("$b.name")
        'b.name'
    """
    if isinstance(value, str):
        if value.startswith(RAW_PREFIX):
            return value[len(RAW_PREFIX) :]
        return quote(value)

    if value is None:
        return "null"

    # bool first: it is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, int | float | Decimal):
        return str(value)

    if isinstance(value, Mapping):
        if not value:
            return "{}"
        items = ", ".join(f"{_encode_key(k)}: {encode_value(v)}" for k, v in value.items())
        return f"{{ {items} }}"

    if isinstance(value, list | tuple | set | frozenset):
        return "[" + ",".join(encode_value(item) for item in value) + "]"

    return quote(str(value))


def encode_field(field: Any, owner: VariableOwner | None = None) -> Any:
    """Qualify a field reference against the owning entity's variable.

    Callables (nested builders) and other non-string values are returned
    unchanged for the caller to deal with.
    """
    if not field and owner is not None:
        return owner.variable

    if not isinstance(field, str):
        return field

    if field.startswith(RAW_PREFIX):
        return field[len(RAW_PREFIX) :]

    if owner is None or field.startswith(owner.variable):
        return field

    return f"{owner.variable}.{field}"


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def generate_variable(*names: str) -> str:
    """Build a fresh Cypher variable from one or more type names.

    ``generate_variable("Person")`` gives something like ``person48213`` and
    ``generate_variable("Person", "Movie")`` something like
    ``person_movie48214``.
    """
    return "_".join(snake_case(name) for name in names) + str(next(_variable_suffix))
