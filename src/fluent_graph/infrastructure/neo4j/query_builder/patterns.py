"""Pattern builders for Cypher queries.

This module provides the node and relationship fragments of a path and the
fluent ``PatternBuilder`` that chains them. A chain renders its fragments
separated by single spaces::

    (charlie:Person { name: 'Charlie Sheen' }) -[:ACTED_IN]-> (movie)
"""

from collections.abc import Callable, Mapping
from typing import Any, Literal, Self, TypeVar

from fluent_graph.infrastructure.neo4j.query_builder.encoding import VariableOwner, encode_value

Direction = Literal["->", "<-", "-"]

_ARROWS: dict[str, tuple[str, str]] = {
    "-": ("-", "-"),
    "<-": ("<-", "-"),
    "->": ("-", "->"),
}

B = TypeVar("B", bound="PatternBuilder")


def pattern_body(
    variable: str | None = None,
    label: str | Mapping[str, Any] | None = None,
    properties: Mapping[str, Any] | None = None,
) -> str:
    """Render ``variable:label { props }`` without surrounding brackets.

    A mapping passed as ``label`` is taken as the property map. Every part
    is optional and an empty property map renders nothing.
    """
    if isinstance(label, Mapping):
        properties, label = label, None

    body = variable or ""
    if label:
        body += f":{label}"
    if properties:
        body += f" {encode_value(properties)}"
    return body


class NodePattern:
    """A node pattern like ``(n:Label { prop: value })``."""

    def __init__(
        self,
        variable: str | None = None,
        label: str | Mapping[str, Any] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> None:
        self.variable = variable
        self.label = label
        self.properties = properties

    def build(self) -> str:
        return f"({pattern_body(self.variable, self.label, self.properties)})"


class RelationshipPattern:
    """A relationship pattern like ``-[r:TYPE { prop: value }]->``.

    ``body`` is the already rendered bracket content; an empty body drops
    the brackets entirely (``--``, ``<--``, ``-->``).
    """

    def __init__(self, body: str = "", direction: Direction = "-") -> None:
        self.body = body
        self.direction: Direction = direction

    def build(self) -> str:
        left, right = _ARROWS[self.direction]
        return f"{left}[{self.body}]{right}" if self.body else f"{left}{right}"


class PatternBuilder:
    """Fluent builder for Cypher paths.

    Callbacks passed to any method receive a brand new builder bound to the
    same owner; their output is folded into this builder only once the
    callback returns.
    """

    def __init__(self, owner: VariableOwner | None = None) -> None:
        self._owner = owner
        self._fragments: list[str] = []

    @property
    def owner(self) -> VariableOwner | None:
        return self._owner

    def spawn(self) -> Self:
        """Create an empty builder of the same kind bound to the same owner."""
        return type(self)(self._owner)

    def nested(self, callback: Callable[[B], B | None], separator: str = " ") -> str:
        """Run ``callback`` on a fresh builder and render what it produced."""
        builder = self.spawn()
        result = callback(builder)
        return (result if result is not None else builder).build(separator)

    def append(self, fragment: str) -> Self:
        self._fragments.append(fragment)
        return self

    def build(self, separator: str = " ") -> str:
        """Build the accumulated fragments.

        Args:
            separator: Joiner between fragments, ``|`` for relationship type
                alternatives

        Returns:
            Cypher text
        """
        return separator.join(self._fragments)

    def node(
        self,
        variable: str | None = None,
        label: str | Mapping[str, Any] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> Self:
        """Add a node pattern.

        Example:
            ```python
            builder.node("director", "Person", {"name": "Oliver Stone"})
            # (director:Person { name: 'Oliver Stone' })
            ```
        """
        return self.append(NodePattern(variable, label, properties).build())

    def relationship(
        self,
        variable: str | Callable[[Any], Any] | None = None,
        label: str | Mapping[str, Any] | None = None,
        properties: Mapping[str, Any] | None = None,
        direction: Direction = "-",
    ) -> Self:
        """Add a relationship pattern.

        Args:
            variable: Relationship variable, or a callback whose ``relate``
                calls become ``|`` separated alternatives
            label: Relationship type (or the property map)
            properties: Relationship properties
            direction: ``->`` outgoing, ``<-`` incoming, ``-`` undirected

        Returns:
            Self for method chaining
        """
        if callable(variable):
            body = self.nested(variable, separator="|")
        else:
            body = pattern_body(variable, label, properties)
        return self.append(RelationshipPattern(body, direction).build())

    def relation(
        self,
        variable: str | Callable[[Any], Any] | None = None,
        label: str | Mapping[str, Any] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> Self:
        """Undirected relationship, ``-[...]-``."""
        return self.relationship(variable, label, properties, direction="-")

    def relation_in(
        self,
        variable: str | Callable[[Any], Any] | None = None,
        label: str | Mapping[str, Any] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> Self:
        """Incoming relationship, ``<-[...]-``."""
        return self.relationship(variable, label, properties, direction="<-")

    def relation_out(
        self,
        variable: str | Callable[[Any], Any] | None = None,
        label: str | Mapping[str, Any] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> Self:
        """Outgoing relationship, ``-[...]->``."""
        return self.relationship(variable, label, properties, direction="->")

    def relate(
        self,
        variable: str | None = None,
        label: str | Mapping[str, Any] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> Self:
        """Add a bare relationship body, used inside a ``relation`` callback."""
        return self.append(pattern_body(variable, label, properties))
