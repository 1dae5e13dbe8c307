"""Statement sequence bookkeeping for the query builder.

The builder keeps its query as an ordered list of text blocks. Blocks are
opaque except for their leading keyword, which is enough to decide where an
automatic ``MATCH`` or a soft-delete filter has to go.
"""

from dataclasses import dataclass, field
from enum import Enum

from fluent_graph.infrastructure.neo4j.query_builder.interfaces import AccessMode


class ClauseType(Enum):
    """Cypher keywords a statement block can start with."""

    # Core clauses
    MATCH = "MATCH"
    OPTIONAL_MATCH = "OPTIONAL MATCH"
    WHERE = "WHERE"
    RETURN = "RETURN"
    WITH = "WITH"

    # Data manipulation
    CREATE = "CREATE"
    MERGE = "MERGE"
    DELETE = "DELETE"
    DETACH_DELETE = "DETACH DELETE"
    SET = "SET"
    REMOVE = "REMOVE"
    ON_MATCH = "ON MATCH"
    ON_CREATE = "ON CREATE"

    # Pagination and ordering
    SKIP = "SKIP"
    LIMIT = "LIMIT"
    ORDER_BY = "ORDER BY"

    # Miscellaneous
    CALL = "CALL"
    UNION = "UNION"
    UNWIND = "UNWIND"
    AS = "AS"

    def starts(self, statement: str) -> bool:
        """Whether ``statement`` begins with this keyword as a whole word."""
        keyword = self.value
        if not statement.startswith(keyword):
            return False
        rest = statement[len(keyword) :]
        return not rest or not (rest[0].isalnum() or rest[0] == "_")

    @classmethod
    def of(cls, statement: str) -> "ClauseType | None":
        """Classify a statement block by its leading keyword."""
        # Longest keywords first so DETACH DELETE never reads as DELETE
        for clause in sorted(cls, key=lambda c: len(c.value), reverse=True):
            if clause.starts(statement):
                return clause
        return None


@dataclass
class QueryState:
    """Mutable state of one logical query.

    ``writing_condition`` is true while predicates are being appended to the
    trailing ``WHERE`` block; any other statement closes that block.
    """

    statements: list[str] = field(default_factory=list)
    mode: AccessMode = AccessMode.READ
    with_trashed: bool = False
    writing_condition: bool = False
    freeze_auto_match: bool = False
    requested_relations: list[str] = field(default_factory=list)
    additional_returns: list[str] = field(default_factory=list)
    # relation name -> variable of its eager-loaded target
    relation_aliases: dict[str, str] = field(default_factory=dict)

    def reset(self) -> None:
        """Return to the empty state."""
        self.statements = []
        self.mode = AccessMode.READ
        self.with_trashed = False
        self.writing_condition = False
        self.freeze_auto_match = False
        self.requested_relations = []
        self.additional_returns = []
        self.relation_aliases = {}

    def append(self, statement: str) -> None:
        self.statements.append(statement)
        self.writing_condition = False

    def prepend(self, statement: str) -> None:
        self.statements.insert(0, statement)

    def open_condition(self, predicate: str) -> None:
        self.append(f"{ClauseType.WHERE.value} {predicate}")
        self.writing_condition = True

    def extend_condition(self, predicate: str) -> None:
        self.statements[-1] = f"{self.statements[-1]} {predicate}"

    def leads_with(self, clause: ClauseType) -> bool:
        return bool(self.statements) and clause.starts(self.statements[0])

    def add_returns(self, *aliases: str) -> None:
        for alias in aliases:
            if alias not in self.additional_returns:
                self.additional_returns.append(alias)

    def render(self, soft_delete_variable: str | None = None) -> str:
        """Join the statements, injecting the soft-delete filter if asked to.

        Rendering never mutates the stored statements, so rendering twice
        yields the same text.
        """
        statements = list(self.statements)
        if soft_delete_variable:
            statements = filter_soft_deletes(statements, soft_delete_variable)
        return " ".join(statements)


def last_index(statements: list[str], clause: ClauseType) -> int:
    for index in range(len(statements) - 1, -1, -1):
        if clause.starts(statements[index]):
            return index
    return -1


def filter_soft_deletes(statements: list[str], variable: str) -> list[str]:
    """Exclude soft-deleted ``variable`` rows from a statement list.

    The filter joins the last ``WHERE`` block if there is one, otherwise it
    becomes a new ``WHERE`` right after the last ``OPTIONAL MATCH``, or else
    after the last ``MATCH``.
    """
    statements = list(statements)
    test = f"NOT exists({variable}.deleted_at)"

    where_index = last_index(statements, ClauseType.WHERE)
    if where_index > -1:
        predicate = statements[where_index][len(ClauseType.WHERE.value) :].strip()
        statements[where_index] = f"WHERE {test} AND ({predicate})" if predicate else f"WHERE {test}"
        return statements

    anchor = last_index(statements, ClauseType.OPTIONAL_MATCH)
    if anchor == -1:
        anchor = last_index(statements, ClauseType.MATCH)
    if anchor > -1:
        statements.insert(anchor + 1, f"WHERE {test}")

    return statements
