"""Logging context and processors."""

from fluent_graph.core.logging import (
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
    update_log_context,
)
from fluent_graph.core.logging.setup import add_query_context


class TestLogContext:
    def test_starts_empty(self) -> None:
        assert get_log_context() == {}

    def test_update(self) -> None:
        update_log_context("cypher", "RETURN 1")
        update_log_context("mode", "read")

        assert get_log_context() == {"cypher": "RETURN 1", "mode": "read"}

    def test_get_returns_a_copy(self) -> None:
        get_log_context()["leak"] = True
        assert "leak" not in get_log_context()

    def test_set_and_clear(self) -> None:
        set_log_context({"a": 1})
        assert get_log_context() == {"a": 1}

        clear_log_context()
        assert get_log_context() == {}


class TestAddQueryContext:
    def test_adds_error_type(self) -> None:
        event = add_query_context(None, "error", {"event": "failed", "error": KeyError("x")})
        assert event["error_type"] == "KeyError"

    def test_shortens_query(self) -> None:
        query = "MATCH (n) " * 50

        event = add_query_context(None, "debug", {"event": "run", "extra": {"query": query}})

        assert event["cypher"] == query[:200]

    def test_leaves_other_events_alone(self) -> None:
        event = {"event": "hello", "extra": {"count": 1}}
        assert add_query_context(None, "info", dict(event)) == event


def test_get_logger_returns_bound_logger() -> None:
    logger = get_logger(__name__)
    assert hasattr(logger, "debug") and hasattr(logger, "bind")
