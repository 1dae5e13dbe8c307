"""Shared pytest fixtures for fluent-graph tests."""

import pytest

from fluent_graph.core.logging import clear_log_context
from fluent_graph.domain import ModelRegistry
from tests.fakes import FakeChannel
from tests.sample_models import SAMPLE_MODELS


@pytest.fixture
def channel() -> FakeChannel:
    """Recording execution channel with no queued responses."""
    return FakeChannel()


@pytest.fixture
def registry(channel: FakeChannel) -> ModelRegistry:
    """Registry holding every sample model, bound to the fake channel."""
    registry = ModelRegistry(channel)
    registry.register(*SAMPLE_MODELS)
    try:
        yield registry
    finally:
        for model in SAMPLE_MODELS:
            model.registry = None


@pytest.fixture(autouse=True)
def _clean_log_context() -> None:
    clear_log_context()
