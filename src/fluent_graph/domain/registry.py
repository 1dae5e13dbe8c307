"""Model registry.

Maps names to model classes so relations can reference a model by name
before it is defined, and hands the default execution channel to every
model bound to it.
"""

from typing import TYPE_CHECKING, Any

from fluent_graph.core import ModelErrorDetails
from fluent_graph.core.errors import ConfigurationError
from fluent_graph.core.logging import get_logger
from fluent_graph.infrastructure.neo4j.query_builder.interfaces import ExecutionChannel

if TYPE_CHECKING:
    from fluent_graph.domain.models.base import Model

logger = get_logger(__name__)


class ModelRegistry:
    """Name to model class bindings plus the shared execution channel."""

    def __init__(self, channel: ExecutionChannel | None = None) -> None:
        self.channel = channel
        self._bindings: dict[str, type["Model"]] = {}

    def bind(self, name: str, model: type["Model"]) -> type["Model"]:
        """Bind ``model`` under ``name`` and attach this registry to it."""
        self._bindings[name] = model
        model.registry = self
        logger.debug("Model bound", extra={"name": name, "model": model.__name__})
        return model

    def register(self, *models: type["Model"]) -> None:
        """Bind each model under its class name."""
        for model in models:
            self.bind(model.__name__, model)

    def use(self, name: str) -> type["Model"]:
        """Return the model bound under ``name``.

        Raises:
            ConfigurationError: If nothing is bound under that name
        """
        try:
            return self._bindings[name]
        except KeyError:
            raise ConfigurationError(
                f"No model bound under name {name!r}",
                details=ModelErrorDetails(
                    source="registry",
                    operation="use",
                    model=name,
                    expected=", ".join(sorted(self._bindings)) or None,
                ),
            ) from None

    def resolve(self, ref: "type[Model] | str") -> type["Model"]:
        return self.use(ref) if isinstance(ref, str) else ref

    def get_bindings(self) -> dict[str, type["Model"]]:
        return dict(self._bindings)

    def __contains__(self, name: Any) -> bool:
        return name in self._bindings
