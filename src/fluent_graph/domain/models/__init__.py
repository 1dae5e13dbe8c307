from .attributes import AttributeContainer
from .base import Model

__all__ = ["AttributeContainer", "Model"]
