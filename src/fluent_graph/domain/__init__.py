"""Domain layer: models, relations and their registry."""

from .collection import Collection
from .models import Model
from .registry import ModelRegistry
from .relations import BaseRelation, RelatedToMany, RelatedToOne

__all__ = [
    "BaseRelation",
    "Collection",
    "Model",
    "ModelRegistry",
    "RelatedToMany",
    "RelatedToOne",
]
