"""Model layer - field handling, lifecycle events and class composition.

Drivers (see mongoforge.persistence) subclass BaseModel and implement the
storage primitives; everything else lives here.
"""

from mongoforge.model.base import BaseModel, ModelMeta, bind_readonly
from mongoforge.model.errors import (
    ModelError,
    RecordNotFoundError,
    RecordNotRemovedError,
    UnsavedModelError,
)
from mongoforge.model.lifecycle import LifecycleEvent, Observer, ObserverRegistry
from mongoforge.model.modeller import Modeller

__all__ = [
    "BaseModel",
    "LifecycleEvent",
    "ModelError",
    "ModelMeta",
    "Modeller",
    "Observer",
    "ObserverRegistry",
    "RecordNotFoundError",
    "RecordNotRemovedError",
    "UnsavedModelError",
    "bind_readonly",
]
