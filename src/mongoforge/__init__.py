"""mongoforge - MongoDB persistence adapter for lifecycle-managed models."""

from mongoforge.model import BaseModel, LifecycleEvent, Modeller
from mongoforge.persistence import mongo_driver

__version__ = "0.1.0"

__all__ = ["BaseModel", "LifecycleEvent", "Modeller", "mongo_driver"]
