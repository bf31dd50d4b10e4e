"""Base model with lifecycle orchestration.

BaseModel owns everything that is independent of the store: the field map,
the identifier slot, lifecycle events, and the composed class operations
(create, find_or_create, update_by_id, ...). Drivers subclass it and
override the storage primitives:

    instance: _fetch, _save, _update, _remove
    class:    find, find_one, find_iterator, count

The identifier is kept apart from the field map. ``id`` and ``_id`` are
reserved names that never appear in ``changes`` or ``to_dict()``.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Mapping
from typing import Any

from mongoforge.model.errors import RecordNotFoundError, UnsavedModelError
from mongoforge.model.lifecycle import LifecycleEvent, ObserverRegistry

IDENTIFIER_FIELDS = ("id", "_id")


class ModelMeta(type):
    """Metaclass that refuses to rebind attributes attached via bind_readonly()."""

    def __setattr__(cls, name: str, value: Any) -> None:
        if name in cls._readonly_attributes:
            raise AttributeError(
                f"Cannot reassign read-only attribute '{name}' of {cls.__name__}"
            )
        super().__setattr__(name, value)


def bind_readonly(model: type, name: str, value: Any) -> None:
    """Attach ``value`` to ``model`` as a class attribute that cannot be rebound."""
    type.__setattr__(model, name, value)
    type.__setattr__(
        model, "_readonly_attributes", model._readonly_attributes | {name}
    )


def _class_name(name: str) -> str:
    """Convert a model name to a class name (e.g. "line_item" -> "LineItem")."""
    parts = re.split(r"[^0-9a-zA-Z]+", name)
    return "".join(part[:1].upper() + part[1:] for part in parts) or "Model"


class BaseModel(metaclass=ModelMeta):
    """A record: a field map plus one identifier.

    Fields are readable as attributes (``model.name``) or through
    ``get()``. Attribute writes are routed through ``set()`` so drivers can
    intercept them. Field names that collide with methods are still
    reachable through ``get()``.
    """

    model_name: str | None = None
    observers: ObserverRegistry = ObserverRegistry()
    _readonly_attributes: frozenset[str] = frozenset()

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        # Every subclass gets its own registry, seeded from its parent's
        if "observers" not in cls.__dict__:
            cls.observers = cls.observers.copy()

    def __init__(self, data: Mapping[str, Any] | None = None, **fields: Any):
        object.__setattr__(self, "_fields", {})
        object.__setattr__(self, "_identifier", None)
        if data:
            self.set(data)
        if fields:
            self.set(fields)

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def set(self, key: str | Mapping[str, Any], value: Any = None) -> BaseModel:
        """Write one field, or every item of a mapping.

        Writing ``id`` or ``_id`` replaces the identifier; any other key
        goes to the field map.
        """
        if isinstance(key, Mapping):
            for name, item in key.items():
                self.set(name, item)
            return self

        if key in IDENTIFIER_FIELDS:
            self._identifier = value
        else:
            self._fields[key] = value
        return self

    def get(self, key: str, default: Any = None) -> Any:
        if key in IDENTIFIER_FIELDS:
            return self.id
        return self._fields.get(key, default)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails
        fields = self.__dict__.get("_fields")
        if fields is not None and name in fields:
            return fields[name]
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute '{name}'"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") and name not in IDENTIFIER_FIELDS:
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    @property
    def id(self) -> Any:
        return self._identifier

    @property
    def _id(self) -> Any:
        return self._identifier

    @property
    def is_new(self) -> bool:
        return self._identifier is None

    @property
    def changes(self) -> dict[str, Any]:
        """Fields to write on insert/update. Never includes the identifier."""
        return dict(self._fields)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BaseModel):
            return (
                type(self) is type(other)
                and self.id == other.id
                and self._fields == other._fields
            )
        if isinstance(other, Mapping):
            return self._fields == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} {self._fields!r}>"

    # ------------------------------------------------------------------
    # Storage primitives (implemented by drivers)
    # ------------------------------------------------------------------

    async def _fetch(self) -> Mapping[str, Any] | None:
        raise NotImplementedError

    async def _save(self) -> Mapping[str, Any]:
        raise NotImplementedError

    async def _update(self) -> Any:
        raise NotImplementedError

    async def _remove(self) -> Any:
        raise NotImplementedError

    @classmethod
    async def find(cls, query: dict | None = None, **options: Any) -> list[BaseModel]:
        raise NotImplementedError

    @classmethod
    async def find_one(cls, query: dict | None = None, **options: Any) -> BaseModel | None:
        raise NotImplementedError

    @classmethod
    def find_iterator(cls, query: dict | None = None, **options: Any) -> AsyncIterator[BaseModel]:
        raise NotImplementedError

    @classmethod
    async def count(cls, query: dict | None = None) -> int:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Instance lifecycle
    # ------------------------------------------------------------------

    async def emit(self, event: LifecycleEvent) -> None:
        await type(self).observers.notify(event, self)

    async def save(self) -> BaseModel:
        """Insert a new record or write the changes of a persisted one."""
        if self.is_new:
            await self.emit(LifecycleEvent.VALIDATE)
            await self.emit(LifecycleEvent.BEFORE_CREATE)
            await self.emit(LifecycleEvent.BEFORE_SAVE)
            self.set(await self._save())
            await self.emit(LifecycleEvent.AFTER_SAVE)
            await self.emit(LifecycleEvent.AFTER_CREATE)
        else:
            await self.emit(LifecycleEvent.VALIDATE)
            await self.emit(LifecycleEvent.BEFORE_UPDATE)
            await self.emit(LifecycleEvent.BEFORE_SAVE)
            await self._update()
            await self.emit(LifecycleEvent.AFTER_SAVE)
            await self.emit(LifecycleEvent.AFTER_UPDATE)
        return self

    async def fetch(self) -> BaseModel:
        """Reload this record's fields from the store."""
        if self.is_new:
            raise UnsavedModelError("fetch")

        await self.emit(LifecycleEvent.BEFORE_FETCH)
        data = await self._fetch()
        if data is None:
            raise RecordNotFoundError()
        self.set(data)
        await self.emit(LifecycleEvent.AFTER_FETCH)
        return self

    async def update(self, data: Mapping[str, Any] | None = None) -> BaseModel:
        """Apply ``data`` to this persisted record and save it."""
        if self.is_new:
            raise UnsavedModelError("update")
        if data:
            self.set(data)
        return await self.save()

    async def remove(self) -> BaseModel:
        """Delete this record. The model is new again afterwards."""
        if self.is_new:
            raise UnsavedModelError("remove")

        await self.emit(LifecycleEvent.BEFORE_REMOVE)
        await self._remove()
        await self.emit(LifecycleEvent.AFTER_REMOVE)
        return self

    # ------------------------------------------------------------------
    # Class composition
    # ------------------------------------------------------------------

    @classmethod
    def make_model(cls, name: str) -> type[BaseModel]:
        """Create a new model type named ``name`` deriving from this class."""
        namespace = {
            "model_name": name,
            "__module__": cls.__module__,
        }
        return type(cls)(_class_name(name), (cls,), namespace)

    @classmethod
    def build(cls, data: Mapping[str, Any] | None = None) -> BaseModel:
        """Construct an instance without touching the store."""
        return cls(data)

    @classmethod
    async def create(cls, data: Mapping[str, Any] | None = None) -> BaseModel:
        return await cls.build(data).save()

    @classmethod
    async def find_by_id(cls, id: Any) -> BaseModel | None:
        return await cls.find_one({"id": id})

    @classmethod
    async def find_or_create(
        cls, query: Mapping[str, Any], data: Mapping[str, Any] | None = None
    ) -> BaseModel:
        model = await cls.find_one(dict(query))
        if model is None:
            model = await cls.create({**query, **(data or {})})
        return model

    @classmethod
    async def create_or_update(
        cls, query: Mapping[str, Any], data: Mapping[str, Any]
    ) -> BaseModel:
        model = await cls.find_one(dict(query))
        if model is None:
            return await cls.create({**query, **data})
        return await model.update(data)

    @classmethod
    async def update_one(
        cls, query: Mapping[str, Any], data: Mapping[str, Any]
    ) -> BaseModel | None:
        model = await cls.find_one(dict(query))
        if model is None:
            return None
        return await model.update(data)

    @classmethod
    async def update_by_id(cls, id: Any, data: Mapping[str, Any]) -> BaseModel:
        model = await cls.find_by_id(id)
        if model is None:
            raise RecordNotFoundError()
        return await model.update(data)

    @classmethod
    async def update_many(
        cls, query: Mapping[str, Any] | None, data: Mapping[str, Any]
    ) -> list[BaseModel]:
        updated = []
        for model in await cls.find(dict(query or {})):
            updated.append(await model.update(data))
        return updated

    @classmethod
    async def update_iterator(
        cls, query: Mapping[str, Any] | None, data: Mapping[str, Any]
    ) -> AsyncIterator[BaseModel]:
        async for model in cls.find_iterator(dict(query or {})):
            yield await model.update(data)

    @classmethod
    async def remove_one(cls, query: Mapping[str, Any]) -> BaseModel | None:
        model = await cls.find_one(dict(query))
        if model is None:
            return None
        return await model.remove()

    @classmethod
    async def remove_by_id(cls, id: Any) -> BaseModel:
        model = await cls.find_by_id(id)
        if model is None:
            raise RecordNotFoundError()
        return await model.remove()

    @classmethod
    async def remove_many(cls, query: Mapping[str, Any] | None = None) -> list[BaseModel]:
        removed = []
        for model in await cls.find(dict(query or {})):
            removed.append(await model.remove())
        return removed

    @classmethod
    async def remove_iterator(
        cls, query: Mapping[str, Any] | None = None
    ) -> AsyncIterator[BaseModel]:
        async for model in cls.find_iterator(dict(query or {})):
            yield await model.remove()
