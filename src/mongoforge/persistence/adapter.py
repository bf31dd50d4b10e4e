"""ModelDriver Protocol - the storage primitives a driver supplies to BaseModel."""

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ModelDriver(Protocol):
    """Interface every store-backed model type must implement.

    BaseModel composes its lifecycle (save, fetch, update, remove) and the
    class helpers (create, find_or_create, update_by_id, ...) out of these
    primitives. MongoDatabaseModel is the MongoDB implementation.
    """

    @property
    def changes(self) -> dict[str, Any]: ...

    @property
    def id_query(self) -> dict[str, Any]: ...

    def set(self, key: Any, value: Any = None) -> Any: ...

    async def _fetch(self) -> dict[str, Any] | None: ...

    async def _save(self) -> dict[str, Any]: ...

    async def _update(self) -> Any: ...

    async def _remove(self) -> Any: ...

    @classmethod
    async def find(cls, query: dict | None = None, **options: Any) -> list[Any]: ...

    @classmethod
    async def find_one(cls, query: dict | None = None, **options: Any) -> Any | None: ...

    @classmethod
    def find_iterator(cls, query: dict | None = None, **options: Any) -> AsyncIterator[Any]: ...

    @classmethod
    async def count(cls, query: dict | None = None) -> int: ...

    @classmethod
    def make_model(cls, name: str) -> type: ...
