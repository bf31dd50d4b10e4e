"""MongoDB persistence adapter.

Uses motor (AsyncIOMotorClient) for store access. Binds BaseModel to a
MongoDB database and maps the storage primitives onto collection calls:

  _fetch   -> find_one({"_id": id})
  _save    -> insert_one(changes)
  _update  -> update_one({"_id": id}, {"$set": changes})
  _remove  -> delete_one({"_id": id})
  find / find_one / find_iterator / count -> find / find_one / cursor / count_documents

Entry points
------------
``from_url(url)`` connects and selects the database named by the URL path,
``from_client(client, name)`` reuses a client, ``from_database(db)`` uses a
database handle directly. ``mongo_driver(target)`` dispatches on the type
of ``target``. Each returns a base class; ``make_model(name)`` on it yields
a model type bound to collection ``name``.

Every filter passes through fix_query_identifier(), so callers may use
``id`` or ``_id`` and string or ObjectId values interchangeably. Driver
errors (pymongo.errors.*) propagate unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Generator
from typing import Any

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import CollectionInvalid

from mongoforge.model.base import BaseModel, bind_readonly
from mongoforge.model.errors import RecordNotRemovedError
from mongoforge.persistence.config import database_from_url, sanitize_url
from mongoforge.persistence.identifiers import (
    fix_query_identifier,
    normalize_identifier,
)

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "mongodb"


class DeferredHandle:
    """Awaitable that runs a coroutine factory once and caches the outcome.

    Resolution starts on the first ``await``; every later await returns the
    same result. The underlying task belongs to the event loop that first
    awaited it and is shielded, so a cancelled caller does not cancel it.
    """

    def __init__(self, factory: Callable[[], Awaitable[Any]]):
        self._factory = factory
        self._future: asyncio.Future | None = None

    def __await__(self) -> Generator[Any, None, Any]:
        if self._future is None:
            self._future = asyncio.ensure_future(self._factory())
        return asyncio.shield(self._future).__await__()


async def ensure_collection(
    db: AsyncIOMotorDatabase, name: str
) -> AsyncIOMotorCollection | None:
    """Return collection ``name``, creating it if it does not exist.

    Failures are not raised: the error is logged and None is returned, so
    operations on a model bound to it fail later with AttributeError.
    """
    try:
        names = await db.list_collection_names(filter={"name": name})
        if names:
            logger.debug("Using existing collection '%s' in '%s'", name, db.name)
            return db[names[0]]

        logger.debug("Creating collection '%s' in '%s'", name, db.name)
        try:
            return await db.create_collection(name)
        except CollectionInvalid:
            # Created concurrently by another binding
            return db[name]
    except Exception:
        logger.warning(
            "Could not resolve collection '%s'; operations on it will fail",
            name,
            exc_info=True,
        )
        return None


class MongoDatabaseModel(BaseModel):
    """Model base bound to one MongoDB database.

    Use from_database()/from_client()/from_url() rather than subclassing
    directly; they bind ``db`` (and ``client``) on the returned base.
    """

    db: AsyncIOMotorDatabase
    collection: DeferredHandle
    _owner_client: AsyncIOMotorClient | None = None

    # ------------------------------------------------------------------
    # Identifier handling
    # ------------------------------------------------------------------

    def set(self, key: Any, value: Any = None) -> MongoDatabaseModel:
        if key == "_id":
            return self.set("id", value)

        if key == "id":
            self._identifier = normalize_identifier(value)
            return self

        return super().set(key, value)

    @property
    def id_query(self) -> dict[str, Any]:
        return {"_id": self.id}

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    async def _fetch(self) -> dict[str, Any] | None:
        collection = await self.collection
        return await collection.find_one(self.id_query)

    async def _save(self) -> dict[str, Any]:
        collection = await self.collection
        result = await collection.insert_one(self.changes)
        return {"_id": result.inserted_id, **self.to_dict()}

    async def _update(self) -> MongoDatabaseModel:
        collection = await self.collection
        await collection.update_one(self.id_query, {"$set": self.changes})
        return self

    async def _remove(self) -> Any:
        collection = await self.collection
        result = await collection.delete_one(self.id_query)
        if not result.deleted_count:
            raise RecordNotRemovedError(self.id)

        self._identifier = None
        return result

    @classmethod
    async def find(cls, query: dict | None = None, **options: Any) -> list[BaseModel]:
        """Return every matching record, in the order the store returns them.

        Args:
            query: Filter document; None matches all
            **options: Passed to Collection.find (sort, limit, projection, ...)
        """
        collection = await cls.collection
        cursor = collection.find(fix_query_identifier(query), **options)
        docs = await cursor.to_list(length=None)
        return [cls.build(doc) for doc in docs]

    @classmethod
    async def find_one(cls, query: dict | None = None, **options: Any) -> BaseModel | None:
        collection = await cls.collection
        doc = await collection.find_one(fix_query_identifier(query), **options)
        if doc is None:
            return None
        return cls.build(doc)

    @classmethod
    async def find_iterator(
        cls, query: dict | None = None, **options: Any
    ) -> AsyncIterator[BaseModel]:
        """Yield matching records one at a time from a single cursor.

        The cursor is closed when iteration finishes or when the consumer
        closes the generator early (aclose(), contextlib.aclosing).
        """
        collection = await cls.collection
        cursor = collection.find(fix_query_identifier(query), **options)
        try:
            async for doc in cursor:
                yield cls.build(doc)
        finally:
            await cursor.close()

    @classmethod
    async def count(cls, query: dict | None = None) -> int:
        collection = await cls.collection
        return await collection.count_documents(fix_query_identifier(query) or {})

    # ------------------------------------------------------------------
    # Model type creation
    # ------------------------------------------------------------------

    @classmethod
    def make_model(cls, name: str) -> type[BaseModel]:
        model = super().make_model(name)
        db = cls.db
        handle = DeferredHandle(lambda: ensure_collection(db, name))
        bind_readonly(model, "collection", handle)
        bind_readonly(model, "db", db)
        if cls._owner_client is not None:
            bind_readonly(model, "client", cls._owner_client)
        return model


def from_database(db: AsyncIOMotorDatabase) -> type[MongoDatabaseModel]:
    """Return a model base bound to ``db``."""
    base = type(MongoDatabaseModel)(
        "MongoDatabaseModel", (MongoDatabaseModel,), {"__module__": __name__}
    )
    bind_readonly(base, "db", db)
    return base


def from_client(
    client: AsyncIOMotorClient, database: str | None = None
) -> type[MongoDatabaseModel]:
    """Return a model base bound to database ``database`` of ``client``.

    Model types made from it also carry ``client``.
    """
    database_base = from_database(client[database or DEFAULT_DATABASE])
    base = type(database_base)(
        "MongoClientModel",
        (database_base,),
        {"__module__": __name__, "_owner_client": client},
    )
    bind_readonly(base, "client", client)
    return base


async def from_url(url: str, **options: Any) -> type[MongoDatabaseModel]:
    """Connect to ``url`` and return a model base bound to its database.

    The database is the first path segment of the URL (DEFAULT_DATABASE
    when the path is empty). ``options`` are passed to AsyncIOMotorClient.

    Raises:
        pymongo.errors.PyMongoError: If the server cannot be reached
    """
    client = AsyncIOMotorClient(url, **options)
    try:
        await client.admin.command("ping")
    except Exception:
        client.close()
        raise

    database = database_from_url(url)
    logger.debug(
        "Connected to %s (database '%s')",
        sanitize_url(url),
        database or DEFAULT_DATABASE,
    )
    return from_client(client, database)


def mongo_driver(target: Any, **options: Any) -> Any:
    """Build a model base from a client, a database or a connection URL.

    Returns the base directly for a client or database; for anything else
    ``target`` is treated as a URL and the from_url() coroutine is returned.
    """
    if isinstance(target, AsyncIOMotorClient):
        return from_client(target)
    if isinstance(target, AsyncIOMotorDatabase):
        return from_database(target)
    return from_url(target, **options)


mongo_driver.from_url = from_url
mongo_driver.from_client = from_client
mongo_driver.from_database = from_database
