"""Shared fixtures: an in-memory stand-in for the motor client surface.

Only the calls MongoDatabaseModel makes are covered. Filters match on
top-level field equality, which is all the model layer sends.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo.errors import CollectionInvalid

from mongoforge.model import Modeller
from mongoforge.persistence.mongodb import from_client


def _matches(doc: dict, query: dict | None) -> bool:
    return all(doc.get(key) == value for key, value in (query or {}).items())


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = list(docs)
        self.closed = False

    async def to_list(self, length=None):
        docs, self._docs = self._docs, []
        return docs

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._docs:
            raise StopAsyncIteration
        return self._docs.pop(0)

    async def close(self):
        self.closed = True


class FakeCollection:
    def __init__(self, name: str):
        self.name = name
        self.docs: list[dict] = []
        self.cursors: list[FakeCursor] = []

    async def insert_one(self, doc):
        stored = dict(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    def find(self, filter=None, **options):
        docs = [dict(doc) for doc in self.docs if _matches(doc, filter)]
        if options.get("limit"):
            docs = docs[: options["limit"]]
        cursor = FakeCursor(docs)
        self.cursors.append(cursor)
        return cursor

    async def find_one(self, filter=None, **options):
        for doc in self.docs:
            if _matches(doc, filter):
                return dict(doc)
        return None

    async def update_one(self, filter, update):
        for doc in self.docs:
            if _matches(doc, filter):
                doc.update(update["$set"])
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, filter):
        for index, doc in enumerate(self.docs):
            if _matches(doc, filter):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def count_documents(self, filter):
        return sum(1 for doc in self.docs if _matches(doc, filter))


class FakeDatabase:
    def __init__(self, name: str = "test"):
        self.name = name
        self.collections: dict[str, FakeCollection] = {}
        self.list_calls = 0
        self.error: Exception | None = None

    async def list_collection_names(self, filter=None):
        self.list_calls += 1
        if self.error:
            raise self.error
        return [name for name in self.collections if _matches({"name": name}, filter)]

    async def create_collection(self, name):
        if name in self.collections:
            raise CollectionInvalid(f"collection {name} already exists")
        self.collections[name] = FakeCollection(name)
        return self.collections[name]

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection(name))


class FakeClient:
    def __init__(self, url: str | None = None, **options):
        self.url = url
        self.options = options
        self.databases: dict[str, FakeDatabase] = {}
        self.closed = False
        self.admin = SimpleNamespace(command=AsyncMock(return_value={"ok": 1.0}))

    def __getitem__(self, name):
        return self.databases.setdefault(name, FakeDatabase(name))

    def close(self):
        self.closed = True


async def seed(model_cls, docs: list[dict]) -> list:
    """Insert raw documents and return them built as models of ``model_cls``."""
    collection = await model_cls.collection
    built = []
    for doc in docs:
        stored = dict(doc)
        result = await collection.insert_one(stored)
        stored["_id"] = result.inserted_id
        built.append(model_cls.build(stored))
    return built


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client():
    return FakeClient("mongodb://localhost/test")


@pytest.fixture
def db(client):
    return client["test"]


@pytest.fixture
def events():
    """Lifecycle event names seen by the recording observer, in order."""
    return []


@pytest.fixture
def modeller(client, events):
    modeller = Modeller(from_client(client, "test"))

    @modeller.use
    def record(event, model):
        events.append(event.value)

    return modeller


@pytest.fixture
def model_cls(modeller):
    return modeller.create_model("model")
