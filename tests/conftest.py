"""
Pytest configuration and shared fixtures.
"""

import copy
from unittest.mock import AsyncMock, Mock

import pytest
from bson import ObjectId
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from api.database import BookDatabaseService


class FakeCursor:
    """Cursor over an already-computed list of documents."""

    def __init__(self, docs):
        self._docs = docs

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]


class FakeBooksCollection:
    """
    In-memory stand-in for a motor collection.

    Supports only the equality filters and ``$set`` updates the service
    issues, and returns real pymongo result objects.
    """

    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, filter_query):
        return all(doc.get(key) == value for key, value in filter_query.items())

    def _first(self, filter_query):
        for doc in self.docs:
            if self._matches(doc, filter_query):
                return doc
        return None

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(document))
        return InsertOneResult(document["_id"], True)

    async def update_one(self, filter_query, update, upsert=False):
        fields = update["$set"]
        doc = self._first(filter_query)
        if doc is not None:
            modified = any(doc.get(key) != value for key, value in fields.items())
            doc.update(copy.deepcopy(fields))
            return UpdateResult({"n": 1, "nModified": int(modified), "ok": 1.0}, True)
        if upsert:
            new_doc = {"_id": filter_query["_id"], **copy.deepcopy(fields)}
            self.docs.append(new_doc)
            return UpdateResult({"n": 1, "nModified": 0, "upserted": new_doc["_id"], "ok": 1.0}, True)
        return UpdateResult({"n": 0, "nModified": 0, "ok": 1.0}, True)

    async def delete_one(self, filter_query):
        doc = self._first(filter_query)
        if doc is None:
            return DeleteResult({"n": 0, "ok": 1.0}, True)
        self.docs.remove(doc)
        return DeleteResult({"n": 1, "ok": 1.0}, True)

    def find(self, filter_query):
        return FakeCursor([copy.deepcopy(doc) for doc in self.docs if self._matches(doc, filter_query)])

    async def find_one(self, filter_query):
        doc = self._first(filter_query)
        return copy.deepcopy(doc) if doc is not None else None

    async def count_documents(self, filter_query):
        return len([doc for doc in self.docs if self._matches(doc, filter_query)])


@pytest.fixture
def fake_collection():
    """Create an empty in-memory books collection."""
    return FakeBooksCollection()


@pytest.fixture
def mock_collection():
    """Create a mock motor collection for testing."""
    collection = AsyncMock()
    collection.find = Mock()
    return collection


@pytest.fixture
def mock_book_service():
    """Create a mock book service for testing."""
    return AsyncMock(spec=BookDatabaseService)


@pytest.fixture
def sample_book():
    """Create sample book data for testing."""
    return {
        "title": "A Light in the Attic",
        "author": "Shel Silverstein",
        "category": "Poetry",
        "price": 51.77,
    }
