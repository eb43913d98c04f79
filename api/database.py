"""
Database service layer for the FastAPI application.
"""

from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure
from pymongo.server_api import ServerApi

from api.models import InsertResult, UpdateResult

logger = structlog.get_logger(__name__)


async def connect_to_mongodb(connection_url: str) -> AsyncIOMotorClient:
    """
    Create a MongoDB client and verify the server is reachable.

    Args:
        connection_url: MongoDB connection URL

    Returns:
        Connected AsyncIOMotorClient

    Raises:
        ConnectionFailure: If the initial ping fails
    """
    client = AsyncIOMotorClient(
        connection_url,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
    )
    try:
        await client.admin.command("ping")
    except ConnectionFailure as e:
        logger.error("MongoDB connection failed", error=str(e))
        client.close()
        raise

    logger.info("Connected to MongoDB")
    return client


def _to_json_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: _to_json_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_json_value(item) for item in value]
    return value


def serialize_book(book_doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Render a stored document as JSON, exposing ``_id`` as a string ``id``.

    A client-supplied ``id`` field is stored as-is but shadowed in the
    response by the storage identifier.
    """
    book = _to_json_value(book_doc)
    if "_id" in book:
        book["id"] = book.pop("_id")
    return book


class BookDatabaseService:
    """Database service for book operations."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create_book(self, document: Dict[str, Any]) -> InsertResult:
        """
        Insert a book exactly as submitted.

        Args:
            document: Arbitrary JSON object

        Returns:
            InsertResult with the storage-assigned identifier
        """
        try:
            # insert_one writes the generated _id back into the dict it is given;
            # non-object bodies fail here with TypeError
            result = await self.collection.insert_one({**document})
            logger.debug("Inserted book", book_id=str(result.inserted_id))
            return InsertResult(
                acknowledged=result.acknowledged,
                inserted_id=str(result.inserted_id),
            )
        except Exception as e:
            logger.error("Failed to insert book", error=str(e))
            raise

    async def update_book(self, book_id: str, fields: Dict[str, Any]) -> UpdateResult:
        """
        Set the given fields on a book, creating it if the identifier is unknown.

        The upsert means a PATCH against a missing (but well-formed) identifier
        creates a new book holding exactly ``fields`` under that identifier.

        Args:
            book_id: Book identifier (24-character hex ObjectId)
            fields: Fields to set

        Returns:
            UpdateResult with match/modify counts

        Raises:
            bson.errors.InvalidId: If ``book_id`` is not a valid ObjectId
        """
        try:
            result = await self.collection.update_one(
                {"_id": ObjectId(book_id)},
                {"$set": fields},
                upsert=True,
            )
            upserted_id = str(result.upserted_id) if result.upserted_id is not None else None
            if upserted_id:
                logger.info("Update created a new book", book_id=upserted_id)

            return UpdateResult(
                acknowledged=result.acknowledged,
                matched_count=result.matched_count,
                modified_count=result.modified_count,
                upserted_count=1 if upserted_id else 0,
                upserted_id=upserted_id,
            )
        except Exception as e:
            logger.error("Failed to update book", book_id=book_id, error=str(e))
            raise

    async def delete_book(self, book_id: str) -> bool:
        """
        Delete a book by ID.

        Returns:
            True if exactly one book was removed, False if none matched
        """
        try:
            result = await self.collection.delete_one({"_id": ObjectId(book_id)})
            return result.deleted_count == 1
        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

    async def list_books(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Get every book, optionally restricted to one category.

        Args:
            category: Exact category value to match; empty means no filter

        Returns:
            All matching books in storage order
        """
        try:
            filter_query = {"category": category} if category else {}
            cursor = self.collection.find(filter_query)
            books_docs = await cursor.to_list(length=None)
            return [serialize_book(book_doc) for book_doc in books_docs]
        except Exception as e:
            logger.error("Failed to list books", category=category, error=str(e))
            raise

    async def get_book_by_id(self, book_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a single book by ID.

        Returns:
            The book if found, None otherwise
        """
        try:
            book_doc = await self.collection.find_one({"_id": ObjectId(book_id)})
            if book_doc:
                return serialize_book(book_doc)
            return None
        except Exception as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

    async def ping(self) -> None:
        """Run the ``ping`` command against the books database."""
        await self.collection.database.command("ping")

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.ping()
            books_count = await self.collection.count_documents({})

            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count,
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
