"""
FastAPI main application for the Book Inventory API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import config
from api.database import BookDatabaseService, connect_to_mongodb
from api.models import (
    ErrorResponse, HealthResponse, InsertResult, MessageResponse, UpdateResult
)

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # A service handed to create_app() is used as-is
    if getattr(app.state, "book_service", None) is not None:
        yield
        return

    logger.info("Starting Book Inventory API")

    try:
        client = await connect_to_mongodb(config.mongodb_url)
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    collection = client[config.mongodb_database][config.mongodb_collection]
    app.state.book_service = BookDatabaseService(collection)
    logger.info(
        "Database connection established",
        database=config.mongodb_database,
        collection=config.mongodb_collection,
    )

    yield

    # Shutdown
    logger.info("Shutting down Book Inventory API")
    app.state.book_service = None
    client.close()


def get_book_service(request: Request) -> BookDatabaseService:
    """Return the service attached at startup, or 503 until it exists."""
    service = getattr(request.app.state, "book_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return service


async def read_json_body(request: Request) -> Any:
    """Decode the request body as JSON, treating an empty body as `{}`."""
    if not await request.body():
        return {}
    return await request.json()


def create_app(service: Optional[BookDatabaseService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Pre-built book service. When omitted, the lifespan connects
            to MongoDB before the first request is accepted.
    """
    app = FastAPI(
        title=config.api_title,
        description=config.api_description,
        version=config.api_version,
        lifespan=lifespan
    )
    app.state.book_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )

    # Exception handlers
    # Starlette's base class also covers router-level 404 and 405 responses
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=exc.detail,
                status_code=exc.status_code
            ).model_dump(),
            headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                message="Internal server error",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            ).model_dump()
        )

    # Health check endpoint
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        try:
            db_status = "unavailable"
            book_service = getattr(request.app.state, "book_service", None)
            if book_service:
                health_info = await book_service.health_check()
                db_status = health_info.get("status", "unknown")

            return HealthResponse(
                status="healthy" if db_status == "healthy" else "degraded",
                timestamp=datetime.now(timezone.utc),
                version=config.api_version,
                database_status=db_status
            )
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return HealthResponse(
                status="unhealthy",
                timestamp=datetime.now(timezone.utc),
                version=config.api_version,
                database_status="unhealthy"
            )

    # Books endpoints
    @app.post(
        "/upload-book",
        response_model=InsertResult,
        status_code=status.HTTP_201_CREATED,
        tags=["Books"]
    )
    async def upload_book(
        request: Request,
        book_service: BookDatabaseService = Depends(get_book_service)
    ):
        """Insert a book. Any JSON object is stored verbatim; an empty body inserts an empty book."""
        try:
            book = await read_json_body(request)
            return await book_service.create_book(book)
        except Exception as e:
            logger.error("Error inserting book", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to insert book."
            )

    @app.patch("/book/{book_id}", response_model=UpdateResult, tags=["Books"])
    async def update_book(
        book_id: str,
        request: Request,
        book_service: BookDatabaseService = Depends(get_book_service)
    ):
        """
        Set fields on a book.

        If no book has this ID, a new one is created with exactly these fields.
        """
        try:
            fields = await read_json_body(request)
            return await book_service.update_book(book_id, fields)
        except Exception as e:
            logger.error("Error updating book", book_id=book_id, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update book."
            )

    @app.delete("/book/{book_id}", response_model=MessageResponse, tags=["Books"])
    async def delete_book(
        book_id: str,
        book_service: BookDatabaseService = Depends(get_book_service)
    ):
        """Delete a book by ID."""
        try:
            deleted = await book_service.delete_book(book_id)
        except Exception as e:
            logger.error("Error deleting book", book_id=book_id, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete book."
            )

        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Book not found"
            )
        return MessageResponse(message="Book successfully deleted")

    @app.get("/all-books", response_model=List[Dict[str, Any]], tags=["Books"])
    async def get_all_books(
        category: Optional[str] = None,
        book_service: BookDatabaseService = Depends(get_book_service)
    ):
        """
        Get all books.

        - **category**: Only return books whose category equals this value
        """
        try:
            return await book_service.list_books(category)
        except Exception as e:
            logger.error("Error fetching books", category=category, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch books."
            )

    @app.get("/book/{book_id}", response_model=Dict[str, Any], tags=["Books"])
    async def get_book(
        book_id: str,
        book_service: BookDatabaseService = Depends(get_book_service)
    ):
        """
        Get a single book by ID.

        - **book_id**: MongoDB ObjectId as a 24-character hex string
        """
        try:
            book = await book_service.get_book_by_id(book_id)
        except Exception as e:
            logger.error("Error fetching book", book_id=book_id, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch book."
            )

        if not book:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Book not found"
            )
        return book

    return app


app = create_app()
