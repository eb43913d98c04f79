"""
FastAPI REST API for the Book Inventory service.

This module provides CRUD endpoints over a single MongoDB collection of books:
- Insert, update (with upsert), and delete books
- List all books, optionally by category
- Fetch a single book by ID
"""
