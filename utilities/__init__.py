"""
Shared utilities for the Book Inventory API.
"""
