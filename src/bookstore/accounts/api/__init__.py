"""Accounts API package."""

from bookstore.accounts.api.routes import admin_router, publisher_router, user_router

__all__ = ["user_router", "publisher_router", "admin_router"]
