"""Payments API package."""

from bookstore.payments.api.routes import payment_router

__all__ = ["payment_router"]
