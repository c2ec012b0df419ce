"""Bookstore domain — e-book marketplace.

A single Protean domain hosts four contexts that live side by side in this
package:

- accounts:  users, and the Customer / Publisher / Admin profiles they carry
- catalogue: books uploaded by publishers
- ordering:  carts, orders and the order status lifecycle
- payments:  gateway payments (intents, GCash/Maya sources) and webhooks
"""

import structlog
from protean.domain import Domain

from bookstore.utils.settings import database_url

bookstore = Domain(name="bookstore")

logger = structlog.get_logger(__name__)


def configure_persistence() -> None:
    """Point the default provider at PostgreSQL when DATABASE_URL is set.

    Without it, the domain keeps Protean's in-memory provider, which is what
    tests and local experiments run against.
    """
    url = database_url()
    if url:
        bookstore.config["databases"]["default"] = {
            "provider": "postgresql",
            "database_uri": url,
        }
        logger.info("Using PostgreSQL persistence", database_uri=url.split("@")[-1])


def init_domain() -> Domain:
    """Load every element module, pick the persistence provider and initialize."""
    from bookstore.registry import load_elements

    configure_persistence()
    load_elements()
    bookstore.init()
    return bookstore
