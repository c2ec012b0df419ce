"""Relational schema management for the bookstore's PostgreSQL deployment.

The in-memory provider used by default needs none of this; these helpers
only act on providers backed by SQLAlchemy.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

_RELATIONAL = ("postgresql", "sqlite")


def _relational_providers(domain: Domain):
    for name, provider in domain.providers.items():
        if provider.conn_info["provider"] in _RELATIONAL:
            yield name, provider


def _register_models(domain: Domain, provider_name: str) -> None:
    """Build the table model of every aggregate and entity stored in ``provider_name``."""
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    with domain.domain_context():
        for name, provider in _relational_providers(domain):
            _register_models(domain, name)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("Schema created", provider=name, tables=len(provider._metadata.tables))


def drop_db(domain: Domain) -> None:
    with domain.domain_context():
        for name, provider in _relational_providers(domain):
            _register_models(domain, name)
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("Schema dropped", provider=name)
