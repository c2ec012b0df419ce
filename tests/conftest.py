import os
import tempfile
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Points uploads at a scratch directory and lowers the password hashing cost
    before the bookstore domain is imported.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")
    os.environ.setdefault("AUTH_SECRET", "bookstore-test-secret")
    os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="bookstore-uploads-")
    os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="bookstore-logs-")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def bookstore_bed():
    from bookstore.domain import bookstore
    from bookstore.registry import load_elements

    load_elements()
    bed = DomainFixture(bookstore)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(bookstore_bed):
    """Run every test inside the domain context and clean up afterwards."""
    from bookstore.payments.gateway import reset_gateway

    with bookstore_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_gateway()


# ---------------------------------------------------------------------------
# Account and catalogue builders shared by every context's tests
# ---------------------------------------------------------------------------
@pytest.fixture()
def register_customer():
    """Register a customer account; returns ``(user, customer)``."""
    from bookstore.accounts.account.registration import RegisterCustomer
    from bookstore.accounts.account.user import User
    from bookstore.accounts.customer.customer import Customer

    def _register(email="reader@example.com", password="secret123", username="reader", full_name="Ada Reader"):
        user_id = current_domain.process(
            RegisterCustomer(username=username, email=email, password=password, full_name=full_name),
            asynchronous=False,
        )
        user = current_domain.repository_for(User).get(user_id)
        return user, current_domain.repository_for(Customer).find_by_user(user_id)

    return _register


@pytest.fixture()
def register_publisher():
    """Register a publisher account; returns ``(user, publisher)``."""
    from bookstore.accounts.account.registration import RegisterPublisher
    from bookstore.accounts.account.user import User
    from bookstore.accounts.publisher.publisher import Publisher

    def _register(
        email="writer@example.com",
        password="secret123",
        username="writer",
        full_name="Jo Writer",
        pen_name="J. W. Quill",
    ):
        user_id = current_domain.process(
            RegisterPublisher(
                username=username,
                email=email,
                password=password,
                full_name=full_name,
                pen_name=pen_name,
            ),
            asynchronous=False,
        )
        user = current_domain.repository_for(User).get(user_id)
        return user, current_domain.repository_for(Publisher).find_by_user(user_id)

    return _register


@pytest.fixture()
def create_admin():
    """Create an admin account; returns ``(user, admin)``."""
    from bookstore.accounts.account.registration import CreateAdmin
    from bookstore.accounts.account.user import User
    from bookstore.accounts.admin.admin import Admin

    def _create(email="admin@example.com", password="secret123", username="admin", level="super-admin"):
        user_id = current_domain.process(
            CreateAdmin(username=username, email=email, password=password, full_name="Site Admin", level=level),
            asynchronous=False,
        )
        user = current_domain.repository_for(User).get(user_id)
        return user, current_domain.repository_for(Admin).find_by_user(user_id)

    return _create


@pytest.fixture()
def publish_book():
    """Publish a book for a publisher profile; returns the Book."""
    from bookstore.catalogue.book.book import Book
    from bookstore.catalogue.book.publishing import PublishBook

    def _publish(publisher, title="The Quiet Orchard", price=250.0, category="fiction", **overrides):
        fields = {
            "publisher_id": str(publisher.id),
            "title": title,
            "category": category,
            "publication_date": "2024-03-01",
            "price": price,
            "keywords": "orchard, quiet",
            "description": "A novel.",
            "file_path": "books/quiet-orchard.pdf",
        }
        fields.update(overrides)
        book_id = current_domain.process(PublishBook(**fields), asynchronous=False)
        return current_domain.repository_for(Book).get(book_id)

    return _publish


@pytest.fixture()
def checkout():
    """Fill a customer's cart with ``(book, quantity)`` pairs and place an order."""
    from bookstore.ordering.cart.management import AddToCart
    from bookstore.ordering.order.checkout import PlaceOrder
    from bookstore.ordering.order.order import Order

    def _checkout(customer, lines, payment_method="bank_transfer"):
        for book, quantity in lines:
            current_domain.process(
                AddToCart(customer_id=str(customer.id), book_id=str(book.id), quantity=quantity),
                asynchronous=False,
            )
        order_id = current_domain.process(
            PlaceOrder(customer_id=str(customer.id), payment_method=payment_method),
            asynchronous=False,
        )
        return current_domain.repository_for(Order).get(order_id)

    return _checkout


# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------
@pytest.fixture()
def client():
    """TestClient over every router, without the production middleware stack."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from bookstore.accounts.api import admin_router, publisher_router, user_router
    from bookstore.api.errors import register_error_handlers
    from bookstore.catalogue.api import book_router
    from bookstore.ordering.api import cart_router, order_router
    from bookstore.payments.api import payment_router

    app = FastAPI()
    for router in (user_router, publisher_router, admin_router, book_router, cart_router, order_router, payment_router):
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def auth_headers(client):
    """Log in through the API and return an Authorization header."""

    def _login(email, password="secret123"):
        response = client.post("/api/user/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login
