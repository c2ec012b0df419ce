import pytest

from bookstore.payments.gateway import FakeGateway, set_gateway


@pytest.fixture()
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def place(register_customer, register_publisher, publish_book, checkout):
    """Order one 499.00 book with the given payment method."""
    _, customer = register_customer()
    _, publisher = register_publisher()
    book = publish_book(publisher, price=499.0)

    def _place(payment_method):
        return checkout(customer, [(book, 1)], payment_method=payment_method)

    return _place
