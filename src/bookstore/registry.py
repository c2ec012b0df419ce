"""Every module that registers elements with the bookstore domain.

``Domain.init()`` only auto-discovers modules one directory below the domain
package. The contexts here keep their aggregates, commands and handlers two
levels down (``ordering/order/order.py``), so they are imported explicitly
before the domain is initialized.
"""

import importlib

ELEMENT_MODULES = (
    # accounts
    "bookstore.accounts.account.user",
    "bookstore.accounts.account.events",
    "bookstore.accounts.account.registration",
    "bookstore.accounts.account.authentication",
    "bookstore.accounts.account.profile",
    "bookstore.accounts.customer.customer",
    "bookstore.accounts.customer.events",
    "bookstore.accounts.customer.library",
    "bookstore.accounts.customer.ordering_events",
    "bookstore.accounts.publisher.publisher",
    "bookstore.accounts.publisher.events",
    "bookstore.accounts.publisher.management",
    "bookstore.accounts.publisher.ordering_events",
    "bookstore.accounts.publisher.catalogue_events",
    "bookstore.accounts.admin.admin",
    "bookstore.accounts.admin.management",
    "bookstore.accounts.admin.ordering_events",
    # catalogue
    "bookstore.catalogue.book.book",
    "bookstore.catalogue.book.events",
    "bookstore.catalogue.book.listing",
    "bookstore.catalogue.book.publishing",
    "bookstore.catalogue.book.ordering_events",
    # ordering
    "bookstore.ordering.cart.cart",
    "bookstore.ordering.cart.events",
    "bookstore.ordering.cart.management",
    "bookstore.ordering.order.order",
    "bookstore.ordering.order.events",
    "bookstore.ordering.order.sequence",
    "bookstore.ordering.order.checkout",
    "bookstore.ordering.order.verification",
    "bookstore.ordering.order.lifecycle",
    "bookstore.ordering.order.payment_events",
    # payments
    "bookstore.payments.payment.payment",
    "bookstore.payments.payment.events",
    "bookstore.payments.payment.initiation",
    "bookstore.payments.payment.webhook",
)


def load_elements() -> None:
    for name in ELEMENT_MODULES:
        importlib.import_module(name)
