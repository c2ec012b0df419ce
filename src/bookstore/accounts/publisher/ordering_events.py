"""Publisher earnings follow completed and refunded orders.

Each order line credits (or takes back) the royalty share of
``price * quantity`` for the publisher that listed the book.
"""

import json
from collections import defaultdict

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from bookstore.accounts.publisher.publisher import Publisher
from bookstore.domain import bookstore
from bookstore.ordering.order.events import OrderCompleted, OrderRefunded

logger = structlog.get_logger(__name__)


def _sales_by_publisher(items_json: str) -> dict[str, tuple[float, int]]:
    totals: dict[str, list] = defaultdict(lambda: [0.0, 0])
    for item in json.loads(items_json or "[]"):
        if not item.get("publisher_id"):
            continue
        entry = totals[item["publisher_id"]]
        entry[0] += item["price"] * item["quantity"]
        entry[1] += item["quantity"]
    return {publisher_id: (round(amount, 2), copies) for publisher_id, (amount, copies) in totals.items()}


@bookstore.event_handler(part_of=Publisher, stream_category="bookstore::order")
class OrderingPublisherEventHandler:
    @handle(OrderCompleted)
    def on_order_completed(self, event: OrderCompleted) -> None:
        repo = current_domain.repository_for(Publisher)
        for publisher_id, (amount, copies) in _sales_by_publisher(event.items).items():
            try:
                publisher = repo.get(publisher_id)
            except ObjectNotFoundError:
                logger.warning("Sale for unknown publisher", publisher_id=publisher_id, order_id=str(event.order_id))
                continue
            royalty = publisher.credit_earnings(amount, copies=copies)
            repo.add(publisher)
            logger.info(
                "Publisher earnings credited",
                publisher_id=publisher_id,
                order_id=str(event.order_id),
                royalty=royalty,
            )

    @handle(OrderRefunded)
    def on_order_refunded(self, event: OrderRefunded) -> None:
        repo = current_domain.repository_for(Publisher)
        for publisher_id, (amount, copies) in _sales_by_publisher(event.items).items():
            try:
                publisher = repo.get(publisher_id)
            except ObjectNotFoundError:
                continue
            publisher.reverse_earnings(amount, copies=copies)
            repo.add(publisher)
            logger.info("Publisher earnings reversed", publisher_id=publisher_id, order_id=str(event.order_id))
