"""Book sales counters follow completed and refunded orders."""

import json

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from bookstore.catalogue.book.book import Book
from bookstore.domain import bookstore
from bookstore.ordering.order.events import OrderCompleted, OrderRefunded

logger = structlog.get_logger(__name__)


@bookstore.event_handler(part_of=Book, stream_category="bookstore::order")
class OrderingBookEventHandler:
    @handle(OrderCompleted)
    def on_order_completed(self, event: OrderCompleted) -> None:
        self._apply(event.items, Book.record_sale)

    @handle(OrderRefunded)
    def on_order_refunded(self, event: OrderRefunded) -> None:
        self._apply(event.items, Book.reverse_sale)

    def _apply(self, items_json, change) -> None:
        repo = current_domain.repository_for(Book)
        for item in json.loads(items_json or "[]"):
            try:
                book = repo.get(item["book_id"])
            except ObjectNotFoundError:
                logger.warning("Sales update for unknown book", book_id=item["book_id"])
                continue
            change(book, item["quantity"])
            repo.add(book)
