"""Publisher profile keeps its list of published books in step with the catalogue."""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from bookstore.accounts.publisher.publisher import Publisher
from bookstore.catalogue.book.events import BookPublished, BookWithdrawn
from bookstore.domain import bookstore

logger = structlog.get_logger(__name__)


@bookstore.event_handler(part_of=Publisher, stream_category="bookstore::book")
class CataloguePublisherEventHandler:
    @handle(BookPublished)
    def on_book_published(self, event: BookPublished) -> None:
        repo = current_domain.repository_for(Publisher)
        publisher = repo.get(event.publisher_id)
        publisher.add_book(event.book_id)
        repo.add(publisher)
        logger.info("Book added to publisher", publisher_id=str(publisher.id), book_id=str(event.book_id))

    @handle(BookWithdrawn)
    def on_book_withdrawn(self, event: BookWithdrawn) -> None:
        repo = current_domain.repository_for(Publisher)
        publisher = repo.get(event.publisher_id)
        publisher.remove_book(event.book_id)
        repo.add(publisher)
