"""Book publishing — commands and handler.

Uploaded files are stored before the command is issued; the handler only
records paths and removes files the book no longer points at.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from bookstore.catalogue.book.book import Book, parse_publication_date
from bookstore.domain import bookstore
from bookstore.utils.storage import remove_upload


@bookstore.command(part_of="Book")
class PublishBook:
    publisher_id: Identifier(required=True)
    title: String(required=True, max_length=255)
    category: String(required=True, max_length=100)
    publication_date: String(required=True, max_length=32)
    price: Float(required=True, min_value=0.0)
    keywords: Text()  # JSON list or comma separated
    description: Text()
    file_path: String(required=True, max_length=500)
    cover_image_path: String(max_length=500)


@bookstore.command(part_of="Book")
class UpdateBookDetails:
    """Partial update of a book's metadata and, optionally, its files."""

    book_id: Identifier(required=True)
    title: String(max_length=255)
    category: String(max_length=100)
    publication_date: String(max_length=32)
    price: Float(min_value=0.0)
    keywords: Text()
    description: Text()
    file_path: String(max_length=500)
    cover_image_path: String(max_length=500)


@bookstore.command(part_of="Book")
class WithdrawBook:
    book_id: Identifier(required=True)
    withdrawn_by: Identifier(required=True)


@bookstore.command(part_of="Book")
class RecordBookView:
    book_id: Identifier(required=True)


def _keywords(value):
    if value is None:
        return None
    if isinstance(value, str) and value.strip().startswith("["):
        return json.loads(value)
    return value


@bookstore.command_handler(part_of=Book)
class PublishingHandler:
    @handle(PublishBook)
    def publish_book(self, command):
        from bookstore.accounts.account.user import User
        from bookstore.accounts.publisher.publisher import Publisher

        publisher = current_domain.repository_for(Publisher).get(command.publisher_id)
        user = current_domain.repository_for(User).get(publisher.user_id)

        book = Book.publish(
            title=command.title,
            publisher_id=publisher.id,
            author_name=publisher.pen_name or user.full_name,
            category=command.category,
            publication_date=parse_publication_date(command.publication_date),
            price=command.price,
            file_path=command.file_path,
            keywords=_keywords(command.keywords),
            description=command.description,
            cover_image_path=command.cover_image_path,
        )
        current_domain.repository_for(Book).add(book)
        return str(book.id)

    @handle(UpdateBookDetails)
    def update_book(self, command):
        repo = current_domain.repository_for(Book)
        book = repo.get(command.book_id)
        if not book.is_published:
            raise ValidationError({"status": ["Withdrawn books cannot be edited"]})

        changes = {
            field: getattr(command, field)
            for field in ("title", "category", "price", "description")
            if getattr(command, field) is not None
        }
        if command.publication_date is not None:
            changes["publication_date"] = parse_publication_date(command.publication_date)
        if command.keywords is not None:
            changes["keywords"] = _keywords(command.keywords)

        book.update_details(**changes)

        stale = []
        if command.file_path:
            stale.append(book.replace_file(command.file_path))
        if command.cover_image_path:
            stale.append(book.replace_cover(command.cover_image_path))

        repo.add(book)
        for path in stale:
            remove_upload(path)

    @handle(WithdrawBook)
    def withdraw_book(self, command):
        repo = current_domain.repository_for(Book)
        book = repo.get(command.book_id)
        book.withdraw(withdrawn_by=command.withdrawn_by)
        repo.add(book)

    @handle(RecordBookView)
    def record_view(self, command):
        repo = current_domain.repository_for(Book)
        book = repo.get(command.book_id)
        book.record_view()
        repo.add(book)
