"""Customer library management: wishlist, reading progress and preferences."""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from bookstore.accounts.customer.customer import Customer
from bookstore.domain import bookstore


@bookstore.command(part_of="Customer")
class AddToWishlist:
    customer_id: Identifier(required=True)
    book_id: Identifier(required=True)


@bookstore.command(part_of="Customer")
class RemoveFromWishlist:
    customer_id: Identifier(required=True)
    book_id: Identifier(required=True)


@bookstore.command(part_of="Customer")
class UpdateReadingProgress:
    """Record progress (0-100) and optionally a reading status for a book."""

    customer_id: Identifier(required=True)
    book_id: Identifier(required=True)
    progress: Integer(required=True, min_value=0, max_value=100)
    status: String(max_length=20)


@bookstore.command(part_of="Customer")
class UpdatePreferences:
    customer_id: Identifier(required=True)
    favorite_genres: Text(required=True)  # JSON list of genre names


@bookstore.command_handler(part_of=Customer)
class CustomerLibraryHandler:
    @handle(AddToWishlist)
    def add_to_wishlist(self, command):
        from bookstore.catalogue.book.book import Book

        # Raises ObjectNotFoundError for unknown books
        current_domain.repository_for(Book).get(command.book_id)

        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.add_to_wishlist(command.book_id)
        repo.add(customer)

    @handle(RemoveFromWishlist)
    def remove_from_wishlist(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.remove_from_wishlist(command.book_id)
        repo.add(customer)

    @handle(UpdateReadingProgress)
    def update_reading_progress(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.update_reading_progress(
            book_id=command.book_id,
            progress=command.progress,
            status=command.status,
        )
        repo.add(customer)

    @handle(UpdatePreferences)
    def update_preferences(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        genres = (
            json.loads(command.favorite_genres)
            if isinstance(command.favorite_genres, str)
            else command.favorite_genres
        )
        customer.set_favorite_genres(genres)
        repo.add(customer)
