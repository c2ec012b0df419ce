"""Customer profile aggregate with ReadingEntry and PurchaseRecord entities."""

import json
from datetime import datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from bookstore.domain import bookstore

GENRES = (
    "fiction",
    "non-fiction",
    "mystery",
    "romance",
    "sci-fi",
    "fantasy",
    "biography",
    "history",
    "self-help",
    "technology",
)


class ReadingStatus(Enum):
    TO_READ = "to-read"
    CURRENTLY_READING = "currently-reading"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class SubscriptionPlan(Enum):
    FREE = "free"
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


@bookstore.entity(part_of="Customer")
class ReadingEntry:
    """A book on the customer's reading list, with progress as a percentage."""

    book_id: Identifier(required=True)
    status: String(choices=ReadingStatus, default=ReadingStatus.TO_READ.value)
    progress: Integer(min_value=0, max_value=100, default=0)
    started_at: DateTime()
    completed_at: DateTime()


@bookstore.entity(part_of="Customer")
class PurchaseRecord:
    """Summary of one checkout, kept on the profile for order history views."""

    order_id: Identifier(required=True)
    purchased_at: DateTime(required=True)
    total: Float(required=True, min_value=0.0)
    item_count: Integer(required=True, min_value=1)


@bookstore.aggregate
class Customer:
    """The buying side of a user account.

    Holds the wishlist, reading list, purchase history, loyalty points and
    subscription plan. Carts and orders reference the customer by id.
    """

    user_id: Identifier(required=True, unique=True)
    favorite_genres: Text()  # JSON list of genre names
    wishlist: Text()  # JSON list of book ids
    reading_list: HasMany(ReadingEntry)
    purchase_history: HasMany(PurchaseRecord)
    loyalty_points: Integer(default=0, min_value=0)
    subscription_plan: String(choices=SubscriptionPlan, default=SubscriptionPlan.FREE.value)
    created_at: DateTime(default=datetime.now)

    @invariant.post
    def genres_must_be_known(self):
        unknown = [genre for genre in self.genres if genre not in GENRES]
        if unknown:
            raise ValidationError({"favorite_genres": [f"Unknown genres: {', '.join(unknown)}"]})

    @property
    def genres(self) -> list[str]:
        return json.loads(self.favorite_genres) if self.favorite_genres else []

    @property
    def wishlist_ids(self) -> list[str]:
        return json.loads(self.wishlist) if self.wishlist else []

    @classmethod
    def create(cls, user_id, favorite_genres=None):
        from bookstore.accounts.customer.events import CustomerProfileCreated

        customer = cls(
            user_id=user_id,
            favorite_genres=json.dumps(list(favorite_genres or [])),
            wishlist=json.dumps([]),
        )
        customer.raise_(CustomerProfileCreated(customer_id=customer.id, user_id=user_id))
        return customer

    def set_favorite_genres(self, genres):
        self.favorite_genres = json.dumps(list(dict.fromkeys(genres)))

    def add_to_wishlist(self, book_id):
        from bookstore.accounts.customer.events import WishlistChanged

        book_id = str(book_id)
        ids = self.wishlist_ids
        if book_id in ids:
            return
        ids.append(book_id)
        self.wishlist = json.dumps(ids)
        self.raise_(WishlistChanged(customer_id=self.id, book_id=book_id, action="added"))

    def remove_from_wishlist(self, book_id):
        from bookstore.accounts.customer.events import WishlistChanged

        book_id = str(book_id)
        ids = self.wishlist_ids
        if book_id not in ids:
            raise ValidationError({"wishlist": [f"Book {book_id} is not in the wishlist"]})
        ids.remove(book_id)
        self.wishlist = json.dumps(ids)
        self.raise_(WishlistChanged(customer_id=self.id, book_id=book_id, action="removed"))

    def update_reading_progress(self, book_id, progress, status=None):
        """Track how far the customer is through a book.

        A book not yet on the reading list is added as currently-reading. The
        completion timestamp is stamped once, the first time the book is
        marked completed.
        """
        from bookstore.accounts.customer.events import ReadingProgressUpdated

        if progress is None or not 0 <= progress <= 100:
            raise ValidationError({"progress": ["Progress must be between 0 and 100"]})
        if status is not None and status not in {s.value for s in ReadingStatus}:
            raise ValidationError({"status": [f"Invalid reading status: {status}"]})

        now = datetime.now()
        entry = next((e for e in self.reading_list if str(e.book_id) == str(book_id)), None)
        if entry is None:
            entry = ReadingEntry(
                book_id=str(book_id),
                progress=progress,
                status=status or ReadingStatus.CURRENTLY_READING.value,
                started_at=now,
            )
            self.add_reading_list(entry)
        else:
            entry.progress = progress
            entry.status = status or entry.status

        if entry.status == ReadingStatus.COMPLETED.value and entry.completed_at is None:
            entry.completed_at = now

        self.raise_(
            ReadingProgressUpdated(
                customer_id=self.id,
                book_id=str(book_id),
                status=entry.status,
                progress=entry.progress,
            )
        )
        return entry

    def record_purchase(self, order_id, total, item_count, purchased_at=None):
        if any(str(p.order_id) == str(order_id) for p in self.purchase_history):
            return
        self.add_purchase_history(
            PurchaseRecord(
                order_id=str(order_id),
                purchased_at=purchased_at or datetime.now(),
                total=total,
                item_count=item_count,
            )
        )

    def change_plan(self, plan):
        if plan not in {p.value for p in SubscriptionPlan}:
            raise ValidationError({"subscription_plan": [f"Unknown subscription plan: {plan}"]})
        self.subscription_plan = plan


@bookstore.repository(part_of=Customer)
class CustomerRepository:
    def find_by_user(self, user_id) -> Customer | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first
