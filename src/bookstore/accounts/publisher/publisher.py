"""Publisher profile aggregate with Earnings and Verification value objects."""

import json
from datetime import datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text, ValueObject

from bookstore.accounts.customer.customer import GENRES
from bookstore.domain import bookstore

DEFAULT_COMMISSION_RATE = 0.7

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


@bookstore.value_object(part_of="Publisher")
class Earnings:
    """Running royalty totals. Replaced wholesale whenever money moves."""

    total: Float(default=0.0, min_value=0.0)
    current_month: Float(default=0.0, min_value=0.0)
    pending_payout: Float(default=0.0, min_value=0.0)
    last_payout_at: DateTime()


@bookstore.value_object(part_of="Publisher")
class Verification:
    is_verified: Boolean(default=False)
    verified_at: DateTime()
    documents_submitted: Boolean(default=False)


@bookstore.aggregate
class Publisher:
    """The selling side of a user account: owns books and earns royalties.

    Royalties are credited at the publisher's commission rate whenever an
    order containing their books completes, and accumulate as a pending
    payout until an admin records a payment.
    """

    user_id: Identifier(required=True, unique=True)
    pen_name: String(max_length=100)
    biography: String(max_length=2000)
    website: String(max_length=255)
    genres: Text()  # JSON list of genre names
    published_books: Text()  # JSON list of book ids
    earnings: ValueObject(Earnings)
    commission_rate: Float(default=DEFAULT_COMMISSION_RATE, min_value=0.0, max_value=1.0)
    verification: ValueObject(Verification)
    total_sales: Integer(default=0, min_value=0)
    created_at: DateTime(default=datetime.now)

    @invariant.post
    def genres_must_be_known(self):
        unknown = [genre for genre in self.genre_list if genre not in GENRES]
        if unknown:
            raise ValidationError({"genres": [f"Unknown genres: {', '.join(unknown)}"]})

    @property
    def genre_list(self) -> list[str]:
        return json.loads(self.genres) if self.genres else []

    @property
    def book_ids(self) -> list[str]:
        return json.loads(self.published_books) if self.published_books else []

    @property
    def is_verified(self) -> bool:
        return bool(self.verification and self.verification.is_verified)

    @classmethod
    def create(cls, user_id, pen_name=None, biography=None, website=None, genres=None):
        from bookstore.accounts.publisher.events import PublisherProfileCreated

        publisher = cls(
            user_id=user_id,
            pen_name=pen_name,
            biography=biography,
            website=website,
            genres=json.dumps(list(genres or [])),
            published_books=json.dumps([]),
            earnings=Earnings(),
            verification=Verification(),
        )
        publisher.raise_(
            PublisherProfileCreated(publisher_id=publisher.id, user_id=user_id, pen_name=pen_name)
        )
        return publisher

    def update_details(self, pen_name=_UNSET, biography=_UNSET, website=_UNSET, genres=_UNSET):
        if pen_name is not _UNSET:
            self.pen_name = pen_name
        if biography is not _UNSET:
            self.biography = biography
        if website is not _UNSET:
            self.website = website
        if genres is not _UNSET:
            self.genres = json.dumps(list(dict.fromkeys(genres or [])))

    def add_book(self, book_id):
        ids = self.book_ids
        if str(book_id) not in ids:
            ids.append(str(book_id))
            self.published_books = json.dumps(ids)

    def remove_book(self, book_id):
        self.published_books = json.dumps([b for b in self.book_ids if b != str(book_id)])

    def credit_earnings(self, sale_amount, copies=1):
        """Credit the royalty share of a sale and count the copies sold."""
        from bookstore.accounts.publisher.events import EarningsCredited

        if sale_amount < 0:
            raise ValidationError({"earnings": ["Sale amount cannot be negative"]})

        royalty = round(sale_amount * self.commission_rate, 2)
        current = self.earnings or Earnings()
        self.earnings = Earnings(
            total=round(current.total + royalty, 2),
            current_month=round(current.current_month + royalty, 2),
            pending_payout=round(current.pending_payout + royalty, 2),
            last_payout_at=current.last_payout_at,
        )
        self.total_sales = (self.total_sales or 0) + copies
        self.raise_(EarningsCredited(publisher_id=self.id, sale_amount=sale_amount, royalty=royalty))
        return royalty

    def reverse_earnings(self, sale_amount, copies=1):
        """Take back the royalty for a refunded sale, never going below zero."""
        royalty = round(sale_amount * self.commission_rate, 2)
        current = self.earnings or Earnings()
        self.earnings = Earnings(
            total=max(round(current.total - royalty, 2), 0.0),
            current_month=max(round(current.current_month - royalty, 2), 0.0),
            pending_payout=max(round(current.pending_payout - royalty, 2), 0.0),
            last_payout_at=current.last_payout_at,
        )
        self.total_sales = max((self.total_sales or 0) - copies, 0)
        return royalty

    def record_payout(self, amount):
        from bookstore.accounts.publisher.events import PayoutRecorded

        current = self.earnings or Earnings()
        if amount <= 0:
            raise ValidationError({"amount": ["Payout amount must be positive"]})
        if amount > current.pending_payout:
            raise ValidationError({"amount": ["Insufficient funds for payment"]})

        now = datetime.now()
        self.earnings = Earnings(
            total=current.total,
            current_month=current.current_month,
            pending_payout=round(current.pending_payout - amount, 2),
            last_payout_at=now,
        )
        self.raise_(PayoutRecorded(publisher_id=self.id, amount=amount, paid_at=now))

    def verify(self, documents_submitted=True):
        from bookstore.accounts.publisher.events import PublisherVerified

        if self.is_verified:
            raise ValidationError({"verification": ["Publisher is already verified"]})

        now = datetime.now()
        self.verification = Verification(
            is_verified=True,
            verified_at=now,
            documents_submitted=documents_submitted,
        )
        self.raise_(PublisherVerified(publisher_id=self.id, verified_at=now))


@bookstore.repository(part_of=Publisher)
class PublisherRepository:
    def find_by_user(self, user_id) -> Publisher | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first
