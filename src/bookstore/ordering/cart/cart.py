"""Cart aggregate — the customer's pending selection of books.

Each customer has exactly one cart. Prices are captured from the catalogue
when a book is added and stay fixed until the line is removed, so checkout
charges what the customer saw.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from bookstore.domain import bookstore
from bookstore.ordering.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated, CartsMerged


@bookstore.entity(part_of="Cart")
class CartLine:
    book_id = Identifier(required=True)
    publisher_id = Identifier()
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def subtotal(self) -> float:
        return round(self.quantity * self.price, 2)


@bookstore.aggregate
class Cart:
    customer_id = Identifier(required=True, unique=True)
    items = HasMany(CartLine)
    total_price = Float(default=0.0, min_value=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_lines(self):
        expected = round(sum(line.subtotal for line in self.items), 2)
        if round(self.total_price or 0.0, 2) != expected:
            raise ValidationError({"total_price": ["Cart total does not match its lines"]})

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, total_price=0.0, created_at=now, updated_at=now)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def line_for(self, book_id):
        return next((line for line in self.items if str(line.book_id) == str(book_id)), None)

    def _recalculate(self):
        self.total_price = round(sum(line.subtotal for line in self.items), 2)
        self.updated_at = datetime.now(UTC)

    def add_item(self, book_id, quantity, price, title=None, publisher_id=None):
        """Add a book, accumulating quantity when the book is already in the cart."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = self.line_for(book_id)
        with atomic_change(self):
            if existing:
                existing.quantity += quantity
            else:
                self.add_items(
                    CartLine(
                        book_id=book_id,
                        publisher_id=publisher_id,
                        title=title,
                        quantity=quantity,
                        price=price,
                        added_at=datetime.now(UTC),
                    )
                )
            self._recalculate()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                book_id=str(book_id),
                quantity=quantity,
                price=price,
            )
        )

    def update_quantity(self, book_id, quantity):
        """Set a line's quantity. Zero removes the line."""
        if quantity < 0:
            raise ValidationError({"quantity": ["Quantity cannot be negative"]})

        line = self.line_for(book_id)
        if line is None:
            raise ValidationError({"book_id": ["Book not found in cart"]})

        if quantity == 0:
            self.remove_item(book_id)
            return

        previous_quantity = line.quantity
        with atomic_change(self):
            line.quantity = quantity
            self._recalculate()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                book_id=str(book_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, book_id):
        line = self.line_for(book_id)
        if line is None:
            raise ValidationError({"book_id": ["Book not found in cart"]})

        with atomic_change(self):
            self.remove_items(line)
            self._recalculate()

        self.raise_(CartItemRemoved(cart_id=str(self.id), book_id=str(book_id)))

    def clear(self):
        with atomic_change(self):
            for line in list(self.items):
                self.remove_items(line)
            self._recalculate()
        self.raise_(CartCleared(cart_id=str(self.id)))

    def merge(self, guest_lines):
        """Fold guest-session lines into this cart.

        Args:
            guest_lines: dicts with book_id, quantity, price and optionally
                title and publisher_id. Books already in the cart keep their
                captured price; only the quantity grows.
        """
        merged = 0
        with atomic_change(self):
            for guest in guest_lines:
                quantity = int(guest.get("quantity", 1))
                if quantity < 1:
                    continue
                existing = self.line_for(guest["book_id"])
                if existing:
                    existing.quantity += quantity
                else:
                    self.add_items(
                        CartLine(
                            book_id=guest["book_id"],
                            publisher_id=guest.get("publisher_id"),
                            title=guest.get("title"),
                            quantity=quantity,
                            price=guest["price"],
                            added_at=datetime.now(UTC),
                        )
                    )
                merged += 1
            self._recalculate()

        self.raise_(CartsMerged(cart_id=str(self.id), lines_merged=merged))
        return merged


@bookstore.repository(part_of=Cart)
class CartRepository:
    def find_by_customer(self, customer_id) -> Cart | None:
        return self._dao.query.filter(customer_id=str(customer_id)).all().first
