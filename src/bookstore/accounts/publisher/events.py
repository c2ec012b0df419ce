"""Domain events for the Publisher profile aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from bookstore.domain import bookstore


@bookstore.event(part_of="Publisher")
class PublisherProfileCreated:
    __version__ = 1

    publisher_id: Identifier(required=True)
    user_id: Identifier(required=True)
    pen_name: String()


@bookstore.event(part_of="Publisher")
class EarningsCredited:
    """Royalties from a completed sale were added to the pending payout."""

    __version__ = 1

    publisher_id: Identifier(required=True)
    sale_amount: Float(required=True)
    royalty: Float(required=True)


@bookstore.event(part_of="Publisher")
class PayoutRecorded:
    __version__ = 1

    publisher_id: Identifier(required=True)
    amount: Float(required=True)
    paid_at: DateTime(required=True)


@bookstore.event(part_of="Publisher")
class PublisherVerified:
    __version__ = 1

    publisher_id: Identifier(required=True)
    verified_at: DateTime(required=True)
