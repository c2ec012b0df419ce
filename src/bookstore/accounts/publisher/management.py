"""Publisher profile management: details, payouts and verification."""

import json

from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from bookstore.accounts.publisher.publisher import Publisher
from bookstore.domain import bookstore


@bookstore.command(part_of="Publisher")
class UpdatePublisherProfile:
    """Partial update; only the fields supplied are changed."""

    publisher_id: Identifier(required=True)
    pen_name: String(max_length=100)
    biography: String(max_length=2000)
    website: String(max_length=255)
    genres: Text()  # JSON list of genre names


@bookstore.command(part_of="Publisher")
class RecordPayout:
    """Pay out part of the publisher's pending royalties."""

    publisher_id: Identifier(required=True)
    amount: Float(required=True, min_value=0.01)


@bookstore.command(part_of="Publisher")
class VerifyPublisher:
    publisher_id: Identifier(required=True)
    documents_submitted: Boolean(default=True)


@bookstore.command_handler(part_of=Publisher)
class ManagePublisherHandler:
    @handle(UpdatePublisherProfile)
    def update_profile(self, command):
        repo = current_domain.repository_for(Publisher)
        publisher = repo.get(command.publisher_id)

        changes = {
            field: getattr(command, field)
            for field in ("pen_name", "biography", "website")
            if getattr(command, field) is not None
        }
        if command.genres is not None:
            changes["genres"] = json.loads(command.genres) if isinstance(command.genres, str) else command.genres

        publisher.update_details(**changes)
        repo.add(publisher)

    @handle(RecordPayout)
    def record_payout(self, command):
        repo = current_domain.repository_for(Publisher)
        publisher = repo.get(command.publisher_id)
        publisher.record_payout(command.amount)
        repo.add(publisher)

    @handle(VerifyPublisher)
    def verify_publisher(self, command):
        repo = current_domain.repository_for(Publisher)
        publisher = repo.get(command.publisher_id)
        publisher.verify(documents_submitted=command.documents_submitted)
        repo.add(publisher)
