"""Manual payment verification — proof submission and admin review."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.ordering.order.order import Order
from bookstore.utils.storage import remove_upload


@bookstore.command(part_of="Order")
class SubmitPaymentProof:
    """Attach an uploaded proof of payment to a pending manual-payment order."""

    order_id = Identifier(required=True)
    submitted_by = Identifier(required=True)
    proof_path = String(required=True, max_length=500)
    customer_notes = String(max_length=1000)


@bookstore.command(part_of="Order")
class ReviewPaymentProof:
    """Admin approves or rejects a submitted payment proof."""

    order_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    approved = Boolean(required=True)
    admin_notes = String(max_length=1000)


@bookstore.command_handler(part_of=Order)
class PaymentVerificationHandler:
    @handle(SubmitPaymentProof)
    def submit_payment_proof(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        try:
            order.submit_payment_proof(
                proof_path=command.proof_path,
                submitted_by=command.submitted_by,
                customer_notes=command.customer_notes,
            )
        except ValidationError:
            # The file was stored before the order accepted it
            remove_upload(command.proof_path)
            raise
        repo.add(order)

    @handle(ReviewPaymentProof)
    def review_payment_proof(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.review_payment_proof(
            reviewer_id=command.reviewer_id,
            approved=command.approved,
            admin_notes=command.admin_notes,
        )
        repo.add(order)
