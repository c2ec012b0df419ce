"""Admin activity log records payment proof reviews."""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from bookstore.accounts.admin.admin import Admin
from bookstore.domain import bookstore
from bookstore.ordering.order.events import PaymentProofReviewed

logger = structlog.get_logger(__name__)


@bookstore.event_handler(part_of=Admin, stream_category="bookstore::order")
class OrderingAdminEventHandler:
    @handle(PaymentProofReviewed)
    def on_payment_proof_reviewed(self, event: PaymentProofReviewed) -> None:
        repo = current_domain.repository_for(Admin)
        admin = repo.find_by_user(event.reviewer_id)
        if admin is None:
            logger.warning("Proof reviewed by user without admin profile", reviewer_id=str(event.reviewer_id))
            return
        action = "approve_payment" if event.approved else "reject_payment"
        admin.log_activity(action, target="order", target_id=str(event.order_id))
        repo.add(admin)
