"""Customer profile reacts to order events to keep purchase history current."""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from bookstore.accounts.customer.customer import Customer
from bookstore.domain import bookstore
from bookstore.ordering.order.events import OrderPlaced

logger = structlog.get_logger(__name__)


@bookstore.event_handler(part_of=Customer, stream_category="bookstore::order")
class OrderingCustomerEventHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        repo = current_domain.repository_for(Customer)
        customer = repo.get(event.customer_id)
        customer.record_purchase(
            order_id=event.order_id,
            total=event.total_price,
            item_count=event.item_count,
            purchased_at=event.placed_at,
        )
        repo.add(customer)
        logger.info(
            "Recorded purchase in customer history",
            customer_id=str(event.customer_id),
            order_id=str(event.order_id),
        )
