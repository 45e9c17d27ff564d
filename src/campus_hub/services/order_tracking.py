"""Order status tracking after placement."""

import logging
from dataclasses import dataclass

from campus_hub.domain.orders import (
    ACTIVE_STATUSES,
    OrderRecord,
    OrderStatus,
    can_transition,
)
from campus_hub.errors import InvalidStatusTransition
from campus_hub.services.orders import OrderRepository

_logger = logging.getLogger(__name__)


@dataclass
class OrderTrackingService:
    """Reads orders and moves them along the status progression."""

    repository: OrderRepository

    async def list_orders(self, student_id: str, limit: int = 20) -> list[OrderRecord]:
        """Return a student's most recent orders."""
        return await self.repository.list_orders_for_student(student_id, limit)

    async def advance(self, order_id: str, target: OrderStatus) -> OrderRecord:
        """Move an order to the target status if the progression allows it."""
        order = await self.repository.get_order(order_id)
        if order is None:
            raise KeyError(order_id)
        if not can_transition(order.status, target):
            raise InvalidStatusTransition(
                f"Cannot move order {order_id} from {order.status} to {target}"
            )
        updated = await self.repository.update_status(order_id, target)
        _logger.info(
            "Order status changed",
            extra={"order_id": order_id, "from": str(order.status), "to": str(target)},
        )
        return updated

    async def cancel(self, order_id: str) -> OrderRecord:
        """Cancel an order that has not been marked ready yet."""
        return await self.advance(order_id, OrderStatus.CANCELLED)

    async def list_live_orders(self, vendor_id: str) -> list[OrderRecord]:
        """Return a vendor's orders that still need handling."""
        return await self.repository.list_orders_for_vendor(vendor_id, ACTIVE_STATUSES)

    async def advance_for_vendor(
        self, vendor_id: str, order_id: str, target: OrderStatus
    ) -> OrderRecord:
        """Advance an order on behalf of the vendor that received it."""
        order = await self.repository.get_order(order_id)
        if order is None or order.vendor_id != vendor_id:
            raise KeyError(order_id)
        return await self.advance(order_id, target)
