"""Supabase repository for campus orders."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from supabase import Client

from campus_hub.domain.orders import NewOrder, OrderItem, OrderRecord, OrderStatus
from campus_hub.services.orders import OrderRepository

_ORDER_COLUMNS = (
    "id, student_id, vendor_id, total_price, service_fee, payment_method, "
    "qr_code, notes, pickup_deadline, status"
)


@dataclass
class SupabaseOrderRepository(OrderRepository):
    """Supabase implementation for campus_orders and campus_order_items."""

    client: Client

    async def create_order(self, order: NewOrder) -> OrderRecord:
        """Create an order row and return it."""
        query = self.client.table("campus_orders").insert(
            {
                "student_id": order.student_id,
                "vendor_id": order.vendor_id,
                "total_price": float(order.total_price),
                "service_fee": float(order.service_fee),
                "payment_method": order.payment_method,
                "qr_code": order.qr_code,
                "notes": order.notes,
                "pickup_deadline": order.pickup_deadline.isoformat(),
                "status": OrderStatus.PLACED.value,
            }
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            raise RuntimeError("Failed to create campus order")
        return _parse_order(response.data[0])

    async def create_order_items(self, items: list[OrderItem]) -> None:
        """Create the item rows of an order."""
        payload = [
            {
                "order_id": item.order_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": float(item.unit_price),
                "subtotal": float(item.subtotal),
            }
            for item in items
        ]
        if not payload:
            return
        query = self.client.table("campus_order_items").insert(payload)
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            raise RuntimeError("Failed to create campus order items")

    async def get_order(self, order_id: str) -> OrderRecord | None:
        """Return an order by id, if present."""
        query = (
            self.client.table("campus_orders")
            .select(_ORDER_COLUMNS)
            .eq("id", order_id)
            .limit(1)
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            return None
        return _parse_order(response.data[0])

    async def list_orders_for_student(
        self, student_id: str, limit: int
    ) -> list[OrderRecord]:
        """Return a student's most recent orders."""
        query = (
            self.client.table("campus_orders")
            .select(_ORDER_COLUMNS)
            .eq("student_id", student_id)
            .order("created_at", desc=True)
            .limit(limit)
        )
        response = await asyncio.to_thread(query.execute)
        return [_parse_order(row) for row in response.data or []]

    async def list_orders_for_vendor(
        self, vendor_id: str, statuses: tuple[OrderStatus, ...]
    ) -> list[OrderRecord]:
        """Return a vendor's orders in the given statuses, newest first."""
        query = (
            self.client.table("campus_orders")
            .select(_ORDER_COLUMNS)
            .eq("vendor_id", vendor_id)
            .in_("status", [status.value for status in statuses])
            .order("created_at", desc=True)
        )
        response = await asyncio.to_thread(query.execute)
        return [_parse_order(row) for row in response.data or []]

    async def update_status(self, order_id: str, status: OrderStatus) -> OrderRecord:
        """Set an order's status and return the updated row."""
        query = (
            self.client.table("campus_orders")
            .update({"status": status.value})
            .eq("id", order_id)
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            raise RuntimeError("Failed to update campus order status")
        return _parse_order(response.data[0])


def _parse_order(row: dict[str, object]) -> OrderRecord:
    return OrderRecord(
        id=str(row["id"]),
        student_id=str(row["student_id"]),
        vendor_id=str(row["vendor_id"]),
        total_price=Decimal(str(row.get("total_price", 0))),
        service_fee=Decimal(str(row.get("service_fee", 0))),
        payment_method=str(row.get("payment_method") or "cod"),
        qr_code=str(row.get("qr_code") or ""),
        notes=row.get("notes"),
        pickup_deadline=datetime.fromisoformat(str(row["pickup_deadline"])),
        status=OrderStatus(str(row.get("status") or OrderStatus.PLACED.value)),
    )
