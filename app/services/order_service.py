"""
OrderService: orders captured by the sales agent (`ai_orders`).
"""

import logging
import time
from typing import List, Optional

from app.errors import OrderValidationError
from app.models.order_models import Order, OrderCreate, OrderStatus
from app.services.supabase_client import first_row, get_supabase

logger = logging.getLogger(__name__)

BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def make_invoice_number(now_ms: Optional[int] = None) -> str:
    """AI-<millisecond timestamp in base 36>."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"AI-{_base36(now_ms)}"


def compute_total(data: OrderCreate) -> tuple[float, float]:
    """(subtotal, total). Subtotal defaults to the sum of the line items."""
    subtotal = data.subtotal
    if subtotal is None:
        subtotal = sum(item.line_total for item in data.products)
    total = subtotal + data.delivery_charge - data.advance_amount
    return subtotal, total


class OrderService:

    def __init__(self, client=None):
        self.client = client if client is not None else get_supabase()

    def create_order(self, owner_id: str, data: OrderCreate) -> Order:
        missing = [
            name for name in ("customer_name", "customer_phone", "customer_address")
            if not getattr(data, name).strip()
        ]
        if missing:
            raise OrderValidationError("Customer name, phone, and address are required")

        subtotal, total = compute_total(data)
        row = {
            "user_id": owner_id,
            "page_id": data.page_id,
            "customer_name": data.customer_name.strip(),
            "customer_phone": data.customer_phone.strip(),
            "customer_address": data.customer_address.strip(),
            "customer_fb_id": data.customer_fb_id,
            "products": [item.model_dump() for item in data.products],
            "subtotal": subtotal,
            "delivery_charge": data.delivery_charge,
            "advance_amount": data.advance_amount,
            "total": total,
            "invoice_number": make_invoice_number(),
            "notes": data.notes,
            "conversation_id": data.conversation_id,
            "order_status": OrderStatus.PENDING.value,
        }

        stored = first_row(self.client.table("ai_orders").insert(row).execute())
        order = Order.model_validate(stored or row)
        logger.info("Order %s created for owner %s (total=%s)", order.invoice_number, owner_id, total)
        return order

    def update_status(self, owner_id: str, order_id: str, status: OrderStatus) -> Optional[Order]:
        """New status for the owner's order. None if no such order."""
        response = self.client.table("ai_orders") \
            .update({"order_status": OrderStatus(status).value}) \
            .eq("id", order_id) \
            .eq("user_id", owner_id) \
            .execute()

        stored = first_row(response)
        if not stored:
            logger.info("Order %s not found for owner %s", order_id, owner_id)
            return None
        return Order.model_validate(stored)

    def list_orders(self, owner_id: str, page_id: Optional[str] = None,
                    status: Optional[OrderStatus] = None, limit: int = 50) -> List[Order]:
        query = self.client.table("ai_orders") \
            .select("*") \
            .eq("user_id", owner_id)
        if page_id:
            query = query.eq("page_id", page_id)
        if status:
            query = query.eq("order_status", OrderStatus(status).value)

        response = query.order("created_at", desc=True).limit(limit).execute()
        return [Order.model_validate(row) for row in response.data or []]
