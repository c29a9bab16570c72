from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from .chat_models import Order, Reply

logger = logging.getLogger(__name__)

STATUS_NOTES = {
    "pending": "Your order is being processed. We'll update you once it's confirmed.",
    "confirmed": "Your order has been confirmed and is being prepared for shipment.",
    "shipped": "Your order has been shipped! You should receive it soon.",
    "delivered": "Your order has been delivered! Thank you for your purchase.",
    "cancelled": "This order has been cancelled.",
}

LOOKUP_FAILED = "Sorry, I encountered an error while checking your order status. Please try again later."


class OrderLookup(Protocol):
    async def get_order_by_id(self, order_id: str) -> Optional[Order]: ...


def not_found_text(order_id: str) -> str:
    return f'I couldn\'t find an order with ID "{order_id}". Please check your order number and try again.'


def _amount_str(total: float) -> str:
    # 1500.0 -> "1500", 1499.5 -> "1499.5"
    if float(total).is_integer():
        return str(int(total))
    return str(total)


def _date_str(order: Order) -> str:
    d = order.created_at
    return f"{d.month}/{d.day}/{d.year}"


def format_order_report(order_id: str, order: Order) -> Reply:
    status = order.status
    note = STATUS_NOTES.get(status, f"Current status: {status}")
    return Reply.of(
        f"Order #{order_id} Status:",
        "",
        f"Status: {status}",
        f"Payment: {order.payment_status}",
        f"Total: PKR {_amount_str(order.total)}",
        f"Order Date: {_date_str(order)}",
        "",
        note,
    )


class OrderStatusResponder:
    def __init__(self, lookup: OrderLookup, timeout: float = 5.0) -> None:
        self.lookup = lookup
        self.timeout = timeout

    async def respond(self, order_id: str) -> Reply:
        try:
            order = await asyncio.wait_for(self.lookup.get_order_by_id(order_id), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Order lookup timed out after {self.timeout}s for {order_id!r}")
            return Reply.of(LOOKUP_FAILED)
        except Exception as e:
            logger.warning(f"Order lookup failed for {order_id!r}: {e}")
            return Reply.of(LOOKUP_FAILED)
        if order is None:
            return Reply.of(not_found_text(order_id))
        return format_order_report(order_id, order)
