from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .chat_models import Order


def store_headers() -> Dict[str, str]:
    return {"Accept": "application/json"}


class HttpOrderLookup:
    """Reads orders from the storefront API (GET /api/orders/{id})."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def order_url(self, order_id: str) -> str:
        return f"{self.base_url}/api/orders/{quote(order_id, safe='')}"

    async def get_order_by_id(self, order_id: str) -> Optional[Order]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await client.get(self.order_url(order_id), headers=store_headers())
            if r.status_code == 404:
                return None
            r.raise_for_status()
            data: Any = r.json()
        # The storefront wraps payloads as {"success": ..., "data": {...}}
        if isinstance(data, dict) and "data" in data:
            data = data.get("data")
        if not data:
            return None
        return Order.model_validate(data)
