"""
Interfaces/Protocols for the order splitting services.

The reconciler and webhook processor only depend on these contracts,
so tests can plug in mocks instead of the aiohttp client.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from app.domain.models import LineItem, Order
from app.domain.models.line_item import Identifier


class IOrderStore(Protocol):
    """Protocol for the external order store (Shopify Admin API)."""

    async def get_order(self, order_id: Identifier) -> Order:
        """Fetch one order by id."""
        ...

    async def update_order_line_items(self, order_id: Identifier, line_items: Sequence[LineItem]) -> dict[str, Any]:
        """Replace the full line item list of an order."""
        ...
