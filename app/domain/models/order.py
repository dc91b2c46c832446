"""
Order domain model.

Minimal view of a Shopify order: identity plus its ordered line items.
"""

from dataclasses import dataclass, field

from .line_item import Identifier, LineItem


@dataclass(frozen=True)
class Order:
    """
    Domain model representing a Shopify order.

    Attributes:
        id: Shopify order ID
        name: Human readable order name (e.g. "#1001")
        line_items: Ordered line items
    """

    id: Identifier
    name: str
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Normalize line items to an immutable tuple."""
        if not isinstance(self.line_items, tuple):
            object.__setattr__(self, "line_items", tuple(self.line_items))

    @property
    def items_count(self) -> int:
        """Get total number of line items."""
        return len(self.line_items)

    @property
    def skus(self) -> list[str | None]:
        """SKUs of the line items, in order."""
        return [item.sku for item in self.line_items]
