"""
Line item domain model.

Represents one entry of a Shopify order as the splitter sees it.
"""

from dataclasses import dataclass
from typing import Any

from app.domain.value_objects.money import Money

# Shopify usa enteros para IDs en REST, pero aceptamos también GIDs
Identifier = int | str


@dataclass(frozen=True)
class LineItem:
    """
    Domain model representing an order line item.

    Instances are immutable: the resolver builds new items instead of
    modifying the ones received in the webhook.

    Attributes:
        sku: Stock keeping unit (None for custom items without SKU)
        quantity: Units ordered (positive)
        title: Line item title
        price: Unit price as a decimal string, exactly as Shopify sent it
        grams: Weight in grams (non-negative)
        taxable: Whether the item is taxable
        id: Shopify line item ID (None for items created by a split)
        variant_id: Shopify variant ID (None lets Shopify resolve it by SKU)
    """

    sku: str | None
    quantity: int
    title: str
    price: str
    grams: int | float = 0
    taxable: bool = False
    id: Identifier | None = None
    variant_id: Identifier | None = None

    def __post_init__(self) -> None:
        """Validate line item data after initialization."""
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError(f"Quantity must be a positive integer: {self.quantity!r}")

        if self.grams < 0:
            raise ValueError(f"Grams cannot be negative: {self.grams}")

        # Valida que el precio sea un decimal no negativo
        Money.from_string(self.price)

    @property
    def unit_price(self) -> Money:
        """Price as a Money value object."""
        return Money.from_string(self.price)

    def to_shopify_dict(self) -> dict[str, Any]:
        """
        Convert to the Shopify REST ``line_items`` representation.

        Items produced by a split carry ``variant_id: null`` and no ``id``.
        """
        data: dict[str, Any] = {}
        if self.id is not None:
            data["id"] = self.id
        data.update(
            {
                "variant_id": self.variant_id,
                "sku": self.sku,
                "quantity": self.quantity,
                "title": self.title,
                "price": self.price,
                "grams": self.grams,
                "taxable": self.taxable,
            }
        )
        return data
