"""
Modelos Pydantic para los payloads REST de órdenes de Shopify.

Este módulo define los schemas que validan estrictamente el cuerpo de los
webhooks `orders/create` y las respuestas de la Admin REST API, y los
convierte a los modelos de dominio.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from app.domain.models import LineItem, Order

ShopifyId = Union[StrictInt, str]


class ShopifyLineItem(BaseModel):
    """Modelo para línea de pedido (formato REST, snake_case)."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[ShopifyId] = None
    variant_id: Optional[ShopifyId] = None
    sku: Optional[str] = None
    quantity: StrictInt = Field(gt=0)
    title: str
    price: str
    grams: Union[StrictInt, float] = Field(default=0, ge=0)
    taxable: bool = False

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v):
        """Valida que el precio sea un decimal no negativo y lo conserva como string."""
        if isinstance(v, bool) or v is None:
            raise ValueError("price must be a decimal string")
        if isinstance(v, (int, float, Decimal)):
            v = str(v)
        if not isinstance(v, str):
            raise ValueError("price must be a decimal string")
        try:
            amount = Decimal(v.strip())
        except InvalidOperation as e:
            raise ValueError(f"price is not a decimal: {v!r}") from e
        if not amount.is_finite() or amount < 0:
            raise ValueError(f"price must be a non-negative decimal: {v!r}")
        return v

    @field_validator("grams", mode="before")
    @classmethod
    def default_grams(cls, v):
        """Shopify puede enviar grams=null."""
        return 0 if v is None else v

    @field_validator("taxable", mode="before")
    @classmethod
    def default_taxable(cls, v):
        """Shopify puede enviar taxable=null."""
        return False if v is None else v

    def to_domain(self) -> LineItem:
        """Convierte el schema al modelo de dominio."""
        return LineItem(
            id=self.id,
            variant_id=self.variant_id,
            sku=self.sku,
            quantity=self.quantity,
            title=self.title,
            price=self.price,
            grams=self.grams,
            taxable=self.taxable,
        )


class ShopifyOrder(BaseModel):
    """Modelo para pedido de Shopify tal como llega en el webhook orders/create."""

    model_config = ConfigDict(extra="ignore")

    id: ShopifyId
    name: str
    line_items: List[ShopifyLineItem]

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        """El ID de la orden no puede estar vacío."""
        if isinstance(v, str) and not v.strip():
            raise ValueError("order id cannot be empty")
        return v

    def to_domain(self) -> Order:
        """Convierte el schema al modelo de dominio."""
        return Order(
            id=self.id,
            name=self.name,
            line_items=tuple(item.to_domain() for item in self.line_items),
        )


class ShopifyOrderResponse(BaseModel):
    """Respuesta de GET/PUT orders/{id}.json."""

    model_config = ConfigDict(extra="ignore")

    order: ShopifyOrder


def order_to_dict(order: Order) -> dict[str, Any]:
    """
    Serializa una orden de dominio al formato REST de Shopify.

    Args:
        order: Orden de dominio

    Returns:
        Dict: Orden con line_items en formato Shopify
    """
    return {
        "id": order.id,
        "name": order.name,
        "line_items": [item.to_shopify_dict() for item in order.line_items],
    }
