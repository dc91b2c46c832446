"""
Reconciliación de órdenes divididas con Shopify.

Toma el resultado del resolver y, si hubo cambios, envía la lista completa de
líneas a la tienda en una única llamada. No reintenta: el reintento lo hace
Shopify reenviando el webhook.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.domain.models.line_item import Identifier
from app.services.bundle_resolver import SplitResult
from app.services.interfaces import IOrderStore
from app.utils.error_handler import ShopifyAPIException

logger = logging.getLogger(__name__)


class ReconcileStatus(str, Enum):
    """Resultado de la reconciliación."""

    NO_CHANGE = "no_change"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconcileOutcome:
    """
    Resultado de reconciliar una orden.

    Attributes:
        status: NO_CHANGE, UPDATED o FAILED
        order_id: ID de la orden
        items_count: Líneas enviadas a la tienda (0 si no hubo llamada)
        error: Causa del fallo cuando status es FAILED
    """

    status: ReconcileStatus
    order_id: Identifier
    items_count: int = 0
    error: Optional[ShopifyAPIException] = None

    @property
    def succeeded(self) -> bool:
        return self.status != ReconcileStatus.FAILED

    def to_dict(self) -> dict:
        data = {
            "status": self.status.value,
            "order_id": self.order_id,
            "items_count": self.items_count,
        }
        if self.error is not None:
            data["error"] = self.error.message
        return data


class OrderReconciler:
    """
    Aplica un SplitResult sobre la orden en la tienda.
    """

    def __init__(self, order_store: IOrderStore):
        """
        Args:
            order_store: Cliente de la tienda (get_order / update_order_line_items)
        """
        self.order_store = order_store

    async def reconcile(self, order_id: Identifier, split_result: SplitResult) -> ReconcileOutcome:
        """
        Reconcilia una orden.

        Args:
            order_id: ID de la orden en Shopify
            split_result: Resultado del resolver

        Returns:
            ReconcileOutcome: NO_CHANGE sin llamada externa, UPDATED tras una
            única actualización exitosa, FAILED con la causa en otro caso
        """
        if not split_result.changed:
            logger.info(f"Order {order_id}: no bundles found, nothing to update")
            return ReconcileOutcome(status=ReconcileStatus.NO_CHANGE, order_id=order_id)

        try:
            await self.order_store.update_order_line_items(order_id, split_result.new_line_items)
        except ShopifyAPIException as e:
            logger.error(f"Order {order_id}: failed to update line items - {e.message}")
            return ReconcileOutcome(
                status=ReconcileStatus.FAILED,
                order_id=order_id,
                items_count=split_result.items_count,
                error=e,
            )

        logger.info(f"Order {order_id}: updated with {split_result.items_count} line items")
        return ReconcileOutcome(
            status=ReconcileStatus.UPDATED,
            order_id=order_id,
            items_count=split_result.items_count,
        )
