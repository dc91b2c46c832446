"""
Endpoints para procesar órdenes manualmente.

Útil para reprocesar una orden cuyo webhook falló o para probar el mapeo
de bundles contra una orden real.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Path

from app.api.v1.dependencies import get_webhook_processor
from app.api.v1.schemas.shopify_schemas import order_to_dict
from app.services.webhook_handler import WebhookProcessor, WebhookStatus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{order_id}/process")
async def process_order(
    order_id: str = Path(..., min_length=1, description="ID de la orden en Shopify"),
    processor: WebhookProcessor = Depends(get_webhook_processor),
) -> Dict[str, Any]:
    """
    Obtiene una orden de Shopify y la pasa por el mismo pipeline que el webhook.

    Args:
        order_id: ID de la orden (numérico o GID)

    Returns:
        Dict: Conteo de líneas si se dividió, o la orden sin cambios

    Raises:
        ShopifyAPIException: Si falla la lectura o la actualización (502)
    """
    order, result = await processor.process_order_by_id(order_id)

    if result.status == WebhookStatus.FAILED and result.error is not None:
        raise result.error

    if result.status == WebhookStatus.NO_CHANGE:
        return {
            "status": result.status.value,
            "message": "No bundles found in order",
            "order": order_to_dict(order),
        }

    return {
        "status": result.status.value,
        "order_id": result.order_id,
        "order_name": result.order_name,
        "original_items": result.original_items,
        "new_items": result.new_items,
    }
