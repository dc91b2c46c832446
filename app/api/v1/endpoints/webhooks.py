"""
Endpoints para webhooks de Shopify.

Recibe orders/create, divide los bundles y actualiza la orden antes de
responder: Shopify reenvía el webhook si la respuesta no es 2xx, y ese
reenvío es el único mecanismo de reintento.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from app.api.v1.dependencies import get_webhook_processor
from app.core.logging_config import log_webhook_received
from app.services.webhook_handler import WebhookProcessor, WebhookStatus

logger = logging.getLogger(__name__)

# Crear router
router = APIRouter()


@router.post("/orders/create", status_code=status.HTTP_200_OK)
async def order_created_webhook(
    request: Request,
    processor: WebhookProcessor = Depends(get_webhook_processor),
) -> Dict[str, Any]:
    """
    Webhook orders/create.

    Returns:
        Dict: processed, no_change o duplicate

    Raises:
        WebhookAuthenticationException: Firma inválida (401)
        MalformedPayloadException: Payload inválido (400)
        ShopifyAPIException: Fallo al actualizar la orden (502)
    """
    body = await request.body()
    signature = request.headers.get("X-Shopify-Hmac-Sha256")
    webhook_id = request.headers.get("X-Shopify-Webhook-Id")
    shop = request.headers.get("X-Shopify-Shop-Domain", "unknown")
    topic = request.headers.get("X-Shopify-Topic", "orders/create")

    log_webhook_received(topic, shop, webhook_id=webhook_id)

    result = await processor.handle_webhook(body, signature=signature, webhook_id=webhook_id)

    if result.status == WebhookStatus.FAILED and result.error is not None:
        raise result.error

    return result.to_dict()


@router.get("/metrics")
async def get_webhook_metrics(processor: WebhookProcessor = Depends(get_webhook_processor)) -> Dict[str, Any]:
    """
    Métricas del procesador de webhooks.

    Returns:
        Dict: Contadores de procesamiento
    """
    return processor.get_metrics()
