"""
Manejador de webhooks orders/create de Shopify.

Este módulo verifica la firma del webhook, valida el payload, divide los
bundles de la orden y actualiza la orden en Shopify una sola vez por entrega.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from app.api.v1.schemas.shopify_schemas import ShopifyOrder
from app.core.config import Settings, get_settings
from app.domain.models import BundleMapping, Order
from app.domain.models.line_item import Identifier
from app.services.bundle_resolver import resolve
from app.services.interfaces import IOrderStore
from app.services.order_reconciler import OrderReconciler, ReconcileStatus
from app.utils.error_handler import (
    MalformedPayloadException,
    ShopifyAPIException,
    WebhookAuthenticationException,
)
from app.utils.webhook_registry import WebhookDeliveryRegistry

logger = logging.getLogger(__name__)


class WebhookStatus(str, Enum):
    """Resultado de procesar una orden."""

    PROCESSED = "processed"
    NO_CHANGE = "no_change"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class WebhookResult:
    """
    Resultado del pipeline resolve + reconcile para una orden.

    Attributes:
        status: Estado final
        order_id: ID de la orden
        order_name: Nombre legible (#1001)
        webhook_id: X-Shopify-Webhook-Id si lo hubo
        original_items: Líneas recibidas
        new_items: Líneas tras la división
        duration_seconds: Duración del procesamiento
        error: Causa cuando status es FAILED
    """

    status: WebhookStatus
    order_id: Identifier
    order_name: str = ""
    webhook_id: Optional[str] = None
    original_items: int = 0
    new_items: int = 0
    duration_seconds: float = 0.0
    error: Optional[ShopifyAPIException] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "status": self.status.value,
            "order_id": self.order_id,
            "order_name": self.order_name,
            "webhook_id": self.webhook_id,
            "original_items": self.original_items,
            "new_items": self.new_items,
            "duration_seconds": round(self.duration_seconds, 3),
        }
        if self.error is not None:
            data["error"] = self.error.message
        return data


class WebhookProcessor:
    """
    Procesador principal de webhooks de órdenes.
    """

    def __init__(
        self,
        bundle_mapping: BundleMapping,
        order_store: IOrderStore,
        settings: Optional[Settings] = None,
        registry: Optional[WebhookDeliveryRegistry] = None,
    ):
        """
        Inicializa el procesador de webhooks.

        Args:
            bundle_mapping: Mapeo de bundles cargado al arrancar
            order_store: Cliente de la tienda
            settings: Configuración (por defecto la global)
            registry: Registro de entregas (por defecto uno nuevo)
        """
        self.settings = settings or get_settings()
        self.bundle_mapping = bundle_mapping
        self.order_store = order_store
        self.reconciler = OrderReconciler(order_store)
        self.registry = registry or WebhookDeliveryRegistry(self.settings.WEBHOOK_DEDUP_CACHE_SIZE)
        self.metrics: Dict[str, int] = {
            "received": 0,
            "updated": 0,
            "no_change": 0,
            "duplicates": 0,
            "failed": 0,
            "rejected": 0,
            "manual": 0,
        }
        self.last_processed_at: Optional[datetime] = None

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """
        Verifica la firma HMAC del webhook.

        Args:
            payload: Cuerpo crudo de la petición
            signature: Valor del header X-Shopify-Hmac-Sha256 (base64)

        Returns:
            bool: True si la firma es válida o no hay secret configurado
        """
        secret = self.settings.SHOPIFY_WEBHOOK_SECRET
        if not secret:
            logger.warning("No webhook secret configured, skipping verification")
            return True

        expected_signature = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()

        try:
            received_signature = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Webhook signature is not valid base64")
            return False

        # Comparación segura contra timing attacks
        return hmac.compare_digest(expected_signature, received_signature)

    def authenticate(self, payload: bytes, signature: Optional[str]) -> None:
        """
        Rechaza el webhook si la firma no es válida.

        Sin header de firma se acepta, salvo que REQUIRE_WEBHOOK_SIGNATURE
        esté activo y haya secret configurado.

        Raises:
            WebhookAuthenticationException: Firma inválida o ausente cuando es obligatoria
        """
        if not signature:
            if self.settings.REQUIRE_WEBHOOK_SIGNATURE and self.settings.SHOPIFY_WEBHOOK_SECRET:
                raise WebhookAuthenticationException("Missing webhook signature")
            return

        if not self.verify_webhook_signature(payload, signature):
            raise WebhookAuthenticationException()

    def parse_order(self, payload: Union[bytes, str, Dict[str, Any]]) -> Order:
        """
        Valida el payload y lo convierte a Order.

        Args:
            payload: Cuerpo crudo o ya decodificado

        Returns:
            Order: Orden de dominio

        Raises:
            MalformedPayloadException: Si el payload no es una orden válida
        """
        if isinstance(payload, (bytes, str)):
            try:
                payload = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise MalformedPayloadException(f"Payload is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedPayloadException("Payload must be a JSON object", invalid_value=type(payload).__name__)

        try:
            return ShopifyOrder.model_validate(payload).to_domain()
        except ValidationError as e:
            errors = [
                {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]} for err in e.errors()
            ]
            exc = MalformedPayloadException(f"Invalid order payload: {e.error_count()} validation error(s)")
            exc.details["errors"] = errors
            raise exc from e
        except ValueError as e:
            raise MalformedPayloadException(f"Invalid order payload: {e}") from e

    async def process_order(self, order: Order, webhook_id: Optional[str] = None) -> WebhookResult:
        """
        Divide los bundles de la orden y la actualiza en Shopify.

        Con webhook_id, una misma entrega provoca como máximo una actualización:
        los duplicados se omiten y los fallos se liberan para permitir el reintento.

        Args:
            order: Orden a procesar
            webhook_id: X-Shopify-Webhook-Id de la entrega

        Returns:
            WebhookResult: Resultado del procesamiento
        """
        start_time = datetime.now(timezone.utc)

        if webhook_id and not await self.registry.begin(webhook_id):
            self.metrics["duplicates"] += 1
            return WebhookResult(
                status=WebhookStatus.DUPLICATE,
                order_id=order.id,
                order_name=order.name,
                webhook_id=webhook_id,
                original_items=order.items_count,
            )

        logger.info(f"Processing order {order.name} (ID: {order.id}, webhook: {webhook_id})")

        try:
            split_result = resolve(order.line_items, self.bundle_mapping)
            if split_result.changed:
                logger.info(
                    f"Order {order.name}: splitting bundles, {order.items_count} -> {split_result.items_count} line items"
                )

            outcome = await self.reconciler.reconcile(order.id, split_result)
        except BaseException as e:
            # Incluye CancelledError: la entrega debe quedar libre para el reintento
            self.metrics["failed"] += 1
            if webhook_id:
                await self.registry.release(webhook_id)
            logger.error(f"❌ Order {order.name} processing aborted: {type(e).__name__}: {e}")
            raise

        duration = (datetime.now(timezone.utc) - start_time).total_seconds()

        if outcome.status == ReconcileStatus.FAILED:
            self.metrics["failed"] += 1
            if webhook_id:
                await self.registry.release(webhook_id)
            logger.error(f"Order {order.name} processing failed in {duration:.2f}s: {outcome.error}")
            status = WebhookStatus.FAILED
        else:
            if webhook_id:
                await self.registry.complete(webhook_id)
            if outcome.status == ReconcileStatus.UPDATED:
                self.metrics["updated"] += 1
                status = WebhookStatus.PROCESSED
            else:
                self.metrics["no_change"] += 1
                status = WebhookStatus.NO_CHANGE
            self.last_processed_at = datetime.now(timezone.utc)
            logger.info(f"Order {order.name} {status.value} in {duration:.2f}s")

        return WebhookResult(
            status=status,
            order_id=order.id,
            order_name=order.name,
            webhook_id=webhook_id,
            original_items=order.items_count,
            new_items=split_result.items_count,
            duration_seconds=duration,
            error=outcome.error,
        )

    async def handle_webhook(
        self, payload: bytes, signature: Optional[str] = None, webhook_id: Optional[str] = None
    ) -> WebhookResult:
        """
        Pipeline completo de un webhook orders/create.

        Raises:
            WebhookAuthenticationException: Firma inválida
            MalformedPayloadException: Payload inválido
        """
        self.metrics["received"] += 1

        try:
            self.authenticate(payload, signature)
            order = self.parse_order(payload)
        except (WebhookAuthenticationException, MalformedPayloadException) as e:
            self.metrics["rejected"] += 1
            logger.warning(f"Webhook {webhook_id} rejected: {e.message}")
            raise

        return await self.process_order(order, webhook_id)

    async def process_order_by_id(self, order_id: Identifier) -> tuple[Order, WebhookResult]:
        """
        Procesa manualmente una orden existente.

        Args:
            order_id: ID de la orden en Shopify

        Returns:
            Tuple: Orden obtenida y resultado del procesamiento

        Raises:
            ShopifyAPIException: Si no se puede obtener la orden
        """
        self.metrics["manual"] += 1
        logger.info(f"Manual processing requested for order {order_id}")

        order = await self.order_store.get_order(order_id)
        return order, await self.process_order(order)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Obtiene métricas del procesador.

        Returns:
            Dict: Contadores, tamaño del registro y bundles configurados
        """
        return {
            **self.metrics,
            "registry_size": len(self.registry),
            "in_flight": self.registry.in_flight_count,
            "bundle_skus": self.bundle_mapping.bundle_skus,
            "last_processed_at": self.last_processed_at.isoformat() if self.last_processed_at else None,
        }
