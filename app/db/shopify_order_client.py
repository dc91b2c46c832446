"""
Cliente REST de la Admin API de Shopify para órdenes.

Solo expone las dos operaciones que necesita el divisor de bundles:
obtener una orden y reemplazar su lista completa de line items.
"""

import asyncio
import json
import logging
import math
import time
from collections.abc import Sequence
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout
from pydantic import ValidationError

from app.api.v1.schemas.shopify_schemas import ShopifyOrderResponse
from app.core.config import Settings, get_settings
from app.core.logging_config import log_api_call
from app.domain.models import LineItem, Order
from app.domain.models.line_item import Identifier
from app.utils.error_handler import ShopifyAPIException

logger = logging.getLogger(__name__)

GID_PREFIX = "gid://shopify/Order/"


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """
    Segundos de espera de un header Retry-After.

    Solo se aceptan valores numéricos; las fechas HTTP y los valores
    inválidos se ignoran.
    """
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric Retry-After header: {value!r}")
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return int(seconds)


def normalize_order_id(order_id: Identifier) -> str:
    """
    Convierte un ID de orden al formato numérico de la REST API.

    Acepta enteros, strings numéricos y GIDs (gid://shopify/Order/123).
    """
    value = str(order_id).strip()
    if value.startswith(GID_PREFIX):
        value = value[len(GID_PREFIX) :]
    if not value:
        raise ValueError("order id cannot be empty")
    return value


class ShopifyOrderClient:
    """
    Cliente aiohttp para orders/{id}.json.

    No reintenta: cualquier fallo se propaga como ShopifyAPIException.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Inicializa el cliente.

        Args:
            settings: Configuración (por defecto la global)
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.shopify_api_base_url
        self.session: Optional[aiohttp.ClientSession] = None

        logger.info(f"Initialized Shopify order client for {self.settings.SHOPIFY_SHOP_URL}")

    async def initialize(self):
        """Crea la sesión HTTP compartida."""
        if self.session:
            return

        timeout = ClientTimeout(total=self.settings.SHOPIFY_REQUEST_TIMEOUT, connect=10)
        self.session = aiohttp.ClientSession(
            timeout=timeout,
            headers=self.settings.get_shopify_headers(),
        )
        logger.info("✅ Shopify order client session opened")

    async def close(self):
        """Cierra la sesión HTTP."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Shopify order client closed")

    async def __aenter__(self) -> "ShopifyOrderClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _order_url(self, order_id: Identifier) -> str:
        return f"{self.base_url}/orders/{normalize_order_id(order_id)}.json"

    async def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Ejecuta una petición y devuelve el JSON de respuesta.

        Raises:
            ShopifyAPIException: Error de red, timeout, status no 2xx o JSON inválido
        """
        if not self.session:
            raise ShopifyAPIException("Client not initialized. Call initialize() first.", endpoint=url)

        start = time.monotonic()
        try:
            async with self.session.request(method, url, json=payload) as response:
                status = response.status
                try:
                    body = await response.text()
                except UnicodeDecodeError as e:
                    log_api_call(method, url, status, time.monotonic() - start, error="undecodable body")
                    raise ShopifyAPIException(
                        f"Undecodable Shopify response: {e}",
                        api_response_code=status,
                        endpoint=url,
                    ) from e
                log_api_call(method, url, status, time.monotonic() - start)

                if status == 429:
                    raise ShopifyAPIException(
                        "Shopify rate limit exceeded",
                        api_response_code=status,
                        endpoint=url,
                        rate_limited=True,
                        retry_after=parse_retry_after(response.headers.get("Retry-After")),
                    )

                if not 200 <= status < 300:
                    raise ShopifyAPIException(
                        f"HTTP {status}: {body[:500]}",
                        api_response_code=status,
                        endpoint=url,
                    )

                try:
                    data = json.loads(body) if body else {}
                except ValueError as e:
                    raise ShopifyAPIException(
                        f"Invalid JSON in Shopify response: {e}",
                        api_response_code=status,
                        endpoint=url,
                    ) from e

                if not isinstance(data, dict):
                    raise ShopifyAPIException(
                        "Shopify response is not a JSON object",
                        api_response_code=status,
                        endpoint=url,
                    )
                return data

        except asyncio.TimeoutError as e:
            log_api_call(method, url, 0, time.monotonic() - start, error="timeout")
            raise ShopifyAPIException(
                f"Timeout after {self.settings.SHOPIFY_REQUEST_TIMEOUT}s", endpoint=url
            ) from e
        except aiohttp.ClientError as e:
            log_api_call(method, url, 0, time.monotonic() - start, error=str(e))
            raise ShopifyAPIException(f"Network error: {str(e)}", endpoint=url) from e

    def _parse_order(self, data: Dict[str, Any], url: str) -> Order:
        try:
            return ShopifyOrderResponse.model_validate(data).order.to_domain()
        except (ValidationError, ValueError) as e:
            raise ShopifyAPIException(f"Malformed order in Shopify response: {e}", endpoint=url) from e

    async def get_order(self, order_id: Identifier) -> Order:
        """
        Obtiene una orden por ID.

        Args:
            order_id: ID de la orden (numérico o GID)

        Returns:
            Order: Orden de dominio

        Raises:
            ShopifyAPIException: Si la llamada falla o la respuesta no es una orden
        """
        url = self._order_url(order_id)
        data = await self._request("GET", url)
        return self._parse_order(data, url)

    async def update_order_line_items(self, order_id: Identifier, line_items: Sequence[LineItem]) -> Dict[str, Any]:
        """
        Reemplaza la lista completa de line items de una orden.

        Args:
            order_id: ID de la orden
            line_items: Nueva lista completa (no es un parche incremental)

        Returns:
            Dict: Orden devuelta por Shopify

        Raises:
            ShopifyAPIException: Si la llamada falla o la respuesta no contiene la orden
        """
        url = self._order_url(order_id)
        rest_id = normalize_order_id(order_id)
        payload = {
            "order": {
                "id": int(rest_id) if rest_id.isdigit() else rest_id,
                "line_items": [item.to_shopify_dict() for item in line_items],
            }
        }

        data = await self._request("PUT", url, payload)
        if not isinstance(data.get("order"), dict):
            raise ShopifyAPIException("Shopify response does not contain the updated order", endpoint=url)

        logger.info(f"Order {order_id} line items replaced ({len(line_items)} items)")
        return data["order"]
