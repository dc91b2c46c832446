"""
Registro de entregas de webhooks para evitar procesar dos veces la misma.

Shopify puede reenviar un webhook (mismo X-Shopify-Webhook-Id) si no recibe
respuesta a tiempo. Un ID en curso o ya completado no vuelve a procesarse;
un ID fallido se libera para que el reenvío pueda reintentarlo.
"""

import asyncio
import logging
from collections import OrderedDict

logger = logging.getLogger(__name__)


class WebhookDeliveryRegistry:
    """
    Registro acotado de webhooks en curso y completados.

    Los completados se guardan en orden de llegada; al superar max_size se
    descarta el más antiguo.
    """

    def __init__(self, max_size: int = 1000):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._in_flight: set[str] = set()
        self._completed: OrderedDict[str, None] = OrderedDict()
        self._lock = asyncio.Lock()

    async def begin(self, webhook_id: str) -> bool:
        """
        Reserva un webhook para procesarlo.

        Returns:
            bool: False si ya está en curso o completado (duplicado)
        """
        async with self._lock:
            if webhook_id in self._in_flight or webhook_id in self._completed:
                logger.info(f"Webhook {webhook_id} already seen, skipping")
                return False
            self._in_flight.add(webhook_id)
            return True

    async def complete(self, webhook_id: str) -> None:
        """Marca un webhook como procesado."""
        async with self._lock:
            self._in_flight.discard(webhook_id)
            self._completed[webhook_id] = None
            self._completed.move_to_end(webhook_id)
            while len(self._completed) > self.max_size:
                evicted, _ = self._completed.popitem(last=False)
                logger.debug(f"Webhook {evicted} evicted from delivery registry")

    async def release(self, webhook_id: str) -> None:
        """Libera un webhook fallido para permitir su reintento."""
        async with self._lock:
            self._in_flight.discard(webhook_id)

    def is_completed(self, webhook_id: str) -> bool:
        return webhook_id in self._completed

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def __len__(self) -> int:
        return len(self._completed)
