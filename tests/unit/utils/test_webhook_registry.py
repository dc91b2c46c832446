"""Tests unitarios para el registro de entregas de webhooks."""

import pytest

from app.utils.webhook_registry import WebhookDeliveryRegistry


class TestWebhookDeliveryRegistry:
    """Tests para begin / complete / release."""

    @pytest.mark.asyncio
    async def test_first_delivery_accepted(self):
        registry = WebhookDeliveryRegistry()

        assert await registry.begin("wh-1") is True
        assert registry.in_flight_count == 1

    @pytest.mark.asyncio
    async def test_in_flight_duplicate_rejected(self):
        registry = WebhookDeliveryRegistry()
        await registry.begin("wh-1")

        assert await registry.begin("wh-1") is False

    @pytest.mark.asyncio
    async def test_completed_duplicate_rejected(self):
        registry = WebhookDeliveryRegistry()
        await registry.begin("wh-1")
        await registry.complete("wh-1")

        assert await registry.begin("wh-1") is False
        assert registry.is_completed("wh-1")
        assert registry.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_released_delivery_can_retry(self):
        registry = WebhookDeliveryRegistry()
        await registry.begin("wh-1")
        await registry.release("wh-1")

        assert await registry.begin("wh-1") is True
        assert not registry.is_completed("wh-1")

    @pytest.mark.asyncio
    async def test_oldest_evicted_when_full(self):
        registry = WebhookDeliveryRegistry(max_size=2)
        for webhook_id in ["wh-1", "wh-2", "wh-3"]:
            await registry.begin(webhook_id)
            await registry.complete(webhook_id)

        assert len(registry) == 2
        assert not registry.is_completed("wh-1")
        assert registry.is_completed("wh-3")
        assert await registry.begin("wh-1") is True

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            WebhookDeliveryRegistry(max_size=0)
