"""Tests unitarios para el procesador de webhooks orders/create."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.config import Settings
from app.db.shopify_order_client import ShopifyOrderClient
from app.services.webhook_handler import WebhookProcessor, WebhookStatus
from app.utils.error_handler import (
    MalformedPayloadException,
    ShopifyAPIException,
    WebhookAuthenticationException,
)


def make_store(update_side_effect=None, order=None):
    store = MagicMock()
    store.update_order_line_items = AsyncMock(return_value={"id": 12345}, side_effect=update_side_effect)
    store.get_order = AsyncMock(return_value=order)
    return store


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def processor(bundle_mapping, store, settings):
    return WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)


class TestSignatureVerification:
    """Tests para la verificación HMAC."""

    def test_valid_signature(self, processor, sign_body):
        body = b'{"id": 1}'

        assert processor.verify_webhook_signature(body, sign_body(body)) is True

    def test_tampered_body_rejected(self, processor, sign_body):
        signature = sign_body(b'{"id": 1}')

        assert processor.verify_webhook_signature(b'{"id": 2}', signature) is False

    def test_wrong_secret_rejected(self, processor, sign_body):
        body = b'{"id": 1}'

        assert processor.verify_webhook_signature(body, sign_body(body, "other-secret")) is False

    def test_invalid_base64_rejected(self, processor):
        assert processor.verify_webhook_signature(b"{}", "not base64!!") is False

    def test_no_secret_skips_verification(self, bundle_mapping, store):
        processor = WebhookProcessor(
            bundle_mapping=bundle_mapping,
            order_store=store,
            settings=Settings(SHOPIFY_WEBHOOK_SECRET=None, LOG_FILE_PATH=None),
        )

        assert processor.verify_webhook_signature(b"{}", "anything") is True

    def test_authenticate_rejects_invalid_signature(self, processor):
        with pytest.raises(WebhookAuthenticationException) as exc_info:
            processor.authenticate(b"{}", "aW52YWxpZA==")

        assert exc_info.value.status_code == 401

    def test_authenticate_accepts_missing_signature_by_default(self, processor):
        processor.authenticate(b"{}", None)

    def test_authenticate_requires_signature_when_configured(self, bundle_mapping, store):
        settings = Settings(
            SHOPIFY_WEBHOOK_SECRET="secret",
            REQUIRE_WEBHOOK_SIGNATURE=True,
            LOG_FILE_PATH=None,
        )
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)

        with pytest.raises(WebhookAuthenticationException):
            processor.authenticate(b"{}", None)


class TestParseOrder:
    """Tests para la validación del payload."""

    def test_parse_valid_payload(self, processor, order_payload):
        order = processor.parse_order(json.dumps(order_payload).encode())

        assert order.id == 12345
        assert order.name == "#1001"
        assert order.line_items[0].sku == "CANDLE-BUNDLE"
        assert order.line_items[0].variant_id == 123

    def test_parse_dict_payload(self, processor, order_payload):
        assert processor.parse_order(order_payload).items_count == 1

    def test_invalid_json(self, processor):
        with pytest.raises(MalformedPayloadException) as exc_info:
            processor.parse_order(b"{not json")

        assert exc_info.value.status_code == 400

    def test_non_object_payload(self, processor):
        with pytest.raises(MalformedPayloadException):
            processor.parse_order(b"[1, 2, 3]")

    def test_missing_line_items(self, processor, order_payload):
        del order_payload["line_items"]

        with pytest.raises(MalformedPayloadException) as exc_info:
            processor.parse_order(order_payload)

        assert any(err["field"] == "line_items" for err in exc_info.value.details["errors"])

    @pytest.mark.parametrize("quantity", [0, -1, "2", 1.5])
    def test_invalid_quantity(self, processor, order_payload, quantity):
        order_payload["line_items"][0]["quantity"] = quantity

        with pytest.raises(MalformedPayloadException):
            processor.parse_order(order_payload)

    @pytest.mark.parametrize("price", ["abc", "-1.00", None])
    def test_invalid_price(self, processor, order_payload, price):
        order_payload["line_items"][0]["price"] = price

        with pytest.raises(MalformedPayloadException):
            processor.parse_order(order_payload)

    def test_null_sku_accepted(self, processor, order_payload):
        order_payload["line_items"][0]["sku"] = None

        assert processor.parse_order(order_payload).line_items[0].sku is None


class TestProcessOrder:
    """Tests para el pipeline resolve + reconcile."""

    @pytest.mark.asyncio
    async def test_bundle_order_processed(self, processor, store, bundle_order):
        result = await processor.process_order(bundle_order, webhook_id="wh-1")

        assert result.status == WebhookStatus.PROCESSED
        assert result.original_items == 1
        assert result.new_items == 2
        store.update_order_line_items.assert_awaited_once()
        assert processor.metrics["updated"] == 1

    @pytest.mark.asyncio
    async def test_plain_order_no_change(self, processor, store, plain_order):
        result = await processor.process_order(plain_order, webhook_id="wh-2")

        assert result.status == WebhookStatus.NO_CHANGE
        store.update_order_line_items.assert_not_called()
        assert processor.metrics["no_change"] == 1

    @pytest.mark.asyncio
    async def test_duplicate_delivery_skipped(self, processor, store, bundle_order):
        await processor.process_order(bundle_order, webhook_id="wh-1")

        result = await processor.process_order(bundle_order, webhook_id="wh-1")

        assert result.status == WebhookStatus.DUPLICATE
        assert store.update_order_line_items.await_count == 1
        assert processor.metrics["duplicates"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_update_once(self, bundle_mapping, settings, bundle_order):
        """Dos entregas simultáneas del mismo webhook: una sola actualización."""
        gate = asyncio.Event()

        async def slow_update(order_id, line_items):
            await gate.wait()
            return {"id": order_id}

        store = MagicMock()
        store.update_order_line_items = AsyncMock(side_effect=slow_update)
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)

        first = asyncio.create_task(processor.process_order(bundle_order, webhook_id="wh-1"))
        await asyncio.sleep(0)
        second = await processor.process_order(bundle_order, webhook_id="wh-1")
        gate.set()
        first_result = await first

        assert second.status == WebhookStatus.DUPLICATE
        assert first_result.status == WebhookStatus.PROCESSED
        assert store.update_order_line_items.await_count == 1

    @pytest.mark.asyncio
    async def test_failed_delivery_can_be_retried(self, bundle_mapping, settings, bundle_order):
        error = ShopifyAPIException("HTTP 503", api_response_code=503)
        store = make_store(update_side_effect=[error, {"id": 12345}])
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)

        failed = await processor.process_order(bundle_order, webhook_id="wh-1")
        retried = await processor.process_order(bundle_order, webhook_id="wh-1")

        assert failed.status == WebhookStatus.FAILED
        assert failed.error is error
        assert retried.status == WebhookStatus.PROCESSED
        assert processor.metrics["failed"] == 1
        assert processor.metrics["updated"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_releases_delivery(self, bundle_mapping, settings, bundle_order):
        """Un error no previsto se propaga y la entrega queda libre para el reintento."""
        store = make_store(update_side_effect=[RuntimeError("boom"), {"id": 12345}])
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)

        with pytest.raises(RuntimeError):
            await processor.process_order(bundle_order, webhook_id="wh-1")
        retried = await processor.process_order(bundle_order, webhook_id="wh-1")

        assert retried.status == WebhookStatus.PROCESSED
        assert store.update_order_line_items.await_count == 2
        assert processor.registry.in_flight_count == 0
        assert processor.metrics["failed"] == 1

    @pytest.mark.asyncio
    async def test_cancelled_delivery_is_released(self, bundle_mapping, settings, bundle_order):
        started = asyncio.Event()

        async def hanging_update(order_id, line_items):
            started.set()
            await asyncio.Event().wait()

        store = MagicMock()
        store.update_order_line_items = AsyncMock(side_effect=hanging_update)
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)

        task = asyncio.create_task(processor.process_order(bundle_order, webhook_id="wh-1"))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert processor.registry.in_flight_count == 0
        assert not processor.registry.is_completed("wh-1")

    @pytest.mark.asyncio
    async def test_rate_limit_with_http_date_can_be_retried(self, bundle_mapping, settings, bundle_order):
        """429 con Retry-After en formato fecha: FAILED y la reentrega se procesa."""
        client = ShopifyOrderClient(settings)
        client.session = MagicMock()
        rate_limited = MagicMock(status=429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
        rate_limited.text = AsyncMock(return_value="")
        accepted = MagicMock(status=200, headers={})
        accepted.text = AsyncMock(return_value=json.dumps({"order": {"id": 12345}}))
        client.session.request.return_value.__aenter__.side_effect = [rate_limited, accepted]
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=client, settings=settings)

        failed = await processor.process_order(bundle_order, webhook_id="wh-1")
        retried = await processor.process_order(bundle_order, webhook_id="wh-1")

        assert failed.status == WebhookStatus.FAILED
        assert failed.error.rate_limited is True
        assert retried.status == WebhookStatus.PROCESSED

    @pytest.mark.asyncio
    async def test_without_webhook_id_no_deduplication(self, processor, store, bundle_order):
        await processor.process_order(bundle_order)
        await processor.process_order(bundle_order)

        assert store.update_order_line_items.await_count == 2


class TestHandleWebhook:
    """Tests para el pipeline completo de un webhook."""

    @pytest.mark.asyncio
    async def test_signed_webhook_processed(self, processor, order_payload, sign_body):
        body = json.dumps(order_payload).encode()

        result = await processor.handle_webhook(body, signature=sign_body(body), webhook_id="wh-1")

        assert result.status == WebhookStatus.PROCESSED
        assert processor.metrics["received"] == 1

    @pytest.mark.asyncio
    async def test_bad_signature_rejected_before_processing(self, processor, store, order_payload, sign_body):
        body = json.dumps(order_payload).encode()

        with pytest.raises(WebhookAuthenticationException):
            await processor.handle_webhook(body, signature=sign_body(b"other"), webhook_id="wh-1")

        store.update_order_line_items.assert_not_called()
        assert processor.metrics["rejected"] == 1

    @pytest.mark.asyncio
    async def test_malformed_payload_rejected(self, processor, store, sign_body):
        body = b'{"id": 1}'

        with pytest.raises(MalformedPayloadException):
            await processor.handle_webhook(body, signature=sign_body(body))

        store.update_order_line_items.assert_not_called()
        assert processor.metrics["rejected"] == 1


class TestProcessOrderById:
    """Tests para el procesamiento manual."""

    @pytest.mark.asyncio
    async def test_fetches_and_processes(self, bundle_mapping, settings, bundle_order):
        store = make_store(order=bundle_order)
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)

        order, result = await processor.process_order_by_id("12345")

        assert order is bundle_order
        assert result.status == WebhookStatus.PROCESSED
        store.get_order.assert_awaited_once_with("12345")
        assert processor.metrics["manual"] == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, bundle_mapping, settings):
        store = make_store()
        store.get_order = AsyncMock(side_effect=ShopifyAPIException("HTTP 404", api_response_code=404))
        processor = WebhookProcessor(bundle_mapping=bundle_mapping, order_store=store, settings=settings)

        with pytest.raises(ShopifyAPIException):
            await processor.process_order_by_id("999")

        store.update_order_line_items.assert_not_called()

    def test_get_metrics(self, processor):
        metrics = processor.get_metrics()

        assert metrics["received"] == 0
        assert metrics["registry_size"] == 0
        assert metrics["bundle_skus"] == ["CANDLE-BUNDLE", "CANDLE-BUNDLE-3PACK"]
        assert metrics["last_processed_at"] is None
