"""Tests unitarios para la reconciliación de órdenes."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.bundle_resolver import SplitResult, resolve
from app.services.order_reconciler import OrderReconciler, ReconcileStatus
from app.utils.error_handler import ShopifyAPIException


def make_store(side_effect=None):
    store = MagicMock()
    store.update_order_line_items = AsyncMock(return_value={"id": 12345}, side_effect=side_effect)
    return store


class TestReconcile:
    """Tests para OrderReconciler.reconcile."""

    @pytest.mark.asyncio
    async def test_no_change_makes_no_call(self, plain_item):
        store = make_store()
        reconciler = OrderReconciler(store)

        outcome = await reconciler.reconcile(67890, SplitResult(new_line_items=(plain_item,), changed=False))

        assert outcome.status == ReconcileStatus.NO_CHANGE
        assert outcome.items_count == 0
        store.update_order_line_items.assert_not_called()

    @pytest.mark.asyncio
    async def test_changed_issues_exactly_one_update(self, bundle_item, plain_item, bundle_mapping):
        store = make_store()
        reconciler = OrderReconciler(store)
        split = resolve([bundle_item, plain_item], bundle_mapping)

        outcome = await reconciler.reconcile(12345, split)

        assert outcome.status == ReconcileStatus.UPDATED
        assert outcome.succeeded is True
        assert outcome.items_count == 3
        store.update_order_line_items.assert_awaited_once_with(12345, split.new_line_items)

    @pytest.mark.asyncio
    async def test_upstream_failure_returns_failed(self, bundle_item, bundle_mapping):
        error = ShopifyAPIException("HTTP 500: boom", api_response_code=500)
        store = make_store(side_effect=error)
        reconciler = OrderReconciler(store)

        outcome = await reconciler.reconcile(12345, resolve([bundle_item], bundle_mapping))

        assert outcome.status == ReconcileStatus.FAILED
        assert outcome.succeeded is False
        assert outcome.error is error
        assert outcome.to_dict()["error"] == "HTTP 500: boom"
        # Sin reintentos
        assert store.update_order_line_items.await_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, bundle_item, bundle_mapping):
        """Solo los errores de Shopify se convierten en FAILED."""
        store = make_store(side_effect=RuntimeError("bug"))
        reconciler = OrderReconciler(store)

        with pytest.raises(RuntimeError):
            await reconciler.reconcile(12345, resolve([bundle_item], bundle_mapping))
