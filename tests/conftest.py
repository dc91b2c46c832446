"""Fixtures compartidas por los tests del divisor de órdenes."""

import base64
import hashlib
import hmac

import pytest

from app.core.config import Settings
from app.domain.models import BundleMapping, ComponentSpec, LineItem, Order

WEBHOOK_SECRET = "test-webhook-secret"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Firma un cuerpo como lo hace Shopify."""
    return base64.b64encode(hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()).decode()


@pytest.fixture
def sign_body():
    """Función para firmar cuerpos con el secret de test."""
    return sign


@pytest.fixture
def bundle_mapping():
    """Mapeo con un bundle simple y un pack de 3."""
    return BundleMapping.from_dict(
        {
            "CANDLE-BUNDLE": [
                ComponentSpec("CANDLE-SKU", "Floating Candle", 1),
                ComponentSpec("BATTERY-SKU", "LED Battery Pack", 1),
            ],
            "CANDLE-BUNDLE-3PACK": [
                ComponentSpec("CANDLE-SKU", "Floating Candle (3-Pack)", 3),
                ComponentSpec("BATTERY-SKU", "LED Battery Pack (3-Pack)", 3),
            ],
        }
    )


@pytest.fixture
def settings():
    """Configuración de test con secret y token."""
    return Settings(
        ENVIRONMENT="testing",
        SHOPIFY_SHOP_URL="test-shop.myshopify.com",
        SHOPIFY_ACCESS_TOKEN="shpat_test",
        SHOPIFY_WEBHOOK_SECRET=WEBHOOK_SECRET,
        LOG_FILE_PATH=None,
    )


@pytest.fixture
def bundle_item():
    return LineItem(
        id=1,
        variant_id=123,
        sku="CANDLE-BUNDLE",
        quantity=2,
        title="Candle Bundle",
        price="29.99",
        grams=100,
        taxable=True,
    )


@pytest.fixture
def plain_item():
    return LineItem(
        id=2,
        variant_id=456,
        sku="UNRELATED-SKU",
        quantity=1,
        title="Gift Card",
        price="10.00",
    )


@pytest.fixture
def order_payload():
    """Payload de webhook orders/create con un bundle."""
    return {
        "id": 12345,
        "name": "#1001",
        "email": "customer@example.com",
        "line_items": [
            {
                "id": 1,
                "variant_id": 123,
                "sku": "CANDLE-BUNDLE",
                "quantity": 2,
                "title": "Candle Bundle",
                "price": "29.99",
                "grams": 100,
                "taxable": True,
            }
        ],
    }


@pytest.fixture
def bundle_order(bundle_item):
    return Order(id=12345, name="#1001", line_items=(bundle_item,))


@pytest.fixture
def plain_order(plain_item):
    return Order(id=67890, name="#1002", line_items=(plain_item,))
