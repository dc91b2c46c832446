"""
Módulo de acceso a la Admin API de Shopify para Shopify Order Splitter.

- ShopifyOrderClient: Lectura y reescritura de line items de órdenes vía REST
"""

from app.db.shopify_order_client import ShopifyOrderClient, normalize_order_id

__all__ = [
    "ShopifyOrderClient",
    "normalize_order_id",
]
