"""
Domain models for business entities.

These models represent core business concepts and contain
business logic and invariants.
"""

from .bundle import BundleMapping, ComponentSpec
from .line_item import LineItem
from .order import Order

__all__ = ["BundleMapping", "ComponentSpec", "LineItem", "Order"]
