"""
Domain layer for the Shopify order splitter.

This layer contains business entities, value objects, and domain logic
following Domain-Driven Design principles.
"""
