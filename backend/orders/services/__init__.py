"""
Orders services package.

- OrderService: order lifecycle (create, transition, assign, rate, remove)
"""

from .order_service import OrderService

__all__ = [
    'OrderService',
]
