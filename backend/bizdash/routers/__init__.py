"""Routers package."""

from .customers import router as customers_router
from .financial import router as financial_router

__all__ = [
    "customers_router",
    "financial_router",
]
