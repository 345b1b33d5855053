# src/rallyrank/middleware/__init__.py

"""Middleware components for the RallyRank API."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
