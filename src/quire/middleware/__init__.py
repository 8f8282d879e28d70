"""Middleware applied around the dispatcher boundary."""

from quire.middleware.base_path import BasePathMiddleware, BasePathPolicy

__all__ = ["BasePathMiddleware", "BasePathPolicy"]
