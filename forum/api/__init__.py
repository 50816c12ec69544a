"""API package exports."""

from forum.api.middleware import CorrelationIdMiddleware
from forum.api.routes import router

__all__ = ["router", "CorrelationIdMiddleware"]
