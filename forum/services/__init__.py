"""Services package exports."""

from forum.services.logging_service import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
