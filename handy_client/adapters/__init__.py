"""Adapter modules for external integrations."""

from .http import HandyTransport, failure_body

__all__ = [
    "HandyTransport",
    "failure_body",
]
