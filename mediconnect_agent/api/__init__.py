"""
API layer for the MediConnect agent.
"""

from .app import create_app
from .webhooks import WhatsAppWebhook
from .middleware import SecurityHeaders, LoggingMiddleware

__all__ = [
    "create_app",
    "WhatsAppWebhook",
    "SecurityHeaders",
    "LoggingMiddleware",
]
