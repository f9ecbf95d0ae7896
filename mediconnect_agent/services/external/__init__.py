"""
External messaging module.
"""

from .service import WhatsAppSender

__all__ = ["WhatsAppSender"]
