"""
External API-related exceptions.
"""


class ExternalAPIError(Exception):
    """Base exception for external API errors."""
    pass


class WhatsAppAPIError(ExternalAPIError):
    """Exception raised when WhatsApp API calls fail."""
    pass


class IntentExtractionError(ExternalAPIError):
    """Exception raised when the language model returns an unusable answer."""
    pass
