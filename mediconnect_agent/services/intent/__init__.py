"""
Intent extraction module.
"""

from .service import IntentExtractor

__all__ = ["IntentExtractor"]
