"""
Reply text generation.
"""

from .generator import ResponseGenerator

__all__ = ["ResponseGenerator"]
