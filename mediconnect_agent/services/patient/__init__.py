"""
Patient service module.
"""

from .geocoding import GeocodingProvider, StaticCityGeocoder
from .service import PatientService

__all__ = ["GeocodingProvider", "StaticCityGeocoder", "PatientService"]
