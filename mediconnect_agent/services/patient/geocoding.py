"""
Geocoding providers for registration locations.
"""

from typing import Dict, Optional, Protocol, Tuple

from ...core.models import GeocodeResult


class GeocodingProvider(Protocol):
    """Resolves free-text locations to coordinates."""

    async def geocode(self, location_text: str) -> GeocodeResult:
        ...


class StaticCityGeocoder:
    """Lookup table of common Indian cities and areas."""

    CITIES: Dict[str, Tuple[float, float]] = {
        "hyderabad": (17.3850, 78.4867),
        "banjara hills": (17.4239, 78.4738),
        "secunderabad": (17.4400, 78.4980),
        "bangalore": (12.9716, 77.5946),
        "bengaluru": (12.9716, 77.5946),
        "mumbai": (19.0760, 72.8777),
        "delhi": (28.6139, 77.2090),
        "new delhi": (28.6139, 77.2090),
        "chennai": (13.0827, 80.2707),
        "kolkata": (22.5726, 88.3639),
        "pune": (18.5204, 73.8567),
    }

    def __init__(self, extra: Optional[Dict[str, Tuple[float, float]]] = None):
        self.cities = dict(self.CITIES)
        if extra:
            self.cities.update({k.lower(): v for k, v in extra.items()})

    async def geocode(self, location_text: str) -> GeocodeResult:
        """
        Resolve a typed location.

        The whole text is tried first, then each comma-separated part from the
        most specific, so "Banjara Hills, Hyderabad" resolves to Banjara Hills.
        Unknown places keep the text as the city with no coordinates.
        """
        text = (location_text or "").strip()
        key = text.lower()
        candidates = [key] + [part.strip() for part in key.split(",") if part.strip()]
        for candidate in candidates:
            match = self.cities.get(candidate)
            if match:
                return GeocodeResult(city=text, latitude=match[0], longitude=match[1])
        return GeocodeResult(city=text or None)
