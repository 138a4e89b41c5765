"""
triplace.engine.geo — Great-circle distance helpers
====================================================

Haversine distance on a spherical Earth plus a small fallback table of
US city coordinates for profiles that only carry a city name.
"""

from __future__ import annotations

import math

EARTH_RADIUS_MILES = 3959.0
EARTH_RADIUS_KM = 6371.0

_KM_PER_MILE = 1.60934
_MILES_PER_KM = 0.621371

Coordinates = tuple[float, float]


def _haversine(lat1: float, lon1: float, lat2: float, lon2: float, radius: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in miles between two points given in decimal degrees."""
    return _haversine(lat1, lon1, lat2, lon2, EARTH_RADIUS_MILES)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in kilometres between two points given in decimal degrees."""
    return _haversine(lat1, lon1, lat2, lon2, EARTH_RADIUS_KM)


def miles_to_km(miles: float) -> float:
    return miles * _KM_PER_MILE


def km_to_miles(km: float) -> float:
    return km * _MILES_PER_KM


def is_within_radius(center: Coordinates, point: Coordinates, radius_miles: float) -> bool:
    """True when *point* is at most *radius_miles* from *center* (inclusive)."""
    return haversine_miles(center[0], center[1], point[0], point[1]) <= radius_miles


# ---------------------------------------------------------------------------
# City fallback table
# ---------------------------------------------------------------------------
CITY_COORDINATES: dict[str, Coordinates] = {
    "new york": (40.7128, -74.0060),
    "los angeles": (34.0522, -118.2437),
    "chicago": (41.8781, -87.6298),
    "houston": (29.7604, -95.3698),
    "phoenix": (33.4484, -112.0740),
    "philadelphia": (39.9526, -75.1652),
    "san antonio": (29.4241, -98.4936),
    "san diego": (32.7157, -117.1611),
    "dallas": (32.7767, -96.7970),
    "san jose": (37.3382, -121.8863),
    "austin": (30.2672, -97.7431),
    "jacksonville": (30.3322, -81.6557),
    "san francisco": (37.7749, -122.4194),
    "columbus": (39.9612, -82.9988),
    "indianapolis": (39.7684, -86.1581),
    "fort worth": (32.7555, -97.3308),
    "charlotte": (35.2271, -80.8431),
    "seattle": (47.6062, -122.3321),
    "denver": (39.7392, -104.9903),
    "washington": (38.9072, -77.0369),
    "boston": (42.3601, -71.0589),
    "el paso": (31.7619, -106.4850),
    "detroit": (42.3314, -83.0458),
    "nashville": (36.1627, -86.7816),
    "memphis": (35.1495, -90.0490),
    "portland": (45.5152, -122.6784),
    "oklahoma city": (35.4676, -97.5164),
    "las vegas": (36.1699, -115.1398),
    "louisville": (38.2527, -85.7585),
    "baltimore": (39.2904, -76.6122),
    "milwaukee": (43.0389, -87.9065),
    "albuquerque": (35.0844, -106.6504),
    "tucson": (32.2226, -110.9747),
    "fresno": (36.7378, -119.7871),
    "sacramento": (38.5816, -121.4944),
    "mesa": (33.4152, -111.8315),
    "kansas city": (39.0997, -94.5786),
    "atlanta": (33.7490, -84.3880),
    "long beach": (33.7701, -118.1937),
    "colorado springs": (38.8339, -104.8214),
    "raleigh": (35.7796, -78.6382),
    "omaha": (41.2565, -95.9345),
    "miami": (25.7617, -80.1918),
    "virginia beach": (36.8529, -76.0142),
    "oakland": (37.8044, -122.2711),
    "minneapolis": (44.9778, -93.2650),
    "tulsa": (36.1540, -95.9928),
    "arlington": (32.7357, -97.1081),
    "new orleans": (29.9511, -90.0715),
    "wichita": (37.6872, -97.3301),
    "cleveland": (41.4993, -81.6944),
    "tampa": (27.9506, -82.4572),
    "bakersfield": (35.3733, -119.0187),
    "aurora": (39.7294, -104.8319),
}


def city_coordinates(name: str) -> Coordinates | None:
    """Approximate coordinates for a major US city, or ``None`` if unknown.

    Accepts ``"San Francisco"`` as well as ``"San Francisco, CA"``.
    """
    key = " ".join(name.lower().split())
    if key in CITY_COORDINATES:
        return CITY_COORDINATES[key]
    city = key.split(",", 1)[0].strip()
    return CITY_COORDINATES.get(city)
