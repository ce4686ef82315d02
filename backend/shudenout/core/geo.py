from __future__ import annotations

import math
from typing import Any, Iterable, Optional, Tuple

EARTH_RADIUS_KM = 6371.0
WALKING_METERS_PER_MINUTE = 80.0


def to_float(value: Any) -> Optional[float]:
    """Return a finite float or None. Booleans are not numbers here."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _fix_unit(value: Optional[float]) -> Optional[float]:
    # Values beyond +-180 can only be arc-seconds
    if value is None:
        return None
    degrees = value / 3600 if abs(value) > 180 else value
    return round(degrees, 6)


def normalize_lat_lng(lat_raw: Any, lng_raw: Any) -> Tuple[Optional[float], Optional[float]]:
    """
    Convert a raw coordinate pair to degrees rounded to 6 places (~0.11 m).
    Returns (None, None) unless both components are finite and in range;
    a partial pair is never returned.
    """
    lat = _fix_unit(to_float(lat_raw))
    lng = _fix_unit(to_float(lng_raw))
    if not is_valid_lat_lng(lat, lng):
        return None, None
    return lat, lng


def is_valid_lat_lng(lat: Optional[float], lng: Optional[float]) -> bool:
    if lat is None or lng is None:
        return False
    return (
        math.isfinite(lat)
        and math.isfinite(lng)
        and abs(lat) <= 90
        and abs(lng) <= 180
    )


def detect_lat_lng_unit(samples: Iterable[Tuple[float, float]]) -> str:
    """Guess the unit of raw samples: 'deg', 'arcsec' or 'unknown' when empty."""
    samples = list(samples)
    if not samples:
        return "unknown"
    if any(abs(lat) > 180 or abs(lng) > 180 for lat, lng in samples):
        return "arcsec"
    return "deg"


def haversine_km(
    a_lat: Optional[float],
    a_lng: Optional[float],
    b_lat: Optional[float],
    b_lng: Optional[float],
) -> Optional[float]:
    """Great-circle distance rounded to 0.1 km, or None for invalid input."""
    if not is_valid_lat_lng(a_lat, a_lng) or not is_valid_lat_lng(b_lat, b_lng):
        return None
    d_lat = math.radians(b_lat - a_lat)
    d_lng = math.radians(b_lng - a_lng)
    s = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a_lat)) * math.cos(math.radians(b_lat)) * math.sin(d_lng / 2) ** 2
    )
    distance = 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(s))
    return round(distance, 1)


def walking_minutes(distance_km: Optional[float]) -> Optional[int]:
    if distance_km is None:
        return None
    return math.ceil(distance_km * 1000 / WALKING_METERS_PER_MINUTE)
