from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Tuple

from shudenout.core.geo import normalize_lat_lng
from shudenout.models.domain import SearchCenter

logger = logging.getLogger(__name__)

# Station-front coordinates in degrees; display names double as the
# upstream keyword, so they stay in Japanese.
AREAS: Dict[str, SearchCenter] = {
    "shinjuku": SearchCenter(latitude=35.690921, longitude=139.700258, display_name="新宿"),
    "shibuya": SearchCenter(latitude=35.6580, longitude=139.7016, display_name="渋谷"),
    "ueno": SearchCenter(latitude=35.7141, longitude=139.7774, display_name="上野"),
    "shinbashi": SearchCenter(latitude=35.6662, longitude=139.7580, display_name="新橋"),
    "ikebukuro": SearchCenter(latitude=35.7295, longitude=139.7109, display_name="池袋"),
    "roppongi": SearchCenter(latitude=35.6627, longitude=139.7314, display_name="六本木"),
    "tokyo": SearchCenter(latitude=35.6812, longitude=139.7671, display_name="東京駅"),
    "yokohama": SearchCenter(latitude=35.4662, longitude=139.6220, display_name="横浜"),
}

DEFAULT_AREA = "shinjuku"

# Retired "search near me" modes; they all land on the default area.
LEGACY_AREA_KEYS = {"current", "current_location", "nearby", "geo", "now", ""}

# East then west of the center, in degrees of longitude.
SUB_CENTER_OFFSETS: List[Tuple[float, float]] = [(0.0, 0.02), (0.0, -0.02)]


def coerce_area(value: Optional[str], default: str = DEFAULT_AREA) -> str:
    key = str(value or "").strip().lower()
    if key in AREAS:
        return key
    if key not in LEGACY_AREA_KEYS:
        logger.info("Unknown area %r, falling back to %s", value, default)
    return default if default in AREAS else DEFAULT_AREA


def find_nearest_area(latitude: float, longitude: float) -> str:
    nearest = DEFAULT_AREA
    best = math.inf
    for key, center in AREAS.items():
        distance = math.hypot(latitude - center.latitude, longitude - center.longitude)
        if distance < best:
            best = distance
            nearest = key
    return nearest


def resolve_search_center(
    area: Optional[str],
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    default: str = DEFAULT_AREA,
) -> Tuple[str, SearchCenter]:
    """
    Caller coordinates win when both parse to a valid pair; the display
    name then comes from the closest known area.
    """
    if lat is not None and lng is not None:
        latitude, longitude = normalize_lat_lng(lat, lng)
        if latitude is not None and longitude is not None:
            key = find_nearest_area(latitude, longitude)
            return key, SearchCenter(
                latitude=latitude,
                longitude=longitude,
                display_name=AREAS[key].display_name,
            )
    key = coerce_area(area, default)
    return key, AREAS[key]


def sub_centers(center: SearchCenter) -> List[SearchCenter]:
    return [
        SearchCenter(
            latitude=round(center.latitude + d_lat, 6),
            longitude=round(center.longitude + d_lng, 6),
            display_name=center.display_name,
        )
        for d_lat, d_lng in SUB_CENTER_OFFSETS
    ]
