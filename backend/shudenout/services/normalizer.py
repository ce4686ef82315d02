"""
Normalization of hotel payloads.

Several response shapes coexist (Rakuten v1/v2 nesting, our own envelope,
older internal payloads). Each step is an explicit, ordered chain of small
extractors so the alias priority can be read and tested on its own.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from shudenout.core.geo import normalize_lat_lng, to_float
from shudenout.models.domain import Amenity, Classification, HotelItem, NormalizedHotels

ItemsExtractor = Callable[[Any], Optional[list]]
RecordUnwrapper = Callable[[Any], Optional[Mapping[str, Any]]]

DEFAULT_NAME = "Unknown hotel"
DEFAULT_IMAGE = "/placeholder-hotel.jpg"
DEFAULT_STATION = "Nearest station unknown"

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "hotelNo", "hotelId"),
    "name": ("name", "hotelName", "title"),
    "price": ("price", "hotelMinCharge", "minPrice"),
    "rating": ("rating", "reviewAverage", "hotelRating"),
    "image_url": ("imageUrl", "hotelImageUrl", "roomImageUrl", "image", "photoUrl"),
    "affiliate_url": ("affiliateUrl", "bookingUrl", "url", "hotelInformationUrl"),
    "nearest_station": ("nearestStation", "nearest"),
    "area": ("area",),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lng"),
    "amenity_text": ("hotelSpecial", "special", "description"),
    "same_day": ("isSameDayAvailable", "hasVacancy"),
    "distance_km": ("distanceKm", "distance"),
    "walking_minutes": ("walkingMinutes",),
}

CLASSIFICATION_FIELDS = ("classification", "class", "statusClass")
SUCCESS_FIELDS = ("success", "ok")
COUNT_FIELDS = ("totalCount", "count")

AMENITY_KEYWORDS: Sequence[Tuple[Amenity, Tuple[str, ...]]] = (
    (Amenity.wifi, ("wifi", "wi-fi", "無線lan")),
    (Amenity.shower, ("シャワー", "浴室", "shower")),
    (Amenity.double_occupancy, ("2人", "ダブル", "double")),
)

AMENITY_VALUES: Dict[str, Amenity] = {
    "wifi": Amenity.wifi,
    "shower": Amenity.shower,
    "シャワー": Amenity.shower,
    "doubleoccupancy": Amenity.double_occupancy,
    "2人可": Amenity.double_occupancy,
}

_PARAM_PATTERN = re.compile(r"(?<![a-z])(param|invalid)")
_RATE_PATTERN = re.compile(r"(?<![a-z])(rate|limit|too many)")


def _path(*keys: str) -> ItemsExtractor:
    def extract(payload: Any) -> Optional[list]:
        node = payload
        for key in keys:
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
        return node if isinstance(node, list) else None

    return extract


ITEM_EXTRACTORS: List[Tuple[str, ItemsExtractor]] = [
    ("items", _path("items")),
    ("data.hotels", _path("data", "hotels")),
    ("hotels", _path("hotels")),
    ("payload.items", _path("payload", "items")),
]


def locate_items(payload: Any) -> Tuple[Optional[str], list]:
    """Return (path, items) for the first extractor that finds a list."""
    for name, extractor in ITEM_EXTRACTORS:
        found = extractor(payload)
        if found is not None:
            return name, found
    return None, []


def _basic_info_in(entries: Any) -> Optional[Mapping[str, Any]]:
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, Mapping) and isinstance(entry.get("hotelBasicInfo"), Mapping):
            return entry["hotelBasicInfo"]
    return None


def _rakuten_v1(raw: Any) -> Optional[Mapping[str, Any]]:
    # {"hotel": [{"hotelBasicInfo": {...}}, {"roomInfo": [...]}]}
    if isinstance(raw, Mapping):
        return _basic_info_in(raw.get("hotel"))
    return None


def _rakuten_v2(raw: Any) -> Optional[Mapping[str, Any]]:
    # [{"hotelBasicInfo": {...}}, {"roomInfo": [...]}]
    return _basic_info_in(raw)


def _flat(raw: Any) -> Optional[Mapping[str, Any]]:
    return raw if isinstance(raw, Mapping) else None


RECORD_UNWRAPPERS: List[Tuple[str, RecordUnwrapper]] = [
    ("rakuten_v1", _rakuten_v1),
    ("rakuten_v2", _rakuten_v2),
    ("flat", _flat),
]


def unwrap_record(raw: Any) -> Optional[Mapping[str, Any]]:
    for _, unwrapper in RECORD_UNWRAPPERS:
        record = unwrapper(raw)
        if record is not None:
            return record
    return None


def first_value(record: Mapping[str, Any], field: str) -> Any:
    for alias in FIELD_ALIASES[field]:
        value = record.get(alias)
        if value is not None and value != "":
            return value
    return None


def first_number(record: Mapping[str, Any], field: str) -> Optional[float]:
    for alias in FIELD_ALIASES[field]:
        number = to_float(record.get(alias))
        if number is not None:
            return number
    return None


def first_text(record: Mapping[str, Any], field: str) -> Optional[str]:
    value = first_value(record, field)
    if value is None or isinstance(value, (Mapping, list)):
        return None
    return str(value)


def infer_amenities(text: Optional[str]) -> List[Amenity]:
    if not text:
        return []
    lowered = text.lower()
    return [
        amenity
        for amenity, keywords in AMENITY_KEYWORDS
        if any(keyword in lowered for keyword in keywords)
    ]


def _explicit_amenities(values: list) -> List[Amenity]:
    found = set()
    for value in values:
        amenity = AMENITY_VALUES.get(str(value).strip().lower())
        if amenity is not None:
            found.add(amenity)
    # keep a stable order regardless of input order
    return [amenity for amenity, _ in AMENITY_KEYWORDS if amenity in found]


def _coordinates(record: Mapping[str, Any]) -> Tuple[Optional[float], Optional[float]]:
    lat = first_value(record, "latitude")
    lng = first_value(record, "longitude")
    location = record.get("location")
    if (lat is None or lng is None) and isinstance(location, Mapping):
        lat = location.get("latitude") if lat is None else lat
        lng = location.get("longitude") if lng is None else lng
    return normalize_lat_lng(lat, lng)


def normalize_item(
    raw: Any, index: int, area: str = "", same_day_default: bool = True
) -> Optional[HotelItem]:
    """Map one raw record to a HotelItem. Returns None for records with no usable mapping."""
    record = unwrap_record(raw)
    if record is None:
        return None

    price = first_number(record, "price")
    rating = first_number(record, "rating")
    latitude, longitude = _coordinates(record)

    explicit = record.get("amenities")
    if isinstance(explicit, list):
        amenities = _explicit_amenities(explicit)
    else:
        amenities = infer_amenities(first_text(record, "amenity_text"))

    same_day = first_value(record, "same_day")
    distance = first_number(record, "distance_km")
    walking = first_number(record, "walking_minutes")
    raw_id = first_value(record, "id")

    return HotelItem(
        id=str(raw_id) if raw_id is not None and not isinstance(raw_id, (Mapping, list)) else str(index),
        name=first_text(record, "name") or DEFAULT_NAME,
        price=int(round(price)) if price is not None and price > 0 else 0,
        rating=rating,
        image_url=first_text(record, "image_url") or DEFAULT_IMAGE,
        affiliate_url=first_text(record, "affiliate_url") or "",
        area=first_text(record, "area") or area,
        nearest_station=first_text(record, "nearest_station") or DEFAULT_STATION,
        amenities=amenities,
        latitude=latitude,
        longitude=longitude,
        distance_km=distance,
        walking_minutes=int(walking) if walking is not None else None,
        is_same_day_available=same_day if isinstance(same_day, bool) else same_day_default,
    )


def classify_status(
    success: Optional[bool], item_count: int, error: Optional[str] = None
) -> Classification:
    if success and item_count > 0:
        return Classification.ok
    if success:
        return Classification.no_results
    text = (error or "").lower()
    if _PARAM_PATTERN.search(text):
        return Classification.param_invalid
    if _RATE_PATTERN.search(text):
        return Classification.rate_limit
    if success is False or error:
        return Classification.server_error
    return Classification.other


def _success_flag(payload: Mapping[str, Any]) -> Optional[bool]:
    for name in SUCCESS_FIELDS:
        value = payload.get(name)
        if isinstance(value, bool):
            return value
    return None


def _explicit_classification(payload: Mapping[str, Any]) -> Optional[Classification]:
    for name in CLASSIFICATION_FIELDS:
        value = payload.get(name)
        if isinstance(value, str):
            try:
                return Classification(value)
            except ValueError:
                continue
    return None


def _error_text(payload: Mapping[str, Any]) -> Optional[str]:
    error = payload.get("error")
    if error is None or error == "" or error is False:
        return None
    if isinstance(error, Mapping):
        error = error.get("message") or error.get("error_description") or str(dict(error))
    detail = payload.get("error_description")
    text = str(error)
    return f"{text}: {detail}" if isinstance(detail, str) and detail else text


def _total_count(payload: Mapping[str, Any], fallback: int) -> int:
    for name in COUNT_FIELDS:
        number = to_float(payload.get(name))
        if number is not None and number >= 0:
            return int(number)
    paging = payload.get("pagingInfo")
    if isinstance(paging, Mapping):
        number = to_float(paging.get("recordCount"))
        if number is not None and number >= 0:
            return int(number)
    return fallback


def normalize_hotels(payload: Any, area: str = "") -> NormalizedHotels:
    """
    Normalize any JSON value into a complete NormalizedHotels. Never raises,
    never mutates the payload, and returns equal output for equal input.
    """
    _, raw_items = locate_items(payload)
    items: List[HotelItem] = []
    for index, raw in enumerate(raw_items):
        item = normalize_item(raw, index, area=area)
        if item is not None:
            items.append(item)

    if not isinstance(payload, Mapping):
        return NormalizedHotels(
            items=items,
            classification=classify_status(None, len(items)),
            success=bool(items),
            total_count=len(items),
        )

    success = _success_flag(payload)
    error = _error_text(payload)
    classification = _explicit_classification(payload) or classify_status(
        success, len(items), error
    )
    return NormalizedHotels(
        items=items,
        classification=classification,
        success=success if success is not None else bool(items) and error is None,
        total_count=_total_count(payload, len(items)),
    )
