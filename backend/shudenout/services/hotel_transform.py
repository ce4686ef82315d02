from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Mapping, Optional

from shudenout.core.geo import haversine_km, walking_minutes
from shudenout.models.domain import HotelItem, SearchCenter
from shudenout.services.normalizer import first_value, locate_items, normalize_item, unwrap_record
from shudenout.tools.rakuten_params import affiliate_url


def transform_vacant_hotel(
    raw: Any,
    index: int,
    area_name: str,
    center: Optional[SearchCenter],
    affiliate_id: Optional[str],
) -> Optional[HotelItem]:
    record = unwrap_record(raw)
    hotel_id = first_value(record, "id") if record is not None else None
    if hotel_id is None or isinstance(hotel_id, (Mapping, list)):
        # no hotel number, no bookable detail page
        return None

    item = normalize_item(raw, index, area=area_name, same_day_default=True)
    if item is None:
        return None

    distance = None
    if center is not None:
        distance = haversine_km(center.latitude, center.longitude, item.latitude, item.longitude)

    return replace(
        item,
        area=area_name,
        affiliate_url=affiliate_url(item.id, affiliate_id),
        distance_km=distance,
        walking_minutes=walking_minutes(distance),
        is_same_day_available=True,
    )


def transform_vacant_payload(
    payload: Any,
    area_name: str,
    center: Optional[SearchCenter],
    affiliate_id: Optional[str],
) -> List[HotelItem]:
    _, raw_items = locate_items(payload)
    hotels: List[HotelItem] = []
    for index, raw in enumerate(raw_items):
        hotel = transform_vacant_hotel(raw, index, area_name, center, affiliate_id)
        if hotel is not None:
            hotels.append(hotel)
    return hotels
