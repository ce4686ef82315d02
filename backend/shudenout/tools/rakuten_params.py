from __future__ import annotations

from typing import Dict, Iterable, Optional
from urllib.parse import urlencode

from shudenout.models.domain import SearchCenter

SIMPLE_HOTEL_SEARCH = "SimpleHotelSearch/20170426"
VACANT_HOTEL_SEARCH = "VacantHotelSearch/20170426"

MIN_RADIUS_KM = 0.1
MAX_RADIUS_KM = 3.0
DEFAULT_RADIUS_KM = 3.0

HOTEL_DETAIL_URL = "https://travel.rakuten.co.jp/HOTEL/{hotel_id}/{hotel_id}.html"
AFFILIATE_BASE_URL = "https://hb.afl.rakuten.co.jp/hgc/{affiliate_id}/"


def clamp_radius(radius_km: Optional[float]) -> float:
    if radius_km is None or radius_km != radius_km:
        return DEFAULT_RADIUS_KM
    return round(min(MAX_RADIUS_KM, max(MIN_RADIUS_KM, radius_km)), 1)


def format_radius(radius_km: float) -> str:
    return f"{clamp_radius(radius_km):.1f}"


def build_simple_params(
    app_id: str,
    center: SearchCenter,
    radius_km: float = DEFAULT_RADIUS_KM,
    keyword: Optional[str] = None,
    hits: int = 100,
    page: int = 1,
) -> Dict[str, str]:
    params = {
        "applicationId": app_id,
        "format": "json",
        "latitude": str(center.latitude),
        "longitude": str(center.longitude),
        "searchRadius": format_radius(radius_km),
        "datumType": "1",
        "hits": str(hits),
        "page": str(page),
        "responseType": "small",
    }
    if keyword:
        params["keyword"] = keyword
    return params


def build_vacant_params(
    app_id: str,
    hotel_ids: Iterable[str],
    checkin_date: str,
    checkout_date: str,
    adult_num: int = 2,
    hits: int = 30,
) -> Dict[str, str]:
    return {
        "applicationId": app_id,
        "format": "json",
        "hotelNo": ",".join(hotel_ids),
        "checkinDate": checkin_date,
        "checkoutDate": checkout_date,
        "adultNum": str(adult_num),
        "roomNum": "1",
        "datumType": "1",
        "sort": "+roomCharge",
        "hits": str(hits),
        "page": "1",
        "responseType": "small",
    }


def redact(params: Dict[str, str]) -> Dict[str, str]:
    """Copy of params that is safe to put in logs and debug output."""
    return {k: v for k, v in params.items() if k not in {"applicationId", "affiliateId"}}


def hotel_detail_url(hotel_id: str) -> str:
    return HOTEL_DETAIL_URL.format(hotel_id=hotel_id)


def affiliate_url(hotel_id: str, affiliate_id: Optional[str]) -> str:
    """Partner-tracked link when an affiliate id is configured, else the plain detail page."""
    target = hotel_detail_url(hotel_id)
    if not affiliate_id:
        return target
    return f"{AFFILIATE_BASE_URL.format(affiliate_id=affiliate_id)}?{urlencode({'pc': target})}"
