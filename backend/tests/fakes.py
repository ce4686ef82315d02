import json
from typing import Any, Callable, Dict, List, Optional

from shudenout.models.domain import SearchCenter
from shudenout.tools.hotel_tool import UpstreamResponse
from shudenout.tools.rakuten_params import SIMPLE_HOTEL_SEARCH, VACANT_HOTEL_SEARCH


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload if payload is not None else {})

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Stands in for requests.Session; replays queued responses or exceptions."""

    def __init__(self, responses: Optional[List[Any]] = None, handler: Optional[Callable] = None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        if self.handler is not None:
            return self.handler(url, params or {})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def rakuten_hotel(
    hotel_no: int,
    name: str = "Hotel",
    lat: Any = 35.6905,
    lng: Any = 139.7004,
    charge: Any = 8000,
    special: str = "",
    rating: Any = 4.1,
) -> dict:
    return {
        "hotel": [
            {
                "hotelBasicInfo": {
                    "hotelNo": hotel_no,
                    "hotelName": f"{name} {hotel_no}",
                    "hotelMinCharge": charge,
                    "reviewAverage": rating,
                    "hotelImageUrl": f"https://img.example/{hotel_no}.jpg",
                    "nearestStation": "新宿",
                    "hotelSpecial": special,
                    "latitude": lat,
                    "longitude": lng,
                }
            }
        ]
    }


def discovery(ids: List[int], status: int = 200) -> UpstreamResponse:
    return UpstreamResponse(
        endpoint=SIMPLE_HOTEL_SEARCH,
        status=status,
        data={"hotels": [rakuten_hotel(i) for i in ids]} if status == 200 else {"error": "x"},
        elapsed_ms=12,
    )


def vacancy(hotels: List[dict], status: int = 200) -> UpstreamResponse:
    return UpstreamResponse(
        endpoint=VACANT_HOTEL_SEARCH,
        status=status,
        data={"hotels": hotels} if status == 200 else {"error": "not_found"},
        elapsed_ms=20,
    )


class FakeHotelTool:
    """HotelTool double that records every call and replays scripted responses."""

    def __init__(
        self,
        discoveries: Optional[List[UpstreamResponse]] = None,
        vacancy_response: Optional[UpstreamResponse] = None,
    ):
        self.discoveries = list(discoveries or [])
        self.vacancy_response = vacancy_response or vacancy([])
        self.search_calls: List[Dict[str, Any]] = []
        self.vacancy_calls: List[Dict[str, Any]] = []

    def search_hotels(self, center: SearchCenter, radius_km: float, keyword: Optional[str] = None):
        self.search_calls.append({"center": center, "radius_km": radius_km, "keyword": keyword})
        if self.discoveries:
            return self.discoveries.pop(0)
        return discovery([])

    def vacant_hotels(self, hotel_ids, checkin_date, checkout_date, adult_num):
        self.vacancy_calls.append(
            {
                "hotel_ids": list(hotel_ids),
                "checkin_date": checkin_date,
                "checkout_date": checkout_date,
                "adult_num": adult_num,
            }
        )
        return self.vacancy_response
