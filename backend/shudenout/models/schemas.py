from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shudenout.models.domain import Amenity, Classification, HotelItem


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HotelItemSchema(CamelModel):
    id: str
    name: str
    price: int = 0
    rating: Optional[float] = None
    image_url: str
    affiliate_url: str
    area: str
    nearest_station: str
    amenities: List[Amenity] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None
    walking_minutes: Optional[int] = None
    is_same_day_available: bool = True

    @classmethod
    def from_domain(cls, obj: HotelItem) -> "HotelItemSchema":
        return cls(
            id=obj.id,
            name=obj.name,
            price=max(obj.price, 0),
            rating=obj.rating,
            image_url=obj.image_url,
            affiliate_url=obj.affiliate_url,
            area=obj.area,
            nearest_station=obj.nearest_station,
            amenities=list(obj.amenities),
            latitude=obj.latitude,
            longitude=obj.longitude,
            distance_km=obj.distance_km,
            walking_minutes=obj.walking_minutes,
            is_same_day_available=obj.is_same_day_available,
        )


class PagingSchema(CamelModel):
    total: int = 0
    page: int = 1
    total_pages: int = 0
    has_next: bool = False

    @classmethod
    def single_page(cls, total: int) -> "PagingSchema":
        return cls(total=total, page=1, total_pages=1 if total > 0 else 0, has_next=False)


class SearchParamsSchema(CamelModel):
    area: str
    checkin_date: Optional[str] = None
    checkout_date: Optional[str] = None
    adult_num: int = 2
    radius: Optional[float] = None
    is_vacant_search: bool = True


class SearchResponse(CamelModel):
    """Envelope returned by /hotels-search. Every field has a default so the UI never sees a partial shape."""

    items: List[HotelItemSchema] = Field(default_factory=list)
    paging: PagingSchema = Field(default_factory=PagingSchema)
    is_sample: bool = False
    fallback: bool = False
    search_params: Optional[SearchParamsSchema] = None
    message: Optional[str] = None
    success: bool = True
    error: Optional[str] = None
    classification: Classification = Classification.other
    debug: Optional[Dict[str, Any]] = None


class BreakerResetRequest(BaseModel):
    name: Optional[str] = None


class BreakerResetResponse(BaseModel):
    reset: List[str]
    breakers: Dict[str, Dict[str, Any]]
