from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Amenity(str, Enum):
    wifi = "WiFi"
    shower = "Shower"
    double_occupancy = "DoubleOccupancy"


class Classification(str, Enum):
    ok = "ok"
    no_results = "no_results"
    param_invalid = "param_invalid"
    rate_limit = "rate_limit"
    server_error = "server_error"
    other = "other"


class BreakerState(str, Enum):
    closed = "CLOSED"
    open = "OPEN"
    half_open = "HALF_OPEN"


class SearchBranch(str, Enum):
    first = "first"
    keyword = "simpleKeyword"
    sub_centers = "subCenters"


@dataclass(frozen=True)
class SearchCenter:
    latitude: float
    longitude: float
    display_name: str


@dataclass(frozen=True)
class UpstreamCallLog:
    endpoint: str
    params_used: Dict[str, str]
    http_status: int
    elapsed_ms: int
    result_count: int
    classification: str


@dataclass
class HotelItem:
    id: str
    name: str
    price: int
    image_url: str
    affiliate_url: str
    area: str
    nearest_station: str
    amenities: List[Amenity] = field(default_factory=list)
    rating: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None
    walking_minutes: Optional[int] = None
    is_same_day_available: bool = True


@dataclass
class NormalizedHotels:
    items: List[HotelItem]
    classification: Classification
    success: bool
    total_count: int


@dataclass
class CandidateResult:
    hotel_ids: List[str]
    branch: SearchBranch
    logs: List[UpstreamCallLog] = field(default_factory=list)


@dataclass
class VacancyResult:
    hotels: List[HotelItem] = field(default_factory=list)
    logs: List[UpstreamCallLog] = field(default_factory=list)


@dataclass
class SearchOutcome:
    """Everything one pipeline run produced, before it is shaped into an envelope."""

    center: SearchCenter
    area_key: str
    radius_km: float
    adult_num: int
    checkin_date: str
    checkout_date: str
    candidates: CandidateResult
    vacancy: VacancyResult
    vacancy_skipped: bool
    success: bool
    message: Optional[str]
    classification: Optional[Classification] = None
    elapsed_ms: int = 0

    @property
    def logs(self) -> List[UpstreamCallLog]:
        return [*self.candidates.logs, *self.vacancy.logs]
