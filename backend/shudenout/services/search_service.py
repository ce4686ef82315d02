"""
Candidate/vacancy search pipeline.

Discovery runs in strict order and each stage only runs when everything
before it found nothing:

    primary coordinates -> keyword -> sub-centers (stop at first hit)

Vacancy confirmation runs once for all candidates, and never when
discovery came back empty.
"""

import logging
import time
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional
from zoneinfo import ZoneInfo

from shudenout.core.config import Settings
from shudenout.core.geo import detect_lat_lng_unit, is_valid_lat_lng
from shudenout.models.domain import (
    CandidateResult,
    Classification,
    HotelItem,
    SearchBranch,
    SearchCenter,
    SearchOutcome,
    UpstreamCallLog,
    VacancyResult,
)
from shudenout.models.schemas import (
    HotelItemSchema,
    PagingSchema,
    SearchParamsSchema,
    SearchResponse,
)
from shudenout.services.hotel_transform import transform_vacant_payload
from shudenout.services.normalizer import classify_status, first_value, locate_items, unwrap_record
from shudenout.services.quality_filter import filter_quality_hotels
from shudenout.tools.areas import resolve_search_center, sub_centers
from shudenout.tools.hotel_tool import HotelTool, UpstreamResponse
from shudenout.tools.rakuten_params import (
    DEFAULT_RADIUS_KM,
    MAX_RADIUS_KM,
    SIMPLE_HOTEL_SEARCH,
    VACANT_HOTEL_SEARCH,
    clamp_radius,
)

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No rooms are available tonight in this area. Try another area."
CONGESTION_MESSAGE = "The hotel service is congested right now. Please try again in a little while."


def classify_call(status: int) -> str:
    """Per-call class for diagnostics only; independent of the envelope classification."""
    if status == 200:
        return "success"
    if status == 400:
        return "param_invalid"
    if status == 404:
        return "no_results"
    if status == 429:
        return "rate_limit"
    if status >= 500:
        return "server_error"
    return "unknown"


def extract_hotel_ids(response: UpstreamResponse) -> List[str]:
    if not response.ok or not isinstance(response.data, Mapping):
        return []
    _, raw_items = locate_items(response.data)
    ids: List[str] = []
    for raw in raw_items:
        record = unwrap_record(raw)
        if record is None:
            continue
        hotel_id = first_value(record, "id")
        if hotel_id is None or isinstance(hotel_id, (Mapping, list)):
            continue
        hotel_id = str(hotel_id)
        if hotel_id not in ids:
            ids.append(hotel_id)
    return ids


def merge_ids(current: List[str], found: List[str]) -> List[str]:
    merged = list(current)
    for hotel_id in found:
        if hotel_id not in merged:
            merged.append(hotel_id)
    return merged


def make_log(response: UpstreamResponse, result_count: int) -> UpstreamCallLog:
    return UpstreamCallLog(
        endpoint=response.endpoint,
        params_used=dict(response.params_used),
        http_status=response.status,
        elapsed_ms=response.elapsed_ms,
        result_count=result_count,
        classification=classify_call(response.status),
    )


class SearchService:
    def __init__(
        self,
        tool: HotelTool,
        settings: Settings,
        today: Optional[Callable[[], date]] = None,
    ):
        self.tool = tool
        self.settings = settings
        self._today = today or self._today_in_timezone

    def _today_in_timezone(self) -> date:
        return datetime.now(ZoneInfo(self.settings.search_timezone)).date()

    def stay_dates(self) -> tuple:
        today = self._today()
        return today.isoformat(), (today + timedelta(days=1)).isoformat()

    def _discover(
        self,
        center: SearchCenter,
        radius_km: float,
        keyword: Optional[str],
        logs: List[UpstreamCallLog],
    ) -> List[str]:
        try:
            response = self.tool.search_hotels(center, radius_km, keyword=keyword)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Discovery call failed at %s: %s", center.display_name, exc)
            response = UpstreamResponse(
                endpoint=SIMPLE_HOTEL_SEARCH, status=0, error=str(exc) or "discovery failed"
            )
        ids = extract_hotel_ids(response)
        logs.append(make_log(response, len(ids)))
        return ids

    def fetch_candidates(self, center: SearchCenter, radius_km: float) -> CandidateResult:
        logs: List[UpstreamCallLog] = []
        branch = SearchBranch.first
        hotel_ids = self._discover(center, radius_km, None, logs)

        if not hotel_ids:
            branch = SearchBranch.keyword
            hotel_ids = self._discover(center, MAX_RADIUS_KM, center.display_name, logs)

        if not hotel_ids:
            branch = SearchBranch.sub_centers
            for sub_center in sub_centers(center):
                found = self._discover(sub_center, MAX_RADIUS_KM, None, logs)
                hotel_ids = merge_ids(hotel_ids, found)
                if hotel_ids:
                    break

        logger.info(
            "Discovery finished via %s with %d candidates (%d calls)",
            branch.value,
            len(hotel_ids),
            len(logs),
        )
        return CandidateResult(hotel_ids=hotel_ids, branch=branch, logs=logs)

    def check_vacancy(
        self,
        hotel_ids: List[str],
        checkin_date: str,
        checkout_date: str,
        adult_num: int,
        center: SearchCenter,
        area_name: str,
    ) -> VacancyResult:
        if not hotel_ids:
            return VacancyResult()

        try:
            response = self.tool.vacant_hotels(hotel_ids, checkin_date, checkout_date, adult_num)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Vacancy call failed: %s", exc)
            response = UpstreamResponse(
                endpoint=VACANT_HOTEL_SEARCH, status=0, error=str(exc) or "vacancy failed"
            )

        hotels: List[HotelItem] = []
        if response.ok and isinstance(response.data, Mapping):
            hotels = transform_vacant_payload(
                response.data, area_name, center, self.settings.rakuten_affiliate_id
            )
        elif response.status == 404:
            logger.info("No vacancy among %d candidates", len(hotel_ids))
        else:
            logger.warning(
                "Vacancy check degraded: status=%s error=%s", response.status, response.error
            )
        return VacancyResult(hotels=hotels, logs=[make_log(response, len(hotels))])

    def search(
        self,
        area: Optional[str] = None,
        radius_km: Optional[float] = None,
        lat: Optional[str] = None,
        lng: Optional[str] = None,
        adult_num: int = 2,
        quality: bool = False,
    ) -> SearchOutcome:
        started = time.monotonic()
        area_key, center = resolve_search_center(area, lat, lng, default=self.settings.default_area)
        radius = clamp_radius(radius_km if radius_km is not None else DEFAULT_RADIUS_KM)
        checkin_date, checkout_date = self.stay_dates()

        candidates = self.fetch_candidates(center, radius)
        vacancy_skipped = not candidates.hotel_ids
        if vacancy_skipped:
            vacancy = VacancyResult()
        else:
            vacancy = self.check_vacancy(
                candidates.hotel_ids,
                checkin_date,
                checkout_date,
                adult_num,
                center,
                center.display_name,
            )
        if quality:
            vacancy.hotels = filter_quality_hotels(vacancy.hotels)

        outcome = SearchOutcome(
            center=center,
            area_key=area_key,
            radius_km=radius,
            adult_num=adult_num,
            checkin_date=checkin_date,
            checkout_date=checkout_date,
            candidates=candidates,
            vacancy=vacancy,
            vacancy_skipped=vacancy_skipped,
            success=True,
            message=None,
        )

        if not vacancy.hotels:
            outcome.message = NO_RESULTS_MESSAGE
            # upstream trouble only counts when nothing came back at all
            congested = any(log.http_status >= 500 or log.http_status == 429 for log in outcome.logs)
            if congested:
                outcome.success = False
                outcome.message = CONGESTION_MESSAGE
                outcome.classification = Classification.server_error

        outcome.elapsed_ms = int((time.monotonic() - started) * 1000)
        return outcome


def build_envelope(
    items: Optional[List[HotelItem]] = None,
    success: bool = True,
    error: Optional[str] = None,
    message: Optional[str] = None,
    fallback: bool = False,
    classification: Optional[Classification] = None,
    search_params: Optional[SearchParamsSchema] = None,
    debug: Optional[Dict[str, Any]] = None,
) -> SearchResponse:
    safe_items = list(items or [])
    return SearchResponse(
        items=[HotelItemSchema.from_domain(item) for item in safe_items],
        paging=PagingSchema.single_page(len(safe_items)),
        is_sample=False,
        fallback=fallback,
        search_params=search_params,
        message=message or None,
        success=success,
        error=error or None,
        classification=classification or classify_status(success, len(safe_items), error),
        debug=debug,
    )


def envelope_from_outcome(
    outcome: SearchOutcome, debug: Optional[Dict[str, Any]] = None
) -> SearchResponse:
    return build_envelope(
        items=outcome.vacancy.hotels,
        success=outcome.success,
        error=None if outcome.success else outcome.message,
        message=outcome.message,
        fallback=False,
        classification=outcome.classification,
        search_params=SearchParamsSchema(
            area=outcome.center.display_name,
            checkin_date=outcome.checkin_date,
            checkout_date=outcome.checkout_date,
            adult_num=outcome.adult_num,
            radius=outcome.radius_km,
            is_vacant_search=True,
        ),
        debug=debug,
    )


def build_debug(
    outcome: SearchOutcome,
    settings: Settings,
    breaker_states: Dict[str, dict],
    base_url: str,
) -> Dict[str, Any]:
    hotels = outcome.vacancy.hotels
    samples = [
        {"id": h.id, "lat": h.latitude, "lng": h.longitude}
        for h in hotels
        if h.latitude is not None and h.longitude is not None
    ][:5]
    unit = detect_lat_lng_unit((s["lat"], s["lng"]) for s in samples)
    has_invalid = any(
        h.latitude is not None and not is_valid_lat_lng(h.latitude, h.longitude) for h in hotels
    )
    flags = []
    if has_invalid:
        flags.append("data_shape:latlng_invalid")
    if unit == "arcsec":
        flags.append("data_shape:latlng_arcsec")

    return {
        "totalElapsedMs": outcome.elapsed_ms,
        "finalSearchParams": {
            "area": outcome.area_key,
            "adultNum": outcome.adult_num,
            "searchCenter": {
                "lat": outcome.center.latitude,
                "lng": outcome.center.longitude,
                "name": outcome.center.display_name,
            },
            "dates": {"checkin": outcome.checkin_date, "checkout": outcome.checkout_date},
            "searchRadius": f"{outcome.radius_km}km",
        },
        "pipeline": {
            "branch": outcome.candidates.branch.value,
            "candidateCount": len(outcome.candidates.hotel_ids),
            "vacancyCount": len(hotels),
            "vacancySkipped": outcome.vacancy_skipped,
        },
        "upstream": [
            {
                "endpoint": log.endpoint,
                "url": f"{base_url.rstrip('/')}/{log.endpoint}",
                "paramsUsed": log.params_used,
                "status": log.http_status,
                "elapsedMs": log.elapsed_ms,
                "count": log.result_count,
                "classification": log.classification,
            }
            for log in outcome.logs
        ],
        "shape": {"latlng_unit": unit, "samples": samples[:3], "flags": flags},
        "env": {
            "hasAppId": bool(settings.rakuten_app_id),
            "hasAffiliateId": bool(settings.rakuten_affiliate_id),
            "safeMode": settings.runtime_safe_mode,
            "runtime": "python",
        },
        "breakerState": breaker_states,
    }
