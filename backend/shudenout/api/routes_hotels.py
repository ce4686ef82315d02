import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from shudenout.api import get_app_settings, get_breaker_registry, get_hotel_tool
from shudenout.core.config import Settings
from shudenout.core.errors import ErrorKind
from shudenout.core.geo import to_float
from shudenout.models.domain import Classification
from shudenout.models.schemas import SearchResponse
from shudenout.services.search_service import (
    SearchService,
    build_debug,
    build_envelope,
    envelope_from_outcome,
)
from shudenout.storage.breaker_registry import BreakerRegistry
from shudenout.tools.hotel_tool import HotelTool
from shudenout.tools.rakuten_params import DEFAULT_RADIUS_KM

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_APP_ID_MESSAGE = "The hotel API key is not configured. Please contact the administrator."
SAFE_MODE_MESSAGE = "Search is under maintenance. Please try again after a while."
CRITICAL_MESSAGE = "A system error occurred. Please try again after a while."


def _respond(envelope: SearchResponse) -> JSONResponse:
    # always 200: the UI reads success/classification instead of the status code
    exclude = {"debug"} if envelope.debug is None else None
    return JSONResponse(
        status_code=200,
        content=envelope.model_dump(mode="json", by_alias=True, exclude=exclude),
        headers={"Cache-Control": "no-store, max-age=0"},
    )


def parse_radius(raw: Optional[str]) -> float:
    radius = to_float(raw)
    if not radius or radius <= 0:
        return DEFAULT_RADIUS_KM
    return radius


def parse_adult_num(raw: Optional[str]) -> int:
    number = to_float(raw)
    if number is None:
        return 2
    return min(9, max(1, int(number)))


@router.get("/hotels-search")
def search_hotels(
    area: Optional[str] = None,
    radius: Optional[str] = None,
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    inspect: Optional[str] = None,
    adult_num: Optional[str] = Query(None, alias="adultNum"),
    quality: Optional[str] = None,
    settings: Settings = Depends(get_app_settings),
    registry: BreakerRegistry = Depends(get_breaker_registry),
    tool: HotelTool = Depends(get_hotel_tool),
) -> JSONResponse:
    started = time.monotonic()
    inspect_mode = inspect == "1"

    try:
        if not settings.rakuten_app_id:
            logger.error("RAKUTEN_APP_ID is not configured")
            return _respond(
                build_envelope(
                    success=False,
                    error="Missing RAKUTEN_APP_ID",
                    message=MISSING_APP_ID_MESSAGE,
                    fallback=True,
                    classification=Classification.server_error,
                    debug={
                        "errorKind": ErrorKind.configuration_error.value,
                        "breakerState": registry.states(),
                    }
                    if inspect_mode
                    else None,
                )
            )

        if settings.runtime_safe_mode:
            logger.warning("Safe mode active, skipping upstream search")
            return _respond(
                build_envelope(
                    success=False,
                    error="Safe mode active",
                    message=SAFE_MODE_MESSAGE,
                    fallback=True,
                    classification=Classification.server_error,
                    debug={"safeMode": True, "breakerState": registry.states()}
                    if inspect_mode
                    else None,
                )
            )

        service = SearchService(tool=tool, settings=settings)
        outcome = service.search(
            area=area,
            radius_km=parse_radius(radius),
            lat=lat,
            lng=lng,
            adult_num=parse_adult_num(adult_num),
            quality=quality == "1",
        )
        debug = (
            build_debug(outcome, settings, registry.states(), settings.rakuten_base_url)
            if inspect_mode
            else None
        )
        return _respond(envelope_from_outcome(outcome, debug=debug))

    except Exception as exc:  # noqa: BLE001
        logger.exception("Hotel search failed unexpectedly")
        return _respond(
            build_envelope(
                success=False,
                error=str(exc) or "Critical system error",
                message=CRITICAL_MESSAGE,
                fallback=True,
                classification=Classification.server_error,
                debug={
                    "criticalError": True,
                    "errorKind": ErrorKind.critical.value,
                    "errorType": exc.__class__.__name__,
                    "elapsedMs": int((time.monotonic() - started) * 1000),
                }
                if inspect_mode
                else None,
            )
        )
