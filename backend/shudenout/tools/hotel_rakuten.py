import logging
import time
from typing import Dict, List, Optional

from shudenout.core.breaker import BreakerConfig
from shudenout.core.config import Settings
from shudenout.core.errors import ErrorKind, kind_for_status
from shudenout.core.guardrail import FetchConfig, Guardrail, safe_parse_json
from shudenout.models.domain import SearchCenter
from shudenout.tools.hotel_tool import HotelTool, UpstreamResponse
from shudenout.tools.rakuten_params import (
    SIMPLE_HOTEL_SEARCH,
    VACANT_HOTEL_SEARCH,
    build_simple_params,
    build_vacant_params,
    redact,
)

logger = logging.getLogger(__name__)

BREAKER_NAME = "rakuten"


class RakutenTravelTool(HotelTool):
    """
    HotelTool implementation using the Rakuten Travel API.
    Every call goes through the guardrail; nothing here raises.
    """

    def __init__(self, settings: Settings, guardrail: Guardrail):
        self.settings = settings
        self.guardrail = guardrail
        self.app_id = settings.rakuten_app_id or ""

    def fetch_config(self) -> FetchConfig:
        return FetchConfig(
            timeout_ms=self.settings.upstream_timeout_ms,
            retries=self.settings.upstream_retries,
            base_delay_ms=self.settings.upstream_base_delay_ms,
            breaker_name=BREAKER_NAME,
            breaker=BreakerConfig(
                threshold=self.settings.breaker_threshold,
                cooldown_ms=self.settings.breaker_cooldown_ms,
            ),
            safe_mode=self.settings.runtime_safe_mode,
        )

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self.settings.rakuten_base_url.rstrip('/')}/{endpoint}"

    def search_hotels(
        self, center: SearchCenter, radius_km: float, keyword: Optional[str] = None
    ) -> UpstreamResponse:
        params = build_simple_params(self.app_id, center, radius_km, keyword=keyword)
        return self._call(SIMPLE_HOTEL_SEARCH, params)

    def vacant_hotels(
        self,
        hotel_ids: List[str],
        checkin_date: str,
        checkout_date: str,
        adult_num: int,
    ) -> UpstreamResponse:
        params = build_vacant_params(
            self.app_id, hotel_ids, checkin_date, checkout_date, adult_num=adult_num
        )
        return self._call(VACANT_HOTEL_SEARCH, params)

    def _call(self, endpoint: str, params: Dict[str, str]) -> UpstreamResponse:
        started = time.monotonic()
        result = self.guardrail.fetch(self.endpoint_url(endpoint), params, self.fetch_config())
        elapsed_ms = int((time.monotonic() - started) * 1000)
        params_used = redact(params)

        if not result.ok:
            message = result.error or "Upstream call failed"
            if result.kind in (ErrorKind.breaker_open, ErrorKind.safe_mode):
                message = "The service is busy right now. Please try again later."
            return UpstreamResponse(
                endpoint=endpoint,
                status=result.code or 0,
                elapsed_ms=elapsed_ms,
                params_used=params_used,
                error=message,
                kind=result.kind,
            )

        response = result.data
        parsed = safe_parse_json(response.text)
        if not parsed.ok:
            logger.warning("%s returned unparseable body (status %s)", endpoint, response.status_code)
            return UpstreamResponse(
                endpoint=endpoint,
                status=response.status_code,
                elapsed_ms=elapsed_ms,
                params_used=params_used,
                error=parsed.error,
                kind=parsed.kind,
            )

        logger.info("%s -> %s in %dms", endpoint, response.status_code, elapsed_ms)
        return UpstreamResponse(
            endpoint=endpoint,
            status=response.status_code,
            data=parsed.data,
            elapsed_ms=elapsed_ms,
            params_used=params_used,
            kind=kind_for_status(response.status_code),
        )
