from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from shudenout.core.errors import ErrorKind
from shudenout.models.domain import SearchCenter


@dataclass
class UpstreamResponse:
    """One upstream call as seen by the pipeline. status is 0 when no HTTP status was received."""

    endpoint: str
    status: int
    data: Any = None
    elapsed_ms: int = 0
    params_used: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status == 200


class HotelTool(Protocol):
    """Hotel availability provider abstraction to allow swapping providers."""

    def search_hotels(
        self, center: SearchCenter, radius_km: float, keyword: Optional[str] = None
    ) -> UpstreamResponse:
        ...

    def vacant_hotels(
        self,
        hotel_ids: List[str],
        checkin_date: str,
        checkout_date: str,
        adult_num: int,
    ) -> UpstreamResponse:
        ...
