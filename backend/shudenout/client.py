from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import requests

from shudenout.models.domain import HotelItem
from shudenout.services.normalizer import normalize_hotels

logger = logging.getLogger(__name__)

RADIUS_STEPS: Sequence[float] = (1.0, 2.0, 3.0)


class UiState(str, Enum):
    ok = "ok"
    empty = "empty"
    param_invalid = "param_invalid"
    rate_limit = "rate_limit"
    server_error = "server_error"
    fetch_error = "fetch_error"


UI_MESSAGES: Dict[UiState, str] = {
    UiState.ok: "",
    UiState.empty: "No same-day vacancies were found in the selected area.",
    UiState.param_invalid: "There was a problem with the search parameters. Please try again shortly.",
    UiState.rate_limit: "Too many requests right now. Wait a moment and try again.",
    UiState.server_error: "The hotel provider is having a temporary problem. Please try again later.",
    UiState.fetch_error: "Could not reach the search service.",
}


def classify_ui_state(found_items: bool, classification: Optional[str]) -> UiState:
    if found_items:
        return UiState.ok
    if classification in (UiState.param_invalid.value, UiState.rate_limit.value, UiState.server_error.value):
        return UiState(classification)
    return UiState.empty


@dataclass
class SearchAttempt:
    radius: float
    classification: Optional[str]
    item_count: int


@dataclass
class ClientSearchResult:
    ui_state: UiState
    items: List[HotelItem] = field(default_factory=list)
    radius: Optional[float] = None
    message: Optional[str] = None
    attempts: List[SearchAttempt] = field(default_factory=list)


class HotelSearchClient:
    """
    Calls /hotels-search with a widening radius until something comes back.
    Envelopes are always 200, so only transport failures count as fetch errors.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, area: str, radius: float, **extra: Any) -> Optional[Dict[str, Any]]:
        params = {"area": area, "radius": radius, **{k: v for k, v in extra.items() if v is not None}}
        try:
            resp = self.session.get(f"{self.base_url}/hotels-search", params=params, timeout=self.timeout)
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Hotel search request failed: %s", exc)
            return None
        return body if isinstance(body, dict) else {}

    def search(
        self,
        area: str,
        steps: Sequence[float] = RADIUS_STEPS,
        adult_num: Optional[int] = None,
    ) -> ClientSearchResult:
        attempts: List[SearchAttempt] = []
        last_class: Optional[str] = "no_results"
        reached = False

        for radius in steps:
            body = self.fetch(area, radius, adultNum=adult_num)
            if body is None:
                attempts.append(SearchAttempt(radius=radius, classification=None, item_count=0))
                continue
            reached = True
            normalized = normalize_hotels(body)
            items = normalized.items
            last_class = normalized.classification.value
            attempts.append(SearchAttempt(radius=radius, classification=last_class, item_count=len(items)))
            if items:
                return ClientSearchResult(
                    ui_state=UiState.ok, items=items, radius=radius, attempts=attempts
                )

        state = classify_ui_state(False, last_class) if reached else UiState.fetch_error
        return ClientSearchResult(
            ui_state=state,
            radius=steps[-1] if steps else None,
            message=UI_MESSAGES[state],
            attempts=attempts,
        )
