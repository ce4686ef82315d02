from datetime import date

import pytest

from fakes import FakeHotelTool, discovery, rakuten_hotel, vacancy
from shudenout.core.config import Settings
from shudenout.models.domain import Classification, SearchBranch
from shudenout.services.search_service import (
    CONGESTION_MESSAGE,
    NO_RESULTS_MESSAGE,
    SearchService,
    build_debug,
    envelope_from_outcome,
)
from shudenout.tools.areas import AREAS
from shudenout.tools.rakuten_params import MAX_RADIUS_KM, SIMPLE_HOTEL_SEARCH, VACANT_HOTEL_SEARCH


@pytest.fixture
def settings():
    return Settings(rakuten_app_id="test-app", default_area="shinjuku")


def make_service(tool, settings):
    return SearchService(tool=tool, settings=settings, today=lambda: date(2026, 10, 18))


def test_primary_hit_skips_fallbacks(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([11, 12])],
        vacancy_response=vacancy([rakuten_hotel(11)]),
    )
    outcome = make_service(tool, settings).search(area="shinjuku", radius_km=1.0)

    assert len(tool.search_calls) == 1
    assert tool.search_calls[0]["radius_km"] == 1.0
    assert tool.search_calls[0]["keyword"] is None
    assert outcome.candidates.branch == SearchBranch.first
    assert tool.vacancy_calls[0]["hotel_ids"] == ["11", "12"]
    assert [h.id for h in outcome.vacancy.hotels] == ["11"]
    assert outcome.success is True
    assert outcome.message is None


def test_falls_through_to_first_sub_center_and_stops(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([]), discovery([]), discovery([1, 2, 3]), discovery([9])],
        vacancy_response=vacancy([rakuten_hotel(1), rakuten_hotel(3)]),
    )
    outcome = make_service(tool, settings).search(area="shinjuku", radius_km=1.5)

    assert len(tool.search_calls) == 3
    keyword_call = tool.search_calls[1]
    assert keyword_call["keyword"] == "新宿"
    assert keyword_call["radius_km"] == MAX_RADIUS_KM
    sub_call = tool.search_calls[2]
    assert sub_call["keyword"] is None
    assert sub_call["center"].longitude == pytest.approx(AREAS["shinjuku"].longitude + 0.02)

    assert outcome.candidates.branch == SearchBranch.sub_centers
    assert len(outcome.candidates.logs) == 3
    assert [log.endpoint for log in outcome.candidates.logs] == [SIMPLE_HOTEL_SEARCH] * 3
    assert tool.vacancy_calls[0]["hotel_ids"] == ["1", "2", "3"]
    assert len(outcome.logs) == 4


def test_no_candidates_means_no_vacancy_call(settings):
    tool = FakeHotelTool(discoveries=[discovery([])] * 4)
    outcome = make_service(tool, settings).search(area="ueno")

    assert tool.vacancy_calls == []
    assert outcome.vacancy_skipped is True
    assert len(outcome.logs) == 4
    assert outcome.success is True
    assert outcome.message == NO_RESULTS_MESSAGE
    assert envelope_from_outcome(outcome).classification == Classification.no_results


def test_vacancy_not_found_is_a_normal_empty_result(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([1, 2, 3, 4, 5])],
        vacancy_response=vacancy([], status=404),
    )
    outcome = make_service(tool, settings).search(area="shibuya")
    envelope = envelope_from_outcome(outcome)

    assert envelope.items == []
    assert envelope.success is True
    assert envelope.error is None
    assert envelope.classification == Classification.no_results
    assert outcome.vacancy.logs[0].classification == "no_results"


def test_vacancy_server_error_reports_congestion(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([1, 2])],
        vacancy_response=vacancy([], status=503),
    )
    outcome = make_service(tool, settings).search(area="shibuya")
    envelope = envelope_from_outcome(outcome)

    assert envelope.success is False
    assert envelope.message == CONGESTION_MESSAGE
    assert envelope.classification == Classification.server_error


def test_rate_limited_discovery_with_nothing_found_is_congestion(settings):
    tool = FakeHotelTool(discoveries=[discovery([], status=429), discovery([]), discovery([]), discovery([])])
    outcome = make_service(tool, settings).search(area="ikebukuro")

    assert outcome.success is False
    assert outcome.classification == Classification.server_error


def test_upstream_errors_are_hidden_when_results_exist(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([], status=503), discovery([7])],
        vacancy_response=vacancy([rakuten_hotel(7)]),
    )
    outcome = make_service(tool, settings).search(area="shinjuku")
    envelope = envelope_from_outcome(outcome)

    assert outcome.candidates.branch == SearchBranch.keyword
    assert envelope.success is True
    assert envelope.error is None
    assert envelope.classification == Classification.ok
    assert len(envelope.items) == 1


def test_discovery_exception_becomes_a_logged_empty_call(settings):
    class ExplodingTool(FakeHotelTool):
        def search_hotels(self, center, radius_km, keyword=None):
            super().search_hotels(center, radius_km, keyword)
            if keyword is None and len(self.search_calls) == 1:
                raise ConnectionError("socket closed")
            return discovery([5])

    tool = ExplodingTool(vacancy_response=vacancy([rakuten_hotel(5)]))
    outcome = make_service(tool, settings).search(area="shinjuku")

    assert outcome.candidates.logs[0].http_status == 0
    assert outcome.candidates.hotel_ids == ["5"]
    assert outcome.success is True


def test_hotels_carry_distance_and_links(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([42])],
        vacancy_response=vacancy([rakuten_hotel(42, lat=35.6580, lng=139.7016)]),
    )
    outcome = make_service(tool, settings).search(area="shinjuku")
    hotel = outcome.vacancy.hotels[0]

    assert hotel.area == "新宿"
    assert hotel.affiliate_url == "https://travel.rakuten.co.jp/HOTEL/42/42.html"
    assert hotel.distance_km == pytest.approx(3.7, abs=0.1)
    assert hotel.walking_minutes is not None
    assert hotel.is_same_day_available is True


def test_stay_dates_use_injected_today(settings):
    tool = FakeHotelTool(discoveries=[discovery([1])], vacancy_response=vacancy([rakuten_hotel(1)]))
    outcome = make_service(tool, settings).search(area="shinjuku", adult_num=3)

    assert tool.vacancy_calls[0]["checkin_date"] == "2026-10-18"
    assert tool.vacancy_calls[0]["checkout_date"] == "2026-10-19"
    assert tool.vacancy_calls[0]["adult_num"] == 3
    params = envelope_from_outcome(outcome).search_params
    assert params.checkin_date == "2026-10-18"
    assert params.adult_num == 3


def test_quality_filter_drops_cheap_and_capsule_hotels(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([1, 2, 3])],
        vacancy_response=vacancy(
            [
                rakuten_hotel(1, name="Grand Hotel"),
                rakuten_hotel(2, name="カプセルイン"),
                rakuten_hotel(3, name="Budget Inn", charge=2500),
            ]
        ),
    )
    outcome = make_service(tool, settings).search(area="shinjuku", quality=True)
    assert [h.id for h in outcome.vacancy.hotels] == ["1"]


def test_unknown_area_and_radius_are_coerced(settings):
    tool = FakeHotelTool(discoveries=[discovery([1])], vacancy_response=vacancy([rakuten_hotel(1)]))
    outcome = make_service(tool, settings).search(area="atlantis", radius_km=12.0)

    assert outcome.area_key == "shinjuku"
    assert outcome.radius_km == MAX_RADIUS_KM


def test_caller_coordinates_override_area(settings):
    tool = FakeHotelTool(discoveries=[discovery([1])], vacancy_response=vacancy([rakuten_hotel(1)]))
    outcome = make_service(tool, settings).search(area="shinjuku", lat="35.7142", lng="139.7775")

    assert outcome.area_key == "ueno"
    assert outcome.center.latitude == 35.7142
    assert tool.search_calls[0]["center"].display_name == "上野"


def test_debug_block_describes_the_run(settings):
    tool = FakeHotelTool(
        discoveries=[discovery([]), discovery([1])],
        vacancy_response=vacancy([rakuten_hotel(1, lat=128487.3156, lng=502920.9288)]),
    )
    outcome = make_service(tool, settings).search(area="shinjuku")
    debug = build_debug(outcome, settings, {"rakuten": {"state": "CLOSED"}}, "https://api.example/Travel/")

    assert debug["pipeline"] == {
        "branch": "simpleKeyword",
        "candidateCount": 1,
        "vacancyCount": 1,
        "vacancySkipped": False,
    }
    assert [u["endpoint"] for u in debug["upstream"]] == [
        SIMPLE_HOTEL_SEARCH,
        SIMPLE_HOTEL_SEARCH,
        VACANT_HOTEL_SEARCH,
    ]
    assert debug["upstream"][2]["url"] == f"https://api.example/Travel/{VACANT_HOTEL_SEARCH}"
    assert debug["shape"]["latlng_unit"] == "deg"
    assert debug["env"]["hasAppId"] is True
    assert debug["breakerState"] == {"rakuten": {"state": "CLOSED"}}
    assert debug["finalSearchParams"]["dates"] == {"checkin": "2026-10-18", "checkout": "2026-10-19"}


def test_vacancy_records_without_hotel_number_are_dropped(settings):
    nameless = {"hotel": [{"hotelBasicInfo": {"hotelName": "No Number Inn", "hotelMinCharge": 7000}}]}
    tool = FakeHotelTool(
        discoveries=[discovery([8])],
        vacancy_response=vacancy([nameless, rakuten_hotel(8)]),
    )
    outcome = make_service(tool, settings).search(area="shinjuku")

    assert [(h.id, h.affiliate_url) for h in outcome.vacancy.hotels] == [
        ("8", "https://travel.rakuten.co.jp/HOTEL/8/8.html")
    ]
