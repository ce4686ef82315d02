import requests

from fakes import FakeResponse, FakeSession
from shudenout.client import HotelSearchClient, UiState, UI_MESSAGES, classify_ui_state


def envelope(items=0, classification="no_results"):
    return {"items": [{"id": str(i)} for i in range(items)], "classification": classification}


def test_widening_stops_at_first_non_empty_radius():
    session = FakeSession(
        [
            FakeResponse(200, envelope(0)),
            FakeResponse(200, envelope(2, "ok")),
            FakeResponse(200, envelope(5, "ok")),
        ]
    )
    result = HotelSearchClient("http://backend:8000/", session=session).search("shinjuku")

    assert result.ui_state == UiState.ok
    assert result.radius == 2.0
    assert [item.id for item in result.items] == ["0", "1"]
    assert [call["params"]["radius"] for call in session.calls] == [1.0, 2.0]
    assert session.calls[0]["url"] == "http://backend:8000/hotels-search"


def test_all_empty_keeps_last_classification():
    session = FakeSession([FakeResponse(200, envelope(0))] * 2 + [FakeResponse(200, envelope(0, "rate_limit"))])
    result = HotelSearchClient("http://backend", session=session).search("ueno", adult_num=3)

    assert result.ui_state == UiState.rate_limit
    assert result.message == UI_MESSAGES[UiState.rate_limit]
    assert result.radius == 3.0
    assert len(result.attempts) == 3
    assert session.calls[0]["params"]["adultNum"] == 3


def test_transport_failures_everywhere_are_fetch_errors():
    session = FakeSession([requests.ConnectionError("refused")] * 3)
    result = HotelSearchClient("http://backend", session=session).search("ueno")

    assert result.ui_state == UiState.fetch_error
    assert result.items == []


def test_non_json_body_counts_as_fetch_failure():
    session = FakeSession([FakeResponse(502, text="Bad gateway")])
    result = HotelSearchClient("http://backend", session=session).search("ueno", steps=(3.0,))
    assert result.ui_state == UiState.fetch_error


def test_classify_ui_state():
    assert classify_ui_state(True, "server_error") == UiState.ok
    assert classify_ui_state(False, "param_invalid") == UiState.param_invalid
    assert classify_ui_state(False, "server_error") == UiState.server_error
    assert classify_ui_state(False, "no_results") == UiState.empty
    assert classify_ui_state(False, "other") == UiState.empty
    assert classify_ui_state(False, None) == UiState.empty


def test_envelope_items_are_read_through_the_normalizer():
    body = {
        "success": True,
        "classification": "ok",
        "items": [
            {
                "id": "77",
                "name": "Hotel Sunroute",
                "price": 9800,
                "affiliateUrl": "https://travel.rakuten.co.jp/HOTEL/77/77.html",
                "nearestStation": "新宿",
                "amenities": ["WiFi", "Shower"],
                "distanceKm": 0.4,
                "walkingMinutes": 5,
            }
        ],
    }
    session = FakeSession([FakeResponse(200, body)])
    result = HotelSearchClient("http://backend", session=session).search("shinjuku")

    hotel = result.items[0]
    assert result.attempts[0].classification == "ok"
    assert hotel.price == 9800
    assert hotel.affiliate_url.endswith("/77/77.html")
    assert hotel.walking_minutes == 5
    assert hotel.distance_km == 0.4
    assert [a.value for a in hotel.amenities] == ["WiFi", "Shower"]
