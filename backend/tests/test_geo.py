import pytest

from shudenout.core.geo import (
    detect_lat_lng_unit,
    haversine_km,
    is_valid_lat_lng,
    normalize_lat_lng,
    walking_minutes,
)


@pytest.mark.parametrize(
    "lat_raw,lng_raw",
    [
        (128487.3156, 502920.9288),
        ("128487.3156", "502920.9288"),
        (35.690921, 502920.9288),
    ],
)
def test_arc_seconds_are_converted_to_degrees(lat_raw, lng_raw):
    lat, lng = normalize_lat_lng(lat_raw, lng_raw)
    assert lat == pytest.approx(35.690921, abs=1e-6)
    assert lng == pytest.approx(139.700258, abs=1e-6)
    assert is_valid_lat_lng(lat, lng)


def test_degrees_are_rounded_to_six_places():
    assert normalize_lat_lng(35.12345678, 139.98765432) == (35.123457, 139.987654)


@pytest.mark.parametrize(
    "lat_raw,lng_raw",
    [
        (None, 139.7),
        (35.6, None),
        ("abc", 139.7),
        (float("nan"), 139.7),
        (95.0, 139.7),
        (35.6, float("inf")),
        (True, 139.7),
        ({}, []),
    ],
)
def test_invalid_pairs_are_dropped_together(lat_raw, lng_raw):
    assert normalize_lat_lng(lat_raw, lng_raw) == (None, None)


def test_unit_detection():
    assert detect_lat_lng_unit([]) == "unknown"
    assert detect_lat_lng_unit([(35.6, 139.7)]) == "deg"
    assert detect_lat_lng_unit([(35.6, 139.7), (128487.0, 502920.0)]) == "arcsec"


def test_haversine_between_shinjuku_and_shibuya():
    distance = haversine_km(35.690921, 139.700258, 35.6580, 139.7016)
    assert distance == pytest.approx(3.7, abs=0.1)
    assert walking_minutes(distance) == 47


def test_haversine_rejects_invalid_points():
    assert haversine_km(None, 139.7, 35.6, 139.7) is None
    assert haversine_km(35.6, 139.7, 91.0, 139.7) is None
    assert walking_minutes(None) is None
