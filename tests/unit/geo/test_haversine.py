import pytest

from contracts.geo_dto import GeoPoint
from medtrace.geo.haversine import distance_km, haversine_km


def test_zero_distance():
    assert haversine_km(23.8103, 90.4125, 23.8103, 90.4125) == 0.0


def test_dhaka_chittagong():
    """Дакка - Читтагонг по прямой около 213 км."""
    assert haversine_km(23.8103, 90.4125, 22.3569, 91.7832) == pytest.approx(213, abs=5)


@pytest.mark.parametrize("a, b", [
    ((23.8103, 90.4125), (22.3569, 91.7832)),
    ((0.0, 0.0), (0.0, 179.9)),
    ((89.9, 10.0), (-89.9, -170.0)),
    ((-33.86, 151.21), (51.5, -0.12)),
])
def test_symmetric(a, b):
    assert haversine_km(*a, *b) == pytest.approx(haversine_km(*b, *a), rel=1e-12)


def test_antipodal_does_not_fail():
    """Антиподы: округление не выводит asin за область определения."""
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(20015.09, abs=0.1)


def test_geopoint_wrapper():
    a = GeoPoint(latitude=23.8103, longitude=90.4125)
    b = GeoPoint(latitude=24.8949, longitude=91.8687)
    assert distance_km(a, b) == pytest.approx(haversine_km(23.8103, 90.4125, 24.8949, 91.8687))
