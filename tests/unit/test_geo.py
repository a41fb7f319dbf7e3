import pytest

from meshhessen.core.geo import EARTH_RADIUS_M, format_distance, haversine_meters


def test_one_degree_of_longitude_at_equator() -> None:
    distance = haversine_meters(0.0, 0.0, 0.0, 1.0)
    assert distance == pytest.approx(111_194.9, abs=1.0)


def test_same_point_is_zero() -> None:
    assert haversine_meters(50.58, 8.67, 50.58, 8.67) == 0.0


def test_distance_is_symmetric() -> None:
    giessen_to_frankfurt = haversine_meters(50.5841, 8.6784, 50.1109, 8.6821)
    frankfurt_to_giessen = haversine_meters(50.1109, 8.6821, 50.5841, 8.6784)
    assert giessen_to_frankfurt == pytest.approx(frankfurt_to_giessen)
    assert giessen_to_frankfurt == pytest.approx(52_600, rel=0.01)


def test_antipodes_are_half_circumference() -> None:
    assert haversine_meters(0.0, 0.0, 0.0, 180.0) == pytest.approx(EARTH_RADIUS_M * 3.141592653589793)


@pytest.mark.parametrize(
    "meters,expected",
    [
        (None, "-"),
        (0.0, "0 m"),
        (999.4, "999 m"),
        (1000.0, "1.0 km"),
        (111_194.9, "111.2 km"),
    ],
)
def test_format_distance(meters, expected) -> None:
    assert format_distance(meters) == expected
