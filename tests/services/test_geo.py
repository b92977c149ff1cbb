import pytest

from midpoint.services.geo import (
    EmptyInput,
    centroid,
    haversine_distance,
    rank_by_distance,
)


def test_centroid_of_single_point_is_that_point():
    assert centroid([(37.5665, 126.978)]) == (37.5665, 126.978)


def test_centroid_of_two_points_on_equator():
    lat, lng = centroid([(0, 0), (0, 2)])
    assert lat == pytest.approx(0.0, abs=1e-12)
    assert lng == pytest.approx(1.0)


def test_centroid_accepts_generators():
    lat, lng = centroid(point for point in [(10, 20), (10, 20)])
    assert lat == pytest.approx(10.0)
    assert lng == pytest.approx(20.0)


def test_centroid_of_nothing_fails():
    with pytest.raises(EmptyInput):
        centroid([])


def test_centroid_across_antimeridian_stays_on_it():
    lat, lng = centroid([(0, 179), (0, -179)])
    assert lat == pytest.approx(0.0, abs=1e-12)
    assert abs(lng) == pytest.approx(180.0)


def test_rank_by_distance_orders_nearest_first():
    a, b, c = (0, 1), (0, 5), (0, 3)
    assert rank_by_distance((0, 0), [a, b, c]) == [a, c, b]


def test_rank_by_distance_keeps_input_order_on_ties():
    candidates = [
        {"name": "east", "at": (0, 1)},
        {"name": "west", "at": (0, -1)},
        {"name": "east-again", "at": (0, 1)},
    ]

    ranked = rank_by_distance((0, 0), candidates, key=lambda row: row["at"])

    assert [row["name"] for row in ranked] == ["east", "west", "east-again"]


def test_rank_by_distance_of_nothing_is_empty():
    assert rank_by_distance((0, 0), []) == []


def test_haversine_zero_for_same_point():
    assert haversine_distance(37.5665, 126.978, 37.5665, 126.978) == 0.0


def test_haversine_one_degree_on_equator():
    # 2 * pi * 6378137 / 360
    assert haversine_distance(0, 0, 0, 1) == pytest.approx(111319.49, rel=1e-6)


def test_haversine_seoul_to_busan():
    distance = haversine_distance(37.5547, 126.9707, 35.1151, 129.0415)
    assert 320_000 < distance < 335_000
