import math

import pytest

from picktle.proximity import get_proximity_color, get_proximity_label


@pytest.mark.parametrize(
    "similarity, label, color",
    [
        (95, "hot", "red"),
        (90, "hot", "red"),
        (75, "warm", "orange"),
        (70, "warm", "orange"),
        (55, "tepid", "yellow"),
        (35, "cool", "blue"),
        (29.99, "cold", "navy"),
        (10, "cold", "navy"),
    ],
)
def test_bands(similarity, label, color):
    assert get_proximity_label(similarity) == label
    assert get_proximity_color(similarity) == color


@pytest.mark.parametrize("similarity", [-5, -1000, math.nan])
def test_out_of_range_falls_to_coldest(similarity):
    assert get_proximity_label(similarity) == "cold"
    assert get_proximity_color(similarity) == "navy"


def test_above_range_is_hot():
    assert get_proximity_label(150) == "hot"
