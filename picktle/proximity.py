"""Hot/cold feedback bands for a similarity score."""

from typing import Tuple

# (lower bound, label, accent color), checked top-down
PROXIMITY_BANDS: Tuple[Tuple[float, str, str], ...] = (
    (90, "hot", "red"),
    (70, "warm", "orange"),
    (50, "tepid", "yellow"),
    (30, "cool", "blue"),
)
COLDEST = ("cold", "navy")


def _band(similarity: float) -> Tuple[str, str]:
    for lower, label, color in PROXIMITY_BANDS:
        if similarity >= lower:
            return label, color
    return COLDEST


def get_proximity_label(similarity: float) -> str:
    return _band(similarity)[0]


def get_proximity_color(similarity: float) -> str:
    return _band(similarity)[1]
