"""Tests for rendition ladder planning."""

import pytest
from hypothesis import given, strategies as st

from streaming_api.models.rendition import RENDITION_CATALOG
from streaming_api.services.ladder_planner import plan

CATALOG_HEIGHTS = [spec.height for spec in RENDITION_CATALOG]


@given(st.integers(max_value=143))
def test_sources_below_smallest_rung_get_empty_ladder(height):
    assert plan(height) == []


@given(st.integers(min_value=144, max_value=10_000))
def test_ladder_is_ascending_prefix_of_catalog(height):
    heights = [spec.height for spec in plan(height)]

    assert heights == [h for h in CATALOG_HEIGHTS if h <= height]
    assert heights == sorted(set(heights))
    assert heights == CATALOG_HEIGHTS[:len(heights)]
    assert all(h <= height for h in heights)


@pytest.mark.parametrize(
    "height,expected",
    [
        (0, []),
        (100, []),
        (144, [144]),
        (239, [144]),
        (480, [144, 240, 360, 480]),
        (720, [144, 240, 360, 480, 720]),
        (1079, [144, 240, 360, 480, 720]),
        (1080, [144, 240, 360, 480, 720, 1080]),
        (2160, [144, 240, 360, 480, 720, 1080]),
    ],
)
def test_catalog_thresholds(height, expected):
    assert [spec.height for spec in plan(height)] == expected


def test_catalog_widths_are_even():
    assert all(spec.target_width % 2 == 0 for spec in RENDITION_CATALOG)


def test_planner_returns_catalog_entries():
    assert all(spec is RENDITION_CATALOG[i] for i, spec in enumerate(plan(1080)))
