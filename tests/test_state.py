"""
Tests for map configuration and the undo history.
"""

import pytest

from pentagrammap.config import CONVEX_SEARCH_CAP, HISTORY_LIMIT
from pentagrammap.model.state import (
    HistoryStack,
    MapConfig,
    Normalization,
    SearchCaps,
    SearchFilter,
)


class TestMapConfig:
    """Validation of the map parameters."""

    def test_defaults(self):
        config = MapConfig()
        assert (config.l, config.k, config.power, config.shifts) == (2, 1, 1, 0)
        assert config.normalization == Normalization.ELLIPSE
        assert config.search == SearchFilter.NONE

    @pytest.mark.parametrize("kwargs", [
        {"l": 1, "k": 1},
        {"l": 3, "k": 0},
        {"l": 3, "k": 3},
        {"power": 0},
        {"shifts": -1},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            MapConfig(**kwargs)

    def test_string_modes_are_coerced(self):
        config = MapConfig(normalization="SquareT", search="Convex")
        assert config.normalization is Normalization.SQUARE_TWISTED
        assert config.search is SearchFilter.ONLY_CONVEX

    def test_mode_values_share_one_spelling(self):
        """Both enums use capitalized values, so either parses from the same style of string."""
        assert SearchFilter("Bird") is SearchFilter.ONLY_BIRD
        assert SearchFilter("None") is SearchFilter.NONE
        assert Normalization("None") is Normalization.NONE
        assert all(value[0].isupper() for value in [*SearchFilter, *Normalization])

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            MapConfig(normalization="Circle")

    def test_valid_polygon_sizes(self):
        config = MapConfig(l=2, k=1)
        assert config.is_valid_for(7)
        assert not config.is_valid_for(6)
        assert not MapConfig(l=3, k=2).is_valid_for(9)


class TestSearchCaps:

    def test_for_filter(self):
        caps = SearchCaps(embedded=5, bird=9)
        assert caps.for_filter(SearchFilter.ONLY_EMBEDDED) == 5
        assert caps.for_filter(SearchFilter.ONLY_CONVEX) == CONVEX_SEARCH_CAP
        assert caps.for_filter(SearchFilter.ONLY_BIRD) == 9
        assert caps.for_filter(SearchFilter.NONE) == 1


class TestHistoryStack:
    """Bounded LIFO behaviour."""

    def test_lifo(self):
        history = HistoryStack()
        history.push("a", 0)
        history.push("b", 1)
        assert history.peek().state == "b"
        entry = history.pop()
        assert (entry.state, entry.iterations) == ("b", 1)
        assert history.pop().state == "a"
        assert history.pop() is None
        assert history.peek() is None

    def test_oldest_entry_dropped(self):
        history = HistoryStack(limit=3)
        for i in range(5):
            history.push(i, i)
        assert len(history) == 3
        assert [history.pop().state for _ in range(3)] == [4, 3, 2]

    def test_default_limit(self):
        history = HistoryStack()
        for i in range(HISTORY_LIMIT + 5):
            history.push(i, i)
        assert len(history) == HISTORY_LIMIT

    def test_clear(self):
        history = HistoryStack()
        history.push("a", 0)
        history.clear()
        assert len(history) == 0
