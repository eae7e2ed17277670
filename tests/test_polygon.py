"""
Tests for the closed polygon state object.
"""

import numpy as np
import pytest

from pentagrammap.analysis.pentagram_map import PentagramMap
from pentagrammap.analysis.polygon import Polygon
from pentagrammap.errors import SearchCapExceeded
from pentagrammap.model.geometry_primitives import ProjectivePoint
from pentagrammap.model.geometry_utils import is_convex
from pentagrammap.model.state import MapConfig, SearchCaps, SearchFilter


@pytest.fixture
def polygon():
    return Polygon(PentagramMap(MapConfig(l=2, k=1)), n=7, rng=np.random.default_rng(7))


def radii(vertices):
    return np.linalg.norm(vertices[:, :2] / vertices[:, 2:3], axis=1)


class TestDefaults:

    def test_regular_heptagon(self, polygon):
        assert polygon.n == 7
        assert polygon.iterations == 0
        np.testing.assert_allclose(radii(polygon.vertices), np.sqrt(2.0), atol=1e-9)
        assert polygon.info.embedded
        assert polygon.info.convex
        assert polygon.info.bird
        assert np.isfinite(polygon.info.energy)

    def test_next_powers_only_on_request(self, polygon):
        assert polygon.info.next_embedded is None
        polygon.show_next = True
        info = polygon.update_info()
        assert (info.next_embedded, info.next_convex, info.next_bird) == (1, 1, 1)

    def test_set_default_changes_size(self, polygon):
        polygon.set_default(9)
        assert polygon.n == 9
        assert polygon.can_revert() == 0

    def test_points_and_clone(self, polygon):
        points = polygon.points
        assert len(points) == 7
        assert isinstance(points[0], ProjectivePoint)
        clone = polygon.clone_vertices()
        clone[0] = 0.0
        assert polygon.vertices[0, 2] == 1.0

    def test_reference_coords(self, polygon):
        np.testing.assert_allclose(polygon.reference_coords, polygon.corner_coords)


class TestActions:
    """Stepping, reverting and resetting."""

    def test_act_and_revert(self, polygon):
        start = polygon.clone_vertices()
        polygon.act()
        assert polygon.iterations == 1
        assert polygon.info.convex
        assert polygon.revert()
        np.testing.assert_array_equal(polygon.vertices, start)
        assert polygon.iterations == 0
        assert not polygon.revert()

    def test_revert_restores_filtered_counter(self):
        """A filtered step may take several attempts; revert restores the exact counter."""
        config = MapConfig(search=SearchFilter.ONLY_CONVEX)
        polygon = Polygon(PentagramMap(config), n=7)
        polygon.act()
        polygon.act()
        assert polygon.iterations == 2
        polygon.revert()
        assert polygon.iterations == 1

    def test_failed_search_leaves_polygon(self, polygon):
        star = polygon.vertices[[(2 * i) % 7 for i in range(7)]]
        polygon.reset_to(star)
        polygon.map.config = MapConfig(search=SearchFilter.ONLY_EMBEDDED, caps=SearchCaps(embedded=3))
        with pytest.raises(SearchCapExceeded):
            polygon.act()
        np.testing.assert_array_equal(polygon.vertices, star)
        assert polygon.iterations == 0

    def test_reset_to_affine_points(self, polygon):
        polygon.act()
        polygon.reset_to([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)])
        assert polygon.n == 4
        assert polygon.iterations == 0
        assert polygon.can_revert() == 0
        np.testing.assert_allclose(polygon.reference_coords, np.ones(8), atol=1e-12)

    def test_reset_to_needs_four_vertices(self, polygon):
        with pytest.raises(ValueError):
            polygon.reset_to([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)])


class TestShapes:
    """Inscribed and random polygons."""

    def test_set_to_inscribed(self, polygon):
        polygon.reset_to([(0.5, 0.0), (0.0, 2.0), (-1.0, 0.0), (0.0, -0.3), (0.7, -0.7)])
        polygon.set_to_inscribed()
        np.testing.assert_allclose(radii(polygon.vertices), np.sqrt(2.0))

    def test_inscribed_rejects_center(self, polygon):
        polygon.reset_to([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)])
        with pytest.raises(ValueError):
            polygon.set_to_inscribed()

    def test_random_inscribed(self, polygon):
        polygon.random_inscribed(9)
        assert polygon.n == 9
        np.testing.assert_allclose(radii(polygon.vertices), np.sqrt(2.0))
        assert is_convex(polygon.vertices)

    def test_random_convex(self, polygon):
        for n in (5, 8, 12):
            polygon.random_convex(n)
            assert polygon.n == n
            assert polygon.info.convex

    def test_random_star_shaped_and_nonconvex(self, polygon):
        polygon.random_star_shaped(10)
        assert polygon.n == 10
        polygon.random_nonconvex(6)
        assert polygon.n == 6

    def test_seeded_generator_is_reproducible(self):
        first = Polygon(PentagramMap(), rng=np.random.default_rng(3))
        second = Polygon(PentagramMap(), rng=np.random.default_rng(3))
        first.random_nonconvex()
        second.random_nonconvex()
        np.testing.assert_array_equal(first.vertices, second.vertices)
