"""
Tests for twisted-polygon reconstruction and the twisted map.
"""

import numpy as np
import pytest

from pentagrammap.analysis.twisted_map import TwistedMap, map31_invariants
from pentagrammap.config import CANONICAL_SQUARE
from pentagrammap.errors import SingularityError
from pentagrammap.model.geometry_utils import corner_invariants
from pentagrammap.model.reconstruct import monodromy, reconstruct, reconstruct_with_monodromy
from pentagrammap.model.state import MapConfig, Normalization, SearchFilter

SQUARE_BIGON = np.ones(4)
SPIRAL = np.array([0.3, -0.5, 0.4, -0.7])
SPIRAL_TRIGON = np.array([0.3, -0.5, 0.4, -0.7, 0.6, -0.2])


def assert_same_points(p, q, atol=1e-8):
    p = p / np.linalg.norm(p, axis=1)[:, np.newaxis]
    q = q / np.linalg.norm(q, axis=1)[:, np.newaxis]
    np.testing.assert_allclose(np.cross(p, q), 0.0, atol=atol)


class TestReconstruct:
    """Vertices from corner invariants."""

    def test_window_starts_with_canonical_square(self):
        window = reconstruct(SPIRAL, 6)
        np.testing.assert_array_equal(window[:4], CANONICAL_SQUARE)

    def test_square_bigon_repeats_the_square(self):
        window = reconstruct(SQUARE_BIGON, 8)
        assert_same_points(window[4:], np.array(CANONICAL_SQUARE))

    @pytest.mark.parametrize("x", [SPIRAL, SPIRAL_TRIGON])
    def test_invariants_are_recovered(self, x):
        """Vertex j of the window carries x[2j - 4] and x[2j - 3]."""
        n = len(x) // 2
        window = reconstruct(x, n + 4)
        np.testing.assert_allclose(corner_invariants(window)[4:4 + 2 * n], x, rtol=1e-8)

    @pytest.mark.parametrize("x", [SPIRAL, SPIRAL_TRIGON])
    def test_monodromy_extension_agrees(self, x):
        direct = reconstruct(x, 10)
        extended = reconstruct_with_monodromy(x, 10)
        assert_same_points(direct, extended, atol=1e-6)

    def test_monodromy_shifts_by_one_period(self):
        n = len(SPIRAL_TRIGON) // 2
        window = reconstruct(SPIRAL_TRIGON, n + 4)
        m = monodromy(SPIRAL_TRIGON)
        assert_same_points(window[:4] @ m.T, window[n:n + 4])

    def test_rejects_odd_length(self):
        with pytest.raises(ValueError):
            reconstruct([0.5, 0.5, 0.5], 6)


class TestMonodromyInvariants:

    def test_square_bigon(self):
        """The square read as a bigon has a half-turn as monodromy."""
        twisted_map = TwistedMap()
        m = twisted_map.monodromy_of(SQUARE_BIGON)
        omega1, omega2 = twisted_map.omegas(m, twisted_map.dual_monodromy(m))
        assert omega1 == pytest.approx(-1.0)
        assert omega2 == pytest.approx(-1.0)

    def test_dual_monodromy_is_transposed_adjugate(self):
        m = TwistedMap().monodromy_of(SPIRAL)
        adjugate = np.linalg.det(m) * np.linalg.inv(m)
        np.testing.assert_allclose(TwistedMap.dual_monodromy(m), adjugate.T, rtol=1e-8, atol=1e-9)

    def test_relabelling_keeps_omegas(self):
        twisted_map = TwistedMap()
        m = twisted_map.monodromy_of(SPIRAL)
        m_rolled = twisted_map.monodromy_of(np.roll(SPIRAL, -2))
        expected = twisted_map.omegas(m, twisted_map.dual_monodromy(m))
        actual = twisted_map.omegas(m_rolled, twisted_map.dual_monodromy(m_rolled))
        assert actual == pytest.approx(expected, rel=1e-6)


class TestThreeOneClosedForm:
    """The (3, 1) map read directly off the corner invariants."""

    @pytest.mark.parametrize("x", [SPIRAL, SPIRAL_TRIGON])
    def test_agrees_with_window_construction(self, x):
        twisted_map = TwistedMap(MapConfig(l=3, k=1, normalization=Normalization.NONE))
        np.testing.assert_allclose(map31_invariants(x), twisted_map.window_image(x, check_affine=False), rtol=1e-6)

    def test_square_bigon_is_fixed(self):
        np.testing.assert_allclose(map31_invariants(SQUARE_BIGON), SQUARE_BIGON)

    def test_constant_invariants_are_fixed(self):
        """A polygon with equal corner invariants at every vertex is its own image."""
        x = np.tile([0.4, 1.7], 3)
        np.testing.assert_allclose(map31_invariants(x), x, rtol=1e-12)

    def test_apply_map_uses_closed_form(self):
        twisted_map = TwistedMap()
        np.testing.assert_allclose(twisted_map.apply_map(SPIRAL_TRIGON, check_affine=False), map31_invariants(SPIRAL_TRIGON))


class TestTwistedMap:
    """Steps on corner invariants."""

    def test_default_is_three_one(self):
        config = TwistedMap().config
        assert (config.l, config.k) == (3, 1)
        assert config.normalization == Normalization.NONE

    def test_square_bigon_is_fixed_by_three_one(self):
        image = TwistedMap().apply_map(SQUARE_BIGON)
        np.testing.assert_allclose(image, SQUARE_BIGON, rtol=1e-8)

    def test_square_bigon_is_singular_for_pentagram_map(self):
        """All l = 2 diagonals of the square meet at its center."""
        twisted_map = TwistedMap(MapConfig(l=2, k=1, normalization=Normalization.NONE))
        with pytest.raises(SingularityError):
            twisted_map.apply_map(SQUARE_BIGON)

    @pytest.mark.parametrize("l, k", [(3, 1), (2, 1), (4, 1), (3, 2)])
    def test_omegas_are_preserved(self, l, k):
        twisted_map = TwistedMap(MapConfig(l=l, k=k, normalization=Normalization.NONE))
        m = twisted_map.monodromy_of(SPIRAL)
        before = twisted_map.omegas(m, twisted_map.dual_monodromy(m))

        image = twisted_map.apply_map(SPIRAL, check_affine=False)
        m_image = twisted_map.monodromy_of(image)
        after = twisted_map.omegas(m_image, twisted_map.dual_monodromy(m_image))
        assert after == pytest.approx(before, rel=1e-6)

    def test_act_and_revert(self):
        twisted_map = TwistedMap(MapConfig(l=3, k=1, power=2, normalization=Normalization.NONE))
        image = twisted_map.act(SPIRAL, check_affine=False)
        assert image.shape == (4,)
        assert twisted_map.iterations == 2
        entry = twisted_map.revert()
        np.testing.assert_array_equal(entry.state, SPIRAL)
        assert twisted_map.iterations == 0

    def test_filtered_search_rejected(self):
        with pytest.raises(ValueError):
            TwistedMap(MapConfig(l=3, k=1, search=SearchFilter.ONLY_CONVEX))

    def test_factor_map(self):
        image = TwistedMap().apply_factor(SPIRAL, 1)
        assert image.shape == (4,)
        assert np.all(np.isfinite(image))
