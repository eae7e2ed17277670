"""
Tests for the twisted bigon state object.
"""

import numpy as np
import pytest

from pentagrammap.analysis.twisted_map import TwistedMap
from pentagrammap.analysis.twisted_polygon import TwistedBigon
from pentagrammap.config import CANONICAL_SQUARE

SPIRAL = [0.3, -0.5, 0.4, -0.7]


@pytest.fixture
def bigon():
    return TwistedBigon(TwistedMap(), rng=np.random.default_rng(11))


class TestDefaults:
    """The square read as a twisted bigon."""

    def test_invariants(self, bigon):
        assert bigon.n == 2
        np.testing.assert_allclose(bigon.invariants, np.ones(4))
        assert bigon.distance_to_reference() == 0.0

    def test_omegas(self, bigon):
        assert bigon.omega1 == pytest.approx(-1.0)
        assert bigon.omega2 == pytest.approx(-1.0)

    def test_eigenvalues_of_half_turn(self, bigon):
        eig = bigon.eigenvalues
        assert eig.all_real
        assert eig.repeated
        assert sorted(eig.real) == pytest.approx([-1.0, -1.0, 1.0], abs=1e-6)

    def test_window(self, bigon):
        window = bigon.window()
        assert window.shape == (6, 3)
        np.testing.assert_array_equal(window[:4], CANONICAL_SQUARE)

    def test_trajectory_of_fixed_point(self, bigon):
        orbit = bigon.trajectory(2)
        assert orbit.shape == (4, 2, 3)
        np.testing.assert_allclose(orbit[-1], orbit[0], atol=1e-8)
        np.testing.assert_allclose(bigon.invariants, np.ones(4))
        assert bigon.can_revert() == 0


class TestActions:

    def test_act_and_revert(self, bigon):
        bigon.reset_to(SPIRAL)
        bigon.act(check_affine=False)
        assert bigon.map.iterations == 1
        assert bigon.distance_to_reference() > 0.0
        assert bigon.revert()
        np.testing.assert_array_equal(bigon.invariants, SPIRAL)
        assert bigon.map.iterations == 0
        assert not bigon.revert()

    def test_square_bigon_is_fixed(self, bigon):
        bigon.act()
        np.testing.assert_allclose(bigon.invariants, np.ones(4), rtol=1e-8)

    def test_act_keeps_omegas(self, bigon):
        bigon.reset_to(SPIRAL)
        before = bigon.omegas
        bigon.act(check_affine=False)
        assert bigon.omegas == pytest.approx(before, rel=1e-6)

    def test_reset_to_rejects_odd_length(self, bigon):
        with pytest.raises(ValueError):
            bigon.reset_to([0.5, 0.5, 0.5])

    def test_reset_to_trigon_grows_window(self, bigon):
        bigon.reset_to([0.3, -0.5, 0.4, -0.7, 0.6, -0.2])
        assert bigon.n == 3
        assert bigon.window().shape == (7, 3)


class TestSpirals:
    """Random spirals land in the right sign pattern."""

    def test_alpha3(self, bigon):
        bigon.random_alpha3()
        assert np.all((bigon.invariants[0::2] > 0.0) & (bigon.invariants[0::2] < 1.0))
        assert np.all(bigon.invariants[1::2] < 0.0)

    def test_beta3(self, bigon):
        bigon.random_beta3()
        assert np.all(bigon.invariants[0::2] > 1.0)
        assert np.all((bigon.invariants[1::2] > 0.0) & (bigon.invariants[1::2] < 1.0))

    def test_beta2(self, bigon):
        bigon.random_beta2()
        assert np.all(bigon.invariants[0::2] > 0.0)
        assert np.all(bigon.invariants[1::2] < 0.0)

    def test_reset_records_reference(self, bigon):
        bigon.random_alpha3()
        np.testing.assert_array_equal(bigon.reference, bigon.invariants)


class TestDerivedCoordinates:

    def test_y_coords(self, bigon):
        bigon.reset_to([0.5, -1.0, 0.25, -3.0])
        np.testing.assert_allclose(bigon.y_coords, [-1.0, 0.5, -1.0 / 3.0, 0.75])

    def test_energies(self, bigon):
        bigon.reset_to([0.5, -1.0, 0.25, -3.0])
        energies = bigon.energies
        assert energies.f1 == pytest.approx(1.0 / 3.0)
        assert energies.f2 == pytest.approx(0.375)
        assert energies.f3 == pytest.approx(1.0 / 24.0)
        assert energies.f4 == pytest.approx(0.046875)

    def test_flags_and_chi(self, bigon):
        bigon.reset_to(SPIRAL)
        assert bigon.flags.shape == (2,)
        chi = bigon.chi
        assert chi.shape == (2,)
        np.testing.assert_allclose(bigon.chi_product, np.prod(chi))

    def test_dual_window(self, bigon):
        bigon.reset_to(SPIRAL)
        dual = bigon.dual_window()
        assert dual.shape == (6, 3)
        np.testing.assert_array_equal(dual[:4], CANONICAL_SQUARE)
