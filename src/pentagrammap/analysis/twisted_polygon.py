"""
Twisted Polygon State
=====================
A twisted polygon (by default a bigon, n = 2) stored as its corner
invariants, with the quantities derived from its monodromy.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from pentagrammap.analysis.polygon import regular_polygon
from pentagrammap.analysis.twisted_map import TwistedMap
from pentagrammap.errors import PentagramError
from pentagrammap.model.geometry_utils import corner_invariants, intersection, inverse_cross_ratio
from pentagrammap.model.linalg import Eigenvalues, eigenvalues3x3, l2_distance
from pentagrammap.model.reconstruct import reconstruct, reconstruct_with_monodromy

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass
class Energies:
    """Products of the corner invariants preserved by the (3, 1) map."""
    f1: float
    f2: float
    f3: float
    f4: float


class TwistedBigon:
    """
    A twisted n-gon acted on by a ``TwistedMap``.

    Attributes:
        invariants: The 2n corner invariants.
        reference: Invariants at the last reset.
        num_vertex_to_show: Length of the window returned by ``window``.
    """
    def __init__(
        self,
        twisted_map: TwistedMap,
        n: int = 2,
        rng: Optional[np.random.Generator] = None
    ) -> None:
        self.map = twisted_map
        self.rng = rng if rng is not None else np.random.default_rng()
        self.invariants: npt.NDArray[np.float64] = np.empty(0)
        self.reference: npt.NDArray[np.float64] = np.empty(0)
        self.num_vertex_to_show: int = n + 4
        self.set_default(n)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n={self.n}, invariants={self.invariants})"

    @property
    def n(self) -> int:
        return len(self.invariants) // 2

    @property
    def digits(self) -> int:
        return self.map.config.digits

    # --------------------------------------------------------------------------
    # Mutators
    # --------------------------------------------------------------------------
    def act(self, store: bool = True, count_iterations: bool = True, check_affine: bool = True) -> None:
        self.invariants = self.map.act(
            self.invariants, store=store, count_iterations=count_iterations, check_affine=check_affine
        )

    def revert(self) -> bool:
        entry = self.map.revert()
        if entry is None:
            return False
        self.invariants = entry.state
        self.map.iterations = entry.iterations
        return True

    def can_revert(self) -> int:
        return self.map.can_revert()

    def reset_to(self, invariants: npt.ArrayLike) -> None:
        """
        Replace the corner invariants and start a new history.

        Raises:
            ValueError: If the invariants are not a flat array of even length.
        """
        x = np.array(invariants, dtype=np.float64)
        if x.ndim != 1 or len(x) < 2 or len(x) % 2 != 0:
            raise ValueError(f"Corner invariants must be a flat array of even length, got shape {x.shape}.")
        self.invariants = x
        self.reference = x.copy()
        self.num_vertex_to_show = max(self.num_vertex_to_show, self.n + 4)
        self.map.reset()

    def set_default(self, n: Optional[int] = None) -> None:
        """
        Reset to the invariants of a regular polygon repeated over n periods.

        The regular polygon has max(4, k + 1) sides, so for k = 1 the default
        is the unit square read as a twisted n-gon (all invariants equal to 1).
        """
        n = self.n if n is None else n
        sides = max(4, self.map.config.k + 1)
        coords = corner_invariants(regular_polygon(sides), self.digits)
        self.num_vertex_to_show = n + 4
        self.reset_to(np.tile(coords[:2], n))

    def _spiral(self, even: npt.NDArray[np.float64], odd: npt.NDArray[np.float64]) -> None:
        x = np.empty(2 * len(even), dtype=np.float64)
        x[0::2] = even
        x[1::2] = odd
        self.reset_to(x)

    def _unit_samples(self) -> npt.NDArray[np.float64]:
        """n samples in the open interval (0, 1)."""
        u = self.rng.random(self.n)
        u[u == 0.0] = 0.5
        return u

    def random_alpha3(self) -> None:
        """Random type-α 3-spiral: even invariants in (0, 1), odd ones negative."""
        x, y = self._unit_samples(), self._unit_samples()
        self._spiral(x, y / (y - 1.0))

    def random_beta3(self) -> None:
        """Random type-β 3-spiral: even invariants in (1, ∞), odd ones in (0, 1)."""
        x, y = self._unit_samples(), self._unit_samples()
        self._spiral(1.0 / (1.0 - x), y)

    def random_beta2(self) -> None:
        """Random type-β 2-spiral: even invariants positive, odd ones negative."""
        x, y = self._unit_samples(), self._unit_samples()
        flip = self.rng.random(self.n) < 0.5
        self._spiral(np.where(flip, 1.0 / (1.0 - x), x), y / (y - 1.0))

    # --------------------------------------------------------------------------
    # Monodromy
    # --------------------------------------------------------------------------
    @property
    def monodromy(self) -> npt.NDArray[np.float64]:
        return self.map.monodromy_of(self.invariants)

    @property
    def dual_monodromy(self) -> npt.NDArray[np.float64]:
        return self.map.dual_monodromy(self.monodromy)

    @property
    def eigenvalues(self) -> Eigenvalues:
        """Eigenvalues of the monodromy scaled to determinant one."""
        m = self.monodromy
        scale = float(np.cbrt(np.linalg.det(m)))
        return eigenvalues3x3(m / scale, self.digits)

    @property
    def omegas(self) -> tuple[float, float]:
        m = self.monodromy
        return self.map.omegas(m, self.map.dual_monodromy(m))

    @property
    def omega1(self) -> float:
        return self.omegas[0]

    @property
    def omega2(self) -> float:
        return self.omegas[1]

    # --------------------------------------------------------------------------
    # Derived coordinates
    # --------------------------------------------------------------------------
    @property
    def y_coords(self) -> npt.NDArray[np.float64]:
        """y_i = x_i / (x_i - 1)."""
        x = self.invariants
        with np.errstate(divide='ignore', invalid='ignore'):
            return x / (x - 1.0)

    @property
    def energies(self) -> Energies:
        x = self.invariants
        even, odd = x[0::2], x[1::2]
        with np.errstate(divide='ignore', invalid='ignore'):
            f1 = float(np.prod(even / (even - 1.0)))
            f2 = float(np.prod(odd / (odd - 1.0)))
            f3 = float(np.prod(even / odd))
            f4 = f2 * f3 / f1
        return Energies(f1=f1, f2=f2, f3=f3, f4=f4)

    @property
    def flags(self) -> npt.NDArray[np.float64]:
        n, k, digits = self.n, self.map.config.k, self.digits
        v = reconstruct_with_monodromy(self.invariants, n + k + 4, digits)
        flags = np.empty(n, dtype=np.float64)
        for i in range(n):
            flags[i] = inverse_cross_ratio(
                v[i + 2],
                intersection(v[i + 1], v[i + k + 1], v[i + 2], v[i + k + 2], digits),
                intersection(v[i + 2], v[i + k + 2], v[i + 3], v[i + k + 3], digits),
                v[i + k + 2],
            )
        return flags

    @property
    def chi(self) -> npt.NDArray[np.float64]:
        n, k, digits = self.n, self.map.config.k, self.digits
        v = reconstruct_with_monodromy(self.invariants, n + k + 4, digits)
        chi = np.empty(n, dtype=np.float64)
        for i in range(n):
            chi[(i + 1) % n] = inverse_cross_ratio(
                v[i + 1],
                intersection(v[i + 1], v[i + k + 1], v[i], v[i + k], digits),
                intersection(v[i + 1], v[i + k + 1], v[i + 2], v[i + k + 2], digits),
                v[i + k + 1],
            )
        return chi

    @property
    def chi_product(self) -> float:
        return float(np.prod(self.chi))

    def window(self) -> npt.NDArray[np.float64]:
        """The first ``num_vertex_to_show`` vertices."""
        return reconstruct_with_monodromy(self.invariants, self.num_vertex_to_show, self.digits)

    def dual_window(self) -> npt.NDArray[np.float64]:
        """Window of the twisted polygon whose corner invariants are the y-coordinates."""
        return reconstruct_with_monodromy(self.y_coords, self.num_vertex_to_show, self.digits)

    def distance_to_reference(self) -> float:
        return l2_distance(self.invariants, self.reference)

    def trajectory(self, exponent: int = 10) -> npt.NDArray[np.float64]:
        """
        Orbits of the free vertices under repeated application of the map.

        The state and the history are left untouched. Iteration stops early
        at the first degenerate image.

        Args:
            exponent: The map is applied up to ``2**exponent`` times.

        Returns:
            An array of shape (steps, n, 3); entry [s, j] is vertex j + 4 of
            the canonical window after s + 1 applications.
        """
        n, digits = self.n, self.digits
        current = self.invariants.copy()
        orbit = []
        for step in range(2 ** exponent):
            try:
                current = self.map.apply_map(current, check_affine=False)
            except PentagramError as exc:
                logger.warning("Trajectory stopped after %d steps: %s", step, exc)
                break
            orbit.append(reconstruct(current, n + 4, digits)[4:])
        if not orbit:
            return np.empty((0, n, 3))
        return np.array(orbit)
