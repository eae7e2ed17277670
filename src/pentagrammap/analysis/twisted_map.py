from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from pentagrammap.analysis.base_map import BaseMap
from pentagrammap.errors import AtInfinityError, SingularityError
from pentagrammap.model.geometry_primitives import dehomogenize
from pentagrammap.model.geometry_utils import corner_invariants, intersection
from pentagrammap.model.linalg import characteristic_polynomial3x3, round_to
from pentagrammap.model.reconstruct import monodromy, reconstruct, reconstruct_with_monodromy
from pentagrammap.model.state import MapConfig, Normalization, SearchFilter

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def map31_invariants(invariants: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Image of 2n corner invariants under the (3, 1) map, in closed form.

    With lifts normalized to ``det(V_i, V_i+1, V_i+2) = 1`` the vertices obey
    ``V_i+3 = a_i V_i+2 + b_i V_i+1 + V_i`` and every determinant of image
    vertices factors into the polynomials

        G_j = det(V_j+1, V_j+4, W_j+2),    K_j = det(V_j+1, V_j+4, V_j+7).

    Dividing by products of ``b`` turns both into functions of the invariants
    ``u_j = x[2j]`` and ``v_j = x[2j + 1]`` alone:

        g_j = (u_j + v_j+1 - 1) / v_j+1
        k_j = (u_j+1 + v_j+3 + u_j+2 v_j+2 - u_j+1 v_j+3 - 1) / v_j+3

    and the image invariants are

        y[2p]     = u_p+2 v_p+2 g_p+1 / (v_p+3 k_p)
        y[2p + 1] = v_p+4 g_p+4 / k_p+2

    with every index taken mod n. The labelling is the one produced by the
    window construction of ``TwistedMap.window_image``.
    """
    x = np.asarray(invariants, dtype=np.float64)
    u, v = x[0::2], x[1::2]

    def ahead(values: npt.NDArray[np.float64], shift: int) -> npt.NDArray[np.float64]:
        return np.roll(values, -shift)

    y = np.empty_like(x)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        g = (u + ahead(v, 1) - 1.0) / ahead(v, 1)
        k = (ahead(u, 1) + ahead(v, 3) + ahead(u, 2) * ahead(v, 2) - ahead(u, 1) * ahead(v, 3) - 1.0) / ahead(v, 3)
        y[0::2] = ahead(u, 2) * ahead(v, 2) * ahead(g, 1) / (ahead(v, 3) * k)
        y[1::2] = ahead(v, 4) * ahead(g, 4) / ahead(k, 2)
    return y


class TwistedMap(BaseMap):
    """
    The map T_{l,k} acting on twisted polygons given by their corner invariants.

    A step reconstructs a window of explicit vertices, intersects the
    l-diagonals and reads the corner invariants of the image back off; the
    (3, 1) map skips the vertices and uses ``map31_invariants``. The
    monodromy is preserved up to conjugation, so ``omegas`` is invariant.
    """
    def __init__(self, config: Optional[MapConfig] = None, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        if self.config.search != SearchFilter.NONE:
            raise ValueError("Filtered searches are only defined for closed polygons.")

    @staticmethod
    def default_config() -> MapConfig:
        return MapConfig(l=3, k=1, normalization=Normalization.NONE)

    def apply_map(
        self,
        invariants: npt.ArrayLike,
        power: Optional[int] = None,
        check_affine: bool = True,
        **options: Any
    ) -> npt.NDArray[np.float64]:
        """
        Apply the map ``power`` times to 2n corner invariants.

        Args:
            invariants: Corner invariants of the twisted polygon.
            power: Number of applications. Defaults to ``config.power``.
            check_affine: Reject image vertices on the line at infinity. The
                (3, 1) closed form builds no vertices and ignores it.

        Raises:
            AtInfinityError: If ``check_affine`` and an image vertex is at infinity.
            SingularityError: If an image invariant is zero, infinite or NaN.

        Returns:
            The corner invariants of the image.
        """
        power = self.config.power if power is None else power
        current = np.asarray(invariants, dtype=np.float64)
        for _ in range(power):
            current = self._apply_once(current, check_affine)
        return current

    def _window(self, x: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        n = len(x) // 2
        l, k, digits = self.config.l, self.config.k, self.config.digits
        size = n + k + l + 4
        if l < 3:
            return reconstruct(x, size, digits)
        return reconstruct_with_monodromy(x, size, digits)

    def _apply_once(self, x: npt.NDArray[np.float64], check_affine: bool) -> npt.NDArray[np.float64]:
        if (self.config.l, self.config.k) == (3, 1):
            y = map31_invariants(x)
        else:
            y = self.window_image(x, check_affine)

        if not np.all(np.isfinite(y)) or np.any(round_to(y, self.config.digits) == 0):
            raise SingularityError(f"The image of {x} has singular corner invariants {y}.")
        return y

    def window_image(self, invariants: npt.ArrayLike, check_affine: bool = True) -> npt.NDArray[np.float64]:
        """
        One application of the map through an explicit window of vertices.

        Image vertex ``W_i`` is the intersection of the diagonals
        (V[i + k], V[i + k + l]) and (V[i], V[i + l]); the image invariants are
        read off ``W_2 .. W_n+1`` and relabelled by one vertex when k is odd.
        """
        x = np.asarray(invariants, dtype=np.float64)
        n = len(x) // 2
        l, k, digits = self.config.l, self.config.k, self.config.digits
        v = self._window(x)

        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            image = np.array([
                intersection(v[i + k], v[i + k + l], v[i], v[i + l], digits) for i in range(n + 4)
            ])
            if check_affine and np.any(np.round(image[:, 2], digits) == 0):
                raise AtInfinityError("An image vertex lies on the line at infinity.")
            y = corner_invariants(image, digits)[4:4 + 2 * n]

        if k % 2 == 1:
            y = np.roll(y, -2)
        return y

    def monodromy_of(self, invariants: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Monodromy lift ``lift(V[n..n+3])⁻¹ · lift(V[0..3])`` of the twisted polygon."""
        return monodromy(invariants, self.config.digits)

    @staticmethod
    def dual_monodromy(m: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Lift of the dual monodromy.

        With ``T = Mᵀ`` the rows ``T1 × T2``, ``T2 × T0``, ``T0 × T1`` form a
        matrix whose transpose is ``M* = adj(M)ᵀ``.
        """
        t = np.asarray(m, dtype=np.float64).T
        dual_t = np.array([np.cross(t[1], t[2]), np.cross(t[2], t[0]), np.cross(t[0], t[1])])
        return dual_t.T

    @staticmethod
    def omegas(m: npt.NDArray[np.float64], m_dual: npt.NDArray[np.float64]) -> tuple[float, float]:
        """
        Monodromy invariants Ω1 = tr(M)³ / det(M) and Ω2 = tr(M*)³ / det(M*).

        Both are independent of the scale of the lifts.
        """
        tr1, _, det1 = characteristic_polynomial3x3(m)
        tr2, _, det2 = characteristic_polynomial3x3(m_dual)
        with np.errstate(divide='ignore', invalid='ignore'):
            return float(np.divide(tr1 ** 3, det1)), float(np.divide(tr2 ** 3, det2))

    def apply_factor(self, invariants: npt.ArrayLike, k: int) -> npt.NDArray[np.float64]:
        """
        The factor map D_k on corner invariants.

        Vertex ``n + 3 - i`` of the image is the line through V[i] and V[i + k].
        """
        x = np.asarray(invariants, dtype=np.float64)
        n = len(x) // 2
        digits = self.config.digits
        v = reconstruct_with_monodromy(x, n + k + 4, digits)
        image = np.empty((n + 4, 3), dtype=np.float64)
        for i in range(n + 4):
            image[n + 3 - i] = dehomogenize(np.cross(v[i], v[i + k]), digits)
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            return corner_invariants(image, digits)[4:4 + 2 * n]
