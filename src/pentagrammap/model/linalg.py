"""
Linear Algebra Primitives
=========================
Small dense matrix/vector operations used by the projective engine.

All functions are pure and accept array-likes; they return new ``numpy``
arrays and never modify their inputs. Degeneracy checks go through
``round_to`` with an explicit number of digits.
"""
from __future__ import annotations

from dataclasses import dataclass
from math import sqrt, acos, cos, pi
from typing import TYPE_CHECKING, Union

import numpy as np
import scipy.linalg

from pentagrammap.config import DEFAULT_DIGITS
from pentagrammap.errors import DimensionError, SingularMatrixError

if TYPE_CHECKING:
    import numpy.typing as npt

ArrayLike = Union["npt.ArrayLike", list, tuple]


def round_to(x, digits: int = DEFAULT_DIGITS):
    """
    Round a scalar or an array to a fixed number of decimal digits.

    Used before every equality/degeneracy check to suppress floating noise.

    Args:
        x: Scalar or array.
        digits: Number of decimal digits to keep.

    Returns:
        A float for scalar input, an array otherwise.
    """
    rounded = np.round(x, digits)
    if np.ndim(rounded) == 0:
        return float(rounded)
    return rounded


def multiply(a: ArrayLike, b: ArrayLike) -> npt.NDArray[np.float64]:
    """
    Standard matrix product of an (m, n) matrix with an (n, k) matrix or an (n,) vector.

    Raises:
        DimensionError: If the inner dimensions do not match.
    """
    mat_a = np.asarray(a, dtype=np.float64)
    mat_b = np.asarray(b, dtype=np.float64)
    if mat_a.ndim != 2 or mat_b.ndim not in (1, 2):
        raise DimensionError(f"Cannot multiply arrays of shape {mat_a.shape} and {mat_b.shape}.")
    if mat_a.shape[1] != mat_b.shape[0]:
        raise DimensionError(
            f"Matrices cannot be multiplied: inner dimensions {mat_a.shape[1]} and {mat_b.shape[0]} differ."
        )
    return mat_a @ mat_b


def transpose(mat: ArrayLike) -> npt.NDArray[np.float64]:
    return np.array(mat, dtype=np.float64).T.copy()


def _as_square(mat: ArrayLike, size: int) -> npt.NDArray[np.float64]:
    m = np.asarray(mat, dtype=np.float64)
    if m.shape != (size, size):
        raise DimensionError(f"Expected a {size}x{size} matrix, got shape {m.shape}.")
    return m


def determinant2x2(mat: ArrayLike) -> float:
    m = _as_square(mat, 2)
    return float(m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0])


def determinant3x3(mat: ArrayLike) -> float:
    """Determinant of a 3x3 matrix by the rule of Sarrus."""
    m = _as_square(mat, 3)
    a = m[0, 0] * m[1, 1] * m[2, 2]
    b = m[0, 0] * m[1, 2] * m[2, 1]
    c = m[0, 1] * m[1, 0] * m[2, 2]
    d = m[0, 1] * m[1, 2] * m[2, 0]
    e = m[0, 2] * m[1, 0] * m[2, 1]
    f = m[0, 2] * m[1, 1] * m[2, 0]
    return float(a - b - c + d + e - f)


def invert2x2(mat: ArrayLike, digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """
    Invert a 2x2 matrix in closed form.

    Raises:
        SingularMatrixError: If the determinant rounds to zero.
    """
    m = _as_square(mat, 2)
    det = determinant2x2(m)
    if round_to(det, digits) == 0:
        raise SingularMatrixError("Matrix is not invertible.")
    return np.array([
        [m[1, 1], -m[0, 1]],
        [-m[1, 0], m[0, 0]],
    ]) / det


def invert3x3(mat: ArrayLike, digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """
    Invert a 3x3 matrix through its adjugate.

    The rows of the adjugate are the pairwise cross products of the columns,
    so that ``adj(M) @ M = det(M) * I``.

    Raises:
        SingularMatrixError: If the determinant rounds to zero.
    """
    m = _as_square(mat, 3)
    det = determinant3x3(m)
    if round_to(det, digits) == 0:
        raise SingularMatrixError("Matrix is not invertible.")
    c0, c1, c2 = m[:, 0], m[:, 1], m[:, 2]
    adjugate = np.array([
        np.cross(c1, c2),
        np.cross(c2, c0),
        np.cross(c0, c1),
    ])
    return adjugate / det


def cross_product3(u: ArrayLike, v: ArrayLike) -> npt.NDArray[np.float64]:
    a = np.asarray(u, dtype=np.float64)
    b = np.asarray(v, dtype=np.float64)
    if a.shape != (3,) or b.shape != (3,):
        raise DimensionError(f"Cross product needs two 3-vectors, got {a.shape} and {b.shape}.")
    return np.cross(a, b)


def solve_rref(matrix: ArrayLike, digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """
    Compute the reduced row echelon form of a rectangular matrix (Gauss-Jordan).

    The pivot of each row is the first entry found by a row scan that does not
    round to zero; there is no partial pivoting, so badly conditioned systems
    may lose accuracy.

    Args:
        matrix: An (m, n) matrix. It is copied, never modified.
        digits: Digits used to decide whether an entry is zero.

    Returns:
        The reduced matrix. If every remaining column is exhausted before all
        rows are processed, the partially reduced matrix is returned as is.
    """
    m = np.array(matrix, dtype=np.float64, copy=True)
    if m.ndim != 2:
        raise DimensionError(f"Expected a 2D matrix, got shape {m.shape}.")

    row_count, col_count = m.shape
    lead = 0
    for r in range(row_count):
        if col_count <= lead:
            return m

        i = r
        while round_to(m[i, lead], digits) == 0:
            i += 1
            if i == row_count:
                i = r
                lead += 1
                if lead == col_count:
                    return m

        # Swap the rows
        m[[i, r]] = m[[r, i]]

        # Normalize the pivot row
        m[r] = m[r] / m[r, lead]

        # Eliminate other rows
        for j in range(row_count):
            if j != r:
                m[j] = m[j] - m[j, lead] * m[r]
        lead += 1

    return m


def four_point_transform(
    source: ArrayLike,
    target: ArrayLike,
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Projective transformation sending four source points to four target points.

    Solves ``T s_i = lambda_i t_i`` (i = 0..3) as a homogeneous 12x13 system with
    ``lambda_3 = 1`` using ``solve_rref``.

    Args:
        source: (4, 3) homogeneous coordinates of the source points.
        target: (4, 3) homogeneous coordinates of the target points.
        digits: Digits used for pivot detection.

    Returns:
        The 3x3 transformation (defined up to scale).
    """
    s = np.asarray(source, dtype=np.float64)
    t = np.asarray(target, dtype=np.float64)
    if s.shape != (4, 3) or t.shape != (4, 3):
        raise DimensionError(f"Expected two (4, 3) point lists, got {s.shape} and {t.shape}.")

    a = np.zeros((12, 13), dtype=np.float64)
    for j in range(4):
        for row in range(3):
            a[3 * j + row, 3 * row:3 * row + 3] = s[j]
            a[3 * j + row, 9 + j] = -t[j, row]

    reduced = solve_rref(a, digits)
    return -reduced[:9, 12].reshape(3, 3)


def spectral_decomposition2x2(mat: ArrayLike) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Spectral decomposition of a real symmetric 2x2 matrix.

    Returns:
        ``(Q, L)`` with orthonormal eigenvectors as the columns of ``Q`` and the
        eigenvalues (ascending) on the diagonal of ``L``, so that ``S = Q L Q^T``.
    """
    m = _as_square(mat, 2)
    if not np.isclose(m[0, 1], m[1, 0]):
        raise ValueError("Spectral decomposition requires a symmetric matrix.")
    eigenvalues, eigenvectors = scipy.linalg.eigh(m)
    return eigenvectors, np.diag(eigenvalues)


def characteristic_polynomial3x3(mat: ArrayLike) -> tuple[float, float, float]:
    """
    Coefficients of the characteristic polynomial ``x^3 - c0 x^2 + c1 x - c2``.

    Returns:
        ``(c0, c1, c2)`` = (trace, sum of the principal 2x2 minors, determinant).
    """
    m = _as_square(mat, 3)
    trace = float(m[0, 0] + m[1, 1] + m[2, 2])
    minors = float(
        m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0]
        + m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0]
        + m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1]
    )
    return trace, minors, determinant3x3(m)


@dataclass(frozen=True)
class Eigenvalues:
    """
    The three eigenvalues of a 3x3 matrix.

    ``all_real`` is False when two of them form a complex-conjugate pair;
    ``repeated`` is True when the discriminant rounds to zero.
    """
    values: tuple[complex, complex, complex]
    all_real: bool
    repeated: bool

    @property
    def real(self) -> tuple[float, float, float]:
        return tuple(float(v.real) for v in self.values)


def eigenvalues3x3(mat: ArrayLike, digits: int = DEFAULT_DIGITS) -> Eigenvalues:
    """
    Eigenvalues of a 3x3 matrix from the closed-form roots of its characteristic cubic.

    The cubic ``x^3 - a x^2 + b x - c`` is depressed with ``x = t + a/3`` to
    ``t^3 + p t + q``; the sign of ``D = (q/2)^2 + (p/3)^3`` decides between
    three real roots (trigonometric form), one real root and a conjugate pair
    (Cardano) or repeated roots.
    """
    a, b, c = characteristic_polynomial3x3(mat)
    p = b - a * a / 3.0
    q = -2.0 * a ** 3 / 27.0 + a * b / 3.0 - c
    shift = a / 3.0
    disc = round_to((q / 2.0) ** 2 + (p / 3.0) ** 3, digits)

    if disc < 0:
        r = sqrt(-p / 3.0)
        arg = float(np.clip((3.0 * q / (2.0 * p)) * sqrt(-3.0 / p), -1.0, 1.0))
        theta = acos(arg) / 3.0
        roots = tuple(complex(2.0 * r * cos(theta - 2.0 * pi * k / 3.0) + shift) for k in range(3))
        return Eigenvalues(values=roots, all_real=True, repeated=False)

    if disc > 0:
        sqrt_d = sqrt(disc)
        u = float(np.cbrt(-q / 2.0 + sqrt_d))
        v = float(np.cbrt(-q / 2.0 - sqrt_d))
        real_root = u + v + shift
        re = -(u + v) / 2.0 + shift
        im = sqrt(3.0) / 2.0 * (u - v)
        return Eigenvalues(
            values=(complex(real_root), complex(re, im), complex(re, -im)),
            all_real=False,
            repeated=False,
        )

    # Repeated roots
    if round_to(p, digits) == 0:
        return Eigenvalues(values=(complex(shift),) * 3, all_real=True, repeated=True)
    simple = 3.0 * q / p + shift
    double = -3.0 * q / (2.0 * p) + shift
    return Eigenvalues(values=(complex(simple), complex(double), complex(double)), all_real=True, repeated=True)


def l2_distance(a: ArrayLike, b: ArrayLike) -> float:
    """Euclidean distance between two arrays of the same shape."""
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.linalg.norm(diff))
