import numpy as np
from typing import Tuple

from numba import njit
import scipy.linalg


@njit(fastmath=True, cache=True)
def gram_schmidt_qr(A: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Thin QR of ``A`` (n, m) by classical Gram–Schmidt; R has a positive diagonal."""
    n, m = A.shape
    Q = np.zeros((n, m), dtype=np.float64)
    R = np.zeros((m, m), dtype=np.float64)

    for j in range(m):
        v = np.empty(n, dtype=np.float64)
        for r in range(n):
            v[r] = A[r, j]

        for i in range(j):
            # R[i, j] = dot(Q[:, i], A[:, j])
            s = 0.0
            for k in range(n):
                s += Q[k, i] * A[k, j]
            R[i, j] = s

            for k in range(n):
                v[k] -= s * Q[k, i]

        s2 = 0.0
        for k in range(n):
            s2 += v[k] * v[k]
        Rjj = np.sqrt(s2)
        R[j, j] = Rjj

        inv = 1.0 / Rjj
        for k in range(n):
            Q[k, j] = v[k] * inv

    return Q, R


_QR_METHODS = {"householder", "scipy", "qr", "gs", "gram-schmidt", "gram_schmidt", "numba"}


def check_qr_method(qr_method: str) -> str:
    method = qr_method.lower()
    if method not in _QR_METHODS:
        available = "householder, gs"
        raise ValueError(f"Unknown qr_method '{qr_method}'. Available: {available}.")
    return method


def qr_factorize(A: np.ndarray, qr_method: str = "householder") -> Tuple[np.ndarray, np.ndarray]:
    """Thin QR factorization of ``A`` with the selected back-end."""
    method = check_qr_method(qr_method)
    if method in {"householder", "scipy", "qr"}:
        return scipy.linalg.qr(A, mode="economic", check_finite=False)
    return gram_schmidt_qr(np.ascontiguousarray(A, dtype=np.float64))


def pos_diag_qr(Q: np.ndarray, R: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Flip signs so that the diagonal of ``R`` is non-negative.

    Column ``i`` of ``Q`` and row ``i`` of ``R`` are negated together, which
    leaves the product ``Q @ R`` unchanged. Both arrays are modified in place.

    Parameters
    ----------
    Q : ndarray, shape (n, m)
        Orthonormal factor.
    R : ndarray, shape (m, m)
        Upper triangular factor.

    Returns
    -------
    Q, R : ndarray
        The same arrays, sign-canonicalized.
    """
    if Q.shape[1] != R.shape[1]:
        raise ValueError("Q and R must have the same number of columns.")

    flip = np.diag(R) < 0
    Q[:, flip] = -Q[:, flip]
    R[flip, :] = -R[flip, :]
    return Q, R


__all__ = [
    "gram_schmidt_qr",
    "check_qr_method",
    "qr_factorize",
    "pos_diag_qr",
]
