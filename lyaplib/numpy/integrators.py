import contextlib
import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
from tqdm import tqdm

from .options import LyapunovOptions
from .qr import pos_diag_qr, qr_factorize
from .steppers import resolve_stepper

logger = logging.getLogger(__name__)

SpectrumResult = Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]


def time_grid(start: float, stop: float, step: float) -> np.ndarray:
    """Grid ``start, start + step, ...`` up to and including ``stop`` (within roundoff)."""
    span = (stop - start) / step
    n = int(np.floor(span + 1e-9 * max(1.0, span))) + 1
    return start + step * np.arange(n, dtype=float)


def _final_state(
    integrator: Callable,
    t: np.ndarray,
    x0: np.ndarray,
    kwargs: Dict,
) -> np.ndarray:
    solution = np.asarray(integrator(t, x0, **kwargs), dtype=float)
    if solution.ndim != 2 or solution.shape[0] != x0.size:
        raise ValueError(
            f"integrator must return an array of shape ({x0.size}, nt), got {solution.shape}."
        )
    return solution[:, -1]


def _allocate_exponents(
    m: int, nx: int, N: int, history: bool
) -> Tuple[np.ndarray, Optional[np.ndarray], int]:
    """Allocate the accumulators and clamp ``m`` to the state dimension."""
    LE = np.zeros(m, dtype=float)
    LE_history = np.zeros((m, N), dtype=float) if history else None

    if m > nx:
        warnings.warn(
            f"m={m} must be less than or equal to the dimension of the system ({nx}).",
            RuntimeWarning,
            stacklevel=4,
        )
        logger.info("Setting number of computed Lyapunov exponents to the dimension of system %d", nx)
        LE[nx:] = np.nan
        if LE_history is not None:
            LE_history[nx:, :] = np.nan
        m = nx

    return LE, LE_history, m


def _initial_directions(nx: int, m: int, options: LyapunovOptions) -> np.ndarray:
    if options.initialization == "random":
        rng = np.random.default_rng(options.seed)
        Q, _ = qr_factorize(rng.standard_normal((nx, m)), options.qr_method)
        return np.array(Q[:, :m], dtype=float)
    return np.eye(nx, dtype=float)[:, :m]


def _reorthonormalize(Q: np.ndarray, m: int, qr_method: str) -> Tuple[np.ndarray, np.ndarray]:
    Q, R = qr_factorize(Q, qr_method)
    Q, R = pos_diag_qr(Q, R)
    return Q[:, :m], R[:m, :m]


def _progress(options: LyapunovOptions) -> tqdm:
    return tqdm(
        total=options.N,
        desc="Computing Lyapunov exponents... ",
        colour="blue",
        unit="window",
        disable=not options.verbose,
    )


def _direction_pool(n_workers: Optional[int]):
    if n_workers is None or n_workers == 1:
        return contextlib.nullcontext(None)
    return ThreadPoolExecutor(max_workers=n_workers)


def _finite_difference_directions(
    integrator: Callable,
    t: np.ndarray,
    u_prev: np.ndarray,
    u_next: np.ndarray,
    Q: np.ndarray,
    eps: float,
    pool: Optional[ThreadPoolExecutor],
    kwargs: Dict,
) -> np.ndarray:
    """Approximate the flow-map derivative applied to each column of ``Q``."""
    W = np.empty_like(Q)

    def _direction(i: int) -> None:
        w_i = _final_state(integrator, t, u_prev + eps * Q[:, i], kwargs)
        W[:, i] = (w_i - u_next) / eps

    if pool is None:
        for i in range(Q.shape[1]):
            _direction(i)
    else:
        # Columns are disjoint; consuming the iterator is the join.
        list(pool.map(_direction, range(Q.shape[1])))
    return W


def estimate_spectrum_fullmodel(
    integrator: Callable,
    ic: np.ndarray,
    options: LyapunovOptions,
    **kwargs,
) -> SpectrumResult:
    """
    Lyapunov spectrum from finite-difference perturbed trajectories.

    Benettin et al. (1980) / Shimada & Nagashima (1979) as described by
    Edson et al. (2019): after a burn-in, each of the ``m`` directions is
    propagated by integrating a trajectory started ``eps`` away from the
    reference, and the directions are re-orthonormalized every ``T``.

    Parameters
    ----------
    integrator : Callable
        ``integrator(t, x0, **kwargs)`` returning the trajectory on the grid
        ``t`` as an array of shape (n, nt). Only the last column is used.
    ic : ndarray, shape (n,)
        Initial condition.
    options : LyapunovOptions
        Algorithm options.
    **kwargs
        Forwarded to ``integrator``.

    Returns
    -------
    LE : ndarray, shape (m,)
        Lyapunov exponents, NaN beyond the system dimension.
    LE_history : ndarray, shape (m, N)
        Running estimates after every window, only if ``options.history``.
    """
    ic = np.asarray(ic, dtype=float)
    nx = ic.shape[0]
    N, T, dt, eps = options.N, options.T, options.dt, options.eps

    LE, LE_history, m = _allocate_exponents(options.m, nx, N, options.history)
    logger.debug("Full-model Lyapunov run: nx=%d, m=%d, N=%d, T=%g, dt=%g", nx, m, N, T, dt)

    u_prev = _final_state(integrator, time_grid(options.tau0, options.tau, options.dtau), ic, kwargs)
    Q = _initial_directions(nx, m, options)

    tj = options.tau
    with _direction_pool(options.n_workers) as pool, _progress(options) as prog:
        for j in range(1, N + 1):
            t = time_grid(tj, tj + T, dt)
            u_j = _final_state(integrator, t, u_prev, kwargs)

            Q = _finite_difference_directions(integrator, t, u_prev, u_j, Q, eps, pool, kwargs)
            Q, R = _reorthonormalize(Q, m, options.qr_method)

            LE[:m] += np.log(np.diag(R))
            if LE_history is not None:
                LE_history[:m, j - 1] = LE[:m] / j / T

            tj += T
            u_prev = u_j
            prog.update()

    logger.debug("Full-model Lyapunov run finished at t=%g", tj)
    if LE_history is not None:
        return LE / N / T, LE_history
    return LE / N / T


def estimate_spectrum_jacobian(
    integrator: Callable,
    jacobian: Callable,
    ic: np.ndarray,
    options: LyapunovOptions,
    **kwargs,
) -> SpectrumResult:
    """
    Lyapunov spectrum from the linear tangent map.

    The perturbation directions are advanced by one ``options.stepper`` step
    of size ``dt`` with the Jacobian evaluated at the current reference state,
    then the reference state is integrated over the window ``T``. Exponents
    are normalized by ``dt``, so ``T`` should equal ``dt`` (or ``2 * dt``).

    Parameters
    ----------
    integrator : Callable
        ``integrator(t, x0, **kwargs)`` returning an array of shape (n, nt).
    jacobian : Callable
        ``jacobian(x, **kwargs)`` returning the (n, n) Jacobian at ``x``, dense
        or a ``scipy.sparse`` matrix.
    ic : ndarray, shape (n,)
        Initial condition.
    options : LyapunovOptions
        Algorithm options.
    **kwargs
        Forwarded to ``integrator`` and ``jacobian``.

    Returns
    -------
    LE : ndarray, shape (m,)
        Lyapunov exponents, NaN beyond the system dimension.
    LE_history : ndarray, shape (m, N)
        Running estimates after every window, only if ``options.history``.

    References
    ----------
    P. V. Kuptsov and U. Parlitz, "Theory and computation of covariant
    Lyapunov vectors", J. Nonlinear Sci. 22 (2012).
    """
    ic = np.asarray(ic, dtype=float)
    nx = ic.shape[0]
    N, T, dt = options.N, options.T, options.dt
    step = resolve_stepper(options.stepper)

    LE, LE_history, m = _allocate_exponents(options.m, nx, N, options.history)
    logger.debug("Jacobian Lyapunov run: nx=%d, m=%d, N=%d, T=%g, dt=%g", nx, m, N, T, dt)

    u_j = _final_state(integrator, time_grid(options.tau0, options.tau, options.dtau), ic, kwargs)
    Q = _initial_directions(nx, m, options)

    tj = options.tau
    with _progress(options) as prog:
        for j in range(1, N + 1):
            Q = step(jacobian(u_j, **kwargs), Q, dt)
            u_j = _final_state(integrator, time_grid(tj, tj + T, dt), u_j, kwargs)

            Q, R = _reorthonormalize(Q, m, options.qr_method)

            LE[:m] += np.log(np.diag(R))
            if LE_history is not None:
                LE_history[:m, j - 1] = LE[:m] / j / dt

            tj += T
            prog.update()

    logger.debug("Jacobian Lyapunov run finished at t=%g", tj)
    if LE_history is not None:
        return LE / N / dt, LE_history
    return LE / N / dt


__all__ = [
    "time_grid",
    "estimate_spectrum_fullmodel",
    "estimate_spectrum_jacobian",
]
