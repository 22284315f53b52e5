"""Benchmark the Lyapunov spectrum estimators on Lorenz-96.

For a list of state dimensions the script times the full-model estimator
with a serial and a threaded direction loop, and the Jacobian estimator.
Each variant receives a configurable number of warm-up runs before the
timed repetitions.
"""

from __future__ import annotations

import argparse
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np
from numba import njit

from lyaplib import LyapunovOptions, estimate_spectrum, kaplan_yorke_dimension


@dataclass
class BenchmarkConfig:
    dt: float = 0.01
    window: float = 0.05
    burn_in: float = 5.0
    windows: int = 100
    m: int = 8
    workers: int = 4
    repeats: int = 2
    warmup: int = 1
    forcing: float = 8.0
    dims: Sequence[int] = field(default_factory=lambda: (8, 16, 32, 64))
    perturbation: float = 0.01


@dataclass
class VariantSpec:
    name: str
    options: LyapunovOptions
    jacobian: Optional[Callable] = None


@dataclass
class VariantResult:
    name: str
    dim: int
    timings: np.ndarray
    spectrum: np.ndarray


@njit(cache=True)
def lorenz96(x: np.ndarray, forcing: float) -> np.ndarray:
    k = x.size
    dx = np.empty_like(x)
    for i in range(k):
        im2 = (i - 2) % k
        im1 = (i - 1) % k
        ip1 = (i + 1) % k
        dx[i] = (x[ip1] - x[im2]) * x[im1] - x[i] + forcing
    return dx


@njit(cache=True)
def lorenz96_jacobian(x: np.ndarray, forcing: float) -> np.ndarray:  # noqa: ARG001
    k = x.size
    jac = np.zeros((k, k))
    for i in range(k):
        im2 = (i - 2) % k
        im1 = (i - 1) % k
        ip1 = (i + 1) % k
        jac[i, im1] = x[ip1] - x[im2]
        jac[i, ip1] = x[im1]
        jac[i, im2] = -x[im1]
        jac[i, i] = -1.0
    return jac


@njit(cache=True)
def _rk4_trajectory(t: np.ndarray, x0: np.ndarray, forcing: float) -> np.ndarray:
    trajectory = np.empty((x0.size, t.size))
    x = x0.copy()
    trajectory[:, 0] = x
    for i in range(t.size - 1):
        dt = t[i + 1] - t[i]
        k1 = lorenz96(x, forcing)
        k2 = lorenz96(x + 0.5 * dt * k1, forcing)
        k3 = lorenz96(x + 0.5 * dt * k2, forcing)
        k4 = lorenz96(x + dt * k3, forcing)
        x = x + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)
        trajectory[:, i + 1] = x
    return trajectory


def lorenz96_integrator(t: np.ndarray, x0: np.ndarray, forcing: float = 8.0) -> np.ndarray:
    """RK4 on the grid ``t``; returns an (n, nt) trajectory."""
    return _rk4_trajectory(np.asarray(t, dtype=np.float64), np.asarray(x0, dtype=np.float64), forcing)


def _benchmark_variant(variant: VariantSpec, x0: np.ndarray, config: BenchmarkConfig) -> VariantResult:
    def _run() -> np.ndarray:
        return estimate_spectrum(
            lorenz96_integrator, x0, variant.options, jacobian=variant.jacobian, forcing=config.forcing
        )

    for _ in range(max(config.warmup, 0)):
        _run()

    timings: List[float] = []
    spectrum = None
    for _ in range(config.repeats):
        start = time.perf_counter()
        spectrum = _run()
        timings.append(time.perf_counter() - start)

    return VariantResult(variant.name, x0.size, np.array(timings, dtype=np.float64), spectrum)


def run_benchmark(config: BenchmarkConfig) -> None:
    dims = list(config.dims)
    if not dims:
        raise ValueError("No state dimensions provided for benchmarking.")

    print(
        f"Benchmark settings: dt={config.dt}, T={config.window}, N={config.windows}, "
        f"m={config.m}, workers={config.workers}, warmup={config.warmup}, "
        f"repeats={config.repeats}, forcing={config.forcing}"
    )

    for dim in dims:
        print("\n" + "=" * 20)
        print(f"Dimension: {dim}")

        x0 = np.full(dim, config.forcing, dtype=np.float64)
        x0[0] += config.perturbation
        base = LyapunovOptions(
            m=config.m,
            tau=config.burn_in,
            dt=config.dt,
            T=config.window,
            N=config.windows,
            seed=0,
        )
        variants = [
            VariantSpec("fullmodel-serial", base),
            VariantSpec("fullmodel-threads", base.replace(n_workers=config.workers)),
            VariantSpec(
                "jacobian-rk4",
                base.replace(T=config.dt, N=int(round(config.windows * config.window / config.dt)), use_jacobian=True),
                lorenz96_jacobian,
            ),
        ]

        results: List[VariantResult] = []
        for variant in variants:
            results.append(_benchmark_variant(variant, x0, config))

        for result in results:
            timings = result.timings
            std = timings.std(ddof=1) if timings.size > 1 else 0.0
            print(f"[{result.name}] mean ± std: {timings.mean():.4f} ± {std:.4f} s")
            print(
                f"[{result.name}] LE[:3] = {np.array2string(result.spectrum[:3], precision=3)}, "
                f"D_KY = {kaplan_yorke_dimension(result.spectrum, sorted=False):.3f}"
            )

        baseline = results[0]
        for result in results[1:]:
            ratio = result.timings.mean() / baseline.timings.mean()
            print(f"Speed ratio {result.name}/{baseline.name}: {ratio:.2f}x")


def parse_args() -> BenchmarkConfig:
    default_cfg = BenchmarkConfig()
    parser = argparse.ArgumentParser(
        description="Benchmark the Lyapunov spectrum estimators (serial, threaded, Jacobian)"
    )
    parser.add_argument("--dt", type=float, default=default_cfg.dt, help="Integration time step")
    parser.add_argument(
        "--window", type=float, default=default_cfg.window, help="Time between re-orthonormalizations"
    )
    parser.add_argument("--burn-in", type=float, default=default_cfg.burn_in, help="Burn-in duration")
    parser.add_argument("--windows", type=int, default=default_cfg.windows, help="Number of windows")
    parser.add_argument("--m", type=int, default=default_cfg.m, help="Number of exponents")
    parser.add_argument("--workers", type=int, default=default_cfg.workers, help="Threads for the direction loop")
    parser.add_argument("--repeats", type=int, default=default_cfg.repeats, help="Number of timed runs")
    parser.add_argument(
        "--warmup", type=int, default=default_cfg.warmup, help="Warm-up runs for JIT compilation"
    )
    parser.add_argument(
        "--forcing", type=float, default=default_cfg.forcing, help="Lorenz-96 forcing parameter F"
    )
    parser.add_argument(
        "--dims", type=int, nargs="+", default=None, help="State dimensions to benchmark"
    )

    args = parser.parse_args()
    dims = tuple(args.dims) if args.dims is not None else tuple(default_cfg.dims)

    return BenchmarkConfig(
        dt=args.dt,
        window=args.window,
        burn_in=args.burn_in,
        windows=args.windows,
        m=args.m,
        workers=args.workers,
        repeats=args.repeats,
        warmup=args.warmup,
        forcing=args.forcing,
        dims=dims,
    )


def main() -> None:
    config = parse_args()
    run_benchmark(config)


if __name__ == "__main__":
    main()
