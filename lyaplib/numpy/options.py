import numbers
from dataclasses import dataclass, replace as _dc_replace
from typing import Optional, Union

import numpy as np

from .errors import ConfigurationError
from .qr import check_qr_method
from .steppers import PerturbationStepper, resolve_stepper

_INITIALIZATIONS = ("random", "unit")


@dataclass(frozen=True)
class LyapunovOptions:
    """
    Options for the Lyapunov spectrum estimators.

    Attributes
    ----------
    m : int
        Number of leading exponents to compute.
    tau0 : float
        Start time of the burn-in.
    tau : float
        End time of the burn-in; measurement starts here.
    dt : float
        Integrator step during measurement.
    dtau : float, optional
        Integrator step during the burn-in. Defaults to ``dt``.
    T : float, optional
        Time between re-orthonormalizations. Defaults to ``dt``; must be >= ``dt``.
    N : int
        Number of re-orthonormalization windows.
    eps : float
        Finite-difference perturbation magnitude (full-model method only).
    verbose : bool
        Show a progress bar, one tick per window.
    history : bool
        Also return the running estimate after every window.
    stepper : str or callable
        Scheme ``stepper(J, Q, dt)`` for the tangent map (Jacobian method only).
    use_jacobian : bool
        Propagate perturbations with the Jacobian instead of finite differences.
    initialization : {"random", "unit"}
        How the initial perturbation directions are chosen.
    seed : int or numpy.random.Generator, optional
        Source of randomness for ``initialization="random"``.
    qr_method : {"householder", "gs"}
        QR back-end used for re-orthonormalization.
    n_workers : int, optional
        Threads used for the per-direction loop of the full-model method.

    Notes
    -----
    With the Jacobian method the tangent map is advanced by a single ``dt``
    step per window, so ``T`` should be ``dt`` or ``2 * dt``.
    """

    m: int = 1
    tau0: float = 0.0
    tau: float = 1000.0
    dt: float = 1e-2
    dtau: Optional[float] = None
    T: Optional[float] = None
    N: int = 1000
    eps: float = 1e-6
    verbose: bool = False
    history: bool = False
    stepper: Union[str, PerturbationStepper] = "rk4"
    use_jacobian: bool = False
    initialization: str = "random"
    seed: Union[int, np.random.Generator, None] = None
    qr_method: str = "householder"
    n_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.dtau is None:
            object.__setattr__(self, "dtau", self.dt)
        if self.T is None:
            object.__setattr__(self, "T", self.dt)

        _require_count("m", self.m)
        _require_count("N", self.N)
        for name in ("dt", "dtau", "T", "eps"):
            value = getattr(self, name)
            if not isinstance(value, numbers.Real) or not value > 0:
                raise ConfigurationError(f"{name} must be a positive number, got {value!r}.")
        if self.tau < self.tau0:
            raise ConfigurationError("tau must be greater than or equal to tau0.")

        if self.dt > self.T:
            raise ConfigurationError(
                "The integration timestep must be smaller than or equal to the "
                "reorthogonalization time step (dt <= T)."
            )
        if self.initialization not in _INITIALIZATIONS:
            raise ConfigurationError(
                f"Initialization method must be either 'random' or 'unit', got {self.initialization!r}."
            )

        try:
            resolve_stepper(self.stepper)
            check_qr_method(self.qr_method)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(str(exc)) from exc

        if self.n_workers is not None:
            _require_count("n_workers", self.n_workers)

    def replace(self, **changes) -> "LyapunovOptions":
        """Return a validated copy with ``changes`` applied."""
        return _dc_replace(self, **changes)


def _require_count(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}.")
    if value < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {value}.")


__all__ = [
    "LyapunovOptions",
]
