"""Explicit one-step schemes for the linear tangent map ``dQ/dt = J Q``.

Every scheme has the signature ``scheme(J, Q, dt) -> Q_next`` and treats
``J`` as constant over the step.
"""

import numpy as np
from typing import Callable, Dict, Union

PerturbationStepper = Callable[[np.ndarray, np.ndarray, float], np.ndarray]

_SQRT5 = np.sqrt(5.0)

# Ralston (1962) minimum truncation error fourth-order tableau
_RALSTON4_A21 = 0.4
_RALSTON4_A31 = (-2889.0 + 1428.0 * _SQRT5) / 1024.0
_RALSTON4_A32 = (3785.0 - 1620.0 * _SQRT5) / 1024.0
_RALSTON4_A41 = (-3365.0 + 2094.0 * _SQRT5) / 6040.0
_RALSTON4_A42 = (-975.0 - 3046.0 * _SQRT5) / 2552.0
_RALSTON4_A43 = (467040.0 + 203968.0 * _SQRT5) / 240845.0
_RALSTON4_B1 = (263.0 + 24.0 * _SQRT5) / 1812.0
_RALSTON4_B2 = (125.0 - 1000.0 * _SQRT5) / 3828.0
_RALSTON4_B3 = (3426304.0 + 1661952.0 * _SQRT5) / 5924787.0
_RALSTON4_B4 = (30.0 - 4.0 * _SQRT5) / 123.0


def euler(J: np.ndarray, Q: np.ndarray, dt: float) -> np.ndarray:
    """Forward Euler step."""
    return Q + dt * (J @ Q)


def rk2(J: np.ndarray, Q: np.ndarray, dt: float) -> np.ndarray:
    """Second-order Runge–Kutta step (Heun's method)."""
    K1 = J @ Q
    K2 = J @ (Q + dt * K1)
    return Q + 0.5 * dt * (K1 + K2)


def ssprk3(J: np.ndarray, Q: np.ndarray, dt: float) -> np.ndarray:
    """Third-order strong stability preserving Runge–Kutta (Shu–Osher form)."""
    U1 = Q + dt * (J @ Q)
    U2 = 0.75 * Q + 0.25 * (U1 + dt * (J @ U1))
    return Q / 3.0 + (2.0 / 3.0) * (U2 + dt * (J @ U2))


def rk4(J: np.ndarray, Q: np.ndarray, dt: float) -> np.ndarray:
    """
    Classical fourth-order Runge–Kutta step.

    Parameters
    ----------
    J : ndarray, shape (n, n)
        Linear operator, usually the Jacobian at the current state.
    Q : ndarray, shape (n, m)
        Perturbation state.
    dt : float
        Step size.

    Returns
    -------
    Q_next : ndarray, shape (n, m)
        Perturbation state at ``t + dt``.
    """
    K1 = J @ Q
    K2 = J @ (Q + 0.5 * dt * K1)
    K3 = J @ (Q + 0.5 * dt * K2)
    K4 = J @ (Q + dt * K3)
    return Q + (dt / 6.0) * (K1 + 2 * K2 + 2 * K3 + K4)


def ralston4(J: np.ndarray, Q: np.ndarray, dt: float) -> np.ndarray:
    """Ralston's fourth-order Runge–Kutta step."""
    K1 = J @ Q
    K2 = J @ (Q + dt * _RALSTON4_A21 * K1)
    K3 = J @ (Q + dt * (_RALSTON4_A31 * K1 + _RALSTON4_A32 * K2))
    K4 = J @ (Q + dt * (_RALSTON4_A41 * K1 + _RALSTON4_A42 * K2 + _RALSTON4_A43 * K3))
    return Q + dt * (
        _RALSTON4_B1 * K1 + _RALSTON4_B2 * K2 + _RALSTON4_B3 * K3 + _RALSTON4_B4 * K4
    )


_STEPPERS: Dict[str, PerturbationStepper] = {
    "euler": euler,
    "rk2": rk2,
    "heun": rk2,
    "ssprk3": ssprk3,
    "rk4": rk4,
    "ralston4": ralston4,
}


def register_stepper(name: str, stepper: PerturbationStepper) -> None:
    """Make ``stepper`` available to :func:`resolve_stepper` under ``name``."""
    if not callable(stepper):
        raise TypeError("stepper must be callable.")
    _STEPPERS[name.lower()] = stepper


def resolve_stepper(
    stepper: Union[str, PerturbationStepper, None] = "rk4",
) -> PerturbationStepper:
    if stepper is None:
        return rk4
    if callable(stepper):
        return stepper
    if not isinstance(stepper, str):
        raise TypeError("stepper must be a name, a callable or None.")
    try:
        return _STEPPERS[stepper.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(_STEPPERS))
        raise ValueError(
            f"Unknown stepper '{stepper}'. Available: {available}."
        ) from exc


__all__ = [
    "PerturbationStepper",
    "euler",
    "rk2",
    "ssprk3",
    "rk4",
    "ralston4",
    "register_stepper",
    "resolve_stepper",
]
