import numpy as np
from typing import Callable, Optional

from .errors import ConfigurationError
from .integrators import (
    SpectrumResult,
    estimate_spectrum_fullmodel,
    estimate_spectrum_jacobian,
)
from .options import LyapunovOptions


def estimate_spectrum(
    integrator: Callable,
    ic: np.ndarray,
    options: Optional[LyapunovOptions] = None,
    jacobian: Optional[Callable] = None,
    **kwargs,
) -> SpectrumResult:
    """
    Compute Lyapunov exponents with either of two methods:

    - full model: integrate the model and ``m`` finite-difference perturbed copies;
    - Jacobian: propagate the directions with the linear tangent map.

    ``options.use_jacobian`` selects the method; ``jacobian`` is then required.
    Extra keyword arguments are forwarded to ``integrator`` (and ``jacobian``).
    Returns ``LE`` or ``(LE, LE_history)`` when ``options.history`` is set.
    """
    if options is None:
        options = LyapunovOptions()
    ic = _validate_spectrum_inputs(integrator, ic, options)

    if options.use_jacobian:
        if jacobian is None or not callable(jacobian):
            raise ConfigurationError(
                "A callable jacobian must be provided for the Jacobian method."
            )
        return estimate_spectrum_jacobian(integrator, jacobian, ic, options, **kwargs)
    return estimate_spectrum_fullmodel(integrator, ic, options, **kwargs)


def _validate_spectrum_inputs(
    integrator: Callable,
    ic: np.ndarray,
    options: LyapunovOptions,
) -> np.ndarray:
    if not callable(integrator):
        raise TypeError("integrator must be callable.")
    if not isinstance(options, LyapunovOptions):
        raise TypeError("options must be a LyapunovOptions instance.")

    ic = np.asarray(ic, dtype=float)
    if ic.ndim != 1:
        raise ValueError("ic must be one-dimensional.")
    if ic.size < 1:
        raise ValueError("ic must contain at least one state variable.")
    return ic


__all__ = [
    "estimate_spectrum",
]
