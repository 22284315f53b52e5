"""NumPy-backed implementations of lyaplib routines."""

from .api import estimate_spectrum
from .integrators import estimate_spectrum_fullmodel, estimate_spectrum_jacobian
from .dimension import kaplan_yorke_dimension
from .errors import ConfigurationError
from .options import LyapunovOptions
from .qr import pos_diag_qr, qr_factorize
from .steppers import (
    PerturbationStepper,
    euler,
    rk2,
    ssprk3,
    rk4,
    ralston4,
    resolve_stepper,
    register_stepper,
)

__all__ = [
    "estimate_spectrum",
    "estimate_spectrum_fullmodel",
    "estimate_spectrum_jacobian",
    "kaplan_yorke_dimension",
    "ConfigurationError",
    "LyapunovOptions",
    "pos_diag_qr",
    "qr_factorize",
    "PerturbationStepper",
    "euler",
    "rk2",
    "ssprk3",
    "rk4",
    "ralston4",
    "resolve_stepper",
    "register_stepper",
]
