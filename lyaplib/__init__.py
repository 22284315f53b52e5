"""lyaplib: Lyapunov spectrum estimation by repeated QR re-orthonormalization.

Public API mirrors the NumPy backend for convenience while keeping the
module split clean.
"""

from . import numpy as numpy_backend
from .numpy import (
    estimate_spectrum,
    estimate_spectrum_fullmodel,
    estimate_spectrum_jacobian,
    kaplan_yorke_dimension,
    ConfigurationError,
    LyapunovOptions,
    pos_diag_qr,
    resolve_stepper,
    register_stepper,
    PerturbationStepper,
)

numpy = numpy_backend

__all__ = [
    "estimate_spectrum",
    "estimate_spectrum_fullmodel",
    "estimate_spectrum_jacobian",
    "kaplan_yorke_dimension",
    "ConfigurationError",
    "LyapunovOptions",
    "pos_diag_qr",
    "resolve_stepper",
    "register_stepper",
    "PerturbationStepper",
    "numpy",
]

__version__ = "0.1.0"
