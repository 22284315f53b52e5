"""Pytest configuration to ensure local imports work without install.

Adds the repository root to `sys.path` so `import lyaplib` succeeds when
running tests directly (e.g., from the `tests/` directory) without
`pip install -e .`.
"""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


def _make_linear_system(eigs):
    """Exact flow and Jacobian of dx/dt = diag(eigs) x."""
    a = np.array(eigs, dtype=float)

    def integrator(t, x0, **kwargs):  # noqa: ARG001
        return x0[:, None] * np.exp(np.outer(a, t - t[0]))

    def jacobian(x, **kwargs):  # noqa: ARG001
        return np.diag(a)

    return integrator, jacobian


@pytest.fixture
def linear_system():
    return _make_linear_system
