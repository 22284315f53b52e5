import numpy as np
import pytest

from lyaplib.numpy import (
    ConfigurationError,
    LyapunovOptions,
    estimate_spectrum,
    estimate_spectrum_fullmodel,
    estimate_spectrum_jacobian,
)


def _rk4_integrator(f):
    def integrator(t, x0, **kwargs):
        x = np.empty((x0.size, t.size), dtype=float)
        x[:, 0] = x0
        for k in range(1, t.size):
            h = t[k] - t[k - 1]
            k1 = f(x[:, k - 1], **kwargs)
            k2 = f(x[:, k - 1] + 0.5 * h * k1, **kwargs)
            k3 = f(x[:, k - 1] + 0.5 * h * k2, **kwargs)
            k4 = f(x[:, k - 1] + h * k3, **kwargs)
            x[:, k] = x[:, k - 1] + (h / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)
        return x

    return integrator


def test_fullmodel_scalar_growth_rate():
    a = 0.4
    integrator = _rk4_integrator(lambda x, rate: rate * x)
    options = LyapunovOptions(tau=1.0, dt=0.01, T=0.1, N=200, eps=1e-6, initialization="unit")

    LE = estimate_spectrum(integrator, np.array([1e-3]), options, rate=a)
    assert LE.shape == (1,)
    assert LE[0] == pytest.approx(a, abs=1e-5)


def test_fullmodel_scalar_decay_rate():
    integrator = _rk4_integrator(lambda x, rate: rate * x)
    options = LyapunovOptions(tau=1.0, dt=0.01, T=0.5, N=100, initialization="random", seed=2)

    LE = estimate_spectrum(integrator, np.array([1.0]), options, rate=-0.5)
    assert LE[0] == pytest.approx(-0.5, abs=1e-5)


def test_fullmodel_unit_directions_diagonal_system(linear_system):
    eigs = [0.3, -0.2, 0.0]
    integrator, _ = linear_system(eigs)
    options = LyapunovOptions(m=3, tau=1.0, dt=0.1, T=0.5, N=100, initialization="unit")

    LE = estimate_spectrum_fullmodel(integrator, np.zeros(3), options)
    assert np.allclose(LE, eigs, atol=1e-6)


def test_fullmodel_random_directions_sorted(linear_system):
    eigs = [0.3, -0.2, 0.0]
    integrator, _ = linear_system(eigs)
    options = LyapunovOptions(m=3, tau=1.0, dt=0.1, T=1.0, N=1000, seed=0)

    LE = estimate_spectrum(integrator, np.zeros(3), options)
    expected = np.sort(np.array(eigs))[::-1]
    assert np.allclose(LE, expected, atol=2e-2)


def test_fullmodel_leading_subset(linear_system):
    eigs = [0.1, 0.5, -0.3, -1.0]
    integrator, _ = linear_system(eigs)
    options = LyapunovOptions(m=2, tau=1.0, dt=0.1, T=1.0, N=1000, seed=4)

    LE = estimate_spectrum(integrator, np.zeros(4), options)
    assert np.allclose(LE, [0.5, 0.1], atol=2e-2)


def test_fullmodel_history_last_column_matches(linear_system):
    integrator, _ = linear_system([0.2, -0.1])
    options = LyapunovOptions(m=2, tau=0.5, dt=0.1, T=0.2, N=25, history=True, seed=1)

    LE, LE_history = estimate_spectrum(integrator, np.zeros(2), options)
    assert LE.shape == (2,)
    assert LE_history.shape == (2, 25)
    np.testing.assert_array_equal(LE_history[:, -1], LE)


def test_fullmodel_clamps_m_to_state_dimension(linear_system):
    integrator, _ = linear_system([0.2, -0.1])
    options = LyapunovOptions(m=4, tau=0.5, dt=0.1, T=0.5, N=20, history=True, initialization="unit")

    with pytest.warns(RuntimeWarning, match="dimension of the system"):
        LE, LE_history = estimate_spectrum(integrator, np.zeros(2), options)

    assert LE.shape == (4,)
    assert np.all(np.isfinite(LE[:2]))
    assert np.all(np.isnan(LE[2:]))
    assert np.all(np.isnan(LE_history[2:]))
    np.testing.assert_array_equal(LE_history[:, -1], LE)


def test_fullmodel_threaded_matches_serial(linear_system):
    integrator, _ = linear_system([0.3, 0.1, -0.2, -0.6])
    options = LyapunovOptions(m=3, tau=0.5, dt=0.1, T=0.5, N=40, seed=7)

    serial = estimate_spectrum(integrator, np.zeros(4), options)
    threaded = estimate_spectrum(integrator, np.zeros(4), options.replace(n_workers=3))
    np.testing.assert_array_equal(serial, threaded)


def test_fullmodel_seed_is_reproducible(linear_system):
    integrator, _ = linear_system([0.3, -0.2])
    options = LyapunovOptions(m=2, tau=0.5, dt=0.1, T=0.5, N=10, seed=11)

    first = estimate_spectrum(integrator, np.zeros(2), options)
    second = estimate_spectrum(integrator, np.zeros(2), options)
    np.testing.assert_array_equal(first, second)


def test_fullmodel_gs_qr_matches_householder(linear_system):
    integrator, _ = linear_system([0.3, 0.0, -0.2])
    options = LyapunovOptions(m=3, tau=0.5, dt=0.1, T=0.5, N=50, seed=5)

    LE_h = estimate_spectrum(integrator, np.zeros(3), options)
    LE_g = estimate_spectrum(integrator, np.zeros(3), options.replace(qr_method="gs"))
    assert np.allclose(LE_h, LE_g, atol=1e-8)


def test_jacobian_unit_directions_rk4(linear_system):
    eigs = [0.3, -0.2, 0.0]
    integrator, jacobian = linear_system(eigs)
    options = LyapunovOptions(
        m=3, tau=1.0, dt=0.05, N=2000, use_jacobian=True, initialization="unit"
    )

    LE = estimate_spectrum(integrator, np.zeros(3), options, jacobian=jacobian)
    assert np.allclose(LE, eigs, atol=1e-5)


def test_jacobian_euler_growth_per_step(linear_system):
    eigs = np.array([0.3, -0.2])
    integrator, jacobian = linear_system(eigs)
    dt = 0.05
    options = LyapunovOptions(
        m=2, tau=0.5, dt=dt, N=100, use_jacobian=True, initialization="unit", stepper="euler"
    )

    LE = estimate_spectrum(integrator, np.zeros(2), options, jacobian=jacobian)
    assert np.allclose(LE, np.log1p(eigs * dt) / dt, atol=1e-10)


def test_jacobian_custom_exact_stepper(linear_system):
    import scipy.linalg

    def exact(J, Q, dt):
        return scipy.linalg.expm(J * dt) @ Q

    eigs = [0.4, -0.1]
    integrator, jacobian = linear_system(eigs)
    options = LyapunovOptions(
        m=2, tau=0.5, dt=0.1, N=50, use_jacobian=True, initialization="unit", stepper=exact
    )

    LE = estimate_spectrum_jacobian(integrator, jacobian, np.zeros(2), options)
    assert np.allclose(LE, eigs, atol=1e-10)


def test_jacobian_random_directions_history(linear_system):
    eigs = [0.3, -0.2, 0.0]
    integrator, jacobian = linear_system(eigs)
    options = LyapunovOptions(
        m=3, tau=1.0, dt=0.05, N=20000, use_jacobian=True, history=True, seed=0
    )

    LE, LE_history = estimate_spectrum(integrator, np.zeros(3), options, jacobian=jacobian)
    expected = np.sort(np.array(eigs))[::-1]
    assert np.allclose(LE, expected, atol=2e-2)
    assert LE_history.shape == (3, 20000)
    np.testing.assert_array_equal(LE_history[:, -1], LE)


def test_jacobian_clamps_m(linear_system):
    integrator, jacobian = linear_system([0.2])
    options = LyapunovOptions(m=3, tau=0.5, dt=0.1, N=10, use_jacobian=True)

    with pytest.warns(RuntimeWarning):
        LE = estimate_spectrum(integrator, np.zeros(1), options, jacobian=jacobian)
    assert LE.shape == (3,)
    assert np.isfinite(LE[0])
    assert np.all(np.isnan(LE[1:]))


def test_jacobian_method_requires_jacobian(linear_system):
    integrator, _ = linear_system([0.2])
    options = LyapunovOptions(tau=0.5, dt=0.1, N=10, use_jacobian=True)

    with pytest.raises(ConfigurationError, match="jacobian"):
        estimate_spectrum(integrator, np.zeros(1), options)
    with pytest.raises(ConfigurationError):
        estimate_spectrum(integrator, np.zeros(1), options, jacobian=np.eye(1))


def test_dispatch_input_validation(linear_system):
    integrator, _ = linear_system([0.2, 0.1])
    options = LyapunovOptions(tau=0.5, dt=0.1, N=5)

    with pytest.raises(TypeError, match="integrator"):
        estimate_spectrum("not callable", np.zeros(2), options)
    with pytest.raises(ValueError, match="one-dimensional"):
        estimate_spectrum(integrator, np.zeros((2, 2)), options)
    with pytest.raises(TypeError, match="LyapunovOptions"):
        estimate_spectrum(integrator, np.zeros(2), {"m": 1})


def test_integrator_output_shape_is_checked():
    def bad_integrator(t, x0):
        return np.zeros((t.size, x0.size + 1))

    options = LyapunovOptions(tau=0.5, dt=0.1, N=5)
    with pytest.raises(ValueError, match="integrator must return"):
        estimate_spectrum(bad_integrator, np.zeros(2), options)


def test_verbose_progress_runs(linear_system, capsys):
    integrator, _ = linear_system([0.2])
    options = LyapunovOptions(tau=0.5, dt=0.1, N=5, verbose=True, initialization="unit")

    LE = estimate_spectrum(integrator, np.zeros(1), options)
    assert LE[0] == pytest.approx(0.2, abs=1e-8)
    assert "Computing Lyapunov exponents" in capsys.readouterr().err


def test_jacobian_sparse_operator():
    import scipy.sparse

    eigs = np.array([0.25, -0.4, 0.05])

    def integrator(t, x0):
        return x0[:, None] * np.exp(np.outer(eigs, t - t[0]))

    def jacobian(x):  # noqa: ARG001
        return scipy.sparse.diags(eigs).tocsr()

    options = LyapunovOptions(
        m=3, tau=0.5, dt=0.05, N=200, use_jacobian=True, initialization="unit"
    )
    LE = estimate_spectrum(integrator, np.zeros(3), options, jacobian=jacobian)
    assert np.allclose(LE, eigs, atol=1e-6)
