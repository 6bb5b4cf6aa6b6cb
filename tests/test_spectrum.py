"""Tests for the continuous spectrum assembled from scattering matrices."""
import numpy as np
import pytest

from nft_slow.errors import DivideByZeroError, InvalidArgumentError
from nft_slow.spectrum import get_continuous_spectrum, get_phase_factors


def test_phase_factors() -> None:
    phase_rho, phase_a, phase_b = get_phase_factors((-2.0, 3.0), 0.1, 0.5)
    assert phase_rho == pytest.approx(-6.1)
    assert phase_a == pytest.approx(5.1)
    assert phase_b == pytest.approx(-1.0)


def test_spectrum_types() -> None:
    xi = np.array([-1.0, 0.0, 2.0])
    coeffs = np.array([[1.0 + 1.0j, 0.0, 0.5, 1.0],
                       [2.0, 0.0, -1.0j, 0.5],
                       [0.5j, 0.0, 0.1, 1.0]])
    t_span, eps_t = (-1.0, 1.0), 0.2
    phase_rho, phase_a, phase_b = get_phase_factors(t_span, eps_t, 0.5)

    result = get_continuous_spectrum(coeffs, xi, t_span, eps_t, 0.5)
    assert set(result) == {'cont_ref'}
    np.testing.assert_allclose(result['cont_ref'], coeffs[:, 2] / coeffs[:, 0] * np.exp(1.0j * xi * phase_rho))

    result = get_continuous_spectrum(coeffs, xi, t_span, eps_t, 0.5, 'ab')
    assert set(result) == {'cont_a', 'cont_b'}
    np.testing.assert_allclose(result['cont_a'], coeffs[:, 0] * np.exp(1.0j * xi * phase_a))
    np.testing.assert_allclose(result['cont_b'], coeffs[:, 2] * np.exp(1.0j * xi * phase_b))

    result = get_continuous_spectrum(coeffs, xi, t_span, eps_t, 0.5, 'both')
    np.testing.assert_allclose(result['cont_ref'], result['cont_b'] / result['cont_a'])


def test_vanishing_a() -> None:
    coeffs = np.array([[0.0, 0.0, 1.0, 1.0]])
    with pytest.raises(DivideByZeroError):
        get_continuous_spectrum(coeffs, [0.0], (-1.0, 1.0), 0.1, 0.5)
    # a and b alone do not divide
    result = get_continuous_spectrum(coeffs, [0.0], (-1.0, 1.0), 0.1, 0.5, 'ab')
    assert result['cont_a'][0] == 0


def test_shape_mismatch() -> None:
    with pytest.raises(InvalidArgumentError):
        get_continuous_spectrum(np.ones((2, 4)), [0.0], (-1.0, 1.0), 0.1, 0.5)
