import numpy as np

from .errors import DivideByZeroError, InvalidArgumentError
from .options import ContinuousSpectrumType


def get_phase_factors(t_span, eps_t, boundary_coeff):
    """
    Phase factors which move the scattering data from the boundaries of the time window to t = 0

    Args:
        t_span: [T0, T1]
        eps_t: time step
        boundary_coeff: part of the time step lying outside [T0, T1] at each side

    Returns:
        phase_rho, phase_a, phase_b

    """
    t_left = t_span[0] - eps_t * boundary_coeff
    t_right = t_span[1] + eps_t * boundary_coeff

    phase_rho = -2.0 * t_right
    phase_a = t_right - t_left
    phase_b = -t_right - t_left

    return phase_rho, phase_a, phase_b


def get_continuous_spectrum(scatter_coeffs, xi, t_span, eps_t, boundary_coeff,
                            contspec_type=ContinuousSpectrumType.REFLECTION_COEFFICIENT):
    """
    Turn raw scattering matrices into continuous spectrum.

    Args:
        scatter_coeffs: array (M, >= 4) with [S11, S12, S21, S22] in the first four columns
        xi: array of M real spectral parameters
        t_span: [T0, T1]
        eps_t: time step
        boundary_coeff: boundary coefficient of the discretisation

    Optional Args:
        contspec_type: what to return, default = reflection coefficient

            - 'reflection_coefficient' -- 'cont_ref' only
            - 'ab' -- 'cont_a' and 'cont_b'
            - 'both' -- all three

    Returns:
        dict with some of the keys 'cont_ref', 'cont_a', 'cont_b'

    """
    contspec_type = ContinuousSpectrumType(contspec_type)
    scatter_coeffs = np.asarray(scatter_coeffs)
    xi = np.asarray(xi)
    if scatter_coeffs.ndim != 2 or scatter_coeffs.shape[0] != len(xi) or scatter_coeffs.shape[1] < 4:
        raise InvalidArgumentError('scatter_coeffs have to be of shape (len(xi), 4)')

    s11 = scatter_coeffs[:, 0]
    s21 = scatter_coeffs[:, 2]
    phase_rho, phase_a, phase_b = get_phase_factors(t_span, eps_t, boundary_coeff)

    result = {}
    if contspec_type != ContinuousSpectrumType.AB:
        if np.any(s11 == 0):
            raise DivideByZeroError('a(xi) vanishes on the continuous spectrum grid')
        result['cont_ref'] = s21 * np.exp(1.0j * xi * phase_rho) / s11
    if contspec_type != ContinuousSpectrumType.REFLECTION_COEFFICIENT:
        result['cont_a'] = s11 * np.exp(1.0j * xi * phase_a)
        result['cont_b'] = s21 * np.exp(1.0j * xi * phase_b)

    return result
