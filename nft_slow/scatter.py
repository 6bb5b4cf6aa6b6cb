import numpy as np
import scipy.linalg
from numba import njit

from .discretization import get_discretization
from .errors import InvalidArgumentError, OutOfMemoryError


# |w|^2 below this value switches to series expansions
_SERIES_THRESHOLD = 1e-4


def get_pauli_coefficients(m):
    """
    Coefficients of the decomposition m = a0 * s0 + a1 * s1 + a2 * s2 + a3 * s3 in Pauli matrices

    Args:
        m: 2x2 matrix or array of them (..., 2, 2)

    Returns:
        a0, a1, a2, a3

    """
    # s0 = [[1, 0], [0, 1]]
    # s1 = [[0, 1], [1, 0]]
    # s2 = -1j * [[0, 1], [-1, 0]]
    # s3 = [[1, 0], [0, -1]]
    a0 = 0.5 * (m[..., 0, 0] + m[..., 1, 1])
    a1 = 0.5 * (m[..., 0, 1] + m[..., 1, 0])
    a2 = 0.5j * (m[..., 0, 1] - m[..., 1, 0])
    a3 = 0.5 * (m[..., 0, 0] - m[..., 1, 1])

    return a0, a1, a2, a3


def _get_trig_terms(x):
    """cos(w), sin(w) / w and (cos(w) - sin(w) / w) / w^2 for w = sqrt(x)"""
    w = np.sqrt(x)
    small = np.absolute(x) < _SERIES_THRESHOLD
    w_safe = np.where(small, 1.0, w)
    x_safe = np.where(small, 1.0, x)

    c = np.cos(w)
    s = np.where(small, 1.0 - x / 6.0 + x ** 2 / 120.0 - x ** 3 / 5040.0, np.sin(w) / w_safe)
    g = np.where(small, -1.0 / 3.0 + x / 30.0 - x ** 2 / 840.0 + x ** 3 / 45360.0, (c - s) / x_safe)

    return c, s, g


def expm_2x2(m, dm=None):
    """
    Calculate exponential function of 2x2 matrices

    Works on stacks of matrices. If dm is given, also returns the derivative of exp(m(lambda))
    for dm = dm / dlambda.

    Args:
        m: array of 2x2 matrices (..., 2, 2)

    Optional Args:
        dm: derivative of m, same shape

    Returns:
        expm, or (expm, dexpm) if dm is given

    """
    m = np.asarray(m, dtype=np.complex128)
    a0, a1, a2, a3 = (np.asarray(a) for a in get_pauli_coefficients(m))

    x = -a1 ** 2 - a2 ** 2 - a3 ** 2
    c, s, g = _get_trig_terms(x)
    e0 = np.exp(a0)[..., None, None]

    identity = np.eye(2, dtype=np.complex128)
    # traceless part of m
    n = m - a0[..., None, None] * identity
    expm = e0 * (c[..., None, None] * identity + s[..., None, None] * n)
    if dm is None:
        return expm

    dm = np.asarray(dm, dtype=np.complex128)
    da0, da1, da2, da3 = (np.asarray(a) for a in get_pauli_coefficients(dm))
    dx = -2.0 * (a1 * da1 + a2 * da2 + a3 * da3)
    dn = dm - da0[..., None, None] * identity
    dexpm = da0[..., None, None] * expm + \
        e0 * ((-0.5 * s * dx)[..., None, None] * identity +
              (0.5 * g * dx)[..., None, None] * n +
              s[..., None, None] * dn)

    return expm, dexpm


def expm_stack(m, dm=None):
    """
    Matrix exponential of a stack of square matrices, with optional derivative.

    Closed form for 2x2, scipy otherwise.
    """
    if m.shape[-1] == 2:
        return expm_2x2(m, dm)
    if dm is None:
        return scipy.linalg.expm(m)

    expm = np.empty_like(m)
    dexpm = np.empty_like(m)
    dm = np.broadcast_to(dm, m.shape)
    for k in range(m.shape[0]):
        expm[k], dexpm[k] = scipy.linalg.expm_frechet(m[k], dm[k])

    return expm, dexpm


def get_lambda_matrix(size):
    return np.diag(np.array([-1.0j] + [1.0j] * (size - 1)))


def get_potential_matrices(q, r):
    """
    Matrices Q(t) for every sample: q in the first row, r in the first column

    Args:
        q: signal, shape (n_components, n)
        r: co-field, same shape

    Returns:
        array (n, n_components + 1, n_components + 1)

    """
    n_components, n = q.shape
    p = np.zeros((n, n_components + 1, n_components + 1), dtype=np.complex128)
    p[:, 0, 1:] = q.T
    p[:, 1:, 0] = r.T

    return p


def _commutator(a, b):
    return np.matmul(a, b) - np.matmul(b, a)


def _multiply_groups(t_matrices, dt_matrices, scale):
    # product of consecutive factors, later factors on the left
    if scale == 1:
        return t_matrices, dt_matrices
    size = t_matrices.shape[-1]
    t_matrices = t_matrices.reshape((-1, scale, size, size))
    group = t_matrices[:, 0]
    if dt_matrices is not None:
        dt_matrices = dt_matrices.reshape((-1, scale, size, size))
        d_group = dt_matrices[:, 0]
    for j in range(1, scale):
        if dt_matrices is not None:
            d_group = np.matmul(t_matrices[:, j], d_group) + np.matmul(dt_matrices[:, j], group)
        group = np.matmul(t_matrices[:, j], group)

    if dt_matrices is None:
        return group, None
    return group, d_group


def get_transfer_matrices(q, r, eps_t, xi, descriptor, derivative=False):
    """
    Return transfer matrices of all time steps for one spectral parameter.

    One matrix per original sample (all nodes of a sample multiplied together).

    Args:
        q: effective signal, shape (n_components, n_sub * scale)
        r: effective co-field, same shape
        eps_t: time step
        xi: spectral parameter
        descriptor: DiscretizationDescriptor

    Optional Args:
        derivative: also return d / dxi of the transfer matrices, default = False

    Returns:
        t_matrices, dt_matrices (None if derivative is False)

    """
    size = q.shape[0] + 1
    lambda_matrix = get_lambda_matrix(size)
    scale = descriptor.scale

    if descriptor.integrator == 'exponential':
        weights = np.tile(descriptor.lambda_weights, q.shape[1] // scale)[:, None, None]
        m = eps_t * (weights * xi * lambda_matrix + get_potential_matrices(q, r))
        if derivative:
            t_matrices, dt_matrices = expm_stack(m, eps_t * weights * lambda_matrix)
        else:
            t_matrices, dt_matrices = expm_stack(m), None
        return _multiply_groups(t_matrices, dt_matrices, scale)

    q_matrix = xi * lambda_matrix + get_potential_matrices(q[:, 0::3], r[:, 0::3])
    q_1_matrix = get_potential_matrices(q[:, 1::3], r[:, 1::3])
    q_2_matrix = get_potential_matrices(q[:, 2::3], r[:, 2::3])

    if descriptor.integrator == 'magnus':
        m = eps_t * q_matrix + eps_t ** 3 / 24. * q_2_matrix - eps_t ** 3 / 12. * _commutator(q_matrix, q_1_matrix)
        if not derivative:
            return expm_stack(m), None
        dm = eps_t * lambda_matrix - eps_t ** 3 / 12. * _commutator(np.broadcast_to(lambda_matrix, q_1_matrix.shape),
                                                                     q_1_matrix)
        return expm_stack(m, dm)

    left = expm_stack(eps_t ** 2 / 12. * q_1_matrix + eps_t ** 3 / 48. * q_2_matrix)
    right = expm_stack(-eps_t ** 2 / 12. * q_1_matrix + eps_t ** 3 / 48. * q_2_matrix)
    if not derivative:
        return np.matmul(np.matmul(left, expm_stack(eps_t * q_matrix)), right), None
    central, d_central = expm_stack(eps_t * q_matrix, np.broadcast_to(eps_t * lambda_matrix, q_matrix.shape))

    return np.matmul(np.matmul(left, central), right), np.matmul(np.matmul(left, d_central), right)


@njit
def fold_transfer_matrices(t_matrices, dt_matrices, derivative):
    n_steps = t_matrices.shape[0]
    size = t_matrices.shape[1]
    s = np.zeros((size, size), dtype=np.complex128)
    ds = np.zeros((size, size), dtype=np.complex128)
    for i in range(size):
        s[i, i] = 1.0

    for k in range(n_steps):
        if derivative:
            ds = np.dot(t_matrices[k], ds) + np.dot(dt_matrices[k], s)
        s = np.dot(t_matrices[k], s)

    return s, ds


@njit
def propagate_jost_solutions(t_matrices):
    """
    Left Jost solution forward from [1, 0] and right Jost solution backward from [0, 1]

    Transfer matrices have unit determinant, so the inverse step uses the adjugate.
    """
    n = t_matrices.shape[0]
    phi = np.zeros((n + 1, 2), dtype=np.complex128)
    psi = np.zeros((n + 1, 2), dtype=np.complex128)
    phi[0, 0] = 1.0
    psi[n, 1] = 1.0

    for k in range(n):
        f = t_matrices[k]
        phi[k + 1, 0] = f[0, 0] * phi[k, 0] + f[0, 1] * phi[k, 1]
        phi[k + 1, 1] = f[1, 0] * phi[k, 0] + f[1, 1] * phi[k, 1]

        j = n - 1 - k
        b = t_matrices[j]
        psi[j, 0] = b[1, 1] * psi[j + 1, 0] - b[0, 1] * psi[j + 1, 1]
        psi[j, 1] = -b[1, 0] * psi[j + 1, 0] + b[0, 0] * psi[j + 1, 1]

    return phi, psi


def _prepare_signal(q, r, kappa):
    if q is None:
        raise InvalidArgumentError('signal is missing')
    q = np.atleast_2d(np.asarray(q, dtype=np.complex128))
    if q.ndim != 2 or q.shape[0] > 2 or q.shape[1] == 0:
        raise InvalidArgumentError('signal has to be of shape (D,) or (2, D)')
    if r is None:
        r = -kappa * np.conj(q)
    else:
        r = np.atleast_2d(np.asarray(r, dtype=np.complex128))
        if r.shape != q.shape:
            raise InvalidArgumentError('r has to have the same shape as q')

    return q, r


def _check_lambdas(lambdas):
    lambdas = np.atleast_1d(np.asarray(lambdas, dtype=np.complex128))
    if lambdas.ndim != 1 or len(lambdas) == 0:
        raise InvalidArgumentError('at least one spectral parameter is required')
    return lambdas


def get_scattering_matrix(q, r, eps_t, kappa, lambdas, discretization='bo', derivative=False):
    """
    Scattering matrix of the (effective) signal for an array of spectral parameters.

    Args:
        q: effective signal, shape (D_eff,) for NLSE or (2, D_eff) for the Manakov system
        r: effective co-field or None for r = -kappa * conj(q)
        eps_t: time step
        kappa: +1 for focusing, -1 for defocusing case
        lambdas: array of spectral parameters
        discretization: discretisation scheme of the effective signal, default = 'bo'

    Optional Args:
        derivative: append d / dlambda of all entries, default = False

    Returns:
        array (K, size^2) or (K, 2 * size^2) with the row-major entries of S(lambda)
        (and then of dS / dlambda), size = 2 for NLSE and 3 for Manakov

    """
    if not eps_t > 0:
        raise InvalidArgumentError('eps_t has to be positive')
    if abs(kappa) != 1:
        raise InvalidArgumentError('kappa has to be +1 or -1')
    lambdas = _check_lambdas(lambdas)
    descriptor = get_discretization(discretization)
    q, r = _prepare_signal(q, r, kappa)
    if q.shape[1] % descriptor.scale != 0:
        raise InvalidArgumentError('effective signal length has to be a multiple of ' + str(descriptor.scale))

    size = q.shape[0] + 1
    n_entries = size * size
    try:
        result = np.zeros((len(lambdas), 2 * n_entries if derivative else n_entries), dtype=np.complex128)
        for k, xi in enumerate(lambdas):
            t_matrices, dt_matrices = get_transfer_matrices(q, r, eps_t, xi, descriptor, derivative)
            t_matrices = np.ascontiguousarray(t_matrices)
            dt_matrices = t_matrices if dt_matrices is None else np.ascontiguousarray(dt_matrices)
            s, ds = fold_transfer_matrices(t_matrices, dt_matrices, derivative)
            result[k, :n_entries] = s.ravel()
            if derivative:
                result[k, n_entries:] = ds.ravel()
    except MemoryError as err:
        raise OutOfMemoryError(str(err)) from err

    return result


def get_norming_constant(phi, psi, xi, t_left, t_right, dt):
    """
    b(xi) from forward (phi) and backward (psi) Jost solutions.

    The solutions are compared at the point where the phase-normalised first component
    of phi is closest to 1/2.
    """
    t_k = t_left + dt * np.arange(len(phi))
    value = np.absolute(np.absolute(phi[:, 0] * np.exp(1.0j * xi * (t_k - t_left))) - 0.5)
    k_target = np.argmin(value)
    ratio = np.vdot(psi[k_target], phi[k_target]) / np.vdot(psi[k_target], psi[k_target])

    return ratio * np.exp(-1.0j * xi * (t_left + t_right))


def get_scattering_bound_states(q, r, t_span, lambdas, discretization='bo', skip_b=False):
    """
    Calculate a(xi), da / dxi and b(xi) in candidate bound states.

    Args:
        q: effective signal (one component)
        r: effective co-field or None for the focusing case
        t_span: [T0, T1], positions of the first and the last original sample
        lambdas: array of spectral parameters
        discretization: discretisation scheme, default = 'bo'

    Optional Args:
        skip_b: do not compute b, default = False

    Returns:
        a, ad, b (b is None if skip_b)

    """
    lambdas = _check_lambdas(lambdas)
    descriptor = get_discretization(discretization)
    q, r = _prepare_signal(q, r, 1)
    if q.shape[0] != 1:
        raise InvalidArgumentError('bound states are defined for one-component signals only')
    if t_span is None or not t_span[0] < t_span[1]:
        raise InvalidArgumentError('t_span has to satisfy T0 < T1')
    n_groups = q.shape[1] // descriptor.scale
    if n_groups < 2 or q.shape[1] % descriptor.scale != 0:
        raise InvalidArgumentError('effective signal does not match the discretization')

    dt = (t_span[1] - t_span[0]) / (n_groups - 1)
    t_left = t_span[0] - descriptor.boundary_coeff * dt
    t_right = t_span[1] + descriptor.boundary_coeff * dt
    length = t_right - t_left

    a = np.zeros(len(lambdas), dtype=np.complex128)
    ad = np.zeros(len(lambdas), dtype=np.complex128)
    b = None if skip_b else np.zeros(len(lambdas), dtype=np.complex128)
    for k, xi in enumerate(lambdas):
        t_matrices, dt_matrices = get_transfer_matrices(q, r, dt, xi, descriptor, derivative=True)
        t_matrices = np.ascontiguousarray(t_matrices)
        s, ds = fold_transfer_matrices(t_matrices, np.ascontiguousarray(dt_matrices), True)

        phase = np.exp(1.0j * xi * length)
        a[k] = s[0, 0] * phase
        ad[k] = (ds[0, 0] + 1.0j * length * s[0, 0]) * phase
        if not skip_b:
            phi, psi = propagate_jost_solutions(t_matrices)
            b[k] = get_norming_constant(phi, psi, xi, t_left, t_right, dt)

    return a, ad, b
