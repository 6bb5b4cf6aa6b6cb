from dataclasses import dataclass

import numpy as np

from nft_slow.discretization import get_discretization
from nft_slow.errors import InvalidArgumentError
from signal_sampling.signal_processing import shift_signal


@dataclass(frozen=True)
class EffectiveSignal:
    """
    Signal prepared for a discretisation scheme.

    q and r hold ``n_sub * scale`` samples, ``n_skip`` is the decimation stride and
    ``first_last_index`` the original indices of the first and the last retained sample.
    """

    q: np.ndarray
    r: np.ndarray
    n_sub: int
    n_skip: int
    first_last_index: tuple


def round_half_up(x):
    return int(np.floor(x + 0.5))


def get_subsampling(n_points, n_sub):
    """
    Return the achievable number of subsamples and the stride for them.

    Args:
        n_points: number of original samples
        n_sub: desired number of samples, clamped to [2, n_points]

    Returns:
        n_sub, n_skip

    """
    n_sub = min(max(n_sub, 2), n_points)
    n_skip = round_half_up(n_points / n_sub)
    n_sub = round_half_up(n_points / n_skip)

    return n_sub, n_skip


def get_derivatives(values, dt):
    """
    First and second derivatives by finite differences along the last axis.

    Centered differences inside, one-sided stencils at both ends.

    Args:
        values: samples, at least 3 along the last axis
        dt: time step

    Returns:
        first, second

    """
    first = np.empty_like(values)
    second = np.empty_like(values)

    first[..., 1:-1] = (values[..., 2:] - values[..., :-2]) / (2.0 * dt)
    second[..., 1:-1] = (values[..., 2:] - 2.0 * values[..., 1:-1] + values[..., :-2]) / dt ** 2

    first[..., 0] = (values[..., 1] - values[..., 0]) / dt
    first[..., -1] = (values[..., -1] - values[..., -2]) / dt
    second[..., 0] = (values[..., 2] - 2.0 * values[..., 1] + values[..., 0]) / dt ** 2
    second[..., -1] = (values[..., -1] - 2.0 * values[..., -2] + values[..., -3]) / dt ** 2

    return first, second


def interleave(nodes):
    # (n_nodes, ..., n) -> (..., n * n_nodes), nodes of one sample next to each other
    nodes = np.moveaxis(np.asarray(nodes), 0, -1)
    return nodes.reshape(nodes.shape[:-2] + (-1,))


def get_effective_signal(q, eps_t, kappa, n_sub, discretization='bo'):
    """
    Subsample the signal and build the effective samples used by a discretisation scheme.

    Args:
        q: signal samples, shape (D,) or (n_components, D)
        eps_t: time step of q
        kappa: +1 for focusing, -1 for defocusing case
        n_sub: desired number of samples after subsampling
        discretization: discretisation scheme

            - 'bo' -- every n_skip-th sample
            - 'cf4_2', 'cf4_3', 'cf5_3', 'cf6_4' -- combinations of band-limited shifted copies
            - 'es4', 'tes4' -- value, first and second derivative for every sample

    Returns:
        EffectiveSignal

    """
    if q is None:
        raise InvalidArgumentError('signal is missing')
    q = np.asarray(q, dtype=np.complex128)
    if q.ndim not in (1, 2) or q.shape[-1] < 2:
        raise InvalidArgumentError('signal has to contain at least two samples')
    if not eps_t > 0:
        raise InvalidArgumentError('eps_t has to be positive')
    if abs(kappa) != 1:
        raise InvalidArgumentError('kappa has to be +1 or -1')
    descriptor = get_discretization(discretization)

    n_points = q.shape[-1]
    n_sub, n_skip = get_subsampling(n_points, n_sub)
    index = np.arange(n_sub) * n_skip
    samples = q[..., index]

    if descriptor.resampling == 'direct':
        q_eff = samples
        r_eff = -kappa * np.conj(q_eff)

    elif descriptor.resampling == 'bandlimited':
        shift = descriptor.node_shift * eps_t * n_skip
        copies = np.stack((shift_signal(q, eps_t, -shift)[..., index],
                           samples,
                           shift_signal(q, eps_t, shift)[..., index]))
        coefficients = descriptor.coefficient_matrix
        q_eff = interleave(np.tensordot(coefficients, copies, axes=(1, 0)))
        r_eff = interleave(np.tensordot(coefficients, -kappa * np.conj(copies), axes=(1, 0)))

    else:
        if n_sub < 3:
            raise InvalidArgumentError('derivative based schemes need at least three samples')
        first, second = get_derivatives(samples, eps_t * n_skip)
        q_eff = interleave((samples, first, second))
        r_eff = -kappa * np.conj(q_eff)

    return EffectiveSignal(q=q_eff, r=r_eff, n_sub=n_sub, n_skip=n_skip,
                           first_last_index=(0, (n_sub - 1) * n_skip))
