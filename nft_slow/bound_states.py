from enum import Enum

import numpy as np

from signal_sampling.signal_processing import get_energy

from .errors import DivideByZeroError, NftError, SubroutineError
from .options import DiscreteSpectrumType
from .scatter import get_scattering_bound_states


class BoundStateStatus(Enum):
    PENDING = 'pending'
    CONVERGED = 'converged'
    OUT_OF_REGION = 'out_of_region'
    MAX_ITER_REACHED = 'max_iter_reached'


def get_re_bound(eps_t):
    # 90% of the largest frequency resolved by the time step
    return 0.9 * np.pi / (2.0 * eps_t)


def get_im_bound(q, t_span):
    """
    Upper bound on the imaginary part of bound states of the signal.

    Args:
        q: signal values on a uniform grid
        t_span: [T0, T1]

    Returns:
        bound

    """
    return 1.5 * 0.25 * get_energy(q, t_span[1] - t_span[0])


def is_admissible(xi, re_bound, im_bound):
    return 0.0 <= xi.imag <= im_bound and abs(xi.real) <= re_bound


def refine_bound_states_newton(q, r, t_span, bound_states, discretization, n_iter, re_bound, im_bound):
    """
    Refine bound states by Newton's method for a(xi) = 0.

    Every admissible guess makes at least one step and stops when the Newton update is below
    100 machine epsilons or after n_iter steps. A guess outside of the region
    [-re_bound, re_bound] x [0, im_bound] is returned unchanged, a step leaving the region stops
    the candidate at its last admissible value.

    Args:
        q: effective signal
        r: effective co-field or None
        t_span: [T0, T1]
        bound_states: initial guesses
        discretization: discretisation scheme
        n_iter: maximal number of Newton steps
        re_bound: bound on the real part
        im_bound: bound on the imaginary part

    Returns:
        bound_states, statuses

    """
    tol = 100 * np.finfo(float).eps
    bound_states = np.array(bound_states, dtype=np.complex128).ravel()
    statuses = [BoundStateStatus.PENDING] * len(bound_states)

    for i in range(len(bound_states)):
        xi = bound_states[i]
        if not is_admissible(xi, re_bound, im_bound):
            statuses[i] = BoundStateStatus.OUT_OF_REGION
            continue

        for _ in range(n_iter):
            try:
                a, ad, _ = get_scattering_bound_states(q, r, t_span, [xi], discretization, skip_b=True)
            except NftError as err:
                raise SubroutineError(err) from err
            if ad[0] == 0:
                raise DivideByZeroError('da / dxi vanishes at ' + str(xi))

            error = a[0] / ad[0]
            if not is_admissible(xi - error, re_bound, im_bound):
                statuses[i] = BoundStateStatus.OUT_OF_REGION
                break
            xi = xi - error
            if abs(error) <= tol:
                statuses[i] = BoundStateStatus.CONVERGED
                break
        else:
            if n_iter > 0:
                statuses[i] = BoundStateStatus.MAX_ITER_REACHED

        bound_states[i] = xi

    return bound_states, statuses


def filter_bound_states(bound_states, bounding_box):
    """
    Keep bound states inside the box.

    Args:
        bound_states: array of bound states
        bounding_box: (re_min, re_max, im_min, im_max), borders included

    Returns:
        array of remaining bound states

    """
    bound_states = np.asarray(bound_states, dtype=np.complex128)
    re_min, re_max, im_min, im_max = bounding_box
    mask = (bound_states.real >= re_min) & (bound_states.real <= re_max) & \
           (bound_states.imag >= im_min) & (bound_states.imag <= im_max)

    return bound_states[mask]


def merge_bound_states(bound_states, tol=None):
    """
    Remove duplicates: a bound state is dropped if a later one lies closer than tol.

    Args:
        bound_states: array of bound states

    Optional Args:
        tol: distance for duplicates, default = sqrt(machine epsilon)

    Returns:
        array of remaining bound states

    """
    if tol is None:
        tol = np.sqrt(np.finfo(float).eps)
    bound_states = np.asarray(bound_states, dtype=np.complex128)

    keep = [i for i in range(len(bound_states))
            if not np.any(np.absolute(bound_states[i + 1:] - bound_states[i]) < tol)]

    return bound_states[keep]


def get_norming_constants_or_residues(q, r, t_span, bound_states, discretization,
                                      discspec_type=DiscreteSpectrumType.NORMING_CONSTANTS):
    """
    Calculate norming constants b(xi_k) and / or residues b(xi_k) / a'(xi_k).

    Args:
        q: effective signal
        r: effective co-field or None
        t_span: [T0, T1]
        bound_states: array of K bound states
        discretization: discretisation scheme

    Optional Args:
        discspec_type: what to calculate, default = norming constants

            - 'norming_constants' -- K norming constants
            - 'residues' -- K residues
            - 'both' -- K norming constants followed by K residues

    Returns:
        values, ad (array of a'(xi_k))

    """
    discspec_type = DiscreteSpectrumType(discspec_type)
    bound_states = np.asarray(bound_states, dtype=np.complex128)
    if len(bound_states) == 0:
        return np.zeros(0, dtype=np.complex128), np.zeros(0, dtype=np.complex128)

    _, ad, bd = get_scattering_bound_states(q, r, t_span, bound_states, discretization)
    if discspec_type == DiscreteSpectrumType.NORMING_CONSTANTS:
        return bd, ad

    if np.any(ad == 0):
        raise DivideByZeroError('da / dxi vanishes in a bound state')
    rd = bd / ad
    if discspec_type == DiscreteSpectrumType.RESIDUES:
        return rd, ad

    return np.concatenate((bd, rd)), ad
