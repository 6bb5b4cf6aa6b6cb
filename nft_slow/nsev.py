import warnings
from dataclasses import replace
from datetime import datetime

import numpy as np

import signal_sampling.resampling as rs

from . import bound_states as bs
from .discretization import get_discretization
from .errors import InvalidArgumentError, OutOfMemoryError
from .options import (BoundStateFiltering, BoundStateLocalization, ContinuousSpectrumType,
                      DiscreteSpectrumType, NsevSlowOptions, get_default_options)
from .scatter import get_scattering_matrix
from .spectrum import get_continuous_spectrum


def print_calc_time(start_time, type_of_calc=''):
    end_time = datetime.now()
    total_time = end_time - start_time
    print('Time to calculate ' + type_of_calc, total_time.total_seconds() * 1000, 'ms')


def get_xi_grid(xi1, xi2, m):
    # xi[i] = xi1 + i * (xi2 - xi1) / (m - 1)
    return np.linspace(xi1, xi2, m)


def nsev_slow(q, t, xi1=None, xi2=None, m=0, bound_states=None, kappa=1, options=None):
    """
    Slow nonlinear Fourier transform for the NLSE with vanishing boundary conditions.

    Args:
        q: signal samples, at least two
        t: time grid of q, only t[0] and t[-1] are used

    Optional Args:
        xi1: left border of the continuous spectrum grid
        xi2: right border of the continuous spectrum grid
        m: number of points of the continuous spectrum grid, default = 0 (no continuous spectrum)
        bound_states: initial guesses for bound states, default = None (no discrete spectrum)
        kappa: +1 for focusing, -1 for defocusing case, default = 1
        options: NsevSlowOptions, default = get_default_options()

    Returns:
        dict with keys

        - 'return_value' -- 0
        - 'cont_ref' -- reflection coefficient or None
        - 'cont_a' -- a(xi) or None
        - 'cont_b' -- b(xi) or None
        - 'bound_states' -- array of bound states
        - 'disc_norm' -- norming constants or None
        - 'disc_res' -- residues or None
        - 'disc_aprime' -- da / dxi in bound states

    """
    if options is None:
        options = get_default_options()
    if not isinstance(options, NsevSlowOptions):
        raise InvalidArgumentError('options have to be NsevSlowOptions')
    if q is None or np.ndim(q) != 1 or len(q) < 2:
        raise InvalidArgumentError('signal has to contain at least two samples')
    if t is None or len(t) < 2 or not t[0] < t[-1]:
        raise InvalidArgumentError('time grid has to satisfy t[0] < t[-1]')
    if m < 0:
        raise InvalidArgumentError('m has to be non-negative')
    if m > 0 and (xi1 is None or xi2 is None or not xi1 < xi2):
        raise InvalidArgumentError('continuous spectrum grid has to satisfy xi1 < xi2')
    if abs(kappa) != 1:
        raise InvalidArgumentError('kappa has to be +1 or -1')
    if bound_states is not None:
        bound_states = np.array(bound_states, dtype=np.complex128).ravel()

    n_t = len(q)
    t_span = (float(t[0]), float(t[-1]))
    eps_t = (t_span[1] - t_span[0]) / (n_t - 1)
    xi = get_xi_grid(xi1, xi2, m) if m > 0 else None
    descriptor = get_discretization(options.discretization)
    if options.richardson_extrapolation and descriptor.resampling == 'derivative':
        if rs.get_subsampling(n_t, int(np.ceil(n_t / 2)))[0] < 3:
            raise InvalidArgumentError('Richardson extrapolation with ' + descriptor.name.value +
                                       ' needs at least three samples on the half grid')

    run_options = options
    if options.richardson_extrapolation and options.discspec_type == DiscreteSpectrumType.RESIDUES:
        # a'(xi) is extrapolated and the residue rebuilt from it
        run_options = replace(options, discspec_type=DiscreteSpectrumType.BOTH)

    try:
        start_time = datetime.now()
        effective = rs.get_effective_signal(q, eps_t, kappa, n_t, descriptor)
        if options.print_sys_message:
            print_calc_time(start_time, 'effective signal')

        result = _nsev_slow_base(effective, t_span, xi, bound_states, kappa, run_options, descriptor)

        if options.richardson_extrapolation:
            start_time = datetime.now()
            _apply_richardson_extrapolation(result, q, t_span, eps_t, xi, kappa, run_options, descriptor)
            if options.print_sys_message:
                print_calc_time(start_time, 'Richardson extrapolation')
    except MemoryError as err:
        raise OutOfMemoryError(str(err)) from err

    if options.discspec_type == DiscreteSpectrumType.RESIDUES:
        result['disc_norm'] = None
    elif options.discspec_type == DiscreteSpectrumType.NORMING_CONSTANTS:
        result['disc_res'] = None

    return result


def _nsev_slow_base(effective, t_span, xi, bound_states, kappa, options, descriptor):
    """Spectrum of a prepared effective signal, no extrapolation."""
    eps_t = (t_span[1] - t_span[0]) / (effective.n_sub - 1)
    result = {'return_value': 0,
              'cont_ref': None,
              'cont_a': None,
              'cont_b': None,
              'bound_states': np.zeros(0, dtype=np.complex128),
              'disc_norm': None,
              'disc_res': None,
              'disc_aprime': None}

    if xi is not None:
        start_time = datetime.now()
        scatter_coeffs = get_scattering_matrix(effective.q, effective.r, eps_t, kappa, xi, descriptor)
        result.update(get_continuous_spectrum(scatter_coeffs, xi, t_span, eps_t, descriptor.boundary_coeff,
                                              options.contspec_type))
        if options.print_sys_message:
            print_calc_time(start_time, 'continuous spectrum')

    if bound_states is None or kappa != 1:
        return result

    start_time = datetime.now()
    re_bound = bs.get_re_bound(eps_t)
    im_bound = bs.get_im_bound(descriptor.get_signal_values(effective.q), t_span)

    if options.bound_state_localization != BoundStateLocalization.NEWTON:
        raise InvalidArgumentError('unsupported bound state localization')
    bound_states, statuses = bs.refine_bound_states_newton(effective.q, effective.r, t_span, bound_states,
                                                           descriptor, options.n_iter, re_bound, im_bound)
    if options.print_sys_message and bs.BoundStateStatus.MAX_ITER_REACHED in statuses:
        warnings.warn('Newton iterations for some bound states did not converge')

    if options.bound_state_filtering != BoundStateFiltering.NONE:
        admissible = [status != bs.BoundStateStatus.OUT_OF_REGION for status in statuses]
        bound_states = bs.filter_bound_states(bound_states[admissible], (-np.inf, np.inf, 0.0, np.inf))
        if options.bound_state_filtering == BoundStateFiltering.FULL:
            bound_states = bs.filter_bound_states(bound_states, (-re_bound, re_bound, 0.0, im_bound))
    bound_states = bs.merge_bound_states(bound_states)

    values, ad = bs.get_norming_constants_or_residues(effective.q, effective.r, t_span, bound_states,
                                                      descriptor, options.discspec_type)
    n_bound = len(bound_states)
    result['bound_states'] = bound_states
    result['disc_aprime'] = ad
    if options.discspec_type == DiscreteSpectrumType.NORMING_CONSTANTS:
        result['disc_norm'] = values
    elif options.discspec_type == DiscreteSpectrumType.RESIDUES:
        result['disc_res'] = values
    else:
        result['disc_norm'] = values[:n_bound]
        result['disc_res'] = values[n_bound:]

    if options.print_sys_message:
        print('Number of discrete eigenvalues:', n_bound)
        print_calc_time(start_time, 'discrete spectrum')

    return result


def _extrapolate(value, value_sub, scale):
    return (scale * value - value_sub) / (scale - 1.0)


def match_bound_states(bound_states, bound_states_sub, threshold):
    """
    For every bound state the index of the closest (relative distance) sub-run bound state.

    Only distances below threshold count, -1 if there is none. Several bound states may
    get the same match.
    """
    index = np.full(len(bound_states), -1, dtype=int)
    for i, xi in enumerate(bound_states):
        best = threshold
        for j, xi_sub in enumerate(bound_states_sub):
            distance = abs(xi - xi_sub) / abs(xi)
            if distance < best:
                best = distance
                index[i] = j

    return index


def _apply_richardson_extrapolation(result, q, t_span, eps_t, xi, kappa, options, descriptor):
    """Second run at half resolution and extrapolation of the spectrum in result, in place."""
    n_t = len(q)
    effective_sub = rs.get_effective_signal(q, eps_t, kappa, int(np.ceil(n_t / 2)), descriptor)
    if effective_sub.n_sub == n_t:
        # no coarser grid
        if options.print_sys_message:
            print('Richardson extrapolation skipped, the signal is too short')
        return
    first, last = effective_sub.first_last_index
    t_span_sub = (t_span[0] + first * eps_t, t_span[0] + last * eps_t)
    eps_t_sub = (t_span_sub[1] - t_span_sub[0]) / (effective_sub.n_sub - 1)

    guesses = None
    if kappa == 1 and len(result['bound_states']) > 0:
        guesses = result['bound_states']
    options_sub = replace(options, bound_state_localization=BoundStateLocalization.NEWTON,
                          discspec_type=DiscreteSpectrumType.BOTH)
    result_sub = _nsev_slow_base(effective_sub, t_span_sub, xi, guesses, kappa, options_sub, descriptor)

    scale = (n_t / effective_sub.n_sub) ** descriptor.order

    if xi is not None:
        mask = np.absolute(xi) < 0.9 * np.pi / (2.0 * eps_t_sub)
        for key in ('cont_ref', 'cont_a', 'cont_b'):
            if result[key] is not None:
                result[key][mask] = _extrapolate(result[key][mask], result_sub[key][mask], scale)

    if guesses is None or len(result_sub['bound_states']) == 0:
        return

    index = match_bound_states(result['bound_states'], result_sub['bound_states'], eps_t)
    residues = options.discspec_type != DiscreteSpectrumType.NORMING_CONSTANTS
    for i, j in enumerate(index):
        if j < 0:
            continue
        result['bound_states'][i] = _extrapolate(result['bound_states'][i], result_sub['bound_states'][j], scale)
        if residues:
            result['disc_aprime'][i] = _extrapolate(result['disc_aprime'][i], result_sub['disc_aprime'][j], scale)
            result['disc_res'][i] = result['disc_norm'][i] / result['disc_aprime'][i]
