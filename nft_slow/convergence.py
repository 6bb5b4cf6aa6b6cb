import numpy as np
import pandas as pd
import matplotlib
import matplotlib.pyplot as plt
from tqdm import tqdm

from . import test_signals
from .nsev import nsev_slow
from .options import get_options


def get_convergence_table(ampl, chirp, t_span, n_t, n_grid, n_xi=2 ** 7, discretization='bo',
                          richardson_extrapolation=False, print_sys_message=False):
    """
    Calculate nonlinear spectrum for sech shape on refined grids and compare it with theoretical values.
    sech = a * sech(t) ^ (1 + 1j * c)

    Args:
        ampl: amplitude for sech shape
        chirp: chirp parameter
        t_span: length of full region in t domain, t in [-t_span/2; t_span/2]
        n_t: number of discretisation points in t domain for the coarsest grid
        n_grid: number of grids, grid k has n_t * 2 ** k points

    Optional Args:
        n_xi: number of points for the continuous spectrum, default = 2 ** 7
        discretization: discretisation scheme, default = 'bo'
        richardson_extrapolation: use Richardson extrapolation, default = False
        print_sys_message: show progress, default = False

    Returns:
        pandas.DataFrame with columns 'n_t', 'dt', 'error_a', 'error_b', 'error_bound_states', 'order_a'

    """
    dt = t_span / (n_t - 1)
    # half of the Nyquist band of the coarsest grid
    xi_span = np.pi / dt / 2.
    xi = np.linspace(-xi_span / 2., xi_span / 2., n_xi)

    options = get_options(contspec_type='ab', discretization=discretization,
                          richardson_extrapolation=richardson_extrapolation)

    rows = []
    for k in tqdm(range(n_grid), disable=not print_sys_message):
        n_t_current = n_t * 2 ** k
        dt_current = t_span / (n_t_current - 1)
        t_current = np.array([i * dt_current - t_span / 2. for i in range(n_t_current)])
        q, a_xi, b_xi, xi_discr, _, _, _ = test_signals.get_sech(t_current, xi, a=ampl, c=chirp)

        guesses = xi_discr + 0.05j if len(xi_discr) > 0 else None
        res = nsev_slow(q, t_current, xi[0], xi[-1], n_xi, bound_states=guesses, options=options)

        error_bound_states = np.nan
        if guesses is not None and len(res['bound_states']) == len(xi_discr):
            error_bound_states = np.max(np.absolute(np.sort_complex(res['bound_states']) - np.sort_complex(xi_discr)))

        rows.append({'n_t': n_t_current,
                     'dt': dt_current,
                     'error_a': np.max(np.absolute(res['cont_a'] - a_xi)),
                     'error_b': np.max(np.absolute(res['cont_b'] - b_xi)),
                     'error_bound_states': error_bound_states})

    table = pd.DataFrame(rows)
    table['order_a'] = np.log2(table['error_a'].shift(1) / table['error_a'])

    return table


def plot_convergence(table):
    """
    Draw errors from get_convergence_table in log-log scale

    Args:
        table: pandas.DataFrame from get_convergence_table

    Returns:
        fig, axs

    """
    matplotlib.rcParams.update({'font.size': 14})

    fig, axs = plt.subplots(2, 1, figsize=(8, 10))
    axs[0].plot(table['n_t'], table['error_a'], 'o-', color='red', linewidth=2, label=r'$|a - a_{exact}|$')
    axs[0].plot(table['n_t'], table['error_b'], 's-', color='blue', linewidth=2, label=r'$|b - b_{exact}|$')
    if table['error_bound_states'].notna().any():
        axs[0].plot(table['n_t'], table['error_bound_states'], '^-', color='green', linewidth=2,
                    label=r'$|\xi_d - \xi_{d, exact}|$')
    axs[0].set_xscale('log')
    axs[0].set_yscale('log')
    axs[0].set_xlabel(r'$n_t$')
    axs[0].set_ylabel('max error')
    axs[0].grid(True)
    axs[0].legend()

    axs[1].plot(table['n_t'], table['order_a'], 'o-', color='xkcd:light purple', linewidth=2)
    axs[1].set_xscale('log')
    axs[1].set_xlabel(r'$n_t$')
    axs[1].set_ylabel('order')
    axs[1].grid(True)

    return fig, axs
