import numpy as np
import pytest

from nft_slow import test_signals


def get_time_grid(t_span, n_t):
    dt = t_span / (n_t - 1)
    return np.array([i * dt - t_span / 2. for i in range(n_t)])


@pytest.fixture
def soliton():
    """q = sech(t) on [-16, 16]: one bound state at 0.5j, b = -1, a' = -1j, no reflection."""
    t = get_time_grid(32., 4096)
    q = test_signals.get_sech_shape(t, 1.0)
    return {'q': q, 't': t, 'xi_d': 0.5j, 'b_d': -1.0, 'ad_d': -1.0j, 'r_d': -1.0j}


@pytest.fixture
def smooth_signal():
    t = get_time_grid(12., 48)
    q = 0.8 * np.exp(-t ** 2 / 2.) * np.exp(0.3j * t)
    return q, t
