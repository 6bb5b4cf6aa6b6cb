import numpy as np

from scipy.fft import fft, ifft


def get_energy(signal, t_span):
    return np.mean(np.power(np.absolute(signal), 2)) * t_span


def get_fft_wave_numbers(n):
    # [0, 1, ..., n // 2, -(n - 1) // 2, ..., -1]
    return np.concatenate((np.arange(n // 2 + 1), np.arange(-((n - 1) // 2), 0)))


def shift_signal(signal, dt, shift):
    """
    Band-limited time shift of the signal.

    The signal is treated as one period of a band-limited function and the shift is applied
    as a linear phase in the discrete Fourier domain, i.e. the result approximates q(t + shift)
    on the same grid.

    Args:
        signal: samples (last axis is time)
        dt: time step
        shift: time shift

    Returns:
        shifted signal

    """
    signal = np.asarray(signal, dtype=np.complex128)
    n = signal.shape[-1]
    k = get_fft_wave_numbers(n)
    phase = np.exp(2.0j * np.pi * k * shift / (n * dt))

    return ifft(fft(signal, axis=-1) * phase, axis=-1)
