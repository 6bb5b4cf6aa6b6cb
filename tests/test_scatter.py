"""Tests for transfer matrices and scattering matrices."""
import numpy as np
import pytest
import scipy.linalg

from nft_slow.errors import InvalidArgumentError
from nft_slow.scatter import expm_2x2, get_scattering_bound_states, get_scattering_matrix
from signal_sampling.resampling import get_effective_signal

SCHEMES = ['bo', 'cf4_2', 'cf4_3', 'cf5_3', 'cf6_4', 'es4', 'tes4']


def test_expm_2x2_matches_scipy() -> None:
    rng = np.random.default_rng(1)
    m = rng.normal(size=(5, 2, 2)) + 1.0j * rng.normal(size=(5, 2, 2))
    m[4] *= 1e-4
    expected = np.array([scipy.linalg.expm(x) for x in m])
    np.testing.assert_allclose(expm_2x2(m), expected, rtol=1e-12, atol=1e-14)


def test_expm_2x2_derivative() -> None:
    rng = np.random.default_rng(2)
    m = rng.normal(size=(4, 2, 2)) + 1.0j * rng.normal(size=(4, 2, 2))
    dm = rng.normal(size=(4, 2, 2)) + 1.0j * rng.normal(size=(4, 2, 2))
    m[3] *= 1e-3
    _, dexpm = expm_2x2(m, dm)
    expected = np.array([scipy.linalg.expm_frechet(x, dx)[1] for x, dx in zip(m, dm)])
    np.testing.assert_allclose(dexpm, expected, rtol=1e-10, atol=1e-12)


def test_zero_signal_gives_free_propagation() -> None:
    n, eps_t = 10, 0.2
    lambdas = np.array([0.3, -1.0 + 0.2j])
    result = get_scattering_matrix(np.zeros(n), None, eps_t, 1, lambdas)
    np.testing.assert_allclose(result[:, 0], np.exp(-1.0j * lambdas * eps_t * n))
    np.testing.assert_allclose(result[:, 3], np.exp(1.0j * lambdas * eps_t * n))
    np.testing.assert_allclose(result[:, 1:3], 0.0)


def test_bo_single_step() -> None:
    q, eps_t, xi, kappa = 0.7 - 0.2j, 0.3, 0.4 + 0.1j, -1
    result = get_scattering_matrix([q], None, eps_t, kappa, [xi], derivative=True)
    p = np.array([[-1.0j * xi, q], [-kappa * np.conj(q), 1.0j * xi]])
    expected, d_expected = scipy.linalg.expm_frechet(eps_t * p, eps_t * np.diag([-1.0j, 1.0j]))
    assert result.shape == (1, 8)
    np.testing.assert_allclose(result[0, :4], expected.ravel(), rtol=1e-12)
    np.testing.assert_allclose(result[0, 4:], d_expected.ravel(), rtol=1e-12)


@pytest.mark.parametrize('scheme', SCHEMES)
def test_derivative_matches_finite_difference(scheme, smooth_signal) -> None:
    q, t = smooth_signal
    eps_t = t[1] - t[0]
    effective = get_effective_signal(q, eps_t, 1, len(q), scheme)
    xi = 0.6 + 0.2j
    h = 1e-5
    result = get_scattering_matrix(effective.q, effective.r, eps_t, 1, [xi], scheme, derivative=True)
    plus = get_scattering_matrix(effective.q, effective.r, eps_t, 1, [xi + h], scheme)
    minus = get_scattering_matrix(effective.q, effective.r, eps_t, 1, [xi - h], scheme)
    np.testing.assert_allclose(result[0, 4:], (plus[0] - minus[0]) / (2 * h), rtol=1e-6, atol=1e-8)


@pytest.mark.parametrize('scheme', SCHEMES)
def test_determinant_is_one(scheme, smooth_signal) -> None:
    q, t = smooth_signal
    eps_t = t[1] - t[0]
    effective = get_effective_signal(q, eps_t, 1, len(q), scheme)
    s = get_scattering_matrix(effective.q, effective.r, eps_t, 1, [0.5, 1.0 + 0.3j], scheme)
    np.testing.assert_allclose(s[:, 0] * s[:, 3] - s[:, 1] * s[:, 2], 1.0, rtol=1e-10)


def test_two_component_with_empty_polarisation() -> None:
    n, eps_t = 12, 0.1
    q1 = 0.5 * np.cos(np.arange(n)) + 0.2j
    lambdas = [0.4, 1.0 - 0.5j]
    s2 = get_scattering_matrix(q1, None, eps_t, 1, lambdas)
    s3 = get_scattering_matrix(np.array([q1, np.zeros(n)]), None, eps_t, 1, lambdas)
    assert s3.shape == (2, 9)
    np.testing.assert_allclose(s3[:, [0, 1, 3, 4]], s2, rtol=1e-12)
    np.testing.assert_allclose(s3[:, 8], np.exp(1.0j * np.array(lambdas) * eps_t * n), rtol=1e-12)


def test_manakov_defocusing_cf4_2_reference() -> None:
    eps_t, kappa = 0.13, -1
    lambdas = [2.0, 1.0 + 0.5j]
    # band-limited samples of q1 = 0.4 cos(n) + 0.5j sin(0.3 n), q2 = 0.21 cos(n) + 1.05j sin(0.2 n)
    # at both nodes of every step
    q1_c1 = np.array([1.959445940890e-001 + 1.241004022547e-001j, -2.592131203174e-001 + 3.452237856788e-001j,
                      -3.941834020570e-001 + 3.791444155415e-001j, -1.864333946816e-001 + 5.044094791949e-001j,
                      1.758048139303e-001 + 4.751459873301e-001j, 4.268725816352e-001 + 5.002284202529e-001j,
                      1.899710763545e-001 + 3.984580528229e-001j, -1.566153115089e-002 + 3.160613770910e-001j])
    q1_c2 = np.array([-5.590625485913e-002 + 2.138239999513e-001j, -3.856966939342e-001 + 4.046327835275e-001j,
                      -3.206394446118e-001 + 4.243784759145e-001j, 4.180433278990e-002 + 5.216076384561e-001j,
                      3.299466175909e-001 + 4.701354532991e-001j, 3.883736304468e-001 + 4.656136858304e-001j,
                      -5.143984459071e-002 + 3.498070606383e-001j, 1.866592749703e-001 + 1.927728225495e-001j])
    q2_c1 = np.array([7.080038365208e-002 + 1.346306842042e-001j, -1.040163599220e-001 + 5.069460117029e-001j,
                      -2.390168143246e-001 + 5.950595276911e-001j, -6.580700396317e-002 + 8.019351848364e-001j,
                      6.022699906875e-002 + 9.021869491973e-001j, 2.561786336031e-001 + 9.814499044214e-001j,
                      6.766428684148e-002 + 1.083299632198e+000j, 2.384822439043e-002 + 9.045427290125e-001j])
    q2_c2 = np.array([-6.142131204569e-002 + 2.931676403723e-001j, -1.704202360708e-001 + 5.979502372586e-001j,
                      -2.004062366658e-001 + 6.970919258710e-001j, 5.401780295934e-002 + 8.692997389206e-001j,
                      1.411514459906e-001 + 9.661912518895e-001j, 2.359666842292e-001 + 9.996280110607e-001j,
                      -5.907644665477e-002 + 1.129339523823e+000j, 1.300666476041e-001 + 3.573822940680e-001j])
    a1, a2 = 0.25 + np.sqrt(3.0) / 6.0, 0.25 - np.sqrt(3.0) / 6.0

    q_eff = np.zeros((2, 16), dtype=complex)
    q_eff[0, 0::2] = a1 * q1_c1 + a2 * q1_c2
    q_eff[0, 1::2] = a2 * q1_c1 + a1 * q1_c2
    q_eff[1, 0::2] = a1 * q2_c1 + a2 * q2_c2
    q_eff[1, 1::2] = a2 * q2_c1 + a1 * q2_c2

    expected = np.array([
        -0.360589966187354 - 1.17028981468031j, -0.0241956711020656 + 0.403833944944134j,
        -0.169329555844066 + 0.554313620604708j, -0.00519431569923585 - 0.390786889139384j,
        -0.475344428414229 + 0.954920383900963j, 0.0248456421687098 + 0.119577600285474j,
        -0.182512465332931 - 0.559956427250144j, 0.0761233332205738 + 0.141588341732639j,
        -0.37270039144989 + 1.08725084422066j, 1.23866017259926 - 1.78512313003366j,
        0.00367523892219178 + 0.487852957066265j, -0.0271421495454989 + 0.777051429705551j,
        -0.0115552294310941 - 0.491046420752017j, 0.350054575808624 + 0.571400095102463j,
        0.0831342553760913 + 0.081684819238415j, -0.217845544004535 - 0.884181359128605j,
        0.131727926593581 + 0.0868162278820376j, 0.515444384818016 + 0.631623144772692j])

    result = get_scattering_matrix(q_eff, -kappa * np.conj(q_eff), eps_t, kappa, lambdas, 'cf4_2')
    assert result.shape == (2, 9)
    assert np.linalg.norm(result.ravel() - expected) / np.linalg.norm(expected) < 1e-10


def test_invalid_arguments() -> None:
    q = np.ones(4)
    with pytest.raises(InvalidArgumentError):
        get_scattering_matrix(q, None, 0.0, 1, [1.0])
    with pytest.raises(InvalidArgumentError):
        get_scattering_matrix(q, None, 0.1, 0, [1.0])
    with pytest.raises(InvalidArgumentError):
        get_scattering_matrix(q, None, 0.1, 1, [])
    with pytest.raises(InvalidArgumentError):
        get_scattering_matrix(q, None, 0.1, 1, [1.0], 'xx')
    with pytest.raises(InvalidArgumentError):
        get_scattering_matrix(q, None, 0.1, 1, [1.0], 'es4')
    with pytest.raises(InvalidArgumentError):
        get_scattering_matrix(q, np.ones(3), 0.1, 1, [1.0])
    with pytest.raises(InvalidArgumentError):
        get_scattering_matrix(None, None, 0.1, 1, [1.0])


def test_bound_state_mode_on_soliton(soliton) -> None:
    q, t = soliton['q'], soliton['t']
    a, ad, b = get_scattering_bound_states(q, None, (t[0], t[-1]), [soliton['xi_d']])
    assert abs(a[0]) < 1e-3
    assert abs(ad[0] - soliton['ad_d']) < 1e-3
    assert abs(b[0] - soliton['b_d']) < 1e-3

    _, _, b = get_scattering_bound_states(q, None, (t[0], t[-1]), [soliton['xi_d']], skip_b=True)
    assert b is None


def test_bound_state_mode_matches_continuous_a(smooth_signal) -> None:
    q, t = smooth_signal
    eps_t = t[1] - t[0]
    xi = np.array([0.3, -0.4 + 0.2j])
    a, _, _ = get_scattering_bound_states(q, None, (t[0], t[-1]), xi, skip_b=True)
    s = get_scattering_matrix(q, None, eps_t, 1, xi)
    length = t[-1] - t[0] + eps_t
    np.testing.assert_allclose(a, s[:, 0] * np.exp(1.0j * xi * length), rtol=1e-12)


def test_bound_state_mode_invalid_arguments() -> None:
    with pytest.raises(InvalidArgumentError):
        get_scattering_bound_states(np.ones(4), None, (1.0, 0.0), [0.5j])
    with pytest.raises(InvalidArgumentError):
        get_scattering_bound_states(np.ones((2, 4)), None, (0.0, 1.0), [0.5j])
