from dataclasses import dataclass
from enum import Enum

import numpy as np

from .errors import InvalidArgumentError


class NamedEnum(Enum):
    """Enum with string values, looked up case-insensitively."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


class Discretization(NamedEnum):
    """
    Discretisation schemes of the slow scattering algorithm.

    - 'bo' -- Bofetta-Osborne (exponential midpoint)
    - 'cf4_2' -- commutator-free exponential integrator, 4th order, 2 nodes
    - 'cf4_3' -- commutator-free exponential integrator, 4th order, 3 nodes
    - 'cf5_3' -- commutator-free exponential integrator, 5th order, 3 nodes
    - 'cf6_4' -- commutator-free exponential integrator, 6th order, 4 nodes
    - 'es4' -- exponential scheme of 4th order with signal derivatives
    - 'tes4' -- split (three exponentials) version of ES4
    """

    BO = 'bo'
    CF4_2 = 'cf4_2'
    CF4_3 = 'cf4_3'
    CF5_3 = 'cf5_3'
    CF6_4 = 'cf6_4'
    ES4 = 'es4'
    TES4 = 'tes4'


@dataclass(frozen=True)
class DiscretizationDescriptor:
    """
    Constant properties of a discretisation scheme.

    ``node_coefficients`` maps the triple (earlier shifted copy, sample, later shifted copy)
    of a band-limited scheme onto its ``scale`` nodes, one row per node.
    """

    name: Discretization
    scale: int
    order: int
    boundary_coeff: float
    resampling: str  # 'direct', 'bandlimited' or 'derivative'
    integrator: str  # 'exponential', 'magnus' or 'split_magnus'
    node_shift: float = 0.0
    node_coefficients: tuple = ((0.0, 1.0, 0.0),)

    @property
    def coefficient_matrix(self):
        return np.array(self.node_coefficients, dtype=np.complex128)

    @property
    def lambda_weights(self):
        # each node sees the spectral parameter scaled by the sum of its coefficients
        return self.coefficient_matrix.sum(axis=1)

    def get_signal_values(self, q_effective):
        """
        Recover one signal value per original sample from an effective signal.

        Args:
            q_effective: effective signal (last axis is time)

        Returns:
            array of signal values on the subsampled grid

        """
        q_effective = np.asarray(q_effective)
        if self.resampling == 'derivative':
            return q_effective[..., 0::self.scale]
        if self.scale == 1:
            return q_effective
        n_groups = q_effective.shape[-1] // self.scale
        grouped = q_effective.reshape(q_effective.shape[:-1] + (n_groups, self.scale))
        return grouped.sum(axis=-1)


_SQRT3_6 = np.sqrt(3.0) / 6.0
_CF4_2_FIRST = 0.25 + _SQRT3_6
_CF4_2_SECOND = 0.25 - _SQRT3_6

_CF6_4_FIRST = (0.245985577298764 + 0.038734389227165j,
                -0.046806149832549 + 0.012442141491185j,
                0.010894359342569 - 0.004575808769067j)
_CF6_4_SECOND = (0.062868370946917 - 0.048761268117765j,
                 0.269028372054771 - 0.012442141491185j,
                 -0.041970529810473 + 0.014602687659668j)

_DESCRIPTORS = {
    Discretization.BO: DiscretizationDescriptor(
        Discretization.BO, scale=1, order=2, boundary_coeff=0.5,
        resampling='direct', integrator='exponential'),
    Discretization.CF4_2: DiscretizationDescriptor(
        Discretization.CF4_2, scale=2, order=4, boundary_coeff=0.5,
        resampling='bandlimited', integrator='exponential',
        node_shift=_SQRT3_6,
        node_coefficients=((_CF4_2_FIRST, 0.0, _CF4_2_SECOND),
                           (_CF4_2_SECOND, 0.0, _CF4_2_FIRST))),
    Discretization.CF4_3: DiscretizationDescriptor(
        Discretization.CF4_3, scale=3, order=4, boundary_coeff=0.5,
        resampling='bandlimited', integrator='exponential',
        node_shift=np.sqrt(3.0 / 20.0),
        node_coefficients=((0.302556833188024, -0.033333333333333, 0.005776500145310),
                           (-0.030555555555556, 0.511111111111111, -0.030555555555556),
                           (0.005776500145310, -0.033333333333333, 0.302556833188024))),
    Discretization.CF5_3: DiscretizationDescriptor(
        Discretization.CF5_3, scale=3, order=5, boundary_coeff=0.5,
        resampling='bandlimited', integrator='exponential',
        node_shift=np.sqrt(15.0) / 10.0,
        node_coefficients=((0.320333759788527 + 0.055396500128741j,
                            -0.022222222222222 + 0.066666666666667j,
                            0.001888462433695 - 0.022063166795408j),
                           (-0.044444444444444 - 0.077459666924148j,
                            0.488888888888889,
                            -0.044444444444444 + 0.077459666924148j),
                           (0.001888462433695 + 0.022063166795408j,
                            -0.022222222222222 - 0.066666666666667j,
                            0.320333759788527 - 0.055396500128741j))),
    Discretization.CF6_4: DiscretizationDescriptor(
        Discretization.CF6_4, scale=4, order=6, boundary_coeff=0.5,
        resampling='bandlimited', integrator='exponential',
        node_shift=np.sqrt(15.0) / 10.0,
        node_coefficients=(_CF6_4_FIRST,
                           _CF6_4_SECOND,
                           _CF6_4_SECOND[::-1],
                           _CF6_4_FIRST[::-1])),
    Discretization.ES4: DiscretizationDescriptor(
        Discretization.ES4, scale=3, order=4, boundary_coeff=0.5,
        resampling='derivative', integrator='magnus'),
    Discretization.TES4: DiscretizationDescriptor(
        Discretization.TES4, scale=3, order=4, boundary_coeff=0.5,
        resampling='derivative', integrator='split_magnus'),
}


def get_discretization(scheme):
    """
    Return descriptor for discretisation scheme.

    Args:
        scheme: Discretization member, descriptor or its name (case-insensitive), e.g. 'bo', 'tes4'

    Returns:
        DiscretizationDescriptor

    """
    if isinstance(scheme, DiscretizationDescriptor):
        return scheme
    try:
        return _DESCRIPTORS[Discretization(scheme)]
    except (ValueError, TypeError, KeyError):
        raise InvalidArgumentError('unknown discretization: ' + repr(scheme)) from None


def get_d_scale(scheme):
    # 0 marks an unsupported scheme
    try:
        return get_discretization(scheme).scale
    except InvalidArgumentError:
        return 0


def get_method_order(scheme):
    try:
        return get_discretization(scheme).order
    except InvalidArgumentError:
        return 0


def get_boundary_coeff(scheme):
    return get_discretization(scheme).boundary_coeff
