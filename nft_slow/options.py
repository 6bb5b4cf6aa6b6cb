from dataclasses import dataclass, fields, replace
from numbers import Integral

from .discretization import Discretization, NamedEnum
from .errors import InvalidArgumentError


class BoundStateFiltering(NamedEnum):
    NONE = 'none'
    BASIC = 'basic'
    FULL = 'full'


class BoundStateLocalization(NamedEnum):
    NEWTON = 'newton'


class DiscreteSpectrumType(NamedEnum):
    NORMING_CONSTANTS = 'norming_constants'
    RESIDUES = 'residues'
    BOTH = 'both'


class ContinuousSpectrumType(NamedEnum):
    REFLECTION_COEFFICIENT = 'reflection_coefficient'
    AB = 'ab'
    BOTH = 'both'


_ENUM_FIELDS = {
    'bound_state_filtering': BoundStateFiltering,
    'bound_state_localization': BoundStateLocalization,
    'discspec_type': DiscreteSpectrumType,
    'contspec_type': ContinuousSpectrumType,
    'discretization': Discretization,
}


@dataclass(frozen=True)
class NsevSlowOptions:
    """
    Parameters of the slow NFT.

    String values are accepted for all enum fields, e.g. discretization='tes4'.
    ``normalization_flag`` is kept for compatibility with fast transforms, the slow
    transfer matrix products are not rescaled.
    """

    bound_state_filtering: BoundStateFiltering = BoundStateFiltering.FULL
    bound_state_localization: BoundStateLocalization = BoundStateLocalization.NEWTON
    n_iter: int = 10
    discspec_type: DiscreteSpectrumType = DiscreteSpectrumType.NORMING_CONSTANTS
    contspec_type: ContinuousSpectrumType = ContinuousSpectrumType.REFLECTION_COEFFICIENT
    normalization_flag: bool = True
    discretization: Discretization = Discretization.BO
    richardson_extrapolation: bool = False
    print_sys_message: bool = False

    def __post_init__(self):
        for name, enum_type in _ENUM_FIELDS.items():
            value = getattr(self, name)
            try:
                object.__setattr__(self, name, enum_type(value))
            except ValueError:
                raise InvalidArgumentError('invalid value for ' + name + ': ' + repr(value)) from None
        if isinstance(self.n_iter, bool) or not isinstance(self.n_iter, Integral) or self.n_iter < 0:
            raise InvalidArgumentError('n_iter has to be a non-negative integer')


_DEFAULT_OPTIONS = NsevSlowOptions()


def get_default_options():
    return _DEFAULT_OPTIONS


def get_options(**kwargs):
    """
    Return options with some parameters changed from their default values.

    Args:
        kwargs: any field of NsevSlowOptions

    Returns:
        NsevSlowOptions

    """
    names = {f.name for f in fields(NsevSlowOptions)}
    unknown = set(kwargs) - names
    if unknown:
        raise InvalidArgumentError('unknown options: ' + ', '.join(sorted(unknown)))

    return replace(_DEFAULT_OPTIONS, **kwargs)
