from . import errors
from . import discretization
from . import options
from . import scatter
from . import spectrum
from . import bound_states
from . import nsev
from . import test_signals
from . import convergence

from .nsev import nsev_slow
from .options import get_default_options, get_options
from .scatter import get_scattering_matrix

__all__ = [
    'errors',
    'discretization',
    'options',
    'scatter',
    'spectrum',
    'bound_states',
    'nsev',
    'test_signals',
    'convergence',
    'nsev_slow',
    'get_default_options',
    'get_options',
    'get_scattering_matrix'
]
