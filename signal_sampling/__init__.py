from . import signal_processing
from . import resampling

__all__ = [
    'signal_processing',
    'resampling'
]
