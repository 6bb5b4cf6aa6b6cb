"""
Exceptions raised by the slow nonlinear Fourier transform.

Every error carries a short ``code`` so that callers which only want a status
(as the C-style ``return_value`` of NFT routines) can get one without
inspecting the class.
"""


class NftError(Exception):
    """Base class for all errors of the slow NFT."""

    code = 'E_NFT'


class InvalidArgumentError(NftError, ValueError):
    """Raised when an input violates the documented preconditions."""

    code = 'E_INVALID_ARGUMENT'


class OutOfMemoryError(NftError, MemoryError):
    """Raised when a working buffer cannot be allocated."""

    code = 'E_NOMEM'


class DivideByZeroError(NftError, ZeroDivisionError):
    """Raised when a division by an exactly vanishing quantity is required."""

    code = 'E_DIV_BY_ZERO'


class SubroutineError(NftError):
    """
    Raised by a component when one of the components it calls fails.

    The original error is kept in ``original`` and its class in ``kind``.
    """

    code = 'E_SUBROUTINE'

    def __init__(self, original):
        super().__init__('subroutine failed: ' + str(original))
        self.original = original

    @property
    def kind(self):
        if isinstance(self.original, SubroutineError):
            return self.original.kind
        return type(self.original)
