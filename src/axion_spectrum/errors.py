"""Exception types raised by the spectrum analysis library.

Every failure is raised eagerly at the point of violation, before the
receiver is mutated.  Each class also derives from the closest builtin
exception so callers that only know about ``ValueError`` or
``IndexError`` still catch them.
"""


class SpectrumError(Exception):
    """Base class for all errors raised by :mod:`axion_spectrum`."""


class InvalidStateError(SpectrumError, ValueError):
    """A unit conversion was requested from the wrong unit state.

    Attributes:
        operation: Name of the rejected operation.
        required: The unit the operation needs.
        actual: The unit the spectrum is currently in.
    """

    def __init__(self, operation: str, required: object, actual: object) -> None:
        self.operation = operation
        self.required = required
        self.actual = actual
        super().__init__(
            f"{operation}: spectrum must be in units of {required}, "
            f"but is in {actual}"
        )


class SizeMismatchError(SpectrumError, ValueError):
    """An elementwise operation was applied to arrays of unequal length."""

    def __init__(self, left: int, right: int, what: str = "Spectra") -> None:
        self.left = left
        self.right = right
        super().__init__(f"{what} are not the same size: {left} vs {right}")


class OutOfRangeError(SpectrumError, IndexError):
    """A frequency, index or plot resolution lies outside the valid range."""


class EmptyCollectionError(SpectrumError, ValueError):
    """A derived product was requested from an empty collection."""


class MalformedHeaderError(SpectrumError, ValueError):
    """The header block of a raw spectrum could not be interpreted."""


class MalformedSampleError(SpectrumError, ValueError):
    """A sample line of a raw spectrum is not a real number."""
