"""Typed failures raised by the sweepCAD geometry kernel.

Every error derives from :class:`SweepcadError`, which is itself a
``ValueError`` so code that guards kernel calls with ``except ValueError``
keeps working.
"""

from __future__ import annotations


class SweepcadError(ValueError):
    """Base class for all kernel errors."""


class DegenerateFrame(SweepcadError):
    """A frame's heading or up vector is zero length, or they are parallel."""


class InsufficientSamples(SweepcadError):
    """A sweep or loft was given fewer than two samples."""


class HoleCountMismatch(SweepcadError):
    """Samples of one sweep disagree on how many holes their shapes carry."""


class PointCountMismatch(SweepcadError):
    """Corresponding contours of two samples have different point counts."""


class InvalidShape(SweepcadError):
    """A contour is empty or has too few points to enclose an area."""


class InvalidVolume(SweepcadError):
    """A warp volume has an unknown kind or non-positive extents."""


class SubdivisionBoundsError(SweepcadError):
    """The subdivision pass count is negative or not an integer."""


class BooleanOperationError(SweepcadError):
    """The external polygon library rejected a boolean or offset request.

    ``operation`` names the adapter call that failed; the library's own
    exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


__all__ = [
    'SweepcadError',
    'DegenerateFrame',
    'InsufficientSamples',
    'HoleCountMismatch',
    'PointCountMismatch',
    'InvalidShape',
    'InvalidVolume',
    'SubdivisionBoundsError',
    'BooleanOperationError',
]
