r"""
Exception types raised by :mod:`mcprocess`.

Every type derives from :class:`MCProcessError` and also from a builtin, so
callers can catch the whole family or keep catching ``ValueError``,
``NotImplementedError`` or ``RuntimeError``.
"""

from __future__ import annotations

__all__ = [
    "MCProcessError",
    "InvalidParameterError",
    "UnsupportedOperationError",
    "ScheduleNotSetError",
]


class MCProcessError(Exception):
    """Base class of the errors raised by :mod:`mcprocess`."""


class InvalidParameterError(MCProcessError, ValueError):
    r"""
    A process, distribution, or schedule parameter is outside its domain.

    Raised synchronously by constructors and ``set_*`` methods before any state
    is modified, so the receiving object keeps its previous configuration.
    """


class UnsupportedOperationError(MCProcessError, NotImplementedError):
    r"""
    The requested operation is not available for this sampling strategy.

    Whole-path generators (PCA, subordinated) raise this from their sequential
    stepping methods. Check ``supports_sequential`` before calling to avoid it.
    """


class ScheduleNotSetError(MCProcessError, RuntimeError):
    """A generator was asked for observations before any observation times were set."""
