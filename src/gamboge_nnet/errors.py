from __future__ import annotations


class NnetError(Exception):
    """Base class for errors raised by gamboge_nnet."""


class MalformedInputError(NnetError, ValueError):
    """Inputs, weights or dimensions do not fit together."""


class AllocationFailureError(NnetError, MemoryError):
    """The per-call scratch buffer could not be allocated."""
