from __future__ import annotations


class NotegraphError(Exception):
    pass


class InvalidArgument(NotegraphError, ValueError):
    """Raised when a caller breaks an input contract (bad dimension, shape, range...)."""
