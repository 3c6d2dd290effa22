"""Exception types."""


class DimensionMismatchError(ValueError):
    """Buffer length disagrees with the requested or current state length."""
