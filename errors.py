class MdsError(Exception):
    """Base class of all errors raised by the MDS engines."""


class InvalidDimension(MdsError, ValueError):
    """Raised when a point or target dimension is not positive."""

    def __init__(self, dimension, what='dimension'):
        self.dimension = dimension
        super().__init__(f'Invalid {what}: {dimension} (must be >= 1)')


class ShapeMismatch(MdsError, ValueError):
    """Raised when the matrices passed to an engine do not fit together."""


class IndexOutOfRange(MdsError, IndexError):

    def __init__(self, index, dimension):
        self.index = index
        self.dimension = dimension
        super().__init__(f'Coordinate index {index} out of range [0, {dimension})')


class Cancelled(MdsError):
    """Raised at a checkpoint once cancellation has been requested."""
