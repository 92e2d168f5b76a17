"""
Distance functions between two feature vectors.

All functions skip columns in which either vector has a missing value (None,
NaN or anything that is not numeric), so missing cells never count as zero.
If every column is skipped, the distance is zero.
"""
import math

import numpy as np
import pandas as pd

from errors import ShapeMismatch


def as_vector(values):
    """
    Converts a sequence of cells into a float vector. Missing or non-numeric
    cells become NaN.
    """
    array = np.asarray(values)
    if array.dtype.kind in 'biuf':
        return array.astype(np.float64).ravel()
    return pd.to_numeric(pd.Series(array.ravel(), dtype=object), errors='coerce').to_numpy(dtype=np.float64)


def as_matrix(data):
    """Same as as_vector, but for a 2D array of shape (n, m)."""
    array = np.asarray(data)
    if array.ndim != 2:
        raise ShapeMismatch(f'Expected a 2D matrix, got shape {array.shape}')
    if array.dtype.kind in 'biuf':
        return array.astype(np.float64)
    return np.vstack([as_vector(row) for row in array]) if len(array) > 0 else np.zeros(array.shape)


def _restrict(a, b, included_columns):
    a = as_vector(a)
    b = as_vector(b)
    if a.shape != b.shape:
        raise ShapeMismatch(f'Vectors differ in length: {len(a)} != {len(b)}')

    if included_columns is not None:
        columns = np.asarray(list(included_columns), dtype=int)
        a = a[columns]
        b = b[columns]

    present = ~(np.isnan(a) | np.isnan(b))
    return a[present], b[present]


class DistanceFunction:
    """
    Base class of all distance functions. Two instances are equal if they are
    of the same class and have the same parameters.
    """

    name = None

    def distance(self, a, b, included_columns=None):
        raise NotImplementedError

    def __call__(self, a, b, included_columns=None):
        return self.distance(a, b, included_columns)

    def to_all(self, data, index):
        """
        Returns the distances from row index of data (shape (n, m)) to every row.
        """
        data = as_matrix(data)
        return np.array([self.distance(data[index], row) for row in data])

    def pairwise(self, data):
        data = as_matrix(data)
        n = len(data)
        d = np.zeros((n, n))
        for i in range(n):
            d[i] = self.to_all(data, i)
        d[np.arange(n), np.arange(n)] = 0.0
        return d

    def parameters(self):
        return ()

    def __eq__(self, other):
        return type(self) is type(other) and self.parameters() == other.parameters()

    def __hash__(self):
        return hash((type(self).__name__,) + self.parameters())

    def __repr__(self):
        params = ', '.join(repr(p) for p in self.parameters())
        return f'{type(self).__name__}({params})'


class Minkowski(DistanceFunction):

    name = 'minkowski'

    def __init__(self, p=2):
        if isinstance(p, float) and p.is_integer():
            p = int(p)
        if isinstance(p, bool) or not isinstance(p, (int, np.integer)) or p < 1:
            raise ValueError(f'Minkowski power must be a positive integer, got {p!r}')
        self.p = int(p)

    def parameters(self):
        return (self.p,)

    def _root(self, power_sum):
        # pow(0, 1/p) is not relied upon.
        if power_sum == 0:
            return 0.0
        return float(power_sum ** (1.0 / self.p))

    def distance(self, a, b, included_columns=None):
        a, b = _restrict(a, b, included_columns)
        power_sum = np.sum(np.abs(a - b) ** self.p)
        return self._root(power_sum)

    def to_all(self, data, index):
        data = as_matrix(data)
        diff = np.abs(data - data[index])
        diff[np.isnan(diff)] = 0.0
        power_sums = np.sum(diff ** self.p, axis=1)
        result = np.zeros(len(data))
        nonzero = power_sums > 0
        result[nonzero] = power_sums[nonzero] ** (1.0 / self.p)
        return result


class Euclidean(Minkowski):

    name = 'euclidean'

    def __init__(self):
        super().__init__(2)

    def parameters(self):
        return ()


class Manhattan(Minkowski):

    name = 'manhattan'

    def __init__(self):
        super().__init__(1)

    def parameters(self):
        return ()


class Cosine(DistanceFunction):
    """
    offset - cos(a, b). If one of the vectors has zero length, offset is returned.
    """

    name = 'cosine'

    def __init__(self, offset=1.0):
        self.offset = float(offset)

    def parameters(self):
        return (self.offset,)

    def distance(self, a, b, included_columns=None):
        a, b = _restrict(a, b, included_columns)
        length_a = math.sqrt(np.dot(a, a))
        length_b = math.sqrt(np.dot(b, b))
        if length_a == 0 or length_b == 0:
            return self.offset
        return max(0.0, self.offset - float(np.dot(a, b)) / (length_a * length_b))


class Correlation(DistanceFunction):
    """
    offset - pearson(a, b), optionally made absolute.
    """

    name = 'correlation'

    def __init__(self, offset=1.0, absolute=False):
        self.offset = float(offset)
        self.absolute = bool(absolute)

    def parameters(self):
        return (self.offset, self.absolute)

    def distance(self, a, b, included_columns=None):
        a, b = _restrict(a, b, included_columns)
        if len(a) < 2:
            return self.offset

        a = a - np.mean(a)
        b = b - np.mean(b)
        deviation = math.sqrt(np.dot(a, a) * np.dot(b, b))
        if deviation == 0:
            return self.offset

        dist = self.offset - float(np.dot(a, b)) / deviation
        if self.absolute:
            return abs(dist)
        return max(0.0, dist)


_DISTANCE_FUNCTIONS = {
    'euclidean': Euclidean,
    'manhattan': Manhattan,
    'minkowski': Minkowski,
    'cosine': Cosine,
    'correlation': Correlation,
}


def get_distance_function(name, p=None):
    if isinstance(name, DistanceFunction):
        return name

    key = str(name).lower()
    if key not in _DISTANCE_FUNCTIONS:
        raise ValueError(f'Unknown distance function: {name} '
                         f'(available: {", ".join(sorted(_DISTANCE_FUNCTIONS))})')

    if key == 'minkowski':
        return Minkowski(2 if p is None else p)
    return _DISTANCE_FUNCTIONS[key]()
