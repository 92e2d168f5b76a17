import numpy as np
import pandas as pd

from errors import InvalidDimension, IndexOutOfRange, ShapeMismatch


def check_dimension(dimension, what='dimension'):
    if isinstance(dimension, bool) or not isinstance(dimension, (int, np.integer)) or dimension < 1:
        raise InvalidDimension(dimension, what)
    return int(dimension)


class Point:
    """
    A fixed-size, mutable coordinate vector.

    If coordinates is a float64 numpy array of the right length it is used as
    storage directly (no copy), so a point can be a view into a larger matrix.
    """

    def __init__(self, dimension, coordinates=None):
        dimension = check_dimension(dimension)

        if coordinates is None:
            coordinates = np.zeros(dimension)
        elif not (isinstance(coordinates, np.ndarray) and coordinates.dtype == np.float64):
            coordinates = np.asarray(coordinates, dtype=np.float64)

        if coordinates.shape != (dimension,):
            raise ShapeMismatch(f'Expected {dimension} coordinates, got shape {coordinates.shape}')

        self._coordinates = coordinates

    @classmethod
    def from_coordinates(cls, coordinates):
        coordinates = np.array(coordinates, dtype=np.float64).ravel()
        return cls(len(coordinates), coordinates)

    @property
    def dimension(self):
        return len(self._coordinates)

    @property
    def coordinates(self):
        return self._coordinates

    def _check_index(self, index):
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)) \
                or not 0 <= index < len(self._coordinates):
            raise IndexOutOfRange(index, len(self._coordinates))

    def __getitem__(self, index):
        self._check_index(index)
        return float(self._coordinates[index])

    def __setitem__(self, index, value):
        self._check_index(index)
        self._coordinates[index] = value

    def __len__(self):
        return len(self._coordinates)

    def __iter__(self):
        return iter(self._coordinates.tolist())

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._coordinates.copy()
        return self._coordinates.astype(dtype)

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return np.array_equal(self._coordinates, other._coordinates)

    def __repr__(self):
        return f'Point({self._coordinates.tolist()})'


class PointEmbedding:
    """
    Ordered mapping from row identifier to a Point of fixed dimension.

    All points are views into one (n, dimension) matrix, so changing a point
    changes the matrix and vice versa.
    """

    def __init__(self, row_ids, dimension, coordinates=None):
        self.dimension = check_dimension(dimension)
        self.row_ids = list(row_ids)

        if len(set(self.row_ids)) != len(self.row_ids):
            raise ValueError('Row identifiers must be unique')

        n = len(self.row_ids)
        if coordinates is None:
            self.matrix = np.zeros((n, self.dimension))
        else:
            self.matrix = np.array(coordinates, dtype=np.float64)
            if self.matrix.shape != (n, self.dimension):
                raise ShapeMismatch(f'Expected coordinates of shape {(n, self.dimension)}, '
                                    f'got {self.matrix.shape}')

        self._points = {row_id: Point(self.dimension, self.matrix[i]) for i, row_id in enumerate(self.row_ids)}

    @classmethod
    def from_projection(cls, row_ids, projection):
        """Creates an embedding from a projection of shape (d, n)."""
        projection = np.asarray(projection, dtype=np.float64)
        if projection.ndim != 2:
            raise ShapeMismatch(f'Expected a projection of shape (d, n), got {projection.shape}')
        return cls(row_ids, projection.shape[0], projection.T)

    def to_projection(self):
        """Returns a copy of the coordinates with shape (d, n)."""
        return self.matrix.T.copy()

    def to_frame(self, prefix='MDS Col '):
        columns = [f'{prefix}{i}' for i in range(self.dimension)]
        return pd.DataFrame(self.matrix.copy(), index=pd.Index(self.row_ids), columns=columns)

    def copy(self):
        return PointEmbedding(self.row_ids, self.dimension, self.matrix)

    def __getitem__(self, row_id):
        return self._points[row_id]

    def __contains__(self, row_id):
        return row_id in self._points

    def __iter__(self):
        return iter(self.row_ids)

    def __len__(self):
        return len(self.row_ids)

    def items(self):
        return ((row_id, self._points[row_id]) for row_id in self.row_ids)

    def __repr__(self):
        return f'PointEmbedding(n={len(self)}, dimension={self.dimension})'
