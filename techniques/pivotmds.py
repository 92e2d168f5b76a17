import math
import warnings

import numpy as np
from sklearn.exceptions import ConvergenceWarning

from distances import Euclidean, as_matrix
from errors import ShapeMismatch
from execution import ExecutionMonitor
from featuretable import FeatureTable
from points import check_dimension
from techniques.embedding import Embedding

# Power iteration stops once every eigenvector changes by less than this.
EPSILON = 1e-7
DEFAULT_MAX_ITER = 10000

# Vectors shorter than this fraction of trace(K) are considered numerically zero.
ZERO_TOLERANCE = 1e-12


def normalize(vector):
    """
    Returns the normalized vector and its former length.
    A zero vector is returned unchanged.
    """
    norm = math.sqrt(np.dot(vector, vector))
    if norm == 0:
        return vector, 0.0
    return vector / norm, norm


def select_pivots(points, num_pivots, distance_function):
    """
    Greedy max-min pivot selection on the rows of points (shape (n, m)).
    The first pivot is row 0, every further pivot is the row farthest away
    from all previous pivots.

    Returns the pivot indices and the squared pivot distances of shape (k, n).
    """
    n = len(points)
    min_distances = np.full(n, np.inf)
    pivots = []
    squared_distances = np.zeros((num_pivots, n))

    for i in range(num_pivots):
        # argmax returns the first occurrence on ties.
        pivot = int(np.argmax(min_distances))
        pivots.append(pivot)

        squared_distances[i] = distance_function.to_all(points, pivot) ** 2
        np.minimum(min_distances, squared_distances[i], out=min_distances)

    return pivots, squared_distances


def double_center(squared_distances):
    """
    Scales by -1/2, then subtracts the row means and afterwards the column means.
    """
    c = -0.5 * squared_distances
    c = c - np.mean(c, axis=1, keepdims=True)
    c = c - np.mean(c, axis=0, keepdims=True)
    return c


def gram_matrix(c):
    """K = C * C^T, only the lower triangle is computed."""
    k = len(c)
    gram = np.zeros((k, k))
    for i in range(k):
        gram[i, :i + 1] = np.dot(c[:i + 1], c[i])
    return gram + np.tril(gram, -1).T


def initial_vectors(c, features, num_dimensions):
    """
    Starts eigenvector m at C * s_m where s_m is the centered feature row m.
    If that does not work (constant features or fewer features than
    dimensions) the m-th column of C is used instead, and if that is zero as
    well, the m-th unit vector.
    """
    k, n = c.shape
    vectors = np.zeros((num_dimensions, k))

    for m in range(num_dimensions):
        vector = np.zeros(k)

        if m < len(features):
            seed = features[m].copy()
            present = ~np.isnan(seed)
            if np.any(present):
                seed[present] -= np.mean(seed[present])
            seed[~present] = 0.0
            seed, norm = normalize(seed)
            if norm > 0:
                vector = np.dot(c, seed)

        if not np.any(vector):
            vector = c[:, m % n].copy()

        if not np.any(vector):
            vector = np.zeros(k)
            vector[m % k] = 1.0

        vectors[m], _ = normalize(vector)

    return vectors


def orthogonalize(vector, predecessors):
    for previous in predecessors:
        vector -= np.dot(vector, previous) * previous
    return vector


def reseed(gram, predecessors, m, zero_threshold):
    """
    Replacement for vector m after it collapsed in Gram-Schmidt, e.g. because
    it started parallel to one of its predecessors. The columns of the gram
    matrix (the unit vectors after one multiplication) are tried in turn,
    starting at column m.

    Only if every column lies in the span of the predecessors, the deflated
    matrix has no energy left and a zero vector is returned.
    """
    k = len(gram)
    for offset in range(k):
        candidate = gram[:, (m + offset) % k].copy()
        # Twice, the remainder may be small compared to the column.
        orthogonalize(candidate, predecessors)
        orthogonalize(candidate, predecessors)

        vector, norm = normalize(candidate)
        if norm > zero_threshold:
            return vector, norm

    return np.zeros(k), 0.0


def power_iteration_sweep(gram, vectors, zero_threshold):
    """
    Multiplies all vectors by the gram matrix, orthogonalizes every vector
    against its predecessors and normalizes it. A vector that collapses is
    reseeded from the gram matrix.

    Returns the new vectors and their norms before normalization.
    """
    new_vectors = np.dot(vectors, gram)
    norms = np.zeros(len(vectors))

    for m in range(len(new_vectors)):
        orthogonalize(new_vectors[m], new_vectors[:m])

        vector, norm = normalize(new_vectors[m])
        if norm <= zero_threshold:
            vector, norm = reseed(gram, new_vectors[:m], m, zero_threshold)
        new_vectors[m] = vector
        norms[m] = norm

    return new_vectors, norms


def convergence(old_vectors, new_vectors):
    """
    Smallest absolute dot product between the old and new version of each vector.
    Vanished vectors count as converged.
    """
    dots = []
    for old, new in zip(old_vectors, new_vectors):
        if not np.any(old) or not np.any(new):
            dots.append(1.0)
        else:
            dots.append(abs(np.dot(old, new)))
    return min(dots)


class PivotMdsEmbedding(Embedding):
    """
    Pivot MDS (Brandes & Pich): classical scaling on the distances of all points
    to a small set of pivots. The top eigenvectors are computed by power
    iteration with Gram-Schmidt deflation.

    data is either a FeatureTable or an array of shape (m, n), i.e. m features
    for n points.
    """

    def __init__(self, data, num_dimensions=2, num_pivots=100, distance_function=None,
                 max_iter=DEFAULT_MAX_ITER, row_ids=None, progress=None, cancellation=None, verbose=False):

        if isinstance(data, FeatureTable):
            if row_ids is None:
                row_ids = data.row_ids
            data = data.get_features()

        self.features = as_matrix(data)
        self.num_dimensions = check_dimension(num_dimensions, 'target dimension')

        n = self.features.shape[1]
        if n < 1:
            raise ShapeMismatch('At least one point is required')
        if row_ids is not None and len(row_ids) != n:
            raise ShapeMismatch(f'{len(row_ids)} row ids for {n} points')
        if num_pivots < 1:
            raise ShapeMismatch(f'Number of pivots must be >= 1, got {num_pivots}')

        self.monitor = ExecutionMonitor(progress, cancellation, verbose, type(self).__name__)

        if num_pivots > n:
            self.monitor.log(f'Reducing number of pivots from {num_pivots} to {n}')
            num_pivots = n

        self.num_pivots = int(num_pivots)
        self.distance_function = distance_function if distance_function is not None else Euclidean()
        self.max_iter = max_iter
        self.row_ids = list(row_ids) if row_ids is not None else None

        self.pivots = None
        self.eigenvalues = None
        self.eigenvectors = None
        self.converged = None
        self.n_iter = 0

    def project(self):
        monitor = self.monitor
        monitor.start()
        monitor.check()

        points = self.features.T
        n = len(points)

        pivots, squared_distances = select_pivots(points, self.num_pivots, self.distance_function)
        self.pivots = tuple(pivots)
        monitor.log(f'Selected {len(pivots)} pivots')
        monitor.report(0.1, 'Pivots selected')

        c = double_center(squared_distances)
        gram = gram_matrix(c)
        zero_threshold = ZERO_TOLERANCE * np.trace(gram)

        vectors = initial_vectors(c, self.features, self.num_dimensions)

        self.converged = False
        self.n_iter = 0
        while self.n_iter < self.max_iter:
            monitor.check()

            new_vectors, _ = power_iteration_sweep(gram, vectors, zero_threshold)
            self.n_iter += 1

            similarity = convergence(vectors, new_vectors)
            vectors = new_vectors

            monitor.report(0.1 + 0.8 * self.n_iter / self.max_iter, 'Power iteration')
            if similarity > 1 - EPSILON:
                self.converged = True
                break

        if self.converged:
            monitor.log(f'Power iteration converged after {self.n_iter} iterations')
        else:
            warnings.warn(f'Power iteration did not converge within {self.max_iter} iterations',
                          ConvergenceWarning, stacklevel=2)

        # One more multiplication refines the eigenvalue estimates.
        vectors, estimates = power_iteration_sweep(gram, vectors, zero_threshold)
        monitor.report(0.9, 'Back-projection')

        self.eigenvalues = np.sqrt(estimates)
        self.eigenvectors = np.zeros((self.num_dimensions, n))
        projection = np.zeros((self.num_dimensions, n))
        for m in range(self.num_dimensions):
            self.eigenvectors[m], _ = normalize(np.dot(c.T, vectors[m]))
            projection[m] = self.eigenvectors[m] * math.sqrt(self.eigenvalues[m])

        monitor.report(1.0, 'Done')
        return projection

    def get_eigenvalues(self):
        return self.eigenvalues


def pivot_mds(data, num_pivots, out, **kwargs):
    """
    Writes the pivot MDS embedding of data (shape (m, n)) into out (shape (d, n)).
    """
    features = as_matrix(data)
    if out.ndim != 2 or out.shape[1] != features.shape[1]:
        raise ShapeMismatch(f'Output of shape {out.shape} does not fit {features.shape[1]} points')

    embedding = PivotMdsEmbedding(features, out.shape[0], num_pivots, **kwargs)
    out[:] = embedding.project()
    return embedding
