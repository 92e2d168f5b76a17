import math

import numpy as np

from distances import Euclidean

# Upper bounds of the classes in KRUSKAL_STRESS_CLASSES (Kruskal, 1964).
KRUSKAL_STRESS_BOUNDS = (0.025, 0.05, 0.1, 0.2)
KRUSKAL_STRESS_CLASSES = ['excellent', 'good', 'fair', 'poor', 'bad']


def distance_matrix_from_projection(p):
    """Euclidean distances between the rows of p (shape (n, d))."""
    return Euclidean().pairwise(p)


def stress(projected_distances, original_distances, normalize=True):
    """
    Sum of the squared differences of two distance matrices. With normalize it
    is divided by the sum of the squared original distances and rooted, which
    is Kruskal's stress-1 (0 if all original distances are 0).
    """
    projected_distances = np.asarray(projected_distances, dtype=np.float64)
    original_distances = np.asarray(original_distances, dtype=np.float64)
    if projected_distances.shape != original_distances.shape:
        raise ValueError(f'Distance matrices differ in shape: '
                         f'{projected_distances.shape} != {original_distances.shape}')

    residual = float(np.sum(np.square(projected_distances - original_distances)))
    if not normalize:
        return residual

    scale = np.sum(np.square(original_distances))
    if scale == 0:
        return 0.0
    return math.sqrt(residual / scale)


def projection_stress(projection, original_distances, normalize=True):
    """
    Stress of a projection of shape (d, n) with respect to the original (n, n)
    distance matrix.
    """
    projected_distances = distance_matrix_from_projection(np.asarray(projection).T)
    return stress(projected_distances, original_distances, normalize=normalize)


def get_kruskal_stress_class(normalized_stress):
    """Index into KRUSKAL_STRESS_CLASSES."""
    return int(np.searchsorted(KRUSKAL_STRESS_BOUNDS, normalized_stress, side='right'))
