import math
import warnings

import numpy as np

from distances import Euclidean, as_matrix
from errors import ShapeMismatch
from execution import ExecutionMonitor
from featuretable import FeatureTable
from points import PointEmbedding, check_dimension
from techniques.embedding import Embedding

DEFAULT_SEED = 0
DEFAULT_NUM_EPOCHS = 50
DEFAULT_LEARNING_RATE = 1.0
DEFAULT_FINAL_LEARNING_RATE = 0.001

UNINITIALIZED = 'uninitialized'
INITIALIZED = 'initialized'
TRAINED = 'trained'


def learning_rate_after_epoch(initial, final, epoch, num_epochs):
    """
    Geometric interpolation between the initial and the final learning rate.
    After the last epoch the final rate is reached.
    """
    t = epoch / num_epochs
    if initial == 0:
        return final * t
    return initial * (final / initial) ** t


def learning_rate_schedule(initial, final, num_epochs):
    """The learning rates in effect after each of the epochs 1..num_epochs."""
    return np.array([learning_rate_after_epoch(initial, final, e, num_epochs) for e in range(1, num_epochs + 1)])


def train_epoch(positions, disparities, learning_rate, low_dimensional_distance=None):
    """
    One sweep over all ordered pairs (i, j), i != j. Point i is moved towards
    (or away from) point j such that their distance approaches disparities[i, j].

    positions (shape (n, d)) is updated in place and pairs see the updates of
    earlier pairs. Pairs at distance zero are skipped.
    """
    n = len(positions)
    euclidean = low_dimensional_distance is None or type(low_dimensional_distance) is Euclidean

    for i in range(n):
        p1 = positions[i]
        for j in range(n):
            if i == j:
                continue

            p2 = positions[j]
            difference = p2 - p1
            if euclidean:
                current = math.sqrt(np.dot(difference, difference))
            else:
                current = low_dimensional_distance(p1, p2)

            if current == 0:
                continue

            p1 += learning_rate * (1 - disparities[i, j] / current) * difference

    return positions


class IterativeMdsEmbedding(Embedding):
    """
    Metric MDS by stress relaxation: points start at random positions and
    every pair is nudged towards its high dimensional distance, with a
    geometrically decaying learning rate.

    data is either a FeatureTable or an array of shape (m, n), i.e. m features
    for n points. The high dimensional distances use distance_function, the
    embedded distances are always Euclidean.
    """

    def __init__(self, data, num_dimensions=2, num_epochs=DEFAULT_NUM_EPOCHS, learning_rate=DEFAULT_LEARNING_RATE,
                 final_learning_rate=DEFAULT_FINAL_LEARNING_RATE, distance_function=None, seed=DEFAULT_SEED,
                 row_ids=None, progress=None, cancellation=None, verbose=False):

        if isinstance(data, FeatureTable):
            if row_ids is None:
                row_ids = data.row_ids
            data = data.get_features()

        self.rows = as_matrix(data).T
        n = len(self.rows)

        if row_ids is not None and len(row_ids) != n:
            raise ShapeMismatch(f'{len(row_ids)} row ids for {n} points')

        self.row_ids = list(row_ids) if row_ids is not None else list(range(n))
        self.num_dimensions = check_dimension(num_dimensions, 'target dimension')
        self.num_epochs = num_epochs
        self.learning_rate = learning_rate
        self.final_learning_rate = final_learning_rate
        self.distance_function = distance_function if distance_function is not None else Euclidean()
        self.seed = seed

        self.monitor = ExecutionMonitor(progress, cancellation, verbose, type(self).__name__)

        self.embedding = None
        self.state = UNINITIALIZED
        self.num_trained_epochs = 0

    @property
    def initialized(self):
        return self.state != UNINITIALIZED

    def initialize(self, row_ids=None, num_dimensions=None, seed=None):
        """
        Places every row at a random position in [0, 1)^d. The coordinates are
        drawn row by row from a RandomState seeded with seed.
        """
        if row_ids is not None:
            row_ids = list(row_ids)
            if len(row_ids) != len(self.rows):
                raise ShapeMismatch(f'{len(row_ids)} row ids for {len(self.rows)} points')
            self.row_ids = row_ids
        if num_dimensions is not None:
            self.num_dimensions = check_dimension(num_dimensions, 'target dimension')
        if seed is None:
            seed = self.seed

        random_state = np.random.RandomState(seed)
        coordinates = random_state.random_sample((len(self.row_ids), self.num_dimensions))

        self.embedding = PointEmbedding(self.row_ids, self.num_dimensions, coordinates)
        self.state = INITIALIZED
        self.num_trained_epochs = 0
        self.monitor.log(f'Initialized {len(self.row_ids)} points with seed {seed}')

        return self.embedding

    def train(self, num_epochs=None, learning_rate=None, distance_function=None, low_dimensional_distance=None):
        """
        Runs num_epochs sweeps over all pairs of points and returns the
        (in-place updated) embedding.
        """
        if num_epochs is None:
            num_epochs = self.num_epochs
        if learning_rate is None:
            learning_rate = self.learning_rate
        if distance_function is None:
            distance_function = self.distance_function
        if num_epochs < 1:
            raise ValueError(f'Number of epochs must be >= 1, got {num_epochs}')
        if learning_rate < self.final_learning_rate:
            warnings.warn(f'Learning rate {learning_rate} is below the final learning rate '
                          f'{self.final_learning_rate}, the schedule rises instead of decaying', stacklevel=2)

        monitor = self.monitor
        monitor.start()
        monitor.check()

        if not self.initialized:
            self.initialize()

        disparities = distance_function.pairwise(self.rows)
        positions = self.embedding.matrix

        rate = learning_rate
        for epoch in range(1, num_epochs + 1):
            monitor.check()

            train_epoch(positions, disparities, rate, low_dimensional_distance)
            self.num_trained_epochs += 1
            self.state = TRAINED

            monitor.log(f'Epoch {epoch}/{num_epochs}, learning rate {rate:.4g}')
            monitor.report(epoch / num_epochs, f'Epoch {epoch}/{num_epochs}')

            rate = learning_rate_after_epoch(learning_rate, self.final_learning_rate, epoch, num_epochs)

        return self.embedding

    def reset(self):
        self.embedding = None
        self.state = UNINITIALIZED
        self.num_trained_epochs = 0

    def project(self):
        return self.train().to_projection()
