"""
Runs pivot or iterative MDS on the numeric columns of a DataFrame.

Usage:
    from mds import MdsSettings, project_table, append_embedding

    result = project_table(df, MdsSettings(method='iterative', num_dimensions=2))
    print(result.stress)
    df = append_embedding(df, result)
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

import pandas as pd

from distances import DistanceFunction, get_distance_function
from execution import ExecutionMonitor
from featuretable import FeatureTable
from points import PointEmbedding, check_dimension
from stress import projection_stress, get_kruskal_stress_class, KRUSKAL_STRESS_CLASSES
from techniques.iterativemds import IterativeMdsEmbedding
from techniques.pivotmds import PivotMdsEmbedding, DEFAULT_MAX_ITER

METHODS = ('pivot', 'iterative')
COLUMN_PREFIX = 'MDS Col '


@dataclass
class MdsSettings:
    """Configuration of one MDS run."""

    method: str = 'pivot'
    num_dimensions: int = 2
    distance: Any = 'euclidean'
    p: int = 2

    # Pivot MDS
    num_pivots: int = 100
    max_iter: int = DEFAULT_MAX_ITER

    # Iterative MDS
    num_epochs: int = 50
    learning_rate: float = 1.0
    final_learning_rate: float = 0.001
    seed: int = 0

    def validate(self):
        check_dimension(self.num_dimensions, 'target dimension')

        if self.method not in METHODS:
            raise ValueError(f'Unknown method: {self.method} (available: {", ".join(METHODS)})')
        if self.num_pivots < 1:
            raise ValueError(f'Number of pivots must be >= 1, got {self.num_pivots}')
        if self.max_iter < 1:
            raise ValueError(f'Maximum number of iterations must be >= 1, got {self.max_iter}')
        if self.num_epochs < 1:
            raise ValueError(f'Number of epochs must be >= 1, got {self.num_epochs}')
        if not 0 <= self.learning_rate <= 1:
            raise ValueError(f'Learning rate must be in [0, 1], got {self.learning_rate}')
        if self.final_learning_rate <= 0:
            raise ValueError(f'Final learning rate must be > 0, got {self.final_learning_rate}')

        self.get_distance_function()
        return self

    def get_distance_function(self) -> DistanceFunction:
        return get_distance_function(self.distance, self.p)


@dataclass
class MdsResult:
    """Result of project_table."""

    embedding: PointEmbedding
    frame: pd.DataFrame
    stress: float = 0.0
    dropped_rows: List[Any] = field(default_factory=list)
    engine: Optional[Any] = None

    @property
    def stress_class(self) -> str:
        return KRUSKAL_STRESS_CLASSES[get_kruskal_stress_class(self.stress)]

    def summary(self) -> str:
        lines = [
            f'Embedded rows: {len(self.embedding)}',
            f'Dimensions: {self.embedding.dimension}',
            f'Stress: {self.stress:.4f} ({self.stress_class})',
        ]
        if self.dropped_rows:
            lines.append(f'Rows without values (skipped): {len(self.dropped_rows)}')
        return '\n'.join(lines)


def create_engine(table, settings, progress=None, cancellation=None, verbose=False):
    distance_function = settings.get_distance_function()

    if settings.method == 'pivot':
        return PivotMdsEmbedding(table, settings.num_dimensions, settings.num_pivots, distance_function,
                                 max_iter=settings.max_iter, progress=progress, cancellation=cancellation,
                                 verbose=verbose)

    return IterativeMdsEmbedding(table, settings.num_dimensions, settings.num_epochs, settings.learning_rate,
                                 settings.final_learning_rate, distance_function, settings.seed,
                                 progress=progress, cancellation=cancellation, verbose=verbose)


def project_table(df, settings=None, columns=None, progress=None, cancellation=None, verbose=False):
    """
    Embeds the rows of df. Rows whose selected cells are all missing are
    skipped and listed in MdsResult.dropped_rows.
    """
    settings = (settings if settings is not None else MdsSettings()).validate()
    monitor = ExecutionMonitor(progress, cancellation, verbose, 'MDS')
    monitor.check()

    table = FeatureTable.from_frame(df, columns)
    dropped_rows = table.missing_rows()
    if dropped_rows:
        monitor.log(f'Skipping {len(dropped_rows)} rows without values')
        table = table.drop_missing_rows()

    monitor.log(f'Embedding {table.get_num_rows()} rows with {table.get_num_columns()} columns '
                f'using {settings.method} MDS')

    engine = None
    if table.get_num_rows() == 0:
        embedding = PointEmbedding([], settings.num_dimensions)
        result_stress = 0.0
    else:
        engine = create_engine(table, settings, progress, cancellation, verbose)
        embedding = engine.get_point_embedding()

        original_distances = settings.get_distance_function().pairwise(table.matrix)
        result_stress = projection_stress(embedding.to_projection(), original_distances)

    frame = embedding.to_frame(COLUMN_PREFIX)
    frame.index.name = df.index.name
    monitor.log(f'Stress: {result_stress:.4f}')

    return MdsResult(embedding, frame, result_stress, dropped_rows, engine)


def append_embedding(df, result):
    """
    Joins the embedding columns to df. Skipped rows get missing values.
    """
    return df.join(result.frame, how='left')
