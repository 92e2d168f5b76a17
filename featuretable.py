import numpy as np
import pandas as pd

from distances import as_matrix
from errors import ShapeMismatch


class FeatureTable:
    """
    Rows x selected columns of numeric features. Missing cells are NaN.
    """

    def __init__(self, row_ids=None, column_names=None, matrix=None):
        self.row_ids = None
        self.column_names = None
        self.matrix = None

        if matrix is not None:
            self.matrix = as_matrix(matrix)
            n, m = self.matrix.shape
            self.row_ids = list(range(n)) if row_ids is None else list(row_ids)
            self.column_names = [f'Col {i}' for i in range(m)] if column_names is None else list(column_names)

            if len(self.row_ids) != n:
                raise ShapeMismatch(f'{len(self.row_ids)} row ids for {n} rows')
            if len(self.column_names) != m:
                raise ShapeMismatch(f'{len(self.column_names)} column names for {m} columns')
            if len(set(self.row_ids)) != n:
                raise ValueError('Row identifiers must be unique')

    @classmethod
    def from_frame(cls, df, columns=None):
        """
        Creates a feature table from a DataFrame. The index becomes the row ids.
        Without columns, every numeric column is used.
        """
        if columns is None:
            columns = [c for c in df.columns if pd.api.types.is_numeric_dtype(df[c])
                       and not pd.api.types.is_bool_dtype(df[c])]
        else:
            columns = list(columns)
            missing = [c for c in columns if c not in df.columns]
            if missing:
                raise KeyError(f'Columns not found: {missing}')

        values = df[columns].apply(pd.to_numeric, errors='coerce').to_numpy(dtype=np.float64)
        return cls(df.index.tolist(), columns, values.reshape(len(df), len(columns)))

    def copy(self):
        return FeatureTable(self.row_ids.copy(), self.column_names.copy(), self.matrix.copy())

    def get_num_rows(self):
        return len(self.row_ids)

    def get_num_columns(self):
        return len(self.column_names)

    def get_row(self, row_id):
        return self.matrix[self.row_ids.index(row_id)]

    def get_features(self):
        """Returns the features in the layout the engines expect, i.e. (m, n)."""
        return self.matrix.T.copy()

    def missing_rows(self):
        """Row ids for which every selected cell is missing."""
        if self.get_num_columns() == 0:
            return list(self.row_ids)
        all_missing = np.all(np.isnan(self.matrix), axis=1)
        return [row_id for row_id, missing in zip(self.row_ids, all_missing) if missing]

    def drop_missing_rows(self):
        dropped = set(self.missing_rows())
        if not dropped:
            return self.copy()

        keep = [i for i, row_id in enumerate(self.row_ids) if row_id not in dropped]
        return FeatureTable([self.row_ids[i] for i in keep], self.column_names.copy(), self.matrix[keep])

    def __len__(self):
        return self.get_num_rows()

    def __repr__(self):
        return f'FeatureTable(rows={self.get_num_rows()}, columns={self.get_num_columns()})'
