"""
Dense symmetric covariance matrix container.
"""

import numpy as np

# Value of every cell before it is filled; makes missed cells easy to spot.
UNFILLED = -999.0


class CovarianceMatrix:
    """
    N x N float64 matrix backed by a flat array.

    Sized once at construction and never resized. Element access is bounds
    checked; row and column always come from the engine's own loop ranges,
    so an IndexError here means a bug, not bad input.
    """

    def __init__(self, n_rows: int, init_value: float = UNFILLED):
        if n_rows <= 0:
            raise ValueError(f"Matrix must have at least one row, got {n_rows}")
        self._n = int(n_rows)
        self.init_value = float(init_value)
        self._data = np.full(self._n * self._n, self.init_value, dtype=np.float64)

    @property
    def num_rows(self) -> int:
        return self._n

    @property
    def num_cols(self) -> int:
        return self._n

    @property
    def shape(self) -> tuple[int, int]:
        return self._n, self._n

    def _index(self, key) -> int:
        row, col = key
        if not 0 <= row < self._n:
            raise IndexError(f"Row {row} out of range for {self._n}x{self._n} matrix")
        if not 0 <= col < self._n:
            raise IndexError(f"Column {col} out of range for {self._n}x{self._n} matrix")
        return row * self._n + col

    def __getitem__(self, key) -> float:
        return float(self._data[self._index(key)])

    def __setitem__(self, key, value: float):
        self._data[self._index(key)] = value

    def set_symmetric(self, row: int, col: int, value: float):
        """Store value at (row, col) and (col, row)."""
        self[row, col] = value
        self[col, row] = value

    def rows(self):
        """Iterate over rows as read-only views."""
        grid = self._data.reshape(self._n, self._n)
        for r in range(self._n):
            row = grid[r]
            row.flags.writeable = False
            yield row

    def to_array(self) -> np.ndarray:
        """Copy of the matrix as an N x N array."""
        return self._data.reshape(self._n, self._n).copy()

    def unfilled_mask(self) -> np.ndarray:
        """Boolean N x N mask of cells still holding the initial value."""
        return self._data.reshape(self._n, self._n) == self.init_value

    def is_symmetric(self) -> bool:
        """Exact (bitwise value) symmetry check."""
        grid = self._data.reshape(self._n, self._n)
        return bool(np.array_equal(grid, grid.T))

    def has_nan(self) -> bool:
        return bool(np.isnan(self._data).any())

    def __len__(self):
        return self._n

    def __repr__(self):
        return f"CovarianceMatrix({self._n}x{self._n})"
