"""Labelled 2D numeric container.

LabeledMatrix wraps a float64 numpy array with one label per column. It is
the matrix type passed through consolidation: genotype columns are markers
(labelled ``chrom:pos`` or by SNP ID), phenotype and covariate columns carry
their variable names. Column labels are metadata only and take no part in
equality.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np


@dataclass(eq=False)
class LabeledMatrix:
    """Float64 matrix with per-column labels.

    Attributes:
        values: 2D array (n_rows, n_cols). Always float64.
        col_labels: One label per column. Missing labels are empty strings.
    """

    values: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    col_labels: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        values = np.asarray(self.values, dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.ndim != 2:
            raise ValueError(f"LabeledMatrix needs a 2D array, got {values.ndim}D")
        self.values = values
        labels = [str(label) for label in self.col_labels]
        if len(labels) < values.shape[1]:
            labels.extend([""] * (values.shape[1] - len(labels)))
        elif len(labels) > values.shape[1]:
            raise ValueError(
                f"{len(labels)} column labels given for {values.shape[1]} columns"
            )
        self.col_labels = labels

    @classmethod
    def empty(cls, n_rows: int = 0) -> LabeledMatrix:
        """Matrix with ``n_rows`` rows and no columns."""
        return cls(np.zeros((n_rows, 0)))

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    @property
    def n_cols(self) -> int:
        return self.values.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    def get_column_label(self, col: int) -> str:
        return self.col_labels[col]

    def set_column_label(self, col: int, label: str) -> None:
        self.col_labels[col] = str(label)

    def copy_column_labels(self, source: LabeledMatrix) -> None:
        """Resize to ``source``'s column count and take over its labels."""
        self.resize(self.n_rows, source.n_cols)
        self.col_labels = list(source.col_labels)

    def resize(self, n_rows: int, n_cols: int) -> None:
        """Resize in place, keeping the overlapping block and zero-filling."""
        if n_rows < 0 or n_cols < 0:
            raise ValueError(f"Cannot resize to negative shape ({n_rows}, {n_cols})")
        if (n_rows, n_cols) == self.shape:
            return
        resized = np.zeros((n_rows, n_cols), dtype=np.float64)
        keep_rows = min(n_rows, self.n_rows)
        keep_cols = min(n_cols, self.n_cols)
        resized[:keep_rows, :keep_cols] = self.values[:keep_rows, :keep_cols]
        self.values = resized
        self.col_labels = self.col_labels[:n_cols] + [""] * max(
            0, n_cols - len(self.col_labels)
        )

    def take_rows(self, rows: np.ndarray | Sequence[int]) -> LabeledMatrix:
        """New matrix with the given rows (boolean mask or indices), labels kept."""
        return LabeledMatrix(self.values[np.asarray(rows)], list(self.col_labels))

    def take_columns(self, cols: np.ndarray | Sequence[int]) -> LabeledMatrix:
        """New matrix with the given columns and their labels."""
        cols = np.asarray(cols)
        if cols.dtype == bool:
            cols = np.flatnonzero(cols)
        labels = [self.col_labels[int(c)] for c in cols]
        return LabeledMatrix(self.values[:, cols], labels)

    def copy(self) -> LabeledMatrix:
        return LabeledMatrix(self.values.copy(), list(self.col_labels))

    def __getitem__(self, key):
        return self.values[key]

    def __setitem__(self, key, value) -> None:
        self.values[key] = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabeledMatrix):
            return NotImplemented
        return self.shape == other.shape and bool(
            np.array_equal(self.values, other.values)
        )


def as_labeled(
    matrix: LabeledMatrix | np.ndarray | None, n_rows: int | None = None
) -> LabeledMatrix:
    """Coerce an array (or None) to a LabeledMatrix.

    None becomes an empty matrix with ``n_rows`` rows, so a missing covariate
    set still keeps row alignment. LabeledMatrix inputs are returned as-is.
    """
    if matrix is None:
        return LabeledMatrix.empty(n_rows or 0)
    if isinstance(matrix, LabeledMatrix):
        return matrix
    return LabeledMatrix(np.asarray(matrix, dtype=np.float64))
