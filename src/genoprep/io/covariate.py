"""Covariate and phenotype text files.

Whitespace-delimited files with one row per sample in positional order
(matching the .fam file). Missing values are written "NA" (case-sensitive,
as in GEMMA). An optional first line of column names becomes the column
labels; without one, columns are labelled ``<prefix>1``, ``<prefix>2``, ...
GEMMA does not add an intercept column and neither does this reader.
"""

from pathlib import Path

import numpy as np

from genoprep.core.matrix import LabeledMatrix


def _is_numeric_row(tokens: list[str]) -> bool:
    for token in tokens:
        if token == "NA":
            continue
        try:
            float(token)
        except ValueError:
            return False
    return True


def read_covariate_file(
    path: Path, label_prefix: str = "cov"
) -> tuple[LabeledMatrix, np.ndarray]:
    """Read a covariate (or phenotype) file.

    Args:
        path: Path to the file.
        label_prefix: Prefix for generated column labels when the file has
            no header line.

    Returns:
        Tuple of (matrix, indicator):
        - matrix: (n_samples, n_cols) LabeledMatrix with NaN for "NA"
        - indicator: (n_samples,) int32 array, 0 for rows containing any NA

    Raises:
        ValueError: If the file is empty, rows have inconsistent column
            counts, or a value cannot be parsed as numeric.

    Example:
        File contents (intercept + age + sex)::

            1  35.0  0
            1  42.0  1
            1  NA    1

        >>> cov, indicator = read_covariate_file(Path("covariates.txt"))
        >>> cov.shape
        (3, 3)
        >>> indicator
        array([1, 1, 0], dtype=int32)
    """
    rows: list[list[str]] = []
    with open(path) as f:
        for line in f:
            parts = line.split()
            if parts:
                rows.append(parts)

    if not rows:
        raise ValueError(f"Covariate file is empty: {path}")

    labels = None
    if not _is_numeric_row(rows[0]):
        labels = rows.pop(0)
        if not rows:
            raise ValueError(f"Covariate file has a header but no data: {path}")

    n_cols = len(rows[0])
    if labels is not None and len(labels) != n_cols:
        raise ValueError(
            f"Covariate header has {len(labels)} names but data rows have "
            f"{n_cols} columns"
        )
    if labels is None:
        labels = [f"{label_prefix}{j + 1}" for j in range(n_cols)]

    values = np.zeros((len(rows), n_cols), dtype=np.float64)
    indicator = np.ones(len(rows), dtype=np.int32)
    for i, row in enumerate(rows):
        if len(row) != n_cols:
            raise ValueError(
                f"Covariate file row {i + 1} has {len(row)} columns "
                f"but expected {n_cols} (based on first row)"
            )
        for j, val in enumerate(row):
            if val == "NA":
                values[i, j] = np.nan
                indicator[i] = 0
                continue
            try:
                values[i, j] = float(val)
            except ValueError as e:
                raise ValueError(
                    f"Covariate file row {i + 1}, column {j + 1}: "
                    f"cannot parse '{val}' as numeric (use 'NA' for missing)"
                ) from e

    return LabeledMatrix(values, labels), indicator
