"""Writers for consolidated matrices and per-marker summaries.

All files are tab-separated with a header line and .10g numbers.
"""

from collections.abc import Sequence
from pathlib import Path

import numpy as np

from genoprep.core.counter import GenotypeCounts
from genoprep.core.matrix import LabeledMatrix

COUNT_COLUMNS = (
    "marker",
    "n_hom_ref",
    "n_het",
    "n_hom_alt",
    "n_missing",
    "n_sample",
    "call_rate",
    "af",
    "ac",
    "hwe_exact",
    "hwe_chisq",
)


def _fmt(value: float) -> str:
    return f"{value:.10g}"


def write_labeled_matrix(
    matrix: LabeledMatrix, row_labels: Sequence[str], path: Path
) -> Path:
    """Write a matrix with a ``sample`` column of row labels.

    Raises:
        ValueError: If the number of row labels differs from the row count.
    """
    if len(row_labels) != matrix.n_rows:
        raise ValueError(
            f"{len(row_labels)} row labels for a matrix with {matrix.n_rows} rows"
        )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write("\t".join(["sample", *matrix.col_labels]) + "\n")
        for label, row in zip(row_labels, matrix.values):
            f.write("\t".join([str(label), *(_fmt(v) for v in row)]) + "\n")
    return path


def write_sample_labels(row_labels: Sequence[str], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{label}\n" for label in row_labels))
    return path


def write_genotype_counts(
    markers: Sequence[str],
    counts: Sequence[GenotypeCounts],
    hwe_chisq: np.ndarray,
    path: Path,
) -> Path:
    """Write one line per marker with genotype counts and HWE p-values."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write("\t".join(COUNT_COLUMNS) + "\n")
        for marker, c, chisq in zip(markers, counts, hwe_chisq):
            fields = [
                marker,
                str(c.n_hom_ref),
                str(c.n_het),
                str(c.n_hom_alt),
                str(c.n_missing),
                str(c.n_sample),
                _fmt(c.call_rate),
                _fmt(c.af),
                _fmt(c.ac),
                _fmt(c.hwe),
                _fmt(float(chisq)),
            ]
            f.write("\t".join(fields) + "\n")
    return path
