"""Kinship matrices as GEMMA-style text files.

Each line is one matrix row, whitespace separated, with no row labels. The
file may start with a line of sample IDs; when it does, a requested sample
order can be pulled out of a larger matrix.
"""

from collections.abc import Sequence
from pathlib import Path

import numpy as np


def _split_header(path: Path) -> tuple[list[str] | None, list[str]]:
    """Split a kinship file into (sample-ID header or None, matrix lines).

    The first line is a header when any token is non-numeric, or when the
    file holds one more row than that line has columns. The shape rule is
    what recognises numeric sample IDs.
    """
    with open(path) as f:
        lines = [line for line in f if line.strip()]
    if not lines:
        raise ValueError(f"Kinship matrix file is empty: {path}")

    first = lines[0].split()
    try:
        [float(token) for token in first]
    except ValueError:
        return first, lines[1:]
    if len(lines) == len(first) + 1:
        return first, lines[1:]
    return None, lines


def _select_samples(
    K: np.ndarray, header: list[str], sample_ids: Sequence[str], path: Path
) -> np.ndarray:
    position = {sid: i for i, sid in enumerate(header)}
    absent = [sid for sid in sample_ids if sid not in position]
    if absent:
        raise ValueError(
            f"{len(absent)} sample(s) missing from kinship file "
            f"{path}, e.g. {absent[:3]}"
        )
    idx = np.array([position[sid] for sid in sample_ids], dtype=np.intp)
    return K[np.ix_(idx, idx)]


def read_kinship_matrix(
    path: Path,
    n_samples: int | None = None,
    sample_ids: Sequence[str] | None = None,
) -> np.ndarray:
    """Load a square, symmetric kinship matrix.

    Args:
        path: Matrix file, e.g. a GEMMA ``.cXX.txt``.
        n_samples: If given, the (possibly subset) matrix must be this size.
        sample_ids: Requested sample order. Honoured only when the file
            carries an ID header; headerless rows are assumed to already be
            in this order.

    Returns:
        The n x n kinship matrix.

    Raises:
        ValueError: If the file is empty, the matrix is not square or not
            symmetric, the header length disagrees with the matrix, a
            requested sample is absent, or the size is not ``n_samples``.
    """
    path = Path(path)
    header, rows = _split_header(path)
    if not rows:
        raise ValueError(f"Kinship matrix file {path} has a header but no rows")
    K = np.loadtxt(rows, dtype=np.float64, ndmin=2)

    n_rows, n_cols = K.shape
    if n_rows != n_cols:
        raise ValueError(f"Kinship matrix in {path} is {n_rows} x {n_cols}, not square")

    if header is not None:
        if len(header) != n_rows:
            raise ValueError(
                f"Kinship header lists {len(header)} samples but matrix is "
                f"{n_rows} x {n_cols}"
            )
        if sample_ids is not None:
            K = _select_samples(K, header, sample_ids, path)

    if n_samples is not None and K.shape[0] != n_samples:
        raise ValueError(
            f"Kinship matrix has {K.shape[0]} samples, which does not match "
            f"n_samples={n_samples}"
        )
    if not np.allclose(K, K.T, rtol=1e-10):
        raise ValueError(f"Kinship matrix in {path} is not symmetric")
    return K


def write_kinship_matrix(
    K: np.ndarray, path: Path, sample_ids: Sequence[str] | None = None
) -> None:
    """Save ``K`` tab separated with .10g values, creating parent directories.

    ``sample_ids``, when given, is written first as the header line.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [] if sample_ids is None else ["\t".join(str(s) for s in sample_ids)]
    lines.extend("\t".join(f"{v:.10g}" for v in row) for row in K)
    path.write_text("".join(line + "\n" for line in lines))
