"""Saved kinship eigendecompositions.

A decomposition is a pair of plain-text files sharing a prefix:
``<prefix>.eigenD.txt`` holds one eigenvalue per line and
``<prefix>.eigenU.txt`` the eigenvector matrix, one tab-separated row per
sample with eigenvectors as columns. Values are written with .10g and
neither file has a header, so files written by GEMMA load unchanged.
"""

from pathlib import Path

import numpy as np


def eigen_paths(prefix: Path) -> tuple[Path, Path]:
    """(eigenvalue file, eigenvector file) for ``prefix``."""
    prefix = Path(prefix)
    return (
        prefix.with_name(f"{prefix.name}.eigenD.txt"),
        prefix.with_name(f"{prefix.name}.eigenU.txt"),
    )


def read_eigenvalues(path: Path) -> np.ndarray:
    return np.loadtxt(path, dtype=np.float64, ndmin=1)


def read_eigenvectors(path: Path) -> np.ndarray:
    return np.loadtxt(path, dtype=np.float64, ndmin=2)


def read_eigen_files(
    prefix: Path, n_samples: int | None = None
) -> tuple[np.ndarray, np.ndarray]:
    """Load a saved decomposition and check that its two halves agree.

    Args:
        prefix: Prefix shared by the .eigenD.txt and .eigenU.txt files.
        n_samples: If given, the decomposition must be for this many samples.

    Returns:
        Tuple of (eigenvalues, eigenvectors).

    Raises:
        FileNotFoundError: If either file is absent.
        ValueError: If the eigenvector matrix is not square, its size does
            not match the eigenvalue count, or the count is not ``n_samples``.
    """
    values_path, vectors_path = eigen_paths(prefix)
    missing = [str(p) for p in (values_path, vectors_path) if not p.exists()]
    if missing:
        raise FileNotFoundError(f"Eigendecomposition file(s) not found: {missing}")

    eigenvalues = read_eigenvalues(values_path)
    eigenvectors = read_eigenvectors(vectors_path)

    if eigenvectors.shape[0] != eigenvectors.shape[1]:
        raise ValueError(
            f"{vectors_path} holds a {eigenvectors.shape} matrix; "
            "eigenvectors must be square"
        )
    if eigenvalues.size != eigenvectors.shape[0]:
        raise ValueError(
            f"{values_path} has {eigenvalues.size} eigenvalues, which does not "
            f"match the {eigenvectors.shape[0]} x {eigenvectors.shape[1]} "
            f"eigenvectors in {vectors_path}"
        )
    if n_samples is not None and eigenvalues.size != n_samples:
        raise ValueError(
            f"Eigendecomposition covers {eigenvalues.size} samples but "
            f"n_samples={n_samples}"
        )
    return eigenvalues, eigenvectors


def write_eigen_files(
    eigenvalues: np.ndarray, eigenvectors: np.ndarray, prefix: Path
) -> tuple[Path, Path]:
    """Save a decomposition under ``prefix``, creating parent directories.

    Returns:
        Tuple of (eigenvalue path, eigenvector path).
    """
    values_path, vectors_path = eigen_paths(prefix)
    values_path.parent.mkdir(parents=True, exist_ok=True)
    values_path.write_text("".join(f"{v:.10g}\n" for v in eigenvalues))
    with open(vectors_path, "w") as f:
        for row in eigenvectors:
            f.write("\t".join(f"{v:.10g}" for v in row) + "\n")
    return values_path, vectors_path
