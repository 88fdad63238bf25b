"""Eigendecomposition of a loaded kinship matrix.

LAPACK's symmetric solver (scipy.linalg.eigh) runs under an explicit BLAS
thread cap. Round-off leaves tiny non-zero eigenvalues on rank-deficient
kinship; those are set to exactly zero so downstream code can count them.
"""

import time
import warnings

import numpy as np
import scipy.linalg
from loguru import logger

from genoprep.core.threading import blas_threads
from genoprep.utils.logging import log_rss_memory

ZERO_EIGENVALUE_TOL = 1e-10


def eigendecompose_kinship(
    K: np.ndarray, threshold: float = ZERO_EIGENVALUE_TOL
) -> tuple[np.ndarray, np.ndarray]:
    """Return (eigenvalues, eigenvectors) of a symmetric kinship matrix.

    Eigenvalues come back in ascending order with |value| < ``threshold``
    replaced by 0.0; eigenvectors are the columns of the second array. ``K``
    itself is left untouched.

    A warning is issued through ``warnings`` when eigenvalues below
    ``-threshold`` remain (K is not positive semi-definite) or when more than
    one eigenvalue is zero (K is rank deficient).

    Raises:
        ValueError: If ``K`` is not a square 2D array.
        numpy.linalg.LinAlgError: If LAPACK does not converge.
    """
    if K.ndim != 2 or K.shape[0] != K.shape[1]:
        raise ValueError(f"Kinship matrix must be square, got shape {K.shape}")

    n = K.shape[0]
    logger.info(f"Eigendecomposing {n:,} x {n:,} kinship matrix")
    log_rss_memory("kinship", "before_eigendecomp")
    started = time.perf_counter()
    with blas_threads():
        eigenvalues, eigenvectors = scipy.linalg.eigh(K, check_finite=False)
    logger.debug(f"eigh finished in {time.perf_counter() - started:.2f}s")
    log_rss_memory("kinship", "after_eigendecomp")

    n_negative = int(np.sum(eigenvalues < -threshold))
    eigenvalues[np.abs(eigenvalues) < threshold] = 0.0
    n_zero = int(np.sum(eigenvalues == 0.0))

    if n_negative:
        warnings.warn(
            f"{n_negative} negative eigenvalue(s): kinship matrix is not "
            "positive semi-definite",
            stacklevel=2,
        )
    if n_zero > 1:
        warnings.warn(
            f"{n_zero} eigenvalues are zero: kinship matrix is rank-deficient",
            stacklevel=2,
        )
    return eigenvalues, eigenvectors
