"""Checks run on phenotype and covariates before model fitting.

Both checks return integer codes (0 = pass) and report problems through the
logger, so a caller can skip or abort a regression without exception
handling.
"""

from __future__ import annotations

import numpy as np
from loguru import logger as default_logger

COLINEAR = -5

PREDICTOR_ROW_MISMATCH = -1
PREDICTOR_TOO_FEW_SAMPLES = -2
PREDICTOR_BAD_PHENOTYPE = -3
PREDICTOR_CONSTANT_COVARIATE = -4


def find_colinear_columns(cov: np.ndarray, tol: float | None = None) -> list[int]:
    """Indices of columns that are linear combinations of earlier columns.

    Columns are added left to right; a column that does not increase the rank
    of the accumulated set is reported. An all-zero column is always reported.

    Args:
        cov: Covariate matrix (n_samples, n_covariates).
        tol: Rank tolerance passed to ``numpy.linalg.matrix_rank``.

    Returns:
        Sorted list of dependent column indices.
    """
    cov = np.asarray(cov, dtype=np.float64)
    dependent: list[int] = []
    kept: list[int] = []
    rank = 0
    for col in range(cov.shape[1]):
        trial = cov[:, kept + [col]]
        trial_rank = int(np.linalg.matrix_rank(trial, tol=tol)) if trial.size else 0
        if trial_rank > rank:
            kept.append(col)
            rank = trial_rank
        else:
            dependent.append(col)
    return dependent


def check_colinearity(cov: np.ndarray, logger=default_logger) -> int:
    """0 when the covariates have full column rank, -5 otherwise."""
    dependent = find_colinear_columns(cov)
    if dependent:
        logger.error(f"Covariate columns {dependent} are linearly dependent")
        return COLINEAR
    return 0


def _is_intercept(column: np.ndarray) -> bool:
    return bool(np.all(column == 1.0))


def check_predictor(pheno: np.ndarray, cov: np.ndarray, logger=default_logger) -> int:
    """Check phenotype and covariates are usable for regression.

    Returns:
        0 on success; -1 if row counts differ; -2 if there are not more
        samples than predictors (covariates plus the tested marker); -3 if
        there is no phenotype column or a phenotype column is constant; -4 if
        a covariate column other than an all-ones intercept is constant.
    """
    pheno = np.asarray(pheno, dtype=np.float64)
    cov = np.asarray(cov, dtype=np.float64)
    if pheno.ndim == 1:
        pheno = pheno.reshape(-1, 1)
    if cov.ndim == 1:
        cov = cov.reshape(-1, 1)

    if cov.shape[1] > 0 and pheno.shape[0] != cov.shape[0]:
        logger.error(
            f"Phenotype has {pheno.shape[0]} rows but covariates have "
            f"{cov.shape[0]}"
        )
        return PREDICTOR_ROW_MISMATCH

    n_samples = pheno.shape[0]
    n_predictors = cov.shape[1] + 1
    if n_samples <= n_predictors:
        logger.error(
            f"Too few samples ({n_samples}) for {n_predictors} predictors"
        )
        return PREDICTOR_TOO_FEW_SAMPLES

    if pheno.shape[1] == 0:
        logger.error("No phenotype column to analyze")
        return PREDICTOR_BAD_PHENOTYPE
    for col in range(pheno.shape[1]):
        if np.var(pheno[:, col]) == 0.0:
            logger.error(f"Phenotype column {col} has no variance")
            return PREDICTOR_BAD_PHENOTYPE

    for col in range(cov.shape[1]):
        column = cov[:, col]
        if np.var(column) == 0.0 and not _is_intercept(column):
            logger.error(f"Covariate column {col} is constant")
            return PREDICTOR_CONSTANT_COVARIATE
    return 0


def pre_regression_check(
    pheno: np.ndarray, cov: np.ndarray, logger=default_logger
) -> int:
    """Colinearity check, then predictor check; first failure code wins."""
    code = check_colinearity(cov, logger=logger)
    if code:
        return code
    return check_predictor(pheno, cov, logger=logger)
