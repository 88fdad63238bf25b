"""Missing genotype handling for consolidation.

Missing calls are negative values. Allele frequency is always estimated from
observed calls only, p = sum(calls) / (2 * n_observed), with p = 0 for a
marker that has no observed call.

- impute_genotype_to_mean: missing -> 2p (continuous dosage)
- impute_genotype_by_frequency: missing -> 0/1/2 drawn from p^2, 2pq, q^2
- complete_rows: rows with no missing marker, for the Drop strategy

All functions return new arrays and leave their input untouched.
"""

from __future__ import annotations

import numpy as np

from genoprep.core.snp_filter import compute_allele_frequencies, missing_mask
from genoprep.core.strategy import UniformSource


def impute_genotype_to_mean(genotypes: np.ndarray) -> np.ndarray:
    """Replace missing calls with the per-marker mean genotype 2p.

    Args:
        genotypes: Genotype matrix (n_samples, n_markers), negative = missing.

    Returns:
        Imputed copy, same shape.

    Example:
        >>> impute_genotype_to_mean(np.array([[0.0], [1.0], [-1.0], [2.0]])).ravel()
        array([0., 1., 1., 2.])
    """
    imputed = np.array(genotypes, dtype=np.float64, copy=True)
    freqs, _ = compute_allele_frequencies(imputed)
    missing = missing_mask(imputed)
    rows, cols = np.nonzero(missing)
    imputed[rows, cols] = 2.0 * freqs[cols]
    return imputed


def hwe_genotype_thresholds(p: float) -> tuple[float, float]:
    """Cumulative HWE thresholds (pRef, pHet) for allele frequency p.

    A uniform draw r maps to genotype 0 if r < pRef, 1 if r < pHet, else 2.
    """
    p_ref = p * p
    p_het = p_ref + 2.0 * p * (1.0 - p)
    return p_ref, p_het


def draw_hwe_genotype(r: float, p_ref: float, p_het: float) -> float:
    if r < p_ref:
        return 0.0
    if r < p_het:
        return 1.0
    return 2.0


def impute_genotype_by_frequency(
    genotypes: np.ndarray, rng: UniformSource
) -> np.ndarray:
    """Replace missing calls with genotypes drawn under Hardy-Weinberg.

    The generator is consumed once per missing cell in a fixed order: markers
    outer, samples inner. A seeded generator therefore reproduces the same
    imputation for the same input.

    Args:
        genotypes: Genotype matrix (n_samples, n_markers), negative = missing.
        rng: Uniform source with a ``random()`` method.

    Returns:
        Imputed copy with hard calls 0/1/2 in previously missing cells.
    """
    imputed = np.array(genotypes, dtype=np.float64, copy=True)
    freqs, _ = compute_allele_frequencies(imputed)
    missing = missing_mask(imputed)
    for col in np.flatnonzero(missing.any(axis=0)):
        p_ref, p_het = hwe_genotype_thresholds(float(freqs[col]))
        for row in np.flatnonzero(missing[:, col]):
            imputed[row, col] = draw_hwe_genotype(float(rng.random()), p_ref, p_het)
    return imputed


def complete_rows(genotypes: np.ndarray) -> np.ndarray:
    """Boolean mask of samples with every marker observed."""
    genotypes = np.asarray(genotypes)
    if genotypes.ndim != 2:
        raise ValueError(f"Genotype matrix must be 2D, got {genotypes.ndim}D")
    return ~missing_mask(genotypes).any(axis=1)


def has_missing_marker(genotypes: np.ndarray, col: int) -> bool:
    """True if marker ``col`` has at least one missing call.

    Raises:
        IndexError: If ``col`` is out of range.
    """
    genotypes = np.asarray(genotypes)
    if col < 0 or col >= genotypes.shape[1]:
        raise IndexError(
            f"Marker column {col} out of range for {genotypes.shape[1]} markers"
        )
    return bool(missing_mask(genotypes[:, col]).any())


def complete_markers(genotypes: np.ndarray) -> np.ndarray:
    """Boolean mask of markers with every sample observed."""
    return ~missing_mask(genotypes).any(axis=0)
