"""Vectorised per-marker statistics.

Column-wise helpers over a genotype matrix (n_samples, n_markers) where a
negative value marks a missing call. Used by the imputation strategies (allele
frequency from observed calls), the recoding transforms (monomorphic
detection) and the ``count`` command (genotype classes, chi-squared HWE).
"""

import numpy as np
from loguru import logger


def missing_mask(genotypes: np.ndarray) -> np.ndarray:
    """Boolean mask of missing cells. Missing is exactly ``value < 0``."""
    return np.asarray(genotypes) < 0


def compute_allele_frequencies(
    genotypes: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Per-marker alternate allele frequency from non-missing calls.

    p = sum(observed calls) / (2 * n_observed). Markers with no observed call
    get p = 0, so an all-missing marker imputes to 0.

    Args:
        genotypes: Genotype matrix (n_samples, n_markers), negative = missing.

    Returns:
        Tuple of (allele_freqs, n_observed), each of length n_markers.
    """
    genotypes = np.asarray(genotypes, dtype=np.float64)
    observed = ~missing_mask(genotypes)
    n_observed = observed.sum(axis=0)
    allele_sums = np.where(observed, genotypes, 0.0).sum(axis=0)
    allele_number = 2.0 * n_observed
    with np.errstate(invalid="ignore", divide="ignore"):
        freqs = np.where(allele_number > 0, allele_sums / allele_number, 0.0)
    return freqs, n_observed


def monomorphic_mask(genotypes: np.ndarray) -> np.ndarray:
    """True for columns whose values are identical across all rows.

    Every value counts, including missing sentinels. A matrix with no rows
    reports every column as monomorphic.
    """
    genotypes = np.asarray(genotypes)
    if genotypes.shape[0] == 0:
        return np.ones(genotypes.shape[1], dtype=bool)
    return np.all(genotypes == genotypes[0:1, :], axis=0)


def count_genotype_classes(
    genotypes: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Count hom-ref / het / hom-alt calls per marker, skipping missing cells.

    Uses the same dosage thresholds as GenotypeCounter (2/3 and 4/3) but,
    unlike the streaming counter, never assigns a missing cell to a class.

    Returns:
        Tuple of (n_hom_ref, n_het, n_hom_alt) integer arrays.
    """
    genotypes = np.asarray(genotypes, dtype=np.float64)
    observed = (genotypes >= 0) & (genotypes <= 2.0)
    n_hom_ref = np.sum(observed & (genotypes < 2.0 / 3.0), axis=0)
    n_het = np.sum(
        observed & (genotypes >= 2.0 / 3.0) & (genotypes < 4.0 / 3.0), axis=0
    )
    n_hom_alt = np.sum(observed & (genotypes >= 4.0 / 3.0), axis=0)
    return n_hom_ref, n_het, n_hom_alt


def compute_hwe_pvalues(
    n_hom_ref: np.ndarray, n_het: np.ndarray, n_hom_alt: np.ndarray
) -> np.ndarray:
    """Chi-squared (1 df) Hardy-Weinberg p-values, one per marker.

    Expected class counts are N p^2, 2 N p q and N q^2 with p the reference
    allele frequency. This large-sample test complements the exact test in
    ``genoprep.core.counter``. Markers whose expected counts include a zero
    (monomorphic or empty markers) get p = 1.0.

    Args:
        n_hom_ref: Homozygous reference counts per marker.
        n_het: Heterozygous counts per marker.
        n_hom_alt: Homozygous alternate counts per marker.

    Returns:
        Array of p-values in [0, 1].
    """
    import jax.numpy as jnp
    import jax.scipy.stats as jax_stats

    observed = np.stack(
        [np.asarray(c, dtype=np.float64) for c in (n_hom_ref, n_het, n_hom_alt)]
    )
    n = observed.sum(axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        p = (2.0 * observed[0] + observed[1]) / (2.0 * n)
        q = 1.0 - p
        expected = np.stack([n * p * p, 2.0 * n * p * q, n * q * q])
        chi_sq = np.sum((observed - expected) ** 2 / expected, axis=0)
    chi_sq = np.where(np.isfinite(chi_sq), chi_sq, 0.0)

    pvalues = np.asarray(jax_stats.chi2.sf(jnp.asarray(chi_sq), df=1))
    n_degenerate = int(np.sum(n == 0))
    if n_degenerate:
        logger.debug(f"{n_degenerate} marker(s) without observed genotypes in HWE")
    return np.clip(pvalues, 0.0, 1.0)
