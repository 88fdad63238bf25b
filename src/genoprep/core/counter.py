"""Per-marker genotype counting and Hardy-Weinberg statistics.

GenotypeCounter accumulates one marker's genotype calls or dosages sample by
sample. Dosages are bucketed with half-open thresholds so that hard calls and
imputed dosages share one code path:

    value < 2/3           -> homozygous reference
    2/3 <= value < 4/3    -> heterozygous
    4/3 <= value <= 2     -> homozygous alternate
    value > 2             -> missing

Negative values (the missing sentinel) are counted as missing AND, because the
threshold rule is applied unconditionally, as homozygous reference with their
value added to the allele sum. Downstream call rate, allele frequency and HWE
figures have always been computed with this double count, so it is kept as
part of the counter's contract.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

HET_THRESHOLD = 2.0 / 3.0
HOM_ALT_THRESHOLD = 4.0 / 3.0
MAX_DOSAGE = 2.0


def hwe_exact_pvalue(n_hom_ref: int, n_het: int, n_hom_alt: int) -> float:
    """Exact Hardy-Weinberg equilibrium test p-value.

    Implements the exact test of Wigginton, Cutler & Abecasis (2005, AJHG
    76:887): the distribution of heterozygote counts conditional on the
    minor allele count is built by recurrence outward from its mode, and the
    p-value is the total probability of configurations no more likely than
    the observed one.

    Args:
        n_hom_ref: Homozygous reference count.
        n_het: Heterozygous count.
        n_hom_alt: Homozygous alternate count.

    Returns:
        P-value in [0, 1]. 1.0 when there are no genotypes.

    Raises:
        ValueError: If any count is negative or not integral.
    """
    counts = (n_hom_ref, n_het, n_hom_alt)
    for count in counts:
        if count < 0 or int(count) != count:
            raise ValueError(
                f"HWE genotype counts must be non-negative integers, got {counts}"
            )
    n_hom_ref, n_het, n_hom_alt = (int(c) for c in counts)

    obs_homr = min(n_hom_ref, n_hom_alt)
    obs_homc = max(n_hom_ref, n_hom_alt)
    rare_copies = 2 * obs_homr + n_het
    n_genotypes = n_het + obs_homc + obs_homr
    if n_genotypes == 0:
        return 1.0

    het_probs = np.zeros(rare_copies + 1, dtype=np.float64)

    # Start at the most likely het count; parity must match rare_copies
    mid = rare_copies * (2 * n_genotypes - rare_copies) // (2 * n_genotypes)
    if mid % 2 != rare_copies % 2:
        mid += 1

    het_probs[mid] = 1.0
    total = 1.0

    curr_hets = mid
    curr_homr = (rare_copies - mid) // 2
    curr_homc = n_genotypes - curr_hets - curr_homr
    while curr_hets > 1:
        het_probs[curr_hets - 2] = (
            het_probs[curr_hets]
            * curr_hets
            * (curr_hets - 1.0)
            / (4.0 * (curr_homr + 1.0) * (curr_homc + 1.0))
        )
        total += het_probs[curr_hets - 2]
        curr_homr += 1
        curr_homc += 1
        curr_hets -= 2

    curr_hets = mid
    curr_homr = (rare_copies - mid) // 2
    curr_homc = n_genotypes - curr_hets - curr_homr
    while curr_hets <= rare_copies - 2:
        het_probs[curr_hets + 2] = (
            het_probs[curr_hets]
            * 4.0
            * curr_homr
            * curr_homc
            / ((curr_hets + 2.0) * (curr_hets + 1.0))
        )
        total += het_probs[curr_hets + 2]
        curr_homr -= 1
        curr_homc -= 1
        curr_hets += 2

    het_probs /= total
    p_value = het_probs[het_probs <= het_probs[n_het]].sum()
    return float(min(1.0, p_value))


@dataclass(frozen=True)
class GenotypeCounts:
    """Snapshot of a GenotypeCounter with its derived statistics."""

    n_hom_ref: int
    n_het: int
    n_hom_alt: int
    n_missing: int
    n_sample: int
    call_rate: float
    af: float
    ac: float
    hwe: float


class GenotypeCounter:
    """Streaming counter of genotype classes for a single marker.

    Example:
        >>> counter = GenotypeCounter()
        >>> counter.add_many([0, 1, 2, -1])
        >>> counter.n_hom_ref, counter.n_missing, counter.call_rate
        (2, 1, 0.75)
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.n_hom_ref = 0
        self.n_het = 0
        self.n_hom_alt = 0
        self.n_missing = 0
        self.n_sample = 0
        self.sum_ac = 0.0

    def add(self, value: float) -> None:
        """Classify one call or dosage. See the module docstring for buckets."""
        g = float(value)
        if g < 0:
            self.n_missing += 1
        if g < HET_THRESHOLD:
            self.n_hom_ref += 1
            self.sum_ac += g
        elif g < HOM_ALT_THRESHOLD:
            self.n_het += 1
            self.sum_ac += g
        elif g <= MAX_DOSAGE:
            self.n_hom_alt += 1
            self.sum_ac += g
        else:
            self.n_missing += 1
        self.n_sample += 1

    def add_many(self, values: Iterable[float]) -> None:
        for value in values:
            self.add(value)

    @property
    def call_rate(self) -> float:
        """1 - missing / samples, or 0.0 before anything was added."""
        if not self.n_sample:
            return 0.0
        return 1.0 - self.n_missing / self.n_sample

    @property
    def af(self) -> float:
        """Alternate allele frequency, or -1.0 before anything was added."""
        if not self.n_sample:
            return -1.0
        return 0.5 * self.sum_ac / self.n_sample

    @property
    def ac(self) -> float:
        """Total alternate allele count."""
        return self.sum_ac

    def hwe(self) -> float:
        """Exact HWE p-value from the three genotype-class counts."""
        return hwe_exact_pvalue(self.n_hom_ref, self.n_het, self.n_hom_alt)

    def summary(self) -> GenotypeCounts:
        return GenotypeCounts(
            n_hom_ref=self.n_hom_ref,
            n_het=self.n_het,
            n_hom_alt=self.n_hom_alt,
            n_missing=self.n_missing,
            n_sample=self.n_sample,
            call_rate=self.call_rate,
            af=self.af,
            ac=self.ac,
            hwe=self.hwe(),
        )

    def __repr__(self) -> str:
        return (
            f"GenotypeCounter(hom_ref={self.n_hom_ref}, het={self.n_het}, "
            f"hom_alt={self.n_hom_alt}, missing={self.n_missing}, "
            f"n={self.n_sample})"
        )
