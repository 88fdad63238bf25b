"""Genotype recoding transforms.

- Minor-allele flip: 2 - g, so that a genotype counts reference alleles.
- Monomorphic filter: drop markers with one value across all samples.
- Dominant / recessive coding of a single marker as 0/1 carrier indicators.

Every function returns a new LabeledMatrix; column labels follow the kept
columns.
"""

from __future__ import annotations

import numpy as np

from genoprep.core.imputation import complete_markers
from genoprep.core.matrix import LabeledMatrix
from genoprep.core.snp_filter import missing_mask, monomorphic_mask
from genoprep.core.strategy import Drop, Strategy, is_imputing

DOMINANT_THRESHOLD = 0.5
RECESSIVE_THRESHOLD = 1.5


def convert_to_minor_allele_count(genotype: LabeledMatrix) -> LabeledMatrix:
    """Flip alternate allele counts to reference allele counts (2 - g).

    A homozygous alternate call (2) becomes 0, a homozygous reference call
    (0) becomes 2.
    """
    return LabeledMatrix(2.0 - genotype.values, list(genotype.col_labels))


def is_monomorphic_marker(genotype: LabeledMatrix, col: int) -> bool:
    """True if every sample carries the same value at marker ``col``."""
    if col < 0 or col >= genotype.n_cols:
        raise IndexError(f"Marker column {col} out of range for {genotype.n_cols}")
    return bool(monomorphic_mask(genotype.values[:, col : col + 1])[0])


def remove_monomorphic_markers(genotype: LabeledMatrix) -> LabeledMatrix:
    """Drop constant columns, keeping the others in their original order."""
    return genotype.take_columns(~monomorphic_mask(genotype.values))


def remove_missing_markers(genotype: LabeledMatrix) -> LabeledMatrix:
    """Drop markers that have at least one missing call."""
    return genotype.take_columns(complete_markers(genotype.values))


def flip_to_minor_polymorphic(genotype: LabeledMatrix) -> LabeledMatrix:
    """Minor-allele flip followed by the monomorphic filter."""
    return remove_monomorphic_markers(convert_to_minor_allele_count(genotype))


def code_binary_genotype(
    original: LabeledMatrix,
    consolidated: LabeledMatrix,
    strategy: Strategy,
    threshold: float,
) -> LabeledMatrix:
    """Recode the first marker as 1 where genotype > threshold, else 0.

    Imputing strategies recode the pre-imputation genotype: originally missing
    entries receive the mean of the recoded observed entries (0 when no
    entry was observed) rather than a hard 0/1. Under Drop the consolidated
    genotype has no missing calls and is recoded directly.

    Args:
        original: Genotype before imputation (rows match ``consolidated``
            for imputing strategies).
        consolidated: Genotype after consolidation.
        strategy: Active consolidation strategy.
        threshold: 0.5 for the dominant model, 1.5 for the recessive model.

    Returns:
        (n_samples, 1) matrix labelled with the first marker's label.

    Raises:
        ValueError: If there is no marker, or the strategy is unset.
    """
    if consolidated.n_cols == 0:
        raise ValueError("No marker available for binary genotype coding")
    label = [consolidated.get_column_label(0)]

    if is_imputing(strategy):
        g = original.values[:, 0]
        missing = missing_mask(g)
        coded = (g > threshold).astype(np.float64)
        n_observed = int((~missing).sum())
        fill = coded[~missing].sum() / n_observed if n_observed else 0.0
        coded[missing] = fill
        return LabeledMatrix(coded.reshape(-1, 1), label)

    if isinstance(strategy, Drop):
        g = consolidated.values[:, 0]
        return LabeledMatrix((g > threshold).astype(np.float64).reshape(-1, 1), label)

    raise ValueError("Binary genotype coding needs a consolidation strategy")


def code_dominant(
    original: LabeledMatrix, consolidated: LabeledMatrix, strategy: Strategy
) -> LabeledMatrix:
    return code_binary_genotype(original, consolidated, strategy, DOMINANT_THRESHOLD)


def code_recessive(
    original: LabeledMatrix, consolidated: LabeledMatrix, strategy: Strategy
) -> LabeledMatrix:
    return code_binary_genotype(original, consolidated, strategy, RECESSIVE_THRESHOLD)
