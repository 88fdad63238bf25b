"""Data consolidation before association testing.

Genotype, phenotype and covariate matrices arrive ordered by the same
samples. Consolidation resolves missing genotypes with one strategy and
returns the three matrices still row-aligned, together with the sample labels
that survived and an untouched copy of the original genotype:

- MeanImpute: missing calls -> 2p, rows unchanged
- HweImpute: missing calls -> 0/1/2 drawn from HWE frequencies, rows unchanged
- Drop: samples with any missing call removed from every matrix and the
  label list, survivors kept in their original order

``consolidate_data`` is the pure transform and raises ValueError on bad
input. ``DataConsolidator`` holds the result of the last successful run and
adds the queries made on it during association testing: recoded genotypes,
per-stratum genotype counts, sex-chromosome lookups, pre-regression checks
and kinship. Its methods report problems through the injected logger and
integer result codes (0 = success) rather than raising.

Example:
    >>> dc = DataConsolidator(strategy=Drop())
    >>> dc.set_phenotype_name(["s1", "s2", "s3"])
    >>> geno = np.array([[0.0, 1.0], [-1.0, 2.0], [1.0, 1.0]])
    >>> dc.consolidate(np.array([[0.1], [0.2], [0.3]]), None, geno)
    0
    >>> dc.row_labels
    ['s1', 's3']
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

import numpy as np
from loguru import logger as default_logger

from genoprep.core.checks import (
    check_colinearity,
    check_predictor,
    pre_regression_check,
)
from genoprep.core.counter import GenotypeCounter
from genoprep.core.imputation import (
    complete_rows,
    impute_genotype_by_frequency,
    impute_genotype_to_mean,
)
from genoprep.core.matrix import LabeledMatrix, as_labeled
from genoprep.core.recode import (
    code_dominant,
    code_recessive,
    flip_to_minor_polymorphic,
)
from genoprep.core.strategy import (
    Drop,
    HweImpute,
    MeanImpute,
    Strategy,
    Unset,
    parse_strategy,
)
from genoprep.kinship.holder import KinshipHolder, KinshipKind
from genoprep.utils.logging import WarnOnce

# consolidate() result codes
CONSOLIDATE_OK = 0
CONSOLIDATE_UNSET = -1
CONSOLIDATE_ROW_MISMATCH = -2
CONSOLIDATE_LABEL_MISMATCH = -3

# count_raw_genotype() result codes
COUNT_BAD_COLUMN = -1
COUNT_BAD_STRATUM = -2
COUNT_SEX_SIZE_MISMATCH = -3
COUNT_NO_PHENOTYPE = -4

INVALID_KINSHIP_KIND = -1
INVALID_KINSHIP_SAMPLES = -1


class Sex(IntEnum):
    """PLINK sex codes; ANY disables the filter."""

    ANY = -1
    MALE = 1
    FEMALE = 2


class CaseControl(IntEnum):
    """PLINK affection codes; ANY disables the filter.

    Phenotypes are stored 0 (control) / 1 (case), so a sample matches when
    ``int(phenotype + 1)`` equals the code.
    """

    ANY = -1
    CONTROL = 1
    CASE = 2


@dataclass
class ConsolidatedData:
    """Row-aligned result of one consolidation.

    Attributes:
        genotype: Genotype after missing-data handling.
        phenotype: Phenotype rows matching ``genotype``.
        covariate: Covariate rows matching ``genotype``.
        row_labels: Sample labels matching ``genotype`` rows.
        original_genotype: Genotype exactly as supplied (pre-imputation,
            pre-drop), an independent copy.
        original_phenotype: Phenotype exactly as supplied, rows matching
            ``original_genotype``.
        phenotype_updated: Phenotype differs from the previous consolidation.
        covariate_updated: Covariate differs from the previous consolidation.
    """

    genotype: LabeledMatrix
    phenotype: LabeledMatrix
    covariate: LabeledMatrix
    row_labels: list[str]
    original_genotype: LabeledMatrix
    original_phenotype: LabeledMatrix
    phenotype_updated: bool = True
    covariate_updated: bool = True

    @property
    def n_samples(self) -> int:
        return self.genotype.n_rows

    @property
    def n_dropped(self) -> int:
        return self.original_genotype.n_rows - self.genotype.n_rows


def _alignment_error(
    pheno: LabeledMatrix,
    cov: LabeledMatrix,
    geno: LabeledMatrix,
    row_labels: Sequence[str] | None,
) -> tuple[int, str] | None:
    n = geno.n_rows
    if pheno.n_rows != n or cov.n_rows != n:
        return CONSOLIDATE_ROW_MISMATCH, (
            f"Row counts differ: genotype={n}, phenotype={pheno.n_rows}, "
            f"covariate={cov.n_rows}"
        )
    if row_labels is not None and len(row_labels) != n:
        return CONSOLIDATE_LABEL_MISMATCH, (
            f"{len(row_labels)} sample labels given for {n} genotype rows"
        )
    return None


def consolidate_data(
    pheno: LabeledMatrix | np.ndarray | None,
    cov: LabeledMatrix | np.ndarray | None,
    geno: LabeledMatrix | np.ndarray,
    strategy: Strategy,
    row_labels: Sequence[str] | None = None,
    previous: ConsolidatedData | None = None,
) -> ConsolidatedData:
    """Resolve missing genotypes and return row-aligned copies.

    Inputs are never modified. Column labels of every input are carried over
    to the outputs whatever the strategy.

    Args:
        pheno: Phenotype (n_samples, n_pheno). None means no phenotype column.
        cov: Covariates (n_samples, n_cov). None means no covariate column.
        geno: Genotype (n_samples, n_markers), negative = missing.
        strategy: Missing-data strategy.
        row_labels: Sample labels; positional labels "0", "1", ... if None.
        previous: Result of the previous consolidation, used to decide the
            phenotype/covariate updated flags. With no previous result both
            flags are True.

    Returns:
        ConsolidatedData.

    Raises:
        ValueError: If the strategy is unset or unknown, or row counts of
            the inputs (or the label count) disagree.
    """
    geno = as_labeled(geno)
    pheno = as_labeled(pheno, geno.n_rows)
    cov = as_labeled(cov, geno.n_rows)

    if strategy is None or isinstance(strategy, Unset):
        raise ValueError("Uninitialized consolidation method to handle missing data")
    problem = _alignment_error(pheno, cov, geno, row_labels)
    if problem is not None:
        raise ValueError(problem[1])

    labels = (
        [str(label) for label in row_labels]
        if row_labels is not None
        else [str(i) for i in range(geno.n_rows)]
    )
    original_genotype = geno.copy()
    original_phenotype = pheno.copy()

    if isinstance(strategy, MeanImpute):
        genotype = LabeledMatrix(
            impute_genotype_to_mean(geno.values), list(geno.col_labels)
        )
        phenotype, covariate = pheno.copy(), cov.copy()
    elif isinstance(strategy, HweImpute):
        genotype = LabeledMatrix(
            impute_genotype_by_frequency(geno.values, strategy.rng),
            list(geno.col_labels),
        )
        phenotype, covariate = pheno.copy(), cov.copy()
    elif isinstance(strategy, Drop):
        keep = complete_rows(geno.values)
        genotype = geno.take_rows(keep)
        phenotype = pheno.take_rows(keep)
        covariate = cov.take_rows(keep)
        labels = [label for label, kept in zip(labels, keep) if kept]
    else:
        raise ValueError(f"Unknown consolidation strategy: {strategy!r}")

    return ConsolidatedData(
        genotype=genotype,
        phenotype=phenotype,
        covariate=covariate,
        row_labels=labels,
        original_genotype=original_genotype,
        original_phenotype=original_phenotype,
        phenotype_updated=previous is None or previous.phenotype != phenotype,
        covariate_updated=previous is None or previous.covariate != covariate,
    )


class DataConsolidator:
    """Holds one consolidated dataset and answers queries on it.

    Args:
        strategy: Missing-data strategy, or its code/name. Unset by default.
        logger: Error/warning sink; loguru's logger by default.
        par_region: Region lookup with ``is_hemi_region(chrom, pos)``.
    """

    def __init__(
        self,
        strategy: Strategy | int | str | None = None,
        logger=default_logger,
        par_region=None,
    ) -> None:
        self.logger = logger
        self._strategy: Strategy = Unset()
        if strategy is not None:
            self.set_strategy(strategy)
        self.par_region = par_region
        self._data: ConsolidatedData | None = None
        self._names: list[str] | None = None
        self._sex: np.ndarray | None = None
        self._weight = np.zeros(0, dtype=np.float64)
        self._kinship = {
            kind: KinshipHolder(kind, logger=logger) for kind in KinshipKind
        }
        self._dominant_warning = WarnOnce(
            "Dominant coding only uses the first variant", logger=logger
        )
        self._recessive_warning = WarnOnce(
            "Recessive coding only uses the first variant", logger=logger
        )

    # -- strategy and consolidation -------------------------------------------------

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    def set_strategy(
        self, strategy: Strategy | int | str, seed: int | None = None
    ) -> None:
        """Select the strategy by instance, integer code or name.

        Raises:
            ValueError: If a code or name is not recognised.
        """
        if isinstance(strategy, (Unset, MeanImpute, HweImpute, Drop)):
            self._strategy = strategy
        else:
            self._strategy = parse_strategy(strategy, seed=seed)

    def set_phenotype_name(self, names: Sequence[str]) -> None:
        """Set the sample labels of the rows about to be consolidated."""
        self._names = [str(name) for name in names]

    def consolidate(
        self,
        pheno: LabeledMatrix | np.ndarray | None,
        cov: LabeledMatrix | np.ndarray | None,
        geno: LabeledMatrix | np.ndarray,
    ) -> int:
        """Consolidate a (phenotype, covariate, genotype) triple.

        On failure the error is logged and the previous result is kept.

        Returns:
            0 on success; -1 if no strategy is set; -2 if row counts differ;
            -3 if the sample labels do not match the genotype rows.
        """
        if isinstance(self._strategy, Unset):
            self.logger.error(
                "Uninitialized consolidation method to handle missing data!"
            )
            return CONSOLIDATE_UNSET

        geno_m = as_labeled(geno)
        pheno_m = as_labeled(pheno, geno_m.n_rows)
        cov_m = as_labeled(cov, geno_m.n_rows)
        problem = _alignment_error(pheno_m, cov_m, geno_m, self._names)
        if problem is not None:
            code, message = problem
            self.logger.error(message)
            return code

        self._data = consolidate_data(
            pheno_m,
            cov_m,
            geno_m,
            self._strategy,
            row_labels=self._names,
            previous=self._data,
        )
        if self._data.n_dropped:
            self.logger.info(
                f"Dropped {self._data.n_dropped} of "
                f"{self._data.original_genotype.n_rows} samples with missing genotypes"
            )
        return CONSOLIDATE_OK

    @property
    def data(self) -> ConsolidatedData | None:
        return self._data

    @property
    def genotype(self) -> LabeledMatrix:
        return self._data.genotype if self._data else LabeledMatrix()

    @property
    def phenotype(self) -> LabeledMatrix:
        return self._data.phenotype if self._data else LabeledMatrix()

    @property
    def covariate(self) -> LabeledMatrix:
        return self._data.covariate if self._data else LabeledMatrix()

    @property
    def original_genotype(self) -> LabeledMatrix:
        return self._data.original_genotype if self._data else LabeledMatrix()

    @property
    def row_labels(self) -> list[str]:
        if self._data is not None:
            return list(self._data.row_labels)
        return list(self._names or [])

    @property
    def phenotype_updated(self) -> bool:
        return bool(self._data and self._data.phenotype_updated)

    @property
    def covariate_updated(self) -> bool:
        return bool(self._data and self._data.covariate_updated)

    @property
    def weight(self) -> np.ndarray:
        """Per-marker weights (empty unless set)."""
        return self._weight

    def set_weight(self, weight: Sequence[float] | np.ndarray) -> None:
        self._weight = np.asarray(weight, dtype=np.float64).ravel()

    # -- recoding ------------------------------------------------------------------

    def flipped_to_minor_polymorphic_genotype(self) -> LabeledMatrix:
        """Consolidated genotype as 2 - g with constant markers removed."""
        return flip_to_minor_polymorphic(self.genotype)

    def _code_binary(self, coder, warning: WarnOnce) -> LabeledMatrix | None:
        if self._data is None:
            self.logger.error("Genotype coding requested before consolidation")
            return None
        warning.warn_if(self._data.genotype.n_cols != 1)
        try:
            return coder(
                self._data.original_genotype, self._data.genotype, self._strategy
            )
        except ValueError as e:
            self.logger.error(str(e))
            return None

    def code_genotype_for_dominant_model(self) -> LabeledMatrix | None:
        """First marker coded 1 if genotype > 0.5 else 0; None on error."""
        return self._code_binary(code_dominant, self._dominant_warning)

    def code_genotype_for_recessive_model(self) -> LabeledMatrix | None:
        """First marker coded 1 if genotype > 1.5 else 0; None on error."""
        return self._code_binary(code_recessive, self._recessive_warning)

    # -- raw genotype counting -------------------------------------------------------

    def set_sex(self, sex: Sequence[int] | np.ndarray | None) -> None:
        """Sex per original genotype row (1 = male, 2 = female, other = unknown)."""
        self._sex = None if sex is None else np.asarray(sex).astype(int).ravel()

    def count_raw_genotype(
        self,
        column: int,
        counter: GenotypeCounter,
        sex: int = Sex.ANY,
        phenotype: int = CaseControl.ANY,
    ) -> int:
        """Add one marker's pre-consolidation calls to ``counter``.

        Only rows matching the sex and case/control filters are added. Rows
        are those of the original genotype, so samples removed by Drop are
        still counted.

        Returns:
            0 on success; -1 for an invalid column; -2 for an invalid sex or
            phenotype code; -3 if the sex vector does not match the sample
            count; -4 if a phenotype filter is requested without phenotype.
        """
        original = self.original_genotype
        if column < 0 or column >= original.n_cols:
            return COUNT_BAD_COLUMN
        keep = self._stratum_rows(sex, phenotype)
        if isinstance(keep, int):
            return keep
        counter.add_many(original.values[keep, column])
        return 0

    def raw_genotype_for_stratum(
        self, sex: int = Sex.ANY, phenotype: int = CaseControl.ANY
    ) -> LabeledMatrix | None:
        """Pre-consolidation genotype rows of one stratum; None on a bad filter."""
        if self._data is None:
            return None
        keep = self._stratum_rows(sex, phenotype)
        if isinstance(keep, int):
            return None
        return self.original_genotype.take_rows(np.flatnonzero(keep))

    def _stratum_rows(self, sex: int, phenotype: int) -> np.ndarray | int:
        """Row mask over the original genotype, or a negative count code."""
        original = self.original_genotype
        if sex > 0 and sex not in (Sex.MALE, Sex.FEMALE):
            return COUNT_BAD_STRATUM
        if sex > 0 and (self._sex is None or self._sex.size != original.n_rows):
            return COUNT_SEX_SIZE_MISMATCH
        if phenotype > 0 and phenotype not in (CaseControl.CONTROL, CaseControl.CASE):
            return COUNT_BAD_STRATUM
        if phenotype > 0 and self._data.original_phenotype.n_cols == 0:
            return COUNT_NO_PHENOTYPE

        keep = np.ones(original.n_rows, dtype=bool)
        if sex > 0:
            keep &= self._sex == int(sex)
        if phenotype > 0:
            first = self._data.original_phenotype.values[:, 0]
            status = np.where(np.isnan(first), -1.0, first + 1).astype(int)
            keep &= status == int(phenotype)
        return keep

    def count_raw_genotype_from_case(
        self, column: int, counter: GenotypeCounter
    ) -> int:
        return self.count_raw_genotype(column, counter, phenotype=CaseControl.CASE)

    def count_raw_genotype_from_control(
        self, column: int, counter: GenotypeCounter
    ) -> int:
        return self.count_raw_genotype(column, counter, phenotype=CaseControl.CONTROL)

    def count_raw_genotype_from_male(
        self, column: int, counter: GenotypeCounter
    ) -> int:
        return self.count_raw_genotype(column, counter, sex=Sex.MALE)

    def count_raw_genotype_from_female(
        self, column: int, counter: GenotypeCounter
    ) -> int:
        return self.count_raw_genotype(column, counter, sex=Sex.FEMALE)

    def count_raw_genotype_from_female_case(
        self, column: int, counter: GenotypeCounter
    ) -> int:
        return self.count_raw_genotype(
            column, counter, sex=Sex.FEMALE, phenotype=CaseControl.CASE
        )

    def count_raw_genotype_from_female_control(
        self, column: int, counter: GenotypeCounter
    ) -> int:
        return self.count_raw_genotype(
            column, counter, sex=Sex.FEMALE, phenotype=CaseControl.CONTROL
        )

    # -- sex chromosomes -----------------------------------------------------------

    def set_par_region(self, par_region) -> None:
        self.par_region = par_region

    def is_hemi_region(self, column: int) -> bool:
        """True if marker ``column`` (labelled ``chrom:pos``) is hemizygous.

        Labels without a colon are never hemizygous. An invalid column, an
        unparsable position or a missing region lookup is logged and gives
        False.
        """
        genotype = self.genotype
        if column < 0 or column >= genotype.n_cols:
            self.logger.error(f"Invalid marker column {column} for hemizygous check")
            return False
        if self.par_region is None:
            self.logger.error("No pseudo-autosomal region lookup set")
            return False
        label = genotype.get_column_label(column)
        chrom, sep, pos = label.partition(":")
        if not sep:
            return False
        try:
            position = int(pos)
        except ValueError:
            self.logger.error(f"Cannot parse position from marker label {label!r}")
            return False
        return bool(self.par_region.is_hemi_region(chrom, position))

    # -- pre-regression checks -------------------------------------------------------

    def pre_regression_check(self, pheno, cov) -> int:
        return pre_regression_check(_values(pheno), _values(cov), logger=self.logger)

    def check_colinearity(self, cov) -> int:
        return check_colinearity(_values(cov), logger=self.logger)

    def check_predictor(self, pheno, cov) -> int:
        return check_predictor(_values(pheno), _values(cov), logger=self.logger)

    # -- kinship -------------------------------------------------------------------

    def _holder(self, kind: int) -> KinshipHolder | None:
        try:
            return self._kinship[KinshipKind(kind)]
        except ValueError:
            self.logger.error(f"Invalid kinship kind: {kind}")
            return None

    def set_kinship_sample(self, sample_ids: Sequence[str]) -> int:
        """Fix the sample order that loaded kinship matrices must follow.

        Returns:
            0 on success, -1 for an empty or duplicated sample list.
        """
        ids = [str(sid) for sid in sample_ids]
        if not ids or len(set(ids)) != len(ids):
            self.logger.error("Kinship samples must be non-empty and unique")
            return INVALID_KINSHIP_SAMPLES
        for holder in self._kinship.values():
            holder.set_samples(ids)
        return 0

    def set_kinship_file(self, kind: int, path: Path | str) -> int:
        holder = self._holder(kind)
        if holder is None:
            return INVALID_KINSHIP_KIND
        holder.set_file(path)
        return 0

    def set_kinship_eigen_file(self, kind: int, path: Path | str) -> int:
        holder = self._holder(kind)
        if holder is None:
            return INVALID_KINSHIP_KIND
        holder.set_eigen_file(path)
        return 0

    def load_kinship(self, kind: int) -> int:
        """Load the registered kinship for ``kind``.

        Returns:
            0 on success; -1 for an invalid kind; otherwise the negative code
            from KinshipHolder.load (no source, no samples, load failure).
        """
        holder = self._holder(kind)
        if holder is None:
            return INVALID_KINSHIP_KIND
        return holder.load()

    def get_kinship_for_auto(self) -> np.ndarray | None:
        return self._kinship[KinshipKind.AUTO].K

    def get_kinship_u_for_auto(self) -> np.ndarray | None:
        return self._kinship[KinshipKind.AUTO].U

    def get_kinship_s_for_auto(self) -> np.ndarray | None:
        return self._kinship[KinshipKind.AUTO].S

    def has_kinship_for_auto(self) -> bool:
        return self._kinship[KinshipKind.AUTO].is_loaded

    def get_kinship_for_x(self) -> np.ndarray | None:
        return self._kinship[KinshipKind.X].K

    def get_kinship_u_for_x(self) -> np.ndarray | None:
        return self._kinship[KinshipKind.X].U

    def get_kinship_s_for_x(self) -> np.ndarray | None:
        return self._kinship[KinshipKind.X].S

    def has_kinship_for_x(self) -> bool:
        return self._kinship[KinshipKind.X].is_loaded

    def has_kinship(self) -> bool:
        return self.has_kinship_for_auto() or self.has_kinship_for_x()


def _values(matrix) -> np.ndarray:
    if matrix is None:
        return np.zeros((0, 0))
    if isinstance(matrix, LabeledMatrix):
        return matrix.values
    return np.asarray(matrix, dtype=np.float64)
