"""Core data structures and algorithms for genoprep.

- matrix: LabeledMatrix container
- counter: GenotypeCounter and the exact HWE test
- snp_filter: vectorised per-marker statistics
- strategy: missing-data strategy types
- imputation: mean and HWE-frequency imputation, complete-row selection
- recode: minor-allele flip, monomorphic filter, dominant/recessive coding
- regions: pseudo-autosomal region lookup
- checks: pre-regression checks
- config: configuration dataclasses
"""

from genoprep.core.config import ConsolidationConfig, OutputConfig
from genoprep.core.counter import GenotypeCounter, GenotypeCounts, hwe_exact_pvalue
from genoprep.core.matrix import LabeledMatrix
from genoprep.core.regions import ParRegion
from genoprep.core.strategy import (
    Drop,
    HweImpute,
    MeanImpute,
    Strategy,
    Unset,
    parse_strategy,
)

__all__ = [
    "ConsolidationConfig",
    "Drop",
    "GenotypeCounter",
    "GenotypeCounts",
    "HweImpute",
    "LabeledMatrix",
    "MeanImpute",
    "OutputConfig",
    "ParRegion",
    "Strategy",
    "Unset",
    "hwe_exact_pvalue",
    "parse_strategy",
]
