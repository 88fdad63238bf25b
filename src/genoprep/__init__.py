"""genoprep: genotype, phenotype and covariate consolidation for GWAS.

genoprep prepares the inputs of an association test: it resolves missing
genotype calls (mean imputation, HWE imputation or sample dropping) while
keeping phenotype, covariates and sample labels row-aligned, recodes
genotypes for additive/dominant/recessive models, counts raw genotype
classes per stratum and loads kinship matrices keyed by sample order.

Example:
    >>> import numpy as np
    >>> from genoprep import DataConsolidator
    >>> dc = DataConsolidator(strategy="mean")
    >>> dc.consolidate(None, None, np.array([[0.0], [1.0], [-9.0], [2.0]]))
    0
    >>> dc.genotype.values.ravel()
    array([0., 1., 1., 2.])
"""

import sys
from importlib.metadata import version

from loguru import logger

__version__ = version("genoprep")

# Configure loguru with sensible defaults on import
# Users can override by calling logger.remove()/add()
logger.remove()
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from genoprep.consolidator import (  # noqa: E402
    CaseControl,
    ConsolidatedData,
    DataConsolidator,
    Sex,
    consolidate_data,
)

__all__ = [
    "CaseControl",
    "ConsolidatedData",
    "DataConsolidator",
    "Sex",
    "consolidate_data",
    "__version__",
]
