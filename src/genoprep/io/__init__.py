"""I/O modules for genoprep.

- plink: PLINK binary (.bed/.bim/.fam) loading with sentinel-coded genotypes
- covariate: covariate/phenotype text files
- output: writers for consolidated matrices and genotype count summaries
"""

from genoprep.io.covariate import read_covariate_file
from genoprep.io.output import (
    write_genotype_counts,
    write_labeled_matrix,
    write_sample_labels,
)
from genoprep.io.plink import PlinkData, load_plink_binary, parse_fam_phenotype

__all__ = [
    "PlinkData",
    "load_plink_binary",
    "parse_fam_phenotype",
    "read_covariate_file",
    "write_genotype_counts",
    "write_labeled_matrix",
    "write_sample_labels",
]
