"""Reading PLINK .bed/.bim/.fam filesets through bed-reader.

Genotypes are returned with the missing-call sentinel used throughout
genoprep (a negative value, -9.0) instead of bed-reader's NaN, together
with the sample sex and phenotype columns of the .fam file.
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from bed_reader import open_bed
from loguru import logger

MISSING_GENOTYPE = -9.0
_MISSING_PHENOTYPE_TOKENS = ("-9", "0", "NA", "nan", "")


@dataclass
class PlinkData:
    """One PLINK fileset held in memory.

    Attributes:
        genotypes: (n_samples, n_snps) alt-allele dosages 0.0/1.0/2.0, with
            -9.0 for a missing call.
        iid: Sample IDs from the .fam file.
        sid: Variant IDs from the .bim file.
        chromosome: Chromosome per variant, as text.
        bp_position: Base-pair coordinate per variant.
        sex: PLINK sex code per sample (1 male, 2 female, 0 unknown).
        phenotype: Phenotype per sample, NaN when missing. Case/control
            phenotypes (PLINK 1/2) are recoded to 0/1.
        binary_phenotype: True if the phenotype was case/control coded.
    """

    genotypes: np.ndarray
    iid: np.ndarray
    sid: np.ndarray
    chromosome: np.ndarray
    bp_position: np.ndarray
    sex: np.ndarray
    phenotype: np.ndarray
    binary_phenotype: bool = False

    @property
    def n_samples(self) -> int:
        return self.genotypes.shape[0]

    @property
    def n_snps(self) -> int:
        return self.genotypes.shape[1]

    @property
    def marker_labels(self) -> list[str]:
        """Marker labels as ``chrom:position``."""
        return [
            f"{chrom}:{int(pos)}"
            for chrom, pos in zip(self.chromosome, self.bp_position)
        ]


def parse_fam_phenotype(values: np.ndarray) -> tuple[np.ndarray, bool]:
    """Convert the .fam phenotype column to floats.

    "-9", "0" and "NA" are missing. When every observed value is 1 or 2 the
    column is case/control and is shifted to 0 (control) / 1 (case).

    Returns:
        Tuple of (phenotype with NaN for missing, is_binary).
    """
    tokens = np.asarray(values).astype(str)
    missing = np.isin(tokens, _MISSING_PHENOTYPE_TOKENS)
    phenotype = np.full(tokens.shape, np.nan, dtype=np.float64)
    phenotype[~missing] = tokens[~missing].astype(np.float64)

    observed = phenotype[~missing]
    is_binary = observed.size > 0 and bool(np.all(np.isin(observed, (1.0, 2.0))))
    if is_binary:
        phenotype = phenotype - 1.0
    return phenotype, is_binary


def load_plink_binary(bfile: Path) -> PlinkData:
    """Read the fileset whose .bed/.bim/.fam files share the prefix ``bfile``.

    The whole genotype matrix is read into memory; bed-reader NaNs become
    ``MISSING_GENOTYPE``.

    Raises:
        FileNotFoundError: If ``bfile``.bed does not exist.
    """
    bed_path = Path(f"{bfile}.bed")

    if not bed_path.exists():
        raise FileNotFoundError(f"PLINK .bed file not found: {bed_path}")

    with open_bed(bed_path) as bed:
        genotypes = bed.read(dtype=np.float64)
        phenotype, is_binary = parse_fam_phenotype(bed.pheno)
        data = PlinkData(
            genotypes=np.where(np.isnan(genotypes), MISSING_GENOTYPE, genotypes),
            iid=np.asarray(bed.iid).astype(str),
            sid=np.asarray(bed.sid).astype(str),
            chromosome=np.asarray(bed.chromosome).astype(str),
            bp_position=np.asarray(bed.bp_position),
            sex=np.asarray(bed.sex).astype(int),
            phenotype=phenotype,
            binary_phenotype=is_binary,
        )

    n_missing = int(np.sum(data.genotypes < 0))
    logger.debug(
        f"Loaded {data.n_samples} samples x {data.n_snps} SNPs from {bed_path} "
        f"({n_missing} missing calls)"
    )
    return data
