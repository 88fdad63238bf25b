"""Configuration dataclasses for genoprep.

This module contains dataclasses that configure output locations and the
consolidation run: missing-data strategy, random seed, kinship sources and
the genome build used for pseudo-autosomal lookups.
"""

from dataclasses import dataclass, field
from pathlib import Path

from genoprep.core.strategy import Strategy, parse_strategy


@dataclass
class OutputConfig:
    """Where a command writes its files.

    Every output is named ``{outdir}/{prefix}.{suffix}``.

    Attributes:
        outdir: Directory for all outputs, created on demand.
        prefix: Shared filename prefix (-o).
        verbose: Whether DEBUG messages reach the console.
    """

    outdir: Path = field(default_factory=lambda: Path("output"))
    prefix: str = "result"
    verbose: bool = False

    @property
    def log_path(self) -> Path:
        """Path to the run log file ({outdir}/{prefix}.log.txt)."""
        return self.outdir / f"{self.prefix}.log.txt"

    def output_path(self, suffix: str) -> Path:
        """Path to {outdir}/{prefix}.{suffix}."""
        return self.outdir / f"{self.prefix}.{suffix}"

    def ensure_outdir(self) -> None:
        self.outdir.mkdir(parents=True, exist_ok=True)


@dataclass
class ConsolidationConfig:
    """Settings for one consolidation run.

    Attributes:
        strategy: Strategy name or code ("mean", "hwe", "drop", or 0-3).
        seed: Seed for HWE imputation draws. None draws fresh entropy.
        kinship_file: Autosomal kinship matrix file.
        kinship_x_file: X-chromosome kinship matrix file.
        kinship_eigen: Prefix of autosomal .eigenD.txt/.eigenU.txt files.
        kinship_x_eigen: Prefix of X-chromosome eigen files.
        par_build: Genome build for pseudo-autosomal regions ("hg19"/"hg38").
    """

    strategy: str | int = "mean"
    seed: int | None = None
    kinship_file: Path | None = None
    kinship_x_file: Path | None = None
    kinship_eigen: Path | None = None
    kinship_x_eigen: Path | None = None
    par_build: str = "hg19"

    def build_strategy(self) -> Strategy:
        """Strategy instance for this run (HWE gets a seeded generator)."""
        return parse_strategy(self.strategy, seed=self.seed)
