"""Pseudo-autosomal region lookup for sex-chromosome markers.

Males carry one copy of X and Y outside the pseudo-autosomal regions (PARs),
so genotypes there are hemizygous. ParRegion answers whether a position lies
in such a hemizygous stretch for the hg19 or hg38 assemblies.
"""

from __future__ import annotations

# Inclusive 1-based PAR1 and PAR2 intervals per build and chromosome
PAR_INTERVALS: dict[str, dict[str, tuple[tuple[int, int], ...]]] = {
    "hg19": {
        "X": ((60_001, 2_699_520), (154_931_044, 155_260_560)),
        "Y": ((10_001, 2_649_520), (59_034_050, 59_363_566)),
    },
    "hg38": {
        "X": ((10_001, 2_781_479), (155_701_383, 156_030_895)),
        "Y": ((10_001, 2_781_479), (56_887_903, 57_217_415)),
    },
}

_CHROM_ALIASES = {
    "X": "X",
    "23": "X",
    "25": "X",  # PLINK XY code
    "Y": "Y",
    "24": "Y",
}


def normalize_chromosome(chrom: str) -> str:
    """Strip a ``chr`` prefix and map PLINK numeric sex-chromosome codes."""
    name = str(chrom).strip()
    if name.lower().startswith("chr"):
        name = name[3:]
    name = name.upper()
    return _CHROM_ALIASES.get(name, name)


class ParRegion:
    """Hemizygous-region lookup for one genome build.

    Args:
        build: "hg19" (default) or "hg38". "grch37"/"grch38" also accepted.

    Raises:
        ValueError: If the build is unknown.

    Example:
        >>> par = ParRegion("hg19")
        >>> par.is_hemi_region("X", 100_000)
        False
        >>> par.is_hemi_region("chrX", 5_000_000)
        True
    """

    def __init__(self, build: str = "hg19") -> None:
        key = build.lower().replace("grch37", "hg19").replace("grch38", "hg38")
        if key not in PAR_INTERVALS:
            raise ValueError(
                f"Unknown genome build {build!r}; expected one of "
                f"{sorted(PAR_INTERVALS)}"
            )
        self.build = key
        self._intervals = PAR_INTERVALS[key]

    def is_par(self, chrom: str, pos: int) -> bool:
        intervals = self._intervals.get(normalize_chromosome(chrom), ())
        return any(start <= pos <= end for start, end in intervals)

    def is_hemi_region(self, chrom: str, pos: int) -> bool:
        """True on X or Y outside the pseudo-autosomal regions."""
        if normalize_chromosome(chrom) not in ("X", "Y"):
            return False
        return not self.is_par(chrom, pos)
