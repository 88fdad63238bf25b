"""Tests for pseudo-autosomal region lookup."""

import pytest

from genoprep.core.regions import ParRegion, normalize_chromosome


@pytest.mark.tier0
class TestNormalizeChromosome:
    @pytest.mark.parametrize(
        "chrom,expected",
        [
            ("X", "X"),
            ("chrX", "X"),
            ("x", "X"),
            ("23", "X"),
            ("25", "X"),
            ("Y", "Y"),
            ("24", "Y"),
            ("chr7", "7"),
            ("MT", "MT"),
        ],
    )
    def test_aliases(self, chrom, expected):
        assert normalize_chromosome(chrom) == expected


@pytest.mark.tier0
class TestParRegion:
    def test_default_build(self):
        assert ParRegion().build == "hg19"

    def test_grch_aliases(self):
        assert ParRegion("GRCh38").build == "hg38"
        assert ParRegion("grch37").build == "hg19"

    def test_unknown_build(self):
        with pytest.raises(ValueError, match="Unknown genome build"):
            ParRegion("hg17")

    def test_hg19_x(self):
        par = ParRegion("hg19")
        assert not par.is_hemi_region("X", 60_001)
        assert not par.is_hemi_region("X", 2_699_520)
        assert par.is_hemi_region("X", 2_699_521)
        assert par.is_hemi_region("X", 60_000)
        assert not par.is_hemi_region("X", 155_000_000)

    def test_hg38_differs(self):
        assert ParRegion("hg19").is_hemi_region("X", 2_750_000)
        assert not ParRegion("hg38").is_hemi_region("X", 2_750_000)

    def test_y_chromosome(self):
        par = ParRegion("hg19")
        assert par.is_hemi_region("24", 10_000_000)
        assert par.is_par("Y", 20_000)

    def test_autosomes_never_hemizygous(self):
        par = ParRegion()
        assert not par.is_hemi_region("1", 5_000_000)
        assert not par.is_par("1", 100_000)
