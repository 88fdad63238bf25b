"""Tests for missing-genotype imputation and complete-row selection."""

import numpy as np
import pytest

from genoprep.core.imputation import (
    complete_markers,
    complete_rows,
    draw_hwe_genotype,
    has_missing_marker,
    hwe_genotype_thresholds,
    impute_genotype_by_frequency,
    impute_genotype_to_mean,
)
from genoprep.core.snp_filter import compute_allele_frequencies


@pytest.mark.tier0
class TestMeanImputation:
    def test_single_missing_cell(self):
        """[0, 1, -1, 2]: p = 3/6 = 0.5, so the missing call becomes 1.0."""
        geno = np.array([[0.0], [1.0], [-1.0], [2.0]])
        imputed = impute_genotype_to_mean(geno)
        np.testing.assert_array_equal(imputed.ravel(), [0.0, 1.0, 1.0, 2.0])

    def test_input_not_modified(self):
        geno = np.array([[0.0, -9.0], [-1.0, 2.0], [2.0, 1.0]])
        before = geno.copy()
        impute_genotype_to_mean(geno)
        np.testing.assert_array_equal(geno, before)

    def test_fractional_allele_sums_are_kept(self):
        """Dosages are summed as floats: [0.5, 1.0, -9] -> p = 1.5 / 4."""
        geno = np.array([[0.5], [1.0], [-9.0]])
        imputed = impute_genotype_to_mean(geno)
        assert imputed[2, 0] == pytest.approx(0.75)

    def test_all_missing_marker_imputes_to_zero(self):
        geno = np.array([[-9.0, 1.0], [-9.0, 2.0]])
        imputed = impute_genotype_to_mean(geno)
        np.testing.assert_array_equal(imputed[:, 0], [0.0, 0.0])
        np.testing.assert_array_equal(imputed[:, 1], [1.0, 2.0])

    def test_no_missing_is_identity(self):
        geno = np.array([[0.0, 1.0], [2.0, 1.0]])
        np.testing.assert_array_equal(impute_genotype_to_mean(geno), geno)


@pytest.mark.tier0
class TestHweImputation:
    def test_thresholds_at_half(self):
        assert hwe_genotype_thresholds(0.5) == pytest.approx((0.25, 0.75))

    @pytest.mark.parametrize("draw,expected", [(0.6, 1.0), (0.1, 0.0), (0.9, 2.0)])
    def test_draw_mapping(self, draw, expected):
        assert draw_hwe_genotype(draw, 0.25, 0.75) == expected

    def test_boundaries_are_half_open(self):
        assert draw_hwe_genotype(0.25, 0.25, 0.75) == 1.0
        assert draw_hwe_genotype(0.75, 0.25, 0.75) == 2.0

    @pytest.mark.parametrize("draw,expected", [(0.6, 1.0), (0.1, 0.0), (0.9, 2.0)])
    def test_imputes_from_draw(self, scripted_uniform, draw, expected):
        geno = np.array([[0.0], [1.0], [-1.0], [2.0]])
        imputed = impute_genotype_by_frequency(geno, scripted_uniform([draw]))
        np.testing.assert_array_equal(imputed.ravel(), [0.0, 1.0, expected, 2.0])

    def test_draw_order_is_marker_major(self, scripted_uniform):
        geno = np.array(
            [
                [-1.0, -1.0],
                [-1.0, 1.0],
                [1.0, 1.0],
            ]
        )
        rng = scripted_uniform([0.0, 0.99, 0.5])
        imputed = impute_genotype_by_frequency(geno, rng)
        # marker 0 draws for rows 0 and 1, then marker 1 for row 0
        assert imputed[0, 0] == 0.0
        assert imputed[1, 0] == 2.0
        assert imputed[0, 1] == 1.0
        assert rng.calls == 3

    def test_seeded_generator_is_reproducible(self):
        rng_data = np.random.default_rng(0)
        geno = rng_data.choice([0.0, 1.0, 2.0, -9.0], size=(40, 6))
        a = impute_genotype_by_frequency(geno, np.random.default_rng(99))
        b = impute_genotype_by_frequency(geno, np.random.default_rng(99))
        np.testing.assert_array_equal(a, b)
        assert np.all(np.isin(a[geno < 0], [0.0, 1.0, 2.0]))
        np.testing.assert_array_equal(a[geno >= 0], geno[geno >= 0])


@pytest.mark.tier0
class TestCompleteness:
    def test_complete_rows(self):
        geno = np.array([[0.0, 1.0], [-1.0, 2.0], [1.0, 1.0]])
        np.testing.assert_array_equal(complete_rows(geno), [True, False, True])

    def test_complete_rows_needs_matrix(self):
        with pytest.raises(ValueError, match="2D"):
            complete_rows(np.array([0.0, 1.0]))

    def test_complete_markers(self):
        geno = np.array([[0.0, -1.0, 2.0], [1.0, 1.0, 2.0]])
        np.testing.assert_array_equal(complete_markers(geno), [True, False, True])

    def test_has_missing_marker(self):
        geno = np.array([[0.0, -1.0], [1.0, 1.0]])
        assert not has_missing_marker(geno, 0)
        assert has_missing_marker(geno, 1)
        with pytest.raises(IndexError):
            has_missing_marker(geno, 2)

    def test_zero_is_observed(self):
        freqs, n_observed = compute_allele_frequencies(np.array([[0.0], [-0.5]]))
        assert n_observed[0] == 1
        assert freqs[0] == 0.0
