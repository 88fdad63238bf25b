"""Tests for LabeledMatrix and the genotype recoding transforms."""

import numpy as np
import pytest

from genoprep.core.matrix import LabeledMatrix, as_labeled
from genoprep.core.recode import (
    code_dominant,
    code_recessive,
    convert_to_minor_allele_count,
    flip_to_minor_polymorphic,
    is_monomorphic_marker,
    remove_missing_markers,
    remove_monomorphic_markers,
)
from genoprep.core.strategy import Drop, HweImpute, MeanImpute, Unset


@pytest.mark.tier0
class TestLabeledMatrix:
    def test_labels_padded_to_columns(self):
        m = LabeledMatrix(np.zeros((2, 3)), ["a"])
        assert m.col_labels == ["a", "", ""]

    def test_too_many_labels(self):
        with pytest.raises(ValueError, match="column labels"):
            LabeledMatrix(np.zeros((2, 1)), ["a", "b"])

    def test_vector_becomes_column(self):
        assert LabeledMatrix(np.array([1.0, 2.0])).shape == (2, 1)

    def test_resize_zero_fills(self):
        m = LabeledMatrix(np.array([[1.0, 2.0]]), ["a", "b"])
        m.resize(2, 3)
        np.testing.assert_array_equal(m.values, [[1.0, 2.0, 0.0], [0.0, 0.0, 0.0]])
        assert m.col_labels == ["a", "b", ""]
        m.resize(1, 1)
        assert m.col_labels == ["a"]

    def test_copy_column_labels(self):
        source = LabeledMatrix(np.zeros((1, 2)), ["x", "y"])
        target = LabeledMatrix(np.ones((3, 1)))
        target.copy_column_labels(source)
        assert target.shape == (3, 2)
        assert target.col_labels == ["x", "y"]

    def test_take_columns_keeps_labels(self):
        m = LabeledMatrix(np.arange(6.0).reshape(2, 3), ["a", "b", "c"])
        sub = m.take_columns(np.array([True, False, True]))
        assert sub.col_labels == ["a", "c"]
        np.testing.assert_array_equal(sub.values, [[0.0, 2.0], [3.0, 5.0]])

    def test_equality_ignores_labels(self):
        a = LabeledMatrix(np.eye(2), ["a", "b"])
        b = LabeledMatrix(np.eye(2), ["c", "d"])
        assert a == b
        assert a != LabeledMatrix(np.zeros((2, 2)))

    def test_as_labeled_none_keeps_rows(self):
        m = as_labeled(None, 4)
        assert m.shape == (4, 0)


@pytest.mark.tier0
class TestMinorAlleleFlip:
    def test_flip(self):
        m = LabeledMatrix(np.array([[0.0, 2.0], [1.0, 0.5]]), ["m1", "m2"])
        flipped = convert_to_minor_allele_count(m)
        np.testing.assert_array_equal(flipped.values, [[2.0, 0.0], [1.0, 1.5]])
        assert flipped.col_labels == ["m1", "m2"]

    def test_monomorphic_column_removed(self):
        m = LabeledMatrix(
            np.array([[2.0, 0.0, 1.0], [2.0, 1.0, 1.0], [2.0, 2.0, 0.0]]),
            ["const", "poly1", "poly2"],
        )
        result = flip_to_minor_polymorphic(m)
        assert result.col_labels == ["poly1", "poly2"]
        np.testing.assert_array_equal(
            result.values, [[2.0, 1.0], [1.0, 1.0], [0.0, 2.0]]
        )

    def test_flip_is_idempotent_on_unchanged_input(self):
        m = LabeledMatrix(np.array([[0.0, 1.0], [0.0, 2.0]]), ["a", "b"])
        first = flip_to_minor_polymorphic(m)
        second = flip_to_minor_polymorphic(m)
        assert first == second
        assert first.col_labels == second.col_labels == ["b"]
        np.testing.assert_array_equal(m.values, [[0.0, 1.0], [0.0, 2.0]])

    def test_is_monomorphic_marker(self):
        m = LabeledMatrix(np.array([[1.0, 0.0], [1.0, 2.0]]))
        assert is_monomorphic_marker(m, 0)
        assert not is_monomorphic_marker(m, 1)
        with pytest.raises(IndexError):
            is_monomorphic_marker(m, 2)

    def test_all_monomorphic(self):
        m = LabeledMatrix(np.ones((3, 2)), ["a", "b"])
        assert remove_monomorphic_markers(m).shape == (3, 0)

    def test_remove_missing_markers(self):
        m = LabeledMatrix(np.array([[0.0, -9.0], [1.0, 1.0]]), ["ok", "gap"])
        assert remove_missing_markers(m).col_labels == ["ok"]


@pytest.mark.tier0
class TestBinaryCoding:
    original = LabeledMatrix(np.array([[0.0], [1.0], [-9.0], [2.0]]), ["rs1"])
    imputed = LabeledMatrix(np.array([[0.0], [1.0], [1.0], [2.0]]), ["rs1"])

    def test_dominant_mean_fills_missing(self):
        coded = code_dominant(self.original, self.imputed, MeanImpute())
        np.testing.assert_allclose(coded.values.ravel(), [0.0, 1.0, 2.0 / 3.0, 1.0])
        assert coded.col_labels == ["rs1"]

    def test_recessive_mean_fills_missing(self):
        coded = code_recessive(
            self.original, self.imputed, HweImpute(rng=np.random.default_rng(0))
        )
        np.testing.assert_allclose(coded.values.ravel(), [0.0, 0.0, 1.0 / 3.0, 1.0])

    def test_drop_codes_consolidated_rows(self):
        kept = LabeledMatrix(np.array([[0.0], [1.0], [2.0]]), ["rs1"])
        dominant = code_dominant(self.original, kept, Drop())
        recessive = code_recessive(self.original, kept, Drop())
        np.testing.assert_array_equal(dominant.values.ravel(), [0.0, 1.0, 1.0])
        np.testing.assert_array_equal(recessive.values.ravel(), [0.0, 0.0, 1.0])

    def test_only_first_marker_is_coded(self):
        two = LabeledMatrix(np.array([[2.0, 0.0], [0.0, 2.0]]), ["a", "b"])
        coded = code_dominant(two, two, Drop())
        assert coded.shape == (2, 1)
        assert coded.col_labels == ["a"]

    def test_unset_strategy_raises(self):
        with pytest.raises(ValueError):
            code_dominant(self.original, self.imputed, Unset())

    def test_no_marker_raises(self):
        empty = LabeledMatrix.empty(3)
        with pytest.raises(ValueError, match="No marker"):
            code_recessive(empty, empty, Drop())
