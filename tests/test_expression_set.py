"""
Tests for the ExpressionSet container: construction, accessors,
subset and combine.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from exprdata.core.errors import (
    DimensionMismatchError,
    EmptyInputError,
    IncompatibleFeaturesError,
    IndexOutOfBoundsError,
    NameNotFoundError,
)
from exprdata.core.expression_set import ExpressionSet, NO_ANNOTATION, combine, subset
from exprdata.core.selectors import ByIndex, ByName

from conftest import generate_synthetic_eset, make_miame


# =====================================================================
# Construction
# =====================================================================


class TestConstruction:

    def test_minimal(self, bare_eset):
        assert bare_eset.shape == (3, 2)
        assert bare_eset.annotation == NO_ANNOTATION
        assert bare_eset.experiment_data is None
        assert not bare_eset.has_experiment_data
        assert bare_eset.sample_metadata == {}

    def test_integer_matrix_widened(self):
        eset = ExpressionSet(np.array([[1, 2]]), ["S1", "S2"], ["A"])
        assert eset.values.dtype == np.float64

    def test_none_becomes_nan(self):
        eset = ExpressionSet([[1.0, None]], ["S1", "S2"], ["A"])
        assert np.isnan(eset.values[0, 1])

    def test_dataframe_values(self):
        df = pd.DataFrame([[1.0, 2.0]], columns=["x", "y"])
        eset = ExpressionSet(df, ["S1", "S2"], ["A"])
        assert eset.get("A", "S2") == 2.0

    def test_string_matrix_rejected(self):
        with pytest.raises(TypeError):
            ExpressionSet(np.array([["a", "b"]]), ["S1", "S2"], ["A"])

    def test_non_2d_rejected(self):
        with pytest.raises(DimensionMismatchError, match="ndim"):
            ExpressionSet(np.array([1.0, 2.0]), ["S1", "S2"], ["A"])

    def test_sample_names_length(self):
        with pytest.raises(DimensionMismatchError) as excinfo:
            ExpressionSet(np.zeros((3, 2)), ["S1"], ["A", "B", "C"])
        assert excinfo.value.field == "sample_names"
        assert excinfo.value.expected == 2
        assert excinfo.value.actual == 1

    def test_feature_names_length(self):
        with pytest.raises(DimensionMismatchError) as excinfo:
            ExpressionSet(np.zeros((3, 2)), ["S1", "S2"], ["A", "B"])
        assert excinfo.value.field == "feature_names"

    def test_sample_metadata_length(self):
        with pytest.raises(DimensionMismatchError, match="condition"):
            ExpressionSet(
                np.zeros((3, 2)), ["S1", "S2"], ["A", "B", "C"],
                sample_metadata={"condition": ["ctrl"]},
            )

    def test_feature_metadata_length(self):
        with pytest.raises(DimensionMismatchError, match="symbol"):
            ExpressionSet(
                np.zeros((3, 2)), ["S1", "S2"], ["A", "B", "C"],
                feature_metadata={"symbol": ["GA", "GB"]},
            )

    def test_dimension_error_is_value_error(self):
        with pytest.raises(ValueError):
            ExpressionSet(np.zeros((3, 2)), ["S1"], ["A", "B", "C"])

    def test_experiment_data_type(self):
        with pytest.raises(TypeError):
            ExpressionSet(np.zeros((1, 1)), ["S1"], ["A"], experiment_data={"name": "x"})

    def test_empty_matrix(self):
        eset = ExpressionSet(np.empty((0, 0)), [], [])
        assert eset.shape == (0, 0)

    def test_duplicate_names_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="exprdata.core.expression_set"):
            eset = ExpressionSet(np.array([[1.0, 2.0]]), ["S1", "S1"], ["A"])
        assert "duplicate sample names" in caplog.text
        # Name lookup resolves to the first occurrence
        assert eset.sample_index("S1") == 0

    def test_bare_string_sample_names_rejected(self):
        with pytest.raises(TypeError, match="sample_names"):
            ExpressionSet(np.zeros((1, 2)), "S1", ["A"])

    def test_bare_string_feature_names_rejected(self):
        with pytest.raises(TypeError, match="feature_names"):
            ExpressionSet(np.zeros((2, 1)), ["S1"], "AB")


# =====================================================================
# Read-only state
# =====================================================================


class TestReadOnly:

    def test_names_are_tuples(self, test_eset):
        assert isinstance(test_eset.sample_names, tuple)
        with pytest.raises(AttributeError):
            test_eset.sample_names.append("S3")
        with pytest.raises(TypeError):
            test_eset.sample_names[0] = "Z"
        assert test_eset.shape == (3, 2)
        assert test_eset.get("A", "S1") == 1.0

    def test_metadata_mapping_rejects_writes(self, test_eset):
        with pytest.raises(TypeError):
            test_eset.sample_metadata["condition"] = ["x", "y"]
        with pytest.raises(AttributeError):
            test_eset.sample_metadata.pop("condition")
        with pytest.raises(TypeError):
            del test_eset.feature_metadata["symbol"]
        assert set(test_eset.sample_metadata) == {"condition", "age"}

    def test_metadata_entries_are_tuples(self, test_eset):
        with pytest.raises(AttributeError):
            test_eset.get_sample_metadata("condition").append("extra")
        assert test_eset.get_sample_metadata("condition") == ("ctrl", "treated")

    def test_values_read_only(self, test_eset):
        assert not test_eset.values.flags.writeable
        with pytest.raises(ValueError):
            test_eset.values[0, 0] = 99.0

    def test_input_not_aliased(self):
        values = np.array([[1.0, 2.0]])
        names = ["S1", "S2"]
        metadata = {"condition": ["ctrl", "treated"]}
        eset = ExpressionSet(values, names, ["A"], sample_metadata=metadata)

        values[0, 0] = 99.0
        names.append("S3")
        metadata["condition"][0] = "changed"
        metadata["batch"] = [1, 2]

        assert eset.get("A", "S1") == 1.0
        assert eset.sample_names == ("S1", "S2")
        assert eset.sample_metadata == {"condition": ("ctrl", "treated")}

    def test_input_still_writeable(self):
        values = np.array([[1.0, 2.0]])
        ExpressionSet(values, ["S1", "S2"], ["A"])
        assert values.flags.writeable

    def test_subset_of_read_only_container(self, test_eset):
        result = test_eset.subset(samples=["S2"])
        assert not result.values.flags.writeable
        assert result.sample_names == ("S2",)

    @pytest.mark.parametrize("name", ["has_experiment_data", "n_features", "n_samples"])
    def test_count_properties_documented(self, name):
        assert getattr(ExpressionSet, name).__doc__


# =====================================================================
# Accessors
# =====================================================================


class TestAccessors:

    def test_lengths_agree(self, small_eset):
        assert len(small_eset.sample_names) == small_eset.n_samples
        assert len(small_eset.feature_names) == small_eset.n_features
        assert small_eset.size() == small_eset.shape == small_eset.values.shape

    def test_get_by_name(self, test_eset):
        assert test_eset.get("B", "S2") == 4.0

    def test_get_by_index_matches_name(self, test_eset):
        for i, feature in enumerate(test_eset.feature_names):
            for j, sample in enumerate(test_eset.sample_names):
                assert test_eset.get(i, j) == test_eset.get(feature, sample)

    def test_get_unknown_name(self, test_eset):
        with pytest.raises(NameNotFoundError) as excinfo:
            test_eset.get("Z", "S1")
        assert excinfo.value.names == ["Z"]

    def test_get_out_of_bounds(self, test_eset):
        with pytest.raises(IndexOutOfBoundsError):
            test_eset.get(3, 0)
        with pytest.raises(IndexOutOfBoundsError):
            test_eset.get(0, -1)

    def test_expression_values_table(self, test_eset):
        df = test_eset.expression_values()
        assert df.columns.tolist() == ["feature_names", "S1", "S2"]
        assert df["feature_names"].tolist() == ["A", "B", "C"]
        assert df["S2"].tolist() == [2.0, 4.0, 6.0]

    def test_expression_values_matrix(self, test_eset):
        assert test_eset.expression_values(as_matrix=True) is test_eset.values

    def test_phenotype_data(self, test_eset):
        df = test_eset.phenotype_data()
        assert df.columns.tolist() == ["sample_names", "condition", "age"]
        assert df["condition"].tolist() == ["ctrl", "treated"]

    def test_feature_data(self, test_eset):
        df = test_eset.feature_data()
        assert df.columns.tolist() == ["feature_names", "symbol"]

    def test_metadata_by_key(self, test_eset):
        assert test_eset.get_sample_metadata("age") == (30, 40)
        assert test_eset.get_feature_metadata("symbol") == ("GA", "GB", "GC")
        with pytest.raises(NameNotFoundError):
            test_eset.get_sample_metadata("missing")

    def test_repr(self, test_eset):
        text = repr(test_eset)
        assert "3 features × 2 samples" in text
        assert "test-platform" in text


# =====================================================================
# Subset
# =====================================================================


class TestSubset:

    def test_identity(self, test_eset):
        assert test_eset.subset() == test_eset

    def test_samples_by_name(self, test_eset):
        result = test_eset.subset(samples=["S2"])
        assert result.shape == (3, 1)
        assert result.values[:, 0].tolist() == [2.0, 4.0, 6.0]
        assert result.sample_metadata == {"condition": ("treated",), "age": (40,)}

    def test_name_index_agreement(self, test_eset):
        assert test_eset.subset(samples=["S2"], features=["A", "C"]) == \
            test_eset.subset(samples=[1], features=[0, 2])

    def test_explicit_selectors(self, test_eset):
        assert test_eset.subset(features=ByName(["C"])) == test_eset.subset(features=ByIndex([2]))

    def test_order_and_repeats(self, test_eset):
        result = test_eset.subset(features=["C", "A", "C"])
        assert result.feature_names == ("C", "A", "C")
        assert result.feature_metadata["symbol"] == ("GC", "GA", "GC")

    def test_experiment_samples_resliced(self, test_eset):
        result = test_eset.subset(samples=["S2"])
        assert result.experiment_data.samples == ("S2",)
        assert result.experiment_data.title == "Title"

    def test_experiment_samples_kept_when_not_per_sample(self):
        eset = ExpressionSet(
            np.zeros((1, 2)), ["S1", "S2"], ["A"],
            experiment_data=make_miame(samples=["batch description"]),
        )
        assert eset.subset(samples=[0]).experiment_data.samples == ("batch description",)

    def test_annotation_preserved(self, test_eset):
        assert test_eset.subset(features=[0]).annotation == "test-platform"

    def test_unknown_name(self, test_eset):
        with pytest.raises(NameNotFoundError) as excinfo:
            test_eset.subset(samples=["S1", "S9", "S8"])
        assert excinfo.value.names == ["S9", "S8"]
        assert excinfo.value.axis == "sample"

    def test_out_of_bounds(self, test_eset):
        with pytest.raises(IndexOutOfBoundsError) as excinfo:
            test_eset.subset(features=[0, 3])
        assert excinfo.value.index == 3
        assert excinfo.value.count == 3

    def test_negative_index(self, test_eset):
        with pytest.raises(IndexOutOfBoundsError):
            test_eset.subset(samples=[-1])

    def test_mixed_selection(self, test_eset):
        with pytest.raises(TypeError):
            test_eset.subset(samples=["S1", 1])

    def test_original_unchanged(self, test_eset):
        before = test_eset.copy()
        test_eset.subset(samples=["S1"], features=["A"])
        assert test_eset == before

    def test_functional_form(self, test_eset):
        assert subset(test_eset, samples=["S1"]) == test_eset.subset(samples=["S1"])


# =====================================================================
# Combine
# =====================================================================


class TestCombine:

    def _split(self, eset):
        return eset.subset(samples=["S1"]), eset.subset(samples=["S2"])

    def test_round_trip_split(self, test_eset):
        left, right = self._split(test_eset)
        combined = combine([left, right])
        assert combined.values.tolist() == test_eset.values.tolist()
        assert combined.sample_names == ("S1", "S2")
        assert combined.sample_metadata == test_eset.sample_metadata

    def test_shape(self, small_eset):
        parts = [small_eset.subset(samples=list(range(i, i + 4))) for i in (0, 4, 8)]
        combined = combine(parts)
        assert combined.shape == (small_eset.n_features, 12)

    def test_single_is_identity(self, test_eset):
        assert combine([test_eset]) is test_eset

    def test_empty(self):
        with pytest.raises(EmptyInputError):
            combine([])

    def test_incompatible_features(self, test_eset):
        other = test_eset.subset(features=["C", "B", "A"])
        with pytest.raises(IncompatibleFeaturesError) as excinfo:
            combine([test_eset, test_eset, other])
        assert excinfo.value.position == 2

    def test_metadata_union_fills_none(self, bare_eset, test_eset):
        combined = combine([test_eset, bare_eset])
        assert combined.sample_metadata["condition"] == ("ctrl", "treated", None, None)
        assert combined.sample_metadata["age"] == (30, 40, None, None)

    def test_first_wins_feature_metadata_and_annotation(self, test_eset, bare_eset):
        combined = combine([bare_eset, test_eset])
        assert combined.feature_metadata == {}
        assert combined.annotation == NO_ANNOTATION

    def test_experiment_data_first_wins(self, test_eset):
        left, right = self._split(test_eset)
        combined = combine([left, right])
        assert combined.experiment_data.title == "Combined: Title"
        assert combined.experiment_data.name == "Name"
        assert combined.experiment_data.samples == ("S1", "S2")

    def test_experiment_data_dropped_unless_all_have_it(self, test_eset, bare_eset):
        assert combine([test_eset, bare_eset]).experiment_data is None

    def test_inputs_unchanged(self, test_eset):
        left, right = self._split(test_eset)
        snapshot = left.copy()
        combine([left, right])
        assert left == snapshot


# =====================================================================
# Equality, copy, random
# =====================================================================


class TestEqualityAndCopy:

    def test_nan_equal(self):
        a = ExpressionSet([[np.nan, 1.0]], ["S1", "S2"], ["A"])
        b = ExpressionSet([[np.nan, 1.0]], ["S1", "S2"], ["A"])
        assert a == b

    def test_annotation_matters(self, bare_eset):
        other = ExpressionSet(bare_eset.values, bare_eset.sample_names, bare_eset.feature_names,
                              annotation="other")
        assert bare_eset != other

    def test_not_hashable(self, test_eset):
        with pytest.raises(TypeError):
            hash(test_eset)

    def test_deep_copy_independent(self, test_eset):
        clone = test_eset.copy()
        assert clone == test_eset
        assert clone.values is not test_eset.values

    def test_shallow_copy_shares_values(self, test_eset):
        assert test_eset.copy(deep=False).values is test_eset.values


class TestRandom:

    def test_shape_and_names(self):
        eset = ExpressionSet.random(5, 3, seed=0)
        assert eset.shape == (5, 3)
        assert eset.sample_names == ("sample_1", "sample_2", "sample_3")
        assert eset.feature_names == ("1", "2", "3", "4", "5")
        assert eset.annotation == "random"
        assert eset.experiment_data.samples == eset.sample_names

    def test_seeded_reproducible(self):
        assert ExpressionSet.random(4, 4, seed=7) == ExpressionSet.random(4, 4, seed=7)

    def test_values_in_unit_interval(self):
        values = ExpressionSet.random(50, 10, seed=1).values
        assert values.min() >= 0.0
        assert values.max() < 1.0

    def test_synthetic_generator(self):
        eset = generate_synthetic_eset(20, 6, missing_fraction=0.1, seed=3)
        assert int(np.isnan(eset.values).sum()) == 12
