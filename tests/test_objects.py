"""Tests for Layer 1 objects."""

import numpy as np
import pandas as pd
import pytest

from spatialcv.objects import (
    EvaluationResult,
    FoldAssignment,
    FoldScore,
    FoldSplit,
    Observation,
    ObservationSet,
)


@pytest.fixture
def landslide_table():
    """Small point table in the shape of a landslide inventory."""
    return pd.DataFrame(
        {
            "site": ["a", "b", "c", "d"],
            "x": [713.0, 715.5, 720.1, 711.9],
            "y": [9558.0, 9560.2, 9555.7, 9561.3],
            "lslpts": [1, 0, 1, 0],
            "slope": [35.2, 12.4, 41.0, 8.7],
            "elev": [2400.0, 2100.0, 2650.0, 1980.0],
        }
    )


class TestObservationSet:
    """Tests for ObservationSet."""

    def test_from_dataframe(self, landslide_table):
        """Remaining columns become predictors."""
        obs = ObservationSet.from_dataframe(
            landslide_table, label_col="lslpts", id_col="site"
        )

        assert len(obs) == 4
        assert obs.predictor_names == ["slope", "elev"]
        np.testing.assert_array_equal(obs.labels, [1, 0, 1, 0])
        np.testing.assert_array_equal(obs.ids, ["a", "b", "c", "d"])
        assert obs.coordinates.shape == (4, 2)

    def test_explicit_predictor_columns(self, landslide_table):
        """Only requested predictors are kept."""
        obs = ObservationSet.from_dataframe(
            landslide_table, label_col="lslpts", predictor_cols=["slope"]
        )
        assert obs.predictor_names == ["slope"]
        np.testing.assert_array_equal(obs.ids, np.arange(4))

    def test_missing_columns(self, landslide_table):
        """Unknown coordinate or predictor columns raise ValueError."""
        with pytest.raises(ValueError, match="not found"):
            ObservationSet.from_dataframe(landslide_table, x_col="lon", label_col="lslpts")
        with pytest.raises(ValueError, match="not found"):
            ObservationSet.from_dataframe(
                landslide_table, label_col="lslpts", predictor_cols=["aspect"]
            )

    def test_arrays_are_read_only(self, landslide_table):
        """Observations are immutable once loaded."""
        obs = ObservationSet.from_dataframe(landslide_table, label_col="lslpts")
        with pytest.raises(ValueError):
            obs.coordinates[0, 0] = 0.0
        with pytest.raises(ValueError):
            obs.labels[0] = 5
        with pytest.raises(AttributeError):
            obs.labels = np.zeros(4)

    def test_source_array_not_frozen(self):
        """Constructing a set does not freeze the caller's arrays."""
        coords = np.array([[0.0, 1.0], [2.0, 3.0]])
        ObservationSet(coordinates=coords, labels=np.array([0, 1]))
        coords[0, 0] = 9.0
        assert coords[0, 0] == 9.0

    @pytest.mark.parametrize(
        "coords, labels, match",
        [
            (np.zeros((3, 3)), np.zeros(3), "shape"),
            (np.zeros((0, 2)), np.zeros(0), "empty"),
            (np.array([[0.0, np.nan], [1.0, 1.0]]), np.zeros(2), "finite"),
            (np.zeros((3, 2)), np.zeros(2), "labels"),
        ],
    )
    def test_invalid_inputs(self, coords, labels, match):
        """Malformed inputs raise ValueError."""
        with pytest.raises(ValueError, match=match):
            ObservationSet(coordinates=coords, labels=labels)

    def test_duplicate_ids(self):
        """Identifiers must be unique."""
        with pytest.raises(ValueError, match="unique"):
            ObservationSet(
                coordinates=np.zeros((2, 2)), labels=np.zeros(2), ids=np.array([1, 1])
            )

    def test_predictor_row_mismatch(self):
        """Predictor table must have one row per observation."""
        with pytest.raises(ValueError, match="rows"):
            ObservationSet(
                coordinates=np.zeros((3, 2)),
                labels=np.zeros(3),
                predictors=pd.DataFrame({"slope": [1.0, 2.0]}),
            )

    def test_subset(self, landslide_table):
        """subset keeps ids, labels and predictors aligned."""
        obs = ObservationSet.from_dataframe(
            landslide_table, label_col="lslpts", id_col="site"
        )
        sub = obs.subset([2, 0])

        np.testing.assert_array_equal(sub.ids, ["c", "a"])
        np.testing.assert_array_equal(sub.labels, [1, 1])
        assert sub.predictors["slope"].tolist() == [41.0, 35.2]

    def test_observation_records(self, landslide_table):
        """to_observations and from_observations agree."""
        obs = ObservationSet.from_dataframe(
            landslide_table, label_col="lslpts", id_col="site"
        )
        records = obs.to_observations()

        assert isinstance(records[0], Observation)
        assert records[0].id == "a"
        assert records[0].predictors["slope"] == 35.2

        rebuilt = ObservationSet.from_observations(records)
        np.testing.assert_allclose(rebuilt.coordinates, obs.coordinates)
        assert rebuilt.predictor_names == obs.predictor_names

    def test_to_dataframe(self, landslide_table):
        """Flattened table has coordinates, label and predictors."""
        obs = ObservationSet.from_dataframe(
            landslide_table, label_col="lslpts", id_col="site"
        )
        df = obs.to_dataframe()
        assert list(df.columns) == ["id", "x", "y", "label", "slope", "elev"]
        assert list(df["id"]) == ["a", "b", "c", "d"]
        assert len(df) == 4

    def test_to_dataframe_keeps_unlisted_columns(self, landslide_table):
        """Without an id column, leftover columns are kept as predictors."""
        obs = ObservationSet.from_dataframe(landslide_table, label_col="lslpts")
        df = obs.to_dataframe()
        assert list(df.columns) == ["id", "x", "y", "label", "site", "slope", "elev"]


class TestFoldAssignment:
    """Tests for FoldAssignment."""

    def test_members_and_sizes(self):
        """members returns positional indices of a fold."""
        assignment = FoldAssignment(
            ids=np.array(["a", "b", "c", "d"]), folds=np.array([1, 0, 1, 0]), n_folds=2
        )
        np.testing.assert_array_equal(assignment.members(1), [0, 2])
        np.testing.assert_array_equal(assignment.fold_sizes(), [2, 2])
        assert assignment.as_dict() == {"a": 1, "b": 0, "c": 1, "d": 0}

    def test_empty_fold_rejected(self):
        """Every fold must hold at least one observation."""
        with pytest.raises(ValueError, match="empty"):
            FoldAssignment(ids=np.arange(3), folds=np.array([0, 0, 2]), n_folds=3)

    def test_out_of_range_fold(self):
        """Fold indices must lie in [0, k)."""
        with pytest.raises(ValueError, match="must lie in"):
            FoldAssignment(ids=np.arange(3), folds=np.array([0, 1, 2]), n_folds=2)

    def test_members_out_of_range(self):
        """Asking for a fold outside [0, k) raises IndexError."""
        assignment = FoldAssignment(ids=np.arange(2), folds=np.array([0, 1]), n_folds=2)
        with pytest.raises(IndexError):
            assignment.members(2)


class TestFoldSplit:
    """Tests for FoldSplit."""

    def test_overlap_rejected(self):
        """Training and test indices must be disjoint."""
        with pytest.raises(ValueError, match="overlap"):
            FoldSplit(
                fold=0,
                train_indices=np.array([0, 1, 2]),
                test_indices=np.array([2, 3]),
                buffered_indices=np.array([], dtype=int),
            )

    def test_counts(self):
        """Size properties reflect the index arrays."""
        split = FoldSplit(
            fold=1,
            train_indices=np.array([0, 1]),
            test_indices=np.array([4, 5, 6]),
            buffered_indices=np.array([2, 3]),
        )
        assert (split.n_train, split.n_test, split.n_buffered) == (2, 3, 2)


class TestEvaluationResult:
    """Tests for EvaluationResult."""

    def test_missing_scores(self):
        """Missing folds are NaN in arrays and counted."""
        scores = (
            FoldScore(fold=0, score=0.8, n_train=40, n_test=10),
            FoldScore(fold=1, score=None, n_train=40, n_test=10, error="boom"),
            FoldScore(fold=2, score=0.6, n_train=40, n_test=10),
        )
        result = EvaluationResult(scores=scores, metric="auroc", mean=0.7, std=0.1414)

        assert result.n_folds == 3
        assert result.n_missing == 1
        assert result.missing_folds == [1]
        arr = result.scores_array()
        assert np.isnan(arr[1])
        assert arr[0] == 0.8

        df = result.to_dataframe()
        assert list(df["fold"]) == [0, 1, 2]
        assert df.loc[1, "error"] == "boom"
