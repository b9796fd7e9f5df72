"""Observation objects.

A single labelled spatial point (Observation) and the immutable collection
(ObservationSet) that partitioning and evaluation operate on.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Observation:
    """A labelled spatial point.

    Attributes:
        id: Unique identifier.
        x: Easting (or longitude).
        y: Northing (or latitude).
        predictors: Predictor name to value mapping.
        label: Response value (binary class or continuous).
    """

    id: Any
    x: float
    y: float
    predictors: Mapping[str, Any] = field(default_factory=dict)
    label: Any = None


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class ObservationSet:
    """Immutable set of labelled spatial observations.

    Attributes:
        coordinates: Array of shape (n_observations, 2) with x, y.
        labels: Response values (n_observations,).
        predictors: DataFrame of predictor columns, one row per observation.
        ids: Unique observation identifiers; defaults to 0..n-1.
    """

    coordinates: np.ndarray
    labels: np.ndarray
    predictors: Optional[pd.DataFrame] = None
    ids: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        """Validate and freeze ObservationSet arrays."""
        coords = np.asarray(self.coordinates, dtype=float)
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ValueError(
                f"coordinates must be 2D array with shape (n, 2), got {coords.shape}"
            )
        n = coords.shape[0]
        if n == 0:
            raise ValueError("ObservationSet cannot be empty")
        if not np.all(np.isfinite(coords)):
            raise ValueError("coordinates must be finite (no NaN or inf)")

        labels = np.asarray(self.labels)
        if labels.ndim != 1 or len(labels) != n:
            raise ValueError(
                f"labels must be 1D with {n} entries, got shape {labels.shape}"
            )

        if self.predictors is None:
            predictors = pd.DataFrame(index=pd.RangeIndex(n))
        else:
            predictors = pd.DataFrame(self.predictors).reset_index(drop=True)
            if len(predictors) != n:
                raise ValueError(
                    f"predictors must have {n} rows, got {len(predictors)}"
                )

        ids = np.arange(n) if self.ids is None else np.asarray(self.ids)
        if ids.ndim != 1 or len(ids) != n:
            raise ValueError(f"ids must be 1D with {n} entries, got shape {ids.shape}")
        if len(pd.unique(ids)) != n:
            raise ValueError("ids must be unique")

        object.__setattr__(self, "coordinates", _readonly(coords))
        object.__setattr__(self, "labels", _readonly(labels))
        object.__setattr__(self, "ids", _readonly(ids))
        object.__setattr__(self, "predictors", predictors)

    def __len__(self) -> int:
        return self.coordinates.shape[0]

    @property
    def predictor_names(self) -> list[str]:
        return [str(c) for c in self.predictors.columns]

    def predictor_matrix(self, indices: Optional[np.ndarray] = None) -> pd.DataFrame:
        """Return a copy of the predictors, optionally restricted to indices."""
        if indices is None:
            return self.predictors.copy()
        return self.predictors.iloc[np.asarray(indices)].reset_index(drop=True)

    def subset(self, indices: Union[Sequence[int], np.ndarray]) -> "ObservationSet":
        """Return a new ObservationSet with the rows at positional indices."""
        idx = np.asarray(indices, dtype=int)
        return ObservationSet(
            coordinates=self.coordinates[idx],
            labels=self.labels[idx],
            predictors=self.predictors.iloc[idx].reset_index(drop=True),
            ids=self.ids[idx],
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten to a DataFrame with id, x, y, label and predictor columns."""
        df = pd.DataFrame(
            {
                "id": self.ids,
                "x": self.coordinates[:, 0],
                "y": self.coordinates[:, 1],
                "label": self.labels,
            }
        )
        return pd.concat([df, self.predictors.reset_index(drop=True)], axis=1)

    def to_observations(self) -> list[Observation]:
        records = self.predictors.to_dict(orient="records")
        return [
            Observation(
                id=self.ids[i].item() if hasattr(self.ids[i], "item") else self.ids[i],
                x=float(self.coordinates[i, 0]),
                y=float(self.coordinates[i, 1]),
                predictors=records[i],
                label=self.labels[i],
            )
            for i in range(len(self))
        ]

    @classmethod
    def from_observations(cls, observations: Iterable[Observation]) -> "ObservationSet":
        """Build an ObservationSet from Observation records."""
        observations = list(observations)
        if not observations:
            raise ValueError("ObservationSet cannot be empty")
        return cls(
            coordinates=np.array([[o.x, o.y] for o in observations], dtype=float),
            labels=np.array([o.label for o in observations]),
            predictors=pd.DataFrame([dict(o.predictors) for o in observations]),
            ids=np.array([o.id for o in observations]),
        )

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        x_col: str = "x",
        y_col: str = "y",
        label_col: str = "label",
        predictor_cols: Optional[Sequence[str]] = None,
        id_col: Optional[str] = None,
    ) -> "ObservationSet":
        """Build an ObservationSet from a point table.

        Args:
            df: Table with one row per observation.
            x_col: Name of the x coordinate column.
            y_col: Name of the y coordinate column.
            label_col: Name of the response column.
            predictor_cols: Predictor columns; defaults to every remaining column.
            id_col: Optional identifier column; defaults to 0..n-1.

        Returns:
            ObservationSet.
        """
        required = [x_col, y_col, label_col] + ([id_col] if id_col else [])
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise ValueError(
                f"Columns {missing} not found in DataFrame. "
                f"Available columns: {list(df.columns)}"
            )
        if predictor_cols is None:
            predictor_cols = [c for c in df.columns if c not in required]
        else:
            absent = [c for c in predictor_cols if c not in df.columns]
            if absent:
                raise ValueError(f"Predictor columns {absent} not found in DataFrame")

        return cls(
            coordinates=df[[x_col, y_col]].to_numpy(dtype=float),
            labels=df[label_col].to_numpy(),
            predictors=df[list(predictor_cols)].reset_index(drop=True),
            ids=df[id_col].to_numpy() if id_col else None,
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ObservationSet(n_observations={len(self)}, "
            f"n_predictors={self.predictors.shape[1]})"
        )
