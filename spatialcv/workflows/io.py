"""Observation I/O.

Reads point tables into ObservationSets. CSV and Parquet go through pandas;
vector formats (GeoPackage, Shapefile, GeoJSON) need geopandas.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import pandas as pd

from spatialcv.objects.observation import ObservationSet
from spatialcv.utils.errors import DataValidationError, raise_dependency_error
from spatialcv.utils.optional_imports import optional_import_single

logger = logging.getLogger(__name__)

GEOPANDAS_AVAILABLE, gpd_read_file = optional_import_single("geopandas", "read_file")

TABULAR_SUFFIXES = (".csv", ".txt", ".parquet")
VECTOR_SUFFIXES = (".gpkg", ".shp", ".geojson", ".json", ".fgb")


def observations_from_geodataframe(
    gdf: Any,
    label_col: str,
    predictor_cols: Optional[Sequence[str]] = None,
    id_col: Optional[str] = None,
) -> ObservationSet:
    """Build an ObservationSet from a GeoDataFrame of points.

    Raises:
        DataValidationError: If any geometry is missing or not a point.
    """
    geometry = gdf.geometry
    if geometry.isna().any() or geometry.is_empty.any():
        raise DataValidationError("GeoDataFrame contains missing or empty geometries")
    geom_types = set(geometry.geom_type.unique())
    if geom_types != {"Point"}:
        raise DataValidationError(
            f"Observations must be point geometries, got {sorted(geom_types)}",
            suggestion="Use gdf.centroid or gdf.representative_point() first.",
        )

    df = pd.DataFrame(gdf.drop(columns=gdf.geometry.name))
    df["__x"] = geometry.x.to_numpy()
    df["__y"] = geometry.y.to_numpy()
    if predictor_cols is None:
        excluded = {label_col, id_col, "__x", "__y"}
        predictor_cols = [c for c in df.columns if c not in excluded]
    return ObservationSet.from_dataframe(
        df,
        x_col="__x",
        y_col="__y",
        label_col=label_col,
        predictor_cols=predictor_cols,
        id_col=id_col,
    )


def read_observations(
    path: Union[str, Path],
    label_col: str = "label",
    x_col: str = "x",
    y_col: str = "y",
    predictor_cols: Optional[Sequence[str]] = None,
    id_col: Optional[str] = None,
) -> ObservationSet:
    """Read observations from a point table or vector file.

    Args:
        path: CSV / Parquet file with coordinate columns, or a vector file
            with point geometries.
        label_col: Response column.
        x_col: X coordinate column (tabular files only).
        y_col: Y coordinate column (tabular files only).
        predictor_cols: Predictor columns; defaults to all remaining columns.
        id_col: Optional identifier column.

    Returns:
        ObservationSet.

    Raises:
        FileNotFoundError: If path does not exist.
        DependencyError: If a vector file is given and geopandas is missing.
        DataValidationError: If the file format is unsupported or the data
            contains missing values in required columns.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Observation file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in VECTOR_SUFFIXES:
        if not GEOPANDAS_AVAILABLE:
            raise_dependency_error("geopandas", optional_group="geo")
        gdf = gpd_read_file(path)
        observations = observations_from_geodataframe(
            gdf, label_col=label_col, predictor_cols=predictor_cols, id_col=id_col
        )
    elif suffix in TABULAR_SUFFIXES:
        df = pd.read_parquet(path) if suffix == ".parquet" else pd.read_csv(path)
        required = [x_col, y_col, label_col]
        present = [c for c in required if c in df.columns]
        if df[present].isna().any().any():
            raise DataValidationError(
                f"Missing values in required columns {present} of {path}"
            )
        try:
            observations = ObservationSet.from_dataframe(
                df,
                x_col=x_col,
                y_col=y_col,
                label_col=label_col,
                predictor_cols=predictor_cols,
                id_col=id_col,
            )
        except ValueError as e:
            raise DataValidationError(f"Invalid observations in {path}: {e}") from e
    else:
        raise DataValidationError(
            f"Unsupported file format '{suffix}'",
            suggestion=f"Use one of {TABULAR_SUFFIXES + VECTOR_SUFFIXES}",
        )

    logger.info(
        f"Loaded {len(observations)} observations with "
        f"{len(observations.predictor_names)} predictors from {path}"
    )
    return observations


def write_scores(scores: Union[pd.DataFrame, Any], path: Union[str, Path]) -> Path:
    """Write per-fold scores (DataFrame or EvaluationResult) to CSV or JSON."""
    path = Path(path)
    frame = scores if isinstance(scores, pd.DataFrame) else scores.to_dataframe()
    if path.suffix.lower() == ".json":
        frame.to_json(path, orient="records", indent=2)
    else:
        frame.to_csv(path, index=False)
    return path
