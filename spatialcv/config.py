"""Configuration for spatial cross-validation runs.

Configs can be built in code, or loaded from YAML / JSON files:

    n_folds: 5
    buffer_distance: 100.0
    method: kmeans
    random_state: 42
    scoring: auroc
    n_jobs: 4

The ``SPATIALCV_N_JOBS`` environment variable overrides ``n_jobs``.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from spatialcv.primitives.metrics import SCORERS
from spatialcv.primitives.partitioning import validate_partition_parameters
from spatialcv.utils.errors import ConfigurationError, raise_parameter_error

logger = logging.getLogger(__name__)

ENV_N_JOBS = "SPATIALCV_N_JOBS"


@dataclass(frozen=True)
class SpatialCVConfig:
    """Parameters of a spatial cross-validation run.

    Attributes:
        n_folds: Number of folds (k >= 2).
        buffer_distance: Minimum train/test separation; None disables it.
        method: Blocking policy ('kmeans', 'grid', 'random').
        random_state: Seed for partitioning.
        scoring: Metric name.
        n_jobs: Parallel fold workers.
        backend: 'thread' or 'process'.
        grid_shape: (rows, cols) for method='grid'.
        n_repetitions: Repetitions for repeated CV.
        show_progress: Show tqdm progress bars.
    """

    n_folds: int = 5
    buffer_distance: Optional[float] = None
    method: str = "kmeans"
    random_state: Optional[int] = 42
    scoring: str = "auroc"
    n_jobs: Optional[int] = 1
    backend: str = "thread"
    grid_shape: Optional[tuple[int, int]] = None
    n_repetitions: int = 1
    show_progress: bool = False

    def __post_init__(self) -> None:
        if self.grid_shape is not None:
            object.__setattr__(self, "grid_shape", tuple(self.grid_shape))
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError for invalid values."""
        validate_partition_parameters(self.n_folds, self.buffer_distance, self.method)
        if self.scoring not in SCORERS:
            raise_parameter_error("scoring", self.scoring, valid_values=sorted(SCORERS))
        if self.backend not in ("thread", "process"):
            raise_parameter_error(
                "backend", self.backend, valid_values=["thread", "process"]
            )
        if self.n_jobs is not None and (self.n_jobs == 0 or self.n_jobs < -1):
            raise_parameter_error(
                "n_jobs", self.n_jobs, constraint="n_jobs >= 1, -1 or None"
            )
        if self.n_repetitions < 1:
            raise_parameter_error(
                "n_repetitions", self.n_repetitions, constraint="n_repetitions >= 1"
            )
        if self.grid_shape is not None and len(self.grid_shape) != 2:
            raise_parameter_error(
                "grid_shape", self.grid_shape, constraint="(rows, cols)"
            )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if data["grid_shape"] is not None:
            data["grid_shape"] = list(data["grid_shape"])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpatialCVConfig":
        """Build a config, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {unknown}",
                suggestion=f"Valid keys: {', '.join(sorted(known))}",
            )
        return cls(**data)


def _apply_env_overrides(config: SpatialCVConfig) -> SpatialCVConfig:
    value = os.environ.get(ENV_N_JOBS)
    if value is None:
        return config
    try:
        n_jobs = int(value)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_N_JOBS} must be an integer, got {value!r}"
        ) from e
    logger.debug(f"Overriding n_jobs={n_jobs} from {ENV_N_JOBS}")
    return replace(config, n_jobs=n_jobs)


def load_config(path: Union[str, Path]) -> SpatialCVConfig:
    """Load a SpatialCVConfig from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is malformed or holds invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not parse config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping, got {type(data).__name__}"
        )
    logger.info(f"Loaded configuration from {path}")
    return _apply_env_overrides(SpatialCVConfig.from_dict(data))


class ConfigManager:
    """Mutable holder around an immutable SpatialCVConfig."""

    def __init__(self, config: Optional[SpatialCVConfig] = None) -> None:
        self.config = config or _apply_env_overrides(SpatialCVConfig())

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ConfigManager":
        return cls(load_config(path))

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self.config, key, default)

    def update(self, **changes: Any) -> SpatialCVConfig:
        """Replace fields; the new config is validated before it is kept."""
        data = self.config.to_dict()
        data.update(changes)
        self.config = SpatialCVConfig.from_dict(data)
        return self.config

    def to_dict(self) -> dict[str, Any]:
        return self.config.to_dict()

    def save(self, path: Union[str, Path]) -> None:
        """Write the config as YAML (or JSON for a .json suffix)."""
        path = Path(path)
        data = self.to_dict()
        if path.suffix.lower() == ".json":
            path.write_text(json.dumps(data, indent=2))
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False))
        logger.info(f"Saved configuration to {path}")
