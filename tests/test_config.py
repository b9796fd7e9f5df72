"""Tests for run configuration and error formatting."""

import json

import pytest
import yaml

from spatialcv.config import ConfigManager, SpatialCVConfig, load_config
from spatialcv.utils.errors import (
    ConfigurationError,
    DependencyError,
    SpatialCVError,
    format_dependency_error,
    format_parameter_error,
    raise_dependency_error,
)


class TestSpatialCVConfig:
    """Tests for SpatialCVConfig."""

    def test_defaults(self):
        """Defaults describe a 5-fold k-means AUROC run."""
        config = SpatialCVConfig()
        assert config.n_folds == 5
        assert config.method == "kmeans"
        assert config.scoring == "auroc"
        assert config.buffer_distance is None

    @pytest.mark.parametrize(
        "changes",
        [
            {"n_folds": 1},
            {"buffer_distance": -5.0},
            {"method": "voronoi"},
            {"scoring": "kappa"},
            {"backend": "cluster"},
            {"n_repetitions": 0},
            {"n_jobs": 0},
            {"n_jobs": -3},
            {"grid_shape": (2, 2, 2)},
        ],
    )
    def test_invalid_values(self, changes):
        """Invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            SpatialCVConfig(**changes)

    def test_unknown_keys(self):
        """from_dict rejects keys that are not config fields."""
        with pytest.raises(ConfigurationError, match="Unknown configuration keys"):
            SpatialCVConfig.from_dict({"n_folds": 5, "folds": 3})

    def test_grid_shape_normalised(self):
        """A list grid_shape from a file becomes a tuple."""
        config = SpatialCVConfig.from_dict({"method": "grid", "grid_shape": [3, 4]})
        assert config.grid_shape == (3, 4)
        assert config.to_dict()["grid_shape"] == [3, 4]


class TestLoadConfig:
    """Tests for load_config."""

    def test_yaml(self, tmp_path):
        """YAML files load into a config."""
        path = tmp_path / "cv.yaml"
        path.write_text(
            yaml.safe_dump(
                {"n_folds": 4, "buffer_distance": 150.0, "random_state": 7}
            )
        )
        config = load_config(path)
        assert config.n_folds == 4
        assert config.buffer_distance == 150.0
        assert config.random_state == 7

    def test_json(self, tmp_path):
        """JSON files load into a config."""
        path = tmp_path / "cv.json"
        path.write_text(json.dumps({"method": "grid", "scoring": "accuracy"}))
        config = load_config(path)
        assert config.method == "grid"
        assert config.scoring == "accuracy"

    def test_empty_file(self, tmp_path, monkeypatch):
        """An empty YAML file yields defaults."""
        monkeypatch.delenv("SPATIALCV_N_JOBS", raising=False)
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == SpatialCVConfig()

    def test_missing_file(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_not_a_mapping(self, tmp_path):
        """Top-level lists are rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_malformed_yaml(self, tmp_path):
        """Parse errors surface as ConfigurationError."""
        path = tmp_path / "bad.yaml"
        path.write_text("n_folds: [5\n")
        with pytest.raises(ConfigurationError, match="Could not parse"):
            load_config(path)

    def test_env_override(self, tmp_path, monkeypatch):
        """SPATIALCV_N_JOBS overrides n_jobs."""
        path = tmp_path / "cv.yaml"
        path.write_text("n_jobs: 1\n")
        monkeypatch.setenv("SPATIALCV_N_JOBS", "4")
        assert load_config(path).n_jobs == 4

    def test_bad_env_override(self, tmp_path, monkeypatch):
        """Non-integer overrides are rejected."""
        path = tmp_path / "cv.yaml"
        path.write_text("n_jobs: 1\n")
        monkeypatch.setenv("SPATIALCV_N_JOBS", "many")
        with pytest.raises(ConfigurationError, match="SPATIALCV_N_JOBS"):
            load_config(path)

    def test_zero_env_override(self, tmp_path, monkeypatch):
        """An override of zero workers is rejected at load time."""
        path = tmp_path / "cv.yaml"
        path.write_text("n_jobs: 2\n")
        monkeypatch.setenv("SPATIALCV_N_JOBS", "0")
        with pytest.raises(ConfigurationError, match="n_jobs"):
            load_config(path)


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_update_and_get(self, monkeypatch):
        """update validates and replaces the held config."""
        monkeypatch.delenv("SPATIALCV_N_JOBS", raising=False)
        manager = ConfigManager()
        manager.update(n_folds=10, buffer_distance=50.0)
        assert manager.get("n_folds") == 10
        assert manager.get("missing", "default") == "default"

        with pytest.raises(ConfigurationError):
            manager.update(n_folds=1)
        assert manager.get("n_folds") == 10

    def test_save_and_reload(self, tmp_path, monkeypatch):
        """Saved YAML reloads to an equal config."""
        monkeypatch.delenv("SPATIALCV_N_JOBS", raising=False)
        manager = ConfigManager(SpatialCVConfig(n_folds=3, method="grid", grid_shape=(2, 3)))
        path = tmp_path / "saved.yaml"
        manager.save(path)
        assert ConfigManager.from_file(path).config == manager.config


class TestErrors:
    """Error formatting helpers."""

    def test_suggestion_in_message(self):
        """Suggestions are appended to str()."""
        error = SpatialCVError("bad folds", suggestion="use fewer folds")
        assert "Suggestion: use fewer folds" in str(error)

    def test_parameter_message(self):
        """Parameter errors list valid values and constraints."""
        message = format_parameter_error(
            "method", "hex", valid_values=["kmeans", "grid"], constraint="known"
        )
        assert "Invalid value for parameter 'method': hex" in message
        assert "Valid values: kmeans, grid" in message
        assert "Constraint: known" in message

    def test_dependency_error(self):
        """Dependency errors carry an install hint and are ImportErrors."""
        assert "pip install spatialcv[geo]" in format_dependency_error(
            "geopandas", optional_group="geo"
        )
        with pytest.raises(ImportError):
            raise_dependency_error("geopandas")
        with pytest.raises(DependencyError, match="pip install geopandas"):
            raise_dependency_error("geopandas")
