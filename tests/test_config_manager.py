"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
import yaml

from citycoder.config_manager import (
    ConfigManager,
    GeocoderConfig,
    GEONAMES_CITIES,
    KNOWN_DATASET_IDS,
    MAXMIND_WORLD_CITIES,
)


def write_config(path: Path, config) -> Path:
    with open(path, "w") as f:
        yaml.dump(config, f)
    return path


class TestGeocoderConfig:
    """Test config defaults."""

    def test_defaults(self):
        config = GeocoderConfig()
        assert config.data_dir == Path("citycoder-data")
        assert config.snapshot_dir == config.data_dir
        assert [source.id for source in config.datasets] == [
            "geonamesCities1000", "geonamesCountryInfo", "maxmindWorldCities",
        ]
        assert config.download_enabled
        assert config.min_score == 1

    def test_default_paths_follow_data_dir(self, tmp_path):
        config = GeocoderConfig(data_dir=tmp_path)
        assert [source.path for source in config.datasets] == [
            tmp_path / "cities1000.zip",
            tmp_path / "countryInfo.txt",
            tmp_path / "worldcitiespop.txt.gz",
        ]

    def test_to_dict(self, config):
        data = config.to_dict()
        assert data["download"] == {"enabled": False, "timeout": 300}
        assert data["forward"] == {"min_score": 1}
        assert len(data["datasets"]) == 3


class TestConfigManager:
    """Test YAML loading and validation."""

    def test_load(self, tmp_path):
        path = write_config(tmp_path / "config.yaml", {
            "data_dir": str(tmp_path / "geo"),
            "download": {"enabled": False, "timeout": 30},
            "forward": {"min_score": 3},
            "datasets": [
                {"id": GEONAMES_CITIES, "url": "http://example.invalid/c.zip", "path": "c.zip"},
                {"id": MAXMIND_WORLD_CITIES, "path": "/abs/world.gz", "enabled": False},
            ],
        })

        config = ConfigManager(path).load()

        assert config.data_dir == tmp_path / "geo"
        assert config.snapshot_dir == tmp_path / "geo"
        assert not config.download_enabled
        assert config.download_timeout == 30
        assert config.min_score == 3
        assert config.datasets[0].path == tmp_path / "geo" / "c.zip"
        assert config.datasets[1].path == Path("/abs/world.gz")
        assert config.datasets[1].url == ""
        assert not config.datasets[1].enabled

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEO_ROOT", str(tmp_path / "env"))
        monkeypatch.delenv("GEO_SNAPSHOTS", raising=False)
        path = write_config(tmp_path / "config.yaml", {
            "data_dir": "${GEO_ROOT}",
            "snapshot_dir": "${GEO_SNAPSHOTS:" + str(tmp_path / "snaps") + "}",
        })

        config = ConfigManager().load(path)

        assert config.data_dir == tmp_path / "env"
        assert config.snapshot_dir == tmp_path / "snaps"

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = ConfigManager(path).load()
        assert config.data_dir == Path("citycoder-data")
        assert len(config.datasets) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager(tmp_path / "absent.yaml").load()

    def test_no_path(self):
        with pytest.raises(ValueError):
            ConfigManager().load()

    @pytest.mark.parametrize("config", [
        {"download": "yes"},
        {"download": {"timeout": 0}},
        {"forward": {"min_score": -1}},
        {"datasets": {"id": GEONAMES_CITIES}},
        {"datasets": [{"id": GEONAMES_CITIES}]},
        {"datasets": [{"id": "somethingElse", "path": "x"}]},
        {"datasets": ["cities1000.zip"]},
    ])
    def test_invalid(self, tmp_path, config):
        path = write_config(tmp_path / "bad.yaml", config)
        with pytest.raises(ValueError):
            ConfigManager(path).load()

    def test_example_config_loads(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CITYCODER_DATA_DIR", str(tmp_path / "data"))
        monkeypatch.delenv("CITYCODER_SNAPSHOT_DIR", raising=False)
        path = tmp_path / "example.yaml"

        ConfigManager().save_example_config(path)
        config = ConfigManager(path).load()

        assert config.data_dir == tmp_path / "data"
        assert {source.id for source in config.datasets} == set(KNOWN_DATASET_IDS)
        assert all(source.path.parent == tmp_path / "data" for source in config.datasets)
        assert all(source.url.startswith("http://") for source in config.datasets)
