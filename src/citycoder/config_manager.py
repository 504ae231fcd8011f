"""
Configuration manager for geocoder settings.

Loads engine configuration from YAML files, validates settings,
and provides environment variable substitution.
"""

import os
import re
import yaml
from typing import Dict, Any, List, Optional
from pathlib import Path
from dataclasses import dataclass, field

GEONAMES_CITIES = "geonamesCities1000"
GEONAMES_COUNTRY_INFO = "geonamesCountryInfo"
MAXMIND_WORLD_CITIES = "maxmindWorldCities"

KNOWN_DATASET_IDS = (GEONAMES_CITIES, GEONAMES_COUNTRY_INFO, MAXMIND_WORLD_CITIES)


@dataclass
class DatasetSource:
    """A raw feed: where to fetch it and where it lives locally."""
    id: str
    url: str
    path: Path
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "url": self.url,
            "path": str(self.path),
            "enabled": self.enabled,
        }


def default_datasets(data_dir: Path) -> List[DatasetSource]:
    """Standard Geonames and MaxMind feeds, in load order."""
    return [
        DatasetSource(
            id=GEONAMES_CITIES,
            url="http://download.geonames.org/export/dump/cities1000.zip",
            path=data_dir / "cities1000.zip",
        ),
        DatasetSource(
            id=GEONAMES_COUNTRY_INFO,
            url="http://download.geonames.org/export/dump/countryInfo.txt",
            path=data_dir / "countryInfo.txt",
        ),
        DatasetSource(
            id=MAXMIND_WORLD_CITIES,
            url="http://download.maxmind.com/download/worldcities/worldcitiespop.txt.gz",
            path=data_dir / "worldcitiespop.txt.gz",
        ),
    ]


@dataclass
class GeocoderConfig:
    """Validated geocoder configuration."""
    data_dir: Path = Path("citycoder-data")
    snapshot_dir: Optional[Path] = None
    datasets: List[DatasetSource] = field(default_factory=list)
    download_enabled: bool = True
    download_timeout: int = 300
    min_score: int = 1

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        if self.snapshot_dir is None:
            self.snapshot_dir = self.data_dir
        self.snapshot_dir = Path(self.snapshot_dir)
        if not self.datasets:
            self.datasets = default_datasets(self.data_dir)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "data_dir": str(self.data_dir),
            "snapshot_dir": str(self.snapshot_dir),
            "download": {
                "enabled": self.download_enabled,
                "timeout": self.download_timeout,
            },
            "forward": {"min_score": self.min_score},
            "datasets": [source.to_dict() for source in self.datasets],
        }


class ConfigManager:
    """Manages geocoder configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration YAML file (optional)
        """
        self.config_path = config_path
        self._config: Optional[Dict[str, Any]] = None

    def load(self, config_path: Optional[Path] = None) -> GeocoderConfig:
        """Load and validate configuration from YAML file.

        Args:
            config_path: Path to configuration file (overrides init path)

        Returns:
            GeocoderConfig with validated settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If configuration is invalid
        """
        path = config_path or self.config_path
        if path is None:
            raise ValueError("No configuration path provided")

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r') as f:
            config = yaml.safe_load(f) or {}

        config = self._substitute_env_vars(config)
        self._validate_config(config)
        self._config = config

        return self._create_geocoder_config(config)

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute environment variables in configuration.

        Supports syntax: ${VAR_NAME} or ${VAR_NAME:default_value}
        """
        if isinstance(config, dict):
            return {
                key: self._substitute_env_vars(value)
                for key, value in config.items()
            }
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_string(config)
        else:
            return config

    def _substitute_env_var_string(self, value: str) -> str:
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replacer, value)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate configuration structure.

        Raises:
            ValueError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")

        download = config.get("download", {})
        if not isinstance(download, dict):
            raise ValueError("download must be a dictionary")
        if "timeout" in download and int(download["timeout"]) <= 0:
            raise ValueError("download.timeout must be positive")

        forward = config.get("forward", {})
        if not isinstance(forward, dict):
            raise ValueError("forward must be a dictionary")
        if "min_score" in forward and int(forward["min_score"]) < 0:
            raise ValueError("forward.min_score must not be negative")

        datasets = config.get("datasets", [])
        if not isinstance(datasets, list):
            raise ValueError("datasets must be a list")

        for dataset in datasets:
            if not isinstance(dataset, dict):
                raise ValueError("Each dataset entry must be a dictionary")
            for required in ("id", "path"):
                if required not in dataset:
                    raise ValueError(f"Dataset entry missing required field: {required}")
            if dataset["id"] not in KNOWN_DATASET_IDS:
                raise ValueError(f"Unknown dataset id: {dataset['id']}")

    def _create_geocoder_config(self, config: Dict[str, Any]) -> GeocoderConfig:
        data_dir = Path(config.get("data_dir", "citycoder-data")).expanduser()
        snapshot_dir = config.get("snapshot_dir")
        download = config.get("download", {})
        forward = config.get("forward", {})

        datasets = [
            DatasetSource(
                id=dataset["id"],
                url=dataset.get("url", ""),
                path=self._resolve_path(dataset["path"], data_dir),
                enabled=dataset.get("enabled", True),
            )
            for dataset in config.get("datasets", [])
        ]

        return GeocoderConfig(
            data_dir=data_dir,
            snapshot_dir=Path(snapshot_dir).expanduser() if snapshot_dir else None,
            datasets=datasets,
            download_enabled=download.get("enabled", True),
            download_timeout=int(download.get("timeout", 300)),
            min_score=int(forward.get("min_score", 1)),
        )

    @staticmethod
    def _resolve_path(value: str, data_dir: Path) -> Path:
        """Relative dataset paths are taken relative to data_dir."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return data_dir / path

    def save_example_config(self, output_path: Path) -> None:
        """Save an example configuration file.

        Args:
            output_path: Path where to save example config
        """
        example_config = {
            "data_dir": "${CITYCODER_DATA_DIR:citycoder-data}",
            "snapshot_dir": "${CITYCODER_SNAPSHOT_DIR:citycoder-data}",
            "download": {
                "enabled": True,
                "timeout": 300,
            },
            "forward": {
                "min_score": 1,
            },
            "datasets": [
                {
                    "id": source.id,
                    "url": source.url,
                    "path": source.path.name,
                }
                for source in default_datasets(Path("."))
            ],
        }

        with open(output_path, 'w') as f:
            yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
