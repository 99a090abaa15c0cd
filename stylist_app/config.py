"""Configuration helpers for the Wardrobe Stylist app."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_LATITUDE = -33.8688
DEFAULT_LONGITUDE = 18.4793
DEFAULT_MAX_ITERATIONS = 8


@dataclass
class AppConfig:
    """Configuration values for the stylist app.

    Every file the assistant reads or writes lives below ``data_dir`` so a
    local checkout only needs one folder of photos plus ``catalog.json``.
    """

    api_key: Optional[str] = None
    model: str = DEFAULT_GEMINI_MODEL
    data_dir: str = "data"
    default_latitude: float = DEFAULT_LATITUDE
    default_longitude: float = DEFAULT_LONGITUDE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    weather_timeout_seconds: float = 10.0
    environment: str | None = None

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def catalog_path(self) -> Path:
        return self.data_path / "catalog.json"

    @property
    def weekly_log_path(self) -> Path:
        return self.data_path / "weekly-log.json"

    @property
    def person_photos_path(self) -> Path:
        return self.data_path / "person-photos.json"

    @property
    def person_photo_dir(self) -> Path:
        return self.data_path / "me"

    @property
    def generated_dir(self) -> Path:
        return self.data_path / "generated"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default; environment variables win over file values so the Gemini key
        never has to be committed.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("STYLIST_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        return cls(
            api_key=get_value("gemini_api_key"),
            model=str(get_value("model") or DEFAULT_GEMINI_MODEL),
            data_dir=str(get_value("data_dir") or "data"),
            default_latitude=_as_float(get_value("default_latitude"), DEFAULT_LATITUDE),
            default_longitude=_as_float(get_value("default_longitude"), DEFAULT_LONGITUDE),
            max_iterations=int(_as_float(get_value("max_iterations"), DEFAULT_MAX_ITERATIONS)),
            weather_timeout_seconds=_as_float(get_value("weather_timeout_seconds"), 10.0),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` config file."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config


def _as_float(raw: Optional[str], default: float) -> float:
    if raw is None or str(raw).strip() == "":
        return default
    return float(raw)
