"""Configuration loading and management."""

from pathlib import Path
from typing import Optional

import yaml

from .config_models import PersonaSimConfig

DEFAULT_CONFIG = PersonaSimConfig().to_dict()


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "config.yaml",
        Path.home() / ".personasim" / "config.yaml",
        Path.home() / "personasim" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config_model(config_path: Optional[Path] = None) -> PersonaSimConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    try:
        return PersonaSimConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def write_default_config(path: Path, overrides: Optional[dict] = None) -> Path:
    """Write a starter config.yaml. Existing files are left alone."""
    if path.exists():
        return path
    data = PersonaSimConfig().model_dump(mode="json")
    data["llm"]["api_key"] = "${GEMINI_API_KEY}"
    for section, values in (overrides or {}).items():
        data.setdefault(section, {}).update(values)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path
