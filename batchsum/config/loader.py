import yaml
from pathlib import Path
from typing import Optional
from .models import AppConfig

def load_config(config_path: Optional[Path]) -> AppConfig:
    """Loads YAML config and parses it into AppConfig. No path means defaults."""
    if config_path is None:
        return AppConfig()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    # Flat files with only general keys at the root are accepted too
    if "general" not in data and "concurrency" in data:
        general_keys = set(AppConfig.model_fields["general"].annotation.model_fields)
        data = {
            "general": {k: v for k, v in data.items() if k in general_keys},
            **{k: v for k, v in data.items() if k not in general_keys},
        }

    return AppConfig(**data)
