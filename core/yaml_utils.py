"""Cached YAML loading for the optional agent profile (``agent.yaml``)."""
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


@lru_cache(maxsize=8)
def _load(resolved: Path) -> dict[str, Any]:
    if not resolved.is_file():
        return {}

    with open(resolved, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{resolved} must contain a mapping, got {type(data).__name__}")
    return data


def load_yaml_config(config_path: Path | str) -> dict[str, Any]:
    """Read a YAML mapping, once per resolved path.

    A missing or empty file yields ``{}``.

    Raises:
        ValueError: If the document is not a mapping at the top level.
    """
    return _load(Path(config_path).resolve())


def clear_yaml_cache() -> None:
    """Forget cached documents so edited files are read again."""
    _load.cache_clear()
