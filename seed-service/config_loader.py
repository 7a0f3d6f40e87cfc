"""
Unified config loader for the region seeding service.

Precedence: ENV > config/config.local.yaml > config/config.yaml

Region connection strings come from the env var named by each region
entry (DATABASE_REGION_A/B/C by default). Without a YAML region list the
built-in DEFAULT_REGIONS table is used, so env-only deployments still get
all three regions.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

CONFIG_DIR_NAME = "config"
BASE_CONFIG = "config.yaml"
LOCAL_CONFIG = "config.local.yaml"
MAX_SEARCH_DEPTH = 10

# Built-in region table, first entry is the default analytics region
DEFAULT_REGIONS: List[Dict[str, str]] = [
    {"code": "us-east-2", "name": "Cleveland, USA (East)",
     "location": "Ohio", "env_var": "DATABASE_REGION_A"},
    {"code": "us-west-1", "name": "San Francisco, USA (West)",
     "location": "California", "env_var": "DATABASE_REGION_B"},
    {"code": "ap-southeast-1", "name": "Singapore (Southeast)",
     "location": "Singapore", "env_var": "DATABASE_REGION_C"},
]


def _find_config_dir(start: Optional[Path] = None) -> Optional[Path]:
    """Nearest config/ holding config.yaml, searching upward from start (cwd)."""
    here = (start or Path.cwd()).resolve()
    for d in [here, *here.parents][:MAX_SEARCH_DEPTH]:
        if (d / CONFIG_DIR_NAME / BASE_CONFIG).is_file():
            return d / CONFIG_DIR_NAME
    return None


def _deep_merge(a: Dict, b: Dict) -> Dict:
    """Deep merge b into a (b wins); lists and scalars are replaced."""
    result = dict(a)
    for key, val in b.items():
        if isinstance(val, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _load_yaml(path: Path) -> Dict:
    if not path.is_file():
        return {}
    data = yaml.safe_load(path.read_text())
    return data if isinstance(data, dict) else {}


def _env_int(name: str) -> Optional[int]:
    try:
        return int(os.environ[name])
    except (KeyError, ValueError):
        return None


def region_entries(cfg: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Configured region entries, or the built-in table when none are set."""
    return cfg.get("regions") or copy.deepcopy(DEFAULT_REGIONS)


def _region_urls_from_env(cfg: Dict) -> Dict[str, str]:
    urls = {}
    for region in region_entries(cfg):
        env_var = region.get("env_var")
        value = os.environ.get(env_var) if env_var else None
        if value:
            urls[region["code"]] = value
    return urls


def _apply_env_overrides(cfg: Dict) -> None:
    """Apply env-var overrides on top of the merged YAML."""
    db = cfg.setdefault("database", {})
    db["urls"] = {**(db.get("urls") or {}), **_region_urls_from_env(cfg)}

    for key, env_var in (("pool_min", "DB_POOL_MIN"), ("pool_max", "DB_POOL_MAX")):
        value = _env_int(env_var)
        if value is not None:
            db[key] = value

    log = cfg.setdefault("logging", {})
    log["level"] = os.environ.get("LOG_LEVEL") or log.get("level")

    port = _env_int("PORT")
    if port is not None:
        cfg.setdefault("server", {})["port"] = port


_config: Optional[Dict] = None


def load_config() -> Dict[str, Any]:
    """Load and return the merged config dict (singleton)."""
    global _config
    if _config is not None:
        return _config

    merged: Dict = {}
    config_dir = _find_config_dir()
    if config_dir:
        merged = _deep_merge(
            _load_yaml(config_dir / BASE_CONFIG),
            _load_yaml(config_dir / LOCAL_CONFIG),
        )

    _apply_env_overrides(merged)
    _config = merged
    return _config


def get_config() -> Dict[str, Any]:
    return _config if _config is not None else load_config()
