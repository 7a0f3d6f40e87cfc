"""
Configuration for the region seeding service

Typed views over the merged config dict from config_loader. Seed volumes
are deploy-time settings: they are read from YAML only and handed to the
loader and orchestrator explicitly.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config_loader import get_config, region_entries

# Seed defaults
DEFAULT_TOTAL_RECORDS = 20000
DEFAULT_BATCH_SIZE = 1000
DEFAULT_PARALLEL_BATCHES = 5

# Server defaults
DEFAULT_PORT = 8001
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class Region:
    """A named deployment/storage locality"""
    code: str
    name: str
    location: str = ""
    env_var: Optional[str] = None


@dataclass(frozen=True)
class SeedSettings:
    """Volumes for one seeding run"""
    total_records: int = DEFAULT_TOTAL_RECORDS
    batch_size: int = DEFAULT_BATCH_SIZE
    parallel_batches: int = DEFAULT_PARALLEL_BATCHES

    def __post_init__(self):
        if self.total_records < 0:
            raise ValueError(f"total_records must be >= 0, got {self.total_records}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {self.batch_size}")
        if self.parallel_batches <= 0:
            raise ValueError(f"parallel_batches must be > 0, got {self.parallel_batches}")


@dataclass(frozen=True)
class DatabaseSettings:
    urls: Dict[str, str] = field(default_factory=dict)
    pool_min: int = 0
    pool_max: int = 10


def regions_from_config(cfg: Optional[Dict[str, Any]] = None) -> List[Region]:
    cfg = get_config() if cfg is None else cfg
    entries = region_entries(cfg)
    return [
        Region(
            code=e["code"],
            name=e.get("name", e["code"]),
            location=e.get("location", ""),
            env_var=e.get("env_var"),
        )
        for e in entries
    ]


def seed_settings_from_config(cfg: Optional[Dict[str, Any]] = None) -> SeedSettings:
    cfg = get_config() if cfg is None else cfg
    s = cfg.get("seed") or {}
    return SeedSettings(
        total_records=int(s.get("total_records", DEFAULT_TOTAL_RECORDS)),
        batch_size=int(s.get("batch_size", DEFAULT_BATCH_SIZE)),
        parallel_batches=int(s.get("parallel_batches", DEFAULT_PARALLEL_BATCHES)),
    )


def database_settings_from_config(cfg: Optional[Dict[str, Any]] = None) -> DatabaseSettings:
    """
    Build pool settings.

    The pool must hold at least one connection per in-flight batch, so
    pool_max is raised to parallel_batches when configured lower.
    """
    cfg = get_config() if cfg is None else cfg
    db = cfg.get("database") or {}
    seed = seed_settings_from_config(cfg)
    pool_max = max(int(db.get("pool_max", 10)), seed.parallel_batches)
    return DatabaseSettings(
        urls=dict(db.get("urls") or {}),
        pool_min=int(db.get("pool_min", 0)),
        pool_max=pool_max,
    )


def server_port(cfg: Optional[Dict[str, Any]] = None) -> int:
    cfg = get_config() if cfg is None else cfg
    return int((cfg.get("server") or {}).get("port", DEFAULT_PORT))


def configure_logging(cfg: Optional[Dict[str, Any]] = None) -> None:
    cfg = get_config() if cfg is None else cfg
    level = (cfg.get("logging") or {}).get("level") or DEFAULT_LOG_LEVEL
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
