"""Runtime configuration for the rentals store.

Settings come from a YAML file (`data/config/server_config.yml` by default)
with a few environment overrides. Unknown keys in the file are ignored so
older config files keep loading.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from rentals_lib.store.collection_store import KEY_PREFIX
from rentals_lib.store.verification import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('data/config/server_config.yml')
ALLOW_DATA_CLEAR_ENV = 'RENTALS_ALLOW_DATA_CLEAR'


@dataclass
class Config:
    data_dir: str = "data"
    storage_backend: str = "file"
    serializer: str = "json"
    key_prefix: str = KEY_PREFIX
    allow_data_clear: bool = False
    protected_collections: List[str] = field(default_factory=lambda: ['users'])
    verify_attempts: int = 5
    verify_settle_delay: float = 0.2
    verify_retry_delay: float = 0.3
    query_cache_ttl: float = 5.0
    # When set, the identity store blob is encrypted with this passphrase
    identity_secret: Optional[str] = None
    password_iterations: int = 200000
    log_level: str = "WARNING"

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            attempts=self.verify_attempts,
            settle_delay=self.verify_settle_delay,
            retry_delay=self.verify_retry_delay,
        )


def _env_flag(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def config_from_dict(data: Dict[str, Any]) -> Config:
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ', '.join(unknown))
    return Config(**{k: v for k, v in data.items() if k in known})


def load_config(path: Optional[Path] = None) -> Config:
    """Load `Config` from YAML, falling back to defaults when the file is missing."""
    cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
    data: Dict[str, Any] = {}
    if cfg_path.exists():
        with cfg_path.open('r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"invalid config format in {cfg_path}: expected mapping")
        data = loaded
    else:
        logger.info("No config file at %s; using defaults", cfg_path)

    cfg = config_from_dict(data)
    flag = _env_flag(ALLOW_DATA_CLEAR_ENV)
    if flag is not None:
        cfg.allow_data_clear = flag
    return cfg


def write_template(path: Optional[Path] = None) -> Path:
    """Write a YAML config populated with defaults and return its path."""
    cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    defaults = {f.name: getattr(Config(), f.name) for f in fields(Config)}
    with cfg_path.open('w', encoding='utf-8') as f:
        yaml.safe_dump(defaults, f, sort_keys=False)
    return cfg_path
