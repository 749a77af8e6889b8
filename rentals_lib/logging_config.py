from __future__ import annotations
import logging
from pathlib import Path
import yaml
from typing import Optional

from rentals_lib.config.config import DEFAULT_CONFIG_PATH


def configure_logging(config_path: Optional[Path] = None, level: Optional[str] = None) -> logging.Logger:
    """Configure root logging for the application.

    An explicit `level` wins; otherwise `log_level` is read from the YAML
    server config. Root handlers are replaced so repeated calls (tests,
    reloads) do not stack handlers. Returns a module logger for the caller.
    """
    default_level = logging.WARNING

    lvl_name = level
    if lvl_name is None:
        cfg_path = config_path or DEFAULT_CONFIG_PATH
        if cfg_path.exists():
            try:
                with cfg_path.open('r', encoding='utf-8') as _f:
                    _cfg = yaml.safe_load(_f) or {}
                    lvl_name = _cfg.get('log_level') if isinstance(_cfg, dict) else None
            except (OSError, yaml.YAMLError):
                # If config parse fails, fall back to default level
                lvl_name = None
    if isinstance(lvl_name, str):
        numeric = getattr(logging, lvl_name.upper(), None)
        if isinstance(numeric, int):
            default_level = numeric

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=default_level, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logging.log(100, f'[rentals]: Log level set to: {logging.getLevelName(default_level)}')
    logger = logging.getLogger(__name__)

    # Keep known noisy libraries quiet by default
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logger.info("Starting rentals store server")

    return logger
