from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_LOG_LEVEL = logging.WARNING
LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s]: %(message)s'


def configure_logging(config_path: Optional[Path] = None, level: Optional[str] = None) -> logging.Logger:
    """Configure root logging for DiskStore tools.

    The level comes from `level` if given, else from the ``log_level`` key
    of the YAML config at `config_path`, else WARNING. An unreadable config
    or an unknown level name falls back to the default. Returns a module
    logger for the caller.
    """
    log_level = DEFAULT_LOG_LEVEL
    name = level
    if name is None and config_path is not None and config_path.exists():
        try:
            with config_path.open('r', encoding='utf-8') as _f:
                _cfg = yaml.safe_load(_f) or {}
            name = _cfg.get('log_level') if isinstance(_cfg, dict) else None
        except (OSError, yaml.YAMLError):
            logging.getLogger(__name__).warning('Could not read log level from %s', config_path)
    if isinstance(name, str):
        _numeric = getattr(logging, name.upper(), None)
        if isinstance(_numeric, int):
            log_level = _numeric

    # Reconfigure root handlers to use the selected level and format
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)
    logger.debug('Log level set to: %s', logging.getLevelName(log_level))
    return logger
