"""Store configuration.

A store is described by a small YAML document, e.g.::

    root: /var/cache/diskstore
    mapper: hashed
    levels: 2
    serializer: pickle
    metadata: auto
    log_level: INFO

`load_config` turns it into a `StoreConfig`; `create_store_from_config`
builds the matching `FileStore`.
"""
from __future__ import annotations
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from diskstore_lib.errors import InvalidConfiguration
from diskstore_lib.storage import FileStore, create_store

CONFIG_ENV = "DISKSTORE_CONFIG"
DEFAULT_ROOT = "./data/store"


@dataclass
class StoreConfig:
    root: str
    mapper: str = "direct"
    levels: int = 2
    serializer: str = "pickle"
    metadata: str = "auto"
    log_level: str = "WARNING"
    password: Optional[str] = None
    key: Optional[str] = None


def template() -> StoreConfig:
    return StoreConfig(root=DEFAULT_ROOT)


def dump_config(cfg: StoreConfig) -> str:
    """Render `cfg` as YAML, leaving out unset secrets."""
    data = {k: v for k, v in asdict(cfg).items() if v is not None}
    return yaml.safe_dump(data, sort_keys=False)


def parse_config(raw: str | bytes) -> StoreConfig:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        data: Any = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise InvalidConfiguration("invalid config format: parse error") from e
    if not isinstance(data, dict):
        raise InvalidConfiguration("invalid config format: expected mapping")
    if not data.get("root"):
        raise InvalidConfiguration("invalid config format: 'root' is required")

    known = {f.name for f in fields(StoreConfig)}
    unknown = sorted(map(str, set(data) - known))
    if unknown:
        raise InvalidConfiguration(f"invalid config format: unknown option(s) {unknown}")
    cfg = StoreConfig(**data)
    cfg.root = str(cfg.root)
    return cfg


def load_config(path: str | os.PathLike[str]) -> StoreConfig:
    """Read a `StoreConfig` from the YAML file at `path`."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidConfiguration(f"cannot read config {p}: {e}") from e
    return parse_config(raw)


def default_config_path() -> Optional[Path]:
    """Config file named by the ``DISKSTORE_CONFIG`` environment variable, if any."""
    value = os.environ.get(CONFIG_ENV)
    return Path(value) if value else None


def create_store_from_config(cfg: StoreConfig) -> FileStore:
    options: dict[str, Any] = {}
    if cfg.serializer == "encrypted":
        if cfg.password is not None:
            options["password"] = cfg.password
        if cfg.key is not None:
            options["key"] = cfg.key.encode("ascii")
    return create_store(
        cfg.root,
        mapper=cfg.mapper,
        levels=cfg.levels,
        serializer=cfg.serializer,
        metadata=cfg.metadata,
        **options,
    )
