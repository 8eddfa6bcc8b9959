"""Command line front-end for inspecting and editing a DiskStore.

Options may come from a YAML config (``--config`` or the
``DISKSTORE_CONFIG`` environment variable); explicit flags override it.
Values given on the command line are stored as strings.
"""
from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional

from diskstore_lib.config import (
    StoreConfig,
    create_store_from_config,
    default_config_path,
    dump_config,
    load_config,
    template,
)
from diskstore_lib.errors import InvalidConfiguration, StoreError
from diskstore_lib.logging_config import configure_logging
from diskstore_lib.storage import FileStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISSING = 1
EXIT_ERROR = 2


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="diskstore", description="Inspect and edit a file-backed key/value store")
    p.add_argument("--config", type=Path, help="YAML store configuration (default: $DISKSTORE_CONFIG)")
    p.add_argument("--root", help="Store root directory")
    p.add_argument("--mapper", choices=["direct", "hashed"], help="Key to path mapping strategy")
    p.add_argument("--levels", type=int, help="Nesting levels for the hashed mapper")
    p.add_argument("--serializer", choices=["pickle", "json", "yaml", "encrypted"], help="Value serializer")
    p.add_argument("--metadata", choices=["auto", "xattr", "sidecar"], help="Where expiration tokens are kept")
    p.add_argument("--log-level", help="Override the configured log level")

    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("get", help="Print the value stored under KEY").add_argument("key")
    sp = sub.add_parser("set", help="Store VALUE under KEY")
    sp.add_argument("key")
    sp.add_argument("value")
    sp.add_argument("--expires", type=float, metavar="SECONDS", help="Attach an expiration SECONDS from now")
    sub.add_parser("delete", help="Remove KEY").add_argument("key")
    sub.add_parser("exists", help="Exit 0 if KEY is stored, 1 otherwise").add_argument("key")
    sub.add_parser("expires", help="Print the expiration attached to KEY").add_argument("key")
    sub.add_parser("keys", help="List stored keys")
    sub.add_parser("clear", help="Remove every key")
    sub.add_parser("print-template", help="Print a configuration template and exit")
    return p


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    return get_parser().parse_args(list(argv) if argv is not None else None)


def resolve_config(args: argparse.Namespace) -> StoreConfig:
    """Merge the YAML config (if any) with explicit command line flags."""
    config_path = args.config or default_config_path()
    if config_path is not None:
        cfg = load_config(config_path)
    elif args.root:
        cfg = StoreConfig(root=args.root)
    else:
        raise InvalidConfiguration("No store configured: pass --root or --config (or set DISKSTORE_CONFIG)")
    overrides = {
        name: getattr(args, name)
        for name in ("root", "mapper", "levels", "serializer", "metadata", "log_level")
        if getattr(args, name) is not None
    }
    return replace(cfg, **overrides)


def _format(value: object) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return value if isinstance(value, str) else repr(value)


def run_command(store: FileStore, args: argparse.Namespace) -> int:
    cmd = args.command
    if cmd == "get":
        value = store.read(args.key)
        if value is None:
            print(f"{args.key}: not found", file=sys.stderr)
            return EXIT_MISSING
        print(_format(value))
    elif cmd == "set":
        store.write(args.key, args.value)
        if args.expires is not None:
            store.expiration.set(args.key, datetime.now(timezone.utc) + timedelta(seconds=args.expires))
    elif cmd == "delete":
        previous = store.delete(args.key)
        if previous is not None:
            print(_format(previous))
    elif cmd == "exists":
        found = store.exists(args.key)
        print("true" if found else "false")
        return EXIT_OK if found else EXIT_MISSING
    elif cmd == "expires":
        token = store.expiration.get(args.key)
        if token is None:
            print(f"{args.key}: no expiration", file=sys.stderr)
            return EXIT_MISSING
        print(_format(token))
    elif cmd == "keys":
        for key in store.keys():
            print(key)
    elif cmd == "clear":
        store.clear()
    return EXIT_OK


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "print-template":
        sys.stdout.write(dump_config(template()))
        return EXIT_OK
    try:
        cfg = resolve_config(args)
        configure_logging(level=cfg.log_level)
        store = create_store_from_config(cfg)
        return run_command(store, args)
    except StoreError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"diskstore: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
