"""chunked-keyring -- command-line entry point.

Usage::

    python -m chunked_keyring [--config PATH] [--verbose] set SERVICE USER [--value TEXT | --file PATH]
    python -m chunked_keyring get SERVICE USER [--output PATH]
    python -m chunked_keyring delete SERVICE USER
    python -m chunked_keyring info

``set`` reads the secret from stdin when neither ``--value`` nor
``--file`` is given.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from chunked_keyring.chunk import max_chunk_size, max_raw_entry_size
from chunked_keyring.config import Settings, load_settings
from chunked_keyring.entry import Entry
from chunked_keyring.errors import ChunkedKeyringError, NoEntry

logger = logging.getLogger("chunked_keyring")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_ENTRY = 2


# ---------------------------------------------------------------------------
# Integration seams -- module-level names so tests can patch them.
# ---------------------------------------------------------------------------


def load_config(config_path: str | None) -> Settings:
    """Load settings from a YAML file or the bundled defaults."""
    path = Path(config_path) if config_path else None
    return load_settings(config_path=path)


def create_store(settings: Settings) -> Any:
    """Create the configured credential store."""
    from chunked_keyring.secrets import create_store as _create_store

    return _create_store(settings)


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else settings.logging.level.upper()
    logging.basicConfig(level=level, format=settings.logging.format)


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv:
        Argument list.  Defaults to ``sys.argv[1:]`` when ``None``.
    """
    parser = argparse.ArgumentParser(
        prog="chunked-keyring",
        description="Store secrets of any size in the platform credential store",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    set_parser = sub.add_parser("set", help="Store a secret")
    set_parser.add_argument("service")
    set_parser.add_argument("user")
    source = set_parser.add_mutually_exclusive_group()
    source.add_argument("--value", type=str, default=None, help="Secret text")
    source.add_argument("--file", type=str, default=None, help="Read the secret from a file")

    get_parser = sub.add_parser("get", help="Print a secret")
    get_parser.add_argument("service")
    get_parser.add_argument("user")
    get_parser.add_argument(
        "--output", type=str, default=None, help="Write the secret to a file instead of stdout"
    )

    delete_parser = sub.add_parser("delete", help="Delete a secret")
    delete_parser.add_argument("service")
    delete_parser.add_argument("user")

    sub.add_parser("info", help="Show chunk sizing and backend")

    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _read_secret(args: argparse.Namespace) -> bytes:
    if args.value is not None:
        return args.value.encode("utf-8")
    if args.file is not None:
        return Path(args.file).read_bytes()
    return sys.stdin.buffer.read()


def _cmd_set(args: argparse.Namespace, store: Any) -> int:
    entry = Entry(args.service, args.user, store=store)
    entry.set_secret(_read_secret(args))
    logger.info("Stored secret for %s/%s", args.service, args.user)
    return EXIT_OK


def _cmd_get(args: argparse.Namespace, store: Any) -> int:
    entry = Entry(args.service, args.user, store=store)
    secret = entry.get_secret()
    if args.output is not None:
        Path(args.output).write_bytes(secret)
    else:
        sys.stdout.buffer.write(secret)
        sys.stdout.buffer.flush()
    return EXIT_OK


def _cmd_delete(args: argparse.Namespace, store: Any) -> int:
    Entry(args.service, args.user, store=store).delete_credential()
    logger.info("Deleted secret for %s/%s", args.service, args.user)
    return EXIT_OK


def _cmd_info(settings: Settings) -> int:
    print(f"platform:       {sys.platform}")
    print(f"raw entry size: {max_raw_entry_size()}")
    print(f"max chunk size: {max_chunk_size()}")
    print(f"backend:        {settings.store.backend}")
    return EXIT_OK


_COMMANDS = {
    "set": _cmd_set,
    "get": _cmd_get,
    "delete": _cmd_delete,
}


# ---------------------------------------------------------------------------
# Script entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, run one command and return the exit status."""
    args = parse_args(argv)

    try:
        settings = load_config(args.config)
        configure_logging(settings, verbose=args.verbose)

        if args.command == "info":
            return _cmd_info(settings)

        store = create_store(settings)
        return _COMMANDS[args.command](args, store)
    except NoEntry as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_NO_ENTRY
    except ChunkedKeyringError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
