"""Command line interface."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any

from hubblecli.defaults import DIAL_TIMEOUT, SERVER_ADDRESS, config_file, init_logger
from hubblecli.peer import run_peer
from hubblecli.status import run_status
from hubblecli.timeutil import parse_duration
from hubblecli.version import version_line

PROGRAM = "hubble"
VERSION = "0.10.0"
GIT_BRANCH = ""
GIT_HASH = ""

_DESCRIPTION = (
    "Hubble is a utility to observe and inspect recent Cilium routed traffic in a cluster."
)


def _timeout(text: str) -> float:
    return parse_duration(text).total_seconds()


def _add_global_flags(parser: argparse.ArgumentParser, suppress: bool) -> None:
    default: Any = argparse.SUPPRESS if suppress else None
    parser.add_argument("--config", default=default, help="Optional config file")
    parser.add_argument(
        "-D", "--debug", action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Enable debug messages",
    )


def _add_server_flags(parser: argparse.ArgumentParser, suppress: bool) -> None:
    default: Any = argparse.SUPPRESS if suppress else None
    parser.add_argument("--server", default=default, help="Address of a Hubble server")
    parser.add_argument(
        "--timeout", type=_timeout, default=default,
        help="Hubble server dialing timeout",
    )


def _connect(server: str, timeout: float) -> Any:
    raise ConnectionError(
        f"failed to connect to '{server}': no gRPC transport is available"
    )


def _read_config(path: str) -> dict[str, str]:
    """Read top-level 'key: value' pairs of a configuration file."""
    values: dict[str, str] = {}
    try:
        with open(path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    except OSError:
        return values
    for line in lines:
        if not line or line[0].isspace() or line.lstrip().startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        value = value.split(" #", 1)[0].strip().strip("'\"")
        values[key.strip()] = value
    return values


def _run_status(args: argparse.Namespace) -> None:
    run_status(_connect(args.server, args.timeout), args.output, sys.stdout)


def _run_peers(args: argparse.Namespace) -> None:
    client = _connect(args.server, args.timeout)
    run_peer(client.notify(), sys.stdout)


def _run_version(args: argparse.Namespace) -> None:
    print(version_line(PROGRAM, VERSION, GIT_BRANCH, GIT_HASH))


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser of the command line tool."""
    parser = argparse.ArgumentParser(prog=PROGRAM, description=_DESCRIPTION)
    parser.add_argument(
        "-v", "--version", dest="show_version", action="store_true",
        help="version for hubble",
    )
    _add_global_flags(parser, suppress=False)
    _add_server_flags(parser, suppress=False)
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    status = commands.add_parser(
        "status", help="Display status of Hubble server",
        description="Display shows the status of the Hubble server. This is "
        "intended as a basic connectivity health check.",
    )
    _add_global_flags(status, suppress=True)
    _add_server_flags(status, suppress=True)
    status.add_argument(
        "-o", "--output", default="compact",
        help="Output format: compact, dict, json or table",
    )
    status.set_defaults(handler=_run_status)

    version = commands.add_parser(
        "version", help="Display detailed version information",
        description="Displays information about the version of this software.",
    )
    _add_global_flags(version, suppress=True)
    version.set_defaults(handler=_run_version)

    watch = commands.add_parser("watch", aliases=["w"], help="Watch Hubble objects")
    _add_global_flags(watch, suppress=True)
    _add_server_flags(watch, suppress=True)
    watch.set_defaults(handler=lambda args: watch.print_help())
    watch_commands = watch.add_subparsers(dest="watch_command", metavar="COMMAND")
    peers = watch_commands.add_parser(
        "peers", aliases=["peer"], help="Watch for Hubble peers updates"
    )
    _add_global_flags(peers, suppress=True)
    _add_server_flags(peers, suppress=True)
    peers.set_defaults(handler=_run_peers)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool and return its exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    path = args.config or config_file()
    settings = _read_config(path) if path and os.path.isfile(path) else {}
    debug = args.debug or settings.get("debug", "").lower() == "true"
    logger = init_logger(debug)
    if settings:
        logger.debug("Using config file", extra={"fields": {"config-file": path}})

    if args.show_version:
        sys.stdout.write(f"{PROGRAM} v{VERSION}\r\n")
        return 0

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    try:
        if args.server is None:
            args.server = settings.get("server") or SERVER_ADDRESS
        if args.timeout is None:
            configured = settings.get("timeout")
            args.timeout = _timeout(configured) if configured else DIAL_TIMEOUT
        handler(args)
    except Exception as err:
        print(err, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())