"""
Command-line front end for the warpd daemon.

Usage:
    warpd-ui [--config PATH] [--socket PATH] [--timeout SECONDS] status
    warpd-ui elements
    warpd-ui click ID
    warpd-ui config get KEY

Exit status is 0 on success, 1 when the daemon call fails and 2 for usage
errors.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, TextIO

import yaml
from pydantic import ValidationError

from warpd_ui import __version__
from warpd_ui.config import build_arg_parser, load_config
from warpd_ui.daemon import DaemonAPI
from warpd_ui.ipc.protocol import IPCError, IPCRemoteError
from warpd_ui.logging import get_logger, setup_logging
from warpd_ui.view import UIState, status_text

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _uint(value: str) -> int:
    """argparse type for element ids."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI parser (global options plus subcommands)."""
    parser = argparse.ArgumentParser(
        prog="warpd-ui",
        description="Query and control the warpd daemon",
        parents=[build_arg_parser(add_help=False)],
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("status", help="Show daemon status")
    commands.add_parser("elements", help="List interactable elements")

    for name, help_text in (
        ("click", "Click an element"),
        ("focus", "Move the pointer onto an element"),
        ("info", "Show details of an element"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("id", type=_uint, help="Element id from 'elements'")

    config = commands.add_parser("config", help="Read or change daemon config")
    config_commands = config.add_subparsers(dest="config_command", required=True)
    config_commands.add_parser("get-all", help="Show all config values")
    get = config_commands.add_parser("get", help="Show one config value")
    get.add_argument("key")
    set_ = config_commands.add_parser("set", help="Change one config value")
    set_.add_argument("key")
    set_.add_argument("value")
    config_commands.add_parser("schema", help="Show the config schema")

    return parser


def _print_json(data: Any, out: TextIO) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False), file=out)


def run_command(args: argparse.Namespace, ui: UIState, out: TextIO) -> int:
    """
    Execute a parsed command against the daemon.

    Raises:
        IPCError: If a daemon call fails.
    """
    api: DaemonAPI = ui.api

    if args.command == "status":
        print(status_text(api.status()), file=out)
        return EXIT_OK

    if args.command == "elements":
        ui.elements = api.list_elements(limit=ui.max_elements)
        for line in ui.lines():
            print(line, file=out)
        return EXIT_OK

    if args.command in ("click", "focus"):
        method = f"elements.{args.command}"
        api.call(method, {"id": args.id})
        print(f"sent {method}", file=out)
        return EXIT_OK

    if args.command == "info":
        print(api.element_info(args.id).display_line(), file=out)
        return EXIT_OK

    if args.command == "config":
        if args.config_command == "get-all":
            _print_json(api.config_get_all(), out)
        elif args.config_command == "get":
            print(api.config_get(args.key), file=out)
        elif args.config_command == "set":
            api.config_set(args.key, args.value)
            print(f"{args.key} = {args.value}", file=out)
        else:
            _print_json(api.config_schema(), out)
        return EXIT_OK

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """
    CLI entry point.

    Args:
        argv: Arguments without the program name. If None, uses sys.argv.
        out: Stream for command output. If None, uses stdout.

    Returns:
        Process exit status.
    """
    out = out or sys.stdout
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_args(argv)

    try:
        config = load_config(cli_args=argv)
    except (FileNotFoundError, yaml.YAMLError, ValidationError, ValueError) as e:
        print(f"warpd-ui: invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(
        config.logging,
        default_fields={"socket_path": config.ipc.socket_path, "ui_version": __version__},
    )
    ui = UIState.from_config(config)

    try:
        return run_command(args, ui, out)
    except IPCRemoteError as e:
        logger.debug("Daemon rejected request", extra={"code": e.code, "error": e.message})
        print(f"warpd-ui: daemon error {e.code}: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
    except IPCError as e:
        logger.debug("Daemon call failed", extra={"error": e.message, "details": e.details})
        print(f"warpd-ui: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
