"""
Tests for the warpd-ui command line.

Commands run through main() against the fake daemon from conftest.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from io import StringIO
from pathlib import Path

import pytest

from warpd_ui.cli import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, build_parser, main

from conftest import FakeDaemon, sample_elements


@pytest.fixture(autouse=True)
def _cleanup_loggers() -> Iterator[None]:
    yield
    logger = logging.getLogger("warpd_ui")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def run(daemon: FakeDaemon, *argv: str) -> tuple[int, str]:
    out = StringIO()
    code = main(["--socket", daemon.socket_path, "--timeout", "2", *argv], out=out)
    return code, out.getvalue()


# =============================================================================
# Parser Tests
# =============================================================================


class TestParser:
    """Tests for the argument parser."""

    def test_global_options(self) -> None:
        args = build_parser().parse_args(["--socket", "/tmp/x.sock", "click", "3"])
        assert args.socket == "/tmp/x.sock"
        assert args.command == "click"
        assert args.id == 3

    @pytest.mark.parametrize("value", ["-1", "abc"])
    def test_invalid_element_id(self, value: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["click", value])
        assert exc_info.value.code == EXIT_USAGE

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# =============================================================================
# Command Tests
# =============================================================================


@pytest.mark.integration
class TestCommands:
    """Tests for each command against a running daemon."""

    def test_status(self, fake_daemon: FakeDaemon) -> None:
        assert run(fake_daemon, "status") == (EXIT_OK, "daemon: 0.9.0\n")

    def test_status_without_version(self, fake_daemon: FakeDaemon) -> None:
        fake_daemon.version = None
        assert run(fake_daemon, "status") == (EXIT_OK, "IPC: connected\n")

    def test_elements(self, fake_daemon: FakeDaemon) -> None:
        code, output = run(fake_daemon, "elements")

        assert code == EXIT_OK
        assert output.splitlines() == [
            "[h0] Button 0 (button)",
            "[h1] Button 1 (button)",
            "[h2] Button 2 (button)",
        ]

    def test_elements_capped(self, fake_daemon: FakeDaemon) -> None:
        fake_daemon.elements = sample_elements(60)

        code, output = run(fake_daemon, "elements")

        assert code == EXIT_OK
        assert len(output.splitlines()) == 50

    @pytest.mark.parametrize("command", ["click", "focus"])
    def test_element_action(self, fake_daemon: FakeDaemon, command: str) -> None:
        code, output = run(fake_daemon, command, "2")

        assert code == EXIT_OK
        assert output == f"sent elements.{command}\n"
        assert fake_daemon.actions == [(f"elements.{command}", 2)]

    def test_info(self, fake_daemon: FakeDaemon) -> None:
        assert run(fake_daemon, "info", "1") == (EXIT_OK, "[h1] Button 1 (button)\n")

    def test_config_get_all(self, fake_daemon: FakeDaemon) -> None:
        code, output = run(fake_daemon, "config", "get-all")

        assert code == EXIT_OK
        assert json.loads(output) == fake_daemon.config

    def test_config_get(self, fake_daemon: FakeDaemon) -> None:
        assert run(fake_daemon, "config", "get", "hint_size") == (EXIT_OK, "20\n")

    def test_config_set(self, fake_daemon: FakeDaemon) -> None:
        code, output = run(fake_daemon, "config", "set", "hint_size", "32")

        assert code == EXIT_OK
        assert output == "hint_size = 32\n"
        assert fake_daemon.config["hint_size"] == "32"

    def test_debug_logs_carry_socket_path(
        self, fake_daemon: FakeDaemon, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code, _ = run(fake_daemon, "--debug", "status")

        records = [json.loads(line) for line in capsys.readouterr().err.splitlines()]
        assert code == EXIT_OK
        assert records
        assert all(r["socket_path"] == fake_daemon.socket_path for r in records)
        assert all("ui_version" in r for r in records)

    def test_config_schema(self, fake_daemon: FakeDaemon) -> None:
        code, output = run(fake_daemon, "config", "schema")

        assert code == EXIT_OK
        assert json.loads(output)["hint_chars"] == {"type": "string"}


# =============================================================================
# Failure Tests
# =============================================================================


@pytest.mark.integration
class TestFailures:
    """Tests for exit codes and error messages."""

    def test_remote_error(
        self, fake_daemon: FakeDaemon, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code, output = run(fake_daemon, "click", "9")

        assert code == EXIT_FAILURE
        assert output == ""
        assert "daemon error -32602: Invalid element id" in capsys.readouterr().err

    def test_unknown_config_key(
        self, fake_daemon: FakeDaemon, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code, _ = run(fake_daemon, "config", "get", "nope")

        assert code == EXIT_FAILURE
        assert "Unknown key" in capsys.readouterr().err

    def test_daemon_not_running(
        self, socket_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        out = StringIO()

        code = main(["--socket", str(socket_dir / "missing.sock"), "status"], out=out)

        assert code == EXIT_FAILURE
        assert out.getvalue() == ""
        assert "warpd-ui: " in capsys.readouterr().err

    def test_daemon_hangs_up(self, fake_daemon: FakeDaemon) -> None:
        fake_daemon.handlers["status"] = lambda request: None

        code, _ = run(fake_daemon, "status")

        assert code == EXIT_FAILURE

    def test_missing_config_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["--config", str(tmp_path / "nope.yml"), "status"], out=StringIO())

        assert code == EXIT_USAGE
        assert "invalid configuration" in capsys.readouterr().err

    def test_invalid_config_value(self, tmp_path: Path) -> None:
        config_path = tmp_path / "ui.yml"
        config_path.write_text("ui:\n  max_elements: 500\n")

        code = main(["--config", str(config_path), "status"], out=StringIO())

        assert code == EXIT_USAGE

    @pytest.mark.parametrize(
        "content",
        ["ipc: [unclosed\n", "- a\n- b\n"],
        ids=["syntax-error", "top-level-list"],
    )
    def test_malformed_config_file(
        self, tmp_path: Path, content: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config_path = tmp_path / "ui.yml"
        config_path.write_text(content)

        code = main(["--config", str(config_path), "status"], out=StringIO())

        assert code == EXIT_USAGE
        assert "invalid configuration" in capsys.readouterr().err

    def test_remote_error_reported_once(
        self, fake_daemon: FakeDaemon, capsys: pytest.CaptureFixture[str]
    ) -> None:
        run(fake_daemon, "info", "9")

        assert capsys.readouterr().err.splitlines() == [
            "warpd-ui: daemon error -32602: Invalid element id"
        ]
