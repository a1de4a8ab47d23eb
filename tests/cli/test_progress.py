"""Tests for progress module."""

import io
from unittest.mock import patch

from rich.console import Console

from sealvault_cli.cli.progress import spinner, status_message


class TestSpinner:
    """Test spinner context manager."""

    def test_disabled_spinner_prints_nothing(self) -> None:
        buffer = io.StringIO()
        console = Console(file=buffer)
        with spinner("Encrypting...", enabled=False, console_instance=console):
            pass
        assert buffer.getvalue() == ""

    def test_spinner_runs_body(self) -> None:
        console = Console(file=io.StringIO())
        ran = []
        with spinner("Uploading...", console_instance=console):
            ran.append(True)
        assert ran == [True]

    def test_spinner_propagates_errors(self) -> None:
        console = Console(file=io.StringIO())
        try:
            with spinner("Uploading...", console_instance=console):
                raise ValueError("boom")
        except ValueError as e:
            assert str(e) == "boom"
        else:
            raise AssertionError("error was swallowed")


class TestStatusMessage:
    """Test status_message function."""

    def test_success_icon(self) -> None:
        with patch("sealvault_cli.cli.progress.console") as console:
            status_message("Stored blob", "success")
        console.print.assert_called_once_with("[green]✓[/green] Stored blob")

    def test_unknown_status_falls_back_to_info(self) -> None:
        with patch("sealvault_cli.cli.progress.console") as console:
            status_message("Hello", "nope")
        console.print.assert_called_once_with("[blue]ℹ[/blue] Hello")
