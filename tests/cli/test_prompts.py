"""Tests for prompts module."""

import pytest
from unittest.mock import patch

from sealvault_cli.cli.exit_codes import ExitCode
from sealvault_cli.cli.prompts import (
    AbortOperation,
    abort_if_not_confirmed,
    confirm_action,
    select_cap,
    select_from_list,
)
from sealvault_cli.services.allowlist import Cap, CapSummary


class TestConfirm:
    """Test confirmation helpers."""

    def test_confirm_action(self) -> None:
        with patch("sealvault_cli.cli.prompts.typer.confirm", return_value=True) as mock_confirm:
            assert confirm_action("Continue?") is True
        assert mock_confirm.call_args[1]["default"] is False

    def test_abort_if_not_confirmed(self) -> None:
        with patch("sealvault_cli.cli.prompts.typer.confirm", return_value=False):
            with pytest.raises(AbortOperation):
                abort_if_not_confirmed("Continue?")

    def test_abort_if_confirmed(self) -> None:
        with patch("sealvault_cli.cli.prompts.typer.confirm", return_value=True):
            abort_if_not_confirmed("Continue?")

    def test_abort_exit_code(self) -> None:
        assert AbortOperation().exit_code == ExitCode.CANCELLED


class TestSelectFromList:
    """Test select_from_list function."""

    def test_select_second(self) -> None:
        with patch("sealvault_cli.cli.prompts.console"), \
                patch("sealvault_cli.cli.prompts.typer.prompt", return_value="2"):
            assert select_from_list("Pick", [("a", 1), ("b", 2)]) == 2

    def test_retries_out_of_range(self) -> None:
        with patch("sealvault_cli.cli.prompts.console"), \
                patch("sealvault_cli.cli.prompts.typer.prompt", side_effect=["9", "x", "1"]) as prompt:
            assert select_from_list("Pick", [("a", 1), ("b", 2)]) == 1
        assert prompt.call_count == 3

    def test_quit(self) -> None:
        with patch("sealvault_cli.cli.prompts.console"), \
                patch("sealvault_cli.cli.prompts.typer.prompt", return_value="q"):
            with pytest.raises(AbortOperation):
                select_from_list("Pick", [("a", 1)])


class TestSelectCap:
    """Test select_cap."""

    def test_returns_chosen_cap(self) -> None:
        caps = [Cap("0xc1", "0xl1"), Cap("0xc2", "0xl2")]
        summaries = [CapSummary(caps[0], "team", 1), CapSummary(caps[1], "ops", 4)]
        with patch("sealvault_cli.cli.prompts.console") as console, \
                patch("sealvault_cli.cli.prompts.typer.prompt", return_value="2"):
            assert select_cap(summaries) == caps[1]
        printed = " ".join(str(c.args[0]) for c in console.print.call_args_list if c.args)
        assert "Found 2 Cap object(s)" in printed
        assert "4 members" in printed
        assert "1 member)" in printed
