"""Tests for output formatting module."""

import io
import json

from rich.console import Console

from sealvault_cli.cli.output import (
    format_file_size,
    format_hex_preview,
    print_json,
    print_key_value,
    print_table,
    print_yaml,
)


def capture_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=80, color_system=None), buffer


class TestPrintJson:
    """Test print_json function."""

    def test_long_values_are_not_wrapped(self) -> None:
        console, buffer = capture_console()
        identifier = "ab" * 60
        print_json({"encryptionId": identifier, "size": 3}, console_instance=console)
        assert json.loads(buffer.getvalue()) == {"encryptionId": identifier, "size": 3}

    def test_non_serializable_values_use_str(self) -> None:
        from pathlib import Path

        console, buffer = capture_console()
        print_json({"path": Path("tmp/walrus")}, console_instance=console)
        assert json.loads(buffer.getvalue())["path"] == "tmp/walrus"


class TestPrintYaml:
    """Test print_yaml function."""

    def test_title_and_body(self) -> None:
        console, buffer = capture_console()
        print_yaml({"walrus": {"epochs": 1}}, title="Config", console_instance=console)
        output = buffer.getvalue()
        assert "Config" in output
        assert "epochs: 1" in output


class TestPrintTable:
    """Test print_table function."""

    def test_headers_and_rows(self) -> None:
        console, buffer = capture_console()
        print_table(
            [{"cap_id": "0xc1", "allowlist_id": "0xl1"}, {"cap_id": "0xc2", "allowlist_id": None}],
            ["cap_id", "allowlist_id"],
            title="Cap Objects",
            console_instance=console,
        )
        output = buffer.getvalue()
        assert "Cap Objects" in output
        assert "Cap Id" in output
        assert "0xc1" in output
        assert "0xl1" in output


class TestPrintKeyValue:
    """Test print_key_value function."""

    def test_values_rendered(self) -> None:
        console, buffer = capture_console()
        print_key_value({"Blob ID": "abc", "End epoch": 12, "Cap ID": None}, console_instance=console)
        output = buffer.getvalue()
        assert "Blob ID" in output
        assert "abc" in output
        assert "12" in output
        assert "N/A" in output

    def test_empty(self) -> None:
        console, buffer = capture_console()
        print_key_value({}, console_instance=console)
        assert buffer.getvalue() == ""


class TestFormatters:
    """Test formatting helpers."""

    def test_format_file_size(self) -> None:
        assert format_file_size(100) == "100 B"
        assert format_file_size(1024) == "1.00 KB"
        assert format_file_size(3 * 1024 * 1024) == "3.00 MB"

    def test_hex_preview_short_value_untouched(self) -> None:
        assert format_hex_preview("abcd") == "abcd"

    def test_hex_preview_elides_middle(self) -> None:
        value = "00" * 8 + "ff" * 16 + "11" * 8
        assert format_hex_preview(value, edge=16) == "00" * 8 + "..." + "11" * 8
