from __future__ import annotations

import sys
from pathlib import Path

import pytest

from tabrelay.errors import ClientInputError, ExternalToolError
from tabrelay.formats import ConverterConfig, FormatGateway, parse_tab_id, validate_worshipchords_url

FAKE_CONVERTER = """\
import sys

args = sys.argv[1:]
if args[:2] == ["onsong", "-id"] and args[2] != "13":
    sys.stdout.write("Song " + args[2] + "\\nArtist\\nKey: G\\nTempo: 100 BPM\\n\\n[G]Hello\\n")
    sys.exit(0)
if args[:2] == ["worshipchords", "-url"]:
    sys.stdout.write("Way Maker\\nSinach\\n\\n" + args[2] + "\\n")
    sys.exit(0)
sys.stderr.write("panic: tab not found")
sys.exit(3)
"""


def _gateway(tmp_path: Path) -> FormatGateway:
    script = tmp_path / "fake_converter.py"
    script.write_text(FAKE_CONVERTER, encoding="utf-8")
    return FormatGateway(ConverterConfig(command=(sys.executable, str(script))))


@pytest.mark.parametrize("value", ["abc", "-5", "0", "", None, True, 4.2, " 42", "4 2", "42; rm -rf /", "1" * 20, -3])
def test_invalid_tab_ids_are_rejected(value):
    with pytest.raises(ClientInputError):
        parse_tab_id(value)


@pytest.mark.parametrize("value,expected", [("42", 42), (42, 42), ("1947141", 1947141)])
def test_valid_tab_ids_are_accepted(value, expected):
    assert parse_tab_id(value) == expected


def test_onsong_returns_converter_stdout_verbatim(tmp_path: Path) -> None:
    gateway = _gateway(tmp_path)
    text = gateway.fetch_onsong(42)
    assert text == "Song 42\nArtist\nKey: G\nTempo: 100 BPM\n\n[G]Hello\n"


def test_converter_failure_hides_stderr(tmp_path: Path) -> None:
    gateway = _gateway(tmp_path)
    with pytest.raises(ExternalToolError) as info:
        gateway.fetch_onsong(13)
    assert info.value.status_code == 500
    assert "panic" not in info.value.public_message
    assert "panic" not in str(info.value)


def test_missing_converter_binary_is_a_tool_error(tmp_path: Path) -> None:
    gateway = FormatGateway(ConverterConfig(command=(str(tmp_path / "does-not-exist"),)))
    with pytest.raises(ExternalToolError):
        gateway.fetch_onsong(42)


@pytest.mark.parametrize(
    "url",
    [
        "https://worshipchords.com/way-maker-chords/",
        "http://www.worshipchords.com/goodness-of-god-chords/",
    ],
)
def test_worshipchords_urls_are_accepted(url):
    assert validate_worshipchords_url(url) == url


@pytest.mark.parametrize(
    "url",
    [
        None,
        "",
        "ftp://worshipchords.com/song",
        "https://worshipchords.com.evil.test/song",
        "https://evil.test/?worshipchords.com",
        "https://worshipchords.com/song\n-id",
        "http://[worshipchords.com",
    ],
)
def test_foreign_urls_are_rejected(url):
    with pytest.raises(ClientInputError):
        validate_worshipchords_url(url)


def test_worshipchords_passes_url_as_single_argument(tmp_path: Path) -> None:
    gateway = _gateway(tmp_path)
    url = "https://worshipchords.com/way-maker-chords/?a=1&b=$(id)"
    text = gateway.fetch_worshipchords(url)
    assert text.endswith(url + "\n")


BYTES_CONVERTER = """\
import sys

outputs = {"1": b"Title\\r\\n[G]Hi\\r\\n", "2": b"caf\\xe9\\n"}
sys.stdout.buffer.write(outputs[sys.argv[3]])
"""


def _bytes_gateway(tmp_path: Path) -> FormatGateway:
    script = tmp_path / "bytes_converter.py"
    script.write_text(BYTES_CONVERTER, encoding="utf-8")
    return FormatGateway(ConverterConfig(command=(sys.executable, str(script))))


def test_onsong_keeps_crlf_line_endings(tmp_path: Path) -> None:
    assert _bytes_gateway(tmp_path).fetch_onsong(1) == "Title\r\n[G]Hi\r\n"


def test_onsong_replaces_undecodable_bytes(tmp_path: Path) -> None:
    assert _bytes_gateway(tmp_path).fetch_onsong(2) == "caf\ufffd\n"
