"""Chord-format retrieval through the external converter program."""

from __future__ import annotations

import re
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Sequence
from urllib.parse import urlsplit

from tabrelay.errors import ClientInputError, ExternalToolError
from tabrelay.metrics.observability import PipelineMetrics, get_logger

_TAB_ID = re.compile(r"[0-9]{1,19}")
_WORSHIPCHORDS_HOST = "worshipchords.com"
_UNSAFE_URL_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


def parse_tab_id(value: Any) -> int:
    """Return ``value`` as a positive integer tab id or raise ClientInputError."""

    if isinstance(value, bool):
        raise ClientInputError("Missing or invalid parameter: id")
    if isinstance(value, int):
        tab_id = value
    elif isinstance(value, str) and _TAB_ID.fullmatch(value):
        tab_id = int(value)
    else:
        raise ClientInputError("Missing or invalid parameter: id")
    if tab_id <= 0 or tab_id >= 2**63:
        raise ClientInputError("Missing or invalid parameter: id")
    return tab_id


def validate_worshipchords_url(value: Any) -> str:
    if not isinstance(value, str) or not value or _UNSAFE_URL_CHARS.search(value):
        raise ClientInputError("Missing or invalid parameter: url")
    try:
        parts = urlsplit(value)
        host = (parts.hostname or "").lower()
    except ValueError as exc:
        raise ClientInputError("Missing or invalid parameter: url") from exc
    if parts.scheme not in ("http", "https") or not (
        host == _WORSHIPCHORDS_HOST or host.endswith("." + _WORSHIPCHORDS_HOST)
    ):
        raise ClientInputError("URL must be from worshipchords.com")
    return value


@dataclass(frozen=True)
class ConverterConfig:
    """How to launch the converter; ``command`` is an argv prefix."""

    command: tuple[str, ...] = ("./ultimate-guitar-scraper",)


class FormatGateway:
    """Runs the converter and hands back its stdout.

    The call blocks until the converter exits and is never routed through a
    shell. Callers on an event loop should run it in a worker thread.
    """

    def __init__(self, config: ConverterConfig | None = None) -> None:
        self._config = config or ConverterConfig()
        self._logger = get_logger("formats")

    def fetch_onsong(self, tab_id: int) -> str:
        return self._run("onsong", ["onsong", "-id", str(parse_tab_id(tab_id))])

    def fetch_worshipchords(self, url: str) -> str:
        return self._run("worshipchords", ["worshipchords", "-url", validate_worshipchords_url(url)])

    def _run(self, label: str, args: Sequence[str]) -> str:
        argv = [*self._config.command, *args]
        start = time.perf_counter()
        try:
            completed = subprocess.run(argv, capture_output=True, check=False)
        except OSError as exc:
            self._logger.error("converter.launch_failed", command=label, argv=argv, detail=str(exc))
            raise ExternalToolError(f"Could not launch converter: {exc}") from exc
        duration = time.perf_counter() - start
        # Bytes in, so line endings survive; undecodable bytes become U+FFFD.
        stdout = completed.stdout.decode("utf-8", errors="replace")
        PipelineMetrics.observe_converter(label, duration)
        if completed.returncode != 0:
            self._logger.error(
                "converter.failed",
                command=label,
                argv=argv,
                returncode=completed.returncode,
                stderr=completed.stderr.decode("utf-8", errors="replace"),
            )
            raise ExternalToolError(f"Converter exited with status {completed.returncode}")
        self._logger.info(
            "converter.complete",
            command=label,
            output_length=len(stdout),
            duration_seconds=duration,
        )
        return stdout
