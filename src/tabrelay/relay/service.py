"""Relay of finished submissions to the downstream automation webhook."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from tabrelay.errors import ClientInputError, DownstreamRelayError
from tabrelay.metrics.observability import PipelineMetrics, get_logger

REQUIRED_FIELDS = ("content", "song", "artist", "id")
UNKNOWN_SONG = "Unknown Song"
UNKNOWN_ARTIST = "Unknown Artist"

NOT_FOUND_MESSAGE = (
    "n8n webhook not found. Please check if the workflow is active and the webhook URL is correct."
)
FAILED_MESSAGE = "Failed to send to Google Drive"
CONNECT_MESSAGE = "Failed to connect to Google Drive service"


def _is_blank(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return True
    if isinstance(value, str):
        return not value.strip()
    return not isinstance(value, int)


def validate_submission(payload: Mapping[str, Any], *, lenient: bool = False) -> dict[str, Any]:
    """Check required fields and return the payload to forward.

    Strict mode needs content, song, artist and id. Lenient mode needs only
    content and id and fills a blank song or artist with a placeholder.
    """

    submission = dict(payload)
    if lenient:
        if _is_blank(submission.get("song")):
            submission["song"] = UNKNOWN_SONG
        if _is_blank(submission.get("artist")):
            submission["artist"] = UNKNOWN_ARTIST
    content = submission.get("content")
    if not isinstance(content, str) or not content.strip() or any(
        _is_blank(submission.get(field)) for field in REQUIRED_FIELDS[1:]
    ):
        raise ClientInputError("Missing required fields: " + ", ".join(REQUIRED_FIELDS))
    return submission


@dataclass(frozen=True)
class RelayConfig:
    """Where and how long to wait when relaying submissions."""

    webhook_url: str = "http://localhost:5678/webhook/google-drive"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class RelayResponse:
    """Downstream answer passed back to the caller unchanged."""

    status_code: int
    body: bytes
    media_type: str = "application/json"


class SubmissionRelay:
    """Forwards a submission once and translates the outcome."""

    def __init__(self, config: RelayConfig | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config or RelayConfig()
        self._transport = transport
        self._logger = get_logger("relay")

    async def send(self, submission: Mapping[str, Any]) -> RelayResponse:
        if submission.get("isManualSubmission"):
            self._logger.info(
                "relay.manual_submission",
                requires_automation=bool(submission.get("requiresAutomation")),
            )
        self._logger.info("relay.forwarding", webhook_url=self._config.webhook_url, id=submission.get("id"))
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self._config.webhook_url, json=dict(submission))
        except httpx.HTTPError as exc:
            PipelineMetrics.observe_relay("error")
            self._logger.error("relay.connect_failed", webhook_url=self._config.webhook_url, detail=repr(exc))
            raise DownstreamRelayError(
                f"Webhook request failed: {exc!r}",
                status_code=500,
                public_message=CONNECT_MESSAGE,
            ) from exc

        PipelineMetrics.observe_relay(response.status_code)
        self._logger.info("relay.forwarded", status=response.status_code)
        if response.status_code >= 400:
            message = NOT_FOUND_MESSAGE if response.status_code == 404 else FAILED_MESSAGE
            raise DownstreamRelayError(
                f"Webhook answered {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
                public_message=message,
                payload=_json_object(response.content),
            )
        return RelayResponse(status_code=response.status_code, body=response.content)


def _json_object(body: bytes) -> dict[str, Any] | None:
    try:
        parsed = json.loads(body)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None
