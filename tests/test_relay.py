"""Tests for the submission relay."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from tabrelay.errors import ClientInputError, DownstreamRelayError
from tabrelay.relay import RelayConfig, SubmissionRelay, validate_submission

SUBMISSION = {"content": "G\nHello", "song": "Wagon Wheel", "artist": "OCMS", "id": "1947141"}


def _relay(handler) -> SubmissionRelay:
    return SubmissionRelay(
        RelayConfig(webhook_url="http://n8n.test/webhook/drive", timeout_seconds=1.0),
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize("missing", ["content", "song", "artist", "id"])
def test_strict_mode_requires_every_field(missing):
    payload = {k: v for k, v in SUBMISSION.items() if k != missing}
    with pytest.raises(ClientInputError) as info:
        validate_submission(payload)
    assert info.value.public_message == "Missing required fields: content, song, artist, id"


def test_blank_strings_count_as_missing():
    with pytest.raises(ClientInputError):
        validate_submission({**SUBMISSION, "artist": "   "})


def test_lenient_mode_fills_song_and_artist():
    submission = validate_submission({"content": "G", "id": "manual-1"}, lenient=True)
    assert submission["song"] == "Unknown Song"
    assert submission["artist"] == "Unknown Artist"

    with pytest.raises(ClientInputError):
        validate_submission({"song": "S", "id": "manual-1"}, lenient=True)


def test_success_passes_status_and_body_through():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(201, json={"fileId": "abc"})

    payload = {**SUBMISSION, "isManualSubmission": True, "extra": "kept"}
    outcome = asyncio.run(_relay(handler).send(payload))
    assert outcome.status_code == 201
    assert json.loads(outcome.body) == {"fileId": "abc"}
    assert seen == [payload]


def test_not_found_is_remapped_with_json_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"code": 404, "message": "webhook not registered"})

    with pytest.raises(DownstreamRelayError) as info:
        asyncio.run(_relay(handler).send(SUBMISSION))
    assert info.value.status_code == 404
    assert "workflow is active" in info.value.public_message
    assert info.value.payload == {"code": 404, "message": "webhook not registered"}


def test_other_errors_keep_status_with_plain_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(DownstreamRelayError) as info:
        asyncio.run(_relay(handler).send(SUBMISSION))
    assert info.value.status_code == 502
    assert info.value.public_message == "Failed to send to Google Drive"
    assert info.value.payload is None


def test_transport_failure_is_a_generic_500():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DownstreamRelayError) as info:
        asyncio.run(_relay(handler).send(SUBMISSION))
    assert info.value.status_code == 500
    assert info.value.public_message == "Failed to connect to Google Drive service"


def test_timeout_is_not_retried():
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(DownstreamRelayError):
        asyncio.run(_relay(handler).send(SUBMISSION))
    assert calls == [1]
