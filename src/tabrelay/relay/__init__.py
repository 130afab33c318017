"""Submission relay to the downstream automation webhook."""

from .service import (
    REQUIRED_FIELDS,
    RelayConfig,
    RelayResponse,
    SubmissionRelay,
    validate_submission,
)

__all__ = ["REQUIRED_FIELDS", "RelayConfig", "RelayResponse", "SubmissionRelay", "validate_submission"]
