from __future__ import annotations


class StudyKitError(Exception):
    """Base error for the generation pipeline. `http_status` is what the API surfaces."""

    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(StudyKitError):
    """Unsupported media kind, missing provider credentials."""


class ExternalServiceError(StudyKitError):
    """Download or provider call failed (including non-success responses)."""

    http_status = 502

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidModelError(ExternalServiceError):
    """Provider rejected the request because the model id is not valid."""


class StageTimeoutError(StudyKitError, TimeoutError):
    http_status = 504

    def __init__(self, stage: str, ceiling_sec: float) -> None:
        super().__init__(f"{stage} timed out after {ceiling_sec:g}s")
        self.stage = stage
        self.ceiling_sec = ceiling_sec


class ParseError(StudyKitError):
    """Model output could not be parsed into the expected structure."""

    http_status = 502


class ValidationError(StudyKitError):
    """No content available, or a malformed request payload."""

    http_status = 400


class NotFoundError(StudyKitError):
    http_status = 404


class InvalidTransitionError(StudyKitError):
    http_status = 409
