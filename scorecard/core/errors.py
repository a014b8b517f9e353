"""
Error taxonomy for the vendor scorecard core.

Every domain error carries the HTTP status the API layer answers with.
``AssessmentFailure`` is the one class that is recovered locally and never
reaches a caller.
"""

from typing import Any, Dict, Optional


class ScorecardError(Exception):
    """Base exception for the scorecard core."""

    error_type = "scorecard_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: int = 500):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        response = {
            "error": True,
            "message": self.message,
            "type": self.error_type,
        }
        if self.details:
            response["details"] = self.details
        return response


class ValidationError(ScorecardError):
    error_type = "validation"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, 422)


class NotFoundError(ScorecardError):
    error_type = "not_found"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, 404)


class DuplicateIdError(ScorecardError):
    error_type = "duplicate_id"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, 409)


class InvalidTransitionError(ScorecardError):
    error_type = "invalid_transition"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, 409)


class AssessmentInProgressError(ScorecardError):
    error_type = "assessment_in_progress"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, 409)


class EmptyInputError(ScorecardError):
    error_type = "empty_input"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, 400)


class AssessmentFailure(ScorecardError):
    """Provider, transport, timeout or schema failure of an assessment."""

    error_type = "assessment_failure"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, 502)
