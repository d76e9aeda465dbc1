"""Errors raised by the session core.

Routers translate these into HTTP responses. A lost creation race and a
repeated submit are not errors: the first is the ALREADY_EXISTS store outcome,
the second returns the existing submission.
"""
from typing import Optional


class AssessmentError(Exception):
    pass


class AuthenticationRequired(AssessmentError):
    pass


class NotFound(AssessmentError):
    pass


class AccessDenied(AssessmentError):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PersistenceFailure(AssessmentError):
    def __init__(self, message: str, submission_id: Optional[object] = None):
        super().__init__(message)
        # set when the submission row exists but the session could not be closed
        self.submission_id = submission_id
