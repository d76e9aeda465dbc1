from typing import NamedTuple
import enum
import logging

from ..errors import AccessDenied, AuthenticationRequired, NotFound
from .store import AssessmentSource, SessionStore

logger = logging.getLogger(__name__)


class AccessKind(str, enum.Enum):
    GRANTED = "granted"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    COMPLETED = "completed"
    # a lookup failed; the validator denies rather than guessing
    UNAVAILABLE = "unavailable"


class AccessDecision(NamedTuple):
    allowed: bool
    reason: str
    kind: AccessKind


class AccessValidator:
    """Decides whether a principal may start or resume an attempt.

    Fails closed: lookup errors come back as a denial, never as an exception.
    Callers that want an exception use require().
    """

    def __init__(self, assessments: AssessmentSource, sessions: SessionStore):
        self.assessments = assessments
        self.sessions = sessions

    async def validate(self, assessment_id, principal) -> AccessDecision:
        try:
            if principal is None:
                return AccessDecision(False, "Please log in to take the test", AccessKind.UNAUTHENTICATED)

            try:
                assessment = await self.assessments.get_assessment(assessment_id)
            except Exception as e:
                logger.warning("Assessment lookup failed for assessment_id=%s: %s", assessment_id, e)
                assessment = None
            if assessment is None:
                return AccessDecision(False, "Assessment not found", AccessKind.NOT_FOUND)

            try:
                existing = await self.sessions.get(assessment_id, principal.id)
            except Exception as e:
                logger.warning("Session lookup failed for assessment_id=%s student_id=%s: %s", assessment_id, principal.id, e)
                return AccessDecision(False, "Error checking test status", AccessKind.UNAVAILABLE)

            if existing is not None and existing.is_completed:
                return AccessDecision(False, "You have already completed this assessment", AccessKind.COMPLETED)

            return AccessDecision(True, "Access granted", AccessKind.GRANTED)
        except Exception:
            logger.exception("Error validating access for assessment_id=%s", assessment_id)
            return AccessDecision(False, "Error validating access", AccessKind.UNAVAILABLE)

    async def require(self, assessment_id, principal) -> AccessDecision:
        """Like validate(), but raises the matching AssessmentError on denial."""
        decision = await self.validate(assessment_id, principal)
        if decision.kind is AccessKind.GRANTED:
            return decision
        if decision.kind is AccessKind.UNAUTHENTICATED:
            raise AuthenticationRequired(decision.reason)
        if decision.kind is AccessKind.NOT_FOUND:
            raise NotFound(decision.reason)
        raise AccessDenied(decision.reason)
