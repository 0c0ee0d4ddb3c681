"""Domain exceptions raised by the service layer.

Routers translate these into HTTP responses; services never import
FastAPI.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    pass


class AssessmentNotFoundError(NotFoundError):
    pass


class CourseNotFoundError(NotFoundError):
    pass


class CertificateNotFoundError(NotFoundError):
    pass


class SubmissionNotFoundError(NotFoundError):
    pass


class AlreadySubmittedError(Exception):
    """The user already has a submission for the assessment."""


class AlreadyEnrolledError(Exception):
    pass


class NotEnrolledError(Exception):
    pass


class PermissionDeniedError(Exception):
    pass


class CertificateNotEarnedError(ValueError):
    """The caller does not (yet) qualify for the requested certificate."""
