"""
Domain error kinds surfaced to the HTTP boundary
"""


class DomainError(Exception):
    """Base class for errors the caller can act on"""
    code = "domain_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class NotFound(DomainError):
    """An id does not resolve to an entity"""
    code = "not_found"
    status_code = 404


class Forbidden(DomainError):
    """The acting user may not see or change the target"""
    code = "forbidden"
    status_code = 403


class ValidationError(DomainError):
    """Input shape or range rejected before any mutation"""
    code = "validation_error"
    status_code = 400


class InvalidTransition(DomainError):
    """State machine does not allow the requested move"""
    code = "invalid_transition"
    status_code = 409


class DuplicateApplication(DomainError):
    code = "duplicate_application"
    status_code = 409


class VolunteerNotEligible(DomainError):
    code = "volunteer_not_eligible"
    status_code = 409


class ProjectNotAcceptingFunds(DomainError):
    code = "project_not_accepting_funds"
    status_code = 409


class Unauthenticated(DomainError):
    """No resolvable acting user on an endpoint that needs one"""
    code = "unauthenticated"
    status_code = 401
