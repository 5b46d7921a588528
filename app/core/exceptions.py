"""
Domain Errors

Every error the services raise carries the HTTP status it maps to.
app.main registers one handler for PortalError, so routes never translate
errors by hand.
"""


class PortalError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


# ============================================================
# 4xx
# ============================================================

class ValidationFailed(PortalError):
    status_code = 400
    message = "Invalid request"


class Unauthenticated(PortalError):
    status_code = 401
    message = "Not authenticated"


class Forbidden(PortalError):
    status_code = 403
    message = "Unauthorized"


class NotFound(PortalError):
    status_code = 404
    message = "Not found"


class UserNotFound(NotFound):
    message = "User not found"


class JobNotFound(NotFound):
    message = "Job not found"


class ApplicationNotFound(NotFound):
    message = "Application not found"


class Conflict(PortalError):
    # This API reports conflicts as 400
    status_code = 400
    message = "Conflict"


class AlreadyApplied(Conflict):
    message = "Already applied to this job"


class ApplicationsClosed(Conflict):
    message = "Job is not accepting applications"


class InvalidTransition(Conflict):
    message = "Application has already been decided"


class DuplicateRecord(Conflict):
    """Raised by a backend when a unique constraint rejects an insert."""
    message = "Duplicate record"


class OtpError(ValidationFailed):
    pass


class NoCodeIssued(OtpError):
    message = "No OTP found"


class CodeMismatch(OtpError):
    message = "Invalid OTP"


class CodeExpired(OtpError):
    message = "OTP expired"


# ============================================================
# 5xx
# ============================================================

class UpstreamUnavailable(PortalError):
    status_code = 500
    message = "Upstream service unavailable"


class StorageUnavailable(UpstreamUnavailable):
    message = "Storage backend unavailable"
