"""
Error taxonomy of the linking and review core.

Every error is terminal: it describes a fact about stored state (code already
used, achievement already reviewed...) so retrying the same call cannot fix it.
The HTTP layer renders them as {"detail": ..., "code": ...} with the status below.
"""


class CoreError(Exception):
    status_code = 500
    code = "CORE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFound(CoreError):
    status_code = 404
    code = "NOT_FOUND"


class Expired(CoreError):
    status_code = 410
    code = "EXPIRED"


class AlreadyConsumed(CoreError):
    status_code = 410
    code = "ALREADY_CONSUMED"


class DuplicateLink(CoreError):
    status_code = 409
    code = "DUPLICATE_LINK"


class InvalidTransition(CoreError):
    status_code = 409
    code = "INVALID_TRANSITION"


class PermissionDenied(CoreError):
    status_code = 403
    code = "PERMISSION_DENIED"


class ValidationFailed(CoreError):
    status_code = 400
    code = "VALIDATION_FAILED"
