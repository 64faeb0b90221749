class ScorecardError(Exception):
    """Base class for all scorecard domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except ScorecardError`` clause can catch any domain error.
    ``kind`` is the machine-readable name rendered in HTTP responses and
    mapped back to the same class by the client companion.
    """

    kind: str = "error"
    status_code: int = 400

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class ValidationError(ScorecardError):
    """Raised for malformed or out-of-range input.  Never retried."""

    kind = "validation_error"
    status_code = 422

    def __init__(self, detail: str = "Invalid evaluation data"):
        super().__init__(detail)


class ForbiddenError(ScorecardError):
    """Raised when the actor may not evaluate or view the subject."""

    kind = "forbidden"
    status_code = 403

    def __init__(self, detail: str = "Not permitted"):
        super().__init__(detail)


class DuplicateError(ScorecardError):
    """Raised when an identical evaluation was submitted moments ago.

    Clients treat this as a success-equivalent no-op.  ``evaluation_id``
    carries the id of the evaluation that already exists, when known.
    """

    kind = "duplicate"
    status_code = 409

    def __init__(
        self,
        detail: str = "Evaluation already exists",
        evaluation_id: str | None = None,
    ):
        self.evaluation_id = evaluation_id
        super().__init__(detail)


class UnavailableError(ScorecardError):
    """Raised when the directory or store is transiently unreachable.

    Safe to retry with backoff.
    """

    kind = "unavailable"
    status_code = 503

    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(detail)


class UnauthorizedError(ScorecardError):
    """Raised for a missing, expired or invalid credential.

    Triggers the client's single refresh-and-retry, never a loop.
    """

    kind = "unauthorized"
    status_code = 401

    def __init__(self, detail: str = "Invalid or expired credentials"):
        super().__init__(detail)


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        ValidationError,
        ForbiddenError,
        DuplicateError,
        UnavailableError,
        UnauthorizedError,
    )
}
