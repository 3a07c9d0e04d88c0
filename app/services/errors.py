"""
Typed errors raised by the commitment ledger.

Callers catch by type and read ``code`` / ``status_code``; the HTTP layer
maps every ``LedgerError`` to a JSON response in ``app.main``.
"""


class LedgerError(Exception):
    code = "LEDGER_ERROR"
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(LedgerError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id):
        super().__init__(f"{resource} '{resource_id}' not found", resource=resource, resource_id=str(resource_id))
        self.resource = resource
        self.resource_id = str(resource_id)


class InvalidInput(LedgerError, ValueError):
    # ValueError lets pydantic validators surface it as a validation error
    code = "INVALID_INPUT"
    status_code = 422


class InvalidAmount(InvalidInput):
    code = "INVALID_AMOUNT"


class Forbidden(LedgerError):
    code = "FORBIDDEN"
    status_code = 403


class Conflict(LedgerError):
    code = "CONFLICT"
    status_code = 409


class RecalculationError(LedgerError):
    """Recalculation was asked for a commitment that does not exist."""

    code = "RECALCULATION_FAILED"
    status_code = 500
