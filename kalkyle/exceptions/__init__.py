"""Custom exceptions for the Kalkyle application."""


class KalkyleError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="Intern serverfeil", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(KalkyleError):
    """Missing or out-of-range request field."""
    def __init__(self, message, field=None, payload=None):
        payload = dict(payload or ())
        if field:
            payload['field'] = field
        super().__init__(message, 400, payload)
        self.field = field


class NotFoundError(KalkyleError):
    """Entity absent or not owned by the caller (deliberately indistinguishable)."""
    def __init__(self, message="Ressurs ikke funnet", payload=None):
        super().__init__(message, 404, payload)


class AuthError(KalkyleError):
    """Missing, invalid or expired bearer token, or insufficient role."""
    def __init__(self, message="Ingen tilgangstoken oppgitt", status_code=401):
        super().__init__(message, status_code)


class ConflictError(KalkyleError):
    """Raised when a write collides with an existing unique value."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)
