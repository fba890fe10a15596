# bodhi/core/errors.py
from typing import List, Optional


class BodhiError(Exception):
    """Base error for the client sync layer."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(BodhiError):
    """Input rejected locally, before any backend call."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors) if errors else [message]
        super().__init__(message)


class InvalidHostError(ValidationError):
    def __init__(self, host: str):
        self.host = host
        super().__init__("Invalid Redis host: contains whitespace characters")


class UnsupportedTypeError(ValidationError):
    def __init__(self, db_type, message: Optional[str] = None):
        self.db_type = db_type
        super().__init__(message or f"Unsupported database type: {db_type}")


class BackendError(BodhiError):
    """A backend command failed or answered with something unusable."""

    def __init__(self, message: str, command: Optional[str] = None, status_code: Optional[int] = None):
        self.command = command
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(BodhiError):
    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")
