"""
Domain and store exceptions for the company directory API.

Every exception carries the HTTP status and error code the global error
handlers translate it into.
"""


class DomainError(Exception):
    """Base class for domain-level errors."""
    status_code: int = 400
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    """Requested identifier does not resolve to any record."""
    status_code = 404
    error_code = "NOT_FOUND"


class StoreError(DomainError):
    """Base class for document store failures."""
    status_code = 500
    error_code = "STORE_ERROR"


class StoreUnavailable(StoreError):
    """The document store could not be reached or timed out."""
    status_code = 503
    error_code = "STORE_UNAVAILABLE"


class StoreQueryError(StoreError):
    """The document store rejected the filter or sort it was given."""
    status_code = 400
    error_code = "STORE_QUERY_ERROR"
