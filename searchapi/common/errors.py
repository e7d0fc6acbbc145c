from __future__ import annotations


class SearchApiError(Exception):
    status_code: int = 500
    public_message: str = "internal_server_error"

    def __init__(self, detail: str | None = None, public_message: str | None = None):
        super().__init__(detail or public_message or self.public_message)
        self.detail = detail or ""
        if public_message is not None:
            self.public_message = public_message


class ValidationError(SearchApiError):
    """Bad or missing client input. Never reaches the engine."""

    status_code = 400
    public_message = "Malformed request body"


class BackendError(SearchApiError):
    """The engine was unreachable, rejected a request, or failed a write."""

    status_code = 500
    public_message = "Something went wrong"


class IndexingError(BackendError):
    public_message = "Failed to create documents"


class QueryError(BackendError):
    public_message = "Something went wrong"


class EngineUnavailableError(BackendError):
    public_message = "Search engine unavailable"
