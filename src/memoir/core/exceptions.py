from typing import Any, List, Optional


class BackendAiServiceError(Exception):
    """Base exception for everything raised by the AI processing client.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status associated with the failure (if any)
        diagnostic: Technical diagnostic information for debugging
        session_id: Optional processing session identifier
    """
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        diagnostic: Optional[str] = None,
        session_id: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.diagnostic = diagnostic
        self.session_id = session_id
        super().__init__(message)


class ValidationError(BackendAiServiceError):
    """Raised when submission inputs fail local precondition checks."""


class NetworkError(BackendAiServiceError):
    """Raised for transport failures or non-2xx responses from the backend."""


class TransportError(NetworkError):
    """Raised by HTTP adapters for a single failed attempt (timeout, connection).

    The job client retries these; callers only ever see the final NetworkError.
    """


class NotFoundError(NetworkError):
    """Raised when the backend reports an unknown session or missing results (HTTP 404)."""
    def __init__(self, message: str, session_id: Optional[str] = None, diagnostic: Optional[str] = None):
        super().__init__(message, status_code=404, diagnostic=diagnostic, session_id=session_id)


class MalformedResponseError(BackendAiServiceError):
    """Raised when a backend payload is not a well-formed JSON object."""


class ProcessingFailedError(BackendAiServiceError):
    """Raised when the backend reports the session as terminally failed.

    Attributes:
        errors: Error messages reported by the backend, in server order
    """
    def __init__(self, session_id: str, errors: List[str]):
        self.errors = list(errors)
        detail = ", ".join(self.errors) if self.errors else "Processing failed without specific error details"
        super().__init__(f"Processing failed: {detail}", session_id=session_id)


class PollingExhaustedError(BackendAiServiceError):
    """Raised after too many consecutive failed status polls.

    Attributes:
        attempts: Number of consecutive failures observed
        last_error: The exception raised by the final failed poll
    """
    def __init__(self, session_id: str, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        reason = str(last_error) if last_error is not None else "Unknown error"
        message = f"Polling failed after {attempts} consecutive errors. Last error: {reason}"
        super().__init__(message, session_id=session_id, diagnostic=type(last_error).__name__ if last_error else None)


class ProcessingTimeoutError(BackendAiServiceError):
    """Raised when a session does not reach a terminal status within the duration budget.

    Attributes:
        elapsed_seconds: Time elapsed before giving up
        timeout_seconds: Configured duration budget
    """
    def __init__(
        self,
        session_id: str,
        elapsed_seconds: float,
        timeout_seconds: float,
        diagnostic: Optional[Any] = None,
    ):
        self.elapsed_seconds = elapsed_seconds
        self.timeout_seconds = timeout_seconds
        message = (
            f"Processing timeout for session {session_id} after {elapsed_seconds:.1f}s "
            f"(limit: {timeout_seconds}s)"
        )
        super().__init__(message, status_code=408, diagnostic=diagnostic, session_id=session_id)
