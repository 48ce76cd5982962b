# ABOUTME: Closed error taxonomy for the place and weather gateway.
# ABOUTME: Validation failures, remote API failures, and gazetteer index build failures.


class GatewayError(Exception):
    """Base class for all errors raised by the gateway."""


class ValidationError(GatewayError):
    """Bad caller input, e.g. an empty place name or non-finite coordinates. Never retried."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class APIError(GatewayError):
    """A remote service answered non-2xx or could not be reached."""

    def __init__(self, code: str, message: str, status: int | None = None, retryable: bool = False):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.retryable = retryable

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class IndexBuildError(GatewayError):
    """The gazetteer dataset could not be read or decoded."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
