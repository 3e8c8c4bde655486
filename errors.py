from typing import Optional


class Unauthenticated(Exception):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(ValueError):
    pass


class NotFound(ValueError):
    pass


class EmailAlreadyRegistered(ValueError):
    pass


class RateLimited(Exception):
    def __init__(
        self, message: str = "Too many requests. Please try again later."
    ) -> None:
        super().__init__(message)
        self.message = message


class UpstreamFailure(RuntimeError):
    pass


class AuthProviderError(UpstreamFailure):
    def __init__(
        self, message: str, status: int = 0, code: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
