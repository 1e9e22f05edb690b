"""Error taxonomy shared by the API client and the stores."""


class GymFrontError(Exception):
    """Base error carrying a user-displayable message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class AuthenticationError(GymFrontError):
    """Missing, invalid or rejected credentials. Never retried."""


class AuthorizationError(GymFrontError):
    """The backend refused the call (HTTP 403) or the session lacks a role."""


class ValidationError(GymFrontError):
    """A local pre-flight check failed before any request was sent."""


class PolicyError(GymFrontError):
    """A business rule rejected the operation."""


class NotFoundTransient(GymFrontError):
    """HTTP 404 on a lookup that may succeed after a short wait."""


class RemoteError(GymFrontError):
    """Any other backend or transport failure."""
