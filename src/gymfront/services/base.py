"""Shared behaviour for the stores."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ..clients.base import INVALID_RESPONSE_MESSAGE, ApiClient
from ..errors import GymFrontError, RemoteError


class BaseStore:
    """Base class for stores wrapping a backend resource.

    ``loading`` is true while at least one operation is in flight and
    ``error`` holds the message of the last failed operation. Both are for
    display; callers get results and errors from the operations
    themselves.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self.error: str | None = None
        self._pending = 0

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @asynccontextmanager
    async def _operation(self) -> AsyncIterator[None]:
        """Track one operation: busy count, error capture, re-raise."""
        self._pending += 1
        self.error = None
        try:
            yield
        except GymFrontError as e:
            self.error = e.message
            raise
        except (KeyError, TypeError, ValueError) as e:
            # Payload did not have the expected shape
            self.error = INVALID_RESPONSE_MESSAGE
            raise RemoteError(INVALID_RESPONSE_MESSAGE) from e
        finally:
            self._pending -= 1
