"""Session token access.

The token is owned by the authentication layer. It is read fresh on every
call and never cached here.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union


class SessionTokenSource(ABC):
    """Read-only view of the active session token."""

    @abstractmethod
    async def get_token(self) -> Optional[str]:
        """Current token, or None when logged out."""
        pass


class StaticTokenSource(SessionTokenSource):
    """A token that can be replaced by the auth layer."""

    def __init__(self, token: Optional[str] = None):
        self.token = token

    async def get_token(self) -> Optional[str]:
        return self.token


class CallbackTokenSource(SessionTokenSource):
    """Reads the token through a sync or async callable."""

    def __init__(self, callback: Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]):
        self.callback = callback

    async def get_token(self) -> Optional[str]:
        result = self.callback()
        if inspect.isawaitable(result):
            result = await result
        return result
