"""Error taxonomy for the swap orchestration core.

Every failure a user can see is a SwapError. Quote failures are reported
through QuoteState, execution failures through SwapSession; none of them
should ever crash the caller.
"""

from typing import Optional, Sequence


class SwapError(Exception):
    """Base class for recoverable swap failures."""

    neutral = False          # Render without error styling
    requires_reauth = False  # Prompt the user to log in again

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__doc__ or self.__class__.__name__
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return self.__class__.__name__


class QuoteUnavailable(SwapError):
    """Could not get a price for this swap."""


class InsufficientLiquidity(SwapError):
    """Not enough liquidity available for this swap."""


class TokenNotFound(SwapError):
    """Token could not be resolved."""


class NoWalletSelected(SwapError):
    """No wallet selected for this chain."""

    def __init__(self, chain: str, message: str = "", candidates: Optional[Sequence] = None):
        self.chain = chain
        self.candidates = list(candidates or [])
        super().__init__(message or f"No wallet selected for {chain}")


class AmbiguousWalletSelection(SwapError):
    """More than one wallet matches the selection; the user must pick one."""

    def __init__(self, chain: str, candidates: Sequence, message: str = ""):
        self.chain = chain
        self.candidates = list(candidates)
        super().__init__(
            message or f"{len(self.candidates)} wallets match on {chain}; choose one to continue"
        )


class SessionExpired(SwapError):
    """Session expired. Please log in again to continue trading."""

    requires_reauth = True


class SigningRejected(SwapError):
    """Transaction was cancelled in the wallet."""

    neutral = True


class RemotePairingTimeout(SwapError):
    """The remote wallet did not respond in time."""


class BackendExecutionError(SwapError):
    """The swap backend reported a failure."""


class UnsupportedSigningMethod(SwapError):
    """This signing method is not available for the chain."""


class SwapBusy(SwapError):
    """A swap is already in progress."""

    neutral = True

    def __init__(self, session=None, message: str = ""):
        self.session = session
        super().__init__(message)


class InvalidTransition(SwapError):
    """Illegal swap state transition."""
