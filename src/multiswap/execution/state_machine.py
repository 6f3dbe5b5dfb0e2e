"""Execution state machine for a single swap attempt.

    idle -> preparing -> signing -> submitting -> success
                 \\           \\            \\
                  +-----------+------------+-> error

success and error return to idle only through dismiss().
"""

import logging
from typing import Callable, Optional

from multiswap.errors import InvalidTransition, SwapBusy, SwapError
from multiswap.execution.session import STEP_FOR_STATUS, SwapSession, SwapStatus
from multiswap.quotes.base import Quote

logger = logging.getLogger(__name__)

SessionListener = Callable[[SwapSession], None]

TRANSITIONS: dict[SwapStatus, frozenset[SwapStatus]] = {
    SwapStatus.IDLE: frozenset({SwapStatus.PREPARING}),
    SwapStatus.PREPARING: frozenset({SwapStatus.SIGNING, SwapStatus.ERROR}),
    SwapStatus.SIGNING: frozenset({SwapStatus.SUBMITTING, SwapStatus.ERROR}),
    SwapStatus.SUBMITTING: frozenset({SwapStatus.SUCCESS, SwapStatus.ERROR}),
    SwapStatus.SUCCESS: frozenset({SwapStatus.IDLE}),
    SwapStatus.ERROR: frozenset({SwapStatus.IDLE}),
}


class ExecutionStateMachine:
    """Owns the SwapSession and enforces legal transitions."""

    def __init__(self, listener: Optional[SessionListener] = None):
        self._session = SwapSession()
        self._listeners: list[SessionListener] = [listener] if listener else []

    @property
    def session(self) -> SwapSession:
        return self._session

    @property
    def status(self) -> SwapStatus:
        return self._session.status

    @property
    def busy(self) -> bool:
        return self._session.status.is_busy

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def _publish(self, session: SwapSession) -> SwapSession:
        self._session = session
        for listener in self._listeners:
            try:
                listener(session)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")
        return session

    def _transition(self, target: SwapStatus, **changes) -> SwapSession:
        current = self._session.status
        if target not in TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot go from {current.value} to {target.value}")

        step = STEP_FOR_STATUS.get(target, self._session.step)
        session = self._session.evolve(status=target, step=step, **changes)
        logger.debug(f"Swap {session.attempt_id}: {current.value} -> {target.value}")
        return self._publish(session)

    def start(self, quote: Quote) -> SwapSession:
        """Begin a new attempt for ``quote``.

        Raises:
            SwapBusy: An attempt is in progress (carries its session)
            InvalidTransition: The previous attempt has not been dismissed
        """
        if self.busy:
            raise SwapBusy(self._session)
        if self._session.status.is_final:
            raise InvalidTransition("Dismiss the previous swap before starting a new one")

        session = SwapSession.for_quote(quote)
        logger.info(f"Swap {session.attempt_id} started: {quote.describe()}")
        return self._publish(session)

    def update_message(self, message: str, note: Optional[str] = None) -> SwapSession:
        """Change the progress message without changing state."""
        if not self.busy:
            raise InvalidTransition("No swap in progress")
        notes = self._session.notes + (note,) if note else self._session.notes
        return self._publish(self._session.evolve(message=message, notes=notes))

    def mark_signing(self, message: str = "Waiting for wallet signature...") -> SwapSession:
        return self._transition(SwapStatus.SIGNING, message=message)

    def mark_submitting(self, message: str = "Submitting transaction...") -> SwapSession:
        return self._transition(SwapStatus.SUBMITTING, message=message)

    def succeed(self, tx_hash: str, message: str = "Swap completed successfully!") -> SwapSession:
        session = self._transition(SwapStatus.SUCCESS, tx_hash=tx_hash, message=message)
        logger.info(f"Swap {session.attempt_id} succeeded: {tx_hash}")
        return session

    def fail(self, error: SwapError) -> SwapSession:
        """Move to error, keeping the message and flags until dismissed."""
        session = self._transition(
            SwapStatus.ERROR,
            message=error.message,
            error_message=error.message,
            error_kind=error.kind,
            requires_reauth=error.requires_reauth,
            neutral=error.neutral,
        )
        log = logger.info if error.neutral else logger.warning
        log(f"Swap {session.attempt_id} failed ({error.kind}): {error.message}")
        return session

    def dismiss(self) -> SwapSession:
        """Clear a finished attempt. No-op when idle.

        Raises:
            InvalidTransition: An attempt is in progress
        """
        current = self._session.status
        if current is SwapStatus.IDLE:
            return self._session
        if SwapStatus.IDLE not in TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot dismiss a swap that is {current.value}")
        logger.debug(f"Swap {self._session.attempt_id} dismissed")
        return self._publish(SwapSession())
