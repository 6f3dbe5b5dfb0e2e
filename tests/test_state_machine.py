"""Tests for the swap execution state machine."""

import pytest

from multiswap.errors import InvalidTransition, SessionExpired, SigningRejected, SwapBusy
from multiswap.execution import ExecutionStateMachine, SwapStatus

from conftest import make_quote


@pytest.fixture
def machine():
    return ExecutionStateMachine()


@pytest.fixture
def quote(xrp, rlusd):
    return make_quote(xrp, rlusd)


class TestExecutionStateMachine:
    """Tests for ExecutionStateMachine."""

    def test_happy_path(self, machine, quote):
        seen = []
        machine.add_listener(lambda s: seen.append(s.status))

        machine.start(quote)
        machine.mark_signing()
        machine.mark_submitting()
        session = machine.succeed("TXHASH")

        assert seen == [
            SwapStatus.PREPARING,
            SwapStatus.SIGNING,
            SwapStatus.SUBMITTING,
            SwapStatus.SUCCESS,
        ]
        assert session.tx_hash == "TXHASH"
        assert session.progress_percent == 100
        assert session.from_symbol == "XRP"

    def test_cannot_skip_signing(self, machine, quote):
        machine.start(quote)

        with pytest.raises(InvalidTransition):
            machine.mark_submitting()

    def test_cannot_succeed_from_preparing(self, machine, quote):
        machine.start(quote)

        with pytest.raises(InvalidTransition):
            machine.succeed("TX")

    def test_busy_rejects_second_start(self, machine, quote):
        first = machine.start(quote)
        machine.mark_signing()

        with pytest.raises(SwapBusy) as exc_info:
            machine.start(quote)

        assert exc_info.value.session.attempt_id == first.attempt_id
        assert machine.status is SwapStatus.SIGNING

    def test_error_retained_until_dismissed(self, machine, quote):
        machine.start(quote)
        machine.mark_signing()
        machine.fail(SessionExpired())

        assert machine.session.status is SwapStatus.ERROR
        assert machine.session.requires_reauth is True
        assert machine.session.error_kind == "SessionExpired"
        with pytest.raises(InvalidTransition):
            machine.start(quote)

        session = machine.dismiss()

        assert session.status is SwapStatus.IDLE
        assert session.error_message is None
        machine.start(quote)

    def test_rejection_is_neutral(self, machine, quote):
        machine.start(quote)
        machine.fail(SigningRejected())

        assert machine.session.neutral is True
        assert machine.session.error_message == "Transaction was cancelled in the wallet."

    def test_dismiss_while_busy(self, machine, quote):
        machine.start(quote)

        with pytest.raises(InvalidTransition):
            machine.dismiss()

    def test_dismiss_idle_is_noop(self, machine):
        published = []
        machine.add_listener(published.append)

        machine.dismiss()

        assert published == []

    def test_update_message_keeps_status(self, machine, quote):
        machine.start(quote)

        session = machine.update_message("Setting up trustline", note="Setting up trustline")

        assert session.status is SwapStatus.PREPARING
        assert session.notes == ("Setting up trustline",)

    def test_update_message_requires_attempt(self, machine):
        with pytest.raises(InvalidTransition):
            machine.update_message("nothing")

    def test_listener_failure_does_not_break_transitions(self, machine, quote):
        def broken(session):
            raise RuntimeError("render failed")

        machine.add_listener(broken)

        machine.start(quote)

        assert machine.status is SwapStatus.PREPARING

    def test_to_dict(self, machine, quote):
        machine.start(quote)

        data = machine.session.to_dict()

        assert data["status"] == "preparing"
        assert data["step"] == 1
        assert data["totalSteps"] == 3
        assert data["fromAmount"] == "10"
