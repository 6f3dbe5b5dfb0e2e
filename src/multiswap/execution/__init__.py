"""Swap execution: state machine, preflight checks and orchestration."""

from multiswap.execution.orchestrator import SwapOrchestrator
from multiswap.execution.preflight import PreflightChecker, PreflightResult
from multiswap.execution.session import SwapSession, SwapStatus
from multiswap.execution.state_machine import ExecutionStateMachine

__all__ = [
    "ExecutionStateMachine",
    "PreflightChecker",
    "PreflightResult",
    "SwapOrchestrator",
    "SwapSession",
    "SwapStatus",
]
