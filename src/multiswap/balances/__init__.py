"""Balance reads and post-swap reconciliation."""

from multiswap.balances.reconciler import BalanceReconciler
from multiswap.balances.service import BalanceService

__all__ = ["BalanceReconciler", "BalanceService"]
