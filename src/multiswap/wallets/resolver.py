"""Wallet session resolution.

Picks the connection that signs the next swap on a chain. Resolution
never guesses: when more than one connection fits, the caller gets the
candidates back and must ask the user.
"""

import logging

from multiswap.chains import ChainKind
from multiswap.errors import AmbiguousWalletSelection, NoWalletSelected
from multiswap.wallets.base import SigningMethod, WalletConnection
from multiswap.wallets.registry import WalletRegistry

logger = logging.getLogger(__name__)

# Chains where a lone embedded session signs without an explicit choice
EMBEDDED_AUTHORITATIVE = {ChainKind.XRPL}


class WalletSessionResolver:
    """Resolves the active wallet connection for a chain."""

    def __init__(self, registry: WalletRegistry):
        self.registry = registry

    def resolve(self, chain: ChainKind) -> WalletConnection:
        """Resolve the connection that will sign on ``chain``.

        Raises:
            NoWalletSelected: Nothing connected or nothing chosen
            AmbiguousWalletSelection: Several connections fit; carries them
        """
        chain = ChainKind(chain)
        candidates = self.registry.connections(chain)
        selection = self.registry.selection(chain)

        if selection is not None and selection.wallet_id:
            connection = self.registry.get(selection.wallet_id)
            if connection is None or connection.chain != chain:
                self.registry.clear_selection(chain)
                raise NoWalletSelected(
                    chain.value, "The selected wallet is no longer connected", candidates
                )
            return connection

        if selection is not None and selection.wallet_type:
            matches = [c for c in candidates if c.wallet_type == selection.wallet_type]
            return self._single(chain, matches, candidates, selection.wallet_type)

        if chain in EMBEDDED_AUTHORITATIVE:
            embedded = [c for c in candidates if c.signing_method is SigningMethod.EMBEDDED]
            if embedded:
                return self._single(chain, embedded, candidates, SigningMethod.EMBEDDED.value)

        raise NoWalletSelected(chain.value, candidates=candidates)

    def _single(
        self,
        chain: ChainKind,
        matches: list[WalletConnection],
        candidates: list[WalletConnection],
        wanted: str,
    ) -> WalletConnection:
        if not matches:
            raise NoWalletSelected(
                chain.value, f"No {wanted} wallet connected on {chain.value}", candidates
            )
        if len(matches) > 1:
            logger.info(
                f"{len(matches)} {wanted} wallets on {chain.value}; asking the user to choose"
            )
            raise AmbiguousWalletSelection(chain.value, matches)
        return matches[0]
