"""Wallet connection model.

SECURITY: a connection only ever holds a public address. Anything that
looks like secret key material is rejected at construction.
"""

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from multiswap.chains import ChainKind

EVM_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")
XRPL_ADDRESS = re.compile(r"^r[1-9A-HJ-NP-Za-km-z]{24,34}$")
SOLANA_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
XRPL_SECRET = re.compile(r"^s[1-9A-HJ-NP-Za-km-z]{28,30}$")


class SigningMethod(str, Enum):
    """How a wallet signs."""

    EMBEDDED = "embedded"  # Custodial session, backend signs
    INJECTED = "injected"  # Browser extension (MetaMask, Phantom...)
    REMOTE = "remote"      # Mobile wallet via WalletConnect or deep link


class WalletConnection(BaseModel):
    """A connected wallet on one chain."""

    model_config = ConfigDict(frozen=True)

    chain: ChainKind = Field(..., description="Network family")
    address: str = Field(..., description="Public address")
    signing_method: SigningMethod = Field(..., description="How this wallet signs")
    wallet_type: str = Field(
        ..., description="Wallet product: riddle, xaman, joey, metamask, phantom..."
    )
    wallet_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    chain_id: Optional[int] = Field(None, description="EVM chain ID")
    session_topic: Optional[str] = Field(
        None, description="WalletConnect session topic (remote wallets)"
    )
    label: Optional[str] = None
    connected_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def validate_address(self) -> "WalletConnection":
        """Ensure no private key material is passed and the address fits the chain."""
        v = self.address
        if (
            len(v) in (64, 66)
            or (self.chain is ChainKind.XRPL and XRPL_SECRET.match(v))
            or (self.chain is ChainKind.SOLANA and len(v) > 80)
        ):
            raise ValueError(
                "SECURITY: Private keys must NEVER be passed to a wallet connection. "
                "Only provide the public wallet address."
            )

        pattern = {
            ChainKind.EVM: EVM_ADDRESS,
            ChainKind.XRPL: XRPL_ADDRESS,
            ChainKind.SOLANA: SOLANA_ADDRESS,
        }[self.chain]
        if not pattern.match(v):
            raise ValueError(f"Invalid {self.chain.value} address format")
        return self

    @property
    def short_address(self) -> str:
        return self.address[:10] + "..." if len(self.address) > 10 else self.address

    def describe(self) -> str:
        name = self.label or self.wallet_type
        return f"{name} {self.short_address} ({self.signing_method.value})"
