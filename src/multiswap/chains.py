"""Configuration for the three supported networks.

- XRPL: account-based ledger, trustlines, embedded session is authoritative
- EVM: Ethereum-compatible chains, token approvals
- Solana: account/program-based, platform fee paid in SOL
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from multiswap.config import Settings, get_settings


class ChainKind(str, Enum):
    """Supported network families."""

    XRPL = "xrpl"
    EVM = "evm"
    SOLANA = "solana"


class FeeMode(str, Enum):
    """Currency the platform fee is expressed in."""

    INPUT = "input"    # Fee in the input token's unit
    NATIVE = "native"  # Fee in the chain's native gas token


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for a network family."""

    # Required fields (no defaults) - must come first
    kind: ChainKind
    name: str
    native_symbol: str
    native_decimals: int
    native_address: str  # Address the backend uses for the native asset ("" on XRPL)
    coingecko_id: str

    # Optional fields (with defaults)
    fee_mode: FeeMode = FeeMode.INPUT
    default_slippage: Decimal = Decimal("1")
    debounce_ms: int = 800
    chain_id: Optional[int] = None  # EVM chains only

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


# ======================
# Chain Configurations
# ======================

CHAINS: dict[ChainKind, ChainConfig] = {
    # XRP Ledger - backend mandates a separate XRP fee when it reports one
    ChainKind.XRPL: ChainConfig(
        kind=ChainKind.XRPL,
        name="XRP Ledger",
        native_symbol="XRP",
        native_decimals=6,
        native_address="",
        coingecko_id="ripple",
        fee_mode=FeeMode.INPUT,
        default_slippage=Decimal("5"),
        debounce_ms=500,
    ),

    # EVM - 1% fee taken in the input token
    ChainKind.EVM: ChainConfig(
        kind=ChainKind.EVM,
        name="Ethereum",
        native_symbol="ETH",
        native_decimals=18,
        native_address="0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE",
        coingecko_id="ethereum",
        fee_mode=FeeMode.INPUT,
        default_slippage=Decimal("1"),
        debounce_ms=800,
        chain_id=1,
    ),

    # Solana - 1% of swap value converted to SOL
    ChainKind.SOLANA: ChainConfig(
        kind=ChainKind.SOLANA,
        name="Solana",
        native_symbol="SOL",
        native_decimals=9,
        native_address="So11111111111111111111111111111111111111112",
        coingecko_id="solana",
        fee_mode=FeeMode.NATIVE,
        default_slippage=Decimal("1"),
        debounce_ms=800,
    ),
}

# Native symbols of the EVM chains the backend can route (chain_id -> symbol, coingecko id)
EVM_NATIVE_ASSETS: dict[int, tuple[str, str]] = {
    1: ("ETH", "ethereum"),
    56: ("BNB", "binancecoin"),
    137: ("MATIC", "matic-network"),
    43114: ("AVAX", "avalanche-2"),
    42161: ("ETH", "ethereum"),
    10: ("ETH", "ethereum"),
    8453: ("ETH", "ethereum"),
}


def get_chain_config(chain: ChainKind, settings: Optional[Settings] = None) -> ChainConfig:
    """Get the chain configuration with settings overrides applied."""
    settings = settings or get_settings()
    base = CHAINS[ChainKind(chain)]

    slippage = {
        ChainKind.XRPL: settings.xrpl_default_slippage,
        ChainKind.EVM: settings.evm_default_slippage,
        ChainKind.SOLANA: settings.solana_default_slippage,
    }[base.kind]
    debounce_ms = (
        settings.quote_debounce_ms if settings.quote_debounce_ms is not None else base.debounce_ms
    )

    if base.kind is ChainKind.EVM:
        native_symbol, coingecko_id = EVM_NATIVE_ASSETS.get(
            settings.evm_chain_id, (base.native_symbol, base.coingecko_id)
        )
        return ChainConfig(
            kind=base.kind,
            name=base.name,
            native_symbol=native_symbol,
            native_decimals=base.native_decimals,
            native_address=base.native_address,
            coingecko_id=coingecko_id,
            fee_mode=base.fee_mode,
            default_slippage=slippage,
            debounce_ms=debounce_ms,
            chain_id=settings.evm_chain_id,
        )

    return ChainConfig(
        kind=base.kind,
        name=base.name,
        native_symbol=base.native_symbol,
        native_decimals=base.native_decimals,
        native_address=base.native_address,
        coingecko_id=base.coingecko_id,
        fee_mode=base.fee_mode,
        default_slippage=slippage,
        debounce_ms=debounce_ms,
        chain_id=base.chain_id,
    )
