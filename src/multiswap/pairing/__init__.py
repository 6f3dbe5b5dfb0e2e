"""Remote wallet pairing: deep links, QR codes and signing channels."""

from multiswap.pairing.base import PairingChannel
from multiswap.pairing.deeplink import DeeplinkQRGenerator, SigningPrompt
from multiswap.pairing.payload import PayloadPollingChannel
from multiswap.pairing.walletconnect import SignClient, WalletConnectChannel, WalletConnectError

__all__ = [
    "DeeplinkQRGenerator",
    "PairingChannel",
    "PayloadPollingChannel",
    "SignClient",
    "SigningPrompt",
    "WalletConnectChannel",
    "WalletConnectError",
]
