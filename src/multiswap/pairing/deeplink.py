"""Deep links and QR codes for remote wallets.

A remote wallet receives the signing request either as a backend payload
link (Xaman style, ``https://xumm.app/sign/<uuid>``) or as a WalletConnect
pairing URI wrapped in the wallet's universal link. Both are also rendered
as a QR code for scanning from a second device.
"""

import base64
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional
from urllib.parse import quote

import qrcode
from qrcode.image.pure import PyPNGImage

from multiswap.contracts import UnsignedTransaction
from multiswap.errors import BackendExecutionError

logger = logging.getLogger(__name__)

XAMAN_WEB_PREFIX = "https://xumm.app/"
XAMAN_APP_PREFIX = "xumm://"

# Universal links that open a WalletConnect URI in the wallet app
WALLETCONNECT_LINKS = {
    "joey": "https://joey.app/wc?uri=",
    "metamask": "https://metamask.app.link/wc?uri=",
    "trust": "https://link.trustwallet.com/wc?uri=",
    "trustwallet": "https://link.trustwallet.com/wc?uri=",
}


@dataclass(frozen=True)
class SigningPrompt:
    """What the UI shows while waiting for a remote signature."""

    uri: str
    deeplink: str
    qr_png_data_url: str
    wallet_type: str
    expires_in_seconds: float
    app_link: Optional[str] = None
    payload_uuid: Optional[str] = None


class DeeplinkQRGenerator:
    """Builds SigningPrompts for remote wallets."""

    def __init__(self, expires_in_seconds: float = 600, box_size: int = 10, border: int = 4):
        self.expires_in_seconds = expires_in_seconds
        self.box_size = box_size
        self.border = border

    def render_qr(self, data: str) -> str:
        """Render ``data`` as a PNG QR code data URL."""
        qr = qrcode.QRCode(
            version=None,  # Auto-size
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=self.box_size,
            border=self.border,
            image_factory=PyPNGImage,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image()
        buffer = BytesIO()
        img.save(buffer)
        encoded = base64.b64encode(buffer.getvalue()).decode()
        return f"data:image/png;base64,{encoded}"

    @staticmethod
    def app_link_for(deeplink: str) -> Optional[str]:
        """Native app scheme for a Xaman web link, if it is one."""
        if deeplink.startswith(XAMAN_WEB_PREFIX):
            return XAMAN_APP_PREFIX + deeplink[len(XAMAN_WEB_PREFIX):]
        return None

    def for_payload(self, descriptor: UnsignedTransaction, wallet_type: str) -> SigningPrompt:
        """Prompt for a backend-created signing payload.

        Raises:
            BackendExecutionError: The descriptor carries neither a link nor a payload id
        """
        deeplink = descriptor.deeplink
        if not deeplink and descriptor.uuid:
            deeplink = f"{XAMAN_WEB_PREFIX}sign/{descriptor.uuid}"
        if not deeplink:
            raise BackendExecutionError("Remote signing request has no deep link")

        logger.info(f"Signing payload {descriptor.uuid or '-'} ready for {wallet_type}")
        return SigningPrompt(
            uri=deeplink,
            deeplink=deeplink,
            app_link=self.app_link_for(deeplink),
            qr_png_data_url=self.render_qr(deeplink),
            wallet_type=wallet_type,
            expires_in_seconds=self.expires_in_seconds,
            payload_uuid=descriptor.uuid,
        )

    def for_walletconnect(self, uri: str, wallet_type: str) -> SigningPrompt:
        """Prompt for a WalletConnect pairing URI.

        Wallets without a known universal link get the bare ``wc:`` URI.
        """
        if not uri.startswith("wc:"):
            raise ValueError(f"Not a WalletConnect URI: {uri[:16]}")

        prefix = WALLETCONNECT_LINKS.get(wallet_type.lower())
        deeplink = f"{prefix}{quote(uri, safe='')}" if prefix else uri
        return SigningPrompt(
            uri=uri,
            deeplink=deeplink,
            app_link=None,
            qr_png_data_url=self.render_qr(uri),
            wallet_type=wallet_type,
            expires_in_seconds=self.expires_in_seconds,
        )
