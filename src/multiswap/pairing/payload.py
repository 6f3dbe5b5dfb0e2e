"""Backend payload polling (Xaman style).

The backend creates a signing payload identified by a uuid. The wallet
signs it out of band; the channel polls the payload status with
exponential backoff until it settles.
"""

import asyncio
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from multiswap.backends.http import BackendClient, parse_json
from multiswap.config import Settings, get_settings
from multiswap.contracts import PayloadStatus, UnsignedTransaction
from multiswap.errors import BackendExecutionError, RemotePairingTimeout, SigningRejected
from multiswap.pairing.base import PairingChannel
from multiswap.utils.polling import backoff_delay
from multiswap.wallets.base import WalletConnection

logger = logging.getLogger(__name__)

POLL_PATH = "/api/external-wallets/xaman/poll/{uuid}"
CLEANUP_PATH = "/api/external-wallets/xaman/cleanup"


class PayloadPollingChannel(PairingChannel):
    """Polls a backend signing payload until signed, rejected or expired."""

    def __init__(self, client: BackendClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or get_settings()
        self.uuid: Optional[str] = None
        self._closed = False

    async def open(
        self, connection: WalletConnection, descriptor: UnsignedTransaction
    ) -> Optional[str]:
        if not descriptor.uuid:
            raise BackendExecutionError("Signing payload has no id")
        self.uuid = descriptor.uuid
        logger.info(f"Waiting on payload {self.uuid} for {connection.describe()}")
        return None

    async def _poll_once(self) -> Optional[PayloadStatus]:
        try:
            response = await self.client.get(POLL_PATH.format(uuid=self.uuid))
        except httpx.HTTPError as e:
            logger.warning(f"Payload poll failed for {self.uuid}: {e}")
            return None

        if response.status_code == 404:
            return PayloadStatus(status="expired")
        if response.status_code >= 400:
            logger.warning(f"Payload poll returned {response.status_code} for {self.uuid}")
            return None
        try:
            return PayloadStatus.model_validate(parse_json(response))
        except ValidationError as e:
            logger.warning(f"Malformed payload status for {self.uuid}: {e}")
            return None

    async def wait_for_signature(self) -> str:
        if self.uuid is None:
            raise RuntimeError("Channel not opened")

        attempt = 0
        while True:
            status = await self._poll_once()
            if status is not None:
                if status.is_signed:
                    txid = status.result.txid if status.result else None
                    if not txid:
                        raise BackendExecutionError("Wallet signed but no transaction id was returned")
                    logger.info(f"Payload {self.uuid} signed: {txid}")
                    return txid
                if status.is_rejected:
                    raise SigningRejected("Transaction was rejected in the wallet")
                if status.is_expired:
                    raise RemotePairingTimeout("The signing request expired")

            await asyncio.sleep(
                backoff_delay(
                    attempt,
                    base=self.settings.pairing_poll_base_seconds,
                    factor=self.settings.pairing_poll_factor,
                    cap=self.settings.pairing_poll_cap_seconds,
                )
            )
            attempt += 1

    async def close(self) -> None:
        if self._closed or self.uuid is None:
            self._closed = True
            return
        self._closed = True
        try:
            await self.client.post(CLEANUP_PATH, {"uuid": self.uuid})
        except httpx.HTTPError as e:
            logger.warning(f"Payload cleanup failed for {self.uuid}: {e}")
