"""Execution, signing-descriptor and payload-status contracts."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ExecuteResponse(BaseModel):
    """Response of a chain execute endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = Field(False, description="Whether the swap was submitted")
    tx_hash: Optional[str] = Field(
        None, validation_alias=AliasChoices("txHash", "signature", "hash", "tx_hash")
    )
    actual_received: Optional[str] = Field(
        None, validation_alias=AliasChoices("actualReceived")
    )
    error: Optional[str] = Field(None, validation_alias=AliasChoices("error", "message"))
    error_code: Optional[str] = Field(None, validation_alias=AliasChoices("errorCode", "code"))


class UnsignedTransaction(BaseModel):
    """Unsigned transaction descriptor for client-side or remote signing.

    The backend builds the transaction; this package never constructs one.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = Field(..., description="Whether the descriptor was built")
    transaction: Optional[Any] = Field(
        None,
        validation_alias=AliasChoices("transaction", "swapTransaction", "tx"),
        description="Chain-native unsigned transaction (dict or base64 string)",
    )
    uuid: Optional[str] = Field(None, description="Backend payload id for status polling")
    deeplink: Optional[str] = Field(
        None, validation_alias=AliasChoices("deeplink", "deepLink")
    )
    qr_code: Optional[str] = Field(None, validation_alias=AliasChoices("qrCode", "qr_code"))
    use_walletconnect: bool = Field(
        False, validation_alias=AliasChoices("useWalletConnect", "use_walletconnect")
    )
    error: Optional[str] = None

    @property
    def is_payload(self) -> bool:
        """True when the backend created a pollable remote-signing payload."""
        return bool(self.uuid) and not self.use_walletconnect


class PayloadResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    txid: Optional[str] = None
    account: Optional[str] = None


class PayloadStatus(BaseModel):
    """Status of a remote-signing payload."""

    model_config = ConfigDict(extra="ignore")

    status: str = Field("pending", description="pending, signed, connected, rejected, cancelled, expired")
    result: Optional[PayloadResult] = None
    error: Optional[str] = None

    @property
    def is_signed(self) -> bool:
        return self.status in ("signed", "connected")

    @property
    def is_rejected(self) -> bool:
        return self.status in ("rejected", "cancelled")

    @property
    def is_expired(self) -> bool:
        return self.status == "expired"
