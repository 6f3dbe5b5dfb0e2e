"""Token metadata and balance contracts."""

from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TokenInfo(BaseModel):
    """Token metadata as returned by the token endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    symbol: str
    issuer: str = Field("", validation_alias=AliasChoices("issuer", "address", "mint"))
    decimals: Optional[int] = None
    name: Optional[str] = None
    price_usd: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("price_usd", "priceUsd", "price")
    )

    @field_validator("issuer", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""


class BalanceResponse(BaseModel):
    """Balance endpoint response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = True
    balance: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("balance", "amount", "uiAmount")
    )
    error: Optional[str] = None
