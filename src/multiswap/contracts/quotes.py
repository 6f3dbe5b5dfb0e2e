"""Quote request and response contracts.

Backends for the three chains answer with slightly different field names
(``rate`` vs ``exchangeRate``, ``minOutput`` vs ``minimumReceived``...).
The response models accept every known alias so the rest of the package
deals with one shape.
"""

from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, InstanceOf, model_validator

from multiswap.tokens.base import TokenRef


class QuoteRequest(BaseModel):
    """Validated input of a quote request."""

    model_config = ConfigDict(frozen=True)

    from_token: InstanceOf[TokenRef] = Field(..., description="Token being sold")
    to_token: InstanceOf[TokenRef] = Field(..., description="Token being bought")
    amount: Decimal = Field(..., gt=0, description="Amount of from_token to swap")
    slippage: Decimal = Field(..., ge=0, le=50, description="Slippage tolerance in percent")

    @model_validator(mode="after")
    def check_pair(self) -> "QuoteRequest":
        if self.from_token.chain != self.to_token.chain:
            raise ValueError("Cross-chain swaps are not supported")
        if self.from_token == self.to_token:
            raise ValueError("Cannot swap a token for itself")
        return self

    @property
    def chain(self):
        return self.from_token.chain


class QuoteResponse(BaseModel):
    """Normalized quote endpoint response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = Field(..., description="Whether quote was successful")
    rate: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("rate", "exchangeRate")
    )
    expected_output: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("expectedOutput", "estimatedOutput", "expected_output")
    )
    min_output: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("minOutput", "minimumReceived", "min_output")
    )
    price_impact: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("priceImpact", "priceImpactPct", "price_impact")
    )
    platform_fee: Optional[Decimal] = Field(
        None,
        validation_alias=AliasChoices("platformFeeInFeeCurrency", "platformFeeXrp", "platform_fee"),
        description="Fee in the chain's native token, when the backend mandates one",
    )
    slippage_percent_used: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("slippagePercentUsed", "slippagePercent")
    )
    has_liquidity: Optional[bool] = Field(None, validation_alias=AliasChoices("hasLiquidity"))
    error: Optional[str] = Field(None, validation_alias=AliasChoices("error", "message"))
    error_code: Optional[str] = Field(None, validation_alias=AliasChoices("errorCode", "code"))


class LiquidityCheckResponse(BaseModel):
    """Response of the XRPL liquidity pre-check."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    has_liquidity: bool = Field(True, validation_alias=AliasChoices("hasLiquidity"))
    estimated_impact: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("estimatedImpact")
    )
    message: Optional[str] = None
    error: Optional[str] = None


class TrustlineCheckResponse(BaseModel):
    """Response of the XRPL trustline check."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    has_trustline: bool = Field(False, validation_alias=AliasChoices("hasTrustline"))
    currency: Optional[str] = None
    issuer: Optional[str] = None
    error: Optional[str] = None


class AllowanceCheckResponse(BaseModel):
    """Response of the EVM token approval check."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    approval_needed: bool = Field(False, validation_alias=AliasChoices("approvalNeeded"))
    approval_transaction: Optional[dict] = Field(
        None, validation_alias=AliasChoices("approvalTransaction")
    )
    error: Optional[str] = None
