"""Flywheel Schemas — fee claim, buyback-burn and single-pool flywheel requests."""

from pydantic import BaseModel, Field

from shipyard.core.domain_types import ClaimType
from shipyard.schemas.common import PublicKeyStr


class ClaimFeesRequest(BaseModel):
    pool_address: PublicKeyStr
    claim_type: ClaimType = ClaimType.PARTNER


class BuybackBurnRequest(BaseModel):
    token_mint: PublicKeyStr


class ManualBuybackRequest(BaseModel):
    token_mint: PublicKeyStr
    pool_address: PublicKeyStr
    sol_amount: float = Field(gt=0)


class BurnTokensRequest(BaseModel):
    token_mint: PublicKeyStr


class FlywheelPoolRequest(BaseModel):
    pool_address: PublicKeyStr
