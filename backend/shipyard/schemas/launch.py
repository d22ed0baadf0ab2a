"""Launch Schemas — registration, market-state updates and token launch requests.

Invariants:
    - LaunchRegister: token_mint, pool_address, name, symbol, creator required
    - LaunchUpdate: at least one of sol_raised / migrated
    - LaunchCreate.vanity_secret_key, when given, is exactly 64 byte values
    - MigrationMarkRequest: at least one of token_mint / pool_address
"""

from pydantic import BaseModel, Field, field_validator, model_validator

from shipyard.schemas.common import PublicKeyStr


class LaunchRegister(BaseModel):
    """Manual launch registration (pools created outside this service)."""
    token_mint: PublicKeyStr
    pool_address: PublicKeyStr
    name: str = Field(min_length=1, max_length=64)
    symbol: str = Field(min_length=1, max_length=16)
    creator: PublicKeyStr
    description: str = Field("", max_length=2000)
    image_url: str = Field("", max_length=2000)
    engine: int | str | None = None
    config_address: PublicKeyStr | None = None
    dev_buy_amount: float = Field(0.0, ge=0)
    dev_buy_percent: float = Field(0.0, ge=0)
    tx_signature: str | None = Field(None, max_length=128)


class LaunchUpdate(BaseModel):
    """Migration monitor feed."""
    sol_raised: float | None = Field(None, ge=0)
    migrated: bool | None = None

    @model_validator(mode="after")
    def require_one(self):
        if self.sol_raised is None and self.migrated is None:
            raise ValueError("sol_raised or migrated is required")
        return self


class LaunchPreviewRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    symbol: str = Field(min_length=1, max_length=16)
    creator_wallet: PublicKeyStr
    description: str | None = Field(None, max_length=2000)
    image_url: str | None = Field(None, max_length=2000)
    lp_compound_percent: int | None = Field(None, ge=0, le=100)
    buyback_burn_percent: int | None = Field(None, ge=0, le=100)


class LaunchCreate(BaseModel):
    """Paid pool creation."""
    fee_signature: str = Field(min_length=32, max_length=128)
    name: str = Field(min_length=1, max_length=64)
    symbol: str = Field(min_length=1, max_length=16)
    uri: str = Field(min_length=1, max_length=2000)
    creator_wallet: PublicKeyStr
    engine: str | None = None
    dev_buy_amount: float | None = Field(None, ge=0)
    vanity_secret_key: list[int] | None = None
    description: str = Field("", max_length=2000)
    image_url: str = Field("", max_length=2000)

    @field_validator("vanity_secret_key")
    @classmethod
    def check_secret_key(cls, v: list[int] | None) -> list[int] | None:
        if v is None:
            return v
        if len(v) != 64 or any(not 0 <= b <= 255 for b in v):
            raise ValueError("vanity_secret_key must be 64 byte values")
        return v


class SwapBuild(BaseModel):
    pool_address: PublicKeyStr
    amount_lamports: int = Field(gt=0)
    buyer_wallet: PublicKeyStr


class VanityRequest(BaseModel):
    suffix: str | None = Field(None, min_length=1, max_length=6)
    case_sensitive: bool = False
    max_attempts: int | None = Field(None, gt=0)


class MigrationMarkRequest(BaseModel):
    """Manual migration override, looked up by mint or pool."""
    token_mint: PublicKeyStr | None = None
    pool_address: PublicKeyStr | None = None
    sol_raised: float | None = Field(None, gt=0)
    trigger_buyback: bool = False

    @model_validator(mode="after")
    def require_lookup(self):
        if self.token_mint is None and self.pool_address is None:
            raise ValueError("token_mint or pool_address is required")
        return self
