"""Token Launcher — verify the launch fee, create the bonding-curve pool, register it.

Invariants:
    - No pool is created before the fee payment transaction is verified
    - The Shipyard wallet pays for and creates the pool; the mint keypair co-signs
    - Dev-buy tokens are bought by the Shipyard wallet inside the creation
      transaction, then transferred to the creator wallet
    - A failed dev-buy transfer is logged and reported as null, never fatal
    - Every created pool is registered as a launch under the creator wallet

Design Decisions:
    - Unknown or missing engine names fall back to navigator for creation
      (the registry's own default, lighthouse, applies only to manual registration)
    - A supplied 64-byte vanity secret key is used as-is; a missing suffix only warns
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_PROGRAM_ID, WRAPPED_SOL_MINT
from spl.token.instructions import (
    TransferParams, create_idempotent_associated_token_account,
    get_associated_token_address, transfer,
)

from shipyard.config import Settings
from shipyard.core.domain_types import Engine
from shipyard.core.errors import ErrorContext, InvalidRequestError, ShipyardError
from shipyard.core.launch_rules import (
    MIGRATED_POOL_FEE_BPS, TRADING_FEE_BPS, compute_dev_buy, curve_summary,
    normalize_metadata, validate_fee_percents, validate_symbol, verify_fee_payment,
)
from shipyard.core.repository_protocols import BondingCurveProgram, ChainGateway
from shipyard.core.vanity import matches_suffix
from shipyard.services.launch_registry import LaunchRegistry

logger = logging.getLogger(__name__)

DEFAULT_CREATE_ENGINE = Engine.NAVIGATOR
DEFAULT_LP_PERCENT = 70
DEFAULT_BURN_PERCENT = 30
PARTNER_LOCKED_LP_PERCENT = 100
CREATOR_LOCKED_LP_PERCENT = 0


# ─── Read-only summaries ─────────────────────────────────────────

def launch_overview(sol_price_usd: float) -> dict:
    curve = curve_summary(sol_price_usd)
    return {
        "name": "Shipyard Token Launch",
        "version": "1.0.0",
        "curve": {
            "style": "pump.fun",
            "start_market_cap": f"${curve['start_market_cap']:,}",
            "graduation_market_cap": f"${curve['graduation_market_cap']:,}",
            "sol_to_fill": curve["sol_required"],
            "price_multiplier": f"{curve['price_multiplier']:.1f}x",
        },
        "lp_config": {
            "locked_percent": PARTNER_LOCKED_LP_PERCENT,
            "unlockable": False,
            "claimable_fees": True,
        },
        "fees": {
            "trading_fee": f"{TRADING_FEE_BPS / 100:g}%",
            "post_migration_fee": f"{MIGRATED_POOL_FEE_BPS / 100:g}%",
        },
        "flywheel": {
            "enabled": True,
            "default_lp_compound": DEFAULT_LP_PERCENT,
            "default_buyback_burn": DEFAULT_BURN_PERCENT,
        },
    }


def launch_preview(
    name: str,
    symbol: str,
    creator_wallet: str,
    sol_price_usd: float,
    description: str | None = None,
    image_url: str | None = None,
    lp_percent: int | None = None,
    burn_percent: int | None = None,
) -> dict:
    """Validate a launch request and describe the token and pool it would create."""
    token_symbol = validate_symbol(symbol)
    lp = DEFAULT_LP_PERCENT if lp_percent is None else lp_percent
    burn = DEFAULT_BURN_PERCENT if burn_percent is None else burn_percent
    validate_fee_percents(lp, burn)
    return {
        "token_config": {
            "name": name,
            "symbol": token_symbol,
            "description": description,
            "image_url": image_url,
            "creator_wallet": creator_wallet,
        },
        "fee_config": {"lp_percent": lp, "burn_percent": burn, "dev_percent": 0},
        "curve_info": curve_summary(sol_price_usd),
        "lp_config": {
            "partner_locked_percent": PARTNER_LOCKED_LP_PERCENT,
            "creator_locked_percent": CREATOR_LOCKED_LP_PERCENT,
            "migrates_to": "Meteora DAMM v2",
        },
        "flywheel": {"lp_compound_percent": lp, "buyback_burn_percent": burn},
    }


# ─── Pool creation ───────────────────────────────────────────────

@dataclass
class LaunchRequest:
    fee_signature: str
    name: str
    symbol: str
    uri: str
    creator_wallet: str
    engine: str | None = None
    dev_buy_amount: float | None = None
    vanity_secret_key: list[int] | None = None
    description: str = ""
    image_url: str = ""


def _mint_keypair(secret: list[int] | None, vanity_suffix: str) -> tuple[Keypair, bool]:
    if secret is None:
        return Keypair(), False
    if len(secret) != 64:
        raise InvalidRequestError("Vanity secret key must be 64 bytes", field="vanity_secret_key")
    try:
        keypair = Keypair.from_bytes(bytes(secret))
    except ValueError as e:
        raise InvalidRequestError(f"Invalid vanity secret key: {e}", field="vanity_secret_key") from e
    address = str(keypair.pubkey())
    if not matches_suffix(address, vanity_suffix, case_sensitive=False):
        logger.warning(f"Supplied mint keypair does not end in {vanity_suffix}: {address}")
    return keypair, True


class TokenLauncher:
    def __init__(
        self,
        chain: ChainGateway,
        dbc: BondingCurveProgram,
        keypair: Keypair,
        registry: LaunchRegistry,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.chain = chain
        self.dbc = dbc
        self.keypair = keypair
        self.registry = registry
        self.settings = settings
        self._sleep = sleep

    async def create(self, request: LaunchRequest) -> dict:
        wallet = self.keypair.pubkey()
        creator = Pubkey.from_string(request.creator_wallet)
        dev_buy = compute_dev_buy(
            request.dev_buy_amount, self.settings.max_dev_buy_sol,
            self.settings.max_dev_buy_percent,
        )

        payment = await self.chain.get_parsed_transaction(request.fee_signature)
        received = verify_fee_payment(
            payment, str(wallet), self.settings.launch_fee_sol, dev_buy.sol,
        )
        logger.info(
            f"Fee payment verified: {received} lamports",
            extra={"signature": request.fee_signature, "lamports": received},
        )

        engine = Engine.parse(request.engine, default=DEFAULT_CREATE_ENGINE)
        config = Pubkey.from_string(self.settings.engine_configs()[engine.value])
        mint_keypair, is_vanity = _mint_keypair(
            request.vanity_secret_key, self.settings.vanity_suffix,
        )
        mint = mint_keypair.pubkey()
        pool = self.dbc.derive_pool_address(mint, WRAPPED_SOL_MINT, config)
        metadata = normalize_metadata(request.name, request.symbol, request.uri)
        log_extra = {"token_mint": str(mint), "pool_address": str(pool), "engine": engine.value}

        instructions = self.dbc.create_pool_instructions(
            config, mint, wallet, wallet, metadata.name, metadata.symbol, metadata.uri,
        )
        if dev_buy.lamports > 0:
            instructions += self.dbc.first_buy_instructions(
                pool, config, mint, wallet, dev_buy.lamports,
            )
        pool_signature = await self.chain.send_instructions(
            instructions, [self.keypair, mint_keypair],
        )
        logger.info(f"{metadata.symbol} pool created", extra={**log_extra, "signature": pool_signature})

        transfer_signature = None
        if dev_buy.lamports > 0:
            await self._sleep(self.settings.burn_settle_delay_seconds)
            transfer_signature = await self._transfer_dev_buy(mint, creator, log_extra)

        await self.registry.register(
            token_mint=str(mint),
            pool_address=str(pool),
            name=metadata.name,
            symbol=metadata.symbol,
            creator=request.creator_wallet,
            engine=engine,
            description=request.description,
            image_url=request.image_url,
            config_address=str(config),
            dev_buy_amount=dev_buy.sol,
            dev_buy_percent=dev_buy.estimated_percent,
            tx_signature=pool_signature,
        )

        if dev_buy.sol > 0:
            message = f"{metadata.symbol} pool created with {dev_buy.sol:g} SOL dev buy!"
        else:
            message = f"{metadata.symbol} pool created by Shipyard!"
        return {
            "pool_created": True,
            "pool_signature": pool_signature,
            "token_mint": str(mint),
            "pool_address": str(pool),
            "config_address": str(config),
            "engine": engine.value,
            "token_details": {
                "name": metadata.name, "symbol": metadata.symbol, "uri": metadata.uri,
            },
            "dev_buy_info": {
                "enabled": dev_buy.sol > 0,
                "sol_amount": dev_buy.sol,
                "estimated_percent": dev_buy.estimated_percent,
                "token_transfer_signature": transfer_signature,
            },
            "vanity_info": {
                "enabled": is_vanity,
                "suffix": self.settings.vanity_suffix if is_vanity else None,
            },
            "message": message,
        }

    async def _transfer_dev_buy(self, mint: Pubkey, creator: Pubkey, log_extra: dict) -> str | None:
        wallet = self.keypair.pubkey()
        source = get_associated_token_address(wallet, mint, TOKEN_PROGRAM_ID)
        dest = get_associated_token_address(creator, mint, TOKEN_PROGRAM_ID)
        try:
            amount = await self.chain.get_token_balance(source)
            if amount <= 0:
                logger.warning("Dev buy left no tokens to transfer", extra=log_extra)
                return None
            signature = await self.chain.send_instructions([
                create_idempotent_associated_token_account(wallet, creator, mint, TOKEN_PROGRAM_ID),
                transfer(TransferParams(
                    program_id=TOKEN_PROGRAM_ID, source=source, dest=dest,
                    owner=wallet, amount=amount,
                )),
            ], [self.keypair])
        except ShipyardError as e:
            logger.error(
                f"Dev buy transfer failed: {e.message}",
                extra={**log_extra, "error_code": e.code},
            )
            return None
        logger.info(f"Transferred {amount} dev-buy tokens to creator",
                    extra={**log_extra, "signature": signature})
        return signature


# ─── Buyer transactions ──────────────────────────────────────────

async def build_buy_transaction(
    chain: ChainGateway, dbc: BondingCurveProgram,
    pool_address: str, amount_lamports: int, buyer_wallet: str,
) -> str:
    """Unsigned bonding-curve buy for the buyer's wallet to sign, base64."""
    if amount_lamports <= 0:
        raise InvalidRequestError("amount_lamports must be positive", field="amount_lamports")
    buyer = Pubkey.from_string(buyer_wallet)
    pool = await dbc.get_pool(Pubkey.from_string(pool_address))
    config = await dbc.get_pool_config(Pubkey.from_string(pool.config))
    instructions = dbc.buy_instructions(pool, config, buyer, amount_lamports, 0)
    logger.info(
        f"Built buy transaction for {amount_lamports} lamports",
        extra={"pool_address": pool_address, "lamports": amount_lamports},
    )
    return await chain.build_unsigned_transaction(instructions, buyer)
