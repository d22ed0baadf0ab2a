"""Launch Registry — persistence and serialization of launch records.

Invariants:
    - token_mint is unique; register() raises DuplicateLaunchError instead of overwriting
      (also when a concurrent insert wins the race and the unique constraint fires)
    - Records are never deleted; updates only touch flywheel/migration fields
    - migrated_at is set once, on the first transition to migrated
    - tokens_burned accumulates as an exact integer (stored as decimal string)

Design Decisions:
    - Registry wraps an AsyncSession per request (no caching): launches change on every
      flywheel run and the table is small
    - Buyback-burn is enabled at registration iff the engine has a burn share
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shipyard.core.domain_types import Engine
from shipyard.core.errors import DuplicateLaunchError, ResourceNotFoundError, ErrorContext
from shipyard.core.fee_split import burn_percent
from shipyard.core.launch_rules import new_launch_id
from shipyard.models.launch import Launch

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = Engine.LIGHTHOUSE


def serialize_launch(launch: Launch) -> dict:
    return {
        "id": launch.id,
        "token_mint": launch.token_mint,
        "pool_address": launch.pool_address,
        "name": launch.name,
        "symbol": launch.symbol,
        "description": launch.description,
        "image_url": launch.image_url,
        "creator": launch.creator,
        "engine": launch.engine,
        "engine_name": launch.engine_name,
        "config_address": launch.config_address,
        "dev_buy_amount": launch.dev_buy_amount,
        "dev_buy_percent": launch.dev_buy_percent,
        "created_at": launch.created_at.isoformat() if launch.created_at else None,
        "sol_raised": launch.sol_raised,
        "migrated": launch.migrated,
        "migrated_at": launch.migrated_at.isoformat() if launch.migrated_at else None,
        "tx_signature": launch.tx_signature,
        "buyback_burn_enabled": launch.buyback_burn_enabled,
        "buyback_burn_percent": launch.buyback_burn_percent,
        "buyback_burn_executed": launch.buyback_burn_executed,
        "buyback_burn_tx_signature": launch.buyback_burn_tx_signature,
        "buyback_burn_amount": launch.buyback_burn_amount,
        "tokens_burned": launch.tokens_burned,
    }


class LaunchRegistry:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_launches(self) -> list[Launch]:
        result = await self.db.execute(
            select(Launch).order_by(Launch.created_at.desc()),
        )
        return list(result.scalars().all())

    async def find_by_mint(self, token_mint: str) -> Launch | None:
        result = await self.db.execute(
            select(Launch).where(Launch.token_mint == token_mint),
        )
        return result.scalar_one_or_none()

    async def find_by_pool(self, pool_address: str) -> Launch | None:
        result = await self.db.execute(
            select(Launch).where(Launch.pool_address == pool_address),
        )
        return result.scalars().first()

    async def get_by_mint(self, token_mint: str) -> Launch:
        launch = await self.find_by_mint(token_mint)
        if launch is None:
            raise ResourceNotFoundError(
                "Launch", token_mint, ErrorContext(token_mint=token_mint),
            )
        return launch

    async def register(
        self,
        *,
        token_mint: str,
        pool_address: str | None,
        name: str,
        symbol: str,
        creator: str,
        engine: Engine = DEFAULT_ENGINE,
        description: str = "",
        image_url: str = "",
        config_address: str | None = None,
        dev_buy_amount: float = 0.0,
        dev_buy_percent: float = 0.0,
        tx_signature: str | None = None,
    ) -> Launch:
        if await self.find_by_mint(token_mint) is not None:
            raise DuplicateLaunchError(token_mint)
        percent = burn_percent(engine)
        launch = Launch(
            id=new_launch_id(),
            token_mint=token_mint,
            pool_address=pool_address,
            name=name,
            symbol=symbol.upper(),
            description=description or "",
            image_url=image_url or "",
            creator=creator,
            engine=engine.engine_id,
            engine_name=engine.value,
            config_address=config_address,
            dev_buy_amount=dev_buy_amount,
            dev_buy_percent=dev_buy_percent,
            created_at=datetime.now(timezone.utc),
            tx_signature=tx_signature,
            buyback_burn_enabled=percent > 0,
            buyback_burn_percent=percent,
            buyback_burn_executed=False,
            tokens_burned="0",
        )
        self.db.add(launch)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "Launch registered concurrently, rejecting duplicate",
                extra={"token_mint": token_mint},
            )
            raise DuplicateLaunchError(token_mint) from e
        await self.db.refresh(launch)
        logger.info(
            f"Launch registered: {launch.symbol}",
            extra={"token_mint": token_mint, "pool_address": pool_address,
                   "engine": engine.value},
        )
        return launch

    async def update_market_state(
        self, token_mint: str, sol_raised: float | None, migrated: bool | None,
    ) -> Launch:
        launch = await self.get_by_mint(token_mint)
        if sol_raised is not None:
            launch.sol_raised = sol_raised
        if migrated and not launch.migrated:
            launch.migrated = True
            launch.migrated_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(launch)
        return launch

    async def add_tokens_burned(self, launch: Launch, amount: int):
        launch.tokens_burned = str(int(launch.tokens_burned or "0") + amount)
        await self.db.commit()

    async def mark_buyback_executed(
        self, launch: Launch, signature: str, amount_sol: float, tokens_burned: int,
    ):
        launch.buyback_burn_executed = True
        launch.buyback_burn_tx_signature = signature
        launch.buyback_burn_amount = amount_sol
        launch.tokens_burned = str(int(launch.tokens_burned or "0") + tokens_burned)
        await self.db.commit()


def summarize_launches(launches: list[Launch]) -> dict:
    return {
        "total_launches": len(launches),
        "total_sol_raised": sum(l.sol_raised for l in launches),
        "migrated_count": sum(1 for l in launches if l.migrated),
    }
