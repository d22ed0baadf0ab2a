"""Vanity Grinder — async keypair search that shares the event loop.

Invariants:
    - Yields to the event loop after every batch so the server keeps serving
    - Never exceeds max_attempts; returns (None, attempts) when exhausted
"""

import asyncio
import logging
from typing import Callable

from solders.keypair import Keypair

from shipyard.core.vanity import PROGRESS_INTERVAL, matches_suffix, validate_suffix

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10_000


async def grind_vanity_keypair_async(
    suffix: str,
    max_attempts: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
    case_sensitive: bool = True,
    on_progress: Callable[[int], None] | None = None,
    generate: Callable[[], Keypair] = Keypair,
) -> tuple[Keypair | None, int]:
    validate_suffix(suffix)
    attempts = 0
    while attempts < max_attempts:
        for _ in range(min(batch_size, max_attempts - attempts)):
            attempts += 1
            keypair = generate()
            if matches_suffix(str(keypair.pubkey()), suffix, case_sensitive):
                logger.info(f"Vanity keypair found after {attempts} attempts",
                            extra={"attempt": attempts})
                return keypair, attempts
            if on_progress and attempts % PROGRESS_INTERVAL == 0:
                on_progress(attempts)
        await asyncio.sleep(0)
    logger.info(f"Vanity search exhausted {attempts} attempts for suffix {suffix}")
    return None, attempts
