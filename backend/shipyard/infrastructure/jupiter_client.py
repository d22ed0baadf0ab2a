"""Jupiter Client — swap quotes and swap-transaction builds with fixed-delay retries.

Invariants:
    - Quote and swap build each get at most max_attempts tries, fixed delay between them
    - Any non-2xx, transport error or missing field counts as a failed attempt
    - A quote whose outAmount is not a positive integer counts as a failed attempt
    - Exhausted retries raise SwapAggregatorError (core/errors.py)
    - Returned swap transactions are opaque base64 blobs; signing happens in SolanaGateway

Design Decisions:
    - Fixed delay, not exponential: quote API failures are short blips, and the
      flywheel already runs on a schedule
    - sleep is injectable so tests run without waiting
"""

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from shipyard.core.errors import SwapAggregatorError, ErrorContext

logger = logging.getLogger(__name__)


class JupiterClient:
    """Async Jupiter v6 quote/swap API client."""

    def __init__(
        self,
        quote_url: str,
        swap_url: str,
        slippage_bps: int = 100,
        max_attempts: int = 3,
        retry_delay_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
        http: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.quote_url = quote_url
        self.swap_url = swap_url
        self.slippage_bps = slippage_bps
        self.max_attempts = max_attempts
        self.retry_delay_seconds = retry_delay_seconds
        self._http = http or httpx.AsyncClient(timeout=timeout_seconds)
        self._sleep = sleep

    async def close(self):
        await self._http.aclose()

    async def _with_retries(
        self, stage: str, call: Callable[[], Awaitable[dict]], context: ErrorContext | None,
    ) -> dict:
        last_error = "no attempts made"
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await call()
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                last_error = str(e) or e.__class__.__name__
                logger.warning(
                    f"Jupiter {stage} attempt {attempt} failed: {last_error}",
                    extra={"attempt": attempt},
                )
                if attempt < self.max_attempts:
                    await self._sleep(self.retry_delay_seconds)
        raise SwapAggregatorError(last_error, stage, context=context)

    async def get_quote(
        self, input_mint: str, output_mint: str, amount: int,
        context: ErrorContext | None = None,
    ) -> dict:
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(self.slippage_bps),
        }

        async def _call() -> dict:
            resp = await self._http.get(self.quote_url, params=params)
            resp.raise_for_status()
            quote = resp.json()
            if "outAmount" not in quote:
                raise KeyError("quote missing outAmount")
            if int(quote["outAmount"]) <= 0:
                raise ValueError("quote outAmount must be positive")
            return quote

        return await self._with_retries("quote", _call, context)

    async def build_swap(
        self, quote: dict, user_public_key: str, context: ErrorContext | None = None,
    ) -> str:
        body = {
            "quoteResponse": quote,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
            "prioritizationFeeLamports": "auto",
        }

        async def _call() -> dict:
            resp = await self._http.post(self.swap_url, json=body)
            resp.raise_for_status()
            data = resp.json()
            if not data.get("swapTransaction"):
                raise KeyError("swap response missing swapTransaction")
            return data

        data = await self._with_retries("swap", _call, context)
        return data["swapTransaction"]
