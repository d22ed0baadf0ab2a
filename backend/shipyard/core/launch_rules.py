"""Launch Rules — pure validation and normalization for token launches.

Invariants:
    - Stored symbols are upper-case, 2-10 characters
    - Metadata handed to the bonding-curve program fits its buffers:
      name <= 32 chars, symbol <= 10 chars, uri < 100 chars
    - Dev buy never exceeds max_dev_buy_sol
    - A fee payment is accepted at >= 99% of the expected lamports (rent/fee slack)

Design Decisions:
    - Functions raise InvalidRequestError / FeePaymentError directly: routes stay thin
    - credited_lamports reads both jsonParsed and raw account-key shapes so callers
      do not care which encoding the RPC returned
"""

import random
import time
from dataclasses import dataclass

from shipyard.core.domain_types import LAMPORTS_PER_SOL
from shipyard.core.errors import InvalidRequestError, FeePaymentError

PAYMENT_TOLERANCE = 0.99
MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MIN_SYMBOL_LENGTH = 2
MAX_URI_LENGTH = 100
FALLBACK_URI_BASE = "https://shipyard.so/"

CURVE_START_MARKET_CAP_USD = 3770
CURVE_GRADUATION_MARKET_CAP_USD = 57000
CURVE_SOL_TO_FILL = 85
TRADING_FEE_BPS = 100
MIGRATED_POOL_FEE_BPS = 100

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class TokenMetadata:
    name: str
    symbol: str
    uri: str


@dataclass(frozen=True)
class DevBuy:
    sol: float
    lamports: int
    estimated_percent: float


def validate_symbol(symbol: str) -> str:
    cleaned = symbol.strip()
    if not MIN_SYMBOL_LENGTH <= len(cleaned) <= MAX_SYMBOL_LENGTH:
        raise InvalidRequestError("Symbol must be 2-10 characters", field="symbol")
    return cleaned.upper()


def normalize_metadata(name: str, symbol: str, uri: str | None) -> TokenMetadata:
    token_symbol = symbol.upper()[:MAX_SYMBOL_LENGTH]
    token_uri = uri if uri and len(uri) < MAX_URI_LENGTH else f"{FALLBACK_URI_BASE}{token_symbol}"
    return TokenMetadata(name=name[:MAX_NAME_LENGTH], symbol=token_symbol, uri=token_uri)


def compute_dev_buy(requested_sol: float | None, max_sol: float, max_percent: float) -> DevBuy:
    """Cap the dev buy and estimate the share of supply it buys."""
    if requested_sol is not None and requested_sol < 0:
        raise InvalidRequestError("Dev buy amount cannot be negative", field="dev_buy_amount")
    sol = min(requested_sol, max_sol) if requested_sol else 0.0
    percent = (sol / max_sol) * max_percent if max_sol > 0 else 0.0
    return DevBuy(
        sol=sol,
        lamports=int(sol * LAMPORTS_PER_SOL),
        estimated_percent=round(percent, 2),
    )


def expected_payment_lamports(launch_fee_sol: float, dev_buy_sol: float) -> int:
    return round((launch_fee_sol + dev_buy_sol) * LAMPORTS_PER_SOL)


def credited_lamports(transaction: dict, wallet: str) -> int | None:
    """Lamports the wallet gained in a confirmed transaction; None if not a party."""
    message = transaction.get("transaction", {}).get("message", {})
    keys = message.get("accountKeys") or message.get("account_keys") or []
    meta = transaction.get("meta") or {}
    pre = meta.get("preBalances") or meta.get("pre_balances") or []
    post = meta.get("postBalances") or meta.get("post_balances") or []
    for index, key in enumerate(keys):
        address = key.get("pubkey") if isinstance(key, dict) else key
        if address == wallet:
            before = pre[index] if index < len(pre) else 0
            after = post[index] if index < len(post) else 0
            return after - before
    return None


def verify_fee_payment(
    transaction: dict | None,
    wallet: str,
    launch_fee_sol: float,
    dev_buy_sol: float,
) -> int:
    """Check a fee payment transaction and return the lamports received."""
    if transaction is None:
        raise FeePaymentError(
            "Fee payment transaction not found. Please wait for confirmation."
        )
    if (transaction.get("meta") or {}).get("err") is not None:
        raise FeePaymentError("Fee payment transaction failed")
    received = credited_lamports(transaction, wallet)
    if received is None:
        raise FeePaymentError("Fee payment not sent to Shipyard wallet")
    expected = expected_payment_lamports(launch_fee_sol, dev_buy_sol)
    if received < expected * PAYMENT_TOLERANCE:
        breakdown = f"{launch_fee_sol} fee"
        if dev_buy_sol > 0:
            breakdown += f" + {dev_buy_sol} dev buy"
        raise FeePaymentError(
            f"Insufficient payment. Expected {launch_fee_sol + dev_buy_sol:.2f} SOL "
            f"({breakdown}), received {received / LAMPORTS_PER_SOL:.4f} SOL"
        )
    return received


def validate_fee_percents(lp_percent: int, burn_percent: int) -> None:
    if lp_percent + burn_percent != 100:
        raise InvalidRequestError("Fee percentages must total 100", field="fee_config")


def new_launch_id(now_ms: int | None = None, rng: random.Random | None = None) -> str:
    """launch_<epoch ms>_<9 base36 chars>."""
    ms = now_ms if now_ms is not None else int(time.time() * 1000)
    source = rng or random.SystemRandom()
    suffix = "".join(source.choice(_BASE36) for _ in range(9))
    return f"launch_{ms}_{suffix}"


def curve_summary(sol_price_usd: float) -> dict:
    """Fixed pump-style curve parameters, priced at the given SOL/USD."""
    return {
        "start_market_cap": CURVE_START_MARKET_CAP_USD,
        "graduation_market_cap": CURVE_GRADUATION_MARKET_CAP_USD,
        "sol_required": CURVE_SOL_TO_FILL,
        "price_multiplier": CURVE_GRADUATION_MARKET_CAP_USD / CURVE_START_MARKET_CAP_USD,
        "total_raised_usd": CURVE_SOL_TO_FILL * sol_price_usd,
    }
