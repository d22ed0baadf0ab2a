"""Burn History — extract and summarize SPL burns from parsed transactions.

Invariants:
    - Only spl-token instructions of type burn / burnChecked count
    - Failed transactions (meta.err set) contribute nothing
    - An inner burn with the same (signature, amount) as one already seen is skipped
    - Token totals are exact integers (raw units can exceed float precision)

Design Decisions:
    - Works on plain dicts (jsonParsed RPC shape): the gateway converts solders
      responses before calling in, so this module never touches the RPC client
"""

from dataclasses import dataclass
from datetime import datetime, timezone

BURN_TYPES = ("burn", "burnChecked")
RECENT_LIMIT = 10


@dataclass(frozen=True)
class BurnEntry:
    signature: str
    tokens_burned: str
    mint: str
    timestamp: str
    block_time: int


def _burn_info(instruction: dict) -> dict | None:
    if instruction.get("program") != "spl-token":
        return None
    parsed = instruction.get("parsed")
    if not isinstance(parsed, dict) or parsed.get("type") not in BURN_TYPES:
        return None
    info = parsed.get("info") or {}
    amount = info.get("amount")
    if amount is None:
        amount = (info.get("tokenAmount") or {}).get("amount")
    if amount is None:
        return None
    return {"amount": str(amount), "mint": info.get("mint", "")}


def extract_burns(signature: str, block_time: int | None, transaction: dict | None) -> list[BurnEntry]:
    """Burn entries in one jsonParsed transaction, top-level first then inner."""
    if not transaction or (transaction.get("meta") or {}).get("err") is not None:
        return []
    when = block_time or 0
    timestamp = datetime.fromtimestamp(when, tz=timezone.utc).isoformat()
    message = (transaction.get("transaction") or {}).get("message") or {}
    entries: list[BurnEntry] = []

    def _add(info: dict):
        entries.append(BurnEntry(
            signature=signature, tokens_burned=info["amount"], mint=info["mint"],
            timestamp=timestamp, block_time=when,
        ))

    for ix in message.get("instructions", []):
        info = _burn_info(ix)
        if info:
            _add(info)

    for inner in (transaction.get("meta") or {}).get("innerInstructions") or []:
        for ix in inner.get("instructions", []):
            info = _burn_info(ix)
            if info and not any(
                e.signature == signature and e.tokens_burned == info["amount"]
                for e in entries
            ):
                _add(info)
    return entries


def format_time_ago(block_time: int, now: datetime) -> str:
    diff = now.timestamp() - block_time
    days = int(diff // 86_400)
    hours = int(diff // 3_600)
    minutes = int(diff // 60)
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "just now"


def summarize_burns(entries: list[BurnEntry], now: datetime) -> dict:
    """Totals plus the ten most recent burns, newest first."""
    ordered = sorted(entries, key=lambda e: e.block_time, reverse=True)
    total = sum(int(e.tokens_burned) for e in ordered)
    return {
        "tokens_burned": str(total),
        "execution_count": len(ordered),
        "last_execution": ordered[0].timestamp if ordered else None,
        "recent_activity": [
            {
                "time": format_time_ago(e.block_time, now),
                "timestamp": e.timestamp,
                "tokens_burned": e.tokens_burned,
                "mint": e.mint,
                "signature": e.signature,
            }
            for e in ordered[:RECENT_LIMIT]
        ],
    }
