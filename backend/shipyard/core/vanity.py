"""Vanity Keypair — brute-force search for a mint address with a fixed suffix.

Invariants:
    - Suffix contains only base58 characters (otherwise no address can match)
    - Progress callback fires every PROGRESS_INTERVAL attempts, never at 0
    - Returns (None, attempts) when the budget is exhausted

Design Decisions:
    - Keypair factory is injectable so tests can drive the search deterministically
"""

from typing import Callable

from solders.keypair import Keypair

from shipyard.core.domain_types import BASE58_ALPHABET
from shipyard.core.errors import InvalidRequestError

PROGRESS_INTERVAL = 100_000


def validate_suffix(suffix: str) -> str:
    if not suffix:
        raise InvalidRequestError("Suffix is required", field="suffix")
    invalid = sorted({c for c in suffix if c not in BASE58_ALPHABET})
    if invalid:
        raise InvalidRequestError(
            f"Suffix contains non-base58 characters: {''.join(invalid)}", field="suffix",
        )
    return suffix


def matches_suffix(address: str, suffix: str, case_sensitive: bool = True) -> bool:
    if case_sensitive:
        return address.endswith(suffix)
    return address.upper().endswith(suffix.upper())


def grind_vanity_keypair(
    suffix: str,
    max_attempts: int = 50_000_000,
    on_progress: Callable[[int], None] | None = None,
    case_sensitive: bool = True,
    generate: Callable[[], Keypair] = Keypair,
) -> tuple[Keypair | None, int]:
    validate_suffix(suffix)
    for attempt in range(1, max_attempts + 1):
        keypair = generate()
        if matches_suffix(str(keypair.pubkey()), suffix, case_sensitive):
            return keypair, attempt
        if on_progress and attempt % PROGRESS_INTERVAL == 0:
            on_progress(attempt)
    return None, max_attempts


def estimate_attempts(suffix_length: int) -> int:
    """Expected attempts for a case-sensitive base58 suffix."""
    return 58 ** suffix_length
