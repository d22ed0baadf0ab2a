"""Vanity tests — suffix validation and the bounded grinding loop.

Invariants:
    - Non-base58 suffix characters rejected
    - Returns (None, max_attempts) when nothing matches
    - Progress reported every PROGRESS_INTERVAL attempts
"""

import pytest
from solders.keypair import Keypair

from shipyard.core.errors import InvalidRequestError
from shipyard.core.vanity import (
    PROGRESS_INTERVAL,
    estimate_attempts,
    grind_vanity_keypair,
    matches_suffix,
    validate_suffix,
)


def test_validate_suffix_rejects_non_base58():
    with pytest.raises(InvalidRequestError, match="0O"):
        validate_suffix("0Ox")


def test_validate_suffix_rejects_empty():
    with pytest.raises(InvalidRequestError):
        validate_suffix("")


def test_matches_suffix_case_modes():
    assert matches_suffix("abcSHIP", "SHIP")
    assert not matches_suffix("abcship", "SHIP")
    assert matches_suffix("abcship", "SHIP", case_sensitive=False)


def _miss_for(suffix: str) -> Keypair:
    keypair = Keypair()
    while str(keypair.pubkey()).endswith(suffix):
        keypair = Keypair()
    return keypair


def test_grind_finds_scripted_keypair():
    hit = Keypair()
    suffix = str(hit.pubkey())[-3:]
    miss = _miss_for(suffix)
    source = iter([miss, miss, hit])
    found, attempts = grind_vanity_keypair(suffix, max_attempts=10, generate=lambda: next(source))
    assert found is hit
    assert attempts == 3


def test_grind_exhausts_budget():
    miss = _miss_for("1")
    found, attempts = grind_vanity_keypair("1", max_attempts=5, generate=lambda: miss)
    assert found is None
    assert attempts == 5


def test_grind_reports_progress():
    miss = _miss_for("1")
    seen = []
    grind_vanity_keypair(
        "1", max_attempts=PROGRESS_INTERVAL * 2, on_progress=seen.append, generate=lambda: miss,
    )
    assert seen == [PROGRESS_INTERVAL, PROGRESS_INTERVAL * 2]


def test_estimate_attempts():
    assert estimate_attempts(2) == 58 ** 2
