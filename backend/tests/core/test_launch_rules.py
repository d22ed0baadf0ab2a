"""Launch Rules tests — metadata normalization, dev buy caps and fee payment checks.

Invariants:
    - Symbols 2-10 chars, stored upper-case
    - Metadata truncated to program buffer sizes; long/missing uri replaced
    - Dev buy capped at max_sol; percent scales linearly
    - Payment accepted at >= 99% of expected lamports
"""

import random

import pytest

from shipyard.core.errors import FeePaymentError, InvalidRequestError
from shipyard.core.launch_rules import (
    FALLBACK_URI_BASE,
    compute_dev_buy,
    credited_lamports,
    curve_summary,
    expected_payment_lamports,
    new_launch_id,
    normalize_metadata,
    validate_fee_percents,
    validate_symbol,
    verify_fee_payment,
)

WALLET = "ShipYard1111111111111111111111111111111111"


def _tx(received: int, wallet: str = WALLET, err=None, parsed: bool = True) -> dict:
    keys = [{"pubkey": "Payer111"}, {"pubkey": wallet}] if parsed else ["Payer111", wallet]
    return {
        "transaction": {"message": {"accountKeys": keys}},
        "meta": {"err": err, "preBalances": [5_000_000_000, 100], "postBalances": [0, 100 + received]},
    }


# -- symbols & metadata --------------------------------------------------------

def test_validate_symbol_uppercases():
    assert validate_symbol(" ship ") == "SHIP"


@pytest.mark.parametrize("symbol", ["S", "TOOLONGSYMBOL"])
def test_validate_symbol_length(symbol):
    with pytest.raises(InvalidRequestError):
        validate_symbol(symbol)


def test_normalize_metadata_truncates():
    meta = normalize_metadata("N" * 40, "abcdefghijkl", "https://x.io/m.json")
    assert len(meta.name) == 32
    assert meta.symbol == "ABCDEFGHIJ"
    assert meta.uri == "https://x.io/m.json"


def test_normalize_metadata_replaces_long_uri():
    meta = normalize_metadata("Ship", "shp", "https://x.io/" + "a" * 120)
    assert meta.uri == f"{FALLBACK_URI_BASE}SHP"


def test_normalize_metadata_missing_uri():
    assert normalize_metadata("Ship", "SHP", None).uri == f"{FALLBACK_URI_BASE}SHP"


# -- dev buy -------------------------------------------------------------------

def test_dev_buy_capped():
    buy = compute_dev_buy(5.0, max_sol=2.0, max_percent=10.0)
    assert buy.sol == 2.0
    assert buy.lamports == 2_000_000_000
    assert buy.estimated_percent == 10.0


def test_dev_buy_linear_percent():
    buy = compute_dev_buy(0.5, max_sol=2.0, max_percent=10.0)
    assert buy.estimated_percent == 2.5


def test_dev_buy_none_is_zero():
    buy = compute_dev_buy(None, max_sol=2.0, max_percent=10.0)
    assert buy.sol == 0.0
    assert buy.lamports == 0


def test_dev_buy_negative_rejected():
    with pytest.raises(InvalidRequestError):
        compute_dev_buy(-1.0, max_sol=2.0, max_percent=10.0)


# -- fee payment ---------------------------------------------------------------

def test_expected_payment_lamports():
    assert expected_payment_lamports(0.05, 1.0) == 1_050_000_000


def test_credited_lamports_parsed_and_raw_keys():
    assert credited_lamports(_tx(42), WALLET) == 42
    assert credited_lamports(_tx(42, parsed=False), WALLET) == 42


def test_credited_lamports_not_party():
    assert credited_lamports(_tx(42, wallet="Other111"), WALLET) is None


def test_verify_fee_payment_accepts_within_tolerance():
    received = verify_fee_payment(_tx(49_500_000), WALLET, 0.05, 0.0)
    assert received == 49_500_000


def test_verify_fee_payment_missing_tx():
    with pytest.raises(FeePaymentError, match="not found"):
        verify_fee_payment(None, WALLET, 0.05, 0.0)


def test_verify_fee_payment_failed_tx():
    with pytest.raises(FeePaymentError, match="failed"):
        verify_fee_payment(_tx(50_000_000, err={"InstructionError": [0, "Custom"]}), WALLET, 0.05, 0.0)


def test_verify_fee_payment_wrong_recipient():
    with pytest.raises(FeePaymentError, match="not sent"):
        verify_fee_payment(_tx(50_000_000, wallet="Other111"), WALLET, 0.05, 0.0)


def test_verify_fee_payment_short_includes_breakdown():
    with pytest.raises(FeePaymentError) as exc:
        verify_fee_payment(_tx(50_000_000), WALLET, 0.05, 1.0)
    assert "0.05 fee + 1.0 dev buy" in exc.value.message
    assert "received 0.0500 SOL" in exc.value.message


# -- misc ----------------------------------------------------------------------

def test_fee_percents_must_total_100():
    validate_fee_percents(70, 30)
    with pytest.raises(InvalidRequestError):
        validate_fee_percents(70, 40)


def test_new_launch_id_format():
    launch_id = new_launch_id(now_ms=1700000000000, rng=random.Random(1))
    prefix, ms, suffix = launch_id.split("_")
    assert prefix == "launch"
    assert ms == "1700000000000"
    assert len(suffix) == 9
    assert suffix.isalnum() and suffix == suffix.lower()


def test_curve_summary():
    curve = curve_summary(200.0)
    assert curve["sol_required"] == 85
    assert curve["total_raised_usd"] == 17_000
    assert curve["price_multiplier"] == pytest.approx(57000 / 3770)
