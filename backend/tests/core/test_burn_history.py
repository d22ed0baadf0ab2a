"""Burn History tests — burn extraction from parsed transactions and summaries.

Invariants:
    - Only spl-token burn/burnChecked count; failed txs contribute nothing
    - Inner duplicates of a top-level burn are skipped
    - Summary newest first, capped at 10, exact integer totals
"""

from datetime import datetime, timezone

from shipyard.core.burn_history import (
    BurnEntry,
    extract_burns,
    format_time_ago,
    summarize_burns,
)

NOW = datetime(2024, 1, 2, tzinfo=timezone.utc)


def _burn_ix(amount, kind="burn", program="spl-token", mint="MintA"):
    info = {"mint": mint}
    if kind == "burnChecked":
        info["tokenAmount"] = {"amount": str(amount)}
    else:
        info["amount"] = str(amount)
    return {"program": program, "parsed": {"type": kind, "info": info}}


def _tx(instructions, inner=None, err=None):
    return {
        "transaction": {"message": {"instructions": instructions}},
        "meta": {"err": err, "innerInstructions": inner or []},
    }


def test_extracts_top_level_and_checked_burns():
    tx = _tx([_burn_ix(100), _burn_ix(250, kind="burnChecked")])
    entries = extract_burns("sig1", 1_700_000_000, tx)
    assert [e.tokens_burned for e in entries] == ["100", "250"]
    assert entries[0].mint == "MintA"


def test_ignores_other_programs_and_types():
    tx = _tx([
        _burn_ix(100, program="spl-associated-token-account"),
        {"program": "spl-token", "parsed": {"type": "transfer", "info": {"amount": "5"}}},
        {"programId": "11111111111111111111111111111111", "data": "abc"},
    ])
    assert extract_burns("sig1", 1, tx) == []


def test_failed_transaction_contributes_nothing():
    tx = _tx([_burn_ix(100)], err={"InstructionError": [0, "Custom"]})
    assert extract_burns("sig1", 1, tx) == []
    assert extract_burns("sig1", 1, None) == []


def test_inner_duplicate_skipped_but_new_inner_kept():
    tx = _tx(
        [_burn_ix(100)],
        inner=[{"index": 0, "instructions": [_burn_ix(100), _burn_ix(7)]}],
    )
    entries = extract_burns("sig1", 1, tx)
    assert [e.tokens_burned for e in entries] == ["100", "7"]


def test_format_time_ago():
    now_ts = NOW.timestamp()
    assert format_time_ago(int(now_ts - 30), NOW) == "just now"
    assert format_time_ago(int(now_ts - 120), NOW) == "2m ago"
    assert format_time_ago(int(now_ts - 7_200), NOW) == "2h ago"
    assert format_time_ago(int(now_ts - 3 * 86_400), NOW) == "3d ago"


def test_summary_orders_and_caps():
    base = int(NOW.timestamp()) - 10_000
    entries = [
        BurnEntry(f"sig{i}", str(10 ** 20), "MintA", "t", base + i) for i in range(12)
    ]
    summary = summarize_burns(entries, NOW)
    assert summary["execution_count"] == 12
    assert summary["tokens_burned"] == str(12 * 10 ** 20)
    assert len(summary["recent_activity"]) == 10
    assert summary["recent_activity"][0]["signature"] == "sig11"


def test_summary_empty():
    summary = summarize_burns([], NOW)
    assert summary == {
        "tokens_burned": "0", "execution_count": 0, "last_execution": None, "recent_activity": [],
    }
