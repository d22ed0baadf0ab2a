"""Error hierarchy tests — status codes and the response envelope."""

from shipyard.core.errors import (
    BurnAfterSwapError,
    ConcurrencyError,
    DuplicateLaunchError,
    ErrorContext,
    InvalidAddressError,
    MarketDataError,
    ResourceNotFoundError,
    SwapAggregatorError,
    UnauthorizedError,
    VanityNotFoundError,
)


def test_envelope_shape():
    err = ResourceNotFoundError("Launch", "mint1", ErrorContext(token_mint="mint1"))
    body = err.to_response()
    assert body["success"] is False
    assert body["error"] == "Launch not found"
    assert body["code"] == "RESOURCE_NOT_FOUND"
    assert body["context"]["token_mint"] == "mint1"
    assert err.http_status == 404


def test_status_codes():
    assert UnauthorizedError().http_status == 401
    assert DuplicateLaunchError("m").http_status == 400
    assert ConcurrencyError("busy").http_status == 409
    assert SwapAggregatorError("timeout", "quote").http_status == 502
    assert VanityNotFoundError("abc", 10).http_status == 422


def test_burn_after_swap_carries_buyback_details():
    body = BurnAfterSwapError("swapsig", 12345).to_response()
    assert body["error"] == "Burn failed (but buyback succeeded)"
    assert body["buyback_signature"] == "swapsig"
    assert body["tokens_received"] == "12345"


def test_market_data_error_hides_upstream_detail():
    err = MarketDataError("coingecko", "HTTP 429 body=...")
    assert err.to_response()["error"] == "Failed to fetch data"
    assert err.detail == "HTTP 429 body=..."


def test_invalid_address_message():
    assert InvalidAddressError("pool", "xyz").message == "Invalid pool address"
