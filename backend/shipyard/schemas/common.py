"""Shared field validators for request schemas."""

from typing import Annotated

from pydantic import AfterValidator
from solders.pubkey import Pubkey


def _check_pubkey(value: str) -> str:
    value = value.strip()
    try:
        Pubkey.from_string(value)
    except ValueError as e:
        raise ValueError("must be a valid base58 Solana address") from e
    return value


PublicKeyStr = Annotated[str, AfterValidator(_check_pubkey)]
