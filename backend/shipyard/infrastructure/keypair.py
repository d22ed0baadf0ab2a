"""Keypair Loading — decode the Shipyard wallet secret from settings.

Invariants:
    - Accepts a base58 64-byte secret key or a JSON byte array (solana-keygen format)
    - Never logs the secret; failures raise KeypairNotConfiguredError
"""

import json
import logging
from functools import lru_cache

import base58
from solders.keypair import Keypair

from shipyard.core.errors import KeypairNotConfiguredError

logger = logging.getLogger(__name__)


def decode_keypair(secret: str | None) -> Keypair:
    if not secret or not secret.strip():
        raise KeypairNotConfiguredError()
    value = secret.strip()
    try:
        if value.startswith("["):
            raw = bytes(json.loads(value))
        else:
            raw = base58.b58decode(value)
        return Keypair.from_bytes(raw)
    except (ValueError, TypeError) as e:
        logger.error("Shipyard private key could not be decoded")
        raise KeypairNotConfiguredError() from e


@lru_cache(maxsize=4)
def load_keypair(secret: str | None) -> Keypair:
    return decode_keypair(secret)
