"""Solana Gateway — thin async wrapper over solana-py's AsyncClient.

Invariants:
    - Every RPC failure surfaces as RpcError (core/errors.py), never a raw client exception
    - An unparseable signature is a caller mistake: InvalidRequestError (400), not RpcError
    - Transactions are sent with preflight at Confirmed and awaited to Confirmed
    - A confirmed transaction whose status carries an err is treated as failed
    - Parsed transactions are returned in RPC JSON shape (dicts), not solders objects

Design Decisions:
    - Gateway owns the AsyncClient; lifespan closes it (ADR: one connection pool per process)
    - Token balances read straight from account data (amount u64 at offset 64):
      works for Token and Token-2022 accounts, returns 0 for missing accounts
"""

import base64
import json
import logging

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction
from spl.token.constants import TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID

from shipyard.core.domain_types import AccountSnapshot
from shipyard.core.errors import ErrorContext, InvalidRequestError, RpcError

logger = logging.getLogger(__name__)

TOKEN_ACCOUNT_AMOUNT_OFFSET = 64


class SolanaGateway:
    """Async Solana RPC access used by every chain-touching service."""

    def __init__(self, rpc_url: str, client: AsyncClient | None = None):
        self.rpc_url = rpc_url
        self._client = client or AsyncClient(rpc_url, commitment=Confirmed)

    async def close(self):
        await self._client.close()

    # ─── Reads ──────────────────────────────────────────────────

    async def get_balance(self, owner: Pubkey) -> int:
        try:
            resp = await self._client.get_balance(owner, commitment=Confirmed)
        except Exception as e:
            raise RpcError(str(e), "getBalance") from e
        return resp.value

    async def get_account(self, address: Pubkey) -> AccountSnapshot | None:
        try:
            resp = await self._client.get_account_info(address, encoding="base64")
        except Exception as e:
            raise RpcError(str(e), "getAccountInfo") from e
        if not resp.value:
            return None
        return AccountSnapshot(
            owner=str(resp.value.owner),
            lamports=resp.value.lamports,
            data=bytes(resp.value.data),
        )

    async def get_token_balance(self, token_account: Pubkey) -> int:
        """Raw token amount held by a token account; 0 when it does not exist."""
        account = await self.get_account(token_account)
        if account is None or len(account.data) < TOKEN_ACCOUNT_AMOUNT_OFFSET + 8:
            return 0
        raw = account.data[TOKEN_ACCOUNT_AMOUNT_OFFSET:TOKEN_ACCOUNT_AMOUNT_OFFSET + 8]
        return int.from_bytes(raw, "little")

    async def token_program_for_mint(self, mint: Pubkey) -> Pubkey:
        """Token or Token-2022, from the mint account's owner."""
        account = await self.get_account(mint)
        if account is None:
            raise RpcError(f"mint {mint} not found", "getAccountInfo",
                           ErrorContext(token_mint=str(mint)))
        owner = Pubkey.from_string(account.owner)
        if owner == TOKEN_2022_PROGRAM_ID:
            return TOKEN_2022_PROGRAM_ID
        if owner == TOKEN_PROGRAM_ID:
            return TOKEN_PROGRAM_ID
        raise RpcError(f"unknown token program {owner}", "getAccountInfo",
                       ErrorContext(token_mint=str(mint)))

    async def get_parsed_transaction(self, signature: str) -> dict | None:
        """jsonParsed transaction as a dict in RPC shape, or None if unknown."""
        try:
            sig = Signature.from_string(signature)
        except ValueError as e:
            raise InvalidRequestError(
                "Invalid transaction signature", field="signature",
                context=ErrorContext(signature=signature),
            ) from e
        try:
            resp = await self._client.get_transaction(
                sig,
                encoding="jsonParsed",
                commitment=Confirmed,
                max_supported_transaction_version=0,
            )
        except Exception as e:
            raise RpcError(str(e), "getTransaction") from e
        if resp.value is None:
            return None
        return json.loads(resp.to_json()).get("result")

    async def get_recent_signatures(self, address: Pubkey, limit: int = 20) -> list[dict]:
        try:
            resp = await self._client.get_signatures_for_address(
                address, limit=limit, commitment=Confirmed,
            )
        except Exception as e:
            raise RpcError(str(e), "getSignaturesForAddress") from e
        return [
            {
                "signature": str(s.signature),
                "block_time": s.block_time,
                "failed": s.err is not None,
            }
            for s in resp.value
        ]

    # ─── Writes ─────────────────────────────────────────────────

    async def _latest_blockhash(self):
        try:
            resp = await self._client.get_latest_blockhash(commitment=Confirmed)
        except Exception as e:
            raise RpcError(str(e), "getLatestBlockhash") from e
        return resp.value.blockhash

    async def _send_and_confirm(self, tx: VersionedTransaction, operation: str) -> str:
        try:
            resp = await self._client.send_transaction(
                tx, opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed),
            )
            signature = resp.value
            status = await self._client.confirm_transaction(
                signature, commitment=Confirmed, sleep_seconds=0.5,
            )
        except Exception as e:
            raise RpcError(str(e), operation) from e
        statuses = status.value or []
        if statuses and statuses[0] is not None and statuses[0].err is not None:
            raise RpcError(
                f"transaction failed: {statuses[0].err}", operation,
                ErrorContext(signature=str(signature)),
            )
        logger.info("Transaction confirmed", extra={"signature": str(signature)})
        return str(signature)

    async def send_instructions(
        self, instructions: list[Instruction], signers: list[Keypair],
    ) -> str:
        """Build, sign (first signer pays), send and confirm."""
        blockhash = await self._latest_blockhash()
        msg = Message.new_with_blockhash(instructions, signers[0].pubkey(), blockhash)
        try:
            tx = VersionedTransaction(msg, signers)
        except Exception as e:
            raise RpcError(f"could not sign transaction: {e}", "sendTransaction") from e
        return await self._send_and_confirm(tx, "sendTransaction")

    async def send_serialized(self, tx_base64: str, signer: Keypair) -> str:
        """Re-sign an aggregator-built versioned transaction and send it."""
        try:
            unsigned = VersionedTransaction.from_bytes(base64.b64decode(tx_base64))
        except Exception as e:
            raise RpcError(f"undecodable transaction: {e}", "sendTransaction") from e
        try:
            tx = VersionedTransaction(unsigned.message, [signer])
        except Exception as e:
            raise RpcError(f"could not sign transaction: {e}", "sendTransaction") from e
        return await self._send_and_confirm(tx, "sendTransaction")

    async def build_unsigned_transaction(
        self, instructions: list[Instruction], payer: Pubkey,
    ) -> str:
        """Legacy transaction for a client wallet to sign, base64-encoded."""
        blockhash = await self._latest_blockhash()
        msg = Message.new_with_blockhash(instructions, payer, blockhash)
        return base64.b64encode(bytes(Transaction.new_unsigned(msg))).decode("ascii")
