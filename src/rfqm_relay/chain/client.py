"""ChainClient: thin async facade over an execution-layer node.

Every node failure is re-raised as a ``ChainRequestError`` subclass carrying
the operation and the address or hash involved. Nothing is retried here; a
missing receipt (transaction not mined yet) is the only case reported as
``None`` instead of an error.

Usage::

    client = ChainClient.from_rpc_url(
        "https://eth.llamarpc.com",
        private_keys=[worker_private_key],
    )
    nonce = await client.get_nonce(worker_address)
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TransactionNotFound
from web3.providers import AsyncHTTPProvider
from web3.types import TxReceipt

from ..protocol.errors import (
    CallReverted,
    ChainRequestError,
    EstimationFailed,
    SubmissionFailed,
)
from ..protocol.types import ChainCallContext
from ..protocol.utils import to_raw_bytes

logger = structlog.get_logger("rfqm_relay.chain.client")

BlockIdentifier = Union[str, int]


def _revert_reason(err: ContractLogicError) -> str:
    return getattr(err, "message", None) or str(err)


class ChainClient:
    """Async access to balances, nonces, gas estimation, calls and submission.

    Holds only the ``AsyncWeb3`` handle and an immutable map of local worker
    accounts, so any number of callers may use one instance concurrently.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        accounts: Optional[Iterable[LocalAccount]] = None,
    ) -> None:
        self._w3 = w3
        self._accounts = {account.address.lower(): account for account in accounts or ()}

    @classmethod
    def from_rpc_url(
        cls,
        rpc_url: str,
        private_keys: Iterable[Union[str, bytes]] = (),
        request_timeout_s: float = 10.0,
    ) -> "ChainClient":
        """Connect to ``rpc_url``; transactions from ``private_keys`` are signed locally."""
        provider = AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout_s})
        accounts = [Account.from_key(key) for key in private_keys]
        return cls(AsyncWeb3(provider), accounts)

    @property
    def web3(self) -> AsyncWeb3:
        return self._w3

    # ── Lookups ──────────────────────────────────────────────────────

    async def get_nonce(self, address: str, block_identifier: BlockIdentifier = "latest") -> int:
        try:
            return await self._w3.eth.get_transaction_count(address, block_identifier)
        except Exception as exc:
            logger.warning("chain_client.get_nonce_failed", address=address, error=str(exc))
            raise ChainRequestError(
                f"Failed to get nonce for {address}: {exc}", "get_nonce", address
            ) from exc

    async def get_balance(self, address: str) -> int:
        try:
            return await self._w3.eth.get_balance(address)
        except Exception as exc:
            logger.warning("chain_client.get_balance_failed", address=address, error=str(exc))
            raise ChainRequestError(
                f"Failed to get balance for {address}: {exc}", "get_balance", address
            ) from exc

    async def get_block_height(self) -> int:
        try:
            return await self._w3.eth.block_number
        except Exception as exc:
            logger.warning("chain_client.get_block_height_failed", error=str(exc))
            raise ChainRequestError(
                f"Failed to get block height: {exc}", "get_block_height"
            ) from exc

    async def get_gas_price(self) -> int:
        try:
            return await self._w3.eth.gas_price
        except Exception as exc:
            logger.warning("chain_client.get_gas_price_failed", error=str(exc))
            raise ChainRequestError(f"Failed to get gas price: {exc}", "get_gas_price") from exc

    async def get_receipt(self, transaction_hash: str) -> Optional[TxReceipt]:
        """Return the receipt, or None if the transaction is not mined yet."""
        try:
            return await self._w3.eth.get_transaction_receipt(transaction_hash)
        except TransactionNotFound:
            return None
        except Exception as exc:
            logger.warning(
                "chain_client.get_receipt_failed",
                transaction_hash=transaction_hash,
                error=str(exc),
            )
            raise ChainRequestError(
                f"Failed to get receipt for {transaction_hash}: {exc}",
                "get_receipt",
                transaction_hash,
            ) from exc

    # ── Calls ────────────────────────────────────────────────────────

    async def estimate_gas(self, ctx: ChainCallContext) -> int:
        """Estimate gas for a call.

        Raises
        ------
        EstimationFailed
            If the node rejects the estimation (e.g. the call would revert).
        """
        try:
            return await self._w3.eth.estimate_gas(ctx.to_tx_params())
        except Exception as exc:
            logger.warning(
                "chain_client.estimate_gas_failed",
                to=ctx.to,
                caller=ctx.caller,
                error=str(exc),
            )
            raise EstimationFailed(
                f"Gas estimation failed for call from {ctx.caller}: {exc}",
                "estimate_gas",
                ctx.caller,
            ) from exc

    async def simulate_call(self, ctx: ChainCallContext) -> bytes:
        """Execute a read-only call and return the raw return data.

        Raises
        ------
        CallReverted
            If the call reverts; ``reason`` holds the revert reason.
        ChainRequestError
            If the node cannot be reached or rejects the request.
        """
        block_identifier = "latest" if ctx.block_identifier is None else ctx.block_identifier
        try:
            result = await self._w3.eth.call(ctx.to_tx_params(), block_identifier)
        except ContractLogicError as exc:
            reason = _revert_reason(exc)
            logger.info(
                "chain_client.call_reverted",
                to=ctx.to,
                caller=ctx.caller,
                reason=reason,
            )
            raise CallReverted(
                f"Call from {ctx.caller} reverted: {reason}",
                "simulate_call",
                ctx.caller,
                reason=reason,
            ) from exc
        except Exception as exc:
            logger.warning(
                "chain_client.call_failed",
                to=ctx.to,
                caller=ctx.caller,
                error=str(exc),
            )
            raise ChainRequestError(
                f"Call from {ctx.caller} failed: {exc}", "simulate_call", ctx.caller
            ) from exc
        return to_raw_bytes(result)

    async def submit_transaction(
        self,
        ctx: ChainCallContext,
        gas_limit: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> str:
        """Submit a transaction from ``ctx.caller`` and return its hash.

        Transactions from a registered local account are signed here and
        sent raw, with a missing nonce, gas limit or gas price taken from
        the node; anything else goes through ``eth_sendTransaction``.
        Not idempotent: never call twice for the same fill.

        Raises
        ------
        SubmissionFailed
            If the node rejects the transaction.
        """
        tx: dict[str, Any] = ctx.to_tx_params()
        if gas_limit is not None:
            tx["gas"] = gas_limit
        if gas_price is not None:
            tx["gasPrice"] = gas_price

        account = self._accounts.get(ctx.caller.lower())
        try:
            if account is None:
                tx_hash = await self._w3.eth.send_transaction(tx)
            else:
                tx["from"] = account.address
                if "nonce" not in tx:
                    tx["nonce"] = await self._w3.eth.get_transaction_count(
                        account.address, "pending"
                    )
                if "gas" not in tx:
                    tx["gas"] = await self._w3.eth.estimate_gas(tx)
                if "gasPrice" not in tx:
                    tx["gasPrice"] = await self._w3.eth.gas_price
                tx["chainId"] = await self._w3.eth.chain_id
                signed = account.sign_transaction(tx)
                tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            logger.error(
                "chain_client.submission_failed",
                caller=ctx.caller,
                nonce=tx.get("nonce"),
                error=str(exc),
            )
            raise SubmissionFailed(
                f"Transaction from {ctx.caller} rejected: {exc}",
                "submit_transaction",
                ctx.caller,
            ) from exc

        tx_hash_hex = AsyncWeb3.to_hex(tx_hash)
        logger.info(
            "chain_client.tx_submitted",
            caller=ctx.caller,
            tx_hash=tx_hash_hex,
            gas=tx.get("gas"),
            gas_price=tx.get("gasPrice"),
            nonce=tx.get("nonce"),
        )
        return tx_hash_hex
