"""Exchange proxy relay: meta-transaction submission and validation.

The relay never decides which order to fill and never retries. Each method
is one step of a fill attempt driven by an external orchestrator:

1. ``generate_meta_transaction`` wraps the taker's fill
2. the taker signs it (``sign_meta_transaction``)
3. ``validate_meta_transaction`` simulates it and checks the fill amount
4. ``estimate_gas_for_call`` sizes the gas limit
5. ``submit_call_data`` sends it from a worker
6. ``get_fill_event_from_logs`` decodes the fill from the receipt logs
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, TypedDict, Union

import structlog
from web3.types import TxReceipt

from ..protocol.codec import (
    decode_delegated_call,
    decode_delegated_return,
    decode_fill_call,
    decode_fill_return,
    encode_delegated_call,
    extract_taker_amount,
)
from ..protocol.errors import ChainRequestError, InsufficientFill, ValidationFailed
from ..protocol.events import find_fill_confirmed_event
from ..protocol.meta_transaction import SaltClock, build_fill_meta_transaction
from ..protocol.types import (
    ChainCallContext,
    FillConfirmedEvent,
    FillOrder,
    FillResult,
    MetaTransaction,
    Signature,
)
from .client import ChainClient
from .config import RelayConfig, ResolvedRelayConfig, resolve_config
from .readiness import is_worker_ready, minimum_worker_balance

logger = structlog.get_logger("rfqm_relay.chain.relay")


class CallOptions(TypedDict, total=False):
    """Overrides for simulated calls and submitted transactions."""

    gas_price: int
    gas: int
    value: int
    nonce: int
    block_identifier: Union[str, int]


def apply_gas_buffer(gas_estimate: int, buffer: Decimal) -> int:
    """Return ``ceil(gas_estimate * (1 + buffer))`` using exact decimal math."""
    return math.ceil(Decimal(gas_estimate) * (1 + buffer))


class ExchangeProxyRelay:
    """Submits and validates meta-transactions against the exchange proxy.

    Example:
        ```python
        relay = ExchangeProxyRelay(
            ChainClient.from_rpc_url(rpc_url, private_keys=[worker_key]),
            {"chain_id": 1},
        )

        meta_tx = relay.generate_meta_transaction(order, maker_sig, taker, amount)
        taker_sig = sign_meta_transaction(taker_key, meta_tx)

        await relay.validate_meta_transaction(meta_tx, taker_sig, worker_address)
        call_data = relay.generate_meta_transaction_call_data(meta_tx, taker_sig)
        gas = await relay.estimate_gas_for_call(call_data, worker_address)
        tx_hash = await relay.submit_call_data(
            call_data, worker_address, {"gas": gas, "gas_price": gas_price}
        )
        ```
    """

    def __init__(
        self,
        client: ChainClient,
        config: Union[RelayConfig, ResolvedRelayConfig, None] = None,
        clock: Optional[SaltClock] = None,
    ) -> None:
        """Initialize the relay.

        Args:
            client: Chain client used for every node interaction
            config: Partial or resolved relay configuration
            clock: Salt source for generated meta-transactions
        """
        self._client = client
        if isinstance(config, ResolvedRelayConfig):
            self._config = config
        else:
            self._config = resolve_config(config)
        self._clock = clock

    @property
    def config(self) -> ResolvedRelayConfig:
        return self._config

    @property
    def exchange_proxy_address(self) -> str:
        return self._config.exchange_proxy_address

    # ── Building ─────────────────────────────────────────────────────

    def generate_meta_transaction(
        self,
        order: FillOrder,
        signature: Signature,
        taker: str,
        taker_amount: int,
        chain_id: Optional[int] = None,
    ) -> MetaTransaction:
        """Wrap a fill of ``order`` for submission on behalf of ``taker``."""
        return build_fill_meta_transaction(
            order,
            signature,
            taker,
            taker_amount,
            self._config.chain_id if chain_id is None else chain_id,
            self._config.exchange_proxy_address,
            min_gas_price=self._config.min_gas_price,
            max_gas_price=self._config.max_gas_price,
            clock=self._clock,
        )

    def generate_meta_transaction_call_data(
        self, meta_tx: MetaTransaction, signature: Signature
    ) -> bytes:
        return encode_delegated_call(meta_tx, signature)

    def get_requested_taker_amount(self, call_data: bytes) -> int:
        """Taker amount requested by an executeMetaTransaction(fillRfqOrder) call."""
        return extract_taker_amount(call_data)

    # ── Validation ───────────────────────────────────────────────────

    async def validate_meta_transaction(
        self,
        meta_tx: MetaTransaction,
        signature: Signature,
        sender: str,
        call_options: Optional[CallOptions] = None,
    ) -> FillResult:
        """Simulate a meta-transaction and check it fills the requested amount.

        Args:
            meta_tx: Meta-transaction wrapping a fillRfqOrder call
            signature: Taker's signature over ``meta_tx``
            sender: Address the simulation is run from (the worker)
            call_options: Optional gas price / block overrides

        Returns:
            FillResult of (taker token filled, maker token filled)

        Raises:
            InsufficientFill: If less than the requested taker amount would fill
            ValidationFailed: If the chain call fails or reverts
            MalformedCallData: If the call or return data cannot be decoded
        """
        options = call_options or {}
        ctx = ChainCallContext(
            to=self._config.exchange_proxy_address,
            data=encode_delegated_call(meta_tx, signature),
            caller=sender,
            gas_price=options.get("gas_price"),
            gas=options.get("gas"),
            value=options.get("value"),
            block_identifier=options.get("block_identifier"),
        )
        try:
            raw = await self._client.simulate_call(ctx)
        except ChainRequestError as exc:
            logger.warning(
                "relay.validation_failed",
                signer=meta_tx.signer,
                sender=sender,
                operation=exc.operation,
                error=str(exc),
            )
            raise ValidationFailed(
                f"Meta-transaction from {meta_tx.signer} failed validation: {exc}"
            ) from exc

        result = decode_fill_return(decode_delegated_return(raw))
        _, _, requested = decode_fill_call(meta_tx.call_data)
        if result.taker_token_filled_amount < requested:
            logger.error(
                "relay.insufficient_fill",
                signer=meta_tx.signer,
                requested=requested,
                filled=result.taker_token_filled_amount,
            )
            raise InsufficientFill(requested=requested, filled=result.taker_token_filled_amount)

        logger.debug(
            "relay.validated",
            signer=meta_tx.signer,
            taker_token_filled_amount=result.taker_token_filled_amount,
            maker_token_filled_amount=result.maker_token_filled_amount,
        )
        return result

    async def decode_and_validate_call_data(
        self,
        call_data: bytes,
        sender: str,
        call_options: Optional[CallOptions] = None,
    ) -> FillResult:
        """Validate executeMetaTransaction call data as ``validate_meta_transaction`` does."""
        meta_tx, signature = decode_delegated_call(
            call_data,
            chain_id=self._config.chain_id,
            verifying_contract=self._config.exchange_proxy_address,
        )
        return await self.validate_meta_transaction(meta_tx, signature, sender, call_options)

    # ── Gas & submission ─────────────────────────────────────────────

    async def estimate_gas_for_call(self, call_data: bytes, worker_address: str) -> int:
        """Estimate gas for a call to the exchange proxy, plus the safety buffer.

        Raises:
            EstimationFailed: If the node cannot estimate the call
        """
        ctx = ChainCallContext(
            to=self._config.exchange_proxy_address,
            data=call_data,
            caller=worker_address,
        )
        gas_estimate = await self._client.estimate_gas(ctx)
        return apply_gas_buffer(gas_estimate, self._config.gas_estimate_buffer)

    async def submit_call_data(
        self,
        call_data: bytes,
        worker_address: str,
        options: Optional[CallOptions] = None,
    ) -> str:
        """Send call data to the exchange proxy from ``worker_address``.

        No validation happens here; call ``validate_meta_transaction`` first.

        Raises:
            SubmissionFailed: If the node rejects the transaction
        """
        options = options or {}
        ctx = ChainCallContext(
            to=self._config.exchange_proxy_address,
            data=call_data,
            caller=worker_address,
            value=options.get("value"),
            nonce=options.get("nonce"),
        )
        return await self._client.submit_transaction(
            ctx,
            gas_limit=options.get("gas"),
            gas_price=options.get("gas_price"),
        )

    # ── Chain state ──────────────────────────────────────────────────

    async def get_nonce(self, worker_address: str) -> int:
        return await self._client.get_nonce(worker_address)

    async def get_current_block(self) -> int:
        return await self._client.get_block_height()

    async def get_account_balance(self, account_address: str) -> int:
        return await self._client.get_balance(account_address)

    async def get_receipt_if_exists(self, transaction_hash: str) -> Optional[TxReceipt]:
        return await self._client.get_receipt(transaction_hash)

    def get_fill_event_from_logs(
        self, logs: Iterable[Mapping[str, Any]]
    ) -> FillConfirmedEvent:
        return find_fill_confirmed_event(logs)

    async def is_worker_ready_and_able(
        self,
        worker_address: str,
        balance: int,
        gas_price: int,
        gas_usage: Optional[int] = None,
    ) -> bool:
        """Check a worker can pay for a fill and has nothing in flight.

        Args:
            worker_address: Worker to check
            balance: Worker balance in wei, fetched by the caller
            gas_price: Gas price the fill will be submitted at (wei)
            gas_usage: Expected gas usage (default: configured worker_gas_usage)
        """
        gas_usage = self._config.worker_gas_usage if gas_usage is None else gas_usage
        reserve = self._config.worker_reserve_wei
        if not is_worker_ready(balance, gas_price, gas_usage, reserve):
            logger.error(
                "relay.worker_insufficient_balance",
                worker=worker_address,
                balance=balance,
                required=minimum_worker_balance(gas_price, gas_usage, reserve),
            )
            return False

        latest_nonce = await self._client.get_nonce(worker_address, "latest")
        pending_nonce = await self._client.get_nonce(worker_address, "pending")
        if latest_nonce != pending_nonce:
            logger.error(
                "relay.worker_has_pending_transactions",
                worker=worker_address,
                latest_nonce=latest_nonce,
                pending_nonce=pending_nonce,
            )
            return False

        return True
