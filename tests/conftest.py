"""Shared fixtures: deterministic accounts, an RFQ order and an in-memory node."""

from typing import Any, Dict, List, Optional

import pytest
from eth_abi import encode
from eth_account import Account
from eth_utils import keccak
from web3.exceptions import TransactionNotFound

from rfqm_relay.chain import ChainClient, ExchangeProxyRelay
from rfqm_relay.protocol import FillOrder, Signature, SignatureType

# Test wallets (DO NOT use in production)
MAKER_PRIVATE_KEY = "0x" + "11" * 32
TAKER_PRIVATE_KEY = "0x" + "22" * 32
WORKER_PRIVATE_KEY = "0x" + "33" * 32

MAKER_ADDRESS = Account.from_key(MAKER_PRIVATE_KEY).address
TAKER_ADDRESS = Account.from_key(TAKER_PRIVATE_KEY).address
WORKER_ADDRESS = Account.from_key(WORKER_PRIVATE_KEY).address

WETH_ADDRESS = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
USDC_ADDRESS = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"

ORDER_EXPIRY = 1_900_000_000
FIXED_SALT = 1_700_000_000_000_000_000


def make_order(**overrides: Any) -> FillOrder:
    fields: Dict[str, Any] = dict(
        maker_token=WETH_ADDRESS,
        taker_token=USDC_ADDRESS,
        maker_amount=10**18,
        taker_amount=2_000_000_000,
        maker=MAKER_ADDRESS,
        taker=TAKER_ADDRESS,
        pool=b"\x00" * 31 + b"\x01",
        expiry=ORDER_EXPIRY,
        tx_origin=WORKER_ADDRESS,
        salt=42,
    )
    fields.update(overrides)
    return FillOrder(**fields)


def make_signature(fill_byte: int = 0xAB) -> Signature:
    return Signature(
        signature_type=SignatureType.EIP712,
        v=27,
        r=bytes([fill_byte]) * 32,
        s=bytes([fill_byte ^ 0xFF]) * 32,
    )


def simulated_fill_return(taker_filled: int, maker_filled: int) -> bytes:
    """Raw return data of executeMetaTransaction wrapping a fillRfqOrder result."""
    inner = encode(["uint128", "uint128"], [taker_filled, maker_filled])
    return encode(["bytes"], [inner])


async def _value(value: Any) -> Any:
    return value


class FakeEth:
    """In-memory stand-in for ``AsyncWeb3.eth``."""

    def __init__(self) -> None:
        self.balances: Dict[str, int] = {}
        self.nonces: Dict[str, Dict[str, int]] = {"latest": {}, "pending": {}}
        self.block_height = 19_000_000
        self.current_gas_price = 30 * 10**9
        self.network_chain_id = 1
        self.gas_estimate = 100_000
        self.call_result = b""
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[Dict[str, Any]] = []
        self.sent: List[Dict[str, Any]] = []
        self.raw_sent: List[bytes] = []

    def _raise_if_configured(self, operation: str) -> None:
        if operation in self.errors:
            raise self.errors[operation]

    @property
    def block_number(self):
        self._raise_if_configured("block_number")
        return _value(self.block_height)

    @property
    def gas_price(self):
        return _value(self.current_gas_price)

    @property
    def chain_id(self):
        return _value(self.network_chain_id)

    async def get_transaction_count(self, address: str, block_identifier: str = "latest") -> int:
        self._raise_if_configured("get_transaction_count")
        return self.nonces.get(block_identifier, {}).get(address, 0)

    async def get_balance(self, address: str) -> int:
        self._raise_if_configured("get_balance")
        return self.balances.get(address, 0)

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        self._raise_if_configured("estimate_gas")
        self.calls.append(dict(tx))
        return self.gas_estimate

    async def call(self, tx: Dict[str, Any], block_identifier: Any = "latest") -> bytes:
        self.calls.append({**tx, "block_identifier": block_identifier})
        self._raise_if_configured("call")
        return self.call_result

    async def send_transaction(self, tx: Dict[str, Any]) -> bytes:
        self._raise_if_configured("send_transaction")
        self.sent.append(tx)
        return keccak(text=repr(sorted(tx.items())))

    async def send_raw_transaction(self, raw: bytes) -> bytes:
        self._raise_if_configured("send_raw_transaction")
        self.raw_sent.append(bytes(raw))
        return keccak(bytes(raw))

    async def get_transaction_receipt(self, transaction_hash: str) -> Dict[str, Any]:
        self._raise_if_configured("get_transaction_receipt")
        if transaction_hash not in self.receipts:
            raise TransactionNotFound(f"Transaction {transaction_hash} not found")
        return self.receipts[transaction_hash]


class FakeWeb3:
    def __init__(self, eth: Optional[FakeEth] = None) -> None:
        self.eth = eth or FakeEth()


@pytest.fixture
def order() -> FillOrder:
    return make_order()


@pytest.fixture
def maker_signature() -> Signature:
    return make_signature()


@pytest.fixture
def fake_eth() -> FakeEth:
    return FakeEth()


@pytest.fixture
def client(fake_eth: FakeEth) -> ChainClient:
    return ChainClient(FakeWeb3(fake_eth))


@pytest.fixture
def signing_client(fake_eth: FakeEth) -> ChainClient:
    return ChainClient(FakeWeb3(fake_eth), [Account.from_key(WORKER_PRIVATE_KEY)])


@pytest.fixture
def relay(client: ChainClient) -> ExchangeProxyRelay:
    return ExchangeProxyRelay(client, clock=lambda: FIXED_SALT)
