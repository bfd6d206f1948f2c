"""Tests for the ChainClient facade."""

import pytest
from eth_account import Account
from eth_utils import keccak
from web3.exceptions import ContractLogicError

from rfqm_relay.chain import ChainClient
from rfqm_relay.protocol import (
    CallReverted,
    ChainCallContext,
    ChainRequestError,
    ErrorKind,
    EstimationFailed,
    SubmissionFailed,
)

from conftest import TAKER_ADDRESS, WORKER_ADDRESS, WORKER_PRIVATE_KEY

EXCHANGE_PROXY = "0xDef1C0ded9bec7F1a1670819833240f027b25EfF"


def make_ctx(**overrides) -> ChainCallContext:
    fields = dict(to=EXCHANGE_PROXY, data=b"\xaa\x77\x47\x6c" + b"\x00" * 32, caller=WORKER_ADDRESS)
    fields.update(overrides)
    return ChainCallContext(**fields)


class TestChainCallContext:
    """Tests for tx params built from a call context."""

    def test_minimal(self):
        params = make_ctx().to_tx_params()

        assert params == {
            "to": EXCHANGE_PROXY,
            "from": WORKER_ADDRESS,
            "data": "0xaa77476c" + "00" * 32,
        }

    def test_overrides(self):
        params = make_ctx(gas_price=5, gas=21_000, value=0, nonce=3).to_tx_params()

        assert params["gasPrice"] == 5
        assert params["gas"] == 21_000
        assert params["value"] == 0
        assert params["nonce"] == 3


class TestLookups:
    """Tests for balance, nonce, block and receipt lookups."""

    @pytest.mark.asyncio
    async def test_get_balance(self, client, fake_eth):
        fake_eth.balances[WORKER_ADDRESS] = 5 * 10**18
        assert await client.get_balance(WORKER_ADDRESS) == 5 * 10**18

    @pytest.mark.asyncio
    async def test_get_nonce(self, client, fake_eth):
        fake_eth.nonces["latest"][WORKER_ADDRESS] = 7
        fake_eth.nonces["pending"][WORKER_ADDRESS] = 9

        assert await client.get_nonce(WORKER_ADDRESS) == 7
        assert await client.get_nonce(WORKER_ADDRESS, "pending") == 9

    @pytest.mark.asyncio
    async def test_get_block_height(self, client, fake_eth):
        assert await client.get_block_height() == fake_eth.block_height

    @pytest.mark.asyncio
    async def test_get_gas_price(self, client, fake_eth):
        assert await client.get_gas_price() == fake_eth.current_gas_price

    @pytest.mark.asyncio
    async def test_lookup_failure_is_wrapped(self, client, fake_eth):
        """Node failures carry the operation and address."""
        fake_eth.errors["get_balance"] = TimeoutError("read timeout")

        with pytest.raises(ChainRequestError) as exc_info:
            await client.get_balance(WORKER_ADDRESS)

        assert exc_info.value.operation == "get_balance"
        assert exc_info.value.subject == WORKER_ADDRESS
        assert exc_info.value.kind is ErrorKind.CHAIN_REQUEST
        assert isinstance(exc_info.value.__cause__, TimeoutError)

    @pytest.mark.asyncio
    async def test_block_height_failure_is_wrapped(self, client, fake_eth):
        fake_eth.errors["block_number"] = ConnectionError("refused")

        with pytest.raises(ChainRequestError, match="block height"):
            await client.get_block_height()

    @pytest.mark.asyncio
    async def test_receipt_found(self, client, fake_eth):
        fake_eth.receipts["0x01"] = {"status": 1, "logs": []}
        assert await client.get_receipt("0x01") == {"status": 1, "logs": []}

    @pytest.mark.asyncio
    async def test_receipt_not_mined(self, client):
        """A transaction that is not mined yet gives None, not an error."""
        assert await client.get_receipt("0x02") is None

    @pytest.mark.asyncio
    async def test_receipt_failure_is_not_absence(self, client, fake_eth):
        """Node failures during receipt lookup are raised."""
        fake_eth.errors["get_transaction_receipt"] = ConnectionError("refused")

        with pytest.raises(ChainRequestError) as exc_info:
            await client.get_receipt("0x03")

        assert exc_info.value.subject == "0x03"


class TestCalls:
    """Tests for gas estimation and simulation."""

    @pytest.mark.asyncio
    async def test_estimate_gas(self, client, fake_eth):
        fake_eth.gas_estimate = 123_456

        assert await client.estimate_gas(make_ctx()) == 123_456
        assert fake_eth.calls[-1]["from"] == WORKER_ADDRESS
        assert fake_eth.calls[-1]["to"] == EXCHANGE_PROXY

    @pytest.mark.asyncio
    async def test_estimate_gas_failure(self, client, fake_eth):
        fake_eth.errors["estimate_gas"] = ContractLogicError("execution reverted")

        with pytest.raises(EstimationFailed) as exc_info:
            await client.estimate_gas(make_ctx())

        assert exc_info.value.kind is ErrorKind.ESTIMATION_FAILED
        assert exc_info.value.operation == "estimate_gas"

    @pytest.mark.asyncio
    async def test_simulate_call(self, client, fake_eth):
        fake_eth.call_result = b"\x01\x02"

        result = await client.simulate_call(make_ctx(gas_price=10, block_identifier=100))

        assert result == b"\x01\x02"
        assert fake_eth.calls[-1]["gasPrice"] == 10
        assert fake_eth.calls[-1]["block_identifier"] == 100

    @pytest.mark.asyncio
    async def test_simulate_call_defaults_to_latest(self, client, fake_eth):
        fake_eth.call_result = b""
        await client.simulate_call(make_ctx())
        assert fake_eth.calls[-1]["block_identifier"] == "latest"

    @pytest.mark.asyncio
    async def test_simulate_call_at_genesis(self, client, fake_eth):
        """Block 0 is passed through rather than treated as unset."""
        await client.simulate_call(make_ctx(block_identifier=0))
        assert fake_eth.calls[-1]["block_identifier"] == 0

    @pytest.mark.asyncio
    async def test_simulate_call_reverted(self, client, fake_eth):
        """Reverts carry their reason."""
        fake_eth.errors["call"] = ContractLogicError("execution reverted: order expired")

        with pytest.raises(CallReverted) as exc_info:
            await client.simulate_call(make_ctx())

        assert exc_info.value.reason == "execution reverted: order expired"
        assert exc_info.value.kind is ErrorKind.CALL_REVERTED

    @pytest.mark.asyncio
    async def test_simulate_call_node_failure(self, client, fake_eth):
        """Non-revert failures are reported as plain request errors."""
        fake_eth.errors["call"] = ConnectionError("refused")

        with pytest.raises(ChainRequestError) as exc_info:
            await client.simulate_call(make_ctx())

        assert not isinstance(exc_info.value, CallReverted)


class TestSubmitTransaction:
    """Tests for transaction submission."""

    @pytest.mark.asyncio
    async def test_node_managed_account(self, client, fake_eth):
        """Unknown callers go through eth_sendTransaction."""
        tx_hash = await client.submit_transaction(
            make_ctx(caller=TAKER_ADDRESS), gas_limit=150_000, gas_price=10**9
        )

        assert tx_hash.startswith("0x") and len(tx_hash) == 66
        sent = fake_eth.sent[-1]
        assert sent["from"] == TAKER_ADDRESS
        assert sent["gas"] == 150_000
        assert sent["gasPrice"] == 10**9
        assert fake_eth.raw_sent == []

    @pytest.mark.asyncio
    async def test_local_account_signs(self, signing_client, fake_eth):
        """Registered worker keys sign locally and send raw."""
        fake_eth.nonces["pending"][WORKER_ADDRESS] = 4

        tx_hash = await signing_client.submit_transaction(
            make_ctx(), gas_limit=150_000, gas_price=10**9
        )

        assert fake_eth.sent == []
        raw = fake_eth.raw_sent[-1]
        assert tx_hash == "0x" + keccak(raw).hex()
        assert Account.recover_transaction(raw) == WORKER_ADDRESS

    @pytest.mark.asyncio
    async def test_local_account_fills_gas_from_node(self, signing_client, fake_eth):
        """Missing gas limit and gas price are taken from the node before signing."""
        fake_eth.gas_estimate = 123_456

        tx_hash = await signing_client.submit_transaction(make_ctx())

        raw = fake_eth.raw_sent[-1]
        assert tx_hash == "0x" + keccak(raw).hex()
        assert Account.recover_transaction(raw) == WORKER_ADDRESS
        estimated = fake_eth.calls[-1]
        assert "gas" not in estimated
        assert estimated["from"] == WORKER_ADDRESS

    @pytest.mark.asyncio
    async def test_local_account_keeps_given_gas(self, signing_client, fake_eth):
        """Explicit gas arguments skip the node lookups."""
        await signing_client.submit_transaction(make_ctx(), gas_limit=21_000, gas_price=1)

        assert fake_eth.calls == []
        assert len(fake_eth.raw_sent) == 1

    @pytest.mark.asyncio
    async def test_local_account_lowercase_caller(self, signing_client, fake_eth):
        """Caller lookup is case-insensitive."""
        await signing_client.submit_transaction(
            make_ctx(caller=WORKER_ADDRESS.lower()), gas_limit=21_000, gas_price=1
        )
        assert len(fake_eth.raw_sent) == 1

    @pytest.mark.asyncio
    async def test_rejected(self, client, fake_eth):
        fake_eth.errors["send_transaction"] = ValueError("nonce too low")

        with pytest.raises(SubmissionFailed, match="nonce too low") as exc_info:
            await client.submit_transaction(make_ctx(), gas_limit=21_000, gas_price=1)

        assert exc_info.value.kind is ErrorKind.SUBMISSION_FAILED
        assert exc_info.value.subject == WORKER_ADDRESS

    @pytest.mark.asyncio
    async def test_rejected_is_not_retried(self, signing_client, fake_eth):
        fake_eth.errors["send_raw_transaction"] = ValueError("insufficient funds")

        with pytest.raises(SubmissionFailed):
            await signing_client.submit_transaction(make_ctx(), gas_limit=21_000, gas_price=1)

        assert fake_eth.raw_sent == []

    def test_from_rpc_url(self):
        client = ChainClient.from_rpc_url(
            "http://localhost:8545", private_keys=[WORKER_PRIVATE_KEY]
        )
        assert client.web3 is not None
