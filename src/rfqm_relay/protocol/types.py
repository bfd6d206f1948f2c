"""Protocol value types for RFQ fills and meta-transactions.

All types are immutable. Amounts are integers in token base units, gas
prices are in wei and timestamps are unix seconds.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, NamedTuple, Optional, Union

from .utils import NULL_ADDRESS


class SignatureType(IntEnum):
    """Signature types understood by the exchange proxy."""

    ILLEGAL = 0
    INVALID = 1
    EIP712 = 2
    ETHSIGN = 3
    PRESIGNED = 4


@dataclass(frozen=True)
class Signature:
    """Exchange proxy signature (type, v, r, s)."""

    signature_type: SignatureType
    """How the signature was produced."""

    v: int
    """Recovery id (27 or 28)."""

    r: bytes
    """32-byte r component."""

    s: bytes
    """32-byte s component."""

    def to_bytes(self) -> bytes:
        """Pack as 66 bytes: type, v, r, s."""
        return bytes([int(self.signature_type), self.v]) + self.r + self.s

    @classmethod
    def from_bytes(cls, packed: bytes) -> "Signature":
        """Parse the 66-byte packed form produced by ``to_bytes``.

        Raises:
            ValueError: If the payload is not 66 bytes or the type is unknown
        """
        if len(packed) != 66:
            raise ValueError(f"Invalid signature length: {len(packed)}. Expected 66")
        return cls(
            signature_type=SignatureType(packed[0]),
            v=packed[1],
            r=bytes(packed[2:34]),
            s=bytes(packed[34:66]),
        )


@dataclass(frozen=True)
class FillOrder:
    """An RFQ order as accepted by ``fillRfqOrder``."""

    maker_token: str
    """Token the maker gives."""

    taker_token: str
    """Token the taker gives."""

    maker_amount: int
    """Maker token amount (uint128)."""

    taker_amount: int
    """Taker token amount (uint128)."""

    maker: str
    """Maker address."""

    taker: str
    """Taker address (null address for any taker)."""

    pool: bytes
    """32-byte liquidity pool identifier."""

    expiry: int
    """Unix timestamp after which the order can no longer be filled."""

    tx_origin: str = NULL_ADDRESS
    """Address allowed as ``tx.origin`` when filling."""

    salt: int = 0
    """Order salt."""


@dataclass(frozen=True)
class MetaTransaction:
    """Delegated-execution envelope for ``executeMetaTransaction``."""

    signer: str
    sender: str
    min_gas_price: int
    max_gas_price: int
    expiration_time_seconds: int
    salt: int
    call_data: bytes
    value: int
    fee_token: str
    fee_amount: int
    chain_id: int
    verifying_contract: str


class FillResult(NamedTuple):
    """Amounts returned by ``fillRfqOrder``."""

    taker_token_filled_amount: int
    maker_token_filled_amount: int


@dataclass(frozen=True)
class FillConfirmedEvent:
    """A decoded ``RfqOrderFilled`` log."""

    order_hash: bytes
    maker: str
    taker: str
    maker_token: str
    taker_token: str
    taker_token_filled_amount: int
    maker_token_filled_amount: int
    pool: bytes
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    log_index: Optional[int] = None


@dataclass(frozen=True)
class ChainCallContext:
    """Per-call bundle for a contract call against the node."""

    to: str
    data: bytes
    caller: str
    gas_price: Optional[int] = None
    gas: Optional[int] = None
    value: Optional[int] = None
    nonce: Optional[int] = None
    block_identifier: Union[str, int, None] = None

    def to_tx_params(self) -> Dict[str, Any]:
        """Build web3 transaction params, omitting unset overrides."""
        params: Dict[str, Any] = {
            "to": self.to,
            "from": self.caller,
            "data": "0x" + self.data.hex(),
        }
        if self.gas_price is not None:
            params["gasPrice"] = self.gas_price
        if self.gas is not None:
            params["gas"] = self.gas
        if self.value is not None:
            params["value"] = self.value
        if self.nonce is not None:
            params["nonce"] = self.nonce
        return params


# EIP-712 types for meta-transactions
META_TRANSACTION_TYPES = {
    "MetaTransactionData": [
        {"name": "signer", "type": "address"},
        {"name": "sender", "type": "address"},
        {"name": "minGasPrice", "type": "uint256"},
        {"name": "maxGasPrice", "type": "uint256"},
        {"name": "expirationTimeSeconds", "type": "uint256"},
        {"name": "salt", "type": "uint256"},
        {"name": "callData", "type": "bytes"},
        {"name": "value", "type": "uint256"},
        {"name": "feeToken", "type": "address"},
        {"name": "feeAmount", "type": "uint256"},
    ],
}
