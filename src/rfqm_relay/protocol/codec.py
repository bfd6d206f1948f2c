"""Call-data codec for the exchange proxy.

Layouts are looked up in a static schema table keyed by ``CallKind``.
Anything that does not match a known selector is ``CallKind.UNRECOGNIZED``;
decoders reject it with ``MalformedCallData``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from .errors import MalformedCallData
from .types import FillOrder, FillResult, MetaTransaction, Signature, SignatureType
from .utils import NULL_ADDRESS

RFQ_ORDER_TUPLE = (
    "(address,address,uint128,uint128,address,address,address,bytes32,uint64,uint256)"
)
SIGNATURE_TUPLE = "(uint8,uint8,bytes32,bytes32)"
META_TRANSACTION_TUPLE = (
    "(address,address,uint256,uint256,uint256,uint256,bytes,uint256,address,uint256)"
)

SELECTOR_LENGTH = 4


class CallKind(str, Enum):
    """Exchange proxy operations the codec understands."""

    FILL_RFQ_ORDER = "fillRfqOrder"
    EXECUTE_META_TRANSACTION = "executeMetaTransaction"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class CallSchema:
    """Fixed ABI layout of one operation."""

    name: str
    input_types: Tuple[str, ...]
    output_types: Tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)


CALL_SCHEMAS: Dict[CallKind, CallSchema] = {
    CallKind.FILL_RFQ_ORDER: CallSchema(
        name="fillRfqOrder",
        input_types=(RFQ_ORDER_TUPLE, SIGNATURE_TUPLE, "uint128"),
        output_types=("uint128", "uint128"),
    ),
    CallKind.EXECUTE_META_TRANSACTION: CallSchema(
        name="executeMetaTransaction",
        input_types=(META_TRANSACTION_TUPLE, SIGNATURE_TUPLE),
        output_types=("bytes",),
    ),
}

_KIND_BY_SELECTOR: Dict[bytes, CallKind] = {
    schema.selector: kind for kind, schema in CALL_SCHEMAS.items()
}


def identify_call(data: bytes) -> CallKind:
    """Return the operation kind encoded in ``data``; never raises."""
    return _KIND_BY_SELECTOR.get(bytes(data[:SELECTOR_LENGTH]), CallKind.UNRECOGNIZED)


def _decode(types: Sequence[str], body: bytes, what: str) -> tuple:
    try:
        return decode(list(types), body)
    except DecodingError as err:
        raise MalformedCallData(f"Cannot decode {what}: {err}") from err


def _decode_inputs(kind: CallKind, data: bytes) -> tuple:
    data = bytes(data)
    found = identify_call(data)
    if found is not kind:
        raise MalformedCallData(
            f"Expected {kind.value} call data, got selector 0x{data[:SELECTOR_LENGTH].hex()}"
        )
    schema = CALL_SCHEMAS[kind]
    return _decode(schema.input_types, data[SELECTOR_LENGTH:], f"{kind.value} input")


def _signature_tuple(signature: Signature) -> tuple:
    return (int(signature.signature_type), signature.v, signature.r, signature.s)


def _signature_from_tuple(raw: tuple) -> Signature:
    signature_type, v, r, s = raw
    try:
        return Signature(signature_type=SignatureType(signature_type), v=v, r=r, s=s)
    except ValueError as err:
        raise MalformedCallData(f"Unknown signature type: {signature_type}") from err


# ── fillRfqOrder ─────────────────────────────────────────────────────


def encode_fill_call(order: FillOrder, signature: Signature, taker_amount: int) -> bytes:
    """Encode ``fillRfqOrder(order, signature, takerTokenFillAmount)``."""
    schema = CALL_SCHEMAS[CallKind.FILL_RFQ_ORDER]
    order_tuple = (
        order.maker_token,
        order.taker_token,
        order.maker_amount,
        order.taker_amount,
        order.maker,
        order.taker,
        order.tx_origin,
        order.pool,
        order.expiry,
        order.salt,
    )
    return schema.selector + encode(
        list(schema.input_types),
        [order_tuple, _signature_tuple(signature), taker_amount],
    )


def decode_fill_call(data: bytes) -> Tuple[FillOrder, Signature, int]:
    """Decode ``fillRfqOrder`` call data into (order, signature, taker amount).

    Raises:
        MalformedCallData: If the data is not a well-formed fillRfqOrder call
    """
    order_raw, signature_raw, taker_amount = _decode_inputs(CallKind.FILL_RFQ_ORDER, data)
    (
        maker_token,
        taker_token,
        maker_amount,
        order_taker_amount,
        maker,
        taker,
        tx_origin,
        pool,
        expiry,
        salt,
    ) = order_raw
    order = FillOrder(
        maker_token=to_checksum_address(maker_token),
        taker_token=to_checksum_address(taker_token),
        maker_amount=maker_amount,
        taker_amount=order_taker_amount,
        maker=to_checksum_address(maker),
        taker=to_checksum_address(taker),
        pool=pool,
        expiry=expiry,
        tx_origin=to_checksum_address(tx_origin),
        salt=salt,
    )
    return order, _signature_from_tuple(signature_raw), taker_amount


def decode_fill_return(data: bytes) -> FillResult:
    """Decode the (takerTokenFilledAmount, makerTokenFilledAmount) return."""
    schema = CALL_SCHEMAS[CallKind.FILL_RFQ_ORDER]
    taker_filled, maker_filled = _decode(
        schema.output_types, bytes(data), "fillRfqOrder return data"
    )
    return FillResult(taker_filled, maker_filled)


# ── executeMetaTransaction ───────────────────────────────────────────


def encode_delegated_call(meta_tx: MetaTransaction, signature: Signature) -> bytes:
    """Encode ``executeMetaTransaction(mtx, signature)``."""
    schema = CALL_SCHEMAS[CallKind.EXECUTE_META_TRANSACTION]
    mtx_tuple = (
        meta_tx.signer,
        meta_tx.sender,
        meta_tx.min_gas_price,
        meta_tx.max_gas_price,
        meta_tx.expiration_time_seconds,
        meta_tx.salt,
        meta_tx.call_data,
        meta_tx.value,
        meta_tx.fee_token,
        meta_tx.fee_amount,
    )
    return schema.selector + encode(
        list(schema.input_types), [mtx_tuple, _signature_tuple(signature)]
    )


def decode_delegated_call(
    data: bytes,
    chain_id: int = 0,
    verifying_contract: str = NULL_ADDRESS,
) -> Tuple[MetaTransaction, Signature]:
    """Decode ``executeMetaTransaction`` call data.

    The chain id and verifying contract belong to the EIP-712 domain, not to
    the ABI payload, so they are taken from the arguments.

    Raises:
        MalformedCallData: If the data is not a well-formed executeMetaTransaction call
    """
    mtx_raw, signature_raw = _decode_inputs(CallKind.EXECUTE_META_TRANSACTION, data)
    (
        signer,
        sender,
        min_gas_price,
        max_gas_price,
        expiration_time_seconds,
        salt,
        call_data,
        value,
        fee_token,
        fee_amount,
    ) = mtx_raw
    meta_tx = MetaTransaction(
        signer=to_checksum_address(signer),
        sender=to_checksum_address(sender),
        min_gas_price=min_gas_price,
        max_gas_price=max_gas_price,
        expiration_time_seconds=expiration_time_seconds,
        salt=salt,
        call_data=call_data,
        value=value,
        fee_token=to_checksum_address(fee_token),
        fee_amount=fee_amount,
        chain_id=chain_id,
        verifying_contract=to_checksum_address(verifying_contract),
    )
    return meta_tx, _signature_from_tuple(signature_raw)


def decode_delegated_return(data: bytes) -> bytes:
    """Unwrap the ``bytes`` returned by executeMetaTransaction."""
    schema = CALL_SCHEMAS[CallKind.EXECUTE_META_TRANSACTION]
    (inner,) = _decode(schema.output_types, bytes(data), "executeMetaTransaction return data")
    return inner


def extract_taker_amount(delegated_call_data: bytes) -> int:
    """Return the taker fill amount requested inside a delegated fill call."""
    meta_tx, _ = decode_delegated_call(delegated_call_data)
    _, _, taker_amount = decode_fill_call(meta_tx.call_data)
    return taker_amount
