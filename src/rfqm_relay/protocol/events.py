"""RfqOrderFilled event resolution.

Logs may come straight from a web3 receipt (``AttributeDict`` with
``HexBytes``) or from JSON-RPC as plain dicts with hex strings.
"""

from typing import Any, Iterable, Mapping, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address

from .errors import EventNotFound, MalformedCallData
from .types import FillConfirmedEvent
from .utils import to_raw_bytes

RFQ_ORDER_FILLED_EVENT_TOPIC = (
    "0x829fa99d94dc4636925b38632e625736a614c154d55006b7ab6bea979c210c32"
)

# All fields are non-indexed, in declaration order
RFQ_ORDER_FILLED_EVENT_TYPES = [
    "bytes32",  # orderHash
    "address",  # maker
    "address",  # taker
    "address",  # makerToken
    "address",  # takerToken
    "uint128",  # takerTokenFilledAmount
    "uint128",  # makerTokenFilledAmount
    "bytes32",  # pool
]

_TOPIC_BYTES = to_raw_bytes(RFQ_ORDER_FILLED_EVENT_TOPIC)


def is_fill_confirmed_log(log: Mapping[str, Any]) -> bool:
    """Return True if the log's first topic is the RfqOrderFilled topic."""
    topics = log.get("topics") or []
    if not topics:
        return False
    return to_raw_bytes(topics[0]) == _TOPIC_BYTES


def _optional_hex(value: Any) -> Optional[str]:
    if value is None:
        return None
    return "0x" + to_raw_bytes(value).hex()


def decode_fill_confirmed_log(log: Mapping[str, Any]) -> FillConfirmedEvent:
    """Decode the payload of an RfqOrderFilled log.

    Raises:
        MalformedCallData: If the log data does not match the event layout
    """
    try:
        fields = decode(RFQ_ORDER_FILLED_EVENT_TYPES, to_raw_bytes(log.get("data") or b""))
    except DecodingError as err:
        raise MalformedCallData(f"Cannot decode RfqOrderFilled log: {err}") from err

    (
        order_hash,
        maker,
        taker,
        maker_token,
        taker_token,
        taker_filled,
        maker_filled,
        pool,
    ) = fields
    return FillConfirmedEvent(
        order_hash=order_hash,
        maker=to_checksum_address(maker),
        taker=to_checksum_address(taker),
        maker_token=to_checksum_address(maker_token),
        taker_token=to_checksum_address(taker_token),
        taker_token_filled_amount=taker_filled,
        maker_token_filled_amount=maker_filled,
        pool=pool,
        transaction_hash=_optional_hex(log.get("transactionHash")),
        block_number=log.get("blockNumber"),
        log_index=log.get("logIndex"),
    )


def find_fill_confirmed_event(logs: Iterable[Mapping[str, Any]]) -> FillConfirmedEvent:
    """Return the first RfqOrderFilled event among ``logs``.

    Raises:
        EventNotFound: If no log carries the RfqOrderFilled topic
        MalformedCallData: If the matching log cannot be decoded
    """
    for log in logs:
        if is_fill_confirmed_log(log):
            return decode_fill_confirmed_log(log)
    raise EventNotFound("No RfqOrderFilled log among the logs provided")
