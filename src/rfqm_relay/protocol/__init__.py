"""RFQM Relay Protocol Module.

Pure, I/O-free building blocks for relaying RFQ fills through the exchange
proxy as meta-transactions.

Key components:
- Call-data codec for fillRfqOrder / executeMetaTransaction
- Meta-transaction building and EIP-712 signing
- RfqOrderFilled event resolution
- Worker key derivation

Example usage:
    ```python
    from rfqm_relay.protocol import (
        build_fill_meta_transaction,
        sign_meta_transaction,
        encode_delegated_call,
        EXCHANGE_PROXY_MAINNET,
    )

    meta_tx = build_fill_meta_transaction(
        order=order,
        signature=maker_signature,
        taker=taker_address,
        taker_amount=order.taker_amount,
        chain_id=1,
        verifying_contract=EXCHANGE_PROXY_MAINNET,
    )
    taker_signature = sign_meta_transaction(taker_private_key, meta_tx)
    call_data = encode_delegated_call(meta_tx, taker_signature)
    ```
"""

from .types import (
    ChainCallContext,
    FillConfirmedEvent,
    FillOrder,
    FillResult,
    MetaTransaction,
    Signature,
    SignatureType,
    META_TRANSACTION_TYPES,
)
from .errors import (
    CallReverted,
    ChainRequestError,
    ErrorKind,
    EstimationFailed,
    EventNotFound,
    InsufficientFill,
    InvalidIndex,
    MalformedCallData,
    RelayError,
    SubmissionFailed,
    ValidationFailed,
)
from .codec import (
    CALL_SCHEMAS,
    CallKind,
    CallSchema,
    decode_delegated_call,
    decode_delegated_return,
    decode_fill_call,
    decode_fill_return,
    encode_delegated_call,
    encode_fill_call,
    extract_taker_amount,
    identify_call,
)
from .meta_transaction import (
    build_fill_meta_transaction,
    create_eip712_domain,
    default_salt_clock,
    get_meta_transaction_hash,
    recover_meta_transaction_signer,
    sign_meta_transaction,
    validate_gas_price_bounds,
    SaltClock,
)
from .events import (
    RFQ_ORDER_FILLED_EVENT_TOPIC,
    decode_fill_confirmed_log,
    find_fill_confirmed_event,
    is_fill_confirmed_log,
)
from .keys import (
    derive_account,
    derive_address,
    derive_private_key,
    get_path_by_index,
)
from .utils import (
    EXCHANGE_PROXY_MAINNET,
    MAX_GAS_PRICE,
    MAX_UINT128,
    MIN_GAS_PRICE,
    NULL_ADDRESS,
    ZERO,
    format_gwei,
)

__all__ = [
    # Types
    "ChainCallContext",
    "FillConfirmedEvent",
    "FillOrder",
    "FillResult",
    "MetaTransaction",
    "Signature",
    "SignatureType",
    "META_TRANSACTION_TYPES",
    # Errors
    "CallReverted",
    "ChainRequestError",
    "ErrorKind",
    "EstimationFailed",
    "EventNotFound",
    "InsufficientFill",
    "InvalidIndex",
    "MalformedCallData",
    "RelayError",
    "SubmissionFailed",
    "ValidationFailed",
    # Codec
    "CALL_SCHEMAS",
    "CallKind",
    "CallSchema",
    "decode_delegated_call",
    "decode_delegated_return",
    "decode_fill_call",
    "decode_fill_return",
    "encode_delegated_call",
    "encode_fill_call",
    "extract_taker_amount",
    "identify_call",
    # Meta-transactions
    "build_fill_meta_transaction",
    "create_eip712_domain",
    "default_salt_clock",
    "get_meta_transaction_hash",
    "recover_meta_transaction_signer",
    "sign_meta_transaction",
    "validate_gas_price_bounds",
    "SaltClock",
    # Events
    "RFQ_ORDER_FILLED_EVENT_TOPIC",
    "decode_fill_confirmed_log",
    "find_fill_confirmed_event",
    "is_fill_confirmed_log",
    # Keys
    "derive_account",
    "derive_address",
    "derive_private_key",
    "get_path_by_index",
    # Utils
    "EXCHANGE_PROXY_MAINNET",
    "MAX_GAS_PRICE",
    "MAX_UINT128",
    "MIN_GAS_PRICE",
    "NULL_ADDRESS",
    "ZERO",
    "format_gwei",
]
