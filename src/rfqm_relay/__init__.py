"""RFQM Relay.

Relays RFQ fills to the 0x exchange proxy as meta-transactions submitted by
worker accounts.
"""

from .chain import (
    CallOptions,
    ChainClient,
    ExchangeProxyRelay,
    RelayConfig,
    ResolvedRelayConfig,
    is_worker_ready,
    load_config_from_env,
    resolve_config,
)
from .protocol import (
    FillConfirmedEvent,
    FillOrder,
    FillResult,
    MetaTransaction,
    Signature,
    SignatureType,
    RelayError,
    build_fill_meta_transaction,
    derive_address,
    derive_private_key,
    find_fill_confirmed_event,
    sign_meta_transaction,
)

__version__ = "0.1.0"

__all__ = [
    "CallOptions",
    "ChainClient",
    "ExchangeProxyRelay",
    "RelayConfig",
    "ResolvedRelayConfig",
    "is_worker_ready",
    "load_config_from_env",
    "resolve_config",
    "FillConfirmedEvent",
    "FillOrder",
    "FillResult",
    "MetaTransaction",
    "Signature",
    "SignatureType",
    "RelayError",
    "build_fill_meta_transaction",
    "derive_address",
    "derive_private_key",
    "find_fill_confirmed_event",
    "sign_meta_transaction",
]
