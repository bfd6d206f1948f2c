"""Chain-facing modules for the RFQM relay."""

from .client import ChainClient
from .config import (
    RelayConfig,
    ResolvedRelayConfig,
    load_config_from_env,
    resolve_config,
)
from .readiness import is_worker_ready, minimum_worker_balance
from .relay import CallOptions, ExchangeProxyRelay, apply_gas_buffer

__all__ = [
    "ChainClient",
    "RelayConfig",
    "ResolvedRelayConfig",
    "load_config_from_env",
    "resolve_config",
    "is_worker_ready",
    "minimum_worker_balance",
    "CallOptions",
    "ExchangeProxyRelay",
    "apply_gas_buffer",
]
