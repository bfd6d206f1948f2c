"""Relay configuration.

Callers pass a partial ``RelayConfig`` dict; ``resolve_config`` applies the
defaults and validates the result into a ``ResolvedRelayConfig``.
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional, TypedDict

from dotenv import load_dotenv

from ..protocol.meta_transaction import validate_gas_price_bounds
from ..protocol.utils import EXCHANGE_PROXY_MAINNET, MAX_GAS_PRICE, MIN_GAS_PRICE, checksum

DEFAULT_GAS_ESTIMATE_BUFFER = Decimal("0.5")
DEFAULT_WORKER_GAS_USAGE = 400_000
DEFAULT_RPC_URL = "http://localhost:8545"


class RelayConfig(TypedDict, total=False):
    """Relay configuration."""

    exchange_proxy_address: str
    """Exchange proxy contract. Default: Ethereum mainnet proxy"""

    chain_id: int
    """Chain ID. Default: 1 (Ethereum mainnet)"""

    min_gas_price: int
    """Lowest gas price a meta-transaction allows (wei). Default: 0"""

    max_gas_price: int
    """Highest gas price a meta-transaction allows (wei). Default: 10K Gwei"""

    gas_estimate_buffer: Decimal
    """Fraction added on top of gas estimates. Default: 0.5 (50%)"""

    worker_gas_usage: int
    """Gas a worker is expected to spend per fill. Default: 400000"""

    worker_reserve_wei: int
    """Balance a worker must keep beyond the cost of a fill. Default: 0"""

    rpc_url: str
    """Execution-layer JSON-RPC endpoint."""

    request_timeout_s: float
    """JSON-RPC request timeout in seconds. Default: 10"""


@dataclass(frozen=True)
class ResolvedRelayConfig:
    """Relay configuration with all defaults applied."""

    exchange_proxy_address: str = EXCHANGE_PROXY_MAINNET
    chain_id: int = 1
    min_gas_price: int = MIN_GAS_PRICE
    max_gas_price: int = MAX_GAS_PRICE
    gas_estimate_buffer: Decimal = DEFAULT_GAS_ESTIMATE_BUFFER
    worker_gas_usage: int = DEFAULT_WORKER_GAS_USAGE
    worker_reserve_wei: int = 0
    rpc_url: str = DEFAULT_RPC_URL
    request_timeout_s: float = 10.0


def resolve_config(config: Optional[RelayConfig] = None) -> ResolvedRelayConfig:
    """Apply defaults to a partial config and validate it.

    Raises:
        ValueError: If an address, gas price bound or amount is invalid
    """
    config = config or {}
    defaults = ResolvedRelayConfig()

    min_gas_price = config.get("min_gas_price", defaults.min_gas_price)
    max_gas_price = config.get("max_gas_price", defaults.max_gas_price)
    validate_gas_price_bounds(min_gas_price, max_gas_price)

    buffer = Decimal(str(config.get("gas_estimate_buffer", defaults.gas_estimate_buffer)))
    if buffer < 0:
        raise ValueError(f"Invalid gas_estimate_buffer: {buffer}. Must be >= 0")

    worker_gas_usage = config.get("worker_gas_usage", defaults.worker_gas_usage)
    if worker_gas_usage <= 0:
        raise ValueError(f"Invalid worker_gas_usage: {worker_gas_usage}. Must be > 0")

    worker_reserve_wei = config.get("worker_reserve_wei", defaults.worker_reserve_wei)
    if worker_reserve_wei < 0:
        raise ValueError(f"Invalid worker_reserve_wei: {worker_reserve_wei}. Must be >= 0")

    return ResolvedRelayConfig(
        exchange_proxy_address=checksum(
            config.get("exchange_proxy_address", defaults.exchange_proxy_address),
            "exchange_proxy_address",
        ),
        chain_id=config.get("chain_id", defaults.chain_id),
        min_gas_price=min_gas_price,
        max_gas_price=max_gas_price,
        gas_estimate_buffer=buffer,
        worker_gas_usage=worker_gas_usage,
        worker_reserve_wei=worker_reserve_wei,
        rpc_url=config.get("rpc_url", defaults.rpc_url),
        request_timeout_s=config.get("request_timeout_s", defaults.request_timeout_s),
    )


_INT_KEYS = (
    "chain_id",
    "min_gas_price",
    "max_gas_price",
    "worker_gas_usage",
    "worker_reserve_wei",
)


def load_config_from_env(
    prefix: str = "RFQM_",
    environ: Optional[Mapping[str, str]] = None,
) -> ResolvedRelayConfig:
    """Build a config from environment variables (``RFQM_CHAIN_ID``, ...).

    A ``.env`` file is loaded first when reading the process environment.

    Raises:
        ValueError: If a variable does not parse or the result is invalid
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    config: RelayConfig = {}
    for key in RelayConfig.__annotations__:
        raw = environ.get(f"{prefix}{key.upper()}")
        if raw is None or raw == "":
            continue
        try:
            if key in _INT_KEYS:
                config[key] = int(raw, 0)
            elif key == "gas_estimate_buffer":
                config[key] = Decimal(raw)
            elif key == "request_timeout_s":
                config[key] = float(raw)
            else:
                config[key] = raw
        except (ValueError, InvalidOperation) as err:
            raise ValueError(f"Invalid {prefix}{key.upper()}: {raw}") from err

    return resolve_config(config)
