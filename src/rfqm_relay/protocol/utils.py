"""Constants and small helpers shared by the protocol layer."""

from typing import Union

from eth_utils import is_address, to_bytes, to_checksum_address

# Null address (wildcard sender, no fee token)
NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

# 0x Exchange Proxy on Ethereum mainnet
EXCHANGE_PROXY_MAINNET = "0xDef1C0ded9bec7F1a1670819833240f027b25EfF"

ZERO = 0

# Allow a wide range for gas price; the ceiling is a sanity clamp, not a quote
MIN_GAS_PRICE = 0
MAX_GAS_PRICE = 10**13  # 10K Gwei

# uint128 upper bound for order and fill amounts
MAX_UINT128 = 2**128 - 1

HexLike = Union[str, bytes, bytearray]


def to_raw_bytes(value: HexLike) -> bytes:
    """Coerce a hex string or bytes-like value (HexBytes included) to bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def checksum(address: str, field: str = "address") -> str:
    """Validate and checksum an address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_address(address):
        raise ValueError(f"Invalid {field}: {address}")
    return to_checksum_address(address)


def format_gwei(amount_wei: int) -> str:
    """Format a wei amount as Gwei (e.g., 10**13 -> "10000")."""
    return f"{amount_wei / 1_000_000_000:.9f}".rstrip("0").rstrip(".")
