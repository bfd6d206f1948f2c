"""Worker readiness policy."""


def minimum_worker_balance(gas_price: int, gas_usage: int, reserve: int = 0) -> int:
    """Balance (wei) a worker needs to pay for ``gas_usage`` at ``gas_price``."""
    return gas_price * gas_usage + reserve


def is_worker_ready(balance: int, gas_price: int, gas_usage: int, reserve: int = 0) -> bool:
    """Return True if ``balance`` covers one submission plus the reserve.

    Pure: the caller fetches the balance and estimates the gas usage.
    """
    return balance >= minimum_worker_balance(gas_price, gas_usage, reserve)
