"""Tests for the worker readiness policy."""

from rfqm_relay.chain import is_worker_ready, minimum_worker_balance


class TestIsWorkerReady:
    """Tests for is_worker_ready."""

    def test_enough_balance(self):
        assert is_worker_ready(balance=100, gas_price=2, gas_usage=40) is True

    def test_not_enough_balance(self):
        assert is_worker_ready(balance=79, gas_price=2, gas_usage=40) is False

    def test_exact_balance(self):
        """Balance equal to the cost is enough."""
        assert is_worker_ready(balance=80, gas_price=2, gas_usage=40) is True

    def test_reserve(self):
        """The reserve is kept on top of the cost."""
        assert is_worker_ready(balance=100, gas_price=2, gas_usage=40, reserve=20) is True
        assert is_worker_ready(balance=100, gas_price=2, gas_usage=40, reserve=21) is False

    def test_realistic_amounts(self):
        """0.012 ETH covers 400k gas at 30 Gwei, 0.0119 ETH does not."""
        gas_price = 30 * 10**9
        assert minimum_worker_balance(gas_price, 400_000) == 12 * 10**15
        assert is_worker_ready(12 * 10**15, gas_price, 400_000)
        assert not is_worker_ready(119 * 10**14, gas_price, 400_000)
