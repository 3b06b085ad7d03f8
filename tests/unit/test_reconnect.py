from __future__ import annotations

from stream_console.config import ReconnectOptions
from stream_console.connection.reconnect import ReconnectStrategy


class TestReconnectStrategy:
    def test_default_delays_are_linear(self) -> None:
        strategy = ReconnectStrategy()
        # attempt N+1 waits N * 3s
        assert strategy.get_delay(1) == 3_000
        assert strategy.get_delay(2) == 6_000
        assert strategy.get_delay(3) == 9_000
        assert strategy.get_delay(4) == 12_000

    def test_retry_after_ready_is_immediate(self) -> None:
        strategy = ReconnectStrategy()
        assert strategy.get_delay(0) == 0

    def test_budget_defaults_to_five_attempts(self) -> None:
        strategy = ReconnectStrategy()
        assert strategy.max_attempts == 5
        assert strategy.get_delay(4) is not None
        assert strategy.get_delay(5) is None
        assert strategy.get_delay(10) is None
        assert strategy.is_exhausted(5)
        assert not strategy.is_exhausted(4)

    def test_custom_options(self) -> None:
        strategy = ReconnectStrategy(
            ReconnectOptions(max_attempts=3, base_delay_ms=100)
        )
        assert strategy.get_delay(1) == 100
        assert strategy.get_delay(2) == 200
        assert strategy.get_delay(3) is None
