"""
Unit Tests for FetcherCircuitBreaker

Tests failure counting, the open window, the cooldown trial and the
deliberate absence of reset-on-success.
"""

import pytest

from stepcache.core.resilience.circuit_breaker import CircuitState, FetcherCircuitBreaker
from tests.test_fixtures.clock import FakeClock


@pytest.fixture
def clock():
    return FakeClock(start_ms=1_000_000)


@pytest.fixture
def breaker(clock):
    return FetcherCircuitBreaker(name="menus", failure_threshold=5, cooldown_ms=30_000, clock=clock)


@pytest.mark.unit
class TestFetcherCircuitBreaker:
    def test_initial_state_closed(self, breaker):
        assert breaker.state == CircuitState.CLOSED
        assert breaker.consecutive_failures == 0
        assert breaker.last_failure_at is None
        assert breaker.allow_request() is True

    def test_failures_below_threshold_keep_circuit_closed(self, breaker):
        for _ in range(4):
            breaker.record_failure()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.allow_request() is True

    def test_threshold_opens_circuit(self, breaker, clock):
        for _ in range(5):
            breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.allow_request() is False
        assert breaker.last_failure_at == clock()

    def test_still_open_just_before_cooldown(self, breaker, clock):
        for _ in range(5):
            breaker.record_failure()

        clock.advance(29_999)
        assert breaker.allow_request() is False

    def test_cooldown_elapsed_allows_trial_and_resets_counter(self, breaker, clock):
        for _ in range(5):
            breaker.record_failure()

        clock.advance(30_000)
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.allow_request() is True
        assert breaker.consecutive_failures == 0
        assert breaker.state == CircuitState.CLOSED

    def test_failed_trial_counts_from_one(self, breaker, clock):
        for _ in range(5):
            breaker.record_failure()
        clock.advance(30_000)
        breaker.allow_request()

        breaker.record_failure()

        assert breaker.consecutive_failures == 1
        assert breaker.allow_request() is True

    def test_failures_accumulate_without_reset_on_success(self, breaker):
        """Successes are never recorded, so spread-out failures still trip the breaker."""
        for _ in range(4):
            breaker.record_failure()
        # A successful call happens here; the breaker is not told about it.
        assert breaker.allow_request() is True
        breaker.record_failure()

        assert breaker.state == CircuitState.OPEN

    def test_snapshot_reports_state(self, breaker, clock):
        breaker.record_failure()

        snapshot = breaker.snapshot()

        assert snapshot == {
            "state": "closed",
            "consecutive_failures": 1,
            "last_failure_at": clock(),
        }
