"""Tests for the live-tier circuit breaker."""

from guardnomad.aggregation.circuit_breaker import BreakerState, CircuitBreaker


class TestCircuitBreaker:
    def test_starts_closed(self, clock):
        breaker = CircuitBreaker("news", cooldown_seconds=300, clock=clock)
        assert breaker.state == BreakerState.CLOSED
        assert breaker.allow() is True

    def test_trip_opens(self, clock):
        breaker = CircuitBreaker("news", cooldown_seconds=300, clock=clock)
        breaker.trip("UNAUTHORIZED: GNews returned HTTP 401")
        assert breaker.allow() is False
        state = breaker.get_state()
        assert state["state"] == "open"
        assert state["trip_count"] == 1
        assert state["reopen_in_seconds"] == 300.0
        assert "401" in state["last_reason"]

    def test_closes_after_cooldown(self, clock):
        breaker = CircuitBreaker("news", cooldown_seconds=300, clock=clock)
        breaker.trip()
        clock.advance(299)
        assert breaker.allow() is False
        clock.advance(1)
        assert breaker.allow() is True
        assert breaker.get_state()["reopen_in_seconds"] == 0.0

    def test_retrip_extends_window(self, clock):
        breaker = CircuitBreaker("news", cooldown_seconds=300, clock=clock)
        breaker.trip()
        clock.advance(200)
        breaker.trip()
        clock.advance(200)
        assert breaker.allow() is False
        assert breaker.get_state()["trip_count"] == 2

    def test_reset(self, clock):
        breaker = CircuitBreaker("news", cooldown_seconds=300, clock=clock)
        breaker.trip()
        breaker.reset()
        assert breaker.allow() is True
