"""Tests for the pending-authorization registry."""

from wpreader.auth.pending import PendingAuthorizationRegistry


class TestPendingAuthorizationRegistry:
    def test_register_then_consume(self, clock):
        registry = PendingAuthorizationRegistry(clock=clock)
        registry.register("s1", "challenge-1", "page")

        pending = registry.consume("s1")

        assert pending is not None
        assert pending.code_challenge == "challenge-1"
        assert pending.response_mode == "page"
        assert pending.expires_at == clock.now + 600

    def test_state_resolves_only_once(self, clock):
        registry = PendingAuthorizationRegistry(clock=clock)
        registry.register("s1", "challenge-1")

        assert registry.consume("s1") is not None
        assert registry.consume("s1") is None

    def test_unknown_and_empty_states(self, clock):
        registry = PendingAuthorizationRegistry(clock=clock)
        assert registry.consume("nope") is None
        assert registry.consume(None) is None
        assert registry.consume("") is None

    def test_expired_state_is_treated_as_absent(self, clock):
        registry = PendingAuthorizationRegistry(clock=clock)
        registry.register("s1", "challenge-1")

        clock.advance(601)

        assert registry.consume("s1") is None
        # and it does not come back once the clock is irrelevant
        assert registry.consume("s1") is None

    def test_state_still_valid_just_before_expiry(self, clock):
        registry = PendingAuthorizationRegistry(clock=clock)
        registry.register("s1", "challenge-1")
        clock.advance(599)
        assert registry.consume("s1") is not None

    def test_colliding_state_overwrites(self, clock):
        registry = PendingAuthorizationRegistry(clock=clock)
        registry.register("s1", "first")
        registry.register("s1", "second")

        assert len(registry) == 1
        assert registry.consume("s1").code_challenge == "second"

    def test_sweep_removes_only_expired(self, clock):
        registry = PendingAuthorizationRegistry(ttl_seconds=60, clock=clock)
        registry.register("old", "c")
        clock.advance(30)
        registry.register("new", "c")
        clock.advance(31)

        assert registry.sweep() == 1
        assert len(registry) == 1
        assert registry.consume("new") is not None
