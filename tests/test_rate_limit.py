from app.core.rate_limit import LoginRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_blocks_after_max_failures():
    clock = FakeClock()
    limiter = LoginRateLimiter(max_attempts=3, window_minutes=15, clock=clock)

    for _ in range(3):
        assert limiter.is_allowed("1.2.3.4")
        limiter.record_failure("1.2.3.4")

    assert not limiter.is_allowed("1.2.3.4")
    assert limiter.is_allowed("5.6.7.8")


def test_window_slides():
    clock = FakeClock()
    limiter = LoginRateLimiter(max_attempts=2, window_minutes=1, clock=clock)
    limiter.record_failure("ip")
    limiter.record_failure("ip")
    assert not limiter.is_allowed("ip")

    clock.now += 61
    assert limiter.is_allowed("ip")


def test_reset_clears_ip():
    limiter = LoginRateLimiter(max_attempts=1, clock=FakeClock())
    limiter.record_failure("ip")
    assert not limiter.is_allowed("ip")

    limiter.reset("ip")
    assert limiter.is_allowed("ip")


def test_prune_drops_expired_entries():
    clock = FakeClock()
    limiter = LoginRateLimiter(max_attempts=5, window_minutes=1, clock=clock)
    limiter.record_failure("old")
    clock.now += 30
    limiter.record_failure("recent")
    clock.now += 40

    limiter.prune()

    assert "old" not in limiter._attempts
    assert len(limiter._attempts["recent"]) == 1
