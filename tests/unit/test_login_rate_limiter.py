from datetime import timedelta

from tourcrm.api.auth import LoginRateLimiter, session_ttl


def test_blocks_after_max_failures_within_window():
    limiter = LoginRateLimiter(max_attempts=3, window_seconds=60)
    for t in (0.0, 1.0, 2.0):
        assert limiter.retry_after("1.2.3.4", now=t) == 0
        limiter.register_failure("1.2.3.4", now=t)

    wait = limiter.retry_after("1.2.3.4", now=10.0)
    assert 0 < wait <= 51
    # Other clients are unaffected
    assert limiter.retry_after("5.6.7.8", now=10.0) == 0


def test_old_failures_slide_out_of_the_window():
    limiter = LoginRateLimiter(max_attempts=2, window_seconds=60)
    limiter.register_failure("ip", now=0.0)
    limiter.register_failure("ip", now=30.0)
    assert limiter.retry_after("ip", now=59.0) > 0
    # First failure expired; only one left in the window
    assert limiter.retry_after("ip", now=61.0) == 0


def test_reset_clears_the_counter():
    limiter = LoginRateLimiter(max_attempts=1, window_seconds=60)
    limiter.register_failure("ip", now=0.0)
    assert limiter.retry_after("ip", now=1.0) > 0
    limiter.reset("ip")
    assert limiter.retry_after("ip", now=1.0) == 0


def test_expired_one_off_clients_are_swept():
    limiter = LoginRateLimiter(max_attempts=5, window_seconds=60, sweep_every=3)
    limiter.register_failure("10.0.0.1", now=0.0)
    limiter.register_failure("10.0.0.2", now=1.0)
    assert len(limiter._failures) == 2

    # Third failure triggers a sweep; the first two are out of the window
    limiter.register_failure("10.0.0.3", now=100.0)
    assert list(limiter._failures) == ["10.0.0.3"]


def test_from_env(monkeypatch):
    monkeypatch.setenv("LOGIN_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("LOGIN_WINDOW_SECONDS", "bogus")
    limiter = LoginRateLimiter.from_env()
    assert limiter.max_attempts == 7
    assert limiter.window_seconds == 900


def test_session_ttl_from_env(monkeypatch):
    monkeypatch.delenv("SESSION_TTL_HOURS", raising=False)
    assert session_ttl() == timedelta(hours=168)
    monkeypatch.setenv("SESSION_TTL_HOURS", "12")
    assert session_ttl() == timedelta(hours=12)
