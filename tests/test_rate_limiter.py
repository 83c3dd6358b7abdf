import time

from servicedesk.services.rate_limiter import InMemoryRateLimiter


def test_limit_applies_within_the_window():
    limiter = InMemoryRateLimiter()
    start = time.monotonic()

    assert limiter.allow("k", 2, 60, now=start + 1)
    assert limiter.allow("k", 2, 60, now=start + 2)
    assert not limiter.allow("k", 2, 60, now=start + 3)
    assert limiter.allow("k", 2, 60, now=start + 62)


def test_idle_keys_are_dropped():
    limiter = InMemoryRateLimiter()
    start = time.monotonic()

    limiter.allow("login:10.0.0.1:a@example.com:minute", 5, 60, now=start + 1)
    limiter.allow("login:10.0.0.2:b@example.com:minute", 5, 60, now=start + 2)
    assert len(limiter) == 2

    limiter.allow("login:10.0.0.3:c@example.com:minute", 5, 60, now=start + 300)

    assert len(limiter) == 1


def test_keys_inside_a_longer_window_survive_the_sweep():
    limiter = InMemoryRateLimiter()
    start = time.monotonic()

    limiter.allow("hourly", 5, 3600, now=start + 1)
    limiter.allow("other", 5, 60, now=start + 300)

    assert len(limiter) == 2
