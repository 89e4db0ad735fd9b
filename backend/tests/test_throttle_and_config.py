import pytest

from storefront.config import Settings, get_settings, parse_rate, settings
from storefront.utils.rate_limit import InMemoryRateLimiter, limiter


def test_rate_limiter_window():
    rl = InMemoryRateLimiter()
    assert rl.allow('k', 2, 60) == (True, 0)
    assert rl.allow('k', 2, 60) == (True, 0)
    allowed, retry_after = rl.allow('k', 2, 60)
    assert allowed is False
    assert retry_after >= 1
    assert rl.allow('other', 2, 60)[0] is True
    rl.reset()
    assert rl.allow('k', 2, 60)[0] is True


def test_anonymous_requests_are_throttled(client, make_user, monkeypatch):
    _, headers = make_user()
    monkeypatch.setattr(settings, 'ANON_THROTTLE_RATE', '2/min')
    limiter.reset()
    assert client.get('/api/products').status_code == 200
    assert client.get('/api/products').status_code == 200
    r = client.get('/api/products')
    assert r.status_code == 429
    assert int(r.headers['Retry-After']) >= 1
    # authenticated users have their own bucket and rate
    assert client.get('/api/products', headers=headers).status_code == 200


def test_parse_rate():
    assert parse_rate('100/min') == (100, 60)
    assert parse_rate('5/s') == (5, 1)
    assert parse_rate('10 / hour') == (10, 3600)
    assert parse_rate('1/day') == (1, 86400)
    with pytest.raises(ValueError):
        parse_rate('often')
    with pytest.raises(ValueError):
        parse_rate('10/fortnight')


def test_settings_reject_default_secret_outside_dev(monkeypatch):
    monkeypatch.setenv('ENV', 'prod')
    monkeypatch.delenv('JWT_SECRET', raising=False)
    monkeypatch.delenv('ALLOW_INSECURE_JWT', raising=False)
    with pytest.raises(RuntimeError):
        Settings()
    monkeypatch.setenv('JWT_SECRET', 'a-real-secret')
    assert get_settings().ENV == 'prod'


def test_settings_validate_rates_and_page_size(monkeypatch):
    monkeypatch.setenv('ANON_THROTTLE_RATE', 'lots')
    with pytest.raises(ValueError):
        Settings()
    monkeypatch.delenv('ANON_THROTTLE_RATE')
    monkeypatch.setenv('PAGE_SIZE', '0')
    with pytest.raises(RuntimeError):
        Settings()


def test_rate_limiter_drops_idle_keys():
    now = [1000.0]
    rl = InMemoryRateLimiter(sweep_interval=30, clock=lambda: now[0])
    for host in range(50):
        assert rl.allow(f'anon:10.0.0.{host}', 5, 60)[0] is True
    assert len(rl) == 50

    now[0] += 61
    rl.allow('anon:10.0.1.1', 5, 60)
    assert len(rl) == 1

    # a key still inside its window survives the sweep
    now[0] += 31
    rl.allow('anon:10.0.1.2', 5, 60)
    assert len(rl) == 2
