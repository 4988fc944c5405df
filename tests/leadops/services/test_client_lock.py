"""Tests for leadops.services.client_lock — Redis per-client lock."""
import pytest
import redis
from unittest.mock import MagicMock

from leadops.services.client_lock import ClientLock, ClientLockedError


@pytest.fixture
def lock(fake_redis):
    return ClientLock(fake_redis, ttl=60)


class TestClientLock:

    def test_acquire_sets_key(self, lock, fake_redis):
        token = lock.acquire('client-a')
        assert fake_redis.get('scoring:lock:client-a') == token

    def test_second_acquire_raises(self, lock):
        lock.acquire('client-a')
        with pytest.raises(ClientLockedError, match='client-a'):
            lock.acquire('client-a')

    def test_different_clients_do_not_contend(self, lock):
        lock.acquire('client-a')
        assert lock.acquire('client-b') is not None

    def test_release_frees_lock(self, lock):
        token = lock.acquire('client-a')
        lock.release('client-a', token)
        assert not lock.is_locked('client-a')

    def test_release_ignores_foreign_token(self, lock, fake_redis):
        lock.acquire('client-a')
        lock.release('client-a', 'someone-else')
        assert lock.is_locked('client-a')

    def test_hold_releases_on_exception(self, lock):
        with pytest.raises(ValueError):
            with lock.hold('client-a'):
                assert lock.is_locked('client-a')
                raise ValueError('boom')
        assert not lock.is_locked('client-a')

    def test_acquire_passes_ttl(self):
        client = MagicMock()
        client.set.return_value = True
        ClientLock(client, ttl=120).acquire('client-a')
        _, kwargs = client.set.call_args
        assert kwargs == {'nx': True, 'ex': 120}

    def test_redis_down_fails_open(self):
        client = MagicMock()
        client.set.side_effect = redis.ConnectionError('refused')
        lock = ClientLock(client)
        with lock.hold('client-a'):
            pass
        client.delete.assert_not_called()

    def test_is_locked_false_when_redis_down(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError('refused')
        assert ClientLock(client).is_locked('client-a') is False
