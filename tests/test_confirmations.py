"""
Tests for confirmation codes guarding destructive commands.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import storage
from confirmations import ConfirmationError, ConfirmationStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestConfirmationStore:
    """Tests for issuing and redeeming codes."""

    def test_confirm_returns_action(self):
        store = ConfirmationStore(ttl=60, clock=FakeClock())
        code = store.request('remove_tables', {'count': 2})
        pending = store.confirm(code)
        assert pending.action == 'remove_tables'
        assert pending.payload == {'count': 2}

    def test_code_is_single_use(self):
        store = ConfirmationStore(ttl=60, clock=FakeClock())
        code = store.request('clear_tournaments')
        store.confirm(code)
        with pytest.raises(ConfirmationError):
            store.confirm(code)

    def test_code_case_insensitive(self):
        store = ConfirmationStore(ttl=60, clock=FakeClock())
        code = store.request('clear_tournaments')
        assert store.confirm(f' {code.lower()} ').action == 'clear_tournaments'

    def test_expired_code_rejected(self):
        clock = FakeClock()
        store = ConfirmationStore(ttl=30, clock=clock)
        code = store.request('remove_player', {'username': 'Alice'})
        clock.now += 31
        with pytest.raises(ConfirmationError):
            store.confirm(code)

    def test_expired_entries_purged(self):
        clock = FakeClock()
        store = ConfirmationStore(ttl=10, clock=clock)
        store.request('a')
        store.request('b')
        assert len(store) == 2
        clock.now += 11
        assert len(store) == 0

    def test_unknown_code(self):
        with pytest.raises(ConfirmationError):
            ConfirmationStore().confirm('NOPE')

    def test_codes_are_distinct(self):
        store = ConfirmationStore(ttl=60, clock=FakeClock())
        codes = {store.request('a') for _ in range(50)}
        assert len(codes) == 50


class TestPersistentConfirmationStore:
    """Tests for codes kept in the data directory between processes."""

    def test_code_redeemed_by_another_store(self, data_dir):
        clock = FakeClock()
        code = ConfirmationStore(ttl=60, clock=clock, data_dir=data_dir, persist=True).request(
            'remove_player', {'username': 'Alice'})
        pending = ConfirmationStore(ttl=60, clock=clock, data_dir=data_dir, persist=True).confirm(code)
        assert pending.action == 'remove_player'
        assert pending.payload == {'username': 'Alice'}

    def test_redeemed_code_removed_from_disk(self, data_dir):
        clock = FakeClock()
        first = ConfirmationStore(ttl=60, clock=clock, data_dir=data_dir, persist=True)
        code = first.request('clear_tournaments')
        first.confirm(code)
        with pytest.raises(ConfirmationError):
            ConfirmationStore(ttl=60, clock=clock, data_dir=data_dir, persist=True).confirm(code)
        assert storage.load_confirmations(data_dir) == []

    def test_expiry_survives_reload(self, data_dir):
        clock = FakeClock()
        code = ConfirmationStore(ttl=30, clock=clock, data_dir=data_dir, persist=True).request('a')
        clock.now += 31
        later = ConfirmationStore(ttl=30, clock=clock, data_dir=data_dir, persist=True)
        with pytest.raises(ConfirmationError):
            later.confirm(code)
        assert len(later) == 0

    def test_codes_written_as_yaml(self, data_dir):
        store = ConfirmationStore(ttl=60, clock=FakeClock(), data_dir=data_dir, persist=True)
        code = store.request('remove_tables', {'count': 2})
        [entry] = storage.load_confirmations(data_dir)
        assert entry == {'code': code, 'action': 'remove_tables', 'payload': {'count': 2}, 'expires_at': 1060.0}
        assert os.path.exists(os.path.join(data_dir, 'confirmations.yaml'))
