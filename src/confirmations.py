"""
Short-lived confirmation codes for destructive commands.

A command such as ``remove tables 3`` is not applied immediately: it is
parked here under a random code, and only runs when the same code comes
back through ``confirm <code>`` before it expires.

With ``persist=True`` the pending codes live in the data directory and are
read and written under the storage data lock, so a code handed out by one
CLI run or HTTP worker can be confirmed by another.
"""
import os
import secrets
import time
from contextlib import contextmanager
from typing import Callable, Dict, Optional

import storage


CONFIRMATION_TTL_SECONDS = float(os.environ.get('CONFIRMATION_TTL_SECONDS', '120'))


class ConfirmationError(Exception):
    pass


class PendingAction:
    def __init__(self, code, action, payload, expires_at):
        self.code = code
        self.action = action
        self.payload = payload
        self.expires_at = expires_at

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'action': self.action,
            'payload': self.payload,
            'expires_at': self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PendingAction':
        return cls(
            code=data['code'],
            action=data['action'],
            payload=data.get('payload') or {},
            expires_at=float(data['expires_at']),
        )

    def __repr__(self):
        return f"PendingAction(code={self.code}, action={self.action}, payload={self.payload})"


class ConfirmationStore:
    def __init__(self, ttl: float = None, clock: Callable[[], float] = None,
                 data_dir: str = None, persist: bool = False):
        self.ttl = CONFIRMATION_TTL_SECONDS if ttl is None else ttl
        # wall clock, since persisted expiry times are compared across processes
        self.clock = clock or time.time
        self.data_dir = data_dir
        self.persist = persist
        self._pending: Dict[str, PendingAction] = {}

    @contextmanager
    def _session(self):
        """Purge expired codes; when persistent, load and save around the body."""
        if not self.persist:
            self._purge()
            yield
            return
        with storage.data_lock(self.data_dir):
            entries = storage.load_confirmations(self.data_dir)
            self._pending = {e['code']: PendingAction.from_dict(e) for e in entries}
            self._purge()
            yield
            storage.save_confirmations([p.to_dict() for p in self._pending.values()], self.data_dir)

    def _purge(self):
        now = self.clock()
        for code in [c for c, p in self._pending.items() if p.expires_at <= now]:
            del self._pending[code]

    def _new_code(self) -> str:
        while True:
            code = secrets.token_hex(3).upper()
            if code not in self._pending:
                return code

    def request(self, action: str, payload: Optional[dict] = None) -> str:
        """Park ``action`` and return the code that confirms it."""
        with self._session():
            code = self._new_code()
            self._pending[code] = PendingAction(code, action, payload or {}, self.clock() + self.ttl)
        return code

    def confirm(self, code: str) -> PendingAction:
        """Pop the action parked under ``code``."""
        with self._session():
            pending = self._pending.pop(code.strip().upper(), None)
        if pending is None:
            raise ConfirmationError(f'Unknown or expired confirmation code: {code}')
        return pending

    def __len__(self):
        with self._session():
            return len(self._pending)
