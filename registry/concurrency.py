"""
Capability Mint Authority - Transaction Boundary

Every public call runs inside ``TransactionManager.atomic``: calls are
serialized on a single re-entrant lock, the object store journals every write,
and events are buffered. On success the journal is dropped and events are
published; on any exception the store is rolled back and the events are
discarded before the exception propagates.
"""

import hashlib
import logging
import secrets
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, Optional

from .events import EventEmitter
from .storage import ObjectStore


@dataclass
class TxContext:
    """
    Per-call context: who is calling and a digest used to derive fresh ids.
    """
    sender: str
    digest: str = field(default_factory=lambda: secrets.token_hex(32))
    timestamp_ms: int = field(default_factory=lambda: int(time.time() * 1000))
    _created: int = field(default=0, repr=False)

    def fresh_id(self) -> str:
        """Derive a new object id from the digest and a per-call counter."""
        self._created += 1
        data = bytes.fromhex(self.digest) + self._created.to_bytes(8, 'big')
        return hashlib.sha256(data).hexdigest()

    @property
    def ids_created(self) -> int:
        return self._created


class LockMetrics:
    """Lock performance metrics."""

    def __init__(self):
        self.acquisition_count = 0
        self.contention_count = 0
        self.total_wait_time = 0.0
        self.max_wait_time = 0.0
        self.commits = 0
        self.rollbacks = 0
        self.last_acquisition = None
        self.lock_history = deque(maxlen=100)  # Last 100 lock events

    def record_acquisition(self, wait_time: float, contended: bool) -> None:
        """Record lock acquisition metrics."""
        self.acquisition_count += 1
        self.total_wait_time += wait_time
        self.max_wait_time = max(self.max_wait_time, wait_time)
        self.last_acquisition = datetime.now(timezone.utc)

        if contended:
            self.contention_count += 1

        self.lock_history.append({
            'timestamp': self.last_acquisition,
            'wait_time': wait_time,
            'contended': contended,
            'thread_id': threading.get_ident()
        })

    def get_contention_ratio(self) -> float:
        if self.acquisition_count == 0:
            return 0.0
        return self.contention_count / self.acquisition_count

    def get_average_wait_time(self) -> float:
        if self.acquisition_count == 0:
            return 0.0
        return self.total_wait_time / self.acquisition_count


class TransactionManager:
    """Globally serialized, all-or-nothing call execution."""

    def __init__(self, store: ObjectStore, events: EventEmitter, timeout: float = 30.0):
        self.store = store
        self.events = events
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self._lock = RLock()
        self._depth = 0
        self._metrics = LockMetrics()

    @contextmanager
    def atomic(self, ctx: Optional[TxContext] = None, operation: str = "call"):
        """
        Run the enclosed block as one transaction.

        Nested ``atomic`` blocks join the outermost transaction.
        """
        start_time = time.time()
        contended = not self._lock.acquire(blocking=False)
        if contended and not self._lock.acquire(timeout=self.timeout):
            raise TimeoutError(f"Could not enter transaction for {operation} within {self.timeout}s")

        try:
            self._metrics.record_acquisition(time.time() - start_time, contended)

            if self._depth > 0:
                self._depth += 1
                try:
                    yield ctx
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            self.store.begin()
            self.events.begin()
            try:
                yield ctx
            except BaseException as e:
                restored = self.store.rollback()
                dropped = self.events.discard()
                self._metrics.rollbacks += 1
                self.logger.info(
                    f"Rolled back {operation} (sender={getattr(ctx, 'sender', None)}): "
                    f"{e}; restored {restored} objects, dropped {dropped} events"
                )
                raise
            else:
                self.store.commit()
                self.events.flush()
                self._metrics.commits += 1
            finally:
                self._depth = 0
        finally:
            self._lock.release()

    @contextmanager
    def serialized(self):
        """Hold the global lock without opening a transaction."""
        if not self._lock.acquire(timeout=self.timeout):
            raise TimeoutError(f"Could not acquire transaction lock within {self.timeout}s")
        try:
            yield
        finally:
            self._lock.release()

    def get_metrics(self) -> Dict[str, Any]:
        """Get transaction and lock metrics."""
        return {
            'acquisition_count': self._metrics.acquisition_count,
            'contention_count': self._metrics.contention_count,
            'contention_ratio': self._metrics.get_contention_ratio(),
            'average_wait_time': self._metrics.get_average_wait_time(),
            'max_wait_time': self._metrics.max_wait_time,
            'commits': self._metrics.commits,
            'rollbacks': self._metrics.rollbacks,
            'last_acquisition': self._metrics.last_acquisition,
        }
