"""
Unit tests for the transaction boundary.
"""

import threading

import pytest

from registry.concurrency import TransactionManager, TxContext
from registry.events import EventType
from registry.schema import Capability, CapabilityKind


class TestTxContext:

    def test_fresh_ids_are_unique_and_deterministic(self):
        ctx = TxContext(sender="0xalice", digest="ab" * 32)
        first, second = ctx.fresh_id(), ctx.fresh_id()
        assert first != second
        assert len(first) == 64
        assert ctx.ids_created == 2

        replay = TxContext(sender="0xbob", digest="ab" * 32)
        assert replay.fresh_id() == first

    def test_random_digest(self):
        assert TxContext(sender="a").digest != TxContext(sender="a").digest


class TestTransactionManager:

    @pytest.fixture
    def manager(self, store, emitter):
        return TransactionManager(store, emitter)

    def test_commit(self, manager, store, emitter):
        ctx = TxContext(sender="0xalice")
        with manager.atomic(ctx):
            store.add(Capability(id=ctx.fresh_id(), kind=CapabilityKind.SUPER_ADMIN), ctx.sender)
            emitter.emit(EventType.INITIALIZED, ctx)

        assert len(store) == 1
        assert len(emitter.memory.events) == 1
        assert manager.get_metrics()["commits"] == 1

    def test_rollback_on_error(self, manager, store, emitter):
        ctx = TxContext(sender="0xalice")
        with pytest.raises(RuntimeError):
            with manager.atomic(ctx):
                store.add(Capability(id=ctx.fresh_id(), kind=CapabilityKind.SUPER_ADMIN), ctx.sender)
                emitter.emit(EventType.INITIALIZED, ctx)
                raise RuntimeError("boom")

        assert len(store) == 0
        assert emitter.memory.events == []
        assert not store.in_journal
        assert manager.get_metrics()["rollbacks"] == 1

    def test_nested_calls_join_outer(self, manager, store):
        ctx = TxContext(sender="0xalice")
        with pytest.raises(ValueError):
            with manager.atomic(ctx):
                with manager.atomic(ctx):
                    store.add(Capability(id=ctx.fresh_id(), kind=CapabilityKind.SUPER_ADMIN), "x")
                raise ValueError("outer fails")

        assert len(store) == 0

    def test_concurrent_calls_are_serialized(self, manager, store, thread_counter):
        inside = []
        overlaps = []

        def worker():
            ctx = TxContext(sender="0xalice")
            with manager.atomic(ctx):
                if inside:
                    overlaps.append(True)
                inside.append(True)
                store.add(Capability(id=ctx.fresh_id(), kind=CapabilityKind.SUPER_ADMIN), "x")
                thread_counter.increment()
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []
        assert thread_counter.get_value() == 10
        assert len(store) == 10
        assert manager.get_metrics()["acquisition_count"] == 10

    def test_serialized_holds_lock_without_journal(self, manager, store):
        with manager.serialized():
            assert not store.in_journal
