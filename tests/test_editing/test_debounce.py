#!/usr/bin/env python3
"""
Tests for the debouncer and the save mutex.

Tests cover:
- Collapsing rapid calls into one
- Independent keys
- Flush and cancel
- Serialized saves that survive failures
- Revision tracking
"""
import asyncio

import pytest

from editing.debounce import Debouncer
from editing.mutex import RevisionTracker, SaveMutex


class TestDebouncer:
    """Tests for Debouncer."""

    def test_collapses_rapid_calls(self):
        calls = []

        async def scenario():
            debouncer = Debouncer(20)

            async def record(value):
                calls.append(value)

            for value in ('a', 'ab', 'abc'):
                debouncer.schedule('summary', lambda v=value: record(v))
                await asyncio.sleep(0.005)
            assert debouncer.pending('summary')
            await asyncio.sleep(0.05)
            await debouncer.drain()
            assert not debouncer.pending('summary')

        asyncio.run(scenario())
        assert calls == ['abc']

    def test_keys_are_independent(self):
        calls = []

        async def scenario():
            debouncer = Debouncer(10)

            async def record(key):
                calls.append(key)

            debouncer.schedule('summary', lambda: record('summary'))
            debouncer.schedule('strengths', lambda: record('strengths'))
            await asyncio.sleep(0.04)
            await debouncer.drain()

        asyncio.run(scenario())
        assert sorted(calls) == ['strengths', 'summary']

    def test_flush_fires_immediately(self):
        calls = []

        async def scenario():
            debouncer = Debouncer(10_000)

            async def record():
                calls.append('fired')

            debouncer.schedule('summary', record)
            await debouncer.flush()
            assert not debouncer.pending('summary')

        asyncio.run(scenario())
        assert calls == ['fired']

    def test_cancel_drops_callback(self):
        calls = []

        async def scenario():
            debouncer = Debouncer(10)

            async def record():
                calls.append('fired')

            debouncer.schedule('summary', record)
            debouncer.cancel('summary')
            debouncer.schedule('strengths', record)
            debouncer.cancel_all()
            await asyncio.sleep(0.03)

        asyncio.run(scenario())
        assert calls == []


class TestSaveMutex:
    """Tests for SaveMutex."""

    def test_runs_in_order_without_overlap(self):
        events = []

        async def scenario():
            mutex = SaveMutex()

            async def save(name, delay):
                events.append(f'start {name}')
                await asyncio.sleep(delay)
                events.append(f'end {name}')

            await asyncio.gather(
                mutex.run(lambda: save('first', 0.02)),
                mutex.run(lambda: save('second', 0)),
            )
            assert not mutex.busy

        asyncio.run(scenario())
        assert events == ['start first', 'end first', 'start second', 'end second']

    def test_failure_does_not_wedge_chain(self):
        async def scenario():
            mutex = SaveMutex()

            async def boom():
                raise RuntimeError('network down')

            async def ok():
                return 7

            first = asyncio.ensure_future(mutex.run(boom))
            second = asyncio.ensure_future(mutex.run(ok))
            with pytest.raises(RuntimeError):
                await first
            return await second

        assert asyncio.run(scenario()) == 7

    def test_idle_waits_for_queue(self):
        done = []

        async def scenario():
            mutex = SaveMutex()

            async def save():
                await asyncio.sleep(0.01)
                done.append(True)

            asyncio.ensure_future(mutex.run(save))
            asyncio.ensure_future(mutex.run(save))
            await asyncio.sleep(0)
            await mutex.idle()

        asyncio.run(scenario())
        assert done == [True, True]


class TestRevisionTracker:
    def test_stale_only_when_older(self):
        tracker = RevisionTracker(3)
        assert tracker.is_stale(2)
        assert not tracker.is_stale(3)
        assert not tracker.is_stale(4)
        tracker.adopt(5)
        assert tracker.value == 5
        assert repr(tracker) == 'RevisionTracker(5)'

    def test_advance_never_moves_back(self):
        tracker = RevisionTracker(4)
        tracker.advance(2)
        assert tracker.value == 4
        tracker.advance(6)
        assert tracker.value == 6
