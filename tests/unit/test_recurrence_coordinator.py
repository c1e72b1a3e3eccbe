"""
Unit tests for RecurrenceCoordinator.

Uses in-memory fakes for the pattern store, the task factory and the unit
of work so that races and failures can be staged precisely.
"""

import asyncio
import logging
from datetime import date
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from recurrence_engine.core.exceptions import MalformedPatternError
from recurrence_engine.models.enums import Frequency
from recurrence_engine.services.completion_evaluator import exceeds_end_date, is_complete
from recurrence_engine.services.occurrence_calculator import next_occurrence
from recurrence_engine.services.recurrence_coordinator import RecurrenceCoordinator
from tests.helpers import make_pattern


class InMemoryPatternStore:
    def __init__(self, patterns=()):
        self.patterns = {p.id: p for p in patterns}

    async def find_due_patterns(self, today):
        await asyncio.sleep(0)
        due = []
        for pattern in sorted(self.patterns.values(), key=lambda p: (p.start_date, str(p.id))):
            if is_complete(pattern):
                continue
            try:
                upcoming = next_occurrence(pattern)
            except MalformedPatternError:
                due.append(pattern)
                continue
            if upcoming <= today and not exceeds_end_date(pattern, upcoming):
                due.append(pattern)
        return due

    async def get(self, pattern_id, user_id=None):
        # Read, then yield: a concurrent worker may act on the same snapshot
        pattern = self.patterns.get(pattern_id)
        await asyncio.sleep(0)
        return pattern

    async def compare_and_advance(self, pattern_id, expected, new):
        pattern = self.patterns.get(pattern_id)
        if pattern is None or pattern.last_generated_date != expected:
            return False
        if (
            pattern.max_occurrences is not None
            and pattern.generated_count >= pattern.max_occurrences
        ):
            return False
        self.patterns[pattern_id] = pattern.model_copy(
            update={"last_generated_date": new, "generated_count": pattern.generated_count + 1}
        )
        return True


class InMemoryTaskFactory:
    def __init__(self, delay: float = 0):
        self.instances = []
        self.failing_patterns = set()
        self.delay = delay

    async def create_instance(self, template_task_id, due_date, recurrence_pattern_id):
        await asyncio.sleep(self.delay)
        if recurrence_pattern_id in self.failing_patterns:
            raise RuntimeError("task store unavailable")
        task_id = uuid4()
        self.instances.append((task_id, template_task_id, due_date, recurrence_pattern_id))
        return task_id


class InMemoryUnitOfWork:
    """Records undo steps for its own writes and replays them on failure."""

    def __init__(self, store: InMemoryPatternStore, factory: InMemoryTaskFactory):
        self._store = store
        self._factory = factory
        self._undo = []
        self.patterns = self
        self.tasks = self

    async def __aenter__(self):
        self._undo = []
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            for step in reversed(self._undo):
                step()

    async def get(self, pattern_id, user_id=None):
        return await self._store.get(pattern_id, user_id)

    async def compare_and_advance(self, pattern_id, expected, new):
        previous = self._store.patterns.get(pattern_id)
        advanced = await self._store.compare_and_advance(pattern_id, expected, new)
        if advanced:
            self._undo.append(lambda: self._store.patterns.__setitem__(pattern_id, previous))
        return advanced

    async def create_instance(self, template_task_id, due_date, recurrence_pattern_id):
        task_id = await self._factory.create_instance(
            template_task_id, due_date, recurrence_pattern_id
        )
        self._undo.append(
            lambda: self._factory.instances.remove(
                next(i for i in self._factory.instances if i[0] == task_id)
            )
        )
        return task_id


def _coordinator(store, factory, **kwargs) -> RecurrenceCoordinator:
    return RecurrenceCoordinator(
        pattern_repo=store,
        unit_of_work_factory=lambda: InMemoryUnitOfWork(store, factory),
        **kwargs,
    )


# ============================================
# Generation
# ============================================


class TestGeneration:
    """A due pattern produces one instance and advances its progress."""

    @pytest.mark.asyncio
    async def test_generates_first_occurrence(self):
        """A due pattern yields one instance on its start date and advances."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()

        generated = await _coordinator(store, factory).process_pending_recurrences(
            date(2024, 1, 1)
        )

        assert generated == 1
        _, template_id, due, pattern_id = factory.instances[0]
        assert (template_id, due, pattern_id) == (pattern.task_id, date(2024, 1, 1), pattern.id)
        advanced = store.patterns[pattern.id]
        assert advanced.generated_count == 1
        assert advanced.last_generated_date == date(2024, 1, 1)

    @pytest.mark.asyncio
    async def test_second_tick_same_day_is_noop(self):
        """Re-running the tick on the same day generates nothing."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()
        coordinator = _coordinator(store, factory)

        assert await coordinator.process_pending_recurrences(date(2024, 1, 1)) == 1
        assert await coordinator.process_pending_recurrences(date(2024, 1, 1)) == 0
        assert len(factory.instances) == 1

    @pytest.mark.asyncio
    async def test_future_pattern_not_generated(self):
        """Patterns that have not started are left alone."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 2, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()

        assert await _coordinator(store, factory).process_pending_recurrences(
            date(2024, 1, 1)
        ) == 0
        assert factory.instances == []

    @pytest.mark.asyncio
    async def test_one_instance_per_pattern_per_tick(self):
        """A pattern that is behind catches up one instance per tick."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()
        coordinator = _coordinator(store, factory)

        for _ in range(3):
            assert await coordinator.process_pending_recurrences(date(2024, 1, 10)) == 1

        assert [i[2] for i in factory.instances] == [
            date(2024, 1, 1),
            date(2024, 1, 2),
            date(2024, 1, 3),
        ]

    @pytest.mark.asyncio
    async def test_stops_at_max_occurrences(self):
        """Generation stops once the cap is reached."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1), max_occurrences=3)
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()
        coordinator = _coordinator(store, factory)

        total = 0
        for day in range(1, 6):
            total += await coordinator.process_pending_recurrences(date(2024, 1, day))

        assert total == 3
        assert is_complete(store.patterns[pattern.id])

    @pytest.mark.asyncio
    async def test_today_defaults_to_provider(self):
        """Without an explicit date the today provider is used."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()
        coordinator = _coordinator(store, factory, today_provider=lambda: date(2024, 1, 1))

        assert await coordinator.process_pending_recurrences() == 1
        assert factory.instances[0][2] == date(2024, 1, 1)


# ============================================
# Skips
# ============================================


class TestSkips:
    """Patterns that changed since the due query are skipped quietly."""

    @pytest.mark.asyncio
    async def test_pattern_deleted_after_due_query(self):
        """A pattern deleted after the due query is skipped."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore(), InMemoryTaskFactory()
        store.find_due_patterns = AsyncMock(return_value=[pattern])

        assert await _coordinator(store, factory).process_pending_recurrences(
            date(2024, 1, 1)
        ) == 0
        assert factory.instances == []

    @pytest.mark.asyncio
    async def test_next_occurrence_past_end_date(self):
        """A stale due entry past its end date is skipped without progress."""
        pattern = make_pattern(
            Frequency.DAILY,
            date(2024, 1, 1),
            interval_value=7,
            end_date=date(2024, 1, 5),
            generated_count=1,
            last_generated_date=date(2024, 1, 1),
        )
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()
        store.find_due_patterns = AsyncMock(return_value=[pattern])

        assert await _coordinator(store, factory).process_pending_recurrences(
            date(2024, 1, 20)
        ) == 0
        assert store.patterns[pattern.id].generated_count == 1


# ============================================
# Concurrency
# ============================================


class TestConcurrency:
    """Concurrent ticks over the same store produce a single winner."""

    @pytest.mark.asyncio
    async def test_concurrent_ticks_generate_once(self):
        """Two concurrent ticks produce a single instance."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()
        first = _coordinator(store, factory)
        second = _coordinator(store, factory)

        results = await asyncio.gather(
            first.process_pending_recurrences(date(2024, 1, 1)),
            second.process_pending_recurrences(date(2024, 1, 1)),
        )

        assert sorted(results) == [0, 1]
        assert len(factory.instances) == 1
        assert store.patterns[pattern.id].generated_count == 1

    @pytest.mark.asyncio
    async def test_conflict_is_logged_at_debug_only(self, caplog):
        """A lost race is logged at debug level, never as an error."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()

        with caplog.at_level(logging.DEBUG, logger="recurrence_engine"):
            await asyncio.gather(
                _coordinator(store, factory).process_pending_recurrences(date(2024, 1, 1)),
                _coordinator(store, factory).process_pending_recurrences(date(2024, 1, 1)),
            )

        conflicts = [r for r in caplog.records if "advanced by another worker" in r.getMessage()]
        assert len(conflicts) == 1
        assert conflicts[0].levelno == logging.DEBUG
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


# ============================================
# Failures
# ============================================


class TestFailures:
    """Per-pattern failures never abort the tick."""

    @pytest.mark.asyncio
    async def test_task_failure_rolls_back_and_isolates(self):
        """A failing instance rolls back its pattern while others proceed."""
        broken = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        healthy = make_pattern(Frequency.DAILY, date(2024, 1, 2))
        store, factory = InMemoryPatternStore([broken, healthy]), InMemoryTaskFactory()
        factory.failing_patterns.add(broken.id)

        generated = await _coordinator(store, factory).process_pending_recurrences(
            date(2024, 1, 2)
        )

        assert generated == 1
        assert store.patterns[broken.id].generated_count == 0
        assert store.patterns[broken.id].last_generated_date is None
        assert store.patterns[healthy.id].generated_count == 1

    @pytest.mark.asyncio
    async def test_failed_pattern_retried_next_tick(self):
        """A rolled-back pattern is picked up again on the next tick."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory()
        coordinator = _coordinator(store, factory)
        factory.failing_patterns.add(pattern.id)

        assert await coordinator.process_pending_recurrences(date(2024, 1, 1)) == 0

        factory.failing_patterns.clear()
        assert await coordinator.process_pending_recurrences(date(2024, 1, 1)) == 1

    @pytest.mark.asyncio
    async def test_malformed_pattern_logged_and_skipped(self, caplog):
        """Malformed patterns are logged at error level and skipped."""
        malformed = make_pattern(Frequency.WEEKLY, date(2024, 1, 1))
        healthy = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([malformed, healthy]), InMemoryTaskFactory()

        with caplog.at_level(logging.ERROR, logger="recurrence_engine"):
            generated = await _coordinator(store, factory).process_pending_recurrences(
                date(2024, 1, 1)
            )

        assert generated == 1
        assert f"Malformed recurrence pattern {malformed.id}" in caplog.text
        assert store.patterns[malformed.id].generated_count == 0

    @pytest.mark.asyncio
    async def test_timeout_rolls_back(self):
        """A pattern exceeding its timeout is rolled back."""
        pattern = make_pattern(Frequency.DAILY, date(2024, 1, 1))
        store, factory = InMemoryPatternStore([pattern]), InMemoryTaskFactory(delay=1.0)

        generated = await _coordinator(
            store, factory, pattern_timeout=0.05
        ).process_pending_recurrences(date(2024, 1, 1))

        assert generated == 0
        assert factory.instances == []
        assert store.patterns[pattern.id].generated_count == 0

    @pytest.mark.asyncio
    async def test_due_query_failure_returns_zero(self):
        """A failing due query ends the tick with zero generated."""
        store, factory = InMemoryPatternStore(), InMemoryTaskFactory()
        store.find_due_patterns = AsyncMock(side_effect=RuntimeError("database is locked"))

        assert await _coordinator(store, factory).process_pending_recurrences(
            date(2024, 1, 1)
        ) == 0
