"""
Tests for background question generation and incremental readiness.
"""

import asyncio

import pytest
import pytest_asyncio

from profiling.core.exceptions import SessionNotFoundError
from profiling.core.generation_coordinator import GenerationCoordinator
from profiling.models.question import Section
from profiling.models.session import Session, SessionStatus

from tests.conftest import FakeGenerator


async def _wait_until(predicate, store, session_id, attempts: int = 200):
    """Poll the store until ``predicate(session)`` holds."""
    for _ in range(attempts):
        session = await store.get(session_id)
        if predicate(session):
            return session
        await asyncio.sleep(0.01)
    raise AssertionError("condition never reached")


@pytest_asyncio.fixture
async def created_session(store, user_info) -> Session:
    return await store.create(Session(user_info=user_info))


class TestIncrementalReadiness:

    @pytest.mark.asyncio
    async def test_first_section_gives_partial_ready(self, store, settings, created_session):
        gates = {Section.BEHAVIORAL: asyncio.Event(), Section.DOMAIN: asyncio.Event()}
        coordinator = GenerationCoordinator(store, FakeGenerator(gates=gates), settings)

        assert await coordinator.start_generation(created_session.session_id) is True
        session = await _wait_until(lambda s: s.aptitude_ready, store, created_session.session_id)

        progress = await coordinator.get_status(created_session.session_id)
        assert progress.status == SessionStatus.PARTIAL_READY
        assert (progress.aptitude, progress.behavioral, progress.domain) == (True, False, False)
        assert len(session.questions_for(Section.APTITUDE)) == 3
        assert session.questions_for(Section.BEHAVIORAL) == []

        for gate in gates.values():
            gate.set()
        await coordinator.wait_for(created_session.session_id)

        final = await store.get(created_session.session_id)
        assert final.status == SessionStatus.READY
        assert len(final.questions) == 9

    @pytest.mark.asyncio
    async def test_readiness_flags_never_regress(self, store, settings, created_session):
        gates = {section: asyncio.Event() for section in Section}
        coordinator = GenerationCoordinator(store, FakeGenerator(gates=gates), settings)
        seen: list[tuple[bool, bool, bool]] = []

        async def record(session_id, old, new):
            session = await store.get(session_id)
            seen.append((session.aptitude_ready, session.behavioral_ready, session.domain_ready))

        coordinator.on_status_change(record)
        await coordinator.start_generation(created_session.session_id)

        for section in (Section.DOMAIN, Section.APTITUDE, Section.BEHAVIORAL):
            gates[section].set()
            await _wait_until(lambda s, sec=section: s.is_section_ready(sec), store, created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        for earlier, later in zip(seen, seen[1:]):
            assert all(l or not e for e, l in zip(earlier, later))
        assert seen[-1] == (True, True, True)

    @pytest.mark.asyncio
    async def test_simultaneous_merges_reach_ready(self, store, settings, created_session):
        coordinator = GenerationCoordinator(store, FakeGenerator(per_section=5), settings)

        await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        final = await store.get(created_session.session_id)
        assert final.status == SessionStatus.READY
        assert len(final.questions) == 15
        assert len({q.id for q in final.questions}) == 15
        # CREATED -> GENERATING plus one commit per section
        assert final.version == 5

    @pytest.mark.asyncio
    async def test_status_callbacks_report_transitions(self, store, settings, created_session):
        coordinator = GenerationCoordinator(store, FakeGenerator(), settings)
        transitions = []

        async def record(session_id, old, new):
            transitions.append((old, new))

        coordinator.on_status_change(record)
        await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        assert transitions[0] == (SessionStatus.CREATED, SessionStatus.GENERATING)
        assert transitions[-1][1] == SessionStatus.READY

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_generation(self, store, settings, created_session):
        coordinator = GenerationCoordinator(store, FakeGenerator(), settings)

        async def explode(session_id, old, new):
            raise RuntimeError("listener down")

        coordinator.on_status_change(explode)
        await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        assert (await store.get(created_session.session_id)).status == SessionStatus.READY


class TestStartGeneration:

    @pytest.mark.asyncio
    async def test_second_start_is_noop(self, store, settings, created_session):
        generator = FakeGenerator()
        coordinator = GenerationCoordinator(store, generator, settings)

        first = await coordinator.start_generation(created_session.session_id)
        second = await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)
        third = await coordinator.start_generation(created_session.session_id)

        assert (first, second, third) == (True, False, False)
        assert all(generator.calls[section] == 1 for section in Section)

    @pytest.mark.asyncio
    async def test_concurrent_starts_launch_one_task(self, store, settings, created_session):
        generator = FakeGenerator()
        coordinator = GenerationCoordinator(store, generator, settings)

        results = await asyncio.gather(
            *(coordinator.start_generation(created_session.session_id) for _ in range(5))
        )
        await coordinator.wait_for(created_session.session_id)

        assert results.count(True) == 1
        assert sum(generator.calls.values()) == 3

    @pytest.mark.asyncio
    async def test_unknown_session(self, store, settings):
        coordinator = GenerationCoordinator(store, FakeGenerator(), settings)
        with pytest.raises(SessionNotFoundError):
            await coordinator.start_generation("missing")

    @pytest.mark.asyncio
    async def test_shutdown_cancels_running_tasks(self, store, settings, created_session):
        gates = {section: asyncio.Event() for section in Section}
        coordinator = GenerationCoordinator(store, FakeGenerator(gates=gates), settings)

        await coordinator.start_generation(created_session.session_id)
        assert coordinator.is_running(created_session.session_id)

        await coordinator.shutdown()

        assert not coordinator.is_running(created_session.session_id)


class TestRetriesAndFailure:

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, store, settings, created_session):
        generator = FakeGenerator(failures={Section.DOMAIN: 1})
        coordinator = GenerationCoordinator(store, generator, settings)

        await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        final = await store.get(created_session.session_id)
        assert final.status == SessionStatus.READY
        assert generator.calls[Section.DOMAIN] == 2
        assert generator.calls[Section.APTITUDE] == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_fail_session(self, store, settings, created_session):
        generator = FakeGenerator(failures={Section.BEHAVIORAL: 10})
        slow_retry = settings.model_copy(update={"generation_retry_backoff_seconds": 0.01})
        coordinator = GenerationCoordinator(store, generator, slow_retry)

        await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        final = await store.get(created_session.session_id)
        assert final.status == SessionStatus.FAILED
        assert "Behavioral" in final.failure_reason
        assert generator.calls[Section.BEHAVIORAL] == settings.generation_max_attempts
        # Sections that finished stay readable
        assert final.behavioral_ready is False
        assert len(final.questions_for(Section.APTITUDE)) == 3

    @pytest.mark.asyncio
    async def test_empty_result_counts_as_failure(self, store, settings, created_session):
        coordinator = GenerationCoordinator(
            store, FakeGenerator(empty={Section.APTITUDE}), settings
        )

        await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        final = await store.get(created_session.session_id)
        assert final.status == SessionStatus.FAILED
        assert final.aptitude_ready is False

    @pytest.mark.asyncio
    async def test_hanging_section_times_out(self, store, settings, created_session):
        fast = settings.model_copy(update={"section_timeout_seconds": 0.05})
        gates = {Section.DOMAIN: asyncio.Event()}
        coordinator = GenerationCoordinator(store, FakeGenerator(gates=gates), fast)

        await coordinator.start_generation(created_session.session_id)
        await coordinator.wait_for(created_session.session_id)

        final = await store.get(created_session.session_id)
        assert final.status == SessionStatus.FAILED
        assert "timed out" in final.failure_reason

    @pytest.mark.asyncio
    async def test_late_section_discarded_after_failure(self, store, settings, created_session):
        gates = {Section.DOMAIN: asyncio.Event()}
        generator = FakeGenerator(gates=gates, failures={Section.APTITUDE: 10})
        coordinator = GenerationCoordinator(store, generator, settings)

        await coordinator.start_generation(created_session.session_id)
        await _wait_until(lambda s: s.status == SessionStatus.FAILED, store, created_session.session_id)
        gates[Section.DOMAIN].set()
        await coordinator.wait_for(created_session.session_id)

        final = await store.get(created_session.session_id)
        assert final.status == SessionStatus.FAILED
        assert final.domain_ready is False
        assert final.questions_for(Section.DOMAIN) == []
