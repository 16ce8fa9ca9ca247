"""Tests for the conversation context lifecycle manager."""

import asyncio
from datetime import timedelta

import pytest

from conference_agent.domain.context.context_manager import ConversationContextManager
from conference_agent.domain.models.function_call import (
    FunctionName,
    FunctionParameters,
    FunctionResult,
)

from .conftest import make_row


def result_with(*rows) -> FunctionResult:
    return FunctionResult(success=True, count=len(rows), data=list(rows))


class TestGetOrCreate:
    async def test_unknown_session_gets_empty_state(self, context_manager) -> None:
        state = await context_manager.get_or_create("call-1")
        assert state.session_id == "call-1"
        assert state.history == []
        assert state.current_topic is None
        assert len(state.mentioned_speakers) == 0
        assert len(state.mentioned_sessions) == 0
        assert len(state.recent_search_terms) == 0
        assert context_manager.count() == 1

    async def test_same_state_returned_and_activity_refreshed(self, context_manager, clock) -> None:
        first = await context_manager.get_or_create("call-1")
        created = first.last_activity_at
        clock.advance(minutes=2)
        second = await context_manager.get_or_create("call-1")
        assert second is first
        assert second.last_activity_at == created + timedelta(minutes=2)
        assert context_manager.count() == 1

    async def test_missing_session_id_uses_default(self, context_manager, settings) -> None:
        state = await context_manager.get_or_create(None)
        assert state.session_id == settings.default_session_id


class TestRecordInteraction:
    async def test_records_history_results_and_entities(self, context_manager) -> None:
        rows = [make_row("Leading Through Change", "Jason Lengstorf"), make_row("Scaling", "Lara Hogan")]
        state = await context_manager.record_interaction(
            "call-1",
            FunctionName.SEARCH_BY_TOPIC,
            FunctionParameters(topic="Leadership"),
            result_with(*rows),
            user_query="anything on leadership?",
        )

        assert len(state.history) == 1
        record = state.history[0]
        assert record.function_name == FunctionName.SEARCH_BY_TOPIC
        assert record.parameters == {"topic": "Leadership"}
        assert record.result_count == 2
        assert record.user_query == "anything on leadership?"
        assert record.success is True

        assert state.last_results == rows
        assert state.last_query.function_name == FunctionName.SEARCH_BY_TOPIC
        assert state.current_topic == "leadership"
        assert state.mentioned_speakers.to_list() == ["jason lengstorf", "lara hogan"]
        assert state.mentioned_sessions.to_list() == ["leading through change", "scaling"]
        assert state.recent_search_terms.to_list() == ["leadership"]

    async def test_speaker_argument_is_remembered_twice(self, context_manager) -> None:
        state = await context_manager.record_interaction(
            "call-1",
            FunctionName.SEARCH_BY_SPEAKER,
            FunctionParameters(speaker_name="Lara Hogan"),
            result_with(),
        )
        assert state.mentioned_speakers.to_list() == ["lara hogan"]
        assert state.recent_search_terms.to_list() == ["lara hogan"]
        assert state.current_topic == "speaker: lara hogan"

    async def test_history_capped_at_ten_most_recent(self, context_manager) -> None:
        for i in range(14):
            await context_manager.record_interaction(
                "call-1", FunctionName.SEARCH_GENERAL, FunctionParameters(query=f"q{i}"), result_with()
            )
        state = await context_manager.get_or_create("call-1")
        assert len(state.history) == 10
        assert [r.parameters["query"] for r in state.history] == [f"q{i}" for i in range(4, 14)]

    async def test_entity_sets_respect_caps(self, context_manager) -> None:
        rows = [make_row(f"Session {i}", f"Speaker {i}") for i in range(30)]
        await context_manager.record_interaction(
            "call-1", FunctionName.GET_FULL_SCHEDULE, FunctionParameters(), result_with(*rows)
        )
        for i in range(12):
            await context_manager.record_interaction(
                "call-1", FunctionName.SEARCH_GENERAL, FunctionParameters(query=f"term {i}"), result_with()
            )

        state = await context_manager.get_or_create("call-1")
        assert len(state.mentioned_speakers) == 20
        assert state.mentioned_speakers.to_list()[0] == "speaker 10"
        assert state.mentioned_speakers.most_recent() == "speaker 29"
        assert len(state.mentioned_sessions) == 15
        assert state.mentioned_sessions.to_list()[0] == "session 15"
        assert len(state.recent_search_terms) == 10
        assert state.recent_search_terms.to_list() == [f"term {i}" for i in range(2, 12)]

    async def test_failed_result_is_recorded(self, context_manager) -> None:
        state = await context_manager.record_interaction(
            "call-1",
            FunctionName.SEARCH_BY_TOPIC,
            FunctionParameters(),
            FunctionResult(success=False, error="Topic is required"),
        )
        assert state.history[0].success is False
        assert state.last_results == []
        assert state.current_topic is None


class TestResolve:
    async def test_resolve_does_not_change_entities(self, context_manager) -> None:
        await context_manager.record_interaction(
            "call-1",
            FunctionName.SEARCH_BY_TOPIC,
            FunctionParameters(topic="AI"),
            result_with(make_row("AI Pair Programming", "Charity Majors"), make_row("Agents", "Lara Hogan")),
        )

        raw = FunctionParameters(session_query="the first one")
        first = await context_manager.resolve("call-1", FunctionName.GET_SESSION_DETAILS, raw)
        second = await context_manager.resolve("call-1", FunctionName.GET_SESSION_DETAILS, raw)

        assert first.session_query == "AI Pair Programming"
        assert first == second
        state = await context_manager.get_or_create("call-1")
        assert len(state.history) == 1

    async def test_resolve_against_unknown_session_creates_it(self, context_manager) -> None:
        raw = FunctionParameters(speaker_name="that speaker")
        resolved = await context_manager.resolve("call-9", FunctionName.SEARCH_BY_SPEAKER, raw)
        assert resolved == raw
        assert context_manager.count() == 1


class TestEviction:
    async def test_evicts_only_idle_contexts(self, context_manager, clock) -> None:
        stale = await context_manager.get_or_create("stale")
        fresh = await context_manager.get_or_create("fresh")
        stale.last_activity_at = clock.now - timedelta(minutes=11)
        fresh.last_activity_at = clock.now - timedelta(minutes=9)

        removed = await context_manager.evict_expired()

        assert removed == 1
        assert context_manager.count() == 1
        assert context_manager.summarize("stale") is None
        assert context_manager.summarize("fresh") is not None

    async def test_evicted_session_starts_over(self, context_manager, clock) -> None:
        await context_manager.record_interaction(
            "call-1", FunctionName.SEARCH_BY_TOPIC, FunctionParameters(topic="AI"), result_with()
        )
        clock.advance(minutes=11)
        await context_manager.evict_expired()

        state = await context_manager.get_or_create("call-1")
        assert state.history == []
        assert state.current_topic is None

    async def test_background_sweep_runs_on_interval(self, settings, clock) -> None:
        manager = ConversationContextManager(
            settings.model_copy(update={"cleanup_interval_seconds": 0.01}), clock=clock
        )
        await manager.get_or_create("call-1")
        clock.advance(minutes=11)

        await manager.start()
        for _ in range(50):
            if manager.count() == 0:
                break
            await asyncio.sleep(0.01)

        assert manager.count() == 0
        await manager.shutdown()

    async def test_sweep_survives_errors(self, settings, clock, monkeypatch) -> None:
        manager = ConversationContextManager(
            settings.model_copy(update={"cleanup_interval_seconds": 0.01}), clock=clock
        )
        calls = []

        async def failing_evict():
            calls.append(1)
            raise RuntimeError("boom")

        monkeypatch.setattr(manager, "evict_expired", failing_evict)
        await manager.start()
        for _ in range(50):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)

        assert len(calls) >= 2
        await manager.shutdown()


class TestLifecycle:
    async def test_clear(self, context_manager) -> None:
        await context_manager.get_or_create("call-1")
        assert await context_manager.clear("call-1") is True
        assert await context_manager.clear("call-1") is False
        assert context_manager.count() == 0

    async def test_snapshot_all(self, context_manager) -> None:
        await context_manager.record_interaction(
            "call-1", FunctionName.GET_CURRENT_SESSIONS, FunctionParameters(), result_with()
        )
        await context_manager.get_or_create("call-2")

        snapshots = {s.session_id: s for s in context_manager.snapshot_all()}
        assert set(snapshots) == {"call-1", "call-2"}
        assert snapshots["call-1"].interaction_count == 1
        assert snapshots["call-1"].current_topic == "current sessions"
        assert snapshots["call-2"].interaction_count == 0

    async def test_shutdown_is_idempotent(self, settings) -> None:
        manager = ConversationContextManager(settings)
        await manager.shutdown()

        await manager.start()
        await manager.get_or_create("call-1")
        await manager.shutdown()
        await manager.shutdown()

        assert manager.count() == 0


class TestSummary:
    async def test_unknown_session_has_no_summary(self, context_manager) -> None:
        assert context_manager.summarize("never-seen") is None
        assert context_manager.suggest("never-seen") == []
        assert context_manager.count() == 0

    async def test_summary_reflects_state(self, context_manager, clock) -> None:
        for i in range(12):
            await context_manager.record_interaction(
                "call-1",
                FunctionName.SEARCH_BY_SPEAKER,
                FunctionParameters(speaker_name="Lara Hogan"),
                result_with(make_row("Scaling", "Lara Hogan")),
            )
        clock.advance(seconds=30)

        summary = context_manager.summarize("call-1")

        assert summary is not None
        assert summary.interaction_count == 10
        assert summary.duration_seconds == pytest.approx(30)
        assert summary.current_topic == "speaker: lara hogan"
        assert summary.mentioned_speakers == ["lara hogan"]
        assert summary.mentioned_sessions == ["scaling"]
        assert summary.suggestions == [
            "Find more sessions like this",
            "What else is happening at the same time?",
            "Tell me more about lara hogan",
        ]
