"""Tests for the conference function executor."""

import pytest

from conference_agent.domain.models.function_call import FunctionName, FunctionParameters
from conference_agent.domain.tool.function_executor import FunctionExecutor, format_time
from conference_agent.domain.tool.function_registry import FunctionRegistry


@pytest.fixture
def executor(repository, clock) -> FunctionExecutor:
    return FunctionExecutor(repository, clock=clock)


class TestFunctionRegistry:
    def test_all_functions_registered(self) -> None:
        registry = FunctionRegistry()
        names = {d["name"] for d in registry.get_function_definitions()}
        assert names == {f.value for f in FunctionName}

    def test_definitions_use_tool_format(self) -> None:
        definitions = FunctionRegistry().get_function_definitions()
        assert all(d["type"] == "function" for d in definitions)
        assert FunctionRegistry().required_parameters("search_sessions_by_topic") == ["topic"]


class TestFunctionExecutor:
    async def test_current_sessions(self, executor) -> None:
        result = await executor.execute(FunctionName.GET_CURRENT_SESSIONS, FunctionParameters())
        assert result.success
        assert [row["title"] for row in result.data] == ["Leading Through Change"]
        assert result.message == "Found 1 current session(s)"

    async def test_upcoming_sessions_respects_limit(self, executor) -> None:
        result = await executor.execute(FunctionName.GET_UPCOMING_SESSIONS, FunctionParameters(limit=1))
        assert result.count == 1
        assert result.data[0]["title"] == "AI Pair Programming in Practice"

    async def test_search_by_topic_rows_carry_speaker(self, executor) -> None:
        result = await executor.execute(FunctionName.SEARCH_BY_TOPIC, FunctionParameters(topic="leadership"))
        assert result.count == 2
        row = result.data[0]
        assert row["speaker"]["name"] == "Jason Lengstorf"
        assert row["formatted_time"] == "9:00 AM"
        assert row["is_sponsored"] is False

    async def test_missing_required_argument(self, executor) -> None:
        result = await executor.execute(FunctionName.SEARCH_BY_SPEAKER, FunctionParameters())
        assert result.success is False
        assert result.error == "Speaker name is required"
        assert result.data == []

    async def test_session_details_falls_back_to_speaker(self, executor, repository, monkeypatch) -> None:
        async def no_text_matches(query):
            return []

        monkeypatch.setattr(repository, "search_sessions", no_text_matches)
        result = await executor.execute(
            FunctionName.GET_SESSION_DETAILS, FunctionParameters(session_query="Charity")
        )
        assert [row["id"] for row in result.data] == ["s2"]

    async def test_full_schedule_for_tomorrow(self, executor) -> None:
        result = await executor.execute(FunctionName.GET_FULL_SCHEDULE, FunctionParameters(day="tomorrow"))
        assert [row["id"] for row in result.data] == ["s3"]
        assert result.message == "Conference schedule has 1 sessions total"

    async def test_unknown_function(self, executor) -> None:
        result = await executor.execute("order_pizza", FunctionParameters())
        assert result.success is False
        assert result.error == "Unknown function: order_pizza"

    async def test_repository_errors_become_failures(self, executor, repository, monkeypatch) -> None:
        async def broken(*args):
            raise ConnectionError("database unavailable")

        monkeypatch.setattr(repository, "get_sessions_by_type", broken)
        result = await executor.execute(FunctionName.SEARCH_BY_TYPE, FunctionParameters(session_type="demo"))
        assert result.success is False
        assert result.error == "database unavailable"


def test_format_time() -> None:
    from datetime import datetime

    assert format_time(datetime(2025, 10, 15, 14, 30)) == "2:30 PM"
    assert format_time(None) is None


class TestRequiredArguments:
    async def test_blank_required_argument_rejected(self, executor) -> None:
        result = await executor.execute(FunctionName.SEARCH_GENERAL, FunctionParameters(query=""))
        assert result.error == "Search query is required"

    async def test_required_arguments_follow_registry(self, repository, clock) -> None:
        registry = FunctionRegistry()
        definition = dict(registry.functions["get_full_schedule"])
        definition["parameters"] = {**definition["parameters"], "required": ["day"]}
        registry.register_function(definition)
        executor = FunctionExecutor(repository, registry=registry, clock=clock)

        result = await executor.execute(FunctionName.GET_FULL_SCHEDULE, FunctionParameters())
        assert result.success is False
        assert result.error == "day is required"

        result = await executor.execute(FunctionName.GET_FULL_SCHEDULE, FunctionParameters(day="all"))
        assert result.count == 3

    async def test_non_positive_limit_uses_default(self, executor) -> None:
        result = await executor.execute(FunctionName.GET_UPCOMING_SESSIONS, FunctionParameters(limit=-1))
        assert [row["id"] for row in result.data] == ["s2", "s3"]
