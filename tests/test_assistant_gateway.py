"""Tests for the Assistants API gateway: setup calls, run polling and tool short-circuit."""

import json
import threading
from types import SimpleNamespace

import httpx
import openai
import pytest

from cvbuilder.core.errors import (
    AssistantGatewayError,
    AssistantRunFailed,
    TurnCancelled,
    TurnTimeout,
)
from cvbuilder.core.prompts import CV_GENERATED_MESSAGE, GENERATE_CV_TOOL, SYSTEM_PROMPT
from cvbuilder.services.assistant_gateway import (
    AssistantGateway,
    last_assistant_text,
    message_text,
)
from conftest import make_message, make_run, make_tool_call


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(openai_client, clock):
    return AssistantGateway(
        model="gpt-4o",
        poll_interval_s=1.0,
        run_timeout_s=30.0,
        max_polls=100,
        client_factory=lambda key: openai_client,
        _sleep=clock.sleep,
        _time=clock.time,
    )


def _connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/threads"))


class TestSetup:

    def test_create_assistant_registers_prompt_and_single_tool(self, gateway, openai_client):
        assert gateway.create_assistant("sk-test") == "asst_1"

        kwargs = openai_client.beta.assistants.create.call_args.kwargs
        assert kwargs["instructions"] == SYSTEM_PROMPT
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["tools"] == [GENERATE_CV_TOOL]

    def test_tool_schema_requires_full_name_and_sections(self):
        params = GENERATE_CV_TOOL["function"]["parameters"]
        assert params["properties"]["personalInfo"]["required"] == ["fullName"]
        assert params["required"] == ["personalInfo", "sections"]
        assert params["properties"]["sections"]["items"]["required"] == ["title", "content"]

    def test_create_thread(self, gateway):
        assert gateway.create_thread("sk-test") == "thread_1"

    def test_client_built_from_credential(self, openai_client, clock):
        seen = []
        gw = AssistantGateway(
            client_factory=lambda key: seen.append(key) or openai_client,
            _sleep=clock.sleep,
            _time=clock.time,
        )
        gw.create_thread("sk-user")
        assert seen == ["sk-user"]

    def test_transport_error_is_wrapped(self, gateway, openai_client):
        openai_client.beta.assistants.create.side_effect = _connection_error()
        with pytest.raises(AssistantGatewayError, match="Create assistant failed"):
            gateway.create_assistant("sk-test")


class TestRunTurnCompletion:

    def test_returns_last_non_blank_assistant_message(self, gateway, openai_client, clock):
        openai_client.beta.threads.runs.retrieve.side_effect = [
            make_run("queued"),
            make_run("in_progress"),
            make_run("completed"),
        ]
        openai_client.beta.threads.messages.list.return_value = SimpleNamespace(data=[
            make_message("user", "hello"),
            make_message("assistant", "What is your profession?"),
            make_message("user", "engineer"),
            make_message("assistant", "Great,", "here are some sections"),
            make_message("assistant", "   "),
        ])

        result = gateway.run_turn("sk-test", "thread_1", "asst_1", "engineer")

        assert result.assistant_message == "Great,\nhere are some sections"
        assert result.cv_data is None
        assert result.completed is False
        assert clock.sleeps == [1.0, 1.0]

        openai_client.beta.threads.messages.create.assert_called_once_with(
            thread_id="thread_1", role="user", content="engineer"
        )
        openai_client.beta.threads.runs.create.assert_called_once_with(
            thread_id="thread_1", assistant_id="asst_1"
        )
        openai_client.beta.threads.messages.list.assert_called_once_with(
            thread_id="thread_1", order="asc", limit=100
        )

    def test_no_assistant_message(self, gateway, openai_client):
        openai_client.beta.threads.runs.retrieve.return_value = make_run("completed")
        result = gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")
        assert result.assistant_message is None


class TestRunTurnToolCall:

    def test_generate_cv_short_circuits(self, gateway, openai_client, clock):
        args = {"personalInfo": {"fullName": "Jane Doe"}, "sections": []}
        openai_client.beta.threads.runs.retrieve.side_effect = [
            make_run("in_progress"),
            make_run("requires_action", tool_calls=[make_tool_call("generate_cv", json.dumps(args))]),
        ]

        result = gateway.run_turn("sk-test", "thread_1", "asst_1", "that's all")

        assert result.completed is True
        assert result.cv_data == {"personalInfo": {"fullName": "Jane Doe"}, "sections": []}
        assert result.assistant_message == CV_GENERATED_MESSAGE
        openai_client.beta.threads.messages.list.assert_not_called()
        assert openai_client.beta.threads.runs.retrieve.call_count == 2
        assert clock.sleeps == [1.0]

        submit = openai_client.beta.threads.runs.submit_tool_outputs.call_args.kwargs
        assert submit["run_id"] == "run_1"
        assert submit["tool_outputs"] == [
            {"tool_call_id": "call_1", "output": json.dumps({"success": True})}
        ]

    def test_partial_cv_data_is_kept_as_is(self, gateway, openai_client):
        args = {"personalInfo": {"fullName": "A B", "phone": 123}, "sections": [{"title": "X"}]}
        openai_client.beta.threads.runs.retrieve.return_value = make_run(
            "requires_action", tool_calls=[make_tool_call("generate_cv", json.dumps(args))]
        )
        result = gateway.run_turn("sk-test", "thread_1", "asst_1", "done")
        assert result.cv_data == args

    def test_unknown_tool_is_acknowledged_and_polling_continues(self, gateway, openai_client):
        openai_client.beta.threads.runs.retrieve.side_effect = [
            make_run("requires_action", tool_calls=[make_tool_call("lookup", "{}", call_id="call_x")]),
            make_run("completed"),
        ]
        openai_client.beta.threads.messages.list.return_value = SimpleNamespace(
            data=[make_message("assistant", "Could you share your full name?")]
        )

        result = gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")

        assert result.completed is False
        assert result.assistant_message == "Could you share your full name?"
        outputs = openai_client.beta.threads.runs.submit_tool_outputs.call_args.kwargs["tool_outputs"]
        assert outputs[0]["tool_call_id"] == "call_x"
        assert json.loads(outputs[0]["output"])["success"] is False

    def test_invalid_tool_json(self, gateway, openai_client):
        openai_client.beta.threads.runs.retrieve.return_value = make_run(
            "requires_action", tool_calls=[make_tool_call("generate_cv", "{not json")]
        )
        with pytest.raises(AssistantGatewayError, match="not valid JSON"):
            gateway.run_turn("sk-test", "thread_1", "asst_1", "done")

        # the run is answered so it does not stay in requires_action
        outputs = openai_client.beta.threads.runs.submit_tool_outputs.call_args.kwargs["tool_outputs"]
        assert outputs[0]["tool_call_id"] == "call_1"
        assert json.loads(outputs[0]["output"])["success"] is False


class TestRunTurnFailures:

    def test_failed_run_carries_upstream_message(self, gateway, openai_client):
        openai_client.beta.threads.runs.retrieve.return_value = make_run(
            "failed", error_message="Rate limit reached"
        )
        with pytest.raises(AssistantRunFailed, match="Rate limit reached"):
            gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")

    @pytest.mark.parametrize("status", ["cancelled", "expired", "incomplete"])
    def test_other_terminal_statuses_fail(self, gateway, openai_client, status):
        openai_client.beta.threads.runs.retrieve.return_value = make_run(status)
        with pytest.raises(AssistantRunFailed, match=status):
            gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")

    def test_run_failed_is_a_gateway_error(self):
        assert issubclass(AssistantRunFailed, AssistantGatewayError)

    def test_deadline_exceeded(self, gateway, openai_client, clock):
        openai_client.beta.threads.runs.retrieve.return_value = make_run("in_progress")
        with pytest.raises(TurnTimeout):
            gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")
        assert clock.now == 30.0
        openai_client.beta.threads.messages.list.assert_not_called()
        openai_client.beta.threads.runs.cancel.assert_called_once_with(
            thread_id="thread_1", run_id="run_1"
        )

    def test_max_polls_exceeded(self, openai_client, clock):
        gw = AssistantGateway(
            poll_interval_s=0.01,
            run_timeout_s=10_000,
            max_polls=3,
            client_factory=lambda key: openai_client,
            _sleep=clock.sleep,
            _time=clock.time,
        )
        openai_client.beta.threads.runs.retrieve.return_value = make_run("queued")
        with pytest.raises(TurnTimeout):
            gw.run_turn("sk-test", "thread_1", "asst_1", "hi")
        assert len(clock.sleeps) == 3

    def test_cancel_event_stops_polling(self, gateway, openai_client):
        openai_client.beta.threads.runs.retrieve.return_value = make_run("in_progress")
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(TurnCancelled):
            gateway.run_turn("sk-test", "thread_1", "asst_1", "hi", cancel_event=cancel)
        openai_client.beta.threads.runs.cancel.assert_called_once_with(
            thread_id="thread_1", run_id="run_1"
        )

    def test_cancel_failure_still_times_out(self, gateway, openai_client):
        openai_client.beta.threads.runs.retrieve.return_value = make_run("in_progress")
        openai_client.beta.threads.runs.cancel.side_effect = _connection_error()
        with pytest.raises(TurnTimeout):
            gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")

    def test_completed_run_is_not_cancelled(self, gateway, openai_client):
        openai_client.beta.threads.runs.retrieve.return_value = make_run("completed")
        gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")
        openai_client.beta.threads.runs.cancel.assert_not_called()

    def test_transport_error_mid_turn(self, gateway, openai_client):
        openai_client.beta.threads.runs.create.side_effect = _connection_error()
        with pytest.raises(AssistantGatewayError, match="Assistant turn failed"):
            gateway.run_turn("sk-test", "thread_1", "asst_1", "hi")


class TestMessageFlattening:

    def test_non_text_blocks_are_dropped(self):
        image = SimpleNamespace(type="image_file", image_file=SimpleNamespace(file_id="f1"))
        msg = make_message("assistant", "Here you go", extra_blocks=[image])
        assert message_text(msg) == "Here you go"

    def test_last_assistant_text_ignores_user_messages(self):
        page = SimpleNamespace(data=[
            make_message("assistant", "first"),
            make_message("user", "second"),
        ])
        assert last_assistant_text(page) == "first"
