from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from cvbuilder.services.assistant_gateway import TurnResult
from cvbuilder.services.conversation_service import ConversationService
from cvbuilder.services.session_store import InMemorySessionStore


def make_run(status, run_id="run_1", tool_calls=None, error_message=None):
    required_action = None
    if tool_calls is not None:
        required_action = SimpleNamespace(
            submit_tool_outputs=SimpleNamespace(tool_calls=tool_calls)
        )
    last_error = SimpleNamespace(message=error_message) if error_message else None
    return SimpleNamespace(
        id=run_id,
        status=status,
        required_action=required_action,
        last_error=last_error,
    )


def make_tool_call(name, arguments, call_id="call_1"):
    return SimpleNamespace(
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def make_message(role, *texts, extra_blocks=()):
    blocks = [
        SimpleNamespace(type="text", text=SimpleNamespace(value=t, annotations=[]))
        for t in texts
    ]
    blocks.extend(extra_blocks)
    return SimpleNamespace(role=role, content=blocks)


@pytest.fixture
def openai_client():
    """MagicMock standing in for openai.OpenAI with sensible defaults."""
    client = MagicMock()
    client.beta.assistants.create.return_value = SimpleNamespace(id="asst_1")
    client.beta.threads.create.return_value = SimpleNamespace(id="thread_1")
    client.beta.threads.runs.create.return_value = SimpleNamespace(id="run_1", status="queued")
    client.beta.threads.messages.list.return_value = SimpleNamespace(data=[])
    return client


class ScriptedGateway:
    """Gateway double returning pre-baked TurnResults in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.turns = []
        self.created = []

    def create_assistant(self, credential):
        self.created.append(("assistant", credential))
        return "asst_1"

    def create_thread(self, credential):
        self.created.append(("thread", credential))
        return "thread_1"

    def run_turn(self, credential, thread_id, assistant_id, user_text, cancel_event=None):
        self.turns.append((credential, thread_id, assistant_id, user_text))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, str):
            return TurnResult(assistant_message=result)
        return result


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def make_service(store):
    def _make(*results):
        gateway = ScriptedGateway(*results)
        return ConversationService(store=store, gateway=gateway), gateway
    return _make
