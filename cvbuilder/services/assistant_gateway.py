"""
Gateway to the OpenAI Assistants API.

Creates the CV assistant and its threads, and drives one conversational turn:
post the user message, start a run and poll it until it finishes, fails, or
asks for the `generate_cv` tool. Polling is bounded by a wall-clock deadline
and a maximum number of polls, and the wait between polls can be cut short
through a cancel event.
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from openai import OpenAIError

from ..core.config import settings
from ..core.errors import (
    AssistantGatewayError,
    AssistantRunFailed,
    TurnCancelled,
    TurnTimeout,
)
from ..core.openai_client import get_openai_client
from ..core.prompts import (
    ASSISTANT_NAME,
    CV_GENERATED_MESSAGE,
    GENERATE_CV_TOOL,
    GENERATE_CV_TOOL_NAME,
    SYSTEM_PROMPT,
)
from ..schemas.cv import CVData

logger = logging.getLogger(__name__)

PENDING_STATUSES = ("queued", "in_progress", "cancelling")
FAILED_STATUSES = ("cancelled", "expired", "incomplete")
MESSAGE_LIST_LIMIT = 100


@dataclass(frozen=True)
class TurnResult:
    assistant_message: Optional[str]
    cv_data: Optional[CVData] = None
    completed: bool = False


class AssistantGateway:

    def __init__(
        self,
        model: Optional[str] = None,
        *,
        poll_interval_s: Optional[float] = None,
        run_timeout_s: Optional[float] = None,
        max_polls: Optional[int] = None,
        client_factory: Callable[[str], Any] = get_openai_client,
        # Testability: allow injecting sleep + clock
        _sleep: Callable[[float], None] = time.sleep,
        _time: Callable[[], float] = time.monotonic,
    ):
        self.model = model or settings.openai_model
        self.poll_interval_s = (
            settings.poll_interval_s if poll_interval_s is None else float(poll_interval_s)
        )
        self.run_timeout_s = (
            settings.run_timeout_s if run_timeout_s is None else float(run_timeout_s)
        )
        self.max_polls = settings.max_polls if max_polls is None else int(max_polls)
        self._client_factory = client_factory
        self._sleep = _sleep
        self._time = _time

    # --------------------------
    # Setup
    # --------------------------

    def create_assistant(self, credential: str) -> str:
        client = self._client_factory(credential)
        try:
            assistant = client.beta.assistants.create(
                name=ASSISTANT_NAME,
                instructions=SYSTEM_PROMPT,
                model=self.model,
                tools=[GENERATE_CV_TOOL],
            )
        except OpenAIError as e:
            raise AssistantGatewayError(f"Create assistant failed: {e}") from e

        assistant_id = getattr(assistant, "id", None)
        if not assistant_id:
            raise AssistantGatewayError("Create assistant returned no assistant id")
        logger.info(f"[GATEWAY] Created assistant {assistant_id}")
        return assistant_id

    def create_thread(self, credential: str) -> str:
        client = self._client_factory(credential)
        try:
            thread = client.beta.threads.create()
        except OpenAIError as e:
            raise AssistantGatewayError(f"Create thread failed: {e}") from e

        thread_id = getattr(thread, "id", None)
        if not thread_id:
            raise AssistantGatewayError("Create thread returned no thread id")
        logger.info(f"[GATEWAY] Created thread {thread_id}")
        return thread_id

    # --------------------------
    # Turn
    # --------------------------

    def run_turn(
        self,
        credential: str,
        thread_id: str,
        assistant_id: str,
        user_text: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> TurnResult:
        client = self._client_factory(credential)
        try:
            client.beta.threads.messages.create(
                thread_id=thread_id,
                role="user",
                content=user_text,
            )
            run = client.beta.threads.runs.create(
                thread_id=thread_id,
                assistant_id=assistant_id,
            )
            run_id = run.id

            result = self._poll_run(client, thread_id, run_id, cancel_event)
            if result is not None:
                return result

            messages = client.beta.threads.messages.list(
                thread_id=thread_id,
                order="asc",
                limit=MESSAGE_LIST_LIMIT,
            )
        except OpenAIError as e:
            raise AssistantGatewayError(f"Assistant turn failed: {e}") from e

        return TurnResult(assistant_message=last_assistant_text(messages))

    def _poll_run(
        self,
        client: Any,
        thread_id: str,
        run_id: str,
        cancel_event: Optional[threading.Event],
    ) -> Optional[TurnResult]:
        """
        Poll until the run completes. Returns a TurnResult only when the run
        short-circuits on `generate_cv`; None means "completed normally".
        """
        deadline = self._time() + self.run_timeout_s
        polls = 0

        run = client.beta.threads.runs.retrieve(thread_id=thread_id, run_id=run_id)

        while True:
            status = getattr(run, "status", None)

            if status == "completed":
                return None

            if status == "failed":
                last_error = getattr(run, "last_error", None)
                message = getattr(last_error, "message", None) or "unknown error"
                raise AssistantRunFailed(f"Assistant run failed: {message}")

            if status in FAILED_STATUSES:
                raise AssistantRunFailed(f"Assistant run ended with status: {status}")

            if status == "requires_action":
                result = self._handle_required_action(client, thread_id, run_id, run)
                if result is not None:
                    return result

            polls += 1
            if polls > self.max_polls or self._time() >= deadline:
                self._cancel_run(client, thread_id, run_id)
                raise TurnTimeout(
                    f"Assistant run {run_id} still '{status}' after {polls} polls"
                )

            try:
                self._wait(cancel_event)
            except TurnCancelled:
                self._cancel_run(client, thread_id, run_id)
                raise
            run = client.beta.threads.runs.retrieve(thread_id=thread_id, run_id=run_id)

    def _cancel_run(self, client: Any, thread_id: str, run_id: str) -> None:
        """Best effort: an active run blocks every later message on the thread."""
        try:
            client.beta.threads.runs.cancel(thread_id=thread_id, run_id=run_id)
        except OpenAIError as e:
            logger.warning(f"[GATEWAY] Could not cancel run {run_id}: {e}")
            return
        logger.info(f"[GATEWAY] Cancelled run {run_id}")

    def _wait(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            self._sleep(self.poll_interval_s)
            return
        if cancel_event.wait(self.poll_interval_s):
            raise TurnCancelled("Assistant turn cancelled while polling")

    def _handle_required_action(
        self,
        client: Any,
        thread_id: str,
        run_id: str,
        run: Any,
    ) -> Optional[TurnResult]:
        required_action = getattr(run, "required_action", None)
        submit = getattr(required_action, "submit_tool_outputs", None)
        tool_calls = list(getattr(submit, "tool_calls", None) or [])
        if not tool_calls:
            return None

        cv_data = None
        parse_error = None
        tool_outputs: List[Dict[str, str]] = []
        for tool_call in tool_calls:
            name = tool_call.function.name
            if name == GENERATE_CV_TOOL_NAME and cv_data is None and parse_error is None:
                try:
                    cv_data = parse_tool_arguments(tool_call.function.arguments)
                    output = {"success": True}
                except AssistantGatewayError as e:
                    parse_error = e
                    output = {"success": False, "error": str(e)}
            elif name == GENERATE_CV_TOOL_NAME:
                output = {"success": True}
            else:
                logger.warning(f"[GATEWAY] Ignoring unknown tool call '{name}'")
                output = {"success": False, "error": f"Unknown tool: {name}"}
            tool_outputs.append({
                "tool_call_id": tool_call.id,
                "output": json.dumps(output),
            })

        client.beta.threads.runs.submit_tool_outputs(
            thread_id=thread_id,
            run_id=run_id,
            tool_outputs=tool_outputs,
        )

        # Outputs go out first so the run is not left waiting on this call
        if parse_error is not None:
            raise parse_error

        if cv_data is None:
            return None

        logger.info(f"[GATEWAY] Run {run_id} produced CV data")
        return TurnResult(
            assistant_message=CV_GENERATED_MESSAGE,
            cv_data=cv_data,
            completed=True,
        )


def parse_tool_arguments(arguments: str) -> CVData:
    try:
        data = json.loads(arguments or "")
    except json.JSONDecodeError as e:
        raise AssistantGatewayError(f"generate_cv arguments are not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise AssistantGatewayError("generate_cv arguments must be a JSON object")
    return data


def message_text(message: Any) -> str:
    """Join the text blocks of one thread message; other block types are dropped."""
    parts = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) != "text":
            continue
        text_obj = getattr(block, "text", None)
        value = getattr(text_obj, "value", None)
        if isinstance(value, str):
            parts.append(value)
    return "\n".join(parts)


def last_assistant_text(messages: Any) -> Optional[str]:
    """Last non-blank assistant message of an ascending message page."""
    texts = [
        message_text(m)
        for m in getattr(messages, "data", None) or []
        if getattr(m, "role", None) == "assistant"
    ]
    texts = [t for t in texts if t.strip()]
    return texts[-1] if texts else None
