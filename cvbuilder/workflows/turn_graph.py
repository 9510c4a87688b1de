from typing import Any, List, Optional, TypedDict

from langgraph.graph import StateGraph, END

from ..schemas.cv import CVData
from ..schemas.session import StageStatus
from ..services.assistant_gateway import AssistantGateway
from ..services.stage_classifier import StageClassifier


class TurnState(TypedDict, total=False):
    # inputs
    credential: str
    thread_id: str
    assistant_id: str
    user_text: str
    cancel_event: Any
    # gateway output
    assistant_message: Optional[str]
    cv_data: Optional[CVData]
    completed: bool
    # inferred session changes (None = keep what the session has)
    status: Optional[StageStatus]
    profession: Optional[str]
    sections: Optional[List[str]]


def build_turn_graph(gateway: AssistantGateway, classifier: StageClassifier):
    """
    One conversational turn: ask the assistant, then either take the CV it
    produced or classify its reply into a workflow stage.
    """

    ### Nodes ###

    def run_assistant_node(state: TurnState) -> TurnState:
        result = gateway.run_turn(
            state["credential"],
            state["thread_id"],
            state["assistant_id"],
            state["user_text"],
            cancel_event=state.get("cancel_event"),
        )
        return {
            "assistant_message": result.assistant_message,
            "cv_data": result.cv_data,
            "completed": result.completed,
        }

    def route_after_assistant(state: TurnState) -> str:
        if state.get("cv_data") is not None:
            return "apply_cv_data"
        return "classify_reply"

    def apply_cv_data_node(state: TurnState) -> TurnState:
        # The tool call is the terminal signal; the classifier is not consulted
        return {
            "status": StageStatus.COMPLETED,
            "completed": True,
            "profession": None,
            "sections": None,
        }

    def classify_reply_node(state: TurnState) -> TurnState:
        classification = classifier.classify(state.get("assistant_message") or "")
        return {
            "status": classification.status,
            "profession": classification.profession,
            "sections": classification.sections,
        }

    ### Graph Construction ###

    workflow = StateGraph(TurnState)

    workflow.add_node("run_assistant", run_assistant_node)
    workflow.add_node("apply_cv_data", apply_cv_data_node)
    workflow.add_node("classify_reply", classify_reply_node)

    workflow.set_entry_point("run_assistant")

    workflow.add_conditional_edges(
        "run_assistant",
        route_after_assistant,
        {
            "apply_cv_data": "apply_cv_data",
            "classify_reply": "classify_reply",
        }
    )

    workflow.add_edge("apply_cv_data", END)
    workflow.add_edge("classify_reply", END)

    return workflow.compile()
