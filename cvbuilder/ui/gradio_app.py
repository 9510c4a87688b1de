import logging

import gradio as gr

from ..api.deps import get_conversation_service, get_pdf_service
from ..core.errors import CVBuilderError, CVNotReady
from .components import cv_preview_markdown, progress_html, to_chatbot_messages

logger = logging.getLogger(__name__)

KICKOFF_MESSAGE = "Hi! I'd like to create my CV."

custom_css = """
.gradio-container {
    font-family: 'Inter', sans-serif;
    max-width: 1200px !important;
    margin: auto !important;
}

.header {padding: 1rem; margin-bottom: 0.5rem;}
.header-title {font-size: 1.8rem;}

.progress-card {padding: 0.75rem 1rem; border-radius: 10px; border: 1px solid rgba(0,0,0,0.1);}
.progress-label {font-size: 0.85rem; font-weight: 600; margin-bottom: 0.4rem;}
.progress-bar {height: 10px; border-radius: 5px; background: #e5e7eb; overflow: hidden;}
.progress-fill {height: 100%; background: #6366f1;}
.progress-steps {display: flex; justify-content: space-between; font-size: 0.75rem; margin-top: 0.3rem; color: #6b7280;}
.progress-steps .done {color: #4f46e5; font-weight: 600;}

.chatbot {border-radius: 8px;}
"""


def _status_html(message: str, kind: str = "info") -> str:
    return f'<div class="status status-{kind}">{message}</div>'


def start_conversation(api_key: str, state: dict):
    """Create a session, start the assistant thread and send the kickoff message."""
    api_key = (api_key or "").strip()
    if not api_key:
        return [], progress_html(None), _status_html("Please enter a valid API key.", "error"), state

    service = get_conversation_service()
    try:
        session_id = state.get("session_id") or service.create_session()
        service.start_conversation(session_id, api_key)
        outcome = service.send_message(session_id, api_key, KICKOFF_MESSAGE)
    except CVBuilderError as e:
        logger.warning(f"[UI] Start failed: {e}")
        return [], progress_html(None), _status_html(e.client_message, "error"), state

    state = {"session_id": session_id, "api_key": api_key}
    return (
        to_chatbot_messages(outcome.messages),
        progress_html(outcome.status),
        _status_html("Conversation started", "success"),
        state,
    )


def send_message(message: str, state: dict):
    service = get_conversation_service()
    session_id = state.get("session_id")
    if not session_id:
        return "", [], progress_html(None), cv_preview_markdown(None), _status_html("Start a conversation first.", "error")

    if not (message or "").strip():
        session = service.get_session(session_id)
        return (
            "",
            to_chatbot_messages(service.get_messages(session_id)),
            progress_html(session.status),
            cv_preview_markdown(session.cv_data),
            _status_html("Type a message to continue."),
        )

    try:
        outcome = service.send_message(session_id, state["api_key"], message)
    except CVBuilderError as e:
        logger.warning(f"[UI] Message failed: {e}")
        session = service.get_session(session_id)
        return (
            message,
            to_chatbot_messages(service.get_messages(session_id)),
            progress_html(session.status),
            cv_preview_markdown(session.cv_data),
            _status_html(e.client_message, "error"),
        )

    status = _status_html("Your CV is ready to download.", "success") if outcome.completed else _status_html("Waiting for your answer")
    return (
        "",
        to_chatbot_messages(outcome.messages),
        progress_html(outcome.status),
        cv_preview_markdown(outcome.cv_data),
        status,
    )


def download_pdf(state: dict):
    session_id = state.get("session_id")
    if not session_id:
        return None, _status_html("Start a conversation first.", "error")

    try:
        path = get_pdf_service().write_session_pdf(session_id)
    except CVNotReady:
        return None, _status_html("The CV is not ready yet.", "error")
    except CVBuilderError as e:
        return None, _status_html(e.client_message, "error")

    return str(path), _status_html("PDF generated", "success")


with gr.Blocks(
    title="CV Builder",
    css=custom_css,
    theme=gr.themes.Default(primary_hue="indigo")
) as demo:

    session_state = gr.State({})

    with gr.Column(elem_classes=["header"]):
        gr.HTML("""
        <h1 class="header-title">CV Builder</h1>
        <p class="header-subtitle">Build a professional CV by chatting with an AI assistant</p>
        """)

    status_display = gr.HTML(_status_html("Enter your OpenAI API key to begin"))

    with gr.Row():
        api_key_input = gr.Textbox(
            label="OpenAI API Key",
            placeholder="sk-...",
            type="password",
            scale=4,
        )
        start_btn = gr.Button("Start", variant="primary", scale=1)

    progress_display = gr.HTML(progress_html(None))

    with gr.Row():
        with gr.Column(scale=2):
            chatbot = gr.Chatbot(
                value=[],
                type="messages",
                height=420,
                show_label=False,
                elem_classes=["chatbot"]
            )
            with gr.Row():
                message_input = gr.Textbox(
                    placeholder="Type your answer...",
                    show_label=False,
                    scale=4,
                )
                send_btn = gr.Button("Send", variant="primary", scale=1)

        with gr.Column(scale=1):
            cv_preview = gr.Markdown(cv_preview_markdown(None))
            pdf_btn = gr.Button("Generate PDF")
            pdf_file = gr.File(label="CV PDF", interactive=False)

    start_btn.click(
        fn=start_conversation,
        inputs=[api_key_input, session_state],
        outputs=[chatbot, progress_display, status_display, session_state],
    )

    for trigger in (send_btn.click, message_input.submit):
        trigger(
            fn=send_message,
            inputs=[message_input, session_state],
            outputs=[message_input, chatbot, progress_display, cv_preview, status_display],
        )

    pdf_btn.click(
        fn=download_pdf,
        inputs=[session_state],
        outputs=[pdf_file, status_display],
    )
