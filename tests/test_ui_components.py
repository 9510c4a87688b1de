from cvbuilder.schemas.session import ChatMessage, StageStatus
from cvbuilder.ui.components import cv_preview_markdown, progress_html, to_chatbot_messages


class TestProgress:

    def test_width_follows_stage(self):
        assert "width: 60%" in progress_html(StageStatus.COLLECTING_DETAILS)
        assert "width: 100%" in progress_html(StageStatus.COMPLETED)

    def test_unknown_stage_is_zero(self):
        assert "width: 0%" in progress_html(None)

    def test_steps_marked_done(self):
        html = progress_html(StageStatus.SELECTING_SECTIONS)
        assert '<span class="step done">Sections</span>' in html
        assert '<span class="step">Details</span>' in html


class TestChatbotMessages:

    def test_roles_and_content(self):
        messages = [
            ChatMessage(role="user", content="hi"),
            ChatMessage(role="assistant", content="What is your profession?"),
        ]
        assert to_chatbot_messages(messages) == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "What is your profession?"},
        ]


class TestPreview:

    def test_placeholder_without_cv(self):
        assert "preview will appear" in cv_preview_markdown(None)

    def test_sections_rendered(self):
        md = cv_preview_markdown({
            "personalInfo": {"fullName": "Jane Doe", "email": "jane@example.com"},
            "sections": [
                {"title": "Experience", "content": [
                    {"title": "Engineer", "organization": "Acme", "period": "2021", "items": ["Shipped v2"]},
                ]},
                {"title": "Skills", "content": ["Go", "Rust"]},
            ],
        })
        assert md.startswith("# Jane Doe")
        assert "jane@example.com" in md
        assert "*Acme | 2021*" in md
        assert "- Shipped v2" in md
        assert md.index("- Go") < md.index("- Rust")
