from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..schemas.session import ChatMessage, StageStatus
from ..services.pdf_renderer import format_item_meta

# Progress percentage shown for each workflow stage
STAGE_PROGRESS = {
    StageStatus.STARTED: 0,
    StageStatus.COLLECTING_PROFESSION: 15,
    StageStatus.SELECTING_SECTIONS: 30,
    StageStatus.COLLECTING_DETAILS: 60,
    StageStatus.REVIEW: 85,
    StageStatus.COMPLETED: 100,
}

PROGRESS_STEPS = [
    ("Profession", 15),
    ("Sections", 30),
    ("Details", 60),
    ("Review", 85),
    ("Complete", 100),
]


def to_chatbot_messages(messages: Iterable[ChatMessage]) -> List[Dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]


def progress_html(status: Optional[StageStatus]) -> str:
    progress = STAGE_PROGRESS.get(status, 0) if status else 0
    steps = "".join(
        f'<span class="step{" done" if progress >= threshold else ""}">{name}</span>'
        for name, threshold in PROGRESS_STEPS
    )
    return f"""
    <div class="progress-card">
        <div class="progress-label">CV Creation Progress</div>
        <div class="progress-bar"><div class="progress-fill" style="width: {progress}%"></div></div>
        <div class="progress-steps">{steps}</div>
    </div>
    """


def cv_preview_markdown(cv_data: Optional[Mapping[str, Any]]) -> str:
    """Markdown preview of the CV shown next to the chat."""
    if not cv_data:
        return "Your CV preview will appear here once the assistant has generated it..."

    info = cv_data.get("personalInfo") or {}
    lines = [f"# {info.get('fullName', '')}"]
    if info.get("title"):
        lines.append(f"*{info['title']}*")

    contact = [str(info[k]) for k in ("email", "phone", "location") if info.get(k)]
    if contact:
        lines.append(" · ".join(contact))

    for section in cv_data.get("sections") or []:
        if not isinstance(section, Mapping):
            continue
        lines.append(f"\n## {section.get('title', '')}")
        content = section.get("content")
        if isinstance(content, str):
            lines.append(content)
            continue
        for item in content or []:
            if not isinstance(item, Mapping):
                lines.append(f"- {item}")
                continue
            if item.get("title"):
                lines.append(f"**{item['title']}**")
            meta = format_item_meta(item)
            if meta:
                lines.append(f"*{meta}*")
            if item.get("description"):
                lines.append(str(item["description"]))
            for bullet in item.get("items") or []:
                lines.append(f"- {bullet}")
            if item.get("skills"):
                lines.append(", ".join(str(s) for s in item["skills"]))
            lines.append("")

    return "\n".join(lines).strip()
