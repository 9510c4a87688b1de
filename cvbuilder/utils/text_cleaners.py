import re
from xml.sax.saxutils import escape


def strip_markdown_bold(text: str) -> str:
    """
    Removes the **bold** markers the assistant sometimes leaves in collected
    answers. Single `*`, `_` and backticks are content (`_init_`, `C#`, `2 * 3`)
    and are kept as written.
    """
    return re.sub(r"\*\*(.+?)\*\*", r"\1", text)


def to_text(value) -> str:
    """Coerce any JSON scalar to a single-line-safe string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(to_text(v) for v in value if v is not None)
    if isinstance(value, dict):
        return ", ".join(to_text(v) for v in value.values() if v is not None)
    return str(value)


def to_paragraph_markup(value) -> str:
    """
    Prepare free text for a ReportLab Paragraph: strip markdown bold,
    escape the mini-markup characters and keep line breaks.
    """
    text = strip_markdown_bold(to_text(value)).strip()
    text = escape(text)
    return text.replace("\r\n", "\n").replace("\n", "<br/>")
