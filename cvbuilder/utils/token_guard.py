from typing import Optional

from ..core.config import settings

TRUNCATION_NOTE = "\n\n[Message truncated: it exceeded the maximum length]"


def enforce_payload_limit(text: str, max_chars: Optional[int] = None) -> str:
    """Cap what is sent to the assistant; the stored transcript keeps the full text."""
    limit = max_chars or settings.max_message_chars
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_NOTE
