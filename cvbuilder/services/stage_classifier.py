"""
Infers where a conversation stands in the CV workflow from the assistant's
latest reply.

The rules are plain regex heuristics. They are evaluated in order against
the same text and a later rule overwrites the status set by an earlier one,
so a reply asking for the profession *and* the full name lands on
`collecting_details`. A reply matching nothing yields ``status=None`` and the
caller keeps whatever status the session already had.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol

from ..schemas.session import StageStatus

_APOS = "['’]"

PROFESSION_QUESTION_RE = re.compile(
    rf"what is your profession|what do you do for a living|what{_APOS}s your profession",
    re.IGNORECASE,
)

PROFESSION_MENTION_RE = re.compile(
    r"based on your profession as|for your profession as|as a|profession in|\bam an?\s",
    re.IGNORECASE,
)

# Capture groups are tried in order; the first one that participated wins.
PROFESSION_EXTRACT_RE = re.compile(
    r"profession as an? ([^,.\n]+)"
    r"|as an? ([^,.\n]+)"
    r"|profession in ([^,.\n]+)"
    r"|\bam an? ([^,.\n]+)",
    re.IGNORECASE,
)

SECTION_SUGGESTION_RE = re.compile(
    r"suggest|recommend|include these sections|following sections",
    re.IGNORECASE,
)

BULLET_LINE_RE = re.compile(r"^\s*[-•*]\s+")

DETAILS_RE = re.compile(
    r"full name|contact information|work experience|provide details|tell me about|could you share",
    re.IGNORECASE,
)

REVIEW_RE = re.compile(
    rf"review|looks good|summary of|here{_APOS}s what i{_APOS}ve|here is what i{_APOS}ve"
    rf"|final cv|anything you{_APOS}d like to change",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class StageClassification:
    status: Optional[StageStatus] = None
    profession: Optional[str] = None
    sections: Optional[List[str]] = None


class StageClassifier(Protocol):
    def classify(self, assistant_message: str) -> StageClassification:
        ...


def extract_profession(text: str) -> Optional[str]:
    match = PROFESSION_EXTRACT_RE.search(text)
    if not match:
        return None
    for group in match.groups():
        if group is not None:
            return group.strip() or None
    return None


def extract_bullet_sections(text: str) -> Optional[List[str]]:
    """Lines starting with -, • or * become sections. Numbered lists are ignored."""
    sections = [
        BULLET_LINE_RE.sub("", line).strip()
        for line in text.split("\n")
        if BULLET_LINE_RE.match(line)
    ]
    sections = [s for s in sections if s]
    return sections or None


class RegexStageClassifier:

    def classify(self, assistant_message: str) -> StageClassification:
        text = assistant_message or ""
        status = None
        profession = None
        sections = None

        if PROFESSION_QUESTION_RE.search(text):
            status = StageStatus.COLLECTING_PROFESSION

        if PROFESSION_MENTION_RE.search(text):
            profession = extract_profession(text)

            if SECTION_SUGGESTION_RE.search(text):
                status = StageStatus.SELECTING_SECTIONS
                sections = extract_bullet_sections(text)

        if DETAILS_RE.search(text):
            status = StageStatus.COLLECTING_DETAILS

        if REVIEW_RE.search(text):
            status = StageStatus.REVIEW

        return StageClassification(
            status=status,
            profession=profession,
            sections=sections,
        )


default_classifier = RegexStageClassifier()


def classify(assistant_message: str) -> StageClassification:
    return default_classifier.classify(assistant_message)
