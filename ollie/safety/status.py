"""
Safety status classification for the chat safety indicator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List


class SafetyStatus(str, Enum):
    """Tri-state safety classification."""
    SAFE = "safe"
    INFO = "info"
    WARNING = "warning"


HIGH_SEVERITY_FLAGS = frozenset({
    "profanity",
    "pii_detected",
    "inappropriate_topic",
    "manipulation_attempt",
})

FLAG_LABELS = {
    "profanity": "Language filtered",
    "pii_detected": "Personal info protected",
    "inappropriate_topic": "Topic redirected",
    "manipulation_attempt": "Safety check",
    "inappropriate_content": "Content filtered",
    "external_links": "Links removed",
    "message_too_long": "Message length",
    "low_educational_value": "Enhanced response",
    "language_too_complex": "Simplified language",
}

STATUS_LABELS = {
    SafetyStatus.SAFE: "Safe Mode",
    SafetyStatus.WARNING: "Content Filtered",
    SafetyStatus.INFO: "Safety Active",
}


@dataclass(frozen=True)
class FlagLabel:
    code: str
    label: str


@dataclass(frozen=True)
class SafetyReport:
    status: SafetyStatus
    label: str
    flags: List[FlagLabel] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.flags)


def flag_label(code: str) -> str:
    """Human-readable label; unknown codes get underscores replaced by spaces."""
    return FLAG_LABELS.get(code, code.replace("_", " "))


def classify(flags: Iterable[str]) -> SafetyStatus:
    flags = list(flags)
    if not flags:
        return SafetyStatus.SAFE
    if any(f in HIGH_SEVERITY_FLAGS for f in flags):
        return SafetyStatus.WARNING
    return SafetyStatus.INFO


def resolve_safety_status(flags: Iterable[str]) -> SafetyReport:
    """Classify flags and label each one, keeping input order for display."""
    flags = list(flags)
    status = classify(flags)
    return SafetyReport(
        status=status,
        label=STATUS_LABELS[status],
        flags=[FlagLabel(code=f, label=flag_label(f)) for f in flags],
    )
