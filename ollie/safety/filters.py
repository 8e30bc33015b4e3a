"""
Content-safety filters for learner input and assistant output.
Produces the flag codes surfaced by the safety indicator.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern

from ollie.chat.models import AgeGroup
from ollie.shared.logging import get_logger

logger = get_logger(__name__)


SEVERITY_RANK = {"low": 0, "medium": 1, "high": 2}


@dataclass
class SafetyCheckResult:
    """Outcome of a safety check."""
    passed: bool
    flags: List[str] = field(default_factory=list)
    severity: str = "low"
    blocked_reason: Optional[str] = None


PROFANITY_WORDS = [
    "damn", "hell", "crap", "stupid", "idiot", "dumb", "shut up",
    "hate you",
]

INAPPROPRIATE_PATTERNS = [
    re.compile(r"\b(violence|violent|weapon|gun|knife|sword|murder|kill|blood|gore)\b", re.I),
    re.compile(r"\b(alcohol|beer|wine|drunk|drugs?|cigarettes?|vape|weed|marijuana)\b", re.I),
    re.compile(r"\b(dating|boyfriend|girlfriend|romance|kiss)\b", re.I),
    re.compile(r"\b(suicide|self-harm|hurt\s+myself|kill\s+myself)\b", re.I),
    re.compile(r"\b(racist|sexist)\b", re.I),
]

JAILBREAK_PATTERNS = [
    re.compile(r"ignore\s+(previous|all|your)\s+(instructions|rules|guidelines)", re.I),
    re.compile(r"pretend\s+(you\s+are|to\s+be|you're)", re.I),
    re.compile(r"forget\s+(what|everything|all)", re.I),
    re.compile(r"system\s+prompt", re.I),
    re.compile(r"developer\s+mode", re.I),
    re.compile(r"jailbreak", re.I),
    re.compile(r"bypass\s+(your|the)\s+(filter|safety|rules)", re.I),
]

PII_PATTERNS: Dict[str, Pattern] = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    "phone": re.compile(r"\b(\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b"),
    "address": re.compile(
        r"\b\d{1,5}\s[\w\s]{1,20}(street|st|road|rd|avenue|ave|lane|ln|drive|dr|court|ct|boulevard|blvd)\b",
        re.I
    ),
    "my_name_is": re.compile(r"my\s+name\s+is\s+[A-Z][a-z]+(\s+[A-Z][a-z]+)?"),
    "i_live_at": re.compile(r"i\s+live\s+(at|on)\s+.{5,50}", re.I),
    "my_school": re.compile(r"my\s+school\s+is\s+.{3,40}", re.I),
}

URL_PATTERN = re.compile(r"https?://[^\s]+", re.I)

BLOCKED_MESSAGES = {
    "profanity": "Let's use kind and friendly words when we talk! Can you try asking that in a different way?",
    "pii_detected": (
        "Oops! We should never share personal information like phone numbers, addresses, "
        "or full names. Let's keep that private and safe!"
    ),
    "inappropriate_topic": (
        "That's not something I can help with, but I'd love to help you learn something "
        "cool instead! What subject are you curious about?"
    ),
    "manipulation_attempt": (
        "Let's focus on learning together! I'm Ollie, your learning buddy. "
        "What would you like to study today?"
    ),
    "inappropriate_content": "I can't show you that, but let me find something better for you!",
    "external_links": "I'll explain it to you instead of sending you to another website!",
    "message_too_long": (
        "That's a really long message! Can you break it into smaller questions? "
        "I'd love to help you one step at a time."
    ),
    "language_too_complex": "Let me explain that in simpler words...",
}

DEFAULT_BLOCKED_MESSAGE = "Let's try a different question! I'm here to help you learn."


class SafetyFilters:
    """Layered keyword and pattern checks for a children's tutor."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or {}
        self.max_message_length = self.config.get("max_message_length", 1000)

        # Readability thresholds per age group
        self.complexity = {
            AgeGroup.YOUNG: {"max_avg_word_length": 5.5, "max_avg_sentence_length": 12},
            AgeGroup.OLDER: {"max_avg_word_length": 7.0, "max_avg_sentence_length": 20},
        }

    def validate_input(self, text: str, age_group: AgeGroup = AgeGroup.OLDER) -> SafetyCheckResult:
        """Check a learner message before it reaches the model."""
        flags: List[str] = []
        severity = "low"

        if self._has_profanity(text):
            flags.append("profanity")
            severity = self._raise(severity, "medium")

        if self.detect_pii(text):
            flags.append("pii_detected")
            severity = self._raise(severity, "high")

        if self._matches_any(text, INAPPROPRIATE_PATTERNS):
            flags.append("inappropriate_topic")
            severity = self._raise(severity, "high")

        if self._matches_any(text, JAILBREAK_PATTERNS):
            flags.append("manipulation_attempt")
            severity = self._raise(severity, "high")

        if len(text) > self.max_message_length:
            flags.append("message_too_long")

        return self._result(flags, severity)

    def validate_output(self, text: str, age_group: AgeGroup = AgeGroup.OLDER) -> SafetyCheckResult:
        """Check an assistant reply before it is shown."""
        flags: List[str] = []
        severity = "low"

        if self._has_profanity(text) or self._matches_any(text, INAPPROPRIATE_PATTERNS):
            flags.append("inappropriate_content")
            severity = self._raise(severity, "high")

        if URL_PATTERN.search(text):
            flags.append("external_links")
            severity = self._raise(severity, "medium")

        if not self._readable_for(text, age_group):
            flags.append("language_too_complex")

        return self._result(flags, severity)

    def detect_pii(self, text: str) -> List[str]:
        """Return the PII kinds found in text."""
        return [kind for kind, pattern in PII_PATTERNS.items() if pattern.search(text)]

    def sanitize_pii(self, text: str) -> str:
        for pattern in PII_PATTERNS.values():
            text = pattern.sub("[hidden]", text)
        return text

    def sanitize_output(self, text: str) -> str:
        text = URL_PATTERN.sub("[website removed]", text)
        return PII_PATTERNS["email"].sub("[email removed]", text)

    def blocked_message(self, flags: List[str]) -> str:
        """Child-friendly redirect for the first flag that has one."""
        for flag in flags:
            if flag in BLOCKED_MESSAGES:
                return BLOCKED_MESSAGES[flag]
        return DEFAULT_BLOCKED_MESSAGE

    def _result(self, flags: List[str], severity: str) -> SafetyCheckResult:
        passed = not flags or severity == "low"
        if not passed:
            logger.info("Safety check blocked content", extra={
                "action": "safety_blocked",
                "flags": ",".join(flags),
                "severity": severity
            })
        return SafetyCheckResult(
            passed=passed,
            flags=flags,
            severity=severity,
            blocked_reason=self.blocked_message(flags) if flags else None,
        )

    def _has_profanity(self, text: str) -> bool:
        lower = text.lower()
        return any(re.search(rf"\b{re.escape(word)}\b", lower) for word in PROFANITY_WORDS)

    def _matches_any(self, text: str, patterns: List[Pattern]) -> bool:
        return any(p.search(text) for p in patterns)

    def _readable_for(self, text: str, age_group: AgeGroup) -> bool:
        words = text.split()
        if not words:
            return True
        sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
        avg_word = sum(len(w) for w in words) / len(words)
        avg_sentence = len(words) / max(len(sentences), 1)
        limits = self.complexity[age_group]
        return (
            avg_word <= limits["max_avg_word_length"]
            and avg_sentence <= limits["max_avg_sentence_length"]
        )

    @staticmethod
    def _raise(current: str, new: str) -> str:
        return new if SEVERITY_RANK[new] > SEVERITY_RANK[current] else current
