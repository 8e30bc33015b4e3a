"""
Structured summary display. Absent sections are omitted.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ollie.chat.models import Summary

EMPTY_SUMMARY_TEXT = "No summary available"


@dataclass(frozen=True)
class SummarySection:
    kind: str
    heading: str
    items: List[str] = field(default_factory=list)


def summary_sections(summary: Optional[Summary]) -> List[SummarySection]:
    if summary is None:
        return []

    sections = []
    if summary.title:
        sections.append(SummarySection("title", summary.title))
    if summary.overview:
        sections.append(SummarySection("overview", "Overview", [summary.overview]))
    if summary.key_points:
        sections.append(SummarySection(
            "key_points",
            "Key Points",
            [f"{i}. {point}" for i, point in enumerate(summary.key_points, start=1)],
        ))
    if summary.vocabulary:
        sections.append(SummarySection(
            "vocabulary",
            "Vocabulary",
            [f"{item.term}: {item.definition}" for item in summary.vocabulary],
        ))
    if summary.fun_facts:
        sections.append(SummarySection("fun_facts", "Fun Facts", list(summary.fun_facts)))
    if summary.takeaway:
        sections.append(SummarySection("takeaway", "Remember", [summary.takeaway]))
    return sections


def format_summary(summary: Optional[Summary]) -> str:
    """Plain-text rendering for the terminal."""
    sections = summary_sections(summary)
    if not sections:
        return EMPTY_SUMMARY_TEXT

    lines = []
    for section in sections:
        if section.kind == "title":
            lines.append(f"== {section.heading} ==")
            continue
        lines.append(f"{section.heading}:")
        lines.extend(f"  {item}" for item in section.items)
    return "\n".join(lines)
