"""User-facing rendering of rubric results and the share flow."""
import logging
from typing import List, Mapping

from maturagrader.models.rubric import MAX_POINTS, CriterionKind, RubricResult, percentage
from maturagrader.services.collaborators import Clipboard, NotificationKind, Notifier

logger = logging.getLogger(__name__)

SHARE_SUFFIX = " on my matura essay! Check yours on MaturaGrader."

CRITERION_LABELS: Mapping[CriterionKind, str] = {
    CriterionKind.FORMAL_REQUIREMENTS: "Formal requirements",
    CriterionKind.LITERARY_COMPETENCIES: "Literary competencies",
    CriterionKind.STRUCTURE: "Structure",
    CriterionKind.COHERENCE: "Coherence",
    CriterionKind.STYLE: "Style",
    CriterionKind.LANGUAGE: "Language",
    CriterionKind.SPELLING: "Spelling",
    CriterionKind.PUNCTUATION: "Punctuation",
}

TALLY_LABELS: Mapping[CriterionKind, str] = {
    CriterionKind.LITERARY_COMPETENCIES: "factual errors",
    CriterionKind.COHERENCE: "coherence errors",
    CriterionKind.LANGUAGE: "language errors",
    CriterionKind.SPELLING: "spelling errors",
    CriterionKind.PUNCTUATION: "punctuation errors",
}

REASON_LABELS: Mapping[str, str] = {
    "cardinal_error": "cardinal error",
    "missing_reading": "no reference to a required reading",
    "irrelevant": "off topic",
    "not_argumentative": "not argumentative",
}


def format_share_text(result: RubricResult) -> str:
    return f"{result.total_score}/{result.max_total_score} points{SHARE_SUFFIX}"


def format_summary(result: RubricResult) -> str:
    lines: List[str] = [
        f"Score: {result.total_score}/{result.max_total_score} ({percentage(result)}%)",
        "",
    ]

    for kind, criterion in result.criteria.items():
        line = f"  {CRITERION_LABELS[kind]:<22} {criterion.points}/{MAX_POINTS[kind]}"
        if criterion.error_count is not None and kind in TALLY_LABELS:
            line += f"  ({criterion.error_count} {TALLY_LABELS[kind]})"
        lines.append(line)

    reasons = result.criteria.formal_requirements.reasons.asserted()
    if reasons:
        lines.append("")
        lines.append("Formal requirements not met: " + ", ".join(REASON_LABELS[r] for r in reasons))
        if result.formal_requirements_conflict:
            lines.append("  (note: the formal-requirements point was still awarded)")

    if result.feedback:
        lines += ["", "Feedback:", f"  {result.feedback}"]
    if result.errors:
        lines += ["", "Errors:"] + [f"  {i}. {e}" for i, e in enumerate(result.errors, 1)]
    if result.suggestions:
        lines += ["", "Suggestions:"] + [f"  {i}. {s}" for i, s in enumerate(result.suggestions, 1)]

    return "\n".join(lines)


def share_result(result: RubricResult, clipboard: Clipboard, notifier: Notifier) -> bool:
    """Copy the share text; reports the outcome through the notifier only."""
    text = format_share_text(result)
    try:
        clipboard.copy(text)
    except Exception as exc:  # noqa: BLE001
        logger.warning(f"Clipboard copy failed: {exc}")
        notifier.notify(NotificationKind.SHARE_FAILED, "Could not copy the result.")
        return False

    notifier.notify(NotificationKind.SHARE_COPIED, "Result copied to the clipboard.")
    return True


def request_pdf_export(notifier: Notifier) -> None:
    notifier.notify(NotificationKind.FEATURE_UNAVAILABLE, "PDF download is not available yet.")
