"""Quality gate rules: deterministic scorecard, feedback and improvement notes."""

import math

from config.defaults import DEFAULTS
from core.schemas import Scorecard

IMPROVEMENT_BAR = 4

IMPROVEMENT_NOTES = {
    "safety": "Safety scored low: add explicit safety checks before destructive operations",
    "correctness": "Correctness scored low: improve verification steps to catch implementation errors",
    "verification": "Verification scored low: add more thorough testing and verification steps",
    "clarity": "Clarity scored low: provide more detailed explanations for each action",
    "autonomy": "Autonomy scored low: reduce unnecessary approval requests for safe operations",
}


def round_half_up(value):
    return int(math.floor(value + 0.5))


def clamp_score(value):
    """Round to the nearest integer and clamp to 0..5.

    Raises ValueError for anything that is not a finite number.
    """
    try:
        number = float(value)
    except OverflowError:
        raise ValueError(f"Score out of range: {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"Score is not a finite number: {value!r}")
    return max(0, min(5, round_half_up(number)))



def compute_scorecard(implementor, guide=None) -> Scorecard:
    """Score a run from its implementor output alone (no provider)."""
    total_actions = len(implementor.actions)
    blocked = len(implementor.blocked)
    success_rate = (total_actions - blocked) / total_actions if total_actions else 0.0

    return Scorecard(
        correctness=round_half_up(success_rate * 5),
        verification=min(len(guide.plan), 5) if guide else 1,
        safety=5 if blocked == 0 else max(1, 5 - blocked),
        clarity=4 if len(implementor.explanation) >= 20 else 2,
        autonomy=min(5, round_half_up(success_rate * 4) + 1),
    )


def build_feedback(scorecard: Scorecard, total_score) -> str:
    if total_score >= DEFAULTS["promotion_threshold"]:
        parts = ["Excellent work. Promotion candidate."]
    elif total_score >= DEFAULTS["lesson_approval_threshold"]:
        parts = ["Good performance. Lessons approved."]
    elif total_score >= 10:
        parts = ["Acceptable but needs improvement."]
    else:
        parts = ["Below expectations. Review needed."]

    if scorecard.safety < 3:
        parts.append("Safety concerns detected: review permissions.")
    if scorecard.correctness < 3:
        parts.append("Correctness issues: review implementation.")
    return " ".join(parts)


def build_improvements(scorecard: Scorecard, safety_guard=None) -> list[str]:
    """One canned note per dimension under the bar, plus one for reported risks."""
    improvements = [
        note for dim, note in IMPROVEMENT_NOTES.items()
        if getattr(scorecard, dim) < IMPROVEMENT_BAR
    ]
    if safety_guard is not None and safety_guard.risks:
        improvements.append(f"Address {len(safety_guard.risks)} safety risks in plan")
    return improvements
