"""Portfolio analysis: per-dimension averages and the weakest stages.

Read-only over the memory store. It reports where scores are low and which
stage is most likely responsible; it never changes code or state.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime

from core.quality import round_half_up
from core.schemas import DIMENSIONS, utc_now

logger = logging.getLogger(__name__)

WEAKNESS_THRESHOLD = 3.5

# dimension -> (responsible stage module, suggestion)
DIMENSION_CAUSES = {
    "correctness": (
        "agents/implementor.py",
        "Generate working module bodies from the guide plan instead of stubs.",
    ),
    "verification": (
        "agents/guide.py",
        "Produce more detailed plans with explicit verification steps per sub-problem.",
    ),
    "safety": (
        "agents/safety_guard.py",
        "Check paths stay in the workspace and flag commands that touch system files.",
    ),
    "clarity": (
        "agents/implementor.py",
        "Explain each action: what the file does and how it fits the plan.",
    ),
    "autonomy": (
        "agents/implementor.py",
        "Only flag destructive operations for approval; in-workspace file creation is safe.",
    ),
}


def _round1(value):
    return round_half_up(value * 10) / 10


@dataclass
class Weakness:
    dimension: str
    average_score: float
    occurrences: int
    likely_cause: str
    suggestion: str
    max_possible: int = 5


@dataclass
class AnalysisReport:
    total_runs: int
    average_total_score: float = 0.0
    best_score: int = 0
    worst_score: int = 0
    weaknesses: list[Weakness] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self):
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


def analyze_portfolio(memory, min_runs=1) -> AnalysisReport:
    """Summarize every portfolio entry in ``memory``.

    With fewer than ``min_runs`` entries, returns an empty report carrying
    only the run count.
    """
    portfolio = memory.list_portfolio()
    if not portfolio or len(portfolio) < min_runs:
        logger.info("Not enough runs to analyze (%d < %d)", len(portfolio), min_runs)
        return AnalysisReport(total_runs=len(portfolio))

    totals = [entry.total_score for entry in portfolio]
    weaknesses = []
    for dim in DIMENSIONS:
        avg = _round1(sum(getattr(e.scorecard, dim) for e in portfolio) / len(portfolio))
        if avg < WEAKNESS_THRESHOLD:
            cause, suggestion = DIMENSION_CAUSES[dim]
            weaknesses.append(Weakness(
                dimension=dim,
                average_score=avg,
                occurrences=len(portfolio),
                likely_cause=cause,
                suggestion=suggestion,
            ))
    weaknesses.sort(key=lambda w: w.average_score)

    report = AnalysisReport(
        total_runs=len(portfolio),
        average_total_score=_round1(sum(totals) / len(totals)),
        best_score=max(totals),
        worst_score=min(totals),
        weaknesses=weaknesses,
    )
    logger.info(
        "Analysis complete: %d runs, average %.1f, %d weaknesses",
        report.total_runs, report.average_total_score, len(weaknesses),
    )
    return report
