"""Gatekeeper agent — scores the run and decides lessons and promotion.

Scoring asks the provider for five 0-5 judgments and falls back to the
deterministic formula in core.quality when the reply is missing or unusable.
Lesson approval and promotion are hard thresholds, never provider-judged.
"""

import logging

from agents.base import BaseAgent
from config.defaults import DEFAULTS
from core.errors import ProviderError
from core.quality import (
    build_feedback,
    build_improvements,
    clamp_score,
    compute_scorecard,
)
from core.schemas import DIMENSIONS, Scorecard
from utils.llm import parse_json_response

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a strict quality evaluator for an autonomous coding agent.
Score the run below on five dimensions, each an integer from 0 to 5.

Respond with ONLY a JSON object, no markdown, no explanation:
{"correctness": 0, "verification": 0, "safety": 0, "clarity": 0, "autonomy": 0}
"""


def render_run_summary(context):
    """Plain-text summary of every stage output, used as the scoring payload."""
    observer = context.observer
    guide = context.guide
    safety = context.safety_guard
    impl = context.implementor
    tools = context.tool_runner

    lines = [
        f"Request: {context.request}",
        f"Observer: domain={observer.domain}; keywords={', '.join(observer.keywords)}",
        f"Observer summary: {observer.summary}",
        f"Patterns: {', '.join(p.name for p in context.pattern_observer.patterns)}",
        f"Core problem: {context.crux_finder.core_problem}",
        f"Sub-problems: {len(context.crux_finder.sub_problems)}",
        f"Retrieved: {len(context.retriever.lessons)} lessons, "
        f"{len(context.retriever.playbooks)} playbooks, {len(context.retriever.examples)} examples",
        f"Plan: {len(guide.plan)} steps, complexity {guide.estimated_complexity}",
        f"Tasks: {len(context.planner.tasks)}",
        f"Safety: safe={safety.safe}; risks={len(safety.risks)}; "
        f"blocked={len(safety.blocked_actions)}",
        f"Actions: {len(impl.actions)} proposed, {len(impl.blocked)} blocked",
        f"Explanation: {impl.explanation}",
        f"Executed: {len(tools.executed_commands)}; skipped: {len(tools.skipped_commands)}",
    ]
    return "\n".join(lines)


def parse_scorecard(text) -> Scorecard:
    """Build a scorecard from a provider reply.

    Raises ValueError, KeyError or TypeError when the reply is unusable.
    """
    data = parse_json_response(text)
    if not isinstance(data, dict):
        raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
    return Scorecard(**{dim: clamp_score(data[dim]) for dim in DIMENSIONS})


class Gatekeeper(BaseAgent):
    """Evaluation stage. Owns the lesson and promotion thresholds."""

    name = "Gatekeeper"
    description = "Scores the run and decides lesson approval and promotion"
    system_prompt = SYSTEM_PROMPT

    def __init__(self, llm, learner, memory=None):
        super().__init__(llm)
        self.learner = learner
        self.memory = memory

    def score(self, context) -> Scorecard:
        try:
            return parse_scorecard(self._call_llm(render_run_summary(context)))
        except (ProviderError, ValueError, KeyError, TypeError) as e:
            logger.warning("Gatekeeper falling back to rule-based scoring: %s", e)
            return compute_scorecard(context.implementor, context.guide)

    def decide(self, total, current_level):
        promote = total >= DEFAULTS["promotion_threshold"]
        return {
            "approve_lesson": total >= DEFAULTS["lesson_approval_threshold"],
            "promote": promote,
            "new_level": (
                min(current_level + 1, DEFAULTS["max_permission_level"]) if promote else None
            ),
            "allow_clone": total >= DEFAULTS["clone_threshold"],
        }

    def run(self, request, context):
        context.require(
            self.name,
            "observer", "pattern_observer", "crux_finder", "retriever", "guide",
            "planner", "safety_guard", "implementor", "tool_runner",
        )

        scorecard = self.score(context)
        total = scorecard.total
        decision = self.decide(total, self.learner.level)

        titles = [lesson.title for lesson in self.learner.propose_lessons(context)]
        if decision["approve_lesson"]:
            approved, rejected = titles, []
        else:
            approved, rejected = [], titles

        return self._output(
            scorecard=scorecard.model_dump(exclude={"total"}),
            total_score=total,
            decision=decision,
            feedback=build_feedback(scorecard, total),
            improvements=build_improvements(scorecard, context.safety_guard),
            approved_lessons=approved,
            rejected_lessons=rejected,
        )

    def settle_lessons(self, run_id, candidates, total):
        """Persist each candidate, then approve or reject it by the score threshold.

        Called once the run has completed, so a failed run leaves no lessons
        behind. Returns (approved lesson paths, rejected candidate ids).
        """
        approved = []
        rejected = []
        for lesson in candidates:
            candidate_id = self.memory.save_candidate_lesson(lesson, run_id)
            if total >= DEFAULTS["lesson_approval_threshold"]:
                approved.append(self.memory.approve_lesson(candidate_id))
            else:
                self.memory.reject_lesson(candidate_id)
                rejected.append(candidate_id)
        return approved, rejected
