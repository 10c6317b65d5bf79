"""Pipeline state models: the per-run context and the cross-run session."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from config.defaults import DEFAULTS
from core.errors import ContextOrderError, MissingContextError
from core.schemas import (
    CruxFinderOutput,
    GatekeeperOutput,
    GuideOutput,
    ImplementorOutput,
    LearnerOutput,
    ObserverOutput,
    PatternObserverOutput,
    PlannerOutput,
    RetrieverOutput,
    SafetyGuardOutput,
    ToolRunnerOutput,
)

# (context slot, agent name, orchestrator state), in execution order
STAGES = [
    ("observer", "Observer", "observing"),
    ("pattern_observer", "PatternObserver", "pattern_matching"),
    ("crux_finder", "CruxFinder", "decomposing"),
    ("retriever", "Retriever", "retrieving"),
    ("guide", "Guide", "guiding"),
    ("planner", "Planner", "planning"),
    ("safety_guard", "SafetyGuard", "safety_checking"),
    ("implementor", "Implementor", "acting"),
    ("tool_runner", "ToolRunner", "executing"),
    ("gatekeeper", "Gatekeeper", "evaluating"),
    ("learner", "Learner", "reflecting"),
]
STAGE_SLOTS = [slot for slot, _, _ in STAGES]


@dataclass
class PipelineContext:
    """Everything one run has produced so far.

    Slots are written once each, strictly in STAGE_SLOTS order, so a stage
    can only ever see the outputs of the stages before it.
    """

    run_id: str
    request: str
    previous_improvements: tuple[str, ...] = ()
    observer: ObserverOutput | None = None
    pattern_observer: PatternObserverOutput | None = None
    crux_finder: CruxFinderOutput | None = None
    retriever: RetrieverOutput | None = None
    guide: GuideOutput | None = None
    planner: PlannerOutput | None = None
    safety_guard: SafetyGuardOutput | None = None
    implementor: ImplementorOutput | None = None
    tool_runner: ToolRunnerOutput | None = None
    gatekeeper: GatekeeperOutput | None = None
    learner: LearnerOutput | None = None
    status: str = "initialized"     # initialized|<stage states>|finalizing|completed|failed

    def filled(self) -> list[str]:
        return [slot for slot in STAGE_SLOTS if getattr(self, slot) is not None]

    def record(self, slot, output):
        """Write a validated stage output into its slot."""
        if slot not in STAGE_SLOTS:
            raise ContextOrderError(f"Unknown context slot: {slot}")
        done = len(self.filled())
        expected = STAGE_SLOTS[done] if done < len(STAGE_SLOTS) else None
        if slot != expected:
            raise ContextOrderError(
                f"Cannot write {slot}: next slot in order is {expected or 'none (all filled)'}"
            )
        setattr(self, slot, output)

    def require(self, stage, *slots):
        """Return the outputs in ``slots`` or raise MissingContextError naming the gaps."""
        missing = [s for s in slots if getattr(self, s, None) is None]
        if missing:
            raise MissingContextError(stage, missing)
        values = tuple(getattr(self, s) for s in slots)
        return values[0] if len(values) == 1 else values


@dataclass
class SessionState:
    """Feedback carried between runs of one logical agent.

    Both channels are single-slot: only the latest run's improvements and
    promotion are kept. Access goes through the lock because concurrent
    runs share one session.
    """

    previous_improvements: list[str] = field(default_factory=list)
    learner_level: int = DEFAULTS["learner_initial_level"]
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def snapshot(self) -> tuple[tuple[str, ...], int]:
        with self._lock:
            return tuple(self.previous_improvements), self.learner_level

    def set_level(self, level):
        with self._lock:
            self.learner_level = max(0, min(DEFAULTS["max_permission_level"], level))

    def apply_feedback(self, improvements, new_level=None):
        """Store the latest run's improvements and promotion for the next run."""
        with self._lock:
            if improvements:
                self.previous_improvements = list(improvements)
            if new_level is not None:
                self.learner_level = max(0, min(DEFAULTS["max_permission_level"], new_level))
