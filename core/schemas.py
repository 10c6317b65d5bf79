"""Stage output contracts and the records persisted after a run.

Every stage returns a plain dict; the orchestrator passes it through
``validate`` with the stage's model before writing it into the context.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)

from config.defaults import DEFAULTS
from core.errors import SchemaViolation

MAX_LEVEL = DEFAULTS["max_permission_level"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Understanding stages
# ---------------------------------------------------------------------------

class ObserverOutput(BaseModel):
    agent: Literal["Observer"]
    summary: str = Field(..., min_length=1)
    keywords: list[str] = Field(..., min_length=1)
    domain: str = Field(..., min_length=1)
    raw_input: str
    timestamp: datetime


class Pattern(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)


class PatternObserverOutput(BaseModel):
    agent: Literal["PatternObserver"]
    patterns: list[Pattern] = Field(..., min_length=1)
    similar_past_tasks: list[str] = Field(default_factory=list)
    suggested_approach: str = Field(..., min_length=1)
    timestamp: datetime


class CruxFinderOutput(BaseModel):
    agent: Literal["CruxFinder"]
    core_problem: str = Field(..., min_length=1)
    sub_problems: list[str] = Field(..., min_length=1)
    assumptions: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    required_knowledge: list[str] = Field(default_factory=list)
    timestamp: datetime


class RetrieverOutput(BaseModel):
    agent: Literal["Retriever"]
    lessons: list[str] = Field(default_factory=list, max_length=DEFAULTS["max_lessons"])
    playbooks: list[str] = Field(default_factory=list, max_length=DEFAULTS["max_playbooks"])
    examples: list[str] = Field(default_factory=list, max_length=DEFAULTS["max_examples"])
    timestamp: datetime


# ---------------------------------------------------------------------------
# Planning stages
# ---------------------------------------------------------------------------

class GuideStep(BaseModel):
    step_number: int = Field(..., gt=0)
    action: str = Field(..., min_length=1)
    rationale: str = Field(..., min_length=1)
    expected_output: str = Field(..., min_length=1)


class GuideOutput(BaseModel):
    agent: Literal["Guide"]
    plan: list[GuideStep] = Field(..., min_length=1)
    estimated_complexity: Literal["low", "medium", "high"]
    warnings: list[str] = Field(default_factory=list)
    best_practices: list[str] = Field(default_factory=list)
    timestamp: datetime


class PlannerTask(BaseModel):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    owner: Literal["implementor", "qa", "design"]
    steps: list[str] = Field(..., min_length=1)
    definition_of_done: list[str] = Field(..., min_length=1)
    dependencies: list[str] = Field(default_factory=list)


class PlannerOutput(BaseModel):
    agent: Literal["Planner"]
    tasks: list[PlannerTask] = Field(..., min_length=1)
    timestamp: datetime


class SafetyGuardOutput(BaseModel):
    agent: Literal["SafetyGuard"]
    safe: bool
    risks: list[str] = Field(default_factory=list)
    blocked_actions: list[str] = Field(default_factory=list)
    requires_approval: bool
    timestamp: datetime

    @model_validator(mode="after")
    def check_safe_flag(self) -> SafetyGuardOutput:
        expected = not self.blocked_actions and not self.requires_approval
        if self.safe != expected:
            raise ValueError("safe must be true only with no blocked actions and no approval required")
        return self


# ---------------------------------------------------------------------------
# Acting stages
# ---------------------------------------------------------------------------

ActionType = Literal["create_file", "edit_file", "run_command", "read_file"]


class ProposedAction(BaseModel):
    type: ActionType
    path: str | None = None
    content: str | None = None
    command: str | None = None
    requires_approval: bool = False
    is_destructive: bool = False

    @model_validator(mode="after")
    def check_target(self) -> ProposedAction:
        if self.type == "run_command" and not self.command:
            raise ValueError("run_command actions need a command")
        if self.type != "run_command" and not self.path:
            raise ValueError(f"{self.type} actions need a path")
        return self

    @property
    def target(self) -> str:
        return self.command if self.type == "run_command" else self.path


class ImplementorOutput(BaseModel):
    agent: Literal["Implementor"]
    actions: list[ProposedAction] = Field(..., min_length=1)
    explanation: str = Field(..., min_length=1)
    files_created: list[str] = Field(default_factory=list)
    files_modified: list[str] = Field(default_factory=list)
    commands_run: list[str] = Field(default_factory=list)
    blocked: list[str] = Field(default_factory=list)
    timestamp: datetime


class CommandRecord(BaseModel):
    command: str
    success: bool
    output: str
    mock_mode: bool


class ToolRunnerOutput(BaseModel):
    agent: Literal["ToolRunner"]
    executed_commands: list[CommandRecord] = Field(default_factory=list)
    skipped_commands: list[str] = Field(default_factory=list)
    timestamp: datetime


# ---------------------------------------------------------------------------
# Evaluation and reflection
# ---------------------------------------------------------------------------

class Scorecard(BaseModel):
    """Five 0-5 quality dimensions. ``total`` is always their sum."""

    model_config = ConfigDict(frozen=True)

    correctness: int = Field(..., ge=0, le=5)
    verification: int = Field(..., ge=0, le=5)
    safety: int = Field(..., ge=0, le=5)
    clarity: int = Field(..., ge=0, le=5)
    autonomy: int = Field(..., ge=0, le=5)

    @computed_field
    @property
    def total(self) -> int:
        return self.correctness + self.verification + self.safety + self.clarity + self.autonomy


DIMENSIONS = ("correctness", "verification", "safety", "clarity", "autonomy")


class GatekeeperDecision(BaseModel):
    approve_lesson: bool
    promote: bool
    new_level: int | None = Field(default=None, ge=0, le=MAX_LEVEL)
    allow_clone: bool


class GatekeeperOutput(BaseModel):
    agent: Literal["Gatekeeper"]
    scorecard: Scorecard
    total_score: int = Field(..., ge=0, le=25)
    decision: GatekeeperDecision
    feedback: str = Field(..., min_length=1)
    improvements: list[str] = Field(default_factory=list)
    approved_lessons: list[str] = Field(default_factory=list)
    rejected_lessons: list[str] = Field(default_factory=list)
    timestamp: datetime

    @model_validator(mode="after")
    def check_total(self) -> GatekeeperOutput:
        if self.total_score != self.scorecard.total:
            raise ValueError(
                f"total_score {self.total_score} does not match scorecard total {self.scorecard.total}"
            )
        return self


class CandidateLesson(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    source: str = Field(..., min_length=1)


class LearnerOutput(BaseModel):
    agent: Literal["Learner"]
    reflection: str = Field(..., min_length=1)
    candidate_lessons: list[CandidateLesson] = Field(default_factory=list)
    growth_areas: list[str] = Field(default_factory=list)
    current_level: int = Field(..., ge=0, le=MAX_LEVEL)
    questions_for_next_time: list[str] = Field(default_factory=list)
    timestamp: datetime


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------

class StoredCandidate(CandidateLesson):
    id: str
    run_id: str
    proposed_at: datetime


class ApprovedLesson(CandidateLesson):
    id: str
    approved_at: datetime
    approved_by: str


class RunArtifact(BaseModel):
    run_id: str
    request: str = Field(..., min_length=1)
    started_at: datetime
    completed_at: datetime
    observer: ObserverOutput
    pattern_observer: PatternObserverOutput
    crux_finder: CruxFinderOutput
    retriever: RetrieverOutput
    guide: GuideOutput
    planner: PlannerOutput
    safety_guard: SafetyGuardOutput
    implementor: ImplementorOutput
    tool_runner: ToolRunnerOutput
    gatekeeper: GatekeeperOutput
    learner: LearnerOutput
    success: bool
    error: str | None = None

    @field_validator("run_id")
    @classmethod
    def check_run_id(cls, v: str) -> str:
        uuid.UUID(v)
        return v

    @model_validator(mode="after")
    def check_times(self) -> RunArtifact:
        if self.started_at > self.completed_at:
            raise ValueError("started_at is after completed_at")
        return self


class PortfolioEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    run_id: str
    request: str
    completed_at: datetime
    scorecard: Scorecard
    total_score: int = Field(..., ge=0, le=25)
    artifact_path: str


# Context slot -> schema, in pipeline order
STAGE_SCHEMAS = {
    "observer": ObserverOutput,
    "pattern_observer": PatternObserverOutput,
    "crux_finder": CruxFinderOutput,
    "retriever": RetrieverOutput,
    "guide": GuideOutput,
    "planner": PlannerOutput,
    "safety_guard": SafetyGuardOutput,
    "implementor": ImplementorOutput,
    "tool_runner": ToolRunnerOutput,
    "gatekeeper": GatekeeperOutput,
    "learner": LearnerOutput,
}


def validate(schema, value):
    """Validate ``value`` (a dict or a model) against ``schema``.

    Returns the validated model. Raises SchemaViolation listing each
    failing field path.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump()
    try:
        return schema.model_validate(value)
    except ValidationError as exc:
        errors = [
            (".".join(str(part) for part in err["loc"]) or "<root>", err["msg"])
            for err in exc.errors()
        ]
        raise SchemaViolation(schema.__name__, errors, exc) from exc
