"""Main pipeline orchestrator — a strictly linear state machine over eleven stages."""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

from agents.crux_finder import CruxFinder
from agents.gatekeeper import Gatekeeper
from agents.guide import Guide
from agents.implementor import Implementor
from agents.learner import Learner
from agents.observer import Observer
from agents.pattern_observer import PatternObserver
from agents.planner import Planner
from agents.retriever import Retriever
from agents.safety_guard import SafetyGuard
from agents.tool_runner import ToolRunner
from config.defaults import DEFAULTS
from core.errors import PipelineError, StageTimeoutError
from core.memory import MemoryStore
from core.permissions import create_default_policy
from core.schemas import (
    STAGE_SCHEMAS,
    PortfolioEntry,
    RunArtifact,
    utc_now,
    validate,
)
from core.state import STAGES, PipelineContext, SessionState
from utils.llm import create_provider

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs Observer → ... → Learner, then persists the run and applies feedback.

    One instance holds the process state that outlives a run: the permission
    policy, the session (carried-over improvements and the learner's level)
    and the memory store. Each call to run() gets its own PipelineContext.
    """

    def __init__(self, llm=None, memory_dir=None, workspace_root=None, policy=None,
                 session=None, tool_runner_mock_mode=None, stage_timeout=None):
        self.llm = llm if llm is not None else create_provider()
        self.memory = MemoryStore(memory_dir or DEFAULTS["memory_dir"])
        self.workspace_root = workspace_root or DEFAULTS["workspace_root"]
        self.policy = policy if policy is not None else create_default_policy(self.workspace_root)
        self.session = session if session is not None else SessionState()
        self.stage_timeout = stage_timeout if stage_timeout is not None else DEFAULTS["stage_timeout"]

        self.learner = Learner(self.llm, self.session)
        self.gatekeeper = Gatekeeper(self.llm, self.learner, self.memory)
        self.agents = {
            "observer": Observer(self.llm),
            "pattern_observer": PatternObserver(self.llm),
            "crux_finder": CruxFinder(self.llm),
            "retriever": Retriever(self.llm, self.memory),
            "guide": Guide(self.llm),
            "planner": Planner(self.llm),
            "safety_guard": SafetyGuard(self.llm, self.policy),
            "implementor": Implementor(self.llm, self.policy),
            "tool_runner": ToolRunner(
                self.llm, mock_mode=tool_runner_mock_mode, workspace_root=self.workspace_root
            ),
            "gatekeeper": self.gatekeeper,
            "learner": self.learner,
        }

    def initialize(self):
        """Create the memory directories. Safe to call repeatedly."""
        self.memory.initialize()

    def describe_agents(self):
        """(name, description) for every stage, in execution order."""
        return [(self.agents[slot].name, self.agents[slot].description) for slot, _, _ in STAGES]

    def load_run_artifact(self, run_id):
        return self.memory.load_run_artifact(run_id)

    def run(self, request) -> RunArtifact:
        """Run all eleven stages for ``request`` and persist the result.

        Args:
            request: Natural-language task request.

        Returns:
            The validated, persisted RunArtifact.

        Raises:
            ValueError: If the request is empty.
            PipelineError: If any stage or the finalize step fails. Nothing
                from the run is persisted and no feedback is applied.
        """
        if not request or not request.strip():
            raise ValueError("Request must be a non-empty string")

        improvements, level = self.session.snapshot()
        context = PipelineContext(
            run_id=str(uuid.uuid4()),
            request=request,
            previous_improvements=improvements,
        )
        started_at = utc_now()
        logger.info(
            "Pipeline run %s started (provider=%s, level=%d, carried improvements=%d)",
            context.run_id, getattr(self.llm, "name", "?"), level, len(improvements),
        )

        stage = None
        try:
            for slot, agent_name, state in STAGES:
                stage = agent_name
                context.status = state
                output = self._run_stage(self.agents[slot], request, context)
                context.record(slot, validate(STAGE_SCHEMAS[slot], output))
                logger.info("[%s] %s complete", context.run_id[:8], agent_name)

            stage = None
            context.status = "finalizing"
            artifact = self._finalize(context, started_at)
        except Exception as e:
            context.status = "failed"
            logger.error("Pipeline run %s failed in %s: %s", context.run_id, stage or "finalize", e)
            raise PipelineError(context.run_id, stage, e) from e

        context.status = "completed"
        logger.info(
            "Pipeline run %s completed: score %d/25",
            context.run_id, artifact.gatekeeper.total_score,
        )
        return artifact

    def _run_stage(self, agent, request, context):
        """Call one stage, bounded by ``stage_timeout`` when it is set."""
        if not self.stage_timeout:
            return agent.run(request, context)

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(agent.run, request, context)
        try:
            return future.result(timeout=self.stage_timeout)
        except FutureTimeout:
            raise StageTimeoutError(agent.name, self.stage_timeout) from None
        finally:
            # A hung provider call cannot be interrupted; don't wait on it
            executor.shutdown(wait=False)

    def _finalize(self, context, started_at):
        """Assemble and persist the run, then apply both feedback loops."""
        artifact = validate(RunArtifact, {
            "run_id": context.run_id,
            "request": context.request,
            "started_at": started_at,
            "completed_at": utc_now(),
            **{slot: getattr(context, slot) for slot, _, _ in STAGES},
            "success": True,
        })
        gatekeeper = artifact.gatekeeper

        try:
            artifact_path = self.memory.save_run_artifact(artifact)
            self.memory.save_portfolio_entry(PortfolioEntry(
                run_id=artifact.run_id,
                request=artifact.request,
                completed_at=artifact.completed_at,
                scorecard=gatekeeper.scorecard,
                total_score=gatekeeper.total_score,
                artifact_path=artifact_path,
            ))
            self.gatekeeper.settle_lessons(
                context.run_id, artifact.learner.candidate_lessons, gatekeeper.total_score
            )
        except Exception:
            self.memory.discard_run(context.run_id)
            raise

        decision = gatekeeper.decision
        new_level = decision.new_level if decision.promote else None
        self.session.apply_feedback(gatekeeper.improvements, new_level)
        if new_level is not None:
            self.policy.promote_to(new_level)
            logger.info("Promotion: learner level is now %d", new_level)
        if gatekeeper.improvements:
            logger.info("Carrying %d improvement(s) to the next run", len(gatekeeper.improvements))
        return artifact
