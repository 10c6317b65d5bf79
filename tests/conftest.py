"""Shared fixtures: a scriptable provider and partially-run pipeline contexts."""

import json

import pytest

from core.errors import ProviderError
from core.orchestrator import Orchestrator
from core.schemas import STAGE_SCHEMAS, validate
from core.state import STAGES, PipelineContext
from utils.mock_llm import MockProvider


class FakeProvider:
    """Returns a fixed scorecard to the gatekeeper and "ok" to everyone else.

    ``fail_on`` names a directive prefix ("Planner") whose call raises
    ProviderError.
    """

    name = "Fake"

    def __init__(self, scores=None, fail_on=None):
        self.scores = scores or {
            "correctness": 4, "verification": 4, "safety": 4, "clarity": 4, "autonomy": 4,
        }
        self.fail_on = fail_on
        self.calls = []

    def generate(self, directive, payload):
        self.calls.append(directive.split("\n")[0])
        if self.fail_on and directive.startswith(self.fail_on):
            raise ProviderError(f"{self.fail_on} provider outage")
        if "quality evaluator" in directive:
            return json.dumps(self.scores)
        return "ok"


def scores_totalling(total):
    """Five dimension scores (each 0-5) adding up to ``total``."""
    base, extra = divmod(total, 5)
    dims = ["correctness", "verification", "safety", "clarity", "autonomy"]
    return {dim: base + (1 if i < extra else 0) for i, dim in enumerate(dims)}


def run_until(orchestrator, request, stop_slot=None, previous_improvements=()):
    """Run stages in order up to (not including) ``stop_slot``; return the context."""
    context = PipelineContext(
        run_id="00000000-0000-4000-8000-000000000000",
        request=request,
        previous_improvements=tuple(previous_improvements),
    )
    for slot, _, _ in STAGES:
        if slot == stop_slot:
            break
        output = orchestrator.agents[slot].run(request, context)
        context.record(slot, validate(STAGE_SCHEMAS[slot], output))
    return context


@pytest.fixture
def workspace(tmp_path):
    ws = tmp_path / "workspace"
    ws.mkdir()
    return str(ws)


@pytest.fixture
def make_orchestrator(tmp_path, workspace):
    """Factory for orchestrators writing into the test's temp directory."""

    def factory(llm=None, **kwargs):
        kwargs.setdefault("memory_dir", str(tmp_path / "memory"))
        kwargs.setdefault("workspace_root", workspace)
        orch = Orchestrator(llm=llm or MockProvider(), **kwargs)
        orch.initialize()
        return orch

    return factory
