"""Tests for agents.learner."""

from conftest import run_until
from core.permissions import PermissionPolicy
from core.schemas import LearnerOutput, validate


def test_domain_lesson_always_proposed(make_orchestrator):
    orch = make_orchestrator()
    ctx = run_until(orch, "Create a hello world function", "gatekeeper")
    lessons = orch.learner.propose_lessons(ctx)
    assert len(lessons) == 1
    lesson = lessons[0]
    assert lesson.title == "Working in Development domain"
    assert lesson.source == f"run:{ctx.run_id}"
    assert "development" in lesson.tags


def test_permission_lesson_when_blocked(make_orchestrator, workspace):
    orch = make_orchestrator(policy=PermissionPolicy(current_level=0, allowed_workspace_paths=[workspace]))
    ctx = run_until(orch, "Create a hello world function", "gatekeeper")
    titles = [lesson.title for lesson in orch.learner.propose_lessons(ctx)]
    assert titles == ["Working in Development domain", "Permission boundaries learned"]


def test_proposals_are_repeatable(make_orchestrator):
    orch = make_orchestrator()
    ctx = run_until(orch, "Create a hello world function", "gatekeeper")
    assert orch.learner.propose_lessons(ctx) == orch.learner.propose_lessons(ctx)


def test_learner_output_matches_gatekeeper_titles(make_orchestrator):
    orch = make_orchestrator()
    ctx = run_until(orch, "Create a hello world function")
    titles = [lesson.title for lesson in ctx.learner.candidate_lessons]
    assert titles == ctx.gatekeeper.approved_lessons + ctx.gatekeeper.rejected_lessons


def test_learner_reports_session_level(make_orchestrator):
    orch = make_orchestrator()
    orch.session.set_level(2)
    ctx = run_until(orch, "Create a hello world function", "learner")
    out = validate(LearnerOutput, orch.learner.run(ctx.request, ctx))
    assert out.current_level == 2
    assert orch.learner.level == 2


def test_level_defaults_to_lowest_tier(make_orchestrator):
    assert make_orchestrator().learner.level == 0


def test_reflection_and_growth_areas(make_orchestrator, workspace):
    orch = make_orchestrator(policy=PermissionPolicy(current_level=0, allowed_workspace_paths=[workspace]))
    ctx = run_until(orch, "Create a hello world function")
    out = ctx.learner
    assert "4 blocked" in out.reflection
    assert "Understand permission boundaries before proposing actions" in out.growth_areas
    assert len(out.questions_for_next_time) == 2
