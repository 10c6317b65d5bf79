"""Tests for agents.gatekeeper — scoring, decisions and lesson settlement."""

import json

import pytest

from agents.gatekeeper import parse_scorecard, render_run_summary
from conftest import FakeProvider, run_until, scores_totalling
from core.permissions import PermissionPolicy
from core.quality import compute_scorecard
from core.schemas import GatekeeperOutput, Scorecard, validate
from utils.mock_llm import SCORE_TABLE


def _gatekeeper_output(orch, request="Create a hello world function"):
    ctx = run_until(orch, request, "gatekeeper")
    return ctx, validate(GatekeeperOutput, orch.gatekeeper.run(request, ctx))


def test_mock_provider_score_table(make_orchestrator):
    orch = make_orchestrator()
    ctx, out = _gatekeeper_output(orch)
    expected = SCORE_TABLE[len(render_run_summary(ctx)) % len(SCORE_TABLE)]
    assert out.scorecard.model_dump(exclude={"total"}) == expected
    assert out.total_score == sum(expected.values())


def test_score_table_totals():
    assert [sum(row.values()) for row in SCORE_TABLE] == [19, 18, 23, 15, 22]


def test_summary_covers_every_stage(make_orchestrator):
    ctx = run_until(make_orchestrator(), "Create a hello world function", "gatekeeper")
    summary = render_run_summary(ctx)
    assert summary.startswith("Request: Create a hello world function")
    for label in ("Observer:", "Patterns:", "Core problem:", "Retrieved:", "Plan:",
                  "Tasks:", "Safety:", "Actions:", "Explanation:", "Executed:"):
        assert label in summary


def test_parse_scorecard_clamps_and_rounds():
    card = parse_scorecard('```json\n{"correctness": 7, "verification": -2, "safety": 4.5, '
                           '"clarity": 2.4, "autonomy": "3"}\n```')
    assert card == Scorecard(correctness=5, verification=0, safety=5, clarity=2, autonomy=3)


@pytest.mark.parametrize("reply,exc", [
    ("not json", ValueError),
    ('{"correctness": 4}', KeyError),
    ("[1, 2, 3]", TypeError),
    ('{"correctness": Infinity, "verification": 3, "safety": 5, "clarity": 4, "autonomy": 3}', ValueError),
    ('{"correctness": 4, "verification": 1e999, "safety": 5, "clarity": 4, "autonomy": 3}', ValueError),
    ('{"correctness": 4, "verification": 3, "safety": NaN, "clarity": 4, "autonomy": 3}', ValueError),
])
def test_parse_scorecard_rejects_bad_replies(reply, exc):
    with pytest.raises(exc):
        parse_scorecard(reply)


def test_falls_back_when_provider_fails(make_orchestrator):
    orch = make_orchestrator(FakeProvider(fail_on="You are a strict quality evaluator"))
    ctx, out = _gatekeeper_output(orch)
    assert out.scorecard == compute_scorecard(ctx.implementor, ctx.guide)


@pytest.mark.parametrize("reply", [
    "I think it went well!",
    '{"correctness": Infinity, "verification": 3, "safety": 5, "clarity": 4, "autonomy": 3}',
    '{"correctness": -Infinity, "verification": 1e999, "safety": 5, "clarity": 4, "autonomy": 3}',
])
def test_falls_back_on_unparseable_reply(make_orchestrator, reply):
    class Chatty(FakeProvider):
        def generate(self, directive, payload):
            if "quality evaluator" in directive:
                return reply
            return "ok"

    orch = make_orchestrator(Chatty())
    ctx, out = _gatekeeper_output(orch)
    # 4 actions, none blocked, 4-step plan, long explanation
    assert out.scorecard == Scorecard(correctness=5, verification=4, safety=5, clarity=4, autonomy=5)
    assert out.total_score == 23


def test_score_21_with_two_lessons(make_orchestrator, workspace):
    orch = make_orchestrator(
        FakeProvider(scores_totalling(21)),
        policy=PermissionPolicy(current_level=0, allowed_workspace_paths=[workspace]),
    )
    _, out = _gatekeeper_output(orch)
    assert out.total_score == 21
    assert out.approved_lessons == ["Working in Development domain", "Permission boundaries learned"]
    assert out.rejected_lessons == []
    assert out.decision.approve_lesson
    # 20 is the promotion boundary, so 21 promotes
    assert out.decision.promote
    assert out.decision.new_level == 1
    assert not out.decision.allow_clone


@pytest.mark.parametrize("total,approve,promote,clone", [
    (14, False, False, False),
    (15, True, False, False),
    (19, True, False, False),
    (20, True, True, False),
    (22, True, True, True),
    (25, True, True, True),
])
def test_decision_thresholds(make_orchestrator, total, approve, promote, clone):
    _, out = _gatekeeper_output(make_orchestrator(FakeProvider(scores_totalling(total))))
    assert out.total_score == total
    assert out.decision.approve_lesson is approve
    assert out.decision.promote is promote
    assert out.decision.allow_clone is clone
    assert (out.decision.new_level is not None) is promote
    if approve:
        assert out.approved_lessons and not out.rejected_lessons
    else:
        assert out.rejected_lessons and not out.approved_lessons


def test_new_level_capped_at_top_tier(make_orchestrator):
    orch = make_orchestrator(FakeProvider(scores_totalling(24)))
    orch.session.set_level(3)
    _, out = _gatekeeper_output(orch)
    assert out.decision.new_level == 3


def test_improvements_and_feedback(make_orchestrator):
    scores = {"correctness": 1, "verification": 4, "safety": 1, "clarity": 4, "autonomy": 4}
    _, out = _gatekeeper_output(make_orchestrator(FakeProvider(scores)))
    assert out.improvements == [
        "Safety scored low: add explicit safety checks before destructive operations",
        "Correctness scored low: improve verification steps to catch implementation errors",
    ]
    assert out.feedback.startswith("Acceptable but needs improvement.")
    assert "Safety concerns detected" in out.feedback
    assert "Correctness issues" in out.feedback


def test_gatekeeper_does_not_write_lessons(make_orchestrator):
    orch = make_orchestrator(FakeProvider(scores_totalling(25)))
    _gatekeeper_output(orch)
    assert orch.memory.list_lessons() == []
    assert orch.memory.list_candidate_lessons() == []


def test_settle_lessons_approves_or_rejects(make_orchestrator):
    orch = make_orchestrator()
    ctx = run_until(orch, "Create a hello world function", "gatekeeper")
    candidates = orch.learner.propose_lessons(ctx)

    approved, rejected = orch.gatekeeper.settle_lessons("run-a", candidates, 15)
    assert len(approved) == 1 and rejected == []
    assert [lesson.title for lesson in orch.memory.list_lessons()] == ["Working in Development domain"]

    approved, rejected = orch.gatekeeper.settle_lessons("run-b", candidates, 14)
    assert approved == [] and rejected == ["run-b-working-in-development-domain"]
    assert orch.memory.list_candidate_lessons() == []
    assert len(orch.memory.list_lessons()) == 1


def test_directive_asks_for_json_scorecard():
    from agents.gatekeeper import SYSTEM_PROMPT
    assert "quality evaluator" in SYSTEM_PROMPT
    start = SYSTEM_PROMPT.index("{")
    assert set(json.loads(SYSTEM_PROMPT[start:].strip())) == {
        "correctness", "verification", "safety", "clarity", "autonomy",
    }
