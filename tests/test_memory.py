"""Tests for core.memory — everything runs in a temp directory."""

import os

import pytest

from core.memory import APPROVER, MemoryStore
from core.schemas import CandidateLesson, PortfolioEntry, Scorecard, utc_now


@pytest.fixture
def memory(tmp_path):
    store = MemoryStore(str(tmp_path / "memory"))
    store.initialize()
    return store


def _lesson(title="Working in Development domain"):
    return CandidateLesson(
        title=title,
        content="Keep modules small.",
        tags=["development", "hello"],
        source="run:abc",
    )


def test_initialize_creates_dirs(memory):
    for sub in ("lessons", "candidates", "playbooks", "portfolio", "logs"):
        assert os.path.isdir(os.path.join(memory.base_dir, sub))


def test_listing_missing_dirs_is_empty(tmp_path):
    store = MemoryStore(str(tmp_path / "never-created"))
    assert store.list_lessons() == []
    assert store.list_candidate_lessons() == []
    assert store.list_playbooks() == []
    assert store.list_portfolio() == []


def test_candidate_round_trip(memory):
    candidate_id = memory.save_candidate_lesson(_lesson(), "run-1")
    assert candidate_id == "run-1-working-in-development-domain"

    candidates = memory.list_candidate_lessons()
    assert len(candidates) == 1
    assert candidates[0].id == candidate_id
    assert candidates[0].run_id == "run-1"


def test_approve_round_trip(memory):
    lesson = _lesson()
    path = memory.approve_lesson(memory.save_candidate_lesson(lesson, "run-1"))

    assert path.endswith(".md")
    with open(path) as f:
        text = f.read()
    assert text.startswith("---\n")
    assert "# Working in Development domain" in text

    lessons = memory.list_lessons()
    assert len(lessons) == 1
    stored = lessons[0]
    assert stored.title == lesson.title
    assert stored.content == lesson.content
    assert stored.tags == lesson.tags
    assert stored.approved_by == APPROVER == "Gatekeeper"
    assert memory.list_candidate_lessons() == []


def test_approve_unknown_candidate_raises(memory):
    with pytest.raises(FileNotFoundError):
        memory.approve_lesson("missing")


def test_reject_deletes_candidate(memory):
    candidate_id = memory.save_candidate_lesson(_lesson(), "run-1")
    memory.reject_lesson(candidate_id)
    assert memory.list_candidate_lessons() == []
    assert memory.list_lessons() == []


def test_reject_missing_is_noop(memory):
    memory.reject_lesson("does-not-exist")


def test_candidate_id_cannot_escape_dir(memory):
    assert memory._candidate_path("../x").startswith(memory.candidates_dir)


def test_playbooks(memory):
    memory.save_playbook("Flask API", "# Flask API\nUse blueprints.")
    memory.save_playbook("CLI Tools", "# CLI\nUse argparse.")
    playbooks = memory.list_playbooks()
    assert len(playbooks) == 2
    assert any("argparse" in p for p in playbooks)


def test_portfolio_round_trip(memory):
    card = Scorecard(correctness=4, verification=3, safety=5, clarity=4, autonomy=3)
    entry = PortfolioEntry(
        run_id="run-1",
        request="hello",
        completed_at=utc_now(),
        scorecard=card,
        total_score=card.total,
        artifact_path="/x/logs/run-1.json",
    )
    memory.save_portfolio_entry(entry)
    assert memory.list_portfolio() == [entry]


def test_load_unknown_artifact_is_none(memory):
    assert memory.load_run_artifact("00000000-0000-4000-8000-000000000000") is None


def test_writes_leave_no_temp_files(memory):
    memory.save_candidate_lesson(_lesson(), "run-1")
    leftovers = [n for n in os.listdir(memory.candidates_dir) if n.startswith(".tmp_")]
    assert leftovers == []


def test_discard_run_removes_only_that_run(memory):
    kept = memory.approve_lesson(memory.save_candidate_lesson(_lesson(), "run-1"))
    memory.approve_lesson(memory.save_candidate_lesson(_lesson(), "run-2"))
    memory.save_candidate_lesson(_lesson("Permission boundaries learned"), "run-2")
    card = Scorecard(correctness=4, verification=3, safety=5, clarity=4, autonomy=3)
    memory.save_portfolio_entry(PortfolioEntry(
        run_id="run-2",
        request="hello",
        completed_at=utc_now(),
        scorecard=card,
        total_score=card.total,
        artifact_path="/x/logs/run-2.json",
    ))

    removed = memory.discard_run("run-2")

    assert len(removed) == 3
    assert [lesson.id for lesson in memory.list_lessons()] == ["run-1-working-in-development-domain"]
    assert os.path.isfile(kept)
    assert memory.list_candidate_lessons() == []
    assert memory.list_portfolio() == []
    assert memory.discard_run("run-2") == []
