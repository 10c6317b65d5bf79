"""File-backed memory: lessons, candidate lessons, playbooks, portfolio, run logs.

Layout under the base directory:
    lessons/     approved lessons, Markdown with a JSON front-matter block
    candidates/  proposed lessons awaiting the gatekeeper (JSON)
    playbooks/   free-text Markdown playbooks
    portfolio/   one scorecard summary per run (JSON)
    logs/        one full run artifact per run (JSON)

Every record is one file, written to a temp file and moved into place.
"""

import json
import logging
import os
import re
import tempfile

from core.schemas import (
    ApprovedLesson,
    PortfolioEntry,
    RunArtifact,
    StoredCandidate,
    utc_now,
)
from utils.naming import slugify

logger = logging.getLogger(__name__)

APPROVER = "Gatekeeper"

_FRONT_MATTER_RE = re.compile(r"^---\n(.*?)\n---", re.DOTALL)


class MemoryStore:
    """Durable store for everything that outlives a single pipeline run."""

    def __init__(self, base_dir):
        self.base_dir = base_dir
        self.lessons_dir = os.path.join(base_dir, "lessons")
        self.candidates_dir = os.path.join(base_dir, "candidates")
        self.playbooks_dir = os.path.join(base_dir, "playbooks")
        self.portfolio_dir = os.path.join(base_dir, "portfolio")
        self.logs_dir = os.path.join(base_dir, "logs")

    def initialize(self):
        """Ensure all memory directories exist."""
        for d in (self.lessons_dir, self.candidates_dir, self.playbooks_dir,
                  self.portfolio_dir, self.logs_dir):
            os.makedirs(d, exist_ok=True)

    # ------------------------------------------------------------------
    # Run artifacts
    # ------------------------------------------------------------------

    def save_run_artifact(self, artifact: RunArtifact) -> str:
        path = os.path.join(self.logs_dir, f"{artifact.run_id}.json")
        self._write(path, artifact.model_dump_json(indent=2))
        logger.info("Saved run artifact %s", path)
        return path

    def load_run_artifact(self, run_id) -> RunArtifact | None:
        path = os.path.join(self.logs_dir, f"{os.path.basename(run_id)}.json")
        if not os.path.isfile(path):
            return None
        with open(path) as f:
            return RunArtifact.model_validate_json(f.read())

    # ------------------------------------------------------------------
    # Candidate and approved lessons
    # ------------------------------------------------------------------

    def save_candidate_lesson(self, lesson, run_id) -> str:
        """Store a proposed lesson and return its candidate id."""
        candidate_id = f"{run_id}-{slugify(lesson.title, sep='-', max_len=60)}"
        candidate = StoredCandidate(
            **lesson.model_dump(),
            id=candidate_id,
            run_id=run_id,
            proposed_at=utc_now(),
        )
        self._write(self._candidate_path(candidate_id), candidate.model_dump_json(indent=2))
        return candidate_id

    def list_candidate_lessons(self) -> list[StoredCandidate]:
        return [
            StoredCandidate.model_validate_json(text)
            for text in self._read_dir(self.candidates_dir, ".json")
        ]

    def approve_lesson(self, candidate_id) -> str:
        """Promote a candidate to a durable lesson. Returns the lesson path."""
        candidate_path = self._candidate_path(candidate_id)
        with open(candidate_path) as f:
            candidate = StoredCandidate.model_validate_json(f.read())

        lesson = ApprovedLesson(
            id=candidate.id,
            title=candidate.title,
            content=candidate.content,
            tags=candidate.tags,
            source=candidate.source,
            approved_at=utc_now(),
            approved_by=APPROVER,
        )
        text = "\n".join([
            "---",
            lesson.model_dump_json(indent=2),
            "---",
            "",
            f"# {lesson.title}",
            "",
            lesson.content,
        ])
        lesson_path = os.path.join(self.lessons_dir, f"{lesson.id}.md")
        self._write(lesson_path, text)
        os.remove(candidate_path)
        logger.info("Approved lesson %r", lesson.title)
        return lesson_path

    def reject_lesson(self, candidate_id):
        """Delete a candidate. Rejecting an unknown candidate does nothing."""
        try:
            os.remove(self._candidate_path(candidate_id))
        except FileNotFoundError:
            return
        logger.info("Rejected candidate lesson %s", candidate_id)

    def list_lessons(self) -> list[ApprovedLesson]:
        lessons = []
        for text in self._read_dir(self.lessons_dir, ".md"):
            match = _FRONT_MATTER_RE.match(text)
            if match:
                lessons.append(ApprovedLesson.model_validate(json.loads(match.group(1))))
        return lessons

    # ------------------------------------------------------------------
    # Playbooks
    # ------------------------------------------------------------------

    def save_playbook(self, name, text) -> str:
        path = os.path.join(self.playbooks_dir, f"{slugify(name, sep='-')}.md")
        self._write(path, text)
        return path

    def list_playbooks(self) -> list[str]:
        return self._read_dir(self.playbooks_dir, ".md")

    # ------------------------------------------------------------------
    # Portfolio
    # ------------------------------------------------------------------

    def save_portfolio_entry(self, entry: PortfolioEntry) -> str:
        path = os.path.join(self.portfolio_dir, f"{entry.run_id}.json")
        self._write(path, entry.model_dump_json(indent=2))
        return path

    def list_portfolio(self) -> list[PortfolioEntry]:
        return [
            PortfolioEntry.model_validate_json(text)
            for text in self._read_dir(self.portfolio_dir, ".json")
        ]

    def discard_run(self, run_id):
        """Remove every record written for ``run_id``. Returns the removed paths."""
        run_id = os.path.basename(run_id)
        targets = [
            os.path.join(self.logs_dir, f"{run_id}.json"),
            os.path.join(self.portfolio_dir, f"{run_id}.json"),
        ]
        for directory in (self.candidates_dir, self.lessons_dir):
            if os.path.isdir(directory):
                targets.extend(
                    os.path.join(directory, name)
                    for name in sorted(os.listdir(directory))
                    if name.startswith(f"{run_id}-")
                )

        removed = []
        for path in targets:
            try:
                os.remove(path)
            except FileNotFoundError:
                continue
            removed.append(path)
        if removed:
            logger.warning("Discarded %d record(s) from run %s", len(removed), run_id)
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _candidate_path(self, candidate_id):
        return os.path.join(self.candidates_dir, f"{os.path.basename(candidate_id)}.json")

    def _read_dir(self, directory, ext):
        """Return the text of every ``ext`` file in ``directory`` (sorted by name)."""
        if not os.path.isdir(directory):
            return []
        texts = []
        for name in sorted(os.listdir(directory)):
            path = os.path.join(directory, name)
            if name.endswith(ext) and os.path.isfile(path):
                with open(path) as f:
                    texts.append(f.read())
        return texts

    def _write(self, path, text):
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=".tmp_")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(text)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
