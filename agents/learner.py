"""Learner agent — reflects on the run and proposes candidate lessons."""

from agents.base import BaseAgent
from core.schemas import CandidateLesson
from core.state import SessionState


class Learner(BaseAgent):
    """Reflection stage. Its permission level lives in the session, not the context."""

    name = "Learner"
    description = "Reflects on the run and proposes lessons for future runs"
    system_prompt = "Learner: Reflect on what went well and what to do differently."

    def __init__(self, llm, session=None):
        super().__init__(llm)
        self.session = session if session is not None else SessionState()

    @property
    def level(self):
        return self.session.snapshot()[1]

    def set_level(self, level):
        self.session.set_level(level)

    def propose_lessons(self, context):
        """Candidate lessons for this run.

        Depends only on the observer, guide and implementor outputs, so the
        gatekeeper can dispose of the same list before this stage runs.
        """
        observer, guide, impl = context.require(self.name, "observer", "guide", "implementor")

        lessons = [CandidateLesson(
            title=f"Working in {observer.domain} domain",
            content=(
                f"Tasks in the {observer.domain} domain with keywords "
                f"{', '.join(observer.keywords[:5])} were handled with a "
                f"{len(guide.plan)}-step {guide.estimated_complexity}-complexity plan."
            ),
            tags=[observer.domain.lower(), *observer.keywords[:3]],
            source=f"run:{context.run_id}",
        )]

        if impl.blocked:
            lessons.append(CandidateLesson(
                title="Permission boundaries learned",
                content=(
                    f"{len(impl.blocked)} action(s) were blocked by the permission policy: "
                    + "; ".join(impl.blocked[:3])
                ),
                tags=["permissions", "safety"],
                source=f"run:{context.run_id}",
            ))
        return lessons

    def run(self, request, context):
        observer, guide, impl = context.require(self.name, "observer", "guide", "implementor")

        reasoning = self._call_llm({
            "domain": observer.domain,
            "plan_steps": len(guide.plan),
            "actions": len(impl.actions),
            "blocked": len(impl.blocked),
        })

        growth_areas = []
        if impl.blocked:
            growth_areas.append("Understand permission boundaries before proposing actions")
        if guide.estimated_complexity == "high":
            growth_areas.append("Break high-complexity tasks into smaller runs")
        if not growth_areas:
            growth_areas.append(f"Deepen expertise in the {observer.domain} domain")

        questions = [f"How can {observer.domain} tasks like this be verified earlier?"]
        if impl.blocked:
            questions.append("Which blocked actions could be rephrased to stay within policy?")

        return self._output(
            reflection=(
                f"Completed {len(guide.plan)}-step plan for {observer.domain} task "
                f"with {len(impl.actions)} action(s), {len(impl.blocked)} blocked. {reasoning}"
            ),
            candidate_lessons=[lesson.model_dump() for lesson in self.propose_lessons(context)],
            growth_areas=growth_areas,
            current_level=self.level,
            questions_for_next_time=questions,
        )
