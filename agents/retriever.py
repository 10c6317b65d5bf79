"""Retriever agent: pulls relevant lessons, playbooks and past runs from memory.

Plain keyword matching: a candidate's score is the number of search terms
that occur in its text. No vector index.
"""

from agents.base import BaseAgent
from config.defaults import DEFAULTS


def rank_by_relevance(items, terms, text_of=str):
    """Return items with at least one term hit, most hits first.

    Ties keep their original order.
    """
    scored = []
    for item in items:
        haystack = text_of(item).lower()
        score = sum(1 for term in terms if term in haystack)
        if score > 0:
            scored.append((score, item))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in scored]


def _lesson_text(lesson):
    return " ".join([lesson.title, lesson.content, *lesson.tags])


class Retriever(BaseAgent):
    name = "Retriever"
    description = "Searches memory for relevant knowledge"
    system_prompt = "Retriever: Search memory for relevant knowledge."

    def __init__(self, llm, memory):
        super().__init__(llm)
        self.memory = memory

    def run(self, request, context):
        observer, patterns, crux = context.require(
            self.name, "observer", "pattern_observer", "crux_finder"
        )

        self._call_llm({
            "core_problem": crux.core_problem,
            "patterns": [p.name for p in patterns.patterns],
        })

        terms = [
            t.lower()
            for t in [
                *crux.sub_problems,
                *crux.required_knowledge,
                *observer.keywords,
                *(p.name for p in patterns.patterns),
            ]
        ]

        lessons = rank_by_relevance(self.memory.list_lessons(), terms, _lesson_text)
        playbooks = rank_by_relevance(self.memory.list_playbooks(), terms)

        # Filtered by score only; order is whatever the store returns
        examples = [
            f'Run {p.run_id}: "{p.request}" (score: {p.total_score}/25)'
            for p in self.memory.list_portfolio()
            if p.total_score >= DEFAULTS["example_min_score"]
        ]

        return self._output(
            lessons=[f"[{lesson.title}] {lesson.content}" for lesson in lessons[:DEFAULTS["max_lessons"]]],
            playbooks=playbooks[:DEFAULTS["max_playbooks"]],
            examples=examples[:DEFAULTS["max_examples"]],
        )
