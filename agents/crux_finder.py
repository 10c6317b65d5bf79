"""Crux finder agent: core problem, sub-problems, assumptions and constraints."""

from agents.base import BaseAgent


class CruxFinder(BaseAgent):
    name = "CruxFinder"
    description = "Decomposes the task into its core problem and sub-problems"
    system_prompt = "CruxFinder: Decompose the problem into sub-parts."

    def run(self, request, context):
        observer, _ = context.require(self.name, "observer", "pattern_observer")

        self._call_llm(observer.summary)

        keywords = observer.keywords
        sub_problems = [f"Implement {kw} component" for kw in keywords]

        return self._output(
            core_problem=f"Implement: {observer.summary[:120]}",
            sub_problems=sub_problems or ["Implement the requested feature"],
            assumptions=[
                "Python 3 environment available",
                "Standard file system access permitted",
            ],
            constraints=[
                f"Domain: {observer.domain}",
                "Must follow safety permissions policy",
            ],
            required_knowledge=[f"Knowledge of {kw}" for kw in keywords],
        )
