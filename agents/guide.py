"""Guide agent: turns sub-problems into an ordered plan.

Folds in retrieved lessons and the improvement notes carried over from the
previous run.
"""

from agents.base import BaseAgent

MAX_LESSON_PRACTICES = 3
MAX_IMPROVEMENT_PRACTICES = 3


def estimate_complexity(sub_problem_count):
    if sub_problem_count <= 2:
        return "low"
    if sub_problem_count <= 5:
        return "medium"
    return "high"


class Guide(BaseAgent):
    name = "Guide"
    description = "Creates a step-by-step execution plan"
    system_prompt = "Guide: Create an execution plan."

    def run(self, request, context):
        crux, retriever = context.require(self.name, "crux_finder", "retriever")
        improvements = list(context.previous_improvements)

        self._call_llm({
            "core_problem": crux.core_problem,
            "sub_problems": crux.sub_problems,
            "retrieved_lessons": len(retriever.lessons),
            "previous_improvements": len(improvements),
        })

        plan = [
            {
                "step_number": i,
                "action": sub,
                "rationale": f"Addresses sub-problem: {sub}",
                "expected_output": f"Completed: {sub}",
            }
            for i, sub in enumerate(crux.sub_problems, 1)
        ]
        plan.append({
            "step_number": len(plan) + 1,
            "action": "Verify all sub-problems are resolved",
            "rationale": "Ensure completeness and correctness",
            "expected_output": "All checks pass",
        })

        best_practices = [f"Lesson: {lesson}" for lesson in retriever.lessons[:MAX_LESSON_PRACTICES]]
        best_practices += [
            f"Improvement: {imp}" for imp in improvements[:MAX_IMPROVEMENT_PRACTICES]
        ]
        if not best_practices:
            best_practices.append("Follow established project conventions")

        return self._output(
            plan=plan,
            estimated_complexity=estimate_complexity(len(crux.sub_problems)),
            warnings=list(crux.constraints),
            best_practices=best_practices,
        )
