"""Planner agent — converts the guide's plan into a linear task graph."""

from agents.base import BaseAgent

MAX_TITLE = 80


def task_id(index):
    return f"task-{index:03d}"


class Planner(BaseAgent):
    """One task per plan step, each depending on the one before it."""

    name = "Planner"
    description = "Decomposes guidance into executable tasks"
    system_prompt = "Planner: Decompose guidance into executable tasks."

    def run(self, request, context):
        guide, crux = context.require(self.name, "guide", "crux_finder")

        self._call_llm({
            "plan": [step.action for step in guide.plan],
            "sub_problems": crux.sub_problems,
        })

        tasks = []
        for idx, step in enumerate(guide.plan, 1):
            # Verification steps go to QA, everything else to the implementor
            owner = "qa" if "verify" in step.action.lower() else "implementor"
            tasks.append({
                "id": task_id(idx),
                "title": step.action[:MAX_TITLE],
                "description": (
                    f"Step {step.step_number}: {step.action}. Rationale: {step.rationale}"
                ),
                "owner": owner,
                "steps": [
                    f"Analyse: {step.rationale}",
                    f"Execute: {step.action}",
                    f"Verify: {step.expected_output}",
                ],
                "definition_of_done": [step.expected_output, "No errors or warnings"],
                "dependencies": [task_id(idx - 1)] if idx > 1 else [],
            })

        return self._output(tasks=tasks)
