"""Safety guard agent — static scan of the task plan before anything runs.

Reports only. It never blocks execution or touches the permission policy;
the implementor's permission gate and the tool runner enforce.
"""

from agents.base import BaseAgent
from config.rules import (
    DANGEROUS_PATTERNS,
    LOGGING_CALLS,
    SECRET_TOKENS,
    SYSTEM_PATH_PREFIXES,
)


def scan_step(task, step):
    """Return (risks, blocked, needs_approval) for one sub-step of a task."""
    risks = []
    blocked = []
    needs_approval = False
    lower_step = step.lower()

    for pattern in DANGEROUS_PATTERNS:
        if pattern.lower() in lower_step:
            blocked.append(f'Task {task.id}: Step "{step}" contains dangerous pattern "{pattern}"')
            risks.append(f'Dangerous pattern "{pattern}" detected in task "{task.title}"')

    logs = any(call in lower_step for call in LOGGING_CALLS)
    if logs and any(token in lower_step for token in SECRET_TOKENS):
        risks.append(f'Potential secret exposure in task "{task.title}": {step}')
        needs_approval = True

    return risks, blocked, needs_approval


def references_system_path(text):
    return any(prefix in text for prefix in SYSTEM_PATH_PREFIXES)


class SafetyGuard(BaseAgent):
    """Validates the full plan against dangerous patterns and the permission level."""

    name = "SafetyGuard"
    description = "Scans the plan for dangerous patterns (no execution)"
    system_prompt = "SafetyGuard: Validate plan safety before execution."

    def __init__(self, llm, policy):
        super().__init__(llm)
        self.policy = policy

    def run(self, request, context):
        guide, planner = context.require(self.name, "guide", "planner")

        self._call_llm({
            "task_count": len(planner.tasks),
            "complexity": guide.estimated_complexity,
        })

        risks = []
        blocked_actions = []
        requires_approval = False

        # --- Per-step pattern scan ---
        for task in planner.tasks:
            for step in task.steps:
                step_risks, step_blocked, needs_approval = scan_step(task, step)
                risks.extend(step_risks)
                blocked_actions.extend(step_blocked)
                requires_approval = requires_approval or needs_approval

            if references_system_path(task.description):
                blocked_actions.append(f"Task {task.id}: References system path outside workspace")
                risks.append(f'Out-of-workspace path in task "{task.title}"')

        # --- Permission level vs task ownership ---
        if self.policy.current_level == 0:
            write_tasks = [t for t in planner.tasks if t.owner == "implementor"]
            if write_tasks:
                risks.append(
                    f"{len(write_tasks)} implementor tasks require L1+ permissions (current: L0)"
                )
                requires_approval = True

        # Informational only
        if guide.estimated_complexity == "high":
            risks.append("High complexity plan - recommend additional review")

        return self._output(
            safe=not blocked_actions and not requires_approval,
            risks=risks,
            blocked_actions=blocked_actions,
            requires_approval=requires_approval,
        )
