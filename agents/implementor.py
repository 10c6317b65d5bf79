"""Implementor agent — proposes file and command actions for the plan.

Every proposed action goes through the permission gate. Blocked actions
stay in ``actions`` (flagged for approval) and are listed in ``blocked``
with the gate's reason; only allowed ones reach the created/modified/run
lists.
"""

import os

from agents.base import BaseAgent
from config.defaults import DEFAULTS
from core.permissions import check_permission
from core.schemas import ProposedAction
from utils.naming import module_path

VERIFY_COMMAND = "python3 -m pytest"

STUB_TEMPLATE = '''"""{action}

Generated for: {request}
"""


def run():
    raise NotImplementedError({action!r})
'''


class Implementor(BaseAgent):
    """Turns guide steps into concrete, permission-checked actions."""

    name = "Implementor"
    description = "Proposes file edits and commands, gated by the permission policy"
    system_prompt = "Implementor: Explain how each plan step will be implemented."

    def __init__(self, llm, policy):
        super().__init__(llm)
        self.policy = policy

    @property
    def workspace_root(self):
        paths = self.policy.allowed_workspace_paths
        return paths[0] if paths else DEFAULTS["workspace_root"]

    def propose(self, request, guide):
        """Build the unchecked action list for a guide plan."""
        actions = []
        taken = set()
        for step in guide.plan:
            if "verify" in step.action.lower():
                actions.append(ProposedAction(type="run_command", command=VERIFY_COMMAND))
                continue
            path = module_path(self.workspace_root, step.action, taken)
            taken.add(path)
            actions.append(ProposedAction(
                type="edit_file" if os.path.exists(path) else "create_file",
                path=path,
                content=STUB_TEMPLATE.format(action=step.action, request=request[:200]),
            ))
        return actions

    def run(self, request, context):
        observer, guide = context.require(self.name, "observer", "guide")

        reasoning = self._call_llm({
            "domain": observer.domain,
            "steps": [step.action for step in guide.plan],
            "permission_level": self.policy.current_level,
        })

        actions = []
        files_created = []
        files_modified = []
        commands_run = []
        blocked = []

        for action in self.propose(request, guide):
            result = check_permission(action, self.policy)
            if not result.allowed:
                # A blocked action must never run without a human
                actions.append(action.model_copy(update={"requires_approval": True}))
                blocked.append(f"{action.type} {action.target}: {result.reason}")
                continue
            actions.append(action)
            if action.type == "create_file":
                files_created.append(action.path)
            elif action.type == "edit_file":
                files_modified.append(action.path)
            elif action.type == "run_command":
                commands_run.append(action.command)

        step_count = len(guide.plan)
        return self._output(
            actions=[a.model_dump() for a in actions],
            explanation=(
                f"Implemented {step_count} step(s) for {observer.domain} task: {reasoning}"
            ),
            files_created=files_created,
            files_modified=files_modified,
            commands_run=commands_run,
            blocked=blocked,
        )
