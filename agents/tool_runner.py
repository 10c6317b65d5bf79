"""Tool runner agent — the execution layer. Zero LLM calls.

Mock mode (the default) records what would run. Live mode runs allowlisted
commands through the sandbox with the workspace as cwd; file operations are
recorded, never written.
"""

import logging

from agents.base import BaseAgent
from config.defaults import DEFAULTS
from config.rules import BLOCKED_COMMANDS
from core.sandbox import run_in_sandbox

logger = logging.getLogger(__name__)

MAX_OUTPUT = 2000


def is_dangerous(command):
    lower = command.lower()
    return any(pattern.lower() in lower for pattern in BLOCKED_COMMANDS)


class ToolRunner(BaseAgent):
    """Last line of defence: re-checks every command before anything executes."""

    name = "ToolRunner"
    description = "Executes (or mock-executes) allowed actions"

    def __init__(self, llm=None, mock_mode=None, workspace_root=None):
        super().__init__(llm)
        self.mock_mode = DEFAULTS["tool_runner_mock_mode"] if mock_mode is None else mock_mode
        self.workspace_root = workspace_root or DEFAULTS["workspace_root"]

    def run(self, request, context):
        impl = context.require(self.name, "implementor")

        executed = []
        skipped = []

        for action in impl.actions:
            if action.type != "run_command":
                continue
            cmd = action.command

            if is_dangerous(cmd):
                skipped.append(f"blocked: dangerous: {cmd}")
                logger.warning("ToolRunner blocked dangerous command: %s", cmd)
                continue
            if action.requires_approval:
                skipped.append(f"skipped: requires approval: {cmd}")
                logger.info("ToolRunner skipped command requiring approval: %s", cmd)
                continue

            if self.mock_mode:
                logger.info("ToolRunner mock-executed: %s", cmd)
                executed.append({
                    "command": cmd,
                    "success": True,
                    "output": f"[MOCK] would execute: {cmd}",
                    "mock_mode": True,
                })
                continue

            try:
                stdout, stderr, rc = run_in_sandbox(cmd, cwd=self.workspace_root)
            except ValueError as e:
                skipped.append(f"blocked: not allowlisted: {cmd} ({e})")
                logger.warning("ToolRunner refused command: %s", e)
                continue
            executed.append({
                "command": cmd,
                "success": rc == 0,
                "output": (stdout + stderr)[:MAX_OUTPUT],
                "mock_mode": False,
            })

        for action in impl.actions:
            if action.type not in ("create_file", "edit_file"):
                continue
            if action.is_destructive:
                skipped.append(f"blocked: destructive file op: {action.path}")
                continue
            if action.requires_approval:
                skipped.append(f"skipped: requires approval: {action.type} {action.path}")
                continue
            if self.mock_mode:
                output = f"[MOCK] would {action.type}: {action.path}"
            else:
                output = f"[LIVE] recorded {action.type}: {action.path}"
            executed.append({
                "command": f"{action.type}: {action.path}",
                "success": True,
                "output": output,
                "mock_mode": self.mock_mode,
            })

        return self._output(executed_commands=executed, skipped_commands=skipped)
