"""Runtime permission gate for proposed actions. Pure functions, no side effects.

Levels are cumulative:
    0 - read-only planning
    1 - file edits inside the workspace, non-git commands
    2 - git branch + commit
    3 - review + mentor
"""

from __future__ import annotations

from dataclasses import dataclass, field

from config.defaults import DEFAULTS
from config.rules import BLOCKED_COMMANDS

LEVEL_TITLES = {
    0: "Intern (read-only)",
    1: "Junior Developer",
    2: "Mid Developer",
    3: "Senior Developer",
}

_FILE_WRITES = ("create_file", "edit_file")


@dataclass
class PermissionPolicy:
    current_level: int
    allowed_workspace_paths: list[str] = field(default_factory=list)
    blocked_commands: list[str] = field(default_factory=lambda: list(BLOCKED_COMMANDS))

    def promote_to(self, level):
        """Raise the level (never lowers it), capped at the top tier."""
        level = min(level, DEFAULTS["max_permission_level"])
        if level > self.current_level:
            self.current_level = level
        return self.current_level


@dataclass(frozen=True)
class PermissionResult:
    allowed: bool
    reason: str
    requires_approval: bool = False


def create_default_policy(workspace_root):
    """Policy at the configured starting level (L1 by default) for ``workspace_root``.

    Promotion only ever raises the level, so the L0 read-only rules here and in
    the safety guard apply only to a policy built with ``current_level=0``.
    """
    return PermissionPolicy(
        current_level=DEFAULTS["default_permission_level"],
        allowed_workspace_paths=[workspace_root],
        blocked_commands=list(BLOCKED_COMMANDS),
    )


def check_permission(action, policy: PermissionPolicy) -> PermissionResult:
    """Decide whether one proposed action may run under ``policy``."""
    level = policy.current_level

    if level == 0:
        if action.type == "read_file":
            return PermissionResult(True, "Read-only action allowed at L0")
        return PermissionResult(
            False, f'Action "{action.type}" blocked: current level is L0 (read-only level)'
        )

    # Level-independent: raising the level never unlocks a destructive action
    if action.is_destructive:
        return PermissionResult(
            False, "Destructive action requires approval", requires_approval=True
        )

    if action.type == "run_command" and action.command:
        lower_cmd = action.command.lower()
        for blocked in policy.blocked_commands:
            if blocked.lower() in lower_cmd:
                return PermissionResult(
                    False, f'Command blocked: contains "{blocked}"', requires_approval=True
                )
        if level < 2 and "git" in lower_cmd:
            return PermissionResult(False, "Git commands require L2 or higher")

    if action.type in _FILE_WRITES and action.path:
        inside = any(action.path.startswith(ws) for ws in policy.allowed_workspace_paths)
        if not inside:
            return PermissionResult(
                False, f'Path "{action.path}" is outside workspace'
            )

    if level == 1:
        return PermissionResult(True, f"{action.type} allowed at L1")
    return PermissionResult(True, f"Action allowed at L{level}")


def evaluate_actions(actions, policy):
    """Split actions into (allowed, [(action, result), ...] blocked)."""
    allowed = []
    blocked = []
    for action in actions:
        result = check_permission(action, policy)
        if result.allowed:
            allowed.append(action)
        else:
            blocked.append((action, result))
    return allowed, blocked
