"""Tests for core.permissions and the shared rule tables."""

import pytest

from config.rules import BLOCKED_COMMANDS, DANGEROUS_PATTERNS
from core.permissions import (
    LEVEL_TITLES,
    PermissionPolicy,
    check_permission,
    create_default_policy,
    evaluate_actions,
)
from core.schemas import ProposedAction

WS = "/work/project"


def _policy(level):
    return PermissionPolicy(current_level=level, allowed_workspace_paths=[WS])


def _create(path=f"{WS}/src/app.py", destructive=False):
    return ProposedAction(type="create_file", path=path, content="x", is_destructive=destructive)


def _cmd(command):
    return ProposedAction(type="run_command", command=command)


def test_blocked_commands_are_dangerous_patterns():
    assert set(BLOCKED_COMMANDS) <= set(DANGEROUS_PATTERNS)
    assert len(DANGEROUS_PATTERNS) >= 30


def test_default_policy():
    policy = create_default_policy(WS)
    assert policy.current_level == 1
    assert policy.allowed_workspace_paths == [WS]
    assert "rm -rf" in policy.blocked_commands


def test_default_policy_never_reaches_l0():
    policy = create_default_policy(WS)
    assert policy.promote_to(0) == 1
    assert check_permission(ProposedAction(type="create_file", path=f"{WS}/a.py"), policy).allowed


def test_level_titles():
    assert sorted(LEVEL_TITLES) == [0, 1, 2, 3]
    assert "read-only" in LEVEL_TITLES[0]


def test_l0_allows_only_reads():
    read = check_permission(ProposedAction(type="read_file", path=f"{WS}/a.py"), _policy(0))
    assert read.allowed

    write = check_permission(_create(), _policy(0))
    assert not write.allowed
    assert "read-only level" in write.reason
    assert not write.requires_approval


def test_l1_allows_workspace_file():
    result = check_permission(_create(), _policy(1))
    assert result.allowed


def test_destructive_blocked_at_every_level():
    for level in (1, 2, 3):
        result = check_permission(_create(destructive=True), _policy(level))
        assert not result.allowed
        assert result.requires_approval
        assert result.reason == "Destructive action requires approval"


@pytest.mark.parametrize("command", ["rm -rf build", "SUDO apt install x", "echo hi | sh"])
def test_blocked_command_needs_approval(command):
    result = check_permission(_cmd(command), _policy(3))
    assert not result.allowed
    assert result.requires_approval
    assert "Command blocked" in result.reason


def test_git_requires_l2():
    at_l1 = check_permission(_cmd("git commit -m wip"), _policy(1))
    assert not at_l1.allowed
    assert not at_l1.requires_approval
    assert "L2" in at_l1.reason

    assert check_permission(_cmd("git commit -m wip"), _policy(2)).allowed


def test_outside_workspace_blocked():
    result = check_permission(_create(path="/etc/passwd"), _policy(3))
    assert not result.allowed
    assert "outside workspace" in result.reason
    assert not result.requires_approval


def test_safe_command_allowed_at_l1():
    assert check_permission(_cmd("python3 -m pytest"), _policy(1)).allowed


def test_raising_level_never_blocks_an_allowed_action():
    actions = [
        ProposedAction(type="read_file", path=f"{WS}/a.py"),
        _create(),
        _create(path="/tmp/elsewhere.py"),
        _create(destructive=True),
        ProposedAction(type="edit_file", path=f"{WS}/a.py", content="y"),
        _cmd("python3 -m pytest"),
        _cmd("git status"),
        _cmd("rm -rf /"),
    ]
    for action in actions:
        seen_allowed = False
        for level in range(4):
            allowed = check_permission(action, _policy(level)).allowed
            if seen_allowed:
                assert allowed, f"{action.type} {action.target} blocked again at L{level}"
            seen_allowed = seen_allowed or allowed


def test_evaluate_actions_partitions():
    actions = [_create(), _cmd("rm -rf /"), _cmd("python3 -m pytest")]
    allowed, blocked = evaluate_actions(actions, _policy(1))
    assert allowed == [actions[0], actions[2]]
    assert len(blocked) == 1
    action, result = blocked[0]
    assert action is actions[1]
    assert result.requires_approval


def test_promote_to_only_raises():
    policy = _policy(2)
    assert policy.promote_to(1) == 2
    assert policy.promote_to(3) == 3
    assert policy.promote_to(7) == 3
