"""Allowlisted subprocess execution for the tool runner's live mode."""

import os
import shlex
import subprocess
from typing import NamedTuple

from config.defaults import DEFAULTS
from config.rules import SECRET_TOKENS


class SandboxResult(NamedTuple):
    stdout: str
    stderr: str
    returncode: int


def _argv(command):
    """Normalise a command string or list into an argv list."""
    argv = shlex.split(command) if isinstance(command, str) else command
    if not argv or not isinstance(argv, list):
        raise ValueError("Command must be a non-empty string or list of strings")
    return argv


def scrubbed_env():
    """Copy of os.environ without secret-looking variables (API keys, tokens)."""
    return {
        name: value for name, value in os.environ.items()
        if not any(token in name.lower() for token in SECRET_TOKENS)
    }


def run_in_sandbox(command, cwd, timeout=None, allowed=None) -> SandboxResult:
    """Run one allowlisted command with ``cwd`` as its working directory.

    The child gets a scrubbed environment and is killed after ``timeout``
    seconds. Timeouts and missing executables come back as returncode -1
    rather than raising.

    Raises:
        ValueError: empty command, executable not in ``allowed``, or a
            working directory that does not exist.
    """
    timeout = DEFAULTS["sandbox_timeout"] if timeout is None else timeout
    allowed = DEFAULTS["allowed_commands"] if allowed is None else allowed

    argv = _argv(command)
    executable = argv[0]
    if executable not in allowed:
        raise ValueError(f"Command '{executable}' not in allowlist: {allowed}")

    workdir = os.path.realpath(cwd)
    if not os.path.isdir(workdir):
        raise ValueError(f"Working directory does not exist: {workdir}")

    try:
        proc = subprocess.run(
            argv,
            cwd=workdir,
            env=scrubbed_env(),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return SandboxResult("", f"Command timed out after {timeout}s", -1)
    except FileNotFoundError:
        return SandboxResult("", f"Command not found: {executable}", -1)
    return SandboxResult(proc.stdout, proc.stderr, proc.returncode)
