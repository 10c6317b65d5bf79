"""Naming utilities: slugs for lesson ids, playbooks and generated module paths."""

import os
import re

MAX_DEDUP = 1000


def slugify(text, sep="_", max_len=None):
    """Convert text to a filesystem-safe slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", sep, text)
    text = text.strip(sep)
    if max_len:
        text = text[:max_len].rstrip(sep)
    return text or "untitled"


def _check_containment(path, root):
    """Verify the resolved path stays within root."""
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(root) + os.sep):
        raise ValueError(f"Generated path escapes workspace: {path}")
    return resolved


def module_path(workspace_root, action_text, taken=()):
    """Return a workspace path for a module implementing ``action_text``.

    Names already in ``taken`` get a _2, _3, ... suffix.
    """
    name = slugify(action_text, max_len=40)
    base = os.path.join(workspace_root, "src", name)
    _check_containment(base, workspace_root)

    candidate = f"{base}.py"
    if candidate not in taken:
        return candidate
    for counter in range(2, MAX_DEDUP + 2):
        candidate = f"{base}_{counter}.py"
        if candidate not in taken:
            return candidate
    raise RuntimeError(f"Too many modules named {name}")
