"""Default pipeline settings."""

import os

DEFAULTS = {
    "model": "claude-sonnet-4-5-20250929",
    "max_tokens": 4096,
    "memory_dir": os.environ.get("AGENCY_MEMORY_DIR", os.path.join(os.getcwd(), "memory")),
    "workspace_root": os.environ.get("AGENCY_WORKSPACE", os.getcwd()),
    # Permission tiers: 0 read-only, 1 file edits, 2 git, 3 review + mentor
    "default_permission_level": 1,
    "max_permission_level": 3,
    "learner_initial_level": 0,
    # Gatekeeper policy thresholds (total score out of 25)
    "lesson_approval_threshold": 15,
    "promotion_threshold": 20,
    "clone_threshold": 22,
    # Retriever caps
    "example_min_score": 15,
    "max_lessons": 5,
    "max_playbooks": 3,
    "max_examples": 3,
    "max_keywords": 10,
    # Execution
    "tool_runner_mock_mode": True,
    "sandbox_timeout": 30,
    "allowed_commands": ["python3", "pip", "flake8", "pytest", "black"],
    "stage_timeout": None,      # seconds per stage; None waits forever
}
