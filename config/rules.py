"""Rule tables shared by the observer, the safety guard and the tool runner."""

# Dropped before keyword extraction (tokens of 2 chars or less are dropped too)
STOP_WORDS = {
    "a", "an", "the", "and", "or", "but", "is", "are", "was", "were",
    "to", "of", "in", "for", "on", "with", "at", "by", "from", "it",
    "this", "that", "be", "have", "do", "will", "can", "create", "make",
}

# Domain families, checked in order: the first family with a hit wins.
# Keywords in DOMAIN_PREFIX_KEYWORDS match word starts ("test" -> "testing").
DOMAIN_FAMILIES = [
    ("QA", {"test", "spec", "qa", "pytest", "coverage", "regression", "assert"}),
    ("Design", {"design", "css", "ui", "ux", "layout", "stylesheet", "figma", "wireframe"}),
    ("Operations", {"deploy", "ci", "docker", "kubernetes", "k8s", "terraform", "infra", "monitoring"}),
]
DOMAIN_PREFIX_KEYWORDS = {"test", "deploy", "design", "infra"}
DEFAULT_DOMAIN = "Development"

# Plan-text patterns the safety guard flags. Matched as lowercase substrings.
DANGEROUS_PATTERNS = [
    # destructive filesystem
    "rm -rf",
    "rm -fr",
    "rm -r /",
    "rmdir /s",
    "del /f /s",
    "mkfs",
    "dd if=",
    "> /dev/sda",
    "format c:",
    "chmod -r 777",
    "chmod 777",
    "chown -r",
    # privilege escalation and process control
    "sudo",
    "su root",
    "shutdown",
    "reboot",
    "kill -9",
    "killall",
    ":(){",
    "| sh",
    "| bash",
    # destructive sql
    "drop database",
    "drop table",
    "truncate table",
    "delete from",
    "grant all",
    # secrets
    "process.env",
    "printenv",
    "api_key",
    "api_secret",
    "password",
    "secret_key",
    "private_key",
    "access_token",
    "aws_secret",
]

# Commands the permission policy and the tool runner refuse outright.
# Always a subset of DANGEROUS_PATTERNS.
BLOCKED_COMMANDS = [
    "rm -rf",
    "rm -fr",
    "rm -r /",
    "rmdir /s",
    "del /f /s",
    "mkfs",
    "dd if=",
    "> /dev/sda",
    "format c:",
    "chmod -r 777",
    "chmod 777",
    "sudo",
    "su root",
    "shutdown",
    "reboot",
    "kill -9",
    "killall",
    ":(){",
    "| sh",
    "| bash",
    "drop database",
    "drop table",
    "truncate table",
]

SYSTEM_PATH_PREFIXES = ["/etc/", "/usr/", "/root/", "C:\\Windows"]

# A plan step that logs something secret-looking needs a human to look at it
LOGGING_CALLS = ["print(", "console.log", "logger.", "logging."]
SECRET_TOKENS = ["key", "secret", "password", "token"]
