"""Deterministic offline provider for tests and keyless development."""

import json

# Fixed scorecards returned to the gatekeeper, picked by payload length
SCORE_TABLE = [
    {"correctness": 4, "verification": 3, "safety": 5, "clarity": 4, "autonomy": 3},  # 19
    {"correctness": 3, "verification": 4, "safety": 4, "clarity": 3, "autonomy": 4},  # 18
    {"correctness": 5, "verification": 4, "safety": 5, "clarity": 5, "autonomy": 4},  # 23
    {"correctness": 2, "verification": 3, "safety": 5, "clarity": 3, "autonomy": 2},  # 15
    {"correctness": 4, "verification": 5, "safety": 4, "clarity": 4, "autonomy": 5},  # 22
]


class MockProvider:
    """Returns canned text so the pipeline can run end-to-end without a model."""

    name = "MockLLM"

    def generate(self, directive, payload):
        if "quality evaluator" in directive and '"correctness"' in directive:
            return json.dumps(SCORE_TABLE[len(payload) % len(SCORE_TABLE)])

        hint = directive.split("\n")[0] or "Agent"
        return f'[{self.name}] Reasoning for {hint}: Analysing "{payload[:80]}"'
