"""Pattern observer agent: turns keywords into ranked pattern hints."""

from agents.base import BaseAgent

CONFIDENCE_STEP = 0.1
MIN_CONFIDENCE = 0.5


def keyword_patterns(keywords, note=""):
    """One pattern per keyword, confidence decaying by position, floored at 0.5."""
    patterns = []
    for i, kw in enumerate(keywords):
        patterns.append({
            "name": f"{kw}-pattern",
            "description": f'Pattern related to "{kw}" - {note[:60]}'.rstrip(" -"),
            "confidence": max(MIN_CONFIDENCE, round(1.0 - i * CONFIDENCE_STEP, 2)),
        })
    if not patterns:
        patterns.append({
            "name": "general",
            "description": "General task pattern",
            "confidence": MIN_CONFIDENCE,
        })
    return patterns


class PatternObserver(BaseAgent):
    """Looks for recurring patterns and suggests an approach."""

    name = "PatternObserver"
    description = "Identifies patterns and prior art"
    system_prompt = "PatternObserver: Identify patterns and prior art."

    def run(self, request, context):
        observer = context.require(self.name, "observer")

        reasoning = self._call_llm({"summary": observer.summary, "keywords": observer.keywords})

        return self._output(
            patterns=keyword_patterns(observer.keywords, reasoning),
            similar_past_tasks=[],
            suggested_approach=(
                f'Based on domain "{observer.domain}" and {len(observer.keywords)} keywords, '
                "use a structured implementation approach."
            ),
        )
