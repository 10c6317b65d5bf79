"""Observer agent: summarises the request, extracts keywords, picks a domain."""

from agents.base import BaseAgent
from utils.classifier import classify_domain, extract_keywords


class Observer(BaseAgent):
    """First stage. Needs nothing but the raw request."""

    name = "Observer"
    description = "Summarises the request and classifies its domain"
    system_prompt = "Observer: You observe and summarise the user request."

    def run(self, request, context):
        reasoning = self._call_llm(request)

        domain = classify_domain(request)
        keywords = extract_keywords(request)
        if not keywords:
            # Nothing survived the stop-word filter ("do it"); the domain stands in
            keywords = [domain.lower()]

        return self._output(
            summary=f"Task request: {request[:200]}. {reasoning}",
            keywords=keywords,
            domain=domain,
            raw_input=request,
        )
