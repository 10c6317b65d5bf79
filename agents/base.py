"""Abstract base class for the eleven pipeline stages."""

import json
from abc import ABC, abstractmethod

from core.errors import ProviderError
from core.schemas import utc_now


class BaseAgent(ABC):
    """Base class that every stage agent must extend.

    A stage reads what it needs from the context, calls the provider and
    returns its output as a plain dict. Validation and writing the result
    into the context are the orchestrator's job.
    """

    name = "base"
    description = "Base agent"
    system_prompt = ""  # each agent overrides with its directive

    def __init__(self, llm):
        self.llm = llm

    @abstractmethod
    def run(self, request, context):
        """Return this stage's output as a dict."""

    def _call_llm(self, payload):
        """Send payload to the provider with this agent's directive."""
        if not isinstance(payload, str):
            payload = json.dumps(payload, default=str)
        try:
            return self.llm.generate(self.system_prompt, payload)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"{self.name}: provider call failed: {e}", e) from e

    def _output(self, **fields):
        """Stamp a stage output with the agent tag and completion time."""
        return {"agent": self.name, **fields, "timestamp": utc_now()}
