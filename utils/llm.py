"""Generation providers: the capability every stage calls to produce text."""

import json
import logging
import os
import re
import time
from typing import Protocol

import anthropic

from config.defaults import DEFAULTS
from core.errors import ProviderError
from utils.mock_llm import MockProvider

logger = logging.getLogger(__name__)

RETRY_DELAY = 2


class GenerationProvider(Protocol):
    """Produce text given a system directive and a user payload."""

    name: str

    def generate(self, directive: str, payload: str) -> str:
        ...


class AnthropicProvider:
    """Claude-backed provider. One blocking call per generate()."""

    def __init__(self, api_key=None, model=None, max_tokens=None):
        api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ProviderError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Get a key at https://console.anthropic.com/ and run:\n"
                "  export ANTHROPIC_API_KEY='your-key-here'"
            )
        self.model = model or DEFAULTS["model"]
        self.max_tokens = max_tokens or DEFAULTS["max_tokens"]
        self.name = f"Anthropic/{self.model}"
        self.client = anthropic.Anthropic(api_key=api_key)

    def generate(self, directive, payload):
        last_error = None
        for attempt in range(2):
            try:
                # Streamed to avoid the SDK's long-request timeout; callers
                # still get one complete string back.
                text = ""
                with self.client.messages.stream(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=directive,
                    messages=[{"role": "user", "content": payload}],
                ) as stream:
                    for chunk in stream.text_stream:
                        text += chunk
            except anthropic.APIError as e:
                last_error = e
                if attempt == 0:
                    logger.warning("Anthropic call failed, retrying once: %s", e)
                    time.sleep(RETRY_DELAY)
                    continue
                raise ProviderError(f"Anthropic request failed: {e}", e) from e

            if not text.strip():
                raise ProviderError("Anthropic returned an empty response")
            return text

        raise ProviderError(f"Anthropic request failed: {last_error}", last_error)


def create_provider(force=None, model=None):
    """Pick a provider: ``force`` wins, else Anthropic when a key is set, else the stub."""
    if force == "mock":
        return MockProvider()
    if force == "anthropic":
        return AnthropicProvider(model=model)
    if force is not None:
        raise ValueError(f"Unknown provider: {force}")
    if os.environ.get("ANTHROPIC_API_KEY"):
        return AnthropicProvider(model=model)
    return MockProvider()


def parse_json_response(text):
    """Parse a JSON reply, tolerating markdown fences around it.

    Raises ValueError if the text is not JSON.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```\w*\n?", "", cleaned)
        cleaned = re.sub(r"\n?```$", "", cleaned)
    return json.loads(cleaned)
