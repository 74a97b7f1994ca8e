"""Chat-completion client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import openai

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Completion:
    text: str
    usage: Dict[str, int] = field(default_factory=dict)


class CompletionClient:
    """Wraps ``openai.OpenAI().chat.completions`` with a per-call timeout.

    No retries: a slow or failing upstream surfaces as the client's exception.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        *,
        timeout: float = 30.0,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        client: Optional[openai.OpenAI] = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    @property
    def client(self) -> openai.OpenAI:
        # Built on first use so commands that never chat need no API key.
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self._api_key, base_url=self._base_url, timeout=self.timeout, max_retries=0
            )
        return self._client

    def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]]) -> Completion:
        payload: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]
        payload.extend({"role": m["role"], "content": m["content"]} for m in messages)

        kwargs = {}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        response = self.client.chat.completions.create(
            model=self.model,
            messages=payload,
            timeout=self.timeout,
            **kwargs,
        )

        text = response.choices[0].message.content or ""
        usage: Dict[str, int] = {}
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
            LOGGER.debug("Completion usage for %s: %s", self.model, usage)
        return Completion(text=text.strip(), usage=usage)
