"""Sub-task suggestions from an OpenAI-compatible chat completion endpoint.

The model is asked for a JSON array of strings. Anything else it sends back
is parsed on a best-effort basis: one suggestion per non-empty line with the
leading list markup removed.
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx
import openai
from openai import OpenAI

from ..config import AI_API_KEY, AI_BASE_URL, AI_MODEL
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5

SYSTEM_PROMPT = (
    "You are a helpful task management assistant. Break down tasks into 3-5 "
    "actionable subtasks. Return only a JSON array of strings."
)

# "1. ", "- ", "* ", "2) " and similar bullets
_LIST_MARKUP = re.compile(r"^[\d\-\*\.\)\s]+")


def _single_line(text: str) -> str:
    return " ".join(text.split())


def parse_suggestions(content: Optional[str]) -> List[str]:
    """Turn the model's reply into at most five suggestion titles."""
    if not content:
        return []

    try:
        parsed = json.loads(content)
    except ValueError:
        logger.info("Suggestion reply is not JSON, falling back to line split")
        lines = (_LIST_MARKUP.sub("", line) for line in content.splitlines())
        candidates = [_single_line(line) for line in lines]
    else:
        if not isinstance(parsed, list):
            return []
        candidates = [_single_line(item) for item in parsed if isinstance(item, str)]

    return [c for c in candidates if c][:MAX_SUGGESTIONS]


def build_prompt(title: str, description: Optional[str] = None) -> str:
    prompt = f'Break down this task: "{title}"'
    if description:
        prompt += f" - {description}"
    return prompt


class SuggestionProvider(ABC):
    """Anything that can propose sub-task titles for a task."""

    @abstractmethod
    def suggest(self, title: str, description: Optional[str] = None) -> List[str]:
        """Return at most five short sub-task titles."""


def build_openai_client(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
) -> OpenAI:
    """OpenAI client for the suggestion endpoint; one request, no retries."""
    api_key = api_key if api_key is not None else AI_API_KEY
    if not api_key:
        logger.error("No AI API key configured (AI_API_KEY / GROQ_API_KEY)")
        raise UpstreamError("AI service is not configured")
    return OpenAI(
        api_key=api_key,
        base_url=base_url or AI_BASE_URL,
        max_retries=0,
        http_client=http_client,
    )


class ChatCompletionSuggester(SuggestionProvider):
    def __init__(self, client: Optional[OpenAI] = None, model: str = AI_MODEL):
        self.client = client
        self.model = model

    def _get_client(self) -> OpenAI:
        # Built on first use so a missing key never masks a bad request body
        if self.client is None:
            self.client = build_openai_client()
        return self.client

    def suggest(self, title: str, description: Optional[str] = None) -> List[str]:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(title, description)},
                ],
                temperature=0.7,
                max_tokens=500,
            )
        except openai.OpenAIError as exc:
            logger.exception("Suggestion request failed")
            raise UpstreamError("Failed to generate subtasks") from exc

        content = None
        if response.choices:
            content = response.choices[0].message.content
        return parse_suggestions(content)


def get_suggestion_provider() -> SuggestionProvider:
    """FastAPI dependency returning the configured suggestion provider."""
    return ChatCompletionSuggester()
