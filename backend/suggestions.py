import json
import re
from typing import Any, Optional

import httpx

from config import ProviderSettings, resolve_provider_settings
from prompts import SYSTEM_PROMPT

MAX_SUGGESTIONS = 12
TEMPERATURE = 0.4
MAX_TOKENS = 512

# Leading list markers: digits, periods, parentheses, dashes, bullets, whitespace
_LEADING_MARKERS = re.compile(r"^[\s\-•0-9.()]+")
_WHITESPACE_RUN = re.compile(r"\s+")
_EMBEDDED_ARRAY = re.compile(r"\[.*\]", re.DOTALL)
# Lines like "Here are your tasks:" introduce a list rather than being part of it
_HEADING_SUFFIXES = (":", "：")


class SuggestionError(Exception):
    """Base error for the suggestion flow. Carries a user-facing message."""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(SuggestionError):
    """Bad or missing caller input (prompt or API key)."""


class UpstreamError(SuggestionError):
    """Provider unreachable, non-success status, or unusable payload."""


class ParseError(ValueError):
    """A single extraction strategy found nothing usable."""


def normalize_task(value: str) -> str:
    """Strip leading list markers and collapse whitespace. Idempotent."""
    value = _LEADING_MARKERS.sub("", value)
    return _WHITESPACE_RUN.sub(" ", value).strip()


def pick_tasks(value: Any) -> list[str]:
    """Pull string items out of a decoded JSON array or {"tasks": [...]} object."""
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    if isinstance(value, dict) and isinstance(value.get("tasks"), list):
        return [item for item in value["tasks"] if isinstance(item, str)]
    return []


def _parse_json_tasks(text: str) -> list[str]:
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise ParseError(str(e)) from e
    tasks = pick_tasks(parsed)
    if not tasks:
        raise ParseError("no string items")
    return tasks


def _parse_embedded(text: str) -> list[str]:
    match = _EMBEDDED_ARRAY.search(text)
    if not match:
        raise ParseError("no bracketed span")
    return _parse_json_tasks(match.group(0))


def _parse_lines(text: str) -> list[str]:
    lines = (normalize_task(raw) for raw in text.split("\n"))
    return [line for line in lines if line and not line.endswith(_HEADING_SUFFIXES)]


_STRATEGIES = (_parse_json_tasks, _parse_embedded)


def extract_tasks(content: str) -> list[str]:
    """
    Turn a raw model reply into candidate task strings.

    Tries a whole-payload JSON parse, then the first-[ to last-] span, then
    falls back to one entry per non-empty line. Never raises.
    """
    trimmed = content.strip()
    if not trimmed:
        return []

    for strategy in _STRATEGIES:
        try:
            return strategy(trimmed)
        except ParseError:
            continue

    return _parse_lines(trimmed)


def clean_tasks(candidates: list[str]) -> list[str]:
    normalized = [normalize_task(item) for item in candidates]
    return [item for item in normalized if item][:MAX_SUGGESTIONS]


def build_payload(prompt: str, model: str) -> dict:
    return {
        "model": model,
        "temperature": TEMPERATURE,
        "max_tokens": MAX_TOKENS,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
    }


def _message_content(data: Any) -> Optional[str]:
    """Dig choices[0].message.content out of a chat-completion reply."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


async def fetch_completion(
    client: httpx.AsyncClient, settings: ProviderSettings, payload: dict
) -> str:
    """POST the payload to the provider and return the message content."""
    try:
        response = await client.post(
            settings.completions_url,
            headers={
                "Authorization": f"Bearer {settings.api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
        )
    except httpx.HTTPError as e:
        raise UpstreamError("Could not reach the model provider.", detail=str(e)) from e

    if not response.is_success:
        raise UpstreamError("Model provider request failed.", detail=response.text)

    try:
        data = response.json()
    except (ValueError, RecursionError):
        data = None

    content = _message_content(data)
    if content is None:
        raise UpstreamError("Model provider returned empty content.", detail=data)

    print(f"Model response: {content}")
    return content


async def suggest_tasks(
    client: httpx.AsyncClient,
    prompt: str,
    api_key: str = "",
    model: str = "",
    env=None,
) -> list[str]:
    """Validate input, ask the provider to decompose the prompt, and clean the reply."""
    prompt = (prompt or "").strip()
    if not prompt:
        raise ValidationError("Please provide a task description.")

    settings = resolve_provider_settings(api_key=api_key, model=model, env=env)
    if not settings.api_key:
        raise ValidationError("Provide an API key or configure DOUBAO_API_KEY.")

    content = await fetch_completion(client, settings, build_payload(prompt, settings.model))
    return clean_tasks(extract_tasks(content))
