"""Commit message suggestions from an OpenAI-compatible chat endpoint."""

import logging
import re
from typing import Any

import httpx

from ..config import AIConfig, CommitMessageStyle

logger = logging.getLogger(__name__)

MAX_TOKENS = 150
TRUNCATION_MARKER = "...[truncated]"

_TOKEN_PATTERN = re.compile(r"^[a-zA-Z0-9_\-.]{20,}$")

SYSTEM_PROMPT = (
    "You are a helpful assistant that writes concise, descriptive git commit "
    "messages based on code changes."
)

BULLET_PROMPT = """Analyze the following git diff and create a commit message with bullet points. Format as:
Brief summary title
  - feat: add user authentication
  - fix(api): resolve syntax error
  - docs: update README

Use past tense verbs. No blank line between title and bullets. Keep concise. Do not wrap the response in quotes.

Git diff:
{diff}"""

SIMPLE_PROMPT = """Analyze the following git diff and create a concise, descriptive commit message. Use conventional commit format when appropriate (feat:, fix:, docs:, etc.). Keep it under 72 characters for the first line.

Git diff:
{diff}"""


def is_valid_token(token: str | None) -> bool:
    """Check the token looks like an API key before sending anything."""
    return bool(token) and _TOKEN_PATTERN.match(token or "") is not None


def truncate_diff(diff: str, max_characters: int) -> str:
    """Cut the diff to the character budget, marking the cut."""
    if len(diff) <= max_characters:
        return diff
    logger.info("Git diff truncated to %d characters", max_characters)
    return diff[:max_characters] + TRUNCATION_MARKER


def build_payload(diff: str, style: CommitMessageStyle, config: AIConfig) -> dict[str, Any]:
    template = BULLET_PROMPT if style == CommitMessageStyle.BULLET else SIMPLE_PROMPT
    return {
        "model": config.model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": template.format(diff=truncate_diff(diff, config.max_characters))},
        ],
        "max_tokens": MAX_TOKENS,
        "temperature": config.temperature,
    }


def clean_suggestion(text: str) -> str:
    """Strip whitespace and a single pair of wrapping quotes."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        text = text[1:-1].strip()
    return text


def suggest_commit_message(
    diff: str,
    style: CommitMessageStyle,
    config: AIConfig,
    client: httpx.Client | None = None,
) -> str | None:
    """Ask the AI endpoint for a commit message describing ``diff``.

    Args:
        diff: Staged diff text
        style: Bullet list or single-line message
        config: AI endpoint settings
        client: Optional preconfigured client (tests pass a MockTransport client)

    Returns:
        The suggestion, or None when the suggestion is unavailable for any reason
    """
    if not diff.strip():
        return None
    if not is_valid_token(config.token):
        logger.warning("AI token is missing or malformed; skipping suggestion")
        return None

    payload = build_payload(diff, style, config)
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.token}",
    }
    logger.debug("Requesting commit suggestion from %s (model %s)", config.endpoint, config.model)

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=httpx.Timeout(config.timeout, connect=5.0))
    try:
        response = client.post(config.endpoint, json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.warning("AI request failed with status %s", e.response.status_code)
        return None
    except httpx.HTTPError as e:
        logger.warning("AI request failed: %s", e)
        return None
    except ValueError:
        logger.warning("AI response was not valid JSON")
        return None
    finally:
        if owns_client:
            client.close()

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        logger.warning("AI response had no choices")
        return None
    if not isinstance(content, str):
        return None
    return clean_suggestion(content) or None
