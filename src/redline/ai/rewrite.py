"""AI rewrite collaborator: turns a model into an ``EditFunction``."""

from __future__ import annotations

import re

from redline.ai.llm_client import complete, validate_api_key
from redline.protocols import EditFunction

_SYSTEM_PROMPT = (
    "You are an editing assistant. Rewrite the document you are given according "
    "to the user's instruction. Preserve the document's format: if it is HTML, "
    "return HTML using the same block elements; if it is plain text, return plain "
    "text with paragraphs separated by blank lines. Return only the rewritten "
    "document, with no commentary and no code fences."
)

_FENCE_RE = re.compile(r"^```[\w-]*\n(.*?)\n?```\s*$", re.DOTALL)


def build_messages(prompt: str, content: str) -> list[dict]:
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"Instruction: {prompt}\n\n<document>\n{content}\n</document>",
        },
    ]


def strip_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole reply, if any."""
    match = _FENCE_RE.match(text.strip())
    return match.group(1) if match else text.strip()


def make_edit_function(
    model: str,
    *,
    max_tokens: int = 4096,
    temperature: float = 0.3,
    check_key: bool = True,
) -> EditFunction:
    """Return an ``edit(prompt, content) -> content`` backed by *model*.

    An empty reply leaves the content unchanged.

    Raises:
        EnvironmentError: If *check_key* and the provider's API key is unset.
    """
    if check_key:
        validate_api_key(model)

    def edit(prompt: str, content: str) -> str:
        reply = complete(
            model,
            build_messages(prompt, content),
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return strip_fences(reply) or content

    return edit
