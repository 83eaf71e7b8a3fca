"""Built-in rewrite prompt templates.

Projects can add or override templates through the settings store
(``DocumentSession.save_rewrite_template``); these are the fallbacks.
"""

from __future__ import annotations

DEFAULT_REWRITE_TEMPLATES: dict[str, str] = {
    "shorten": "Make this text more concise without losing any key information.",
    "formal": "Rewrite this text in a more formal, professional tone.",
    "casual": "Rewrite this text in a friendlier, more conversational tone.",
    "clarify": "Rewrite this text so it is clearer and easier to follow.",
    "grammar": "Fix grammar, spelling and punctuation. Change nothing else.",
    "expand": "Expand this text with more detail and supporting examples.",
}
