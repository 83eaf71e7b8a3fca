"""AI edit collaborator (LiteLLM) and rewrite templates."""
