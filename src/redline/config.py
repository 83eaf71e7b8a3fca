"""Redline configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (REDLINE_AI_MODEL, REDLINE_MERGE_PRESET)
  3. Per-project redline.yaml  (next to .redline.db)
  4. Global ~/.redline/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from redline.diff.models import DiffThresholds
from redline.errors import RuleError
from redline.merge.rules import PRESETS, rules_from_config
from redline.merge.types import MergeRule

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".redline"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "redline.yaml"

# Fields that suggest an API key, forbidden in global config.
# Does NOT match legitimate config keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # github_token, access_token (suffix)
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["project", "diff", "merge", "autosave", "ai"])

_THRESHOLD_FIELDS: tuple[str, ...] = (
    "replacement_floor",
    "paragraph_move",
    "move",
    "paragraph_modification",
    "modification",
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ProjectCfg:
    """Project metadata (redline.yaml: project:)."""

    name: str = ""
    document: str = "document.html"


@dataclass
class MergeCfg:
    """Merge review defaults (redline.yaml: merge:).

    Attributes:
        preset: Built-in preset id used when no --preset flag is given.
        rules: Custom rules, evaluated before the preset's rules.
    """

    preset: str = "balanced"
    rules: list[MergeRule] = field(default_factory=list)


@dataclass
class AutosaveCfg:
    """Checkpoint cadence (redline.yaml: autosave:)."""

    enabled: bool = True
    interval_seconds: int = 600
    min_changed_lines: int = 50


@dataclass
class AiCfg:
    """AI edit collaborator (redline.yaml: ai:)."""

    model: str = "anthropic/claude-3-5-haiku-20241022"
    max_tokens: int = 4_096
    temperature: float = 0.3


@dataclass
class RedlineConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    project: ProjectCfg = field(default_factory=ProjectCfg)
    diff: DiffThresholds = field(default_factory=DiffThresholds)
    merge: MergeCfg = field(default_factory=MergeCfg)
    autosave: AutosaveCfg = field(default_factory=AutosaveCfg)
    ai: AiCfg = field(default_factory=AiCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' (ignored).",
                UserWarning,
                stacklevel=4,
            )


def _parse_thresholds(raw: dict[str, Any], defaults: DiffThresholds) -> DiffThresholds:
    values: dict[str, float] = {}
    for name in _THRESHOLD_FIELDS:
        value = float(raw.get(name, getattr(defaults, name)))
        if not 0.0 <= value <= 1.0:
            raise ConfigError(f"diff.{name} must be between 0 and 1, got {value}.")
        values[name] = value
    return DiffThresholds(**values)


def _parse_merge(raw: dict[str, Any], defaults: MergeCfg) -> MergeCfg:
    preset = str(raw.get("preset", defaults.preset))
    if preset not in PRESETS:
        raise ConfigError(
            f"merge.preset '{preset}' is not a built-in preset. "
            f"Expected one of: {', '.join(PRESETS)}"
        )
    raw_rules = raw.get("rules") or []
    if not isinstance(raw_rules, list):
        raise ConfigError("merge.rules must be a list of rule mappings.")
    try:
        rules = rules_from_config(raw_rules)
    except RuleError as exc:
        raise ConfigError(f"merge.rules: {exc}") from exc
    return MergeCfg(preset=preset, rules=rules)


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RedlineConfig:
    """Build a *RedlineConfig* from a merged raw YAML dict."""
    cfg = RedlineConfig()

    if "project" in data:
        p = data["project"] or {}
        cfg.project = ProjectCfg(
            name=str(p.get("name", cfg.project.name)),
            document=str(p.get("document", cfg.project.document)),
        )

    if "diff" in data:
        cfg.diff = _parse_thresholds(data["diff"] or {}, cfg.diff)

    if "merge" in data:
        cfg.merge = _parse_merge(data["merge"] or {}, cfg.merge)

    if "autosave" in data:
        a = data["autosave"] or {}
        cfg.autosave = AutosaveCfg(
            enabled=bool(a.get("enabled", cfg.autosave.enabled)),
            interval_seconds=int(a.get("interval_seconds", cfg.autosave.interval_seconds)),
            min_changed_lines=int(a.get("min_changed_lines", cfg.autosave.min_changed_lines)),
        )

    if "ai" in data:
        ai = data["ai"] or {}
        cfg.ai = AiCfg(
            model=str(ai.get("model", cfg.ai.model)),
            max_tokens=int(ai.get("max_tokens", cfg.ai.max_tokens)),
            temperature=float(ai.get("temperature", cfg.ai.temperature)),
        )

    return cfg


def _apply_env_overrides(cfg: RedlineConfig) -> RedlineConfig:
    """Apply REDLINE_* environment variable overrides."""
    if model := os.environ.get("REDLINE_AI_MODEL"):
        cfg.ai.model = model
    if preset := os.environ.get("REDLINE_MERGE_PRESET"):
        if preset not in PRESETS:
            raise ConfigError(f"REDLINE_MERGE_PRESET '{preset}' is not a built-in preset.")
        cfg.merge.preset = preset
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RedlineConfig:
    """Load and return a merged *RedlineConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *redline.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, a diff
            threshold is outside [0, 1], or a merge preset/rule is invalid.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    return _apply_env_overrides(cfg)


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.redline/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Redline global configuration (defaults only).\n"
            "# NEVER store API keys here; use environment variables:\n"
            "#   export ANTHROPIC_API_KEY=sk-ant-...\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "ai:\n"
            "  model: anthropic/claude-3-5-haiku-20241022\n"
            "\n"
            "merge:\n"
            "  preset: balanced\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
