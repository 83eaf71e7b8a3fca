"""Ordered IF-THEN merge rules and the built-in presets.

Rules are evaluated per change in list order; the first matching enabled rule
fires and no further rules are considered for that change. Only pending
changes are touched, so a user decision is never overridden by a rule.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from redline.errors import RuleError, UnknownPresetError
from redline.merge.types import (
    CHANGE_TYPES,
    IMPACTS,
    Alternative,
    ClassifiedChange,
    LengthCondition,
    MergeRule,
    Preset,
    RuleAction,
    RuleCondition,
)

_OPERATORS = ("<", ">", "<=", ">=", "=")
_ACTIONS = ("auto-accept", "flag")
_SOURCES = ("manual", "ai")

_MINOR_FIXES = ("grammar", "punctuation", "spelling")


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def matches(change: ClassifiedChange, condition: RuleCondition) -> bool:
    """True when every set field of *condition* holds for *change*."""
    if condition.change_types is not None and change.type not in condition.change_types:
        return False
    if condition.kinds is not None and change.kind not in condition.kinds:
        return False
    if condition.impacts is not None and change.impact not in condition.impacts:
        return False
    if condition.sections is not None and change.section not in condition.sections:
        return False
    if condition.semantic_shift is not None and change.semantic_shift != condition.semantic_shift:
        return False
    if condition.source is not None:
        if not any(alt.source == condition.source for alt in change.alternatives):
            return False
    if condition.keywords is not None:
        haystack = " ".join(
            [change.left_unit or "", change.right_unit or ""]
            + [alt.text for alt in change.alternatives]
        ).lower()
        if not any(k.lower() in haystack for k in condition.keywords):
            return False
    if condition.length is not None and not _length_matches(change, condition.length):
        return False
    return True


def choose_alternative(change: ClassifiedChange, action: RuleAction) -> Alternative | None:
    """Resolve which alternative an auto-accept *action* selects, if any."""
    if action.prefer is not None:
        wanted = action.prefer == "manual"
        return next((a for a in change.alternatives if a.is_manual == wanted), None)
    if 0 <= action.alternative < len(change.alternatives):
        return change.alternatives[action.alternative]
    return None


def apply_rules(changes: list[ClassifiedChange], rules: list[MergeRule]) -> list[ClassifiedChange]:
    """Return new ClassifiedChanges with the first matching rule applied.

    ``auto-accept`` marks the change ``auto-handled`` and selects an
    alternative; a rule whose alternative cannot be resolved does not match.
    ``flag`` leaves the change pending. Both may override the impact and
    record ``rule_applied``. The input list is not modified.
    """
    active = [r for r in rules if r.enabled]
    result: list[ClassifiedChange] = []
    for change in changes:
        result.append(_apply_first(change, active) if change.status == "pending" else change)
    return result


def accept(change: ClassifiedChange, version_id: str) -> ClassifiedChange:
    """Manually accept *version_id*'s alternative for *change*."""
    if not any(a.version_id == version_id for a in change.alternatives):
        raise RuleError(f"Change '{change.id}' has no alternative from version '{version_id}'.")
    return replace(change, status="accepted", selected_alternative_id=version_id)


def reject(change: ClassifiedChange) -> ClassifiedChange:
    """Manually reject *change*; the base text is kept."""
    return replace(change, status="rejected", selected_alternative_id=None)


def _apply_first(change: ClassifiedChange, rules: list[MergeRule]) -> ClassifiedChange:
    for rule in rules:
        if not matches(change, rule.condition):
            continue
        impact = rule.action.set_impact or change.impact
        if rule.action.type == "auto-accept":
            chosen = choose_alternative(change, rule.action)
            if chosen is None:
                continue
            return replace(
                change,
                status="auto-handled",
                selected_alternative_id=chosen.version_id,
                impact=impact,
                rule_applied=rule.name,
            )
        return replace(change, impact=impact, rule_applied=rule.name)
    return change


def _length_matches(change: ClassifiedChange, length: LengthCondition) -> bool:
    if length.unit == "characters":
        size = len(change.right_unit or change.left_unit or "")
    else:
        size = change.length
    if length.operator == "<":
        return size < length.value
    if length.operator == ">":
        return size > length.value
    if length.operator == "<=":
        return size <= length.value
    if length.operator == ">=":
        return size >= length.value
    return size == length.value


# ---------------------------------------------------------------------------
# Parsing (custom rules from redline.yaml)
# ---------------------------------------------------------------------------


def rule_from_dict(data: dict[str, Any], index: int = 0) -> MergeRule:
    """Build a MergeRule from a config mapping.

    Example::

        id: accept-modifications
        name: Auto-accept modifications
        when: {kinds: [modification]}
        then: {type: auto-accept, alternative: 0}

    Raises:
        RuleError: On unknown change types, impacts, operators or actions.
    """
    if not isinstance(data, dict):
        raise RuleError(f"Rule #{index + 1} must be a mapping, got {type(data).__name__}.")
    when = data.get("when") or {}
    then = data.get("then") or {}
    rule_id = str(data.get("id") or f"custom-{index + 1}")

    change_types = _tuple_or_none(when.get("change_types"))
    _check_members(rule_id, "change type", change_types, CHANGE_TYPES)
    impacts = _tuple_or_none(when.get("impacts"))
    _check_members(rule_id, "impact", impacts, IMPACTS)

    source = when.get("source")
    if source is not None and source not in _SOURCES:
        raise RuleError(f"Rule '{rule_id}': source must be 'manual' or 'ai', got '{source}'.")

    length = None
    if when.get("length") is not None:
        raw = when["length"]
        operator = str(raw.get("operator", "<"))
        if operator not in _OPERATORS:
            raise RuleError(f"Rule '{rule_id}': unknown length operator '{operator}'.")
        length = LengthCondition(
            operator=operator,
            value=int(raw.get("value", 0)),
            unit=str(raw.get("unit", "words")),
        )

    action_type = str(then.get("type", "flag"))
    if action_type not in _ACTIONS:
        raise RuleError(
            f"Rule '{rule_id}': unknown action '{action_type}'. Expected one of: {', '.join(_ACTIONS)}"
        )
    set_impact = then.get("set_impact")
    if set_impact is not None and set_impact not in IMPACTS:
        raise RuleError(f"Rule '{rule_id}': unknown impact '{set_impact}'.")
    prefer = then.get("prefer")
    if prefer is not None and prefer not in _SOURCES:
        raise RuleError(f"Rule '{rule_id}': prefer must be 'manual' or 'ai', got '{prefer}'.")

    semantic_shift = when.get("semantic_shift")
    return MergeRule(
        id=rule_id,
        name=str(data.get("name") or rule_id),
        enabled=bool(data.get("enabled", True)),
        condition=RuleCondition(
            change_types=change_types,
            kinds=_tuple_or_none(when.get("kinds")),
            impacts=impacts,
            sections=_tuple_or_none(when.get("sections")),
            source=source,
            semantic_shift=None if semantic_shift is None else bool(semantic_shift),
            keywords=_tuple_or_none(when.get("keywords")),
            length=length,
        ),
        action=RuleAction(
            type=action_type,
            alternative=int(then.get("alternative", 0)),
            prefer=prefer,
            set_impact=set_impact,
        ),
    )


def rules_from_config(raw_rules: list[dict[str, Any]]) -> list[MergeRule]:
    return [rule_from_dict(r, i) for i, r in enumerate(raw_rules)]


def _tuple_or_none(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _check_members(rule_id: str, what: str, values: tuple[str, ...] | None, allowed: tuple[str, ...]) -> None:
    for value in values or ():
        if value not in allowed:
            raise RuleError(f"Rule '{rule_id}': unknown {what} '{value}'.")


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

PRESETS: dict[str, Preset] = {
    p.id: p
    for p in (
        Preset(
            id="quick-review",
            name="Quick Review",
            description="Only show me conflicts and structural changes",
            rules=(
                MergeRule(
                    id="quick-1",
                    name="Auto-accept grammar fixes",
                    condition=RuleCondition(change_types=_MINOR_FIXES),
                    action=RuleAction(type="auto-accept", prefer="ai"),
                ),
                MergeRule(
                    id="quick-2",
                    name="Auto-accept minor word changes",
                    condition=RuleCondition(
                        change_types=("word-choice",),
                        length=LengthCondition(operator="<", value=3),
                    ),
                    action=RuleAction(type="auto-accept", prefer="ai"),
                ),
                MergeRule(
                    id="quick-3",
                    name="Show structural changes",
                    condition=RuleCondition(change_types=("structure",)),
                    action=RuleAction(type="flag", set_impact="critical"),
                ),
            ),
        ),
        Preset(
            id="balanced",
            name="Balanced Review",
            description="Smart defaults - review what matters",
            rules=(
                MergeRule(
                    id="balanced-1",
                    name="Auto-handle minor edits",
                    condition=RuleCondition(
                        change_types=_MINOR_FIXES,
                        length=LengthCondition(operator="<", value=5),
                    ),
                    action=RuleAction(type="auto-accept"),
                ),
                MergeRule(
                    id="balanced-2",
                    name="Flag structural changes",
                    condition=RuleCondition(change_types=("structure",)),
                    action=RuleAction(type="flag", set_impact="critical"),
                ),
                MergeRule(
                    id="balanced-3",
                    name="Flag tone changes",
                    condition=RuleCondition(semantic_shift=True),
                    action=RuleAction(type="flag", set_impact="important"),
                ),
                MergeRule(
                    id="balanced-4",
                    name="Show significant additions",
                    condition=RuleCondition(
                        change_types=("addition",),
                        length=LengthCondition(operator=">", value=10),
                    ),
                    action=RuleAction(type="flag", set_impact="important"),
                ),
            ),
        ),
        Preset(
            id="brand-guardian",
            name="Brand Guardian",
            description="Protect your voice and tone",
            rules=(
                MergeRule(
                    id="brand-1",
                    name="Auto-accept grammar only",
                    condition=RuleCondition(change_types=_MINOR_FIXES),
                    action=RuleAction(type="auto-accept", prefer="ai"),
                ),
                MergeRule(
                    id="brand-2",
                    name="Flag tone changes",
                    condition=RuleCondition(change_types=("tone",)),
                    action=RuleAction(type="flag", set_impact="critical"),
                ),
                MergeRule(
                    id="brand-3",
                    name="Flag all semantic shifts",
                    condition=RuleCondition(semantic_shift=True),
                    action=RuleAction(type="flag", set_impact="critical"),
                ),
            ),
        ),
        Preset(
            id="thorough-review",
            name="Thorough Review",
            description="See everything, decide on all changes",
            rules=(
                MergeRule(
                    id="thorough-1",
                    name="Show all changes",
                    condition=RuleCondition(),
                    action=RuleAction(type="flag"),
                ),
            ),
        ),
    )
}


def get_preset(preset_id: str) -> Preset:
    """Return a built-in preset by id.

    Raises:
        UnknownPresetError: If *preset_id* is not a built-in preset.
    """
    try:
        return PRESETS[preset_id]
    except KeyError:
        raise UnknownPresetError(preset_id) from None
