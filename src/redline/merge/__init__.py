from redline.merge.classifier import classify, detect_change_type
from redline.merge.engine import build_changes, classify_and_merge, compute_stats, merge_into
from redline.merge.rules import PRESETS, accept, apply_rules, get_preset, reject, rule_from_dict, rules_from_config
from redline.merge.types import (
    Alternative,
    ClassifiedChange,
    LengthCondition,
    MergeOutcome,
    MergeResult,
    MergeRule,
    MergeStats,
    Preset,
    RuleAction,
    RuleCondition,
)

__all__ = [
    "PRESETS",
    "Alternative",
    "ClassifiedChange",
    "LengthCondition",
    "MergeOutcome",
    "MergeResult",
    "MergeRule",
    "MergeStats",
    "Preset",
    "RuleAction",
    "RuleCondition",
    "accept",
    "apply_rules",
    "build_changes",
    "classify",
    "classify_and_merge",
    "compute_stats",
    "detect_change_type",
    "get_preset",
    "merge_into",
    "reject",
    "rule_from_dict",
    "rules_from_config",
]
