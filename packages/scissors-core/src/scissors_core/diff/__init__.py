"""Positional diff, wire codec, and patching."""

from scissors_core.diff.codec import (
    Change,
    Entry,
    Insert,
    Remove,
    Skip,
    decode_keyframes_diff,
    decode_rules_diff,
    encode_diff,
    encode_entry,
)
from scissors_core.diff.differ import RulesDiffer, diff_keyframes, diff_rules, diff_style
from scissors_core.diff.patcher import PatchReport, RulesPatcher
from scissors_core.diff.sinks import (
    KeyframesSink,
    RuleSink,
    StyleSheetSink,
    TreeSink,
    apply_style_diff,
)

__all__ = [
    "Change",
    "Entry",
    "Insert",
    "KeyframesSink",
    "PatchReport",
    "Remove",
    "RuleSink",
    "RulesDiffer",
    "RulesPatcher",
    "Skip",
    "StyleSheetSink",
    "TreeSink",
    "apply_style_diff",
    "decode_keyframes_diff",
    "decode_rules_diff",
    "diff_keyframes",
    "diff_rules",
    "diff_style",
    "encode_diff",
    "encode_entry",
]
