"""Rule tree model and CSS rendering."""

from scissors_core.rules.models import (
    Comment,
    Keyframe,
    KeyframesRule,
    MediaRule,
    PlaceholderRule,
    PlainRule,
    Rule,
    RuleTree,
    Style,
    rule_from_json,
)
from scissors_core.rules.render import render_rule, render_style, render_tree

__all__ = [
    "Comment",
    "Keyframe",
    "KeyframesRule",
    "MediaRule",
    "PlaceholderRule",
    "PlainRule",
    "Rule",
    "RuleTree",
    "Style",
    "render_rule",
    "render_style",
    "render_tree",
    "rule_from_json",
]
