"""Render rule trees back to CSS text."""

from __future__ import annotations

from collections.abc import Iterable

from scissors_core.rules.models import (
    Comment,
    Keyframe,
    KeyframesRule,
    MediaRule,
    PlaceholderRule,
    PlainRule,
    Rule,
    Style,
)

_INDENT = "\t"


def render_style(style: Style, depth: int = 0, compact: bool = False) -> str:
    """Render a declaration block, braces included."""
    if compact:
        decls = " ".join(f"{prop}: {value};" for prop, value in style.items())
        return "{ " + decls + " }" if decls else "{ }"
    pad = _INDENT * (depth + 1)
    lines = [f"{pad}{prop}: {value};" for prop, value in style.items()]
    return "{\n" + "".join(line + "\n" for line in lines) + _INDENT * depth + "}"


def render_keyframe(keyframe: Keyframe, depth: int = 0, compact: bool = False) -> str:
    prefix = "" if compact else _INDENT * depth
    return f"{prefix}{keyframe.key_text} {render_style(keyframe.style, depth, compact)}"


def render_rule(rule: Rule, depth: int = 0, compact: bool = False) -> str:
    """Render one rule. ``compact`` yields a single line suitable for insert_rule()."""
    pad = "" if compact else _INDENT * depth
    sep = " " if compact else "\n"
    if isinstance(rule, PlainRule):
        return f"{pad}{rule.selector_text} {render_style(rule.style, depth, compact)}"
    if isinstance(rule, MediaRule):
        body = sep.join(
            text for r in rule.rules if (text := render_rule(r, depth + 1, compact))
        )
        return f"{pad}@media {rule.media_text} {{{sep}{body}{sep}{pad}}}"
    if isinstance(rule, KeyframesRule):
        body = sep.join(render_keyframe(k, depth + 1, compact) for k in rule.keyframes)
        return f"{pad}@{rule.vendor_prefix}keyframes {rule.name} {{{sep}{body}{sep}{pad}}}"
    if isinstance(rule, Comment):
        return f"{pad}/*{rule.text}*/"
    if isinstance(rule, PlaceholderRule):
        return ""
    raise TypeError(f"Unknown rule type: {type(rule).__name__}")


def render_tree(rules: Iterable[Rule]) -> str:
    """Render a whole stylesheet, rules separated by a blank line."""
    return "\n\n".join(text for rule in rules if (text := render_rule(rule)))
