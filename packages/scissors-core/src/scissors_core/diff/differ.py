"""Positional differ for rule trees."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TypeVar

from scissors_core.diff.codec import Change, Entry, Insert, Remove, Skip
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
)

T = TypeVar("T")


def diff_style(old: Style, new: Style) -> Style | None:
    """Property-level diff of two style maps.

    Changed properties carry the new value, removed ones the empty string,
    added ones their value. Returns None when nothing differs.
    """
    out: Style = {}
    for prop, value in old.items():
        new_value = new.get(prop)
        if new_value != value:
            out[prop] = new_value or ""
    for prop, value in new.items():
        if prop not in old:
            out[prop] = value
    return out or None


def _diff_text(old: str, new: str) -> str | None:
    return None if old == new else new


def _diff_sequence(
    old: Sequence[T],
    new: Sequence[T],
    diff_item: Callable[[T, T], Entry | None],
) -> tuple[Entry, ...]:
    entries: list[Entry] = []
    skip = 0
    common = min(len(old), len(new))

    for i in range(common):
        entry = diff_item(old[i], new[i])
        if entry is None:
            skip += 1
            continue
        entries.append(replace(entry, skip=skip))
        skip = 0

    if len(new) > common:
        if skip:
            entries.append(Skip(skip=skip))
        entries.extend(Insert(item=item.model_copy(deep=True)) for item in new[common:])
    elif len(old) > common:
        entries.append(Remove(count=len(old) - common, skip=skip))

    return tuple(entries)


def _diff_keyframe(old: Keyframe, new: Keyframe) -> Entry | None:
    change = Change(
        key_text=_diff_text(old.key_text, new.key_text),
        style=diff_style(old.style, new.style),
    )
    return None if change == Change() else change


def _diff_rule(old: Rule, new: Rule) -> Entry | None:
    if old.type != new.type:
        return Insert(item=new.model_copy(deep=True), remove=1)

    if isinstance(old, PlainRule) and isinstance(new, PlainRule):
        change = Change(
            selector_text=_diff_text(old.selector_text, new.selector_text),
            style=diff_style(old.style, new.style),
        )
    elif isinstance(old, MediaRule) and isinstance(new, MediaRule):
        change = Change(
            media_text=_diff_text(old.media_text, new.media_text),
            rules=diff_rules(old.rules, new.rules) or None,
        )
    elif isinstance(old, KeyframesRule) and isinstance(new, KeyframesRule):
        change = Change(
            name=_diff_text(old.name, new.name),
            vendor_prefix=_diff_text(old.vendor_prefix, new.vendor_prefix),
            keyframes=diff_keyframes(old.keyframes, new.keyframes) or None,
        )
    elif isinstance(old, Comment) and isinstance(new, Comment):
        if old.text == new.text:
            return None
        return Insert(item=new.model_copy(deep=True), remove=1)
    elif isinstance(old, PlaceholderRule) and isinstance(new, PlaceholderRule):
        return None
    else:
        raise TypeError(f"Unknown rule type: {type(old).__name__}")

    return None if change == Change() else change


def diff_rules(old: Sequence[Rule], new: Sequence[Rule]) -> tuple[Entry, ...]:
    """Diff two rule sequences position by position."""
    return _diff_sequence(old, new, _diff_rule)


def diff_keyframes(old: Sequence[Keyframe], new: Sequence[Keyframe]) -> tuple[Entry, ...]:
    """Diff two keyframe sequences position by position."""
    return _diff_sequence(old, new, _diff_keyframe)


class RulesDiffer:
    """Computes the positional diff that turns one rule tree into another.

    No move detection: a rule that shifts position is seen as a change of
    everything after the shift point. Receivers rely on these purely
    positional semantics.
    """

    @staticmethod
    def diff(old: RuleTree, new: RuleTree) -> tuple[Entry, ...]:
        """Compare *old* against *new*. An empty tuple means no difference."""
        return diff_rules(old.rules, new.rules)
