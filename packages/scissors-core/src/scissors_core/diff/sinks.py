"""Mutable targets a diff can be applied to.

A sink exposes positional access over one rule (or keyframe) sequence.
``TreeSink`` wraps an in-memory list and never refuses anything. The
CSSOM sinks write into a live style-object model whose engine may refuse
rule text; they keep a slot list so positions occupied by placeholders
do not shift the engine's own indices.
"""

from __future__ import annotations

from typing import Any, Protocol, Union, runtime_checkable

from scissors_core.cssom.model import (
    CSSKeyframeRule,
    CSSKeyframesRule,
    CSSMediaRule,
    CSSRule,
    CSSStyleDeclaration,
    CSSStyleSheet,
    CSSSyntaxError,
    keyframe_from_cssom,
    rule_from_cssom,
    split_priority,
)
from scissors_core.diff.codec import Change
from scissors_core.errors import RemovalError, RuleRejectedError
from scissors_core.rules.models import (
    Keyframe,
    KeyframesRule,
    MediaRule,
    PlaceholderRule,
    PlainRule,
    Rule,
    Style,
)
from scissors_core.rules.render import render_keyframe, render_rule

Item = Union[Rule, Keyframe]

# Change fields each target kind accepts.
_ACCEPTED_FIELDS: dict[type, frozenset[str]] = {
    PlainRule: frozenset({"selector_text", "style"}),
    MediaRule: frozenset({"media_text", "rules"}),
    KeyframesRule: frozenset({"name", "vendor_prefix", "keyframes"}),
    Keyframe: frozenset({"key_text", "style"}),
}

_CHANGE_FIELDS = (
    "selector_text",
    "style",
    "media_text",
    "rules",
    "name",
    "vendor_prefix",
    "key_text",
    "keyframes",
)


@runtime_checkable
class RuleSink(Protocol):
    """Positional read/write access to one rule or keyframe sequence."""

    def count(self) -> int: ...

    def get_at(self, index: int) -> Item: ...

    def insert_at(self, index: int, item: Item) -> Item: ...

    def remove_at(self, index: int) -> None: ...

    def mutate_at(self, index: int, change: Change) -> None: ...

    def child_at(self, index: int) -> RuleSink | None: ...


def changed_fields(change: Change) -> frozenset[str]:
    return frozenset(f for f in _CHANGE_FIELDS if getattr(change, f) is not None)


def change_fits(change: Change, target: Item) -> bool:
    """True if every field set on *change* exists on *target*'s kind."""
    accepted = _ACCEPTED_FIELDS.get(type(target))
    if accepted is None:
        return False
    return changed_fields(change) <= accepted


def apply_style_diff(style: Style, diff: Style) -> None:
    """Apply a property-level diff in place. ``""`` clears a property."""
    for prop, value in diff.items():
        if value:
            style[prop] = value
        else:
            style.pop(prop, None)


def apply_change(target: Item, change: Change) -> None:
    """Apply the text and style fields of *change* to a model in place.

    Nested ``rules``/``keyframes`` diffs are not handled here; the
    patcher recurses into them through ``child_at``.
    """
    for attr in ("selector_text", "media_text", "name", "vendor_prefix", "key_text"):
        value = getattr(change, attr)
        if value is not None:
            setattr(target, attr, value)
    if change.style is not None:
        apply_style_diff(target.style, change.style)


class TreeSink:
    """Sink over an in-memory list of rules or keyframes."""

    def __init__(self, items: list[Any]) -> None:
        self.items = items

    def count(self) -> int:
        return len(self.items)

    def get_at(self, index: int) -> Item:
        return self.items[index]

    def insert_at(self, index: int, item: Item) -> Item:
        copy = item.model_copy(deep=True)
        self.items.insert(index, copy)
        return copy

    def remove_at(self, index: int) -> None:
        if not 0 <= index < len(self.items):
            raise RemovalError(f"no item at position {index}")
        del self.items[index]

    def mutate_at(self, index: int, change: Change) -> None:
        apply_change(self.items[index], change)

    def child_at(self, index: int) -> TreeSink | None:
        target = self.items[index]
        if isinstance(target, MediaRule):
            return TreeSink(target.rules)
        if isinstance(target, KeyframesRule):
            return TreeSink(target.keyframes)
        return None


# ----------------------------------------------------------------------
# CSSOM sinks
# ----------------------------------------------------------------------


def _apply_declaration_diff(declaration: CSSStyleDeclaration, diff: Style) -> None:
    for prop, value in diff.items():
        if value:
            declaration.set_property(prop, *split_priority(value))
        else:
            declaration.remove_property(prop)


class _EngineSink:
    """Slot bookkeeping shared by the CSSOM sinks.

    ``_placeholders[i]`` is True when position ``i`` holds a placeholder
    that exists only here, not in the engine.
    """

    def __init__(self, engine_count: int) -> None:
        self._placeholders: list[bool] = [False] * engine_count
        self._children: dict[CSSRule, _EngineSink] = {}

    def count(self) -> int:
        return len(self._placeholders)

    def is_placeholder(self, index: int) -> bool:
        return self._placeholders[index]

    def _engine_index(self, index: int) -> int:
        return index - sum(self._placeholders[:index])

    def _engine_rules(self) -> list[Any]:
        raise NotImplementedError

    def _insert(self, engine_index: int, item: Item) -> None:
        raise NotImplementedError

    def _delete(self, engine_index: int) -> None:
        raise NotImplementedError

    def _read(self, css_rule: Any) -> Item:
        raise NotImplementedError

    def engine_rule_at(self, index: int) -> Any:
        if self._placeholders[index]:
            return None
        return self._engine_rules()[self._engine_index(index)]

    def get_at(self, index: int) -> Item:
        if self._placeholders[index]:
            return PlaceholderRule()
        return self._read(self.engine_rule_at(index))

    def insert_at(self, index: int, item: Item) -> Item:
        if not 0 <= index <= len(self._placeholders):
            raise IndexError(f"insert position {index} out of range")
        if isinstance(item, PlaceholderRule):
            self._placeholders.insert(index, True)
            return item
        self._insert(self._engine_index(index), item)
        self._placeholders.insert(index, False)
        return item

    def remove_at(self, index: int) -> None:
        if not 0 <= index < len(self._placeholders):
            raise RemovalError(f"no rule at position {index}")
        engine_index = self._engine_index(index)
        if self._placeholders.pop(index):
            return
        try:
            self._children.pop(self._engine_rules()[engine_index], None)
            self._delete(engine_index)
        except IndexError as e:
            raise RemovalError(str(e)) from e

    def mutate_at(self, index: int, change: Change) -> None:
        css_rule = self.engine_rule_at(index)
        if css_rule is None:
            return
        for attr in ("selector_text", "media_text", "name", "vendor_prefix", "key_text"):
            value = getattr(change, attr)
            if value is not None:
                setattr(css_rule, attr, value)
        if change.style is not None:
            _apply_declaration_diff(css_rule.style, change.style)

    def child_at(self, index: int) -> _EngineSink | None:
        css_rule = self.engine_rule_at(index)
        if css_rule is None:
            return None
        child = self._children.get(css_rule)
        if child is None:
            if isinstance(css_rule, CSSMediaRule):
                child = StyleSheetSink(css_rule)
            elif isinstance(css_rule, CSSKeyframesRule):
                child = KeyframesSink(css_rule)
            else:
                return None
            self._children[css_rule] = child
        return child


class StyleSheetSink(_EngineSink):
    """Sink over a live ``CSSStyleSheet`` or the body of a ``CSSMediaRule``.

    Inserts go through ``insert_rule`` as compact CSS text, so whatever the
    engine refuses surfaces as RuleRejectedError.
    """

    def __init__(self, container: CSSStyleSheet | CSSMediaRule) -> None:
        super().__init__(len(container.css_rules))
        self.container = container

    def _engine_rules(self) -> list[Any]:
        return self.container.css_rules

    def _insert(self, engine_index: int, item: Item) -> None:
        if isinstance(item, Keyframe):
            raise RuleRejectedError("a keyframe cannot be inserted into a rule list")
        try:
            self.container.insert_rule(render_rule(item, compact=True), engine_index)
        except CSSSyntaxError as e:
            raise RuleRejectedError(str(e)) from e

    def _delete(self, engine_index: int) -> None:
        self.container.delete_rule(engine_index)

    def _read(self, css_rule: Any) -> Item:
        return rule_from_cssom(css_rule)

    def to_rules(self) -> list[Rule]:
        """Current contents as rule models, placeholders included."""
        rules: list[Rule] = []
        for index, placeholder in enumerate(self._placeholders):
            if placeholder:
                rules.append(PlaceholderRule())
                continue
            css_rule = self.engine_rule_at(index)
            child = self._children.get(css_rule)
            if isinstance(child, StyleSheetSink):
                rules.append(MediaRule(media_text=css_rule.media_text, rules=child.to_rules()))
            else:
                rules.append(rule_from_cssom(css_rule))
        return rules

    def to_json(self) -> list[dict[str, Any]]:
        return [rule.to_json() for rule in self.to_rules()]


class KeyframesSink(_EngineSink):
    """Sink over the keyframes of a live ``CSSKeyframesRule``.

    The engine only appends keyframes, so inserting in the middle appends
    and then re-appends the keyframes that belong after it. Placeholder
    keyframes live in this sink's slots only and never reach JSON.
    """

    def __init__(self, keyframes_rule: CSSKeyframesRule) -> None:
        super().__init__(len(keyframes_rule.css_rules))
        self.keyframes_rule = keyframes_rule

    def _engine_rules(self) -> list[Any]:
        return self.keyframes_rule.css_rules

    def _insert(self, engine_index: int, item: Item) -> None:
        if not isinstance(item, Keyframe):
            raise RuleRejectedError(f"a {item.type} rule cannot be inserted into @keyframes")
        rule = self.keyframes_rule
        try:
            rule.append_rule(render_keyframe(item, compact=True))
        except CSSSyntaxError as e:
            raise RuleRejectedError(str(e)) from e
        tail: list[CSSKeyframeRule] = rule.css_rules[engine_index:-1]
        for _ in tail:
            rule.delete_rule(engine_index)
        for keyframe in tail:
            rule.append_rule(keyframe.css_text)

    def _delete(self, engine_index: int) -> None:
        self.keyframes_rule.delete_rule(engine_index)

    def _read(self, css_rule: Any) -> Item:
        return keyframe_from_cssom(css_rule)

    def child_at(self, index: int) -> None:
        return None


__all__ = [
    "KeyframesSink",
    "RuleSink",
    "StyleSheetSink",
    "TreeSink",
    "apply_change",
    "apply_style_diff",
    "change_fits",
]
