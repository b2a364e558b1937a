"""A small in-process CSS object model.

This is the "live" side of synchronization: rules are inserted as CSS
text and the engine may refuse text it does not support, the way a
browser refuses another vendor's prefixed selectors. Rules are always
addressed by position.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping

from scissors_core.errors import ParseError, ScissorsError
from scissors_core.parser.css import CSSParser
from scissors_core.rules.models import (
    Keyframe,
    KeyframesRule,
    MediaRule,
    PlainRule,
    Rule,
    Style,
)
from scissors_core.rules.render import render_keyframe, render_rule, render_style

_IMPORTANT_RE = re.compile(r"^(.*?)\s*!\s*important\s*$", re.IGNORECASE | re.DOTALL)
_VENDOR_RE = re.compile(r"-(webkit|moz|ms|o)-")


class CSSSyntaxError(ScissorsError):
    """The engine refused a piece of rule text."""


def split_priority(value: str) -> tuple[str, str]:
    """Split ``"red !important"`` into ``("red", "important")``."""
    m = _IMPORTANT_RE.match(value)
    if m:
        return m.group(1), "important"
    return value, ""


class CSSStyleDeclaration:
    """Ordered property map with per-property priority."""

    def __init__(self, style: Mapping[str, str] | None = None) -> None:
        self._props: dict[str, tuple[str, str]] = {}
        for name, value in (style or {}).items():
            self.set_property(name, *split_priority(value))

    def __len__(self) -> int:
        return len(self._props)

    def __iter__(self) -> Iterator[str]:
        return iter(self._props)

    def __contains__(self, name: object) -> bool:
        return name in self._props

    def get_property_value(self, name: str) -> str:
        return self._props.get(name, ("", ""))[0]

    def get_property_priority(self, name: str) -> str:
        return self._props.get(name, ("", ""))[1]

    def set_property(self, name: str, value: str, priority: str = "") -> None:
        if not value:
            self.remove_property(name)
            return
        self._props[name] = (value, priority)

    def remove_property(self, name: str) -> str:
        value, _ = self._props.pop(name, ("", ""))
        return value

    def to_style(self) -> Style:
        return {
            name: f"{value} !{priority}" if priority else value
            for name, (value, priority) in self._props.items()
        }

    @property
    def css_text(self) -> str:
        return render_style(self.to_style(), compact=True)[2:-2].strip()


class CSSRule:
    parent: CSSRuleContainer | CSSKeyframesRule | None = None

    @property
    def css_text(self) -> str:
        raise NotImplementedError


class CSSStyleRule(CSSRule):
    def __init__(self, selector_text: str, style: Mapping[str, str] | None = None) -> None:
        self.selector_text = selector_text
        self.style = CSSStyleDeclaration(style)

    @property
    def css_text(self) -> str:
        return render_rule(PlainRule(selector_text=self.selector_text, style=self.style.to_style()), compact=True)


class CSSKeyframeRule(CSSRule):
    def __init__(self, key_text: str, style: Mapping[str, str] | None = None) -> None:
        self.key_text = key_text
        self.style = CSSStyleDeclaration(style)

    @property
    def css_text(self) -> str:
        return render_keyframe(Keyframe(key_text=self.key_text, style=self.style.to_style()), compact=True)


class CSSKeyframesRule(CSSRule):
    """@keyframes block. Keyframes are addressed by position; keys may repeat."""

    def __init__(self, name: str, vendor_prefix: str = "", engine: _Engine | None = None) -> None:
        self.name = name
        self.vendor_prefix = vendor_prefix
        self.css_rules: list[CSSKeyframeRule] = []
        self._engine = engine or _Engine()

    def append_rule(self, text: str) -> None:
        keyframe = self._engine.parse_keyframe(text)
        keyframe.parent = self
        self.css_rules.append(keyframe)

    def delete_rule(self, index: int) -> None:
        if not 0 <= index < len(self.css_rules):
            raise IndexError(f"keyframe index {index} out of range")
        self.css_rules.pop(index).parent = None

    @property
    def css_text(self) -> str:
        body = " ".join(k.css_text for k in self.css_rules)
        return f"@{self.vendor_prefix}keyframes {self.name} {{ {body} }}"


class CSSRuleContainer(CSSRule):
    """Shared insert/delete behaviour of style sheets and @media blocks."""

    def __init__(self, engine: _Engine | None = None) -> None:
        self.css_rules: list[CSSRule] = []
        self._engine = engine or _Engine()

    def insert_rule(self, text: str, index: int = 0) -> int:
        """Parse one rule from *text* and insert it at *index*.

        Raises CSSSyntaxError for malformed or unsupported text and
        IndexError for an index past the end.
        """
        if not 0 <= index <= len(self.css_rules):
            raise IndexError(f"rule index {index} out of range")
        rule = self._engine.parse_rule(text)
        rule.parent = self
        self.css_rules.insert(index, rule)
        return index

    def delete_rule(self, index: int) -> None:
        if not 0 <= index < len(self.css_rules):
            raise IndexError(f"rule index {index} out of range")
        self.css_rules.pop(index).parent = None


class CSSMediaRule(CSSRuleContainer):
    def __init__(self, media_text: str, engine: _Engine | None = None) -> None:
        super().__init__(engine)
        self.media_text = media_text

    @property
    def css_text(self) -> str:
        body = " ".join(r.css_text for r in self.css_rules)
        return f"@media {self.media_text} {{ {body} }}"


class CSSStyleSheet(CSSRuleContainer):
    """A live stylesheet.

    ``vendor`` is the prefix this engine understands; rules that rely on
    any other vendor prefix are refused on insert.
    """

    def __init__(self, vendor: str = "-webkit-") -> None:
        super().__init__(_Engine(vendor))

    @property
    def vendor(self) -> str:
        return self._engine.vendor

    @classmethod
    def from_text(cls, text: str, vendor: str = "-webkit-") -> CSSStyleSheet:
        """Build a sheet from CSS text, silently skipping refused rules."""
        sheet = cls(vendor)
        sheet.replace_sync(text)
        return sheet

    def replace_sync(self, text: str) -> None:
        self.css_rules = []
        for rule in self._engine.parser.parse_rules(text):
            try:
                built = self._engine.build(rule)
            except CSSSyntaxError:
                continue
            if built is not None:
                built.parent = self
                self.css_rules.append(built)

    @property
    def css_text(self) -> str:
        return "\n".join(r.css_text for r in self.css_rules)


class _Engine:
    """Parses rule text and builds CSSOM objects, enforcing vendor support."""

    def __init__(self, vendor: str = "-webkit-") -> None:
        self.vendor = vendor
        self.parser = CSSParser(strict=True)

    def parse_rule(self, text: str) -> CSSRule:
        try:
            rules = [r for r in self.parser.parse_rules(text) if r.type != "comment"]
        except ParseError as e:
            raise CSSSyntaxError(str(e)) from e
        if len(rules) != 1:
            raise CSSSyntaxError(f"expected exactly one supported rule, got {len(rules)}: {text!r}")
        built = self.build(rules[0])
        if built is None:
            raise CSSSyntaxError(f"unsupported rule: {text!r}")
        return built

    def parse_keyframe(self, text: str) -> CSSKeyframeRule:
        rule = self.parse_rule(f"@{self.vendor}keyframes _ {{ {text} }}")
        if not isinstance(rule, CSSKeyframesRule) or len(rule.css_rules) != 1:
            raise CSSSyntaxError(f"expected exactly one keyframe: {text!r}")
        return rule.css_rules[0]

    def build(self, rule: Rule) -> CSSRule | None:
        if isinstance(rule, PlainRule):
            self._check_vendor(rule.selector_text)
            return CSSStyleRule(rule.selector_text, rule.style)
        if isinstance(rule, MediaRule):
            media = CSSMediaRule(rule.media_text, self)
            for child in rule.rules:
                built = self.build(child)
                if built is not None:
                    built.parent = media
                    media.css_rules.append(built)
            return media
        if isinstance(rule, KeyframesRule):
            if rule.vendor_prefix and rule.vendor_prefix != self.vendor:
                raise CSSSyntaxError(f"unsupported @{rule.vendor_prefix}keyframes")
            block = CSSKeyframesRule(rule.name, rule.vendor_prefix, self)
            for keyframe in rule.keyframes:
                if not keyframe.key_text:
                    raise CSSSyntaxError("keyframe without a key")
                frame = CSSKeyframeRule(keyframe.key_text, keyframe.style)
                frame.parent = block
                block.css_rules.append(frame)
            return block
        return None

    def _check_vendor(self, selector: str) -> None:
        for m in _VENDOR_RE.finditer(selector):
            if m.group(0) != self.vendor:
                raise CSSSyntaxError(f"unsupported selector: {selector!r}")


def rule_from_cssom(css_rule: CSSRule) -> Rule:
    """Read a CSSOM rule back into the rule tree model."""
    if isinstance(css_rule, CSSStyleRule):
        return PlainRule(selector_text=css_rule.selector_text, style=css_rule.style.to_style())
    if isinstance(css_rule, CSSMediaRule):
        return MediaRule(
            media_text=css_rule.media_text,
            rules=[rule_from_cssom(r) for r in css_rule.css_rules],
        )
    if isinstance(css_rule, CSSKeyframesRule):
        return KeyframesRule(
            name=css_rule.name,
            vendor_prefix=css_rule.vendor_prefix,
            keyframes=[keyframe_from_cssom(k) for k in css_rule.css_rules],
        )
    raise TypeError(f"Unknown CSSOM rule: {type(css_rule).__name__}")


def keyframe_from_cssom(css_keyframe: CSSKeyframeRule) -> Keyframe:
    return Keyframe(key_text=css_keyframe.key_text, style=css_keyframe.style.to_style())
