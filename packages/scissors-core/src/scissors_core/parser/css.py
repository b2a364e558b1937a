"""CSS source parser built on tinycss2."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

import tinycss2

from scissors_core.errors import ParseError
from scissors_core.parser.base import Parser
from scissors_core.rules.models import (
    Comment,
    Keyframe,
    KeyframesRule,
    MediaRule,
    PlainRule,
    Rule,
    RuleTree,
    Style,
)

logger = logging.getLogger(__name__)

# @keyframes, @-webkit-keyframes, @-moz-keyframes, ...
_KEYFRAMES_RE = re.compile(r"^(-[a-z]+-)?keyframes$")
_COMMA_RE = re.compile(r"\s*,\s*")
_SPACE_RE = re.compile(r"\s+")


def _normalize_selector(text: str) -> str:
    return _SPACE_RE.sub(" ", _COMMA_RE.sub(", ", text)).strip()


def _serialize(nodes: Iterable[Any] | None) -> str:
    return tinycss2.serialize(nodes or []).strip()


class CSSParser(Parser):
    """Parses CSS text into rule trees.

    Unsupported at-rules (@import, @font-face, @supports, ...) are dropped,
    as are comments. Invalid declarations are dropped the way a browser
    drops them. Top-level syntax errors raise ParseError when ``strict``,
    and are logged and skipped otherwise.
    """

    css_type = "css"

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict

    async def parse(self, text: str) -> RuleTree:
        return self.parse_text(text)

    def parse_text(self, text: str) -> RuleTree:
        """Synchronous parse of a whole stylesheet."""
        return RuleTree(self.parse_rules(text))

    def parse_rules(self, text: str) -> list[Rule]:
        """Parse *text* into a flat list of rules, comments included."""
        nodes = tinycss2.parse_stylesheet(text, skip_comments=False, skip_whitespace=True)
        return self._convert_rules(nodes)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _convert_rules(self, nodes: Iterable[Any]) -> list[Rule]:
        rules: list[Rule] = []
        for node in nodes:
            if node.type == "error":
                self._error(node.message, node.source_line, node.source_column)
            elif node.type == "comment":
                rules.append(Comment(text=node.value))
            elif node.type == "qualified-rule":
                rule = self._plain_rule(node)
                if rule is not None:
                    rules.append(rule)
            elif node.type == "at-rule":
                rule = self._at_rule(node)
                if rule is not None:
                    rules.append(rule)
        return rules

    def _plain_rule(self, node: Any) -> PlainRule | None:
        selector = _normalize_selector(tinycss2.serialize(node.prelude))
        if not selector:
            self._error("empty selector", node.source_line, node.source_column)
            return None
        return PlainRule(selector_text=selector, style=self._style(node.content))

    def _at_rule(self, node: Any) -> Rule | None:
        keyword = node.lower_at_keyword
        if keyword == "media":
            if node.content is None:
                self._error("@media without a block", node.source_line, node.source_column)
                return None
            nested = tinycss2.parse_rule_list(
                node.content, skip_comments=True, skip_whitespace=True
            )
            return MediaRule(
                media_text=_normalize_selector(tinycss2.serialize(node.prelude)),
                rules=self._convert_rules(nested),
            )

        m = _KEYFRAMES_RE.match(keyword)
        if m:
            if node.content is None:
                self._error("@keyframes without a block", node.source_line, node.source_column)
                return None
            return KeyframesRule(
                name=_serialize(node.prelude),
                vendor_prefix=m.group(1) or "",
                keyframes=self._keyframes(node.content),
            )

        logger.debug("Skipping unsupported @%s rule", keyword)
        return None

    def _keyframes(self, content: list[Any]) -> list[Keyframe]:
        keyframes: list[Keyframe] = []
        for child in tinycss2.parse_rule_list(content, skip_comments=True, skip_whitespace=True):
            if child.type == "error":
                self._error(child.message, child.source_line, child.source_column)
            elif child.type == "qualified-rule":
                keyframes.append(
                    Keyframe(
                        key_text=_normalize_selector(tinycss2.serialize(child.prelude)),
                        style=self._style(child.content),
                    )
                )
        return keyframes

    def _style(self, content: list[Any] | None) -> Style:
        style: Style = {}
        declarations = tinycss2.parse_declaration_list(
            content or [], skip_comments=True, skip_whitespace=True
        )
        for decl in declarations:
            if decl.type == "error":
                logger.debug("Dropping invalid declaration: %s", decl.message)
                continue
            if decl.type != "declaration":
                continue
            value = _serialize(decl.value)
            if not value:
                continue
            if decl.important:
                value += " !important"
            # Custom properties are case-sensitive.
            name = decl.name if decl.name.startswith("--") else decl.lower_name
            style[name] = value
        return style

    def _error(self, message: str, line: int | None, column: int | None) -> None:
        if self.strict:
            raise ParseError(message, line, column)
        logger.warning("Skipping invalid CSS at line %s: %s", line, message)
