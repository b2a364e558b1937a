"""Parser collaborators: source text to RuleTree."""

from __future__ import annotations

from typing import TYPE_CHECKING

from scissors_core.parser.base import Parser
from scissors_core.parser.css import CSSParser
from scissors_core.parser.less import LessParser

if TYPE_CHECKING:
    from scissors_core.config.models import ParserConfig

_PARSER_TYPES = ("css", "less")


def create_parser(css_type: str, config: ParserConfig | None = None) -> Parser:
    """Create the parser for a stylesheet type ("css" or "less")."""
    if css_type not in _PARSER_TYPES:
        raise ValueError(
            f"Unsupported stylesheet type: {css_type!r}. "
            f"Supported: {', '.join(_PARSER_TYPES)}"
        )
    strict = config.strict if config is not None else True
    css = CSSParser(strict=strict)
    if css_type == "css":
        return css
    if config is None:
        return LessParser(css_parser=css)
    return LessParser(
        command=config.less_command,
        timeout=config.less_timeout,
        css_parser=css,
    )


__all__ = ["CSSParser", "LessParser", "Parser", "create_parser"]
