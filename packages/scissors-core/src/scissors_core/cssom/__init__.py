"""In-process live style-object model."""

from scissors_core.cssom.model import (
    CSSKeyframeRule,
    CSSKeyframesRule,
    CSSMediaRule,
    CSSRule,
    CSSStyleDeclaration,
    CSSStyleRule,
    CSSStyleSheet,
    CSSSyntaxError,
    keyframe_from_cssom,
    rule_from_cssom,
    split_priority,
)

__all__ = [
    "CSSKeyframeRule",
    "CSSKeyframesRule",
    "CSSMediaRule",
    "CSSRule",
    "CSSStyleDeclaration",
    "CSSStyleRule",
    "CSSStyleSheet",
    "CSSSyntaxError",
    "keyframe_from_cssom",
    "rule_from_cssom",
    "split_priority",
]
