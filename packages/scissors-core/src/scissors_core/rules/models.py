"""Typed rule tree model for a parsed stylesheet."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from scissors_core.errors import InvalidRuleError

if TYPE_CHECKING:
    from scissors_core.parser.base import Parser

logger = logging.getLogger(__name__)

# Property name -> value. Dicts keep insertion order, so declaration order
# survives parsing, JSON transport and rendering.
Style = dict[str, str]


class _WireModel(BaseModel):
    """Base for models whose JSON form uses the wire (camelCase) names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def _drop_empty_values(style: Style) -> Style:
    # An empty value is how a diff says "remove this property".
    return {name: value for name, value in style.items() if value.strip()}


class Keyframe(_WireModel):
    """One step of a keyframes block. ``key_text`` is data, not identity."""

    key_text: str = Field(alias="keyText")
    style: Style = Field(default_factory=dict)

    @field_validator("style")
    @classmethod
    def validate_style(cls, v: Style) -> Style:
        return _drop_empty_values(v)


class PlainRule(_WireModel):
    type: Literal["rule"] = "rule"
    selector_text: str = Field(alias="selectorText")
    style: Style = Field(default_factory=dict)

    @field_validator("style")
    @classmethod
    def validate_style(cls, v: Style) -> Style:
        return _drop_empty_values(v)


class MediaRule(_WireModel):
    type: Literal["media"] = "media"
    media_text: str = Field(alias="mediaText")
    rules: list[Rule] = Field(default_factory=list)


class KeyframesRule(_WireModel):
    type: Literal["keyframes"] = "keyframes"
    name: str
    vendor_prefix: str = Field(default="", alias="vendorPrefix")
    keyframes: list[Keyframe] = Field(default_factory=list)


class Comment(_WireModel):
    type: Literal["comment"] = "comment"
    text: str = ""


class PlaceholderRule(_WireModel):
    """Inert rule standing in for one a sink refused to insert.

    It occupies a position so later index arithmetic stays correct, but
    carries no style and ignores changes.
    """

    type: Literal["dummy"] = "dummy"
    dummy: bool = True
    style: Style = Field(default_factory=dict)


Rule = Annotated[
    Union[PlainRule, MediaRule, KeyframesRule, Comment, PlaceholderRule],
    Field(discriminator="type"),
]

MediaRule.model_rebuild()

_RULES_ADAPTER: TypeAdapter[list[Rule]] = TypeAdapter(list[Rule])
_RULE_ADAPTER: TypeAdapter[Rule] = TypeAdapter(Rule)

# Kinds that survive tree construction. Comments and anything unknown
# (@font-face, @import, ...) are filtered out.
_TREE_KINDS = frozenset({"rule", "media", "keyframes", "dummy"})


def _filter_structured(items: Any, path: str) -> list[dict[str, Any]]:
    if not isinstance(items, list):
        raise InvalidRuleError(f"{path}: expected a list of rules, got {type(items).__name__}")
    kept: list[dict[str, Any]] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvalidRuleError(
                f"{path}[{i}]: expected a rule object, got {type(item).__name__}"
            )
        kind = item.get("type")
        if kind == "comment":
            continue
        if kind not in _TREE_KINDS:
            logger.warning("Dropping unsupported rule kind %r at %s[%d]", kind, path, i)
            continue
        if kind == "media":
            item = {**item, "rules": _filter_structured(item.get("rules", []), f"{path}[{i}].rules")}
        kept.append(item)
    return kept


def rule_from_json(data: Any) -> Rule:
    """Validate a single JSON rule object of any known kind."""
    if isinstance(data, dict) and data.get("type") == "media":
        data = {**data, "rules": _filter_structured(data.get("rules", []), "$.rules")}
    try:
        return _RULE_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise InvalidRuleError(str(e)) from e


class RuleTree:
    """Ordered sequence of rules in cascade order.

    Position is the only identity a rule has. Diffing and patching are
    always positional over this order.
    """

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        self.rules: list[Rule] = [
            r for r in (rules or ()) if not isinstance(r, Comment)
        ]

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_structured(cls, items: Any) -> RuleTree:
        """Build a tree from its JSON form (a list of rule objects).

        Unknown kinds and comments are dropped. A known kind with a broken
        shape raises InvalidRuleError.
        """
        filtered = _filter_structured(items, "$")
        try:
            return cls(_RULES_ADAPTER.validate_python(filtered))
        except ValidationError as e:
            raise InvalidRuleError(str(e)) from e

    @classmethod
    async def from_text(cls, text: str, parser: Parser) -> RuleTree:
        """Parse stylesheet source with *parser*. Raises ParseError."""
        return await parser.parse(text)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> list[dict[str, Any]]:
        return [rule.to_json() for rule in self.rules]

    def copy(self) -> RuleTree:
        return RuleTree(rule.model_copy(deep=True) for rule in self.rules)

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __getitem__(self, index: int) -> Rule:
        return self.rules[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuleTree):
            return NotImplemented
        return self.to_json() == other.to_json()

    def __repr__(self) -> str:
        return f"RuleTree({len(self.rules)} rules)"
