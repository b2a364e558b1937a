"""Diff entry types and their flat wire encoding.

A diff is an ordered sequence of entries. No entry carries an index:
position is derived by replaying ``skip``/``remove``/insert counts from
the start of the sequence, so entries must be applied in the order they
were transmitted.

Wire shapes, one per entry:

    {"skip": n}                          unchanged positions marker
    {"type": "rule", ...}                raw rule, appended verbatim
    {"insert": rule, "remove": 1}        kind changed at this position
    {"remove": n, "skip": n}             trailing deletions
    {"selectorText": ..., "style": ...}  sparse field change

Keyframe sequences use the same scheme. A raw keyframe is sent as
``{"keyText": ..., "style": ...}`` and only becomes an insert when there
is no keyframe at the cursor on the receiving side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from scissors_core.errors import InvalidRuleError, MalformedDiffError
from scissors_core.rules.models import Comment, Keyframe, Rule, Style, rule_from_json

Level = Literal["rules", "keyframes"]

# (attribute, wire key) for text fields of a Change. An empty string means
# "cleared" and travels as null.
_TEXT_FIELDS: tuple[tuple[str, str], ...] = (
    ("selector_text", "selectorText"),
    ("media_text", "mediaText"),
    ("name", "name"),
    ("vendor_prefix", "vendorPrefix"),
    ("key_text", "keyText"),
)

# Positional keys that never appear on an appended raw rule.
_ENTRY_KEYS = frozenset({"skip", "remove", "insert"})

_CHANGE_KEYS: dict[Level, frozenset[str]] = {
    "rules": frozenset(
        {"skip", "selectorText", "style", "mediaText", "rules", "name", "vendorPrefix", "keyframes"}
    ),
    "keyframes": frozenset({"skip", "keyText", "style"}),
}


@dataclass(frozen=True)
class Skip:
    """Marker carrying only pending unchanged positions."""

    skip: int = 0

    @property
    def remove(self) -> int:
        return 0


@dataclass(frozen=True)
class Insert:
    """Insert a full rule or keyframe.

    ``remove == 0 and skip == 0`` is a raw append; ``remove == 1`` replaces
    the item at the cursor (kind changed).
    """

    item: Rule | Keyframe
    remove: int = 0
    skip: int = 0


@dataclass(frozen=True)
class Remove:
    count: int
    skip: int = 0

    @property
    def remove(self) -> int:
        return self.count


@dataclass(frozen=True)
class Change:
    """Sparse in-place change. ``None`` means the field is unchanged."""

    skip: int = 0
    selector_text: str | None = None
    style: Style | None = None
    media_text: str | None = None
    rules: tuple[Entry, ...] | None = None
    name: str | None = None
    vendor_prefix: str | None = None
    key_text: str | None = None
    keyframes: tuple[Entry, ...] | None = None

    @property
    def remove(self) -> int:
        return 0


Entry = Union[Skip, Insert, Remove, Change]


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------


def encode_entry(entry: Entry) -> dict[str, Any]:
    """Encode one entry to its JSON-ready wire object."""
    out: dict[str, Any] = {}
    if isinstance(entry, Insert):
        if not entry.remove and not entry.skip:
            return entry.item.to_json()
        if entry.skip:
            out["skip"] = entry.skip
        out["insert"] = entry.item.to_json()
        if entry.remove:
            out["remove"] = entry.remove
        return out

    if entry.skip:
        out["skip"] = entry.skip
    if isinstance(entry, Skip):
        return out
    if isinstance(entry, Remove):
        out["remove"] = entry.count
        return out
    if isinstance(entry, Change):
        for attr, key in _TEXT_FIELDS:
            value = getattr(entry, attr)
            if value is not None:
                out[key] = value or None
        if entry.style is not None:
            out["style"] = dict(entry.style)
        if entry.rules is not None:
            out["rules"] = encode_diff(entry.rules)
        if entry.keyframes is not None:
            out["keyframes"] = encode_diff(entry.keyframes)
        return out
    raise TypeError(f"Unknown diff entry: {type(entry).__name__}")


def encode_diff(entries: tuple[Entry, ...] | list[Entry]) -> list[dict[str, Any]]:
    return [encode_entry(e) for e in entries]


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------


def decode_rules_diff(raw: Any) -> tuple[Entry, ...]:
    """Decode a rule-level wire diff. Raises MalformedDiffError."""
    return _decode_sequence(raw, "rules", "$")


def decode_keyframes_diff(raw: Any) -> tuple[Entry, ...]:
    """Decode a keyframe-level wire diff. Raises MalformedDiffError."""
    return _decode_sequence(raw, "keyframes", "$")


def _decode_sequence(raw: Any, level: Level, path: str) -> tuple[Entry, ...]:
    if not isinstance(raw, list):
        raise MalformedDiffError(f"expected a list of entries, got {type(raw).__name__}", path)
    return tuple(_decode_entry(item, level, f"{path}[{i}]") for i, item in enumerate(raw))


def _decode_entry(raw: Any, level: Level, path: str) -> Entry:
    if not isinstance(raw, dict):
        raise MalformedDiffError(f"expected an object, got {type(raw).__name__}", path)

    if level == "rules" and "type" in raw:
        misplaced = sorted(_ENTRY_KEYS & set(raw))
        if misplaced:
            raise MalformedDiffError(
                f"appended rule cannot carry {', '.join(misplaced)}", path
            )
        return Insert(item=_decode_item(raw, level, path))

    skip = _count(raw, "skip", path, minimum=0)

    if "insert" in raw:
        _reject_extra(raw, {"insert", "remove", "skip"}, path)
        return Insert(
            item=_decode_item(raw["insert"], level, f"{path}.insert"),
            remove=_count(raw, "remove", path, minimum=0),
            skip=skip,
        )

    if "remove" in raw:
        _reject_extra(raw, {"remove", "skip"}, path)
        return Remove(count=_count(raw, "remove", path, minimum=1), skip=skip)

    _reject_extra(raw, _CHANGE_KEYS[level], path)
    if set(raw) <= {"skip"}:
        return Skip(skip=skip)

    fields: dict[str, Any] = {"skip": skip}
    for attr, key in _TEXT_FIELDS:
        if key in raw:
            fields[attr] = _text(raw[key], f"{path}.{key}")
    if "style" in raw:
        fields["style"] = _style(raw["style"], f"{path}.style")
    if "rules" in raw:
        fields["rules"] = _decode_sequence(raw["rules"], "rules", f"{path}.rules")
    if "keyframes" in raw:
        fields["keyframes"] = _decode_sequence(raw["keyframes"], "keyframes", f"{path}.keyframes")
    return Change(**fields)


def _decode_item(raw: Any, level: Level, path: str) -> Rule | Keyframe:
    if not isinstance(raw, dict):
        raise MalformedDiffError(f"expected a rule object, got {type(raw).__name__}", path)
    if level == "keyframes":
        if "keyText" not in raw:
            raise MalformedDiffError("keyframe without keyText", path)
        return Keyframe(
            key_text=_text(raw["keyText"], f"{path}.keyText"),
            style=_style(raw.get("style", {}), f"{path}.style"),
        )
    try:
        rule = rule_from_json(raw)
    except InvalidRuleError as e:
        raise MalformedDiffError(str(e), path) from e
    if isinstance(rule, Comment):
        raise MalformedDiffError("comments are never part of a diff", path)
    return rule


def _reject_extra(raw: dict[str, Any], allowed: set[str] | frozenset[str], path: str) -> None:
    extra = sorted(set(raw) - set(allowed))
    if extra:
        raise MalformedDiffError(f"unexpected field(s) {', '.join(extra)}", path)


def _count(raw: dict[str, Any], key: str, path: str, minimum: int) -> int:
    value = raw.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedDiffError(f"{key} must be an integer, got {value!r}", path)
    if value < minimum:
        raise MalformedDiffError(f"{key} must be >= {minimum}, got {value}", path)
    return value


def _text(value: Any, path: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedDiffError(f"expected a string, got {type(value).__name__}", path)
    return value


def _style(value: Any, path: str) -> Style:
    if not isinstance(value, dict):
        raise MalformedDiffError(f"expected a style object, got {type(value).__name__}", path)
    style: Style = {}
    for prop, v in value.items():
        if not isinstance(prop, str):
            raise MalformedDiffError("property names must be strings", path)
        style[prop] = _text(v, f"{path}.{prop}")
    return style
