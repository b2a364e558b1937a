"""Tests for the positional differ."""

from __future__ import annotations

import dataclasses

import pytest

from scissors_core.diff import Change, Insert, Remove, RulesDiffer, Skip, diff_style, encode_diff
from scissors_core.rules import Keyframe, KeyframesRule, MediaRule, PlainRule, RuleTree


def _plain(selector: str, **style: str) -> PlainRule:
    return PlainRule(selector_text=selector, style={k.replace("_", "-"): v for k, v in style.items()})


def _diff_json(old: list, new: list) -> list:
    return encode_diff(RulesDiffer.diff(RuleTree(old), RuleTree(new)))


# ── Worked examples ──────────────────────────────────────────────────


def test_in_place_style_edit():
    assert _diff_json([_plain("a", color="red")], [_plain("a", color="blue")]) == [
        {"style": {"color": "blue"}}
    ]


def test_append():
    r1, r2 = _plain("a", color="red"), _plain("b", margin="0")
    assert _diff_json([r1], [r1, r2]) == [
        {"skip": 1},
        {"type": "rule", "selectorText": "b", "style": {"margin": "0"}},
    ]


def test_truncate():
    r1, r2 = _plain("a"), _plain("b")
    assert _diff_json([r1, r2], [r1]) == [{"skip": 1, "remove": 1}]


def test_kind_swap_is_a_replace():
    keyframes = KeyframesRule(name="spin", keyframes=[Keyframe(key_text="to", style={"top": "0"})])
    assert _diff_json([_plain("a")], [keyframes]) == [
        {
            "insert": {
                "type": "keyframes",
                "name": "spin",
                "vendorPrefix": "",
                "keyframes": [{"keyText": "to", "style": {"top": "0"}}],
            },
            "remove": 1,
        }
    ]


def test_nested_media_edit_omits_unchanged_media_text():
    old = MediaRule(media_text="print", rules=[_plain("a", color="red"), _plain("b")])
    new = MediaRule(media_text="print", rules=[_plain("a", color="red"), _plain("b", color="blue")])
    assert _diff_json([old], [new]) == [{"rules": [{"skip": 1, "style": {"color": "blue"}}]}]


# ── No-op and style diff ─────────────────────────────────────────────


def test_identical_trees_diff_empty(sample_tree):
    assert RulesDiffer.diff(sample_tree, sample_tree.copy()) == ()


def test_style_removal_sentinel():
    assert diff_style({"color": "red"}, {}) == {"color": ""}


def test_style_diff_changes_and_additions():
    assert diff_style({"color": "red", "margin": "0"}, {"color": "red", "margin": "1px", "top": "0"}) == {
        "margin": "1px",
        "top": "0",
    }


def test_style_diff_none_when_equal():
    assert diff_style({"color": "red"}, {"color": "red"}) is None


# ── Field diffs ──────────────────────────────────────────────────────


def test_selector_change():
    assert _diff_json([_plain("a")], [_plain("b")]) == [{"selectorText": "b"}]


def test_cleared_selector_travels_as_null():
    assert _diff_json([_plain("a")], [_plain("")]) == [{"selectorText": None}]


def test_pending_skip_carried_by_next_change():
    old = [_plain("a"), _plain("b"), _plain("c")]
    new = [_plain("a"), _plain("b"), _plain("c", color="red")]
    assert _diff_json(old, new) == [{"skip": 2, "style": {"color": "red"}}]


def test_skip_resets_after_each_entry():
    old = [_plain("a"), _plain("b"), _plain("c"), _plain("d")]
    new = [_plain("x"), _plain("b"), _plain("c"), _plain("y")]
    assert _diff_json(old, new) == [{"selectorText": "x"}, {"skip": 2, "selectorText": "y"}]


def test_keyframes_rule_fields():
    old = KeyframesRule(name="spin", keyframes=[])
    new = KeyframesRule(name="turn", vendor_prefix="-webkit-", keyframes=[])
    assert _diff_json([old], [new]) == [{"name": "turn", "vendorPrefix": "-webkit-"}]


def test_keyframes_compared_by_position_not_key():
    old = KeyframesRule(
        name="blink",
        keyframes=[Keyframe(key_text="50%", style={"opacity": "0"}), Keyframe(key_text="50%", style={"opacity": "0"})],
    )
    new = KeyframesRule(
        name="blink",
        keyframes=[Keyframe(key_text="50%", style={"opacity": "0"}), Keyframe(key_text="50%", style={"opacity": "1"})],
    )
    assert _diff_json([old], [new]) == [{"keyframes": [{"skip": 1, "style": {"opacity": "1"}}]}]


def test_appended_keyframe_sent_raw():
    old = KeyframesRule(name="fade", keyframes=[Keyframe(key_text="from")])
    new = KeyframesRule(
        name="fade", keyframes=[Keyframe(key_text="from"), Keyframe(key_text="to", style={"opacity": "1"})]
    )
    assert _diff_json([old], [new]) == [
        {"keyframes": [{"skip": 1}, {"keyText": "to", "style": {"opacity": "1"}}]}
    ]


def test_moved_rule_is_not_detected_as_a_move():
    """Positional diff: shifting a rule rewrites everything after it."""
    a, b, c = _plain("a"), _plain("b"), _plain("c")
    entries = RulesDiffer.diff(RuleTree([a, b, c]), RuleTree([b, c]))
    assert entries == (
        Change(selector_text="b"),
        Change(selector_text="c"),
        Remove(count=1),
    )


# ── Entry values ─────────────────────────────────────────────────────


def test_entries_are_immutable():
    (entry,) = RulesDiffer.diff(RuleTree([_plain("a")]), RuleTree([_plain("b")]))
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.skip = 3


def test_inserted_items_are_copies():
    new_rule = _plain("b", color="red")
    entries = RulesDiffer.diff(RuleTree([]), RuleTree([new_rule]))
    assert isinstance(entries[0], Insert)
    new_rule.style["color"] = "blue"
    assert entries[0].item.style == {"color": "red"}


def test_trailing_inserts_after_skip_marker():
    entries = RulesDiffer.diff(RuleTree([_plain("a")]), RuleTree([_plain("a"), _plain("b"), _plain("c")]))
    assert isinstance(entries[0], Skip)
    assert [type(e) for e in entries[1:]] == [Insert, Insert]
