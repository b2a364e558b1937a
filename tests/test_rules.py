"""Tests for the rule tree model and CSS rendering."""

from __future__ import annotations

import pytest

from scissors_core.errors import InvalidRuleError
from scissors_core.rules import (
    Comment,
    Keyframe,
    KeyframesRule,
    MediaRule,
    PlaceholderRule,
    PlainRule,
    RuleTree,
    render_rule,
    render_tree,
    rule_from_json,
)


# ── Construction ─────────────────────────────────────────────────────


def test_from_structured_drops_comments(sample_tree):
    assert [r.type for r in sample_tree] == ["rule", "media", "keyframes"]


def test_from_structured_drops_unknown_kinds_recursively():
    tree = RuleTree.from_structured(
        [
            {"type": "font-face", "style": {"font-family": "Foo"}},
            {
                "type": "media",
                "mediaText": "print",
                "rules": [
                    {"type": "supports", "conditionText": "(display: grid)"},
                    {"type": "comment", "text": "x"},
                    {"type": "rule", "selectorText": "a", "style": {}},
                ],
            },
        ]
    )
    assert len(tree) == 1
    assert [r.type for r in tree[0].rules] == ["rule"]


def test_from_structured_keeps_placeholders():
    tree = RuleTree.from_structured([{"type": "dummy", "dummy": True, "style": {}}])
    assert isinstance(tree[0], PlaceholderRule)


def test_broken_known_kind_raises():
    with pytest.raises(InvalidRuleError):
        RuleTree.from_structured([{"type": "rule", "style": {"color": "red"}}])


def test_non_list_input_raises():
    with pytest.raises(InvalidRuleError, match="expected a list"):
        RuleTree.from_structured({"type": "rule"})


def test_non_dict_rule_raises():
    with pytest.raises(InvalidRuleError, match=r"\$\[1\]"):
        RuleTree.from_structured([{"type": "rule", "selectorText": "a"}, "b { }"])


def test_constructor_filters_comment_instances():
    tree = RuleTree([Comment(text="x"), PlainRule(selector_text="a")])
    assert len(tree) == 1


def test_rule_from_json_by_kind():
    rule = rule_from_json({"type": "keyframes", "name": "spin", "keyframes": [{"keyText": "to"}]})
    assert isinstance(rule, KeyframesRule)
    assert rule.vendor_prefix == ""
    assert rule.keyframes == [Keyframe(key_text="to", style={})]


# ── Serialization ────────────────────────────────────────────────────


def test_to_json_uses_wire_names():
    tree = RuleTree([PlainRule(selector_text="a", style={"color": "red"})])
    assert tree.to_json() == [{"type": "rule", "selectorText": "a", "style": {"color": "red"}}]


def test_json_round_trip(sample_tree):
    assert RuleTree.from_structured(sample_tree.to_json()) == sample_tree


def test_style_order_preserved():
    style = {"z-index": "1", "color": "red", "align-items": "center"}
    tree = RuleTree.from_structured([{"type": "rule", "selectorText": "a", "style": style}])
    assert list(tree.to_json()[0]["style"]) == ["z-index", "color", "align-items"]


def test_empty_style_values_are_dropped():
    tree = RuleTree.from_structured(
        [
            {"type": "rule", "selectorText": "a", "style": {"color": "", "top": "0", "left": "  "}},
            {"type": "keyframes", "name": "k", "keyframes": [{"keyText": "to", "style": {"top": ""}}]},
        ]
    )
    assert tree[0].style == {"top": "0"}
    assert tree[1].keyframes[0].style == {}


def test_copy_is_deep(sample_tree):
    clone = sample_tree.copy()
    clone[1].rules[0].style["margin"] = "99px"
    assert sample_tree[1].rules[0].style["margin"] == "4px"
    assert clone != sample_tree


def test_keyframes_with_shared_key_text_are_kept():
    rule = KeyframesRule(
        name="blink",
        keyframes=[
            Keyframe(key_text="50%", style={"opacity": "0"}),
            Keyframe(key_text="50%", style={"opacity": "1"}),
        ],
    )
    tree = RuleTree.from_structured(RuleTree([rule]).to_json())
    assert len(tree[0].keyframes) == 2


def test_equality_with_other_types():
    assert RuleTree() != []


# ── Rendering ────────────────────────────────────────────────────────


def test_render_plain_rule():
    rule = PlainRule(selector_text="a", style={"color": "red", "margin": "0"})
    assert render_rule(rule) == "a {\n\tcolor: red;\n\tmargin: 0;\n}"


def test_render_compact():
    rule = PlainRule(selector_text="a", style={"color": "red"})
    assert render_rule(rule, compact=True) == "a { color: red; }"
    assert render_rule(PlainRule(selector_text="b"), compact=True) == "b { }"


def test_render_media_indents_children():
    rule = MediaRule(media_text="print", rules=[PlainRule(selector_text="a", style={"color": "red"})])
    assert render_rule(rule) == "@media print {\n\ta {\n\t\tcolor: red;\n\t}\n}"


def test_render_keyframes_with_vendor_prefix():
    rule = KeyframesRule(
        name="spin",
        vendor_prefix="-webkit-",
        keyframes=[Keyframe(key_text="from", style={"transform": "none"})],
    )
    assert render_rule(rule, compact=True) == "@-webkit-keyframes spin { from { transform: none; } }"


def test_render_tree_skips_placeholders():
    text = render_tree(
        [
            PlainRule(selector_text="a", style={"color": "red"}),
            PlaceholderRule(),
            PlainRule(selector_text="b"),
        ]
    )
    assert text == "a {\n\tcolor: red;\n}\n\nb {\n}"
