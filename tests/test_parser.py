"""Tests for the CSS and LESS parser collaborators."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from scissors_core.config.models import ParserConfig
from scissors_core.errors import ParseError
from scissors_core.parser import CSSParser, LessParser, create_parser
from scissors_core.rules import Comment, KeyframesRule, MediaRule, PlainRule


# ── CSSParser ────────────────────────────────────────────────────────


def test_parse_sample_stylesheet(css_parser, sample_css):
    tree = css_parser.parse_text(sample_css)
    assert [r.type for r in tree] == ["rule", "rule", "media", "keyframes"]

    body, link, media, keyframes = tree
    assert body.selector_text == "body"
    assert body.style == {"margin": "0", "color": "#333"}
    assert link.selector_text == "a, a:hover"
    assert link.style["text-decoration"] == "none !important"

    assert isinstance(media, MediaRule)
    assert media.media_text == "(max-width: 600px)"
    assert [r.selector_text for r in media.rules] == ["body", ".nav"]

    assert isinstance(keyframes, KeyframesRule)
    assert keyframes.name == "pulse"
    assert [k.key_text for k in keyframes.keyframes] == ["from", "50%", "to"]


def test_parse_rules_keeps_comments(css_parser):
    rules = css_parser.parse_rules("/* hi */ a { color: red }")
    assert isinstance(rules[0], Comment)
    assert rules[0].text == " hi "


def test_unsupported_at_rules_dropped(css_parser):
    tree = css_parser.parse_text("@import url(x.css);\n@font-face { font-family: X; }\na { }")
    assert [r.type for r in tree] == ["rule"]


def test_selector_whitespace_normalized(css_parser):
    tree = css_parser.parse_text("ul   li ,\n  ol>li { }")
    assert tree[0].selector_text == "ul li, ol>li"


def test_vendor_prefixed_keyframes(css_parser):
    tree = css_parser.parse_text("@-webkit-keyframes spin { from { top: 0 } }")
    assert tree[0].vendor_prefix == "-webkit-"
    assert tree[0].name == "spin"


def test_invalid_declarations_dropped(css_parser):
    tree = css_parser.parse_text("a { color red; width: 10px }")
    assert tree[0].style == {"width": "10px"}


def test_property_names_lowercased_except_custom(css_parser):
    tree = css_parser.parse_text("a { COLOR: red; --Main-Color: blue }")
    assert tree[0].style == {"color": "red", "--Main-Color": "blue"}


def test_strict_mode_raises_on_syntax_error(css_parser):
    with pytest.raises(ParseError) as exc:
        css_parser.parse_text("a { color: red }\nb")
    assert exc.value.line is not None


def test_empty_selector_is_an_error(css_parser):
    with pytest.raises(ParseError, match="empty selector"):
        css_parser.parse_text("{ color: red }")


def test_lenient_mode_skips_bad_rules(caplog):
    parser = CSSParser(strict=False)
    tree = parser.parse_text("a { color: red }\nb")
    assert len(tree) == 1
    assert "Skipping invalid CSS" in caplog.text


@pytest.mark.asyncio
async def test_async_parse(css_parser):
    tree = await css_parser.parse("a { color: red }")
    assert tree[0] == PlainRule(selector_text="a", style={"color": "red"})


# ── LessParser ───────────────────────────────────────────────────────


def _fake_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    proc = MagicMock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.returncode = returncode
    proc.wait = AsyncMock(return_value=returncode)
    return proc


@pytest.mark.asyncio
async def test_less_compiles_then_parses():
    proc = _fake_process(stdout=b".nav a {\n  color: red;\n}\n")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as spawn:
        tree = await LessParser(command=["lessc", "-"]).parse(".nav { a { color: red; } }")
    assert tree[0].selector_text == ".nav a"
    assert spawn.call_args.args == ("lessc", "-")
    proc.communicate.assert_awaited_once_with(b".nav { a { color: red; } }")


@pytest.mark.asyncio
async def test_less_compiler_error_raises_parse_error():
    proc = _fake_process(stderr=b"ParseError: Unrecognised input", returncode=1)
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
        with pytest.raises(ParseError, match="Unrecognised input"):
            await LessParser().parse(".nav {")


@pytest.mark.asyncio
async def test_less_compiler_missing():
    with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError)):
        with pytest.raises(ParseError, match="not found"):
            await LessParser(command=["no-such-lessc"]).parse("a { }")


@pytest.mark.asyncio
async def test_less_compile_timeout_kills_process():
    async def hang(_input):
        await asyncio.sleep(10)

    proc = _fake_process()
    proc.communicate = AsyncMock(side_effect=hang)
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
        with pytest.raises(ParseError, match="timed out"):
            await LessParser(timeout=0.05).parse("a { }")
    proc.kill.assert_called_once()


# ── create_parser ────────────────────────────────────────────────────


def test_create_css_parser_uses_strictness():
    parser = create_parser("css", ParserConfig(strict=False))
    assert isinstance(parser, CSSParser)
    assert parser.strict is False


def test_create_less_parser_from_config():
    parser = create_parser("less", ParserConfig(less_command=["npx", "lessc", "-"], less_timeout=3))
    assert isinstance(parser, LessParser)
    assert parser.command == ["npx", "lessc", "-"]
    assert parser.timeout == 3
    assert parser.css_type == "less"


def test_create_parser_rejects_unknown_type():
    with pytest.raises(ValueError, match="Unsupported stylesheet type"):
        create_parser("sass")
