"""Shared test fixtures for Scissors."""

import pytest

from scissors_core.config.models import ScissorsConfig
from scissors_core.cssom import CSSStyleSheet
from scissors_core.parser import CSSParser
from scissors_core.rules import RuleTree

SAMPLE_CSS = """\
/* site styles */
body { margin: 0; color: #333; }
a, a:hover { color: red; text-decoration: none !important; }
@media (max-width: 600px) {
  body { margin: 4px; }
  .nav { display: none; }
}
@keyframes pulse {
  from { opacity: 0; }
  50% { opacity: .5; }
  to { opacity: 1; }
}
@font-face { font-family: Foo; src: url(foo.woff); }
"""


@pytest.fixture
def sample_css():
    return SAMPLE_CSS


@pytest.fixture
def sample_config():
    return ScissorsConfig()


@pytest.fixture
def css_parser():
    return CSSParser()


@pytest.fixture
def sample_rules():
    """JSON form of a small stylesheet covering every rule kind."""
    return [
        {"type": "rule", "selectorText": "body", "style": {"margin": "0", "color": "#333"}},
        {"type": "comment", "text": " ignored "},
        {
            "type": "media",
            "mediaText": "(max-width: 600px)",
            "rules": [
                {"type": "rule", "selectorText": "body", "style": {"margin": "4px"}},
                {"type": "rule", "selectorText": ".nav", "style": {"display": "none"}},
            ],
        },
        {
            "type": "keyframes",
            "name": "pulse",
            "vendorPrefix": "",
            "keyframes": [
                {"keyText": "from", "style": {"opacity": "0"}},
                {"keyText": "to", "style": {"opacity": "1"}},
            ],
        },
    ]


@pytest.fixture
def sample_tree(sample_rules):
    return RuleTree.from_structured(sample_rules)


@pytest.fixture
def stylesheet():
    """Live stylesheet that only understands -webkit- prefixes."""
    return CSSStyleSheet.from_text(SAMPLE_CSS)
