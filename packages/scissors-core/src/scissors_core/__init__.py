"""Scissors Core - positional diff/patch engine for stylesheet synchronization."""

from scissors_core.config import ScissorsConfig, load_config
from scissors_core.diff import PatchReport, RulesDiffer, RulesPatcher, StyleSheetSink, TreeSink
from scissors_core.errors import ScissorsError
from scissors_core.parser import CSSParser, LessParser, Parser, create_parser
from scissors_core.rules import RuleTree, render_tree
from scissors_core.sync import Sheet, SheetClient, SheetHub

__version__ = "0.1.0"

__all__ = [
    "CSSParser",
    "LessParser",
    "Parser",
    "PatchReport",
    "RuleTree",
    "RulesDiffer",
    "RulesPatcher",
    "ScissorsConfig",
    "ScissorsError",
    "Sheet",
    "SheetClient",
    "SheetHub",
    "StyleSheetSink",
    "TreeSink",
    "create_parser",
    "load_config",
    "render_tree",
]
