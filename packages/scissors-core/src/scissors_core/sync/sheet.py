"""Per-stylesheet synchronization state."""

from __future__ import annotations

import logging
from typing import Any

from scissors_core.diff.codec import Entry
from scissors_core.diff.differ import RulesDiffer
from scissors_core.diff.patcher import PatchReport, RulesPatcher
from scissors_core.diff.sinks import TreeSink
from scissors_core.errors import ParseError
from scissors_core.parser.base import Parser
from scissors_core.rules.models import RuleTree
from scissors_core.rules.render import render_tree
from scissors_core.sync.messages import CssType, OpenSheetMessage

logger = logging.getLogger(__name__)


class Sheet:
    """One named stylesheet and the last tree that parsed successfully.

    ``source`` is the text of the last successful local parse; diffs
    applied from peers change ``tree`` only.
    """

    def __init__(
        self,
        name: str,
        css_type: CssType = "css",
        tree: RuleTree | None = None,
        source: str | None = None,
    ) -> None:
        self.name = name
        self.css_type = css_type
        self.tree = tree if tree is not None else RuleTree()
        self.source = source
        self._generation = 0

    @classmethod
    async def from_source(cls, name: str, text: str, parser: Parser) -> Sheet:
        """Parse *text* into a new sheet. Raises ParseError."""
        tree = await RuleTree.from_text(text, parser)
        return cls(name, parser.css_type, tree, text)  # type: ignore[arg-type]

    @classmethod
    def from_structured(
        cls,
        name: str,
        items: Any,
        css_type: CssType = "css",
        source: str | None = None,
    ) -> Sheet:
        """Build a sheet from JSON rules. Raises InvalidRuleError."""
        return cls(name, css_type, RuleTree.from_structured(items), source)

    def get_text(self) -> str:
        """CSS text of the current tree, for an editor buffer."""
        return render_tree(self.tree)

    async def update(self, text: str, parser: Parser) -> tuple[Entry, ...] | None:
        """Reparse *text* and return the diff from the current tree.

        Returns None when the text does not parse (the current tree stays
        authoritative), when nothing changed, or when a newer update
        started while this one was parsing.
        """
        self._generation += 1
        generation = self._generation
        try:
            new_tree = await parser.parse(text)
        except ParseError as e:
            logger.info("Keeping last good version of %s: %s", self.name, e)
            return None

        if generation != self._generation:
            logger.debug("Discarding superseded parse of %s", self.name)
            return None

        entries = RulesDiffer.diff(self.tree, new_tree)
        self.tree = new_tree
        self.source = text
        return entries or None

    def apply(self, entries: tuple[Entry, ...]) -> PatchReport:
        """Patch the current tree in place with a peer's diff."""
        report = RulesPatcher.apply(TreeSink(self.tree.rules), entries)
        if not report.clean:
            logger.warning(
                "Patch of %s was incomplete: %d rejected, %d missing",
                self.name,
                report.rejected,
                report.missing,
            )
        return report

    def to_open_message(self) -> OpenSheetMessage:
        return OpenSheetMessage(
            name=self.name,
            css_type=self.css_type,
            source=self.source,
            css_rules=self.tree.to_json(),
        )

    def __repr__(self) -> str:
        return f"Sheet({self.name!r}, {self.css_type}, {len(self.tree)} rules)"
