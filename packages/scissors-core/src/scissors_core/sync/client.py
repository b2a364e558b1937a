"""Consumer side: keeps live CSSOM stylesheets in sync."""

from __future__ import annotations

import logging

from scissors_core.cssom.model import CSSStyleSheet
from scissors_core.diff.codec import Entry, decode_rules_diff, encode_diff
from scissors_core.diff.differ import RulesDiffer
from scissors_core.diff.patcher import PatchReport, RulesPatcher
from scissors_core.diff.sinks import StyleSheetSink
from scissors_core.errors import MalformedDiffError
from scissors_core.rules.models import RuleTree
from scissors_core.sync.messages import CssType, OpenSheetMessage, RulesDiffMessage, parse_message
from scissors_core.sync.transport import Transport

logger = logging.getLogger(__name__)


class SheetClient:
    """Registers live stylesheets with a hub and applies its diffs.

    Each registered sheet gets a StyleSheetSink, so inserts the engine
    refuses become placeholders instead of shifting later rules.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._sinks: dict[str, StyleSheetSink] = {}
        self._snapshots: dict[str, RuleTree] = {}

    def sink(self, name: str) -> StyleSheetSink | None:
        return self._sinks.get(name)

    async def open_sheet(
        self,
        name: str,
        stylesheet: CSSStyleSheet,
        css_type: CssType = "css",
        source: str | None = None,
    ) -> StyleSheetSink:
        """Register *stylesheet* under *name* and announce it."""
        sink = StyleSheetSink(stylesheet)
        self._sinks[name] = sink
        self._snapshots[name] = RuleTree(sink.to_rules())
        message = OpenSheetMessage(
            name=name, css_type=css_type, source=source, css_rules=sink.to_json()
        )
        await self.transport.send(message.dump())
        return sink

    def close_sheet(self, name: str) -> None:
        self._sinks.pop(name, None)
        self._snapshots.pop(name, None)

    def handle_message(self, raw: str | bytes) -> PatchReport | None:
        """Apply an incoming rulesDiff. Anything else is ignored."""
        message = parse_message(raw)
        if message is None:
            return None
        if not isinstance(message, RulesDiffMessage):
            logger.debug("Ignoring %s message", message.type)
            return None
        sink = self._sinks.get(message.sheet_name)
        if sink is None:
            logger.info("Ignoring diff for unknown sheet %r", message.sheet_name)
            return None
        try:
            entries = decode_rules_diff(message.rules_diff)
        except MalformedDiffError as e:
            logger.warning("Ignoring malformed diff for %s: %s", message.sheet_name, e)
            return None
        report = RulesPatcher.apply(sink, entries)
        self._snapshots[message.sheet_name] = RuleTree(sink.to_rules())
        return report

    async def push_changes(self, name: str) -> tuple[Entry, ...] | None:
        """Send whatever changed in the live sheet since it was last synced."""
        sink = self._sinks.get(name)
        if sink is None:
            raise KeyError(f"Unknown sheet: {name!r}")
        current = RuleTree(sink.to_rules())
        entries = RulesDiffer.diff(self._snapshots[name], current)
        if not entries:
            return None
        message = RulesDiffMessage(sheet_name=name, rules_diff=encode_diff(entries))
        await self.transport.send(message.dump())
        self._snapshots[name] = current
        return entries
