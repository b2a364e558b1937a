"""Server side of stylesheet synchronization."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from scissors_core.config.models import ParserConfig
from scissors_core.diff.codec import Entry, decode_rules_diff, encode_diff
from scissors_core.diff.differ import RulesDiffer
from scissors_core.errors import DeliveryError, InvalidRuleError, MalformedDiffError, ParseError
from scissors_core.parser import create_parser
from scissors_core.parser.base import Parser
from scissors_core.rules.models import RuleTree
from scissors_core.sync.messages import OpenSheetMessage, RulesDiffMessage, parse_message
from scissors_core.sync.sheet import Sheet
from scissors_core.sync.transport import Transport

logger = logging.getLogger(__name__)

SheetListener = Callable[[Sheet], Awaitable[None] | None]


class SheetHub:
    """Holds the authoritative copy of every open stylesheet.

    Connections announce sheets with ``openSheet`` and exchange
    ``rulesDiff`` messages. A diff from one connection patches the hub's
    copy and is relayed to every other connection. Messages for one sheet
    must be handled one at a time, in arrival order.
    """

    def __init__(self, parser_config: ParserConfig | None = None) -> None:
        self.sheets: dict[str, Sheet] = {}
        self._connections: list[Transport] = []
        self._listeners: list[SheetListener] = []
        self._parser_config = parser_config
        self._parsers: dict[str, Parser] = {}
        # One lock per sheet name, held while that sheet is being adopted.
        self._adoption_locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Connections and listeners
    # ------------------------------------------------------------------

    @property
    def connections(self) -> list[Transport]:
        return list(self._connections)

    def connect(self, conn: Transport) -> None:
        if conn not in self._connections:
            self._connections.append(conn)

    def disconnect(self, conn: Transport) -> None:
        if conn in self._connections:
            self._connections.remove(conn)

    def on_sheet_opened(self, listener: SheetListener) -> None:
        """Call *listener* whenever a sheet is adopted for the first time."""
        self._listeners.append(listener)

    def parser_for(self, css_type: str) -> Parser:
        if css_type not in self._parsers:
            self._parsers[css_type] = create_parser(css_type, self._parser_config)
        return self._parsers[css_type]

    # ------------------------------------------------------------------
    # Incoming messages
    # ------------------------------------------------------------------

    async def handle_message(self, conn: Transport, raw: str | bytes) -> None:
        """Dispatch one raw message received on *conn*.

        Invalid messages are logged and dropped. Relay failures raise
        DeliveryError.
        """
        message = parse_message(raw)
        if isinstance(message, OpenSheetMessage):
            await self._open_sheet(conn, message)
        elif isinstance(message, RulesDiffMessage):
            await self._rules_diff(conn, message)

    async def _open_sheet(self, conn: Transport, message: OpenSheetMessage) -> None:
        # A second opener waits for an in-flight adoption and then takes the
        # known-sheet path below.
        lock = self._adoption_locks.setdefault(message.name, asyncio.Lock())
        async with lock:
            sheet = self.sheets.get(message.name)
            if sheet is None:
                sheet = await self._adopt(message)
                if sheet is None:
                    return
                self.sheets[sheet.name] = sheet
                logger.info("Opened %s (%d rules)", sheet.name, len(sheet.tree))
                for listener in self._listeners:
                    result = listener(sheet)
                    if inspect.isawaitable(result):
                        await result
                return

        try:
            theirs = RuleTree.from_structured(message.css_rules)
        except InvalidRuleError as e:
            logger.warning("Ignoring openSheet for %s with broken rules: %s", message.name, e)
            return
        entries = RulesDiffer.diff(theirs, sheet.tree)
        if entries:
            logger.debug("Bringing new connection up to date on %s", sheet.name)
            await conn.send(_diff_message(sheet.name, entries))

    async def _adopt(self, message: OpenSheetMessage) -> Sheet | None:
        if message.source is not None:
            try:
                return await Sheet.from_source(
                    message.name, message.source, self.parser_for(message.css_type)
                )
            except ParseError as e:
                logger.warning(
                    "Could not parse source of %s, using the sender's rules: %s", message.name, e
                )
        try:
            return Sheet.from_structured(
                message.name, message.css_rules, message.css_type, message.source
            )
        except InvalidRuleError as e:
            logger.warning("Ignoring openSheet for %s with broken rules: %s", message.name, e)
            return None

    async def _rules_diff(self, conn: Transport, message: RulesDiffMessage) -> None:
        sheet = self.sheets.get(message.sheet_name)
        lock = self._adoption_locks.get(message.sheet_name)
        if sheet is None and lock is not None and lock.locked():
            async with lock:
                sheet = self.sheets.get(message.sheet_name)
        if sheet is None:
            logger.warning("Ignoring diff for unknown sheet %r", message.sheet_name)
            return
        try:
            entries = decode_rules_diff(message.rules_diff)
        except MalformedDiffError as e:
            logger.warning("Ignoring malformed diff for %s: %s", sheet.name, e)
            return
        sheet.apply(entries)
        await self.broadcast(_diff_message(sheet.name, entries), exclude=conn)

    # ------------------------------------------------------------------
    # Outgoing
    # ------------------------------------------------------------------

    async def edit_sheet(self, name: str, text: str) -> tuple[Entry, ...] | None:
        """The sheet's source changed locally; push the diff to everyone.

        Returns the diff, or None if nothing was sent.
        """
        sheet = self.sheets.get(name)
        if sheet is None:
            raise KeyError(f"Unknown sheet: {name!r}")
        entries = await sheet.update(text, self.parser_for(sheet.css_type))
        if entries:
            await self.broadcast(_diff_message(name, entries))
        return entries

    async def broadcast(self, message: str, exclude: Transport | None = None) -> None:
        """Send *message* to every connection except *exclude*.

        All connections are attempted; failures are raised together.
        """
        targets = [c for c in self._connections if c is not exclude]
        if not targets:
            return
        results = await asyncio.gather(
            *(c.send(message) for c in targets), return_exceptions=True
        )
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            raise DeliveryError(failures)


def _diff_message(sheet_name: str, entries: tuple[Entry, ...]) -> str:
    return RulesDiffMessage(sheet_name=sheet_name, rules_diff=encode_diff(entries)).dump()
