"""Stylesheet synchronization: envelopes, sheets, hub, client, watcher."""

from scissors_core.sync.client import SheetClient
from scissors_core.sync.hub import SheetHub
from scissors_core.sync.messages import (
    OpenSheetMessage,
    RulesDiffMessage,
    dump_message,
    parse_message,
)
from scissors_core.sync.sheet import Sheet
from scissors_core.sync.transport import QueueTransport, Transport
from scissors_core.sync.watcher import SheetWatcher

__all__ = [
    "OpenSheetMessage",
    "QueueTransport",
    "RulesDiffMessage",
    "Sheet",
    "SheetClient",
    "SheetHub",
    "SheetWatcher",
    "Transport",
    "dump_message",
    "parse_message",
]
