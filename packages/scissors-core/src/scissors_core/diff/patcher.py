"""Apply a positional diff to a sink."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from scissors_core.diff.codec import Change, Entry, Insert, Remove, Skip
from scissors_core.diff.sinks import Item, RuleSink, change_fits
from scissors_core.errors import RemovalError, RuleRejectedError
from scissors_core.rules.models import Keyframe, PlaceholderRule

logger = logging.getLogger(__name__)


class PatchReport(BaseModel):
    """What a patch did to its sink.

    ``rejected`` counts inserts the sink refused (a placeholder took their
    position); ``missing`` counts removals or changes whose target was not
    there. Neither stops the patch.
    """

    applied: int = Field(default=0, ge=0)
    inserted: int = Field(default=0, ge=0)
    removed: int = Field(default=0, ge=0)
    rejected: int = Field(default=0, ge=0)
    missing: int = Field(default=0, ge=0)

    @property
    def clean(self) -> bool:
        return not (self.rejected or self.missing)


class RulesPatcher:
    """Replays diff entries against a sink in a single linear pass.

    The cursor starts at 0, moves forward by each entry's ``skip``, and by
    one after every insert or change. Removals happen at the cursor before
    the entry's own insert, so a replace (``remove: 1`` plus ``insert``)
    lands exactly where the old rule was.
    """

    @staticmethod
    def apply(sink: RuleSink, entries: Sequence[Entry]) -> PatchReport:
        report = PatchReport()
        _apply(sink, entries, report, depth=0)
        return report


def _apply(sink: RuleSink, entries: Sequence[Entry], report: PatchReport, depth: int) -> None:
    cursor = 0
    for entry in entries:
        cursor += entry.skip
        if isinstance(entry, Skip):
            continue

        for _ in range(entry.remove):
            try:
                sink.remove_at(cursor)
            except (IndexError, RemovalError) as e:
                logger.warning("Nothing to remove at position %d (depth %d): %s", cursor, depth, e)
                report.missing += 1
            else:
                report.removed += 1

        if isinstance(entry, Remove):
            continue
        if isinstance(entry, Insert):
            _insert(sink, cursor, entry.item, report)
        elif isinstance(entry, Change):
            _change(sink, cursor, entry, report, depth)
        else:
            raise TypeError(f"Unknown diff entry: {type(entry).__name__}")
        cursor += 1


def _insert(sink: RuleSink, cursor: int, item: Item, report: PatchReport) -> None:
    index = min(cursor, sink.count())
    try:
        sink.insert_at(index, item)
    except RuleRejectedError as e:
        logger.warning(
            "Sink rejected %s at position %d, keeping a placeholder: %s",
            getattr(item, "type", "keyframe"),
            index,
            e,
        )
        sink.insert_at(index, PlaceholderRule())
        report.rejected += 1
    else:
        report.inserted += 1


def _change(sink: RuleSink, cursor: int, change: Change, report: PatchReport, depth: int) -> None:
    if cursor >= sink.count():
        # A keyframe appended past the end travels in raw {keyText, style} form.
        if change.key_text is not None and change.style is not None:
            style = {prop: value for prop, value in change.style.items() if value}
            _insert(sink, cursor, Keyframe(key_text=change.key_text, style=style), report)
            return
        logger.warning("No rule at position %d (depth %d) to change", cursor, depth)
        report.missing += 1
        return

    target = sink.get_at(cursor)
    if isinstance(target, PlaceholderRule):
        logger.debug("Ignoring change to placeholder at position %d", cursor)
        return
    if not change_fits(change, target):
        logger.warning(
            "Change at position %d (depth %d) does not fit a %s; skipping",
            cursor,
            depth,
            type(target).__name__,
        )
        report.missing += 1
        return

    sink.mutate_at(cursor, change)
    report.applied += 1

    nested = change.rules if change.rules is not None else change.keyframes
    if nested is None:
        return
    child = sink.child_at(cursor)
    if child is None:
        logger.warning("No nested sink at position %d (depth %d)", cursor, depth)
        report.missing += 1
        return
    _apply(child, nested, report, depth + 1)
