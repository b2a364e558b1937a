"""Stylesheet file watcher."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

_DEFAULT_PATTERNS = ("*.css", "*.less")
_DEFAULT_IGNORE_PARTS = (".git", "node_modules", "__pycache__", ".venv")


class _SheetEventHandler(FileSystemEventHandler):
    """Filters filesystem events down to stylesheet writes."""

    def __init__(
        self,
        accept: Callable[[str], bool],
        callback: Callable[[str, str], None] | None = None,
    ) -> None:
        super().__init__()
        self._accept = accept
        self._callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("created", "modified", "moved"):
            return
        # Editors often save by writing a temp file and renaming it over the original.
        src = getattr(event, "dest_path", "") or event.src_path
        src = str(src)
        if not self._accept(src):
            return

        if self._callback is not None:
            try:
                self._callback(event.event_type, src)
            except Exception:
                logger.exception("Watcher callback failed for %s", src)


class SheetWatcher:
    """Watches a stylesheet file, or a directory of them, for writes.

    Every accepted event reaches the callback; there is no debouncing.
    Callbacks run on the watchdog observer thread.
    """

    def __init__(
        self,
        path: Path,
        callback: Callable[[str, str], None] | None = None,
        patterns: Iterable[str] = _DEFAULT_PATTERNS,
        ignore_parts: Iterable[str] = _DEFAULT_IGNORE_PARTS,
    ) -> None:
        self._path = Path(path).resolve()
        self._patterns = tuple(patterns)
        self._ignore_parts = frozenset(ignore_parts)
        self._observer: Observer | None = None
        self._handler = _SheetEventHandler(
            accept=self.accepts,
            callback=callback,
        )

    def accepts(self, path: str) -> bool:
        """True if a change to *path* should be reported."""
        p = Path(path)
        if self._path.is_file():
            return p.resolve() == self._path
        if any(part in self._ignore_parts for part in p.parts):
            return False
        return any(fnmatch.fnmatch(p.name, pattern) for pattern in self._patterns)

    def start(self) -> None:
        if self._observer is not None:
            return
        watch_dir = self._path.parent if self._path.is_file() else self._path
        self._observer = Observer()
        self._observer.schedule(
            self._handler,
            str(watch_dir),
            recursive=not self._path.is_file(),
        )
        self._observer.start()
        logger.info("Watching %s for changes", self._path)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching %s", self._path)
