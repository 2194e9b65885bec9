"""Rebuild-on-change loop.

Polling is the default because native change notification is unreliable on
virtualised and container-mounted filesystems.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .config import BuildConfig
from .logging import get_logger
from .utils import glob_base, glob_match, relative_posix

IDLE = "idle"
RUNNING = "running"


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, loop: "WatchLoop"):
        super().__init__()
        self.loop = loop

    # Only content changes count; opened/closed events fire when a rebuild reads
    # the sources and would retrigger the loop.
    def _changed(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        for p in paths:
            if p and self.loop.notify(Path(_as_str(p))):
                return

    def on_created(self, event: FileSystemEvent) -> None:
        self._changed(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._changed(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._changed(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._changed(event)


def _as_str(p) -> str:
    return p.decode() if isinstance(p, bytes) else str(p)


class WatchLoop:
    """Watch source globs and serialise rebuilds.

    Changes seen while a rebuild runs are coalesced into a single follow-up
    rebuild. Rebuild errors are logged and the loop keeps watching.
    """

    def __init__(
        self,
        config: BuildConfig,
        patterns: Iterable[str],
        rebuild: Callable[[], object],
        observer_factory: Optional[Callable[[], object]] = None,
    ):
        self.config = config
        self.patterns = list(patterns)
        self.rebuild = rebuild
        self.state = IDLE
        self.rebuilds = 0
        self.failures = 0
        self._dirty = threading.Event()
        self._stop = threading.Event()
        self._observer_factory = observer_factory or self._default_observer
        self.logger = get_logger("assetflow.watch")

    def _default_observer(self):
        if self.config.watch.polling:
            return PollingObserver(timeout=self.config.watch.interval)
        return Observer()

    def watch_dirs(self) -> list[Path]:
        dirs: list[Path] = []
        for pat in self.patterns:
            d = self.config.resolve(glob_base(pat) or ".")
            if d not in dirs:
                dirs.append(d)
        return dirs

    def notify(self, path: Path) -> bool:
        """Mark the loop dirty when `path` matches a watched glob."""
        rel = relative_posix(path, self.config.root)
        if any(glob_match(rel, pat) for pat in self.patterns):
            self.logger.debug("Change detected: %s", rel)
            self._dirty.set()
            return True
        return False

    def run_once(self) -> bool:
        """Run one rebuild if a change is pending. Returns True if one ran."""
        if not self._dirty.is_set():
            return False
        self._dirty.clear()
        self.state = RUNNING
        try:
            self.rebuild()
        except Exception:  # noqa: BLE001
            self.failures += 1
            self.logger.exception("Rebuild failed; still watching for changes")
        finally:
            self.rebuilds += 1
            self.state = IDLE
        return True

    def stop(self) -> None:
        self._stop.set()
        # Wake the loop if it is waiting for changes
        self._dirty.set()

    def run(self) -> None:
        observer = self._observer_factory()
        handler = _ChangeHandler(self)
        scheduled = 0
        for d in self.watch_dirs():
            if not d.is_dir():
                self.logger.warning("Watch directory does not exist: %s", d)
                continue
            observer.schedule(handler, str(d), recursive=True)
            scheduled += 1
        observer.start()
        self.logger.info(
            "Watching for file changes (%s, %d directories)",
            "polling every %.1fs" % self.config.watch.interval
            if self.config.watch.polling
            else "native events",
            scheduled,
        )
        try:
            while not self._stop.is_set():
                if not self._dirty.wait(timeout=self.config.watch.interval):
                    continue
                if self._stop.is_set():
                    break
                # Let a burst of saves settle into one rebuild
                self._stop.wait(self.config.watch.debounce)
                if self._stop.is_set():
                    break
                self.run_once()
        except KeyboardInterrupt:
            self.logger.info("Watch interrupted")
        finally:
            observer.stop()
            observer.join()
