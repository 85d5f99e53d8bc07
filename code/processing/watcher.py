#!/usr/bin/env python3
"""
Directory watcher that feeds new camera images into the solve pipeline.

Each accepted file is handled on its own daemon thread: the thread waits the
configured file-write delay, then runs the pipeline. A solver that never
exits therefore stalls only its own file, never the delivery of new events.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import threading
import time
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from processing.pipeline import SolvePipeline
from status import FileStage


def _spawn_thread(target: Callable[..., None], *args) -> None:
    name = f"solve-{Path(args[0]).name}" if args else "solve"
    threading.Thread(target=target, args=args, name=name, daemon=True).start()


class ImageEventHandler(FileSystemEventHandler):
    """Accept newly created images and hand them to the pipeline."""

    def __init__(
        self,
        pipeline: SolvePipeline,
        extensions: Iterable[str],
        delay_s: float,
        spawn: Callable[..., None] = _spawn_thread,
        logger=None,
    ) -> None:
        super().__init__()
        self.pipeline = pipeline
        self.extensions = frozenset(e.lower() for e in extensions)
        self.delay_s = delay_s
        self.spawn = spawn
        self.logger = logger or logging.getLogger(__name__)

    def accepts(self, path: Path | str) -> bool:
        p = Path(path)
        if p.suffix.lower() not in self.extensions:
            return False
        if self.pipeline.consume_generated(p):
            self.logger.debug(f"Ignoring converted file {p.name}")
            return False
        return True

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._submit(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Cameras that write to a temp name and rename on completion
        if event.is_directory:
            return
        self._submit(event.dest_path)

    def _submit(self, src_path) -> None:
        path = Path(os.fsdecode(src_path))
        if not self.accepts(path):
            return
        self.logger.info(f"{FileStage.DETECTED.value.capitalize()}: {path.name}")
        self.spawn(self._handle, str(path))

    def _handle(self, path: str) -> None:
        if self.delay_s > 0:
            self.logger.info(
                f"{FileStage.STABILIZING.value.capitalize()}: waiting {self.delay_s * 1000:.0f}ms "
                f"before processing {Path(path).name} to avoid file system errors"
            )
            time.sleep(self.delay_s)
        self.pipeline.process_file(path)


class DirectoryWatcher:
    """Owns the watchdog observer for one directory (non-recursive).

    Use as a context manager so the observer is stopped and joined on every
    exit path.
    """

    def __init__(self, directory: Path | str, handler: ImageEventHandler, logger=None) -> None:
        self.directory = Path(directory)
        self.handler = handler
        self.logger = logger or logging.getLogger(__name__)
        self._observer: Optional[Observer] = None
        self._stop_event = threading.Event()

    @classmethod
    def for_pipeline(cls, pipeline: SolvePipeline, logger=None) -> "DirectoryWatcher":
        settings = pipeline.settings
        handler = ImageEventHandler(
            pipeline,
            extensions=settings.extensions,
            delay_s=settings.file_write_delay_s,
            logger=logger,
        )
        return cls(settings.watch_directory, handler, logger=logger)

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Watch directory does not exist: {self.directory}")
        self._stop_event.clear()
        observer = Observer()
        observer.schedule(self.handler, str(self.directory), recursive=False)
        observer.start()
        self._observer = observer
        self.logger.info(f"Waiting for images in directory {self.directory}")

    def stop(self) -> None:
        self._stop_event.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
            self.logger.info("Directory watcher stopped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until ``stop()`` is called; returns True if stopped."""
        return self._stop_event.wait(timeout)

    def __enter__(self) -> "DirectoryWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
