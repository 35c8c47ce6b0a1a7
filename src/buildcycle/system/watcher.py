"""
Polling source watcher used by watch sessions.

The watcher keeps a snapshot of (mtime, size) per watched file and reports
the paths that were added, removed or modified since the previous poll.
"""

import logging
import os
import threading
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

FileSignature = Tuple[int, int]


class SourceWatcher:
    """
    Detects source changes by polling modification times.

    Directory roots are walked recursively and filtered by extension;
    file roots are always watched. Directory names in ``ignore_names``
    and everything below ``ignore_paths`` are skipped.
    """

    def __init__(
        self,
        roots: Iterable[str],
        extensions: Iterable[str],
        ignore_names: Iterable[str] = (),
        ignore_paths: Iterable[str] = (),
        poll_interval: float = 0.3,
    ):
        self.roots = [os.path.abspath(root) for root in roots]
        self.extensions = tuple(extensions)
        self.ignore_names = frozenset(ignore_names)
        self.ignore_paths = tuple(os.path.abspath(path) for path in ignore_paths)
        self.poll_interval = poll_interval
        self._state: Dict[str, FileSignature] = {}

    def _is_ignored(self, path: str) -> bool:
        for ignored in self.ignore_paths:
            if path == ignored or path.startswith(ignored + os.sep):
                return True
        return False

    @staticmethod
    def _signature(path: str) -> Optional[FileSignature]:
        try:
            stat = os.stat(path)
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def snapshot(self) -> Dict[str, FileSignature]:
        """Scan every root and return the current signatures."""
        state: Dict[str, FileSignature] = {}
        for root in self.roots:
            if os.path.isfile(root):
                signature = self._signature(root)
                if signature is not None:
                    state[root] = signature
                continue

            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = [
                    name for name in dirnames
                    if name not in self.ignore_names
                    and not name.startswith(".")
                    and not self._is_ignored(os.path.join(dirpath, name))
                ]
                for filename in filenames:
                    if not filename.endswith(self.extensions):
                        continue
                    path = os.path.join(dirpath, filename)
                    if self._is_ignored(path):
                        continue
                    signature = self._signature(path)
                    if signature is not None:
                        state[path] = signature
        return state

    def prime(self) -> None:
        """Record the current state as the baseline for the next poll."""
        self._state = self.snapshot()
        logger.debug(f"Watching {len(self._state)} files under {', '.join(self.roots)}")

    def poll(self) -> List[str]:
        """Return the paths changed since the last poll and update the baseline."""
        current = self.snapshot()
        changed = [
            path for path in set(current) | set(self._state)
            if current.get(path) != self._state.get(path)
        ]
        self._state = current
        return sorted(changed)

    def wait_for_change(self, stop_event: threading.Event) -> Optional[List[str]]:
        """
        Block until at least one watched file changes.

        Changes arriving within one more poll interval are folded into the
        same batch.

        Returns:
            The changed paths, or None if ``stop_event`` was set first
        """
        while not stop_event.wait(self.poll_interval):
            changed = self.poll()
            if not changed:
                continue
            if stop_event.wait(self.poll_interval):
                return None
            changed = sorted(set(changed) | set(self.poll()))
            logger.debug(f"Detected changes: {', '.join(changed)}")
            return changed
        return None
