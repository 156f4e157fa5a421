"""Shared presentation settings for the repositories page."""

import threading


class RepositoriesPageSettings:
    """
    Controls how the repositories page is displayed.

    One instance is shared by every consumer of a composed root. Reads and
    writes are atomic, and a read observes the most recent write.
    """

    def __init__(self, *, show_watcher_count: bool = True) -> None:
        self._lock = threading.Lock()
        self._show_watcher_count = show_watcher_count

    def get(self) -> bool:
        with self._lock:
            return self._show_watcher_count

    def set(self, show_watcher_count: bool) -> None:
        with self._lock:
            self._show_watcher_count = show_watcher_count

    @property
    def show_watcher_count(self) -> bool:
        """If true, the repositories page shows the number of watchers."""
        return self.get()

    @show_watcher_count.setter
    def show_watcher_count(self, show_watcher_count: bool) -> None:
        self.set(show_watcher_count)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(show_watcher_count={self.get()!r})"
