"""
Screens of the repositories page.

``RepositoriesScreen`` lists the organization's repositories.
``RepositoriesSettingsScreen`` holds the toggle that decides whether those rows
show watcher counts. Both read the same ``RepositoriesPageSettings`` instance.
"""

import logging
import weakref
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Final, Mapping, final

from repobrowser.cells import CellReuseQueue, CellStyle, TableCell
from repobrowser.models import Repository
from repobrowser.services import FetchResult, RepositoriesService
from repobrowser.settings import RepositoriesPageSettings

_logger: Final[logging.Logger] = logging.getLogger(__name__)

_CELL_VARIANTS: Final[Mapping[bool, tuple[str, CellStyle]]] = {
    True: ("RepositoryWatchersCell", CellStyle.SUBTITLE),
    False: ("RepositoryCell", CellStyle.DEFAULT),
}
"""Reuse identifier and style per value of ``show_watcher_count``."""


class ScreenState(Enum):
    IDLE = auto()
    LOADING = auto()
    LOADED = auto()
    FAILED = auto()


@final
@dataclass(slots=True, eq=False)
class RefreshTicket:
    """Cancellation token for one in-flight refresh."""

    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class RepositoriesScreen:
    """
    Shows the repositories of the configured GitHub organization.

    The screen refreshes every time it appears. A refresh started while another
    is in flight replaces it: only the latest request may update the screen.
    Failures are logged and the previously loaded repositories stay displayed.
    """

    repositories_service: Final[RepositoriesService]
    github_organization_name: Final[str]
    settings: Final[RepositoriesPageSettings]

    title: Final[str] = "Repositories"
    tab_bar_image: Final[str] = "TabBarIcons/Repositories"

    reuse_queue: CellReuseQueue = field(default_factory=CellReuseQueue)
    state: ScreenState = field(default=ScreenState.IDLE, init=False)
    repositories: tuple[Repository, ...] = field(default=(), init=False)
    _ticket: RefreshTicket | None = field(default=None, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def navigation_title(self) -> str:
        return f"Repositories for {self.github_organization_name}"

    def view_will_appear(self) -> None:
        self.refresh()

    def refresh(self) -> None:
        if self._closed:
            raise RuntimeError("Cannot refresh a closed repositories screen")
        if self._ticket is not None:
            _logger.debug("Replacing in-flight repositories refresh")
            self._ticket.cancel()
        ticket = RefreshTicket()
        self._ticket = ticket
        self.state = ScreenState.LOADING
        # The service may outlive the screen.
        screen_ref = weakref.ref(self)

        def completion(result: FetchResult) -> None:
            screen = screen_ref()
            if screen is None or ticket.cancelled:
                _logger.debug("Ignoring repositories result of a cancelled refresh")
                return
            screen._ticket = None
            match result:
                case Exception() as error:
                    _logger.warning(
                        "Failed to fetch repositories for %s, keeping %d loaded: %r",
                        screen.github_organization_name,
                        len(screen.repositories),
                        error,
                    )
                    screen.state = ScreenState.FAILED
                case repositories:
                    screen.repositories = tuple(repositories)
                    screen.state = ScreenState.LOADED

        self.repositories_service.list(completion)

    def close(self) -> None:
        """Tears the screen down; results still in flight are dropped."""
        if self._ticket is not None:
            self._ticket.cancel()
            self._ticket = None
        self._closed = True

    @property
    def is_closed(self) -> bool:
        return self._closed

    def number_of_rows(self) -> int:
        return len(self.repositories)

    def cell_for_row(self, row: int) -> TableCell:
        show_watcher_count = self.settings.show_watcher_count
        reuse_identifier, style = _CELL_VARIANTS[show_watcher_count]
        repository = self.repositories[row]
        cell = self.reuse_queue.dequeue(reuse_identifier)
        if cell is None:
            cell = TableCell(style=style, reuse_identifier=reuse_identifier)

        cell.text = repository.name
        if show_watcher_count:
            cell.detail_text = f"{repository.watchers_count} watchers"
        else:
            cell.detail_text = None
        cell.selectable = False
        return cell


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class ShowWatcherCountCell:
    """A settings row with a switch bound to ``show_watcher_count``."""

    settings: Final[RepositoriesPageSettings]
    text: Final[str] = "Show Watcher Count"
    selectable: Final[bool] = False
    is_on: bool = field(init=False)

    def __post_init__(self) -> None:
        self.is_on = self.settings.show_watcher_count

    def toggle(self, is_on: bool) -> None:
        self.is_on = is_on
        self.settings.show_watcher_count = is_on


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class RepositoriesSettingsScreen:
    show_watcher_count: Final[ShowWatcherCountCell]
    title: Final[str] = "Repositories Settings"

    @property
    def cells(self) -> tuple[ShowWatcherCountCell, ...]:
        return (self.show_watcher_count,)

    def number_of_rows(self) -> int:
        return len(self.cells)

    def cell_for_row(self, row: int) -> ShowWatcherCountCell:
        return self.cells[row]
