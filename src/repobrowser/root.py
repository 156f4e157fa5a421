"""
Composition root of the browser.

Declares the ranked collections that feature pages contribute to, and the
root tab bar and settings list that consume them. ``compose`` union-mounts
this module with the feature binding modules and binds configuration.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, Final, Iterator, Protocol, final, runtime_checkable

from repobrowser import (
    CachedProxy,
    Provider,
    aggregator,
    ranked,
    resolve_root,
    resource,
    singleton,
)

_logger: Final[logging.Logger] = logging.getLogger(__name__)


class Screen(Protocol):
    @property
    def title(self) -> str: ...


@runtime_checkable
class AppearanceAware(Protocol):
    """A screen that refreshes when its tab is selected."""

    def view_will_appear(self) -> None: ...


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class RootTabBarItem:
    """A page shown in the root tab bar. Lower ranks come first."""

    view_controller: Screen
    rank: int


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class SettingsItem:
    """An entry of the settings list, opening a screen built on demand."""

    title: str
    view_controller_provider: Provider[Screen]
    rank: int


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class RootTabBar:
    items: Final[tuple[RootTabBarItem, ...]]
    selected_index: int | None = field(default=None, init=False)

    @property
    def view_controllers(self) -> tuple[Screen, ...]:
        return tuple(item.view_controller for item in self.items)

    @property
    def selected_view_controller(self) -> Screen | None:
        if self.selected_index is None:
            return None
        return self.items[self.selected_index].view_controller

    def select(self, index: int) -> Screen:
        """Selects a tab and lets its screen know it is about to appear."""
        view_controller = self.items[index].view_controller
        self.selected_index = index
        if isinstance(view_controller, AppearanceAware):
            view_controller.view_will_appear()
        return view_controller


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class SettingsScreen:
    items: Final[tuple[SettingsItem, ...]]
    title: Final[str] = "Settings"

    def number_of_rows(self) -> int:
        return len(self.items)

    def title_for_row(self, row: int) -> str:
        return self.items[row].title

    def open(self, row: int) -> Screen:
        item = self.items[row]
        _logger.debug("Opening settings for %s", item.title)
        return item.view_controller_provider.get()


@aggregator
def root_tab_bar_items() -> Callable[[Iterator[RootTabBarItem]], tuple[RootTabBarItem, ...]]:
    return ranked


@aggregator
def settings_items() -> Callable[[Iterator[SettingsItem]], tuple[SettingsItem, ...]]:
    return ranked


@singleton
def root_tab_bar(root_tab_bar_items: tuple[RootTabBarItem, ...]) -> RootTabBar:
    return RootTabBar(items=root_tab_bar_items)


@resource
def settings_screen(settings_items: tuple[SettingsItem, ...]) -> SettingsScreen:
    return SettingsScreen(items=settings_items)


def compose(*binding_modules: object, **configuration: object) -> CachedProxy:
    """
    Builds the application graph from feature binding modules.

    Binding modules register in the given order, which breaks rank ties in the
    shared collections. ``configuration`` binds every ``@extern`` they declare.

    Example:
        app = compose(
            repositories_page,
            settings_page,
            github_organization_name="square",
            repositories_service=service,
        )
        app.root_tab_bar.select(0)
    """
    root = resolve_root(sys.modules[__name__], *binding_modules)
    app = root(**configuration)
    _logger.debug(
        "Composed %d binding modules with configuration %s",
        len(binding_modules),
        sorted(configuration),
    )
    return app
