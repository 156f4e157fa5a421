"""
Binding module of the repositories page.

Registers the repositories screen as a tab of the root tab bar, the
repositories settings screen as an entry of the settings list, and the
settings shared between them as a singleton.
"""

from repobrowser import Provider, extern, patch, resource, singleton
from repobrowser.repositories import (
    RepositoriesScreen,
    RepositoriesSettingsScreen,
    ShowWatcherCountCell,
)
from repobrowser.root import RootTabBarItem, SettingsItem
from repobrowser.services import RepositoriesService
from repobrowser.settings import RepositoriesPageSettings


@extern
def github_organization_name() -> str: ...


@extern
def repositories_service() -> RepositoriesService: ...


@resource
def repositories_screen(
    repositories_service: RepositoriesService,
    github_organization_name: str,
    repositories_page_settings: RepositoriesPageSettings,
) -> RepositoriesScreen:
    return RepositoriesScreen(
        repositories_service=repositories_service,
        github_organization_name=github_organization_name,
        settings=repositories_page_settings,
    )


@resource
def repositories_settings_screen(
    show_watcher_count_cell: ShowWatcherCountCell,
) -> RepositoriesSettingsScreen:
    return RepositoriesSettingsScreen(show_watcher_count=show_watcher_count_cell)


@singleton
def repositories_page_settings() -> RepositoriesPageSettings:
    return RepositoriesPageSettings()


@resource
def show_watcher_count_cell(
    repositories_page_settings: RepositoriesPageSettings,
) -> ShowWatcherCountCell:
    return ShowWatcherCountCell(settings=repositories_page_settings)


@patch
def root_tab_bar_items(repositories_screen: RepositoriesScreen) -> RootTabBarItem:
    return RootTabBarItem(view_controller=repositories_screen, rank=0)


@patch
def settings_items(
    repositories_settings_screen: Provider[RepositoriesSettingsScreen],
) -> SettingsItem:
    return SettingsItem(
        title="Repositories",
        view_controller_provider=repositories_settings_screen,
        rank=0,
    )
