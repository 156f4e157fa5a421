"""Tests composing the repositories page binding module into the application root."""

from dataclasses import dataclass

import pytest

from repobrowser import CachedProxy, MissingBindingError, patch, resource
from repobrowser import repositories_page, settings_page
from repobrowser.cells import CellStyle
from repobrowser.repositories import (
    RepositoriesScreen,
    RepositoriesSettingsScreen,
    ScreenState,
)
from repobrowser.root import (
    AppearanceAware,
    RootTabBar,
    RootTabBarItem,
    SettingsScreen,
    compose,
)
from tests.doubles import CLEANSE, OKHTTP, DeferredRepositoriesService


@dataclass(kw_only=True, eq=False)
class MembersScreen:
    github_organization_name: str
    title: str = "Members"


@dataclass(kw_only=True, eq=False)
class ActivityScreen:
    title: str = "Activity"
    appearances: int = 0

    def view_will_appear(self) -> None:
        self.appearances += 1


class MembersPage:
    """A second feature page, registered between repositories and settings."""

    @resource
    def members_screen(github_organization_name: str) -> MembersScreen:
        return MembersScreen(github_organization_name=github_organization_name)

    @patch
    def root_tab_bar_items(members_screen: MembersScreen) -> RootTabBarItem:
        return RootTabBarItem(view_controller=members_screen, rank=1)


class EarlyPage:
    """Shares rank 0 with the repositories page."""

    @patch
    def root_tab_bar_items(github_organization_name: str) -> RootTabBarItem:
        return RootTabBarItem(
            view_controller=MembersScreen(
                github_organization_name=github_organization_name, title="Early"
            ),
            rank=0,
        )


@pytest.fixture
def app(service: DeferredRepositoriesService) -> CachedProxy:
    return compose(
        repositories_page,
        settings_page,
        github_organization_name="square",
        repositories_service=service,
    )


class TestTabBar:
    """Test the tab bar collection the repositories page registers into."""

    def test_tabs_are_ordered_by_rank(self, app) -> None:
        tab_bar = app.root_tab_bar
        assert isinstance(tab_bar, RootTabBar)
        assert [item.rank for item in tab_bar.items] == [0, 1000]
        repositories, settings = tab_bar.view_controllers
        assert isinstance(repositories, RepositoriesScreen)
        assert isinstance(settings, SettingsScreen)

    def test_pages_from_other_modules_join_by_rank(
        self, service: DeferredRepositoriesService
    ) -> None:
        app = compose(
            settings_page,
            MembersPage,
            repositories_page,
            github_organization_name="square",
            repositories_service=service,
        )
        assert [controller.title for controller in app.root_tab_bar.view_controllers] == [
            "Repositories",
            "Members",
            "Settings",
        ]

    def test_equal_ranks_follow_module_order(
        self, service: DeferredRepositoriesService
    ) -> None:
        app = compose(
            repositories_page,
            EarlyPage,
            github_organization_name="square",
            repositories_service=service,
        )
        assert [item.view_controller.title for item in app.root_tab_bar_items] == [
            "Repositories",
            "Early",
        ]

    def test_tab_entries_are_built_once(self, app) -> None:
        assert app.root_tab_bar_items is app.root_tab_bar_items
        assert app.root_tab_bar is app.root_tab_bar

    def test_selecting_the_tab_refreshes(
        self, app, service: DeferredRepositoriesService
    ) -> None:
        screen = app.root_tab_bar.select(0)
        assert isinstance(screen, RepositoriesScreen)
        assert app.root_tab_bar.selected_view_controller is screen
        assert screen.state is ScreenState.LOADING
        assert service.request_count == 1

        service.succeed(CLEANSE, OKHTTP)
        assert screen.repositories == (CLEANSE, OKHTTP)
        assert screen.navigation_title == "Repositories for square"

    def test_selecting_other_tabs_does_not_refresh(
        self, app, service: DeferredRepositoriesService
    ) -> None:
        app.root_tab_bar.select(1)
        assert service.request_count == 0

    def test_only_appearance_aware_screens_are_notified(self) -> None:
        activity = ActivityScreen()
        members = MembersScreen(github_organization_name="square")
        tab_bar = RootTabBar(
            items=(
                RootTabBarItem(view_controller=activity, rank=0),
                RootTabBarItem(view_controller=members, rank=1),
            )
        )
        assert isinstance(activity, AppearanceAware)
        assert not isinstance(members, AppearanceAware)

        assert tab_bar.select(1) is members
        assert activity.appearances == 0
        assert tab_bar.select(0) is activity
        assert tab_bar.select(0) is activity
        assert activity.appearances == 2
        assert tab_bar.selected_index == 0


class TestSettingsList:
    """Test the settings collection and its lazy providers."""

    def test_settings_entry(self, app) -> None:
        (item,) = app.settings_items
        assert item.title == "Repositories"
        assert item.rank == 0

    def test_settings_screen_is_built_on_open(self, app) -> None:
        settings_screen = app.root_tab_bar.view_controllers[1]
        assert settings_screen.number_of_rows() == 1
        assert settings_screen.title_for_row(0) == "Repositories"

        opened = settings_screen.open(0)
        assert isinstance(opened, RepositoriesSettingsScreen)
        assert settings_screen.open(0) is not opened

    def test_toggle_changes_repositories_rows(
        self, app, service: DeferredRepositoriesService
    ) -> None:
        repositories = app.root_tab_bar.select(0)
        service.succeed(CLEANSE)
        assert repositories.cell_for_row(0).style is CellStyle.SUBTITLE

        settings_screen = app.root_tab_bar.view_controllers[1]
        switch = settings_screen.open(0).cell_for_row(0)
        switch.toggle(False)
        assert app.repositories_page_settings.show_watcher_count is False
        assert repositories.cell_for_row(0).style is CellStyle.DEFAULT

        switch.toggle(True)
        assert repositories.cell_for_row(0).detail_text == "42 watchers"

    def test_settings_are_a_singleton(self, app) -> None:
        assert app.repositories_page_settings is app.repositories_page_settings
        assert app.repositories_screen is not app.repositories_screen
        assert app.repositories_screen.settings is app.repositories_page_settings


class TestConfiguration:
    def test_missing_service_fails_composition(self) -> None:
        with pytest.raises(MissingBindingError, match="repositories_service"):
            compose(repositories_page, github_organization_name="square")

    def test_settings_tab_is_optional(
        self, service: DeferredRepositoriesService
    ) -> None:
        app = compose(
            repositories_page,
            github_organization_name="square",
            repositories_service=service,
        )
        assert len(app.root_tab_bar.items) == 1
        assert app.settings_screen.number_of_rows() == 1
