"""Binding module adding the settings list as the last tab of the root tab bar."""

from repobrowser import patch
from repobrowser.root import RootTabBarItem, SettingsScreen


@patch
def root_tab_bar_items(settings_screen: SettingsScreen) -> RootTabBarItem:
    return RootTabBarItem(view_controller=settings_screen, rank=1000)
