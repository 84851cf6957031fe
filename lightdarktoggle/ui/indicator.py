"""
Tray icon showing current mode.

Two backends: Gtk.StatusIcon (XEmbed / KDE status notifier via gtk) and
AppIndicator3 when available and enabled in configuration.
"""
from __future__ import annotations

import typing as ty
from contextlib import suppress

from gi.repository import GLib, Gtk

try:
    from gi.repository import AppIndicator3
except ImportError:
    AppIndicator3 = None

from lightdarktoggle import version
from lightdarktoggle.support import pretty

if ty.TYPE_CHECKING:
    from gettext import gettext as _

    from lightdarktoggle.core.modetoggle import Presentation


class StatusIndicator(pretty.OutputMixin):
    """Tray icon; @on_activate is called on click (and "Switch mode" menu
    item), @on_refresh and @on_quit from context menu."""

    def __init__(
        self,
        on_activate: ty.Callable[[], None],
        on_refresh: ty.Callable[[], None],
        on_quit: ty.Callable[[], None],
        use_appindicator: bool = False,
    ) -> None:
        self._on_activate = on_activate
        self._on_refresh = on_refresh
        self._on_quit = on_quit
        self._statusicon: Gtk.StatusIcon | None = None
        self._statusicon_ai = None
        self._use_appindicator = use_appindicator and AppIndicator3 is not None
        if use_appindicator and AppIndicator3 is None:
            self.output_info("AppIndicator3 not available, using StatusIcon")

        self._toggle_item: Gtk.MenuItem | None = None
        self._menu = self._setup_menu()

    def _setup_menu(self) -> Gtk.Menu:
        menu = Gtk.Menu()
        menu.set_name("lightdarktoggle-menu")

        def add_menu_item(
            label: str, callback: ty.Callable[[], None]
        ) -> Gtk.MenuItem:
            def mitem_handler(menuitem: Gtk.MenuItem) -> bool:
                callback()
                return True

            mitem = Gtk.MenuItem(label=label)
            mitem.connect("activate", mitem_handler)
            menu.append(mitem)
            return mitem

        self._toggle_item = add_menu_item(_("Switch Mode"), self._on_activate)
        add_menu_item(_("Refresh"), self._on_refresh)
        menu.append(Gtk.SeparatorMenuItem())
        add_menu_item(_("Quit"), self._on_quit)
        menu.show_all()
        return menu

    def show(self, presentation: Presentation) -> None:
        """Create (if not exists) and show indicator."""
        if self._use_appindicator:
            self._show_statusicon_ai(presentation)
        else:
            self._show_statusicon(presentation)

        self.update(presentation)

    def _show_statusicon(self, presentation: Presentation) -> None:
        if not self._statusicon:
            status = Gtk.StatusIcon.new_from_icon_name(presentation.icon_name)
            status.set_title(version.PROGRAM_NAME)
            status.connect("popup-menu", self._on_popup_menu, self._menu)
            status.connect("activate", self._on_statusicon_activate)
            self._statusicon = status

        with suppress(AttributeError):
            self._statusicon.set_visible(True)

    def _show_statusicon_ai(self, presentation: Presentation) -> None:
        if not self._statusicon_ai:
            indicator = AppIndicator3.Indicator.new(
                version.DESKTOP_ID,
                presentation.icon_name,
                AppIndicator3.IndicatorCategory.APPLICATION_STATUS,
            )
            indicator.set_title(version.PROGRAM_NAME)
            indicator.set_menu(self._menu)
            # middle click switch mode
            indicator.set_secondary_activate_target(self._toggle_item)
            self._statusicon_ai = indicator

        self._statusicon_ai.set_status(AppIndicator3.IndicatorStatus.ACTIVE)

    def update(self, presentation: Presentation, busy: bool = False) -> None:
        """Update icon and tooltip."""
        subtitle = _("Switching...") if busy else presentation.subtitle
        if self._statusicon:
            self._statusicon.set_from_icon_name(presentation.icon_name)
            self._statusicon.set_tooltip_markup(
                f"<b>{GLib.markup_escape_text(presentation.title)}</b>\n"
                f"{GLib.markup_escape_text(subtitle)}"
            )

        if self._statusicon_ai:
            self._statusicon_ai.set_icon_full(
                presentation.icon_name, presentation.title
            )
            self._statusicon_ai.set_title(
                f"{version.PROGRAM_NAME}: {presentation.title}"
            )

        if self._toggle_item:
            self._toggle_item.set_sensitive(not busy)

    def hide(self) -> None:
        if self._statusicon:
            with suppress(AttributeError):
                self._statusicon.set_visible(False)

        if self._statusicon_ai:
            self._statusicon_ai.set_status(
                AppIndicator3.IndicatorStatus.PASSIVE
            )

    def _on_popup_menu(
        self,
        status_icon: Gtk.StatusIcon,
        button: int,
        activate_time: float,
        menu: Gtk.Menu,
    ) -> None:
        """When the StatusIcon is right-clicked."""
        menu.popup(
            None,
            None,
            Gtk.StatusIcon.position_menu,
            status_icon,
            button,
            activate_time,
        )

    def _on_statusicon_activate(self, sender: Gtk.StatusIcon) -> None:
        """GtkStatusIcon callback"""
        self._on_activate()
