from __future__ import annotations

import signal
import sys
import typing as ty

from gi.repository import GLib, Gtk

from lightdarktoggle.core import commands, settings
from lightdarktoggle.core.detection import (
    ConfigKeyDetector,
    Detector,
    Mode,
    StatusFileDetector,
)
from lightdarktoggle.core.modetoggle import ModeToggle
from lightdarktoggle.support import pretty, scheduler
from lightdarktoggle.ui import listen
from lightdarktoggle.ui.indicator import StatusIndicator

__all__ = (
    "ToggleController",
    "create_detector",
    "create_mode_toggle",
    "detect_once",
)


def create_detector(setctl: settings.SettingsController) -> Detector:
    """Create detector configured in settings."""
    if setctl.get_detection_method() == settings.DETECTION_STATUS_FILE:
        return StatusFileDetector(setctl.get_status_file())

    conf = setctl.config.detection
    return ConfigKeyDetector(
        commands.run_async,
        setctl.get_kreadconfig_argv(),
        conf.config_file,
        conf.group,
        setctl.get_detection_timeout(),
    )


def create_mode_toggle(setctl: settings.SettingsController) -> ModeToggle:
    return ModeToggle(
        create_detector(setctl),
        commands.run_async,
        setctl.get_tool_argv(),
        command_timeout=setctl.get_toggle_timeout(),
        timer=scheduler.IntervalTimer(),
        poll_interval=setctl.get_poll_interval(),
    )


def detect_once(setctl: settings.SettingsController) -> bool | None:
    """Run one detection cycle; return is-dark flag or None when
    detection failed or gave no result in time."""
    detector = create_detector(setctl)
    result: list[bool] = []
    failed: list[bool] = []
    loop = GLib.MainLoop()

    def on_detected(is_dark: bool) -> None:
        result.append(is_dark)
        loop.quit()

    def on_failed() -> None:
        pretty.print_debug(__name__, "detection failed")
        failed.append(True)
        loop.quit()

    def on_timeout() -> None:
        pretty.print_debug(__name__, "detection timeout")
        detector.cancel()
        loop.quit()

    detector.detect(on_detected, on_failed)
    if not result and not failed:
        guard = scheduler.Timer()
        # two chained reads
        guard.set(2 * setctl.get_detection_timeout() + 1, on_timeout)
        loop.run()
        guard.invalidate()

    return result[0] if result else None


class ToggleController(pretty.OutputMixin):
    """
    Application controller: tray indicator, dbus service and mode toggle.
    """

    def __init__(self) -> None:
        self._toggle: ModeToggle = None  # type: ignore
        self._indicator: StatusIndicator = None  # type: ignore
        self._service: listen.Service | None = None
        self._last_mode: Mode | None = None

    def _get_mode(self) -> str:
        return Mode.from_dark(self._toggle.is_dark_mode).value

    def _on_state_changed(self, toggle: ModeToggle) -> None:
        self._indicator.update(toggle.presentation, busy=toggle.is_running)
        mode = Mode.from_dark(toggle.is_dark_mode)
        if mode == self._last_mode:
            return

        self._last_mode = mode
        self.output_info("Mode:", mode.value)
        if self._service:
            self._service.ModeChanged(mode.value)

    def _on_toggle(self, *_args: ty.Any) -> None:
        self._toggle.toggle()

    def _on_refresh(self, *_args: ty.Any) -> None:
        self._toggle.refresh()

    def _on_quit(self, *_args: ty.Any) -> None:
        Gtk.main_quit()

    def _on_sigterm(self, signal_: int, _frame: ty.Any) -> None:
        self.output_info("Caught signal", signal_, "exiting..")
        self._on_quit()

    def _on_early_interrupt(self, _signal: int, _frame: ty.Any) -> None:
        sys.exit(1)

    def main(self) -> None:
        signal.signal(signal.SIGINT, self._on_early_interrupt)

        try:
            self._service = listen.Service(self._get_mode)
        except listen.AlreadyRunningError:
            self.output_info("An instance is already running, exiting...")
            raise SystemExit from None
        except listen.NoConnectionError:
            self.output_info("No D-Bus session; running without service")

        setctl = settings.get_settings_controller()
        self._toggle = create_mode_toggle(setctl)
        self._indicator = StatusIndicator(
            self._on_toggle,
            self._on_refresh,
            self._on_quit,
            setctl.get_use_appindicator(),
        )
        self._toggle.connect(self._on_state_changed)

        if self._service:
            self._service.connect("toggle", self._on_toggle)
            self._service.connect("refresh", self._on_refresh)
            self._service.connect("quit", self._on_quit)

        signal.signal(signal.SIGINT, self._on_sigterm)
        signal.signal(signal.SIGTERM, self._on_sigterm)
        signal.signal(signal.SIGHUP, self._on_sigterm)

        self._indicator.show(self._toggle.presentation)
        self._last_mode = Mode.from_dark(self._toggle.is_dark_mode)
        self._toggle.start()

        try:
            Gtk.main()
        finally:
            self._toggle.stop()
            self._indicator.hide()
            if self._service:
                self._service.unregister()
