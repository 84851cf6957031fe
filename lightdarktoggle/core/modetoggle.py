"""
ModeToggle keep light/dark flag in sync with the desktop and switch mode on
request by running external tool.

The flag is never changed by `toggle` itself; only detection set it, so
failed switch is corrected by next detection.
"""
from __future__ import annotations

import builtins
import typing as ty
from dataclasses import dataclass

from lightdarktoggle.core.detection import Detector, Mode
from lightdarktoggle.core.exceptions import SpawnError
from lightdarktoggle.support import pretty

if ty.TYPE_CHECKING:
    from gettext import gettext as _

    from lightdarktoggle.support.types import CommandHandle, CommandRunner

if not hasattr(builtins, "_"):
    _ = str

__all__ = (
    "ModeState",
    "ModeToggle",
    "Presentation",
    "present",
)

ICON_DARK: ty.Final = "weather-clear-night"
ICON_LIGHT: ty.Final = "weather-clear"

ChangedCallback = ty.Callable[["ModeToggle"], None]


class RepeatingTimer(ty.Protocol):
    def start(
        self, interval_seconds: float, callback: ty.Callable[..., None]
    ) -> None:
        ...

    def stop(self) -> None:
        ...


@dataclass
class ModeState:
    is_dark_mode: bool = False
    # toggle command is running; block next toggles
    is_running: bool = False


@dataclass(frozen=True)
class Presentation:
    icon_name: str
    title: str
    subtitle: str


def present(is_dark_mode: bool) -> Presentation:
    """Icon and tooltip texts for given mode"""
    if is_dark_mode:
        return Presentation(
            ICON_DARK, _("Dark Mode"), _("Click to switch to Light Mode")
        )

    return Presentation(
        ICON_LIGHT, _("Light Mode"), _("Click to switch to Dark Mode")
    )


class ModeToggle(pretty.OutputMixin):
    """Track dark mode flag and switch it by running @tool_argv + mode.

    @runner is used to start toggle command (see `AsyncCommand`);
    @timer is used to poll periodic detectors every @poll_interval seconds.
    """

    def __init__(
        self,
        detector: Detector,
        runner: CommandRunner,
        tool_argv: ty.Sequence[str],
        *,
        command_timeout: int | None = 30,
        timer: RepeatingTimer | None = None,
        poll_interval: float = 1,
    ) -> None:
        self.state = ModeState()
        self.detector = detector
        self._runner = runner
        self._tool_argv = list(tool_argv)
        self._command_timeout = command_timeout
        self._timer = timer
        self._poll_interval = poll_interval
        self._command: CommandHandle | None = None
        self._listeners: list[ChangedCallback] = []
        self._started = False

    @property
    def is_dark_mode(self) -> bool:
        return self.state.is_dark_mode

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    @property
    def presentation(self) -> Presentation:
        return present(self.state.is_dark_mode)

    @property
    def icon_name(self) -> str:
        return self.presentation.icon_name

    @property
    def tooltip_main_text(self) -> str:
        return self.presentation.title

    @property
    def tooltip_sub_text(self) -> str:
        return self.presentation.subtitle

    def connect(self, callback: ChangedCallback) -> None:
        """Register @callback called (with this object) after state change"""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    def start(self) -> None:
        """Run first detection and start polling when detector need it."""
        if self._started:
            return

        self._started = True
        self.output_debug("start with", self.detector)
        self.refresh()
        if self.detector.periodic and self._timer is not None:
            self._timer.start(self._poll_interval, self.refresh)

    def stop(self) -> None:
        """Stop polling and cancel all running commands."""
        self._started = False
        if self._timer is not None:
            self._timer.stop()

        self.detector.cancel()
        if (command := self._command) is not None and not command.finished:
            command.cancel()

    def refresh(self) -> None:
        """Run one detection cycle."""
        self.detector.detect(self._on_detected)

    def _on_detected(self, is_dark: bool) -> None:
        if is_dark == self.state.is_dark_mode:
            return

        self.output_debug("detected dark mode:", is_dark)
        self.state.is_dark_mode = is_dark
        self._notify()

    def toggle(self) -> bool:
        """Switch to inverse of current mode.

        Return True when command was started; False when other toggle is in
        progress or command can't be started.
        """
        if self.state.is_running:
            self.output_debug("toggle already running; ignored")
            return False

        target = Mode.from_dark(self.state.is_dark_mode).inverse()
        argv = [*self._tool_argv, target.value]
        self.output_info("Switching to", target.value)
        self.state.is_running = True
        try:
            self._command = self._runner(
                argv, self._on_toggle_finished, self._command_timeout
            )
        except SpawnError as exc:
            self.output_error("Unable to run", argv, exc)
            self.state.is_running = False
            self._command = None
            return False

        self._notify()
        return True

    def _on_toggle_finished(
        self, acom: CommandHandle, stdout: bytes, stderr: bytes
    ) -> None:
        if acom.timeout:
            self.output_error("Toggle command timed out")
        elif acom.exit_status:
            self.output_debug(
                "toggle command exit status", acom.exit_status, stderr
            )

        self._command = None
        self.state.is_running = False
        self._notify()
        if not self.detector.periodic and self._started:
            self.refresh()
