"""
Detection of the current desktop light/dark mode.

Two detectors are available:

`StatusFileDetector` read small status file written by the mode switching
tool (content: "dark" or "light"); it is cheap, so it is polled.

`ConfigKeyDetector` compare two keys from KDE configuration: current
LookAndFeelPackage and DefaultDarkLookAndFeel. It needs two external
`kreadconfig6` calls run one after another, so it is only run on demand.
"""
from __future__ import annotations

import enum
import typing as ty
from dataclasses import dataclass
from pathlib import Path

from lightdarktoggle.core.exceptions import SpawnError
from lightdarktoggle.support import pretty

if ty.TYPE_CHECKING:
    from lightdarktoggle.support.types import CommandHandle, CommandRunner

__all__ = (
    "ConfigKeyDetector",
    "ConfigKeyReading",
    "DetectionStage",
    "Detector",
    "Mode",
    "StatusFileDetector",
    "parse_status",
)

DetectedCallback = ty.Callable[[bool], None]
FailedCallback = ty.Callable[[], None]

KEY_PACKAGE: ty.Final = "LookAndFeelPackage"
KEY_DARK_DEFAULT: ty.Final = "DefaultDarkLookAndFeel"


class Mode(enum.Enum):
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def from_dark(cls, is_dark: bool) -> Mode:
        return cls.DARK if is_dark else cls.LIGHT

    def inverse(self) -> Mode:
        return Mode.LIGHT if self == Mode.DARK else Mode.DARK


def parse_status(output: str | bytes) -> bool | None:
    """Parse content of status file / command output.

    >>> parse_status("dark\\n")
    True
    >>> parse_status(b" light ")
    False
    >>> parse_status("auto") is None
    True
    """
    if isinstance(output, bytes):
        output = output.decode("UTF-8", "replace")

    value = output.strip()
    if value == Mode.DARK.value:
        return True

    if value == Mode.LIGHT.value:
        return False

    return None


class Detector(pretty.OutputMixin):
    """Base class for detectors.

    `detect` start one detection cycle; @callback is called with
    is-dark-mode flag only when detection succeeded, @on_failed (if given)
    when the cycle ended without result.
    """

    # if True detector should be run periodically
    periodic: bool = False

    def detect(
        self,
        callback: DetectedCallback,
        on_failed: FailedCallback | None = None,
    ) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        """Abort detection in progress, if any."""


class StatusFileDetector(Detector):
    """Read mode from status file in runtime directory."""

    periodic = True

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"<StatusFileDetector {self.path}>"

    def read_status(self) -> str:
        """Return content of status file; errors are mapped into empty
        string (file not exist before first switch)."""
        try:
            return self.path.read_text(encoding="UTF-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.output_debug("read status failed:", exc)
            return ""

    def detect(
        self,
        callback: DetectedCallback,
        on_failed: FailedCallback | None = None,
    ) -> None:
        is_dark = parse_status(self.read_status())
        if is_dark is not None:
            callback(is_dark)
        elif on_failed is not None:
            on_failed()


@dataclass(frozen=True)
class ConfigKeyReading:
    package: str
    dark_default: str

    @property
    def is_dark(self) -> bool:
        return self.package == self.dark_default


class DetectionStage(enum.Enum):
    IDLE = enum.auto()
    AWAITING_PACKAGE = enum.auto()
    AWAITING_DARK_DEFAULT = enum.auto()
    DONE = enum.auto()


class ConfigKeyDetector(Detector):
    """Compare LookAndFeelPackage with DefaultDarkLookAndFeel.

    Reads are chained: second read is started from completion of the first
    one.  `detect` called while cycle is running schedule one more cycle
    after the current one.
    """

    periodic = False

    def __init__(
        self,
        runner: CommandRunner,
        kreadconfig: ty.Sequence[str] = ("kreadconfig6",),
        config_file: str = "kdeglobals",
        group: str = "KDE",
        timeout_s: int | None = 10,
    ) -> None:
        self._runner = runner
        self._kreadconfig = list(kreadconfig)
        self._config_file = config_file
        self._group = group
        self._timeout_s = timeout_s

        self.stage = DetectionStage.IDLE
        self._callback: DetectedCallback | None = None
        self._on_failed: FailedCallback | None = None
        self._command: CommandHandle | None = None
        self._package: str | None = None
        self._pending = False

    def read_argv(self, key: str) -> list[str]:
        return [
            *self._kreadconfig,
            "--file",
            self._config_file,
            "--group",
            self._group,
            "--key",
            key,
        ]

    @property
    def busy(self) -> bool:
        return self.stage in (
            DetectionStage.AWAITING_PACKAGE,
            DetectionStage.AWAITING_DARK_DEFAULT,
        )

    def detect(
        self,
        callback: DetectedCallback,
        on_failed: FailedCallback | None = None,
    ) -> None:
        self._callback = callback
        self._on_failed = on_failed
        if self.busy:
            self.output_debug("detection in progress; queued")
            self._pending = True
            return

        self._package = None
        self._read(KEY_PACKAGE, DetectionStage.AWAITING_PACKAGE)

    def _read(self, key: str, stage: DetectionStage) -> None:
        self.stage = stage
        try:
            self._command = self._runner(
                self.read_argv(key), self._on_read_finished, self._timeout_s
            )
        except SpawnError as exc:
            self.output_error("Unable to read", key, exc)
            self._fail()

    def _abort(self) -> None:
        self.stage = DetectionStage.IDLE
        self._command = None
        self._package = None
        self._pending = False

    def _fail(self) -> None:
        """End failed cycle; run queued one or report the failure."""
        pending = self._pending
        self._abort()
        if pending and self._callback:
            self.detect(self._callback, self._on_failed)
        elif self._on_failed is not None:
            self._on_failed()

    def _on_read_finished(
        self, acom: CommandHandle, stdout: bytes, stderr: bytes
    ) -> None:
        if acom is not self._command:
            # result of cancelled read
            return

        self._command = None
        if acom.timeout or acom.exit_status != 0:
            self.output_debug(
                "read failed in", self.stage, acom.exit_status, stderr
            )
            self._fail()
            return

        value = stdout.decode("UTF-8", "replace").strip()
        if self.stage == DetectionStage.AWAITING_PACKAGE:
            self._package = value
            self._read(KEY_DARK_DEFAULT, DetectionStage.AWAITING_DARK_DEFAULT)
            return

        assert self.stage == DetectionStage.AWAITING_DARK_DEFAULT
        assert self._package is not None
        reading = ConfigKeyReading(self._package, value)
        self.stage = DetectionStage.DONE
        self._package = None
        self.output_debug("detected", reading)
        if self._callback:
            self._callback(reading.is_dark)

        if self._pending and self.stage == DetectionStage.DONE:
            self._pending = False
            assert self._callback
            self.detect(self._callback, self._on_failed)

    def cancel(self) -> None:
        command = self._command
        self._abort()
        if command is not None and not command.finished:
            command.cancel()
