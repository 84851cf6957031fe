"""
Console and log file output.

Every line printed through `OutputMixin` or the `print_*` helpers is also
appended to `LOG_FILE` (when set), prefixed with a timestamp and level.
"""

from __future__ import annotations

import sys
import traceback
import typing as ty
from contextlib import suppress
from datetime import datetime
from pathlib import Path

if ty.TYPE_CHECKING:
    from lightdarktoggle.support.types import ExecInfo

__all__ = (
    "OutputMixin",
    "print_debug",
    "print_error",
    "setup_log_file",
)

DEBUG = False
COLORS = True

# path of log file; None disable logging to file
LOG_FILE: Path | None = None
LOG_MAX_SIZE = 100 * 1024
LOG_KEEP_LINES = 100

_COLOR_INFO = "\033[96m"
_COLOR_WARNING = "\033[93m"
_COLOR_FAIL = "\033[91m"
_COLOR_STD = "\033[0m"

_LEVEL_PREFIX = {
    "INFO": ("INF", _COLOR_INFO),
    "ERROR": ("ERR", _COLOR_WARNING),
    "EXC": ("EXC", _COLOR_FAIL),
    "DEBUG": ("DBG", None),
}


def setup_log_file(path: str | Path | None) -> None:
    global LOG_FILE  # pylint: disable=global-statement
    LOG_FILE = Path(path) if path else None


def _trim_log(logfile: Path) -> None:
    """Cut `logfile` down to last LOG_KEEP_LINES lines when it grow over
    LOG_MAX_SIZE."""
    try:
        if logfile.stat().st_size <= LOG_MAX_SIZE:
            return

        lines = logfile.read_text(encoding="UTF-8", errors="replace")
    except OSError:
        return

    tail = lines.splitlines(keepends=True)[-LOG_KEEP_LINES:]
    tmpfile = logfile.with_name(f"{logfile.name}.tmp")
    tmpfile.write_text("".join(tail), encoding="UTF-8")
    tmpfile.replace(logfile)


def _write_log(level: str, line: str) -> None:
    logfile = LOG_FILE
    if logfile is None:
        return

    stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    # log file is best effort; console output is already done
    with suppress(OSError):
        logfile.parent.mkdir(parents=True, exist_ok=True)
        _trim_log(logfile)
        with logfile.open("a", encoding="UTF-8") as out:
            out.write(f"[{stamp}] [{level}] {line}\n")


class OutputMixin:
    """A mixin class providing prefixed output standard output and DEBUG
    output."""

    def _output_category(self) -> str:
        return f"[{type(self).__module__}] {type(self).__name__}:"

    def _output_core(
        self,
        level: str,
        sep: str,
        end: str,
        stream: ty.TextIO | None,
        *items: ty.Any,
    ) -> None:
        category = self._output_category()
        pitems = [
            item if isinstance(item, (str, int, float)) else repr(item)
            for item in items
        ]
        tag, color = _LEVEL_PREFIX[level]
        prefix = f"{color}{tag}{_COLOR_STD} " if COLORS and color else f"{tag} "
        print(f"{prefix}{category}", *pitems, sep=sep, end=end, file=stream)
        _write_log(level, sep.join(map(str, (category, *pitems))))

    def output_info(
        self, *items: ty.Any, sep: str = " ", end: str = "\n", **kwargs: ty.Any
    ) -> None:
        """Output given items using @sep as separator, ending the line with @end"""
        self._output_core("INFO", sep, end, sys.stdout, *items)

    def output_exc(self, exc_info: ExecInfo | None = None) -> None:
        """Output current exception, or use @exc_info if given"""
        etype, value, tback = exc_info or sys.exc_info()
        assert etype
        if DEBUG:
            self._output_core("EXC", "", "\n", sys.stderr)
            traceback.print_exception(etype, value, tback, file=sys.stderr)
            return

        self._output_core(
            "EXC", " ", "\n", sys.stderr, f"{etype.__name__}: {value}"
        )

    def output_debug(
        self, *items: ty.Any, sep: str = " ", end: str = "\n", **kwargs: ty.Any
    ) -> None:
        if DEBUG:
            self._output_core("DEBUG", sep, end, sys.stderr, *items)

    def output_error(
        self, *items: ty.Any, sep: str = " ", end: str = "\n", **kwargs: ty.Any
    ) -> None:
        self._output_core("ERROR", sep, end, sys.stderr, *items)


class _StaticOutput(OutputMixin):
    current_calling_module: str | None = None

    def _output_category(self) -> str:
        return f"[{self.current_calling_module}]:"

    def print_error(
        self, modulename: str, *args: ty.Any, **kwargs: ty.Any
    ) -> None:
        self.current_calling_module = modulename
        self.output_error(*args, **kwargs)

    def print_debug(
        self, modulename: str, *args: ty.Any, **kwargs: ty.Any
    ) -> None:
        if DEBUG:
            self.current_calling_module = modulename
            self.output_debug(*args, **kwargs)


_StaticOutputInst = _StaticOutput()

print_debug = _StaticOutputInst.print_debug
print_error = _StaticOutputInst.print_error
