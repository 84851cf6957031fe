import argparse
import gettext
import locale
import sys
import typing as ty
from contextlib import suppress
from pathlib import Path

if ty.TYPE_CHECKING:
    from gettext import gettext as _

__all__ = ("main",)


def _setup_locale_and_gettext() -> None:
    """Set up localization with gettext"""
    package_name = "lightdarktoggle"
    localedir = "./locale"
    for ldir in ("./locale", "/usr/local/share/locale/", "/usr/share/locale"):
        if Path(ldir).is_dir():
            localedir = ldir
            break

    # Install _() builtin for gettext; also install ngettext()
    gettext.install(package_name, localedir=localedir, names=("ngettext",))
    # to load in current locale properly
    with suppress(locale.Error):
        locale.setlocale(locale.LC_ALL, "")


_setup_locale_and_gettext()


def _print(*args: ty.Any) -> None:
    enc = locale.getpreferredencoding(do_setlocale=False)
    sys.stdout.buffer.write(" ".join(map(str, args)).encode(enc, "replace"))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.flush()


def _get_options(argv: list[str] | None = None) -> argparse.Namespace:
    # pylint: disable=import-outside-toplevel
    from lightdarktoggle import version
    from lightdarktoggle.core import settings

    parser = argparse.ArgumentParser(
        prog=version.PACKAGE_NAME,
        description=version.SHORT_DESCRIPTION,
    )
    parser.add_argument(
        "--debug", action="store_true", help=_("enable debug info")
    )
    parser.add_argument(
        "--no-colors",
        action="store_true",
        help=_("do not use colored text in terminal"),
    )
    parser.add_argument(
        "--detection",
        choices=settings.DETECTION_METHODS,
        help=_("how current mode is detected"),
    )
    parser.add_argument(
        "--tool",
        metavar="COMMAND",
        help=_("command used to switch mode; 'dark' or 'light' is appended"),
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--status",
        action="store_true",
        help=_("print current mode and exit"),
    )
    action.add_argument(
        "--toggle",
        action="store_true",
        help=_("switch mode in running instance"),
    )
    action.add_argument(
        "--write-config",
        action="store_true",
        help=_("save current settings to user configuration file"),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{version.PACKAGE_NAME}  {version.VERSION}",
    )

    return parser.parse_args(argv)


def _set_process_title() -> None:
    try:
        import setproctitle  # pylint: disable=import-outside-toplevel
    except ImportError:
        pass
    else:
        setproctitle.setproctitle("lightdarktoggle")


def _gtkmain(
    run_function: ty.Callable[..., ty.Any],
    *args: ty.Any,
    **kwargs: ty.Any,
) -> ty.Any:
    import gi  # pylint: disable=import-outside-toplevel

    gi.require_version("Gtk", "3.0")
    with suppress(ValueError):
        gi.require_version("AppIndicator3", "0.1")

    return run_function(*args, **kwargs)


def _setup_output(cli_opts: argparse.Namespace) -> None:
    # pylint: disable=import-outside-toplevel
    from lightdarktoggle import config, version
    from lightdarktoggle.support import pretty

    if cli_opts.debug or config.get_env("DEBUG"):
        pretty.DEBUG = True
        pretty.print_debug(
            __name__, "Version:", version.PACKAGE_NAME, version.VERSION
        )

    # enable colors only on terminal
    pretty.COLORS = sys.stdout.isatty() and not cli_opts.no_colors
    pretty.setup_log_file(config.get_log_file())


def _apply_overrides(cli_opts: argparse.Namespace) -> ty.Any:
    # pylint: disable=import-outside-toplevel
    from lightdarktoggle.core import settings

    setctl = settings.get_settings_controller()
    if cli_opts.detection:
        setctl.set_detection_method(cli_opts.detection)

    if cli_opts.tool:
        setctl.set_tool_command(cli_opts.tool)

    return setctl


def _print_status(setctl: ty.Any) -> int:
    # pylint: disable=import-outside-toplevel
    from lightdarktoggle.ui import controller

    is_dark = controller.detect_once(setctl)
    if is_dark is None:
        _print(_("Unknown"))
        return 1

    _print(_("Dark") if is_dark else _("Light"))
    return 0


def _toggle_running_instance() -> int:
    # pylint: disable=import-outside-toplevel
    from lightdarktoggle.support import pretty
    from lightdarktoggle.ui import listen

    try:
        listen.call_running_instance("Toggle")
    except listen.NoConnectionError as exc:
        pretty.print_error(__name__, _("No running instance found"), exc)
        return 1

    return 0


def _run_indicator() -> None:
    # pylint: disable=import-outside-toplevel
    from gi.repository import GLib

    GLib.set_prgname("lightdarktoggle")

    from lightdarktoggle.ui.controller import ToggleController

    ToggleController().main()


def main(argv: list[str] | None = None) -> None:
    # parse commandline before importing UI
    cli_opts = _get_options(argv)
    _setup_output(cli_opts)
    setctl = _apply_overrides(cli_opts)

    if cli_opts.write_config:
        if not setctl.save():
            raise SystemExit(1)

        return

    if cli_opts.status:
        raise SystemExit(_gtkmain(_print_status, setctl))

    if cli_opts.toggle:
        raise SystemExit(_gtkmain(_toggle_running_instance))

    sys.excepthook = sys.__excepthook__
    _set_process_title()
    _gtkmain(_run_indicator)
