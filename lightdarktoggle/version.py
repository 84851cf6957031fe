# encoding: UTF-8
import builtins

if not hasattr(builtins, "_"):
    _ = str

VERSION = "1.0.0"
PACKAGE_NAME = "lightdarktoggle"

DESKTOP_ID = "org.kde.plasma.lightdarktoggle"
PROGRAM_NAME = _("Light/Dark Toggle")

SHORT_DESCRIPTION = _("Switch between light and dark desktop mode")
