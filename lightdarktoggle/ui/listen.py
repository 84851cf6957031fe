# pylint: disable=invalid-name
"""
This module has a Service for dbus callbacks, and ensures there is only one
instance of the toggle running in the session.
"""
from __future__ import annotations

import typing as ty

import dbus
import dbus.service
from dbus.gi_service import ExportedGObject
from dbus.mainloop.glib import DBusGMainLoop
from gi.repository import GObject

from lightdarktoggle.support import pretty

DBusGMainLoop(set_as_default=True)

try:
    # if session bus is unavailable print the exception here
    # but further actions (register) will fail with NoConnectionError
    _SESSION_BUS = dbus.SessionBus()
except dbus.exceptions.DBusException as exc:
    _SESSION_BUS = None
    pretty.print_error(__name__, exc)


class AlreadyRunningError(Exception):
    """Service already available on the bus Exception"""


class NoConnectionError(Exception):
    """Not possible to establish connection for callbacks"""


SERVER_NAME: ty.Final = "io.github.lightdarktoggle"
INTERFACE_NAME: ty.Final = "io.github.lightdarktoggle.Listener"
OBJECT_NAME: ty.Final = "/io/github/lightdarktoggle"


class Service(ExportedGObject):  # type:ignore
    def __init__(self, get_mode: ty.Callable[[], str]):
        """Create a new service on the Session Bus; @get_mode return
        current mode name.

        Raises NoConnectionError, AlreadyRunningError
        """
        if not _SESSION_BUS:
            raise NoConnectionError

        if _SESSION_BUS.name_has_owner(SERVER_NAME):
            raise AlreadyRunningError

        bus_name = dbus.service.BusName(SERVER_NAME, bus=_SESSION_BUS)
        super().__init__(
            conn=_SESSION_BUS, object_path=OBJECT_NAME, bus_name=bus_name
        )
        self._get_mode = get_mode

    def unregister(self):
        if _SESSION_BUS:
            _SESSION_BUS.release_name(SERVER_NAME)

    @dbus.service.method(INTERFACE_NAME)
    def Toggle(self):
        self.emit("toggle")

    @dbus.service.method(INTERFACE_NAME)
    def Refresh(self):
        self.emit("refresh")

    @dbus.service.method(INTERFACE_NAME, out_signature="s")
    def GetMode(self):
        return self._get_mode()

    @dbus.service.signal(INTERFACE_NAME, signature="s")
    def ModeChanged(self, mode):
        pass

    @dbus.service.method(INTERFACE_NAME)
    def Quit(self):
        self.emit("quit")


# Signature: ()
GObject.signal_new(
    "toggle", Service, GObject.SignalFlags.RUN_LAST, GObject.TYPE_BOOLEAN, ()
)
GObject.signal_new(
    "refresh", Service, GObject.SignalFlags.RUN_LAST, GObject.TYPE_BOOLEAN, ()
)
GObject.signal_new(
    "quit", Service, GObject.SignalFlags.RUN_LAST, GObject.TYPE_BOOLEAN, ()
)


def call_running_instance(method: str) -> ty.Any:
    """Call @method on running instance.

    Raises NoConnectionError when there is no bus or no instance.
    """
    if not _SESSION_BUS or not _SESSION_BUS.name_has_owner(SERVER_NAME):
        raise NoConnectionError

    try:
        obj = _SESSION_BUS.get_object(SERVER_NAME, OBJECT_NAME)
        iface = dbus.Interface(obj, INTERFACE_NAME)
        return getattr(iface, method)()
    except dbus.DBusException as exc:
        raise NoConnectionError(str(exc)) from exc
