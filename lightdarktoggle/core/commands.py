"""
Run external commands without blocking the GLib main loop.
"""
from __future__ import annotations

import os
import signal
import typing as ty
from contextlib import suppress

from gi.repository import GLib

from lightdarktoggle.core.exceptions import SpawnError
from lightdarktoggle.support import pretty, scheduler

__all__ = (
    "AsyncCommand",
    "run_async",
)

# seconds between SIGTERM and SIGKILL
_KILL_DELAY_S: ty.Final = 2


class AsyncCommand(pretty.OutputMixin):
    """Run a command asynchronously (using the GLib mainloop).

    call @finish_callback when command terminates, or
    when command is killed after @timeout_s seconds, whichever
    comes first.

    If @timeout_s is None, no timeout is used.

    finish_callback -> (AsyncCommand, stdout_output, stderr_output)

    Raises SpawnError when the command can't be started.

    Attributes:
    self.exit_status  Set after process exited
    self.finished     bool
    self.timeout      bool, command was terminated after timeout
    self.cancelled    bool, command was terminated by `cancel`
    """

    # the maximum input (bytes) we'll read in one shot (one io_callback)
    max_input_buf = 512 * 1024

    def __init__(
        self,
        argv: list[str],
        finish_callback: ty.Callable[[AsyncCommand, bytes, bytes], None],
        timeout_s: int | None,
        env: ty.Any = None,
    ) -> None:
        self.argv = argv
        self.stdout: list[bytes] = []
        self.stderr: list[bytes] = []
        self.timeout = False
        self.killed = False
        self.cancelled = False
        self.finished = False
        self.finish_callback = finish_callback
        self.exit_status: int | None = None
        self._timer = scheduler.Timer()

        self.output_debug("AsyncCommand:", argv)

        flags = GLib.SPAWN_SEARCH_PATH | GLib.SPAWN_DO_NOT_REAP_CHILD
        kwargs = {}
        if env is not None:
            kwargs["envp"] = env

        try:
            pid, stdin_fd, stdout_fd, stderr_fd = GLib.spawn_async(
                argv,
                standard_output=True,
                standard_input=True,
                standard_error=True,
                flags=flags,
                **kwargs,
            )
        except GLib.GError as exc:
            # pylint: disable=no-member
            raise SpawnError(exc.message) from exc

        os.close(stdin_fd)

        # pipes stay open until EOF; drained on child exit
        self._pipes: dict[int, list[bytes]] = {
            stdout_fd: self.stdout,
            stderr_fd: self.stderr,
        }
        # io watch source id for each pipe
        self._watches: dict[int, int] = {}
        io_flags = GLib.IO_IN | GLib.IO_ERR | GLib.IO_HUP | GLib.IO_NVAL
        for pipe_fd, databuf in self._pipes.items():
            os.set_blocking(pipe_fd, False)
            self._watches[pipe_fd] = GLib.io_add_watch(
                pipe_fd, io_flags, self._io_callback, databuf
            )

        self.pid = pid
        GLib.child_watch_add(pid, self._child_callback)
        if timeout_s is not None:
            self._timer.set(timeout_s, self._timeout_callback)

    def _read_pipe(self, sourcefd: int, databuf: list[bytes]) -> bool:
        """Read available data from @sourcefd; return False on EOF."""
        try:
            data = os.read(sourcefd, self.max_input_buf)
        except BlockingIOError:
            return True
        except OSError:
            data = b""

        if data:
            databuf.append(data)
            return True

        return False

    def _close_pipe(self, sourcefd: int, remove_watch: bool = False) -> None:
        watch_id = self._watches.pop(sourcefd, None)
        if remove_watch and watch_id is not None:
            GLib.source_remove(watch_id)

        if self._pipes.pop(sourcefd, None) is not None:
            os.close(sourcefd)

    def _io_callback(
        self, sourcefd: int, condition: int, databuf: list[bytes]
    ) -> bool:
        if sourcefd not in self._pipes:
            return False

        if condition & GLib.IO_IN and self._read_pipe(sourcefd, databuf):
            return True

        self._close_pipe(sourcefd)
        return False

    def _drain_pipes(self) -> None:
        """Collect output left in pipes when child exits before all io
        callbacks were dispatched."""
        for pipe_fd, databuf in self._pipes.items():
            while True:
                try:
                    data = os.read(pipe_fd, self.max_input_buf)
                except OSError:
                    # BlockingIOError: nothing more for now
                    break

                if not data:
                    break

                databuf.append(data)

    def _child_callback(self, pid: int, condition: int) -> None:
        # @condition is the &status field of waitpid(2) (C library)
        if os.WIFEXITED(condition):
            self.exit_status = os.WEXITSTATUS(condition)
        else:
            self.exit_status = -1

        self.finished = True
        self._timer.invalidate()
        self._drain_pipes()
        # output of background children (if any) is not collected
        for pipe_fd in list(self._pipes):
            self._close_pipe(pipe_fd, remove_watch=True)

        GLib.spawn_close_pid(pid)
        self.output_debug(
            "finished", self.argv, "exit status", self.exit_status
        )
        self.finish_callback(
            self, b"".join(self.stdout), b"".join(self.stderr)
        )

    def _terminate(self) -> None:
        with suppress(ProcessLookupError):
            os.kill(self.pid, signal.SIGTERM)

        self._timer.set(_KILL_DELAY_S, self._kill_callback)

    def _timeout_callback(self) -> None:
        "send term signal on timeout"
        if not self.finished:
            self.output_info("Timeout, terminating", self.argv)
            self.timeout = True
            self._terminate()

    def _kill_callback(self) -> None:
        "Last resort, send kill signal"
        if not self.finished:
            self.killed = True
            with suppress(ProcessLookupError):
                os.kill(self.pid, signal.SIGKILL)

    def cancel(self) -> None:
        """Terminate running command. Finish callback is still called when
        the process exits."""
        if not self.finished and not self.cancelled:
            self.output_debug("cancel", self.argv)
            self.cancelled = True
            self._terminate()


def run_async(
    argv: list[str],
    finish_callback: ty.Callable[[AsyncCommand, bytes, bytes], None],
    timeout_s: int | None,
) -> AsyncCommand:
    """Start @argv; raises SpawnError"""
    return AsyncCommand(argv, finish_callback, timeout_s)
