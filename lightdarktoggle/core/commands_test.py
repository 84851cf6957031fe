# Distributed under terms of the GPLv3 license.

"""
Tests for AsyncCommand; need GLib.
"""
import unittest

from lightdarktoggle.core.exceptions import SpawnError

try:
    from gi.repository import GLib

    from lightdarktoggle.core import commands
    from lightdarktoggle.support import scheduler
except ImportError:
    GLib = None


@unittest.skipIf(GLib is None, "PyGObject is not available")
class TestAsyncCommand(unittest.TestCase):
    def _run(self, argv, timeout_s=None, guard_s=10):
        """Run @argv in main loop; return (command, stdout, stderr)."""
        loop = GLib.MainLoop()
        result = []

        def finished(acom, stdout, stderr):
            result.append((acom, stdout, stderr))
            loop.quit()

        guard = scheduler.Timer()
        guard.set(guard_s, loop.quit)
        acom = commands.run_async(argv, finished, timeout_s)
        loop.run()
        guard.invalidate()
        self.assertEqual(len(result), 1, "command did not finish")
        self.assertIs(result[0][0], acom)
        return result[0]

    def test_output(self):
        acom, stdout, stderr = self._run(["echo", "hello"])
        self.assertTrue(acom.finished)
        self.assertEqual(acom.exit_status, 0)
        self.assertFalse(acom.timeout)
        self.assertEqual(stdout, b"hello\n")
        self.assertEqual(stderr, b"")

    def test_exit_status(self):
        acom, _stdout, stderr = self._run(
            ["sh", "-c", "echo err >&2; exit 3"]
        )
        self.assertEqual(acom.exit_status, 3)
        self.assertEqual(stderr, b"err\n")

    def test_background_child_keeps_stdout(self):
        # sleep inherits stdout and outlives the shell
        acom, stdout, _stderr = self._run(
            ["sh", "-c", "sleep 3 & echo hi"], guard_s=2
        )
        self.assertEqual(acom.exit_status, 0)
        self.assertEqual(stdout, b"hi\n")
        self.assertEqual(acom._pipes, {})
        self.assertEqual(acom._watches, {})

    def test_timeout(self):
        acom, _stdout, _stderr = self._run(["sleep", "30"], timeout_s=1)
        self.assertTrue(acom.finished)
        self.assertTrue(acom.timeout)
        self.assertNotEqual(acom.exit_status, 0)

    def test_cancel(self):
        loop = GLib.MainLoop()
        result = []

        def finished(acom, _stdout, _stderr):
            result.append(acom)
            loop.quit()

        acom = commands.run_async(["sleep", "30"], finished, None)
        acom.cancel()
        guard = scheduler.Timer()
        guard.set(10, loop.quit)
        loop.run()
        guard.invalidate()
        self.assertEqual(result, [acom])
        self.assertTrue(acom.cancelled)
        self.assertFalse(acom.timeout)

    def test_spawn_error(self):
        with self.assertRaises(SpawnError):
            commands.run_async(
                ["lightdarktoggle-no-such-command"], lambda *a: None, None
            )
