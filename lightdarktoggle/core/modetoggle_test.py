# Distributed under terms of the GPLv3 license.

"""
Tests for ModeToggle.
"""
import unittest

from lightdarktoggle.core import modetoggle as m
from lightdarktoggle.core.detection import Detector
from lightdarktoggle.core.exceptions import SpawnError


class FakeCommand:
    def __init__(self, argv, finish_callback, timeout_s):
        self.argv = argv
        self.finish_callback = finish_callback
        self.timeout_s = timeout_s
        self.finished = False
        self.exit_status = None
        self.timeout = False
        self.cancelled = False

    def complete(self, exit_status=0, timeout=False):
        self.finished = True
        self.exit_status = exit_status
        self.timeout = timeout
        self.finish_callback(self, b"", b"")

    def cancel(self):
        self.cancelled = True


class FakeRunner:
    def __init__(self):
        self.commands = []
        self.fail = False

    def __call__(self, argv, finish_callback, timeout_s):
        if self.fail:
            raise SpawnError("no such file")

        cmd = FakeCommand(argv, finish_callback, timeout_s)
        self.commands.append(cmd)
        return cmd


class FakeDetector(Detector):
    """Report `value` on every detect call; None report nothing."""

    def __init__(self, value=None, periodic=False):
        self.value = value
        self.periodic = periodic
        self.calls = 0
        self.cancelled = 0

    def detect(self, callback, on_failed=None):
        self.calls += 1
        if self.value is not None:
            callback(self.value)

    def cancel(self):
        self.cancelled += 1


class FakeTimer:
    def __init__(self):
        self.interval = None
        self.callback = None
        self.stopped = False

    def start(self, interval_seconds, callback):
        self.interval = interval_seconds
        self.callback = callback

    def stop(self):
        self.stopped = True


class TestPresent(unittest.TestCase):
    def test_dark(self):
        pres = m.present(True)
        self.assertEqual(pres.icon_name, "weather-clear-night")
        self.assertEqual(pres.title, "Dark Mode")
        self.assertEqual(pres.subtitle, "Click to switch to Light Mode")

    def test_light(self):
        pres = m.present(False)
        self.assertEqual(pres.icon_name, "weather-clear")
        self.assertEqual(pres.title, "Light Mode")
        self.assertEqual(pres.subtitle, "Click to switch to Dark Mode")


class TestModeToggle(unittest.TestCase):
    def setUp(self):
        self.runner = FakeRunner()
        self.detector = FakeDetector()
        self.timer = FakeTimer()
        self.changes = []

    def _toggle(self, **kwargs):
        toggle = m.ModeToggle(
            self.detector,
            self.runner,
            ["gloam"],
            timer=self.timer,
            **kwargs,
        )
        toggle.connect(self.changes.append)
        return toggle

    def test_initial_state(self):
        toggle = self._toggle()
        self.assertFalse(toggle.is_dark_mode)
        self.assertFalse(toggle.is_running)
        self.assertEqual(toggle.icon_name, "weather-clear")
        self.assertEqual(toggle.tooltip_main_text, "Light Mode")
        self.assertEqual(
            toggle.tooltip_sub_text, "Click to switch to Dark Mode"
        )

    def test_start_detects(self):
        self.detector.value = True
        toggle = self._toggle()
        toggle.start()
        self.assertTrue(toggle.is_dark_mode)
        self.assertEqual(toggle.icon_name, "weather-clear-night")
        self.assertEqual(len(self.changes), 1)
        # non periodic detector is not polled
        self.assertIsNone(self.timer.callback)

        # second start is no-op
        toggle.start()
        self.assertEqual(self.detector.calls, 1)

    def test_start_polling(self):
        self.detector.periodic = True
        toggle = self._toggle(poll_interval=3)
        toggle.start()
        self.assertEqual(self.timer.interval, 3)
        self.assertEqual(self.detector.calls, 1)

        self.detector.value = True
        self.timer.callback()
        self.assertTrue(toggle.is_dark_mode)
        self.assertEqual(self.detector.calls, 2)

    def test_notify_only_on_change(self):
        self.detector.value = False
        toggle = self._toggle()
        toggle.start()
        toggle.refresh()
        self.assertEqual(self.changes, [])
        self.detector.value = True
        toggle.refresh()
        toggle.refresh()
        self.assertEqual(self.changes, [toggle])

    def test_toggle_argv(self):
        toggle = self._toggle()
        self.assertTrue(toggle.toggle())
        self.assertEqual(self.runner.commands[0].argv, ["gloam", "dark"])
        self.assertEqual(self.runner.commands[0].timeout_s, 30)

        self.detector.value = True
        toggle.refresh()
        self.runner.commands[0].complete()
        self.assertTrue(toggle.toggle())
        self.assertEqual(self.runner.commands[1].argv, ["gloam", "light"])

    def test_toggle_does_not_change_mode(self):
        toggle = self._toggle()
        toggle.toggle()
        self.assertFalse(toggle.is_dark_mode)
        self.runner.commands[0].complete()
        self.assertFalse(toggle.is_dark_mode)

    def test_toggle_blocked_while_running(self):
        toggle = self._toggle()
        self.assertTrue(toggle.toggle())
        self.assertTrue(toggle.is_running)
        self.assertFalse(toggle.toggle())
        self.assertEqual(len(self.runner.commands), 1)

        self.runner.commands[0].complete()
        self.assertFalse(toggle.is_running)
        self.assertTrue(toggle.toggle())
        self.assertEqual(len(self.runner.commands), 2)

    def test_toggle_failure_clears_running(self):
        toggle = self._toggle()
        toggle.toggle()
        self.runner.commands[0].complete(exit_status=1)
        self.assertFalse(toggle.is_running)

    def test_toggle_timeout_clears_running(self):
        toggle = self._toggle()
        toggle.toggle()
        self.runner.commands[0].complete(exit_status=-1, timeout=True)
        self.assertFalse(toggle.is_running)
        self.assertFalse(toggle.is_dark_mode)

    def test_toggle_spawn_error(self):
        self.runner.fail = True
        toggle = self._toggle()
        self.assertFalse(toggle.toggle())
        self.assertFalse(toggle.is_running)
        self.assertEqual(self.changes, [])

    def test_toggle_notifies_running(self):
        toggle = self._toggle()
        states = []
        toggle.connect(lambda t: states.append(t.is_running))
        toggle.toggle()
        self.runner.commands[0].complete()
        self.assertEqual(states, [True, False])

    def test_refresh_after_toggle(self):
        toggle = self._toggle()
        toggle.start()
        self.assertEqual(self.detector.calls, 1)
        toggle.toggle()
        self.detector.value = True
        self.runner.commands[0].complete()
        self.assertEqual(self.detector.calls, 2)
        self.assertTrue(toggle.is_dark_mode)

    def test_no_refresh_after_toggle_when_polling(self):
        self.detector.periodic = True
        toggle = self._toggle()
        toggle.start()
        toggle.toggle()
        self.runner.commands[0].complete()
        self.assertEqual(self.detector.calls, 1)

    def test_stop(self):
        self.detector.periodic = True
        toggle = self._toggle()
        toggle.start()
        toggle.toggle()
        toggle.stop()
        self.assertTrue(self.timer.stopped)
        self.assertEqual(self.detector.cancelled, 1)
        self.assertTrue(self.runner.commands[0].cancelled)

