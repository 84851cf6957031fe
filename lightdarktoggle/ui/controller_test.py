# Distributed under terms of the GPLv3 license.

"""
Tests for one-shot detection used by --status; need GLib.
"""
import tempfile
import time
import unittest
from pathlib import Path

from lightdarktoggle.core import settings as S

try:
    from gi.repository import GLib

    from lightdarktoggle.ui import controller
except ImportError:
    GLib = None


class _Adapter(S.ConfigparserAdapter):
    def load(self):
        return self.load_files(None, None)


@unittest.skipIf(GLib is None, "PyGObject is not available")
class TestDetectOnce(unittest.TestCase):
    def setUp(self):
        self.setctl = S.SettingsController(_Adapter())

    def _detect_once(self):
        start = time.monotonic()
        result = controller.detect_once(self.setctl)
        return result, time.monotonic() - start

    def test_missing_kreadconfig(self):
        self.setctl.config.detection.kreadconfig = (
            "lightdarktoggle-no-such-command"
        )
        result, elapsed = self._detect_once()
        self.assertIsNone(result)
        self.assertLess(elapsed, 5)

    def test_failing_kreadconfig(self):
        self.setctl.config.detection.kreadconfig = "false"
        result, elapsed = self._detect_once()
        self.assertIsNone(result)
        # failure is reported before the guard timeout
        self.assertLess(elapsed, 5)

    def test_config_keys(self):
        # both reads print the same line: dark
        self.setctl.config.detection.kreadconfig = "sh -c 'echo same' sh"
        result, _elapsed = self._detect_once()
        self.assertIs(result, True)

        # output includes the key name, so values differ: light
        self.setctl.config.detection.kreadconfig = "echo"
        result, _elapsed = self._detect_once()
        self.assertIs(result, False)

    def test_status_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir, "mode")
            self.setctl.set_detection_method(S.DETECTION_STATUS_FILE)
            self.setctl.config.detection.status_file = str(path)
            result, elapsed = self._detect_once()
            self.assertIsNone(result)
            self.assertLess(elapsed, 5)

            path.write_text("light\n")
            result, _elapsed = self._detect_once()
            self.assertIs(result, False)
