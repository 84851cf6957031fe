"""This module implement `SettingsController` and classes related to
configuration.

Configuration is stored in `Configuration` class (SettingsController.config).
Each section is a class extending `ConfBase`, that:
1. keep "default" values for each field; default values are declared in class
   or taken from current values by `save_as_defaults`.
2. on assign - convert value to declared type for each field; each field
   must be declared.
3. return non-default values as dict (for saving).

Configuration is loaded from `defaults.cfg` then `lightdarktoggle.cfg`
(configparser format) found in XDG config directories.
"""

from __future__ import annotations

import configparser
import inspect
import os
import shlex
import typing as ty
from pathlib import Path

from lightdarktoggle import config
from lightdarktoggle.support import pretty

__all__ = (
    "DETECTION_CONFIG_KEYS",
    "DETECTION_METHODS",
    "DETECTION_STATUS_FILE",
    "Configuration",
    "ConfigparserAdapter",
    "SettingsController",
    "get_settings_controller",
)

DETECTION_CONFIG_KEYS: ty.Final = "config-keys"
DETECTION_STATUS_FILE: ty.Final = "status-file"
DETECTION_METHODS: ty.Final = (DETECTION_CONFIG_KEYS, DETECTION_STATUS_FILE)


class ConfBase:
    """Base class for all configuration sections.
    Fields are declared as annotated class attributes with default value."""

    def __init__(self) -> None:
        self._annotations = inspect.get_annotations(
            self.__class__, eval_str=True
        )
        assert self._annotations, "class should have annotated fields"

        self._defaults: dict[str, ty.Any] = {}

        clazz = self.__class__
        for key, field_type in self._annotations.items():
            if field_type in (str, int, bool, float):
                value = getattr(clazz, key)
            else:
                # nested section
                value = field_type()

            super().__setattr__(key, value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.asdict()}>"

    def __setattr__(self, name: str, value: ty.Any) -> None:
        if name[0] == "_":
            # attributes that name starts with _ are set as is
            super().__setattr__(name, value)
            return

        field_type = self._annotations.get(name)
        if field_type is None:
            pretty.print_error(__name__, "unknown parameter", name, value)
            return

        if isinstance(value, str) and field_type != str:
            try:
                value = _convert(value, field_type)
            except ValueError as exc:
                pretty.print_error(
                    __name__, "invalid value for", name, value, exc
                )
                return

        pretty.print_debug(__name__, "set", type(self).__name__, name, value)
        super().__setattr__(name, value)

    def save_as_defaults(self) -> None:
        """Save current values as default."""
        for key in self._annotations:
            val = getattr(self, key)
            if isinstance(val, ConfBase):
                val.save_as_defaults()
            else:
                self._defaults[key] = val

    def get_default_value(self, field_name: str) -> ty.Any:
        """Get default value for `field_name`."""
        if field_name in self._defaults:
            return self._defaults[field_name]

        return getattr(self.__class__, field_name, None)

    def asdict_non_default(self) -> dict[str, ty.Any]:
        """Get dict of attributes that differ from default."""
        res = {}
        for key in self._annotations:
            val = getattr(self, key)
            if isinstance(val, ConfBase):
                if sub := val.asdict_non_default():
                    res[key] = sub

                continue

            if self.get_default_value(key) != val:
                res[key] = val

        return res

    def asdict(self) -> dict[str, ty.Any]:
        """Return content as dict."""
        return {
            key: (val.asdict() if isinstance(val, ConfBase) else val)
            for key in self._annotations
            if (val := getattr(self, key)) is not None
        }


class ConfToggle(ConfBase):
    """Mode switching command."""

    # command line; mode ("dark" or "light") is appended
    command: str = "gloam"
    # seconds; command is terminated after this time
    timeout: int = 30


class ConfDetection(ConfBase):
    """How current mode is detected."""

    method: str = DETECTION_CONFIG_KEYS
    # seconds between status file reads
    poll_interval: int = 1
    # file name in XDG_RUNTIME_DIR or absolute path
    status_file: str = "plasma-daynight-mode"
    kreadconfig: str = "kreadconfig6"
    config_file: str = "kdeglobals"
    group: str = "KDE"
    timeout: int = 10


class ConfIndicator(ConfBase):
    use_appindicator: bool = False


class Configuration(ConfBase):
    toggle: ConfToggle
    detection: ConfDetection
    indicator: ConfIndicator


def _strbool(value: ty.Any, default: bool = False) -> bool:
    """Coerce bool from string value or bool"""
    if isinstance(value, bool):
        return value

    value = str(value).lower()
    if value in ("no", "false", "0", "off"):
        return False

    if value in ("yes", "true", "1", "on"):
        return True

    return default


def _convert(value: str, dst_type: ty.Any) -> ty.Any:
    """Convert `value` to `dst_type`; raise ValueError."""
    if dst_type is bool:
        return _strbool(value)

    if dst_type in (int, float):
        return dst_type(value)

    raise ValueError(f"not supported dst_type: `{dst_type}` for {value!r}")


def _name_from_configparser(name: str) -> str:
    """Convert `CamelCase` to `name_with_underscopes`."""
    return "".join(
        f"_{c.lower()}" if c.isupper() else c for c in name
    ).lstrip("_")


def _name_to_configparser(name: str) -> str:
    """Convert `name_with_underscopes` to `CamelCase`."""
    return "".join(p.capitalize() for p in name.split("_"))


def _fill_configuration_from_parser(
    parser: configparser.RawConfigParser,
    conf: Configuration,
) -> None:
    """Put values from `parser` to `conf`."""
    for secname in parser.sections():
        name = _name_from_configparser(secname)
        sobj = getattr(conf, name, None)
        if not isinstance(sobj, ConfBase):
            pretty.print_error(__name__, "unknown section", secname)
            continue

        for key, val in parser[secname].items():
            setattr(sobj, key.lower(), val)


def _fill_parser_from_config(
    parser: configparser.RawConfigParser, conf: dict[str, dict[str, ty.Any]]
) -> None:
    """Put content of `conf` dict into `parser`."""
    for secname, section in sorted(conf.items()):
        secname = _name_to_configparser(secname)
        if not parser.has_section(secname):
            parser.add_section(secname)

        for key, value in sorted(section.items()):
            parser.set(secname, key, str(value))


class ConfigparserAdapter(pretty.OutputMixin):
    config_filename = "lightdarktoggle.cfg"
    defaults_filename = "defaults.cfg"

    def save(self, conf: Configuration) -> str | None:
        """Save non-default values; return path to saved file."""
        config_path = config.save_config_file(self.config_filename)
        if not config_path:
            self.output_info("Unable to save settings, can't find config dir")
            return None

        self.output_info("Saving config to", config_path)
        parser = configparser.RawConfigParser()
        _fill_parser_from_config(parser, conf.asdict_non_default())
        ## Write to tmp then rename over for it to be atomic
        temp_config_path = f"{config_path}.{os.getpid()}"
        with open(temp_config_path, "w", encoding="UTF-8") as out:
            parser.write(out)

        os.rename(temp_config_path, config_path)
        return config_path

    def _load_from_file(
        self, config_file: str
    ) -> configparser.RawConfigParser | None:
        parser = configparser.RawConfigParser()
        try:
            parser.read(config_file, encoding="UTF-8")
            return parser
        except (OSError, UnicodeDecodeError, configparser.Error) as exc:
            self.output_error(
                f"Error reading configuration file {config_file}: {exc}"
            )

        return None

    def load_files(
        self, defaults_file: str | None, config_file: str | None
    ) -> Configuration:
        confmap = Configuration()
        if defaults_file and (parser := self._load_from_file(defaults_file)):
            _fill_configuration_from_parser(parser, confmap)

        confmap.save_as_defaults()

        if config_file and (parser := self._load_from_file(config_file)):
            _fill_configuration_from_parser(parser, confmap)

        return confmap

    def load(self) -> Configuration:
        """Read cascading config files: defaults then user config."""
        return self.load_files(
            config.get_config_file(self.defaults_filename),
            config.get_config_file(self.config_filename),
        )


class SettingsController(pretty.OutputMixin):
    _inst: SettingsController | None = None

    @classmethod
    def instance(cls) -> SettingsController:
        """SettingsController is singleton; instance return one, global
        instance."""
        if cls._inst is None:
            cls._inst = SettingsController()

        return cls._inst

    def __init__(self, adapter: ConfigparserAdapter | None = None) -> None:
        self._adapter = adapter or ConfigparserAdapter()
        self.config = self._adapter.load()
        self.output_debug("config", self.config)

    def save(self) -> str | None:
        return self._adapter.save(self.config)

    def get_detection_method(self) -> str:
        method = self.config.detection.method
        if method not in DETECTION_METHODS:
            self.output_error("Unknown detection method", method)
            return DETECTION_CONFIG_KEYS

        return method

    def set_detection_method(self, method: str) -> None:
        if method not in DETECTION_METHODS:
            raise ValueError(f"unknown detection method {method!r}")

        self.config.detection.method = method

    def _split_command(self, section: ConfBase, field_name: str) -> list[str]:
        """Split command line in @section.@field_name; broken or empty
        value fall back to the declared default."""
        value = getattr(section, field_name)
        try:
            argv = shlex.split(value)
        except ValueError as exc:
            self.output_error("Invalid", field_name, repr(value), exc)
            argv = []

        if argv:
            return argv

        self.output_error(
            "Using default", field_name, "instead of", repr(value)
        )
        return shlex.split(getattr(type(section), field_name))

    def get_tool_argv(self) -> list[str]:
        return self._split_command(self.config.toggle, "command")

    def set_tool_command(self, command: str) -> None:
        self.config.toggle.command = command

    def get_kreadconfig_argv(self) -> list[str]:
        return self._split_command(self.config.detection, "kreadconfig")

    def get_status_file(self) -> Path:
        return config.get_runtime_file(self.config.detection.status_file)

    def get_poll_interval(self) -> int:
        return max(1, self.config.detection.poll_interval)

    def get_toggle_timeout(self) -> int:
        # commands always have timeout; at least one second
        return max(1, self.config.toggle.timeout)

    def get_detection_timeout(self) -> int:
        return max(1, self.config.detection.timeout)

    def get_use_appindicator(self) -> bool:
        return self.config.indicator.use_appindicator


def get_settings_controller() -> SettingsController:
    return SettingsController.instance()
