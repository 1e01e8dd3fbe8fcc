"""User settings read from the per-user configuration file."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .settings_parser import (
    SettingsParser,
    SettingsValueError,
    parse_bool,
    parse_uint32,
    unquote_string,
)

try:
    import pwd
except ImportError:  # Not available on every platform.
    pwd = None

APP_NAME = "sfzq"


def home_path() -> str:
    """Return the user's home directory, or an empty string if unknown."""
    home = os.environ.get("HOME")
    if home is None and pwd is not None:
        try:
            entry = pwd.getpwuid(os.getuid())
        except KeyError:
            entry = None
        if entry is not None and entry.pw_dir:
            home = entry.pw_dir
    return home or ""


def _expand_home(path: str) -> str:
    if path.startswith("~"):
        return home_path() + path[1:]
    return path


@dataclass
class Settings:
    """Player settings; errors met while reading them accumulate in ``errors``."""

    samples_directory: str = ""
    num_voices: int = 32
    show_voices_used: bool = False
    tunings_directory: str = ""
    keyboard_mappings_directory: str = ""
    errors: str = ""

    def read_settings_files(self) -> None:
        """Read ``$XDG_CONFIG_HOME/sfzq/settings`` (default ``~/.config``)."""
        config_dir = os.environ.get("XDG_CONFIG_HOME")
        if config_dir is None:
            home = home_path()
            config_dir = f"{home}/.config" if home else ""
        if config_dir:
            self.read_settings_file(f"{config_dir}/{APP_NAME}/settings")

    def read_settings_file(self, path) -> None:
        """Read one settings file; a missing file is silently ignored."""
        try:
            with open(path, encoding="utf-8", errors="surrogateescape", newline="") as file:
                contents = file.read()
        except OSError:
            return
        parser = SettingsParser(contents)
        parser.parse(lambda name, value: self._set_setting(name, value, parser))
        self.errors += "".join(f"{message}\n" for message in parser.errors)

    def _set_setting(self, name: str, value_token: str, parser: SettingsParser) -> None:
        ok = True
        if name == "samples-directory":
            self.samples_directory = _expand_home(unquote_string(value_token))
        elif name == "tunings-directory":
            self.tunings_directory = _expand_home(unquote_string(value_token))
        elif name == "keyboard-mappings-directory":
            self.keyboard_mappings_directory = _expand_home(unquote_string(value_token))
        elif name == "num-voices":
            try:
                value = parse_uint32(value_token)
            except SettingsValueError:
                ok = False
            else:
                if value > 0:
                    self.num_voices = value
        elif name == "show-voices-used":
            try:
                self.show_voices_used = parse_bool(value_token)
            except SettingsValueError:
                self.show_voices_used = False
                ok = False
        else:
            parser.errors.append(f"Unknown setting: {name}.")

        if not ok:
            parser.errors.append(f'Settings: bad value for "{name}"')