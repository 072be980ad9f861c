"""Durable configuration storage."""

import configparser
import os
import tempfile
from pathlib import Path
from typing import Protocol

from .exceptions import StorageError
from .models import Configuration, ThemeCode
from ..logging_utility import logger


class ConfigurationStorage(Protocol):
    def load(self) -> Configuration:
        ...

    def save(self, configuration: Configuration) -> None:
        ...


class IniFileStorage:
    """Stores the active configuration and the theme in an INI file.

    Layout::

        [connection]   vpn_type, socket_protocol, preferred_port, preferred_server
        [encryption]   cipher, digest, handshake
        [application]  is_persistent_connection, mace_enabled, theme
    """

    SECTIONS = {
        "connection": ("vpn_type", "socket_protocol", "preferred_port", "preferred_server"),
        "encryption": ("cipher", "digest", "handshake"),
        "application": ("is_persistent_connection", "mace_enabled"),
    }
    BOOLEAN_KEYS = ("is_persistent_connection", "mace_enabled")

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser()
        if not self.path.exists():
            return parser
        try:
            with open(self.path, "r") as f:
                parser.read_file(f)
        except (OSError, configparser.Error) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        return parser

    def _write(self, parser: configparser.ConfigParser) -> None:
        """Write atomically: a failed save never leaves a partial file."""
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            with os.fdopen(fd, "w") as f:
                parser.write(f)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise StorageError(f"Could not write {self.path}: {e}") from e

    def load(self) -> Configuration:
        parser = self._read()
        values = {}
        try:
            for section, keys in self.SECTIONS.items():
                if not parser.has_section(section):
                    continue
                for key in keys:
                    if key not in parser[section]:
                        continue
                    if key in self.BOOLEAN_KEYS:
                        values[key] = parser[section].getboolean(key)
                    elif key == "preferred_port":
                        raw = parser[section][key]
                        values[key] = int(raw) if raw else None
                    elif key == "preferred_server":
                        values[key] = parser[section][key] or None
                    else:
                        values[key] = parser[section][key]
            configuration = Configuration.from_dict(values)
        except ValueError as e:
            raise StorageError(f"Invalid configuration in {self.path}: {e}") from e
        logger.info(f"Loaded configuration from {self.path}")
        return configuration

    def save(self, configuration: Configuration) -> None:
        parser = self._read()
        data = configuration.to_dict()
        for section, keys in self.SECTIONS.items():
            if not parser.has_section(section):
                parser.add_section(section)
            for key in keys:
                value = data[key]
                if value is None:
                    value = ""
                elif isinstance(value, bool):
                    value = "true" if value else "false"
                parser[section][key] = str(value)
        self._write(parser)
        logger.info(f"Saved configuration to {self.path}")

    def load_theme(self) -> ThemeCode:
        parser = self._read()
        raw = parser.get("application", "theme", fallback=ThemeCode.LIGHT.value)
        try:
            return ThemeCode(raw)
        except ValueError:
            logger.warning(f"Unknown theme '{raw}' in {self.path}, using light")
            return ThemeCode.LIGHT

    def save_theme(self, code: ThemeCode) -> None:
        parser = self._read()
        if not parser.has_section("application"):
            parser.add_section("application")
        parser["application"]["theme"] = code.value
        self._write(parser)
