from __future__ import annotations

import json
from pathlib import Path
from typing import Required, Sequence, TypedDict

import platformdirs

from sgrflow._loop import loop_last
from sgrflow.errors import SGRFlowError


class SchemaDict(TypedDict, total=False):
    """Typing for schema data structure."""

    key: Required[str]
    title: Required[str]
    type: Required[str]
    help: str
    default: object
    fields: list[SchemaDict]


type SettingsType = dict[str, object]


INPUT_TYPES = {"boolean", "string_list"}


class SettingsError(SGRFlowError):
    """Base class for settings related errors."""


class InvalidKey(SettingsError):
    """The key is not in the schema."""


class InvalidValue(SettingsError):
    """The value was not of the expected type."""


def parse_key(key: str) -> Sequence[str]:
    return key.split(".")


def get_setting[ExpectType](
    settings: dict[str, object], key: str, expect_type: type[ExpectType] = object
) -> ExpectType:
    """Get a key from a settings structure.

    Args:
        settings: A settings dictionary.
        key: A dot delimited key, e.g. "filter.diagnostics"
        expect_type: The expected type of the value.

    Raises:
        InvalidValue: If the value is not the expected type.
        KeyError: If the key doesn't exist in settings.

    Returns:
        The value matching they key.
    """
    for last, key_component in loop_last(parse_key(key)):
        if last:
            result = settings[key_component]
            if not isinstance(result, expect_type):
                raise InvalidValue(
                    f"Expected {expect_type.__name__} type; found {result!r}"
                )
            return result
        else:
            sub_settings = settings[key_component]
            assert isinstance(sub_settings, dict)
            settings = sub_settings
    raise KeyError(key)


class Schema:
    def __init__(self, schema: list[SchemaDict]) -> None:
        self.schema = schema

    def set_value(self, settings: SettingsType, key: str, value: object) -> None:
        """Set a value, creating intermediate objects as required.

        Raises:
            InvalidKey: If the key is not in the schema.
        """
        fields = self.schema
        for last, key_component in loop_last(parse_key(key)):
            for sub_schema in fields:
                if sub_schema["key"] == key_component:
                    break
            else:
                raise InvalidKey(key)
            if last:
                if sub_schema["type"] not in INPUT_TYPES:
                    raise InvalidKey(key)
                settings[key_component] = value
            else:
                fields = sub_schema.get("fields", [])
                sub_settings = settings.setdefault(key_component, {})
                assert isinstance(sub_settings, dict)
                settings = sub_settings

    def build_default(self) -> dict[str, object]:
        settings: dict[str, object] = {}

        def set_defaults(schema: list[SchemaDict], settings: dict[str, object]) -> None:
            for sub_schema in schema:
                key = sub_schema["key"]
                type = sub_schema["type"]
                if type in INPUT_TYPES:
                    if (default := sub_schema.get("default")) is not None:
                        settings[key] = (
                            list(default) if isinstance(default, list) else default
                        )

                elif type == "object":
                    if fields := sub_schema.get("fields"):
                        sub_settings = settings[key] = {}
                        set_defaults(fields, sub_settings)

        set_defaults(self.schema, settings)
        return settings

    def merge(self, settings: SettingsType, overrides: SettingsType) -> None:
        """Merge settings read from a file in to settings (typically defaults).

        Raises:
            InvalidKey: If a key in overrides is not in the schema.
        """

        def iter_values(
            prefix: str, values: SettingsType
        ) -> Sequence[tuple[str, object]]:
            items: list[tuple[str, object]] = []
            for key, value in values.items():
                if isinstance(value, dict):
                    items.extend(iter_values(f"{prefix}{key}.", value))
                else:
                    items.append((f"{prefix}{key}", value))
            return items

        for key, value in iter_values("", overrides):
            self.set_value(settings, key, value)


class Settings:
    """Stores schema backed settings."""

    def __init__(self, schema: Schema, settings: dict[str, object]) -> None:
        self.schema = schema
        self._settings = settings

    def get[ExpectType](
        self, key: str, expect_type: type[ExpectType] = object
    ) -> ExpectType:
        return get_setting(self._settings, key, expect_type=expect_type)


def get_config_path() -> Path:
    """Get the directory for sgrflow's config."""
    return Path(platformdirs.user_config_dir("sgrflow", ensure_exists=True))


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a JSON file.

    Values in the file override the defaults. A missing file gives the defaults.

    Args:
        path: Path to settings, or `None` for `settings.json` in the config directory.

    Raises:
        InvalidKey: If the file contains a key not in the schema.
        SettingsError: If the file is not valid JSON.

    Returns:
        Settings.
    """
    from sgrflow.settings_schema import SCHEMA

    schema = Schema(SCHEMA)
    settings = schema.build_default()
    if path is None:
        path = get_config_path() / "settings.json"
    if path.exists():
        try:
            overrides = json.loads(path.read_text("utf-8"))
        except json.JSONDecodeError as error:
            raise SettingsError(f"Unable to read {str(path)!r}; {error}") from None
        if not isinstance(overrides, dict):
            raise SettingsError(f"Expected an object in {str(path)!r}")
        schema.merge(settings, overrides)
    return Settings(schema, settings)
