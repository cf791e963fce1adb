"""Settings field table.

Every caching option is declared once here: its store key, label, widget kind
and default. The admin form, the JSON settings API and load_cache_config()
all iterate this table; nothing dispatches on option names.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from caching_headers.options.store import OptionsStore
from caching_headers.policy.models import CacheConfig

log = structlog.get_logger(__name__)


class FieldKind(StrEnum):
    DURATION = "duration"
    CHECKBOX = "checkbox"


DURATION_CHOICES: tuple[tuple[int, str], ...] = (
    (0, "Never"),
    (300, "5 minutes"),
    (600, "10 minutes"),
    (1800, "30 minutes"),
    (3600, "1 hour"),
    (3600 * 4, "4 hours"),
    (3600 * 12, "12 hours"),
    (3600 * 24, "24 hours"),
)
LEGAL_DURATIONS = frozenset(seconds for seconds, _ in DURATION_CHOICES)

_TRUTHY = frozenset({"1", "true", "on", "yes"})


class InvalidOptionValueError(ValueError):
    """Raised when a submitted option value is not accepted by its field."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key


@dataclass(frozen=True)
class SettingsField:
    key: str
    label: str
    kind: FieldKind
    default: int | bool
    config_attr: str


@dataclass(frozen=True)
class SettingsSection:
    key: str
    label: str
    description: str
    fields: tuple[SettingsField, ...]


SETTINGS_SECTIONS: tuple[SettingsSection, ...] = (
    SettingsSection(
        key="cache_control_section",
        label="Cache-Control settings",
        description=(
            "This controls how long a caching service may cache the pages before "
            "it is considered stale. Sets a Cache-Control: s-maxage= header."
        ),
        fields=(
            SettingsField("cache_control_homepage", "Home page", FieldKind.DURATION, 300, "homepage_ttl"),
            SettingsField("cache_control_single", "Pages and single posts", FieldKind.DURATION, 300, "single_ttl"),
            SettingsField("cache_control_archive", "Archives", FieldKind.DURATION, 300, "archive_ttl"),
            SettingsField("cache_control_default", "Default", FieldKind.DURATION, 300, "default_ttl"),
        ),
    ),
    SettingsSection(
        key="others_section",
        label="Other settings",
        description="",
        fields=(
            SettingsField("enable_etag", "Enable Etag header", FieldKind.CHECKBOX, False, "etag_enabled"),
            SettingsField(
                "enable_last_modified",
                "Enable Last-Modified header",
                FieldKind.CHECKBOX,
                False,
                "last_modified_enabled",
            ),
            SettingsField("enable_emojis", "Enable emoji's", FieldKind.CHECKBOX, True, "emojis_enabled"),
        ),
    ),
)

SETTINGS_FIELDS: dict[str, SettingsField] = {
    field.key: field for section in SETTINGS_SECTIONS for field in section.fields
}
OPTION_DEFAULTS: dict[str, int | bool] = {key: field.default for key, field in SETTINGS_FIELDS.items()}


# ---------------------------------------------------------------------------
# Coercion of stored values
# ---------------------------------------------------------------------------


def _coerce_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw != 0
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUTHY
    return False


def _coerce_duration(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError("booleans are not durations")
    seconds = int(raw)
    if seconds < 0:
        raise ValueError("durations must be >= 0")
    return seconds


def coerce_stored_value(field: SettingsField, raw: Any) -> int | bool:
    """Turn a stored option into its typed value, falling back to the default."""
    if raw is None:
        return field.default
    if field.kind == FieldKind.CHECKBOX:
        return _coerce_bool(raw)
    try:
        return _coerce_duration(raw)
    except (TypeError, ValueError):
        log.warning("options.malformed_value", key=field.key, value=repr(raw)[:64])
        return field.default


async def load_options(store: OptionsStore) -> dict[str, int | bool]:
    """Read every option from the store, typed, with defaults filled in."""
    stored = await store.get_many(SETTINGS_FIELDS)
    return {key: coerce_stored_value(field, stored.get(key)) for key, field in SETTINGS_FIELDS.items()}


def config_from_options(options: Mapping[str, int | bool]) -> CacheConfig:
    values = {**OPTION_DEFAULTS, **options}
    return CacheConfig(**{field.config_attr: values[key] for key, field in SETTINGS_FIELDS.items()})


async def load_cache_config(store: OptionsStore) -> CacheConfig:
    """Build the CacheConfig snapshot for one request."""
    return config_from_options(await load_options(store))


# ---------------------------------------------------------------------------
# Validation of submitted values
# ---------------------------------------------------------------------------


def parse_submitted_value(field: SettingsField, raw: Any) -> int | bool:
    """Validate one value coming from the settings surface."""
    if field.kind == FieldKind.CHECKBOX:
        return _coerce_bool(raw)
    try:
        seconds = _coerce_duration(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidOptionValueError(field.key, f"not a duration: {raw!r}") from exc
    if seconds not in LEGAL_DURATIONS:
        raise InvalidOptionValueError(
            field.key,
            f"{seconds} is not one of {sorted(LEGAL_DURATIONS)}",
        )
    return seconds


def parse_settings_update(values: Mapping[str, Any]) -> dict[str, int | bool]:
    """Validate a partial update. Unknown keys are rejected."""
    parsed: dict[str, int | bool] = {}
    for key, raw in values.items():
        field = SETTINGS_FIELDS.get(key)
        if field is None:
            raise InvalidOptionValueError(key, "unknown option")
        parsed[key] = parse_submitted_value(field, raw)
    return parsed


def parse_settings_form(form: Mapping[str, Any]) -> dict[str, int | bool]:
    """Validate a full HTML form submission.

    Browsers omit unchecked checkboxes, so every checkbox missing from the
    form is saved as False. Missing durations keep their stored value.
    """
    parsed: dict[str, int | bool] = {}
    for key, field in SETTINGS_FIELDS.items():
        if field.kind == FieldKind.CHECKBOX:
            parsed[key] = _coerce_bool(form.get(key, False))
        elif key in form:
            parsed[key] = parse_submitted_value(field, form[key])
    return parsed


async def save_options(store: OptionsStore, values: Mapping[str, int | bool]) -> None:
    await store.set_many(values)
    log.info("options.saved", keys=sorted(values))
