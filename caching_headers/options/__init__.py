"""Caching options: persistent store and the settings field table.

Public API:
    OptionsStore          - Abstract base for all stores
    RedisOptionsStore     - Redis-backed production store
    InMemoryOptionsStore  - Dict-backed store for dev/testing
    get_options_store     - Factory: selects store from settings

    SETTINGS_SECTIONS     - Enumerated field table rendered by the admin form
    load_cache_config     - Build the per-request CacheConfig from the store
"""

from caching_headers.options.fields import (
    DURATION_CHOICES,
    LEGAL_DURATIONS,
    OPTION_DEFAULTS,
    SETTINGS_FIELDS,
    SETTINGS_SECTIONS,
    FieldKind,
    InvalidOptionValueError,
    SettingsField,
    SettingsSection,
    config_from_options,
    load_cache_config,
    load_options,
    parse_settings_form,
    parse_settings_update,
    save_options,
)
from caching_headers.options.store import (
    InMemoryOptionsStore,
    OptionsStore,
    RedisOptionsStore,
    get_options_store,
)

__all__ = [
    "DURATION_CHOICES",
    "LEGAL_DURATIONS",
    "OPTION_DEFAULTS",
    "SETTINGS_FIELDS",
    "SETTINGS_SECTIONS",
    "FieldKind",
    "InMemoryOptionsStore",
    "InvalidOptionValueError",
    "OptionsStore",
    "RedisOptionsStore",
    "SettingsField",
    "SettingsSection",
    "config_from_options",
    "get_options_store",
    "load_cache_config",
    "load_options",
    "parse_settings_form",
    "parse_settings_update",
    "save_options",
]
