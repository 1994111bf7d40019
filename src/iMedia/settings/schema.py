"""Schema helpers for the iMedia settings file."""

from __future__ import annotations

import os
from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import DEFAULT_POOL_SIZE, DEFAULT_STORE_WORKERS, SETTINGS_SCHEMA_ID

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "iMedia/settings.schema.json",
    "type": "object",
    "required": ["schema", "store", "representation", "logging"],
    "properties": {
        "schema": {"const": SETTINGS_SCHEMA_ID},
        "store": {
            "type": "object",
            "properties": {
                "backend": {"type": "string", "enum": ["sqlite", "memory"]},
                "database_path": {"type": ["string", "null"]},
                "pool_size": {"type": "integer", "minimum": 1},
                "max_workers": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": True,
        },
        "representation": {
            "type": "object",
            "properties": {
                "content_mode": {
                    "type": "string",
                    "enum": ["default", "aspect_fit", "aspect_fill"],
                },
            },
            "additionalProperties": True,
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                },
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": SETTINGS_SCHEMA_ID,
    "store": {
        "backend": "sqlite",
        "database_path": None,
        "pool_size": DEFAULT_POOL_SIZE,
        "max_workers": DEFAULT_STORE_WORKERS,
    },
    "representation": {
        "content_mode": "default",
    },
    "logging": {"level": "WARNING"},
}

_SECTIONS = ("store", "representation", "logging")

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = sub_value
                continue
            merged[key] = value
    store = merged["store"]
    if store.get("database_path") not in {None, ""}:
        store["database_path"] = os.fspath(store["database_path"])
    if isinstance(merged["logging"].get("level"), str):
        merged["logging"]["level"] = merged["logging"]["level"].upper()
    _validator.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
