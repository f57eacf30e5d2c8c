"""
JSON schema generation and cleanup for tool parameters and structured output.

Schemas are generated with pydantic, then `$ref`s are inlined because
several providers reject references. `clean_json_schema` further strips
keywords that Gemini's schema subset does not accept.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic import TypeAdapter

EMPTY_OBJECT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


def inline_refs(schema: dict[str, Any]) -> dict[str, Any]:
    """Replace local `#/$defs/...` references with the referenced definitions."""
    defs = schema.get("$defs", {}) or schema.get("definitions", {})

    def resolve(node: Any, seen: frozenset[str]) -> Any:
        if isinstance(node, list):
            return [resolve(item, seen) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith(("#/$defs/", "#/definitions/")):
            name = ref.rsplit("/", 1)[-1]
            if name in seen or name not in defs:
                # Recursive types cannot be inlined; degrade to a plain object
                return {"type": "object"}
            target = resolve(copy.deepcopy(defs[name]), seen | {name})
            siblings = {k: resolve(v, seen) for k, v in node.items() if k != "$ref"}
            return {**target, **siblings}

        return {
            key: resolve(value, seen)
            for key, value in node.items()
            if key not in ("$defs", "definitions")
        }

    return resolve(schema, frozenset())


def _strip_titles(node: Any) -> Any:
    if isinstance(node, list):
        return [_strip_titles(item) for item in node]
    if not isinstance(node, dict):
        return node

    cleaned: dict[str, Any] = {}
    for key, value in node.items():
        if key == "title" and isinstance(value, str):
            continue
        if key == "properties" and isinstance(value, dict):
            # Property names are user data, only their schemas are cleaned
            cleaned[key] = {name: _strip_titles(prop) for name, prop in value.items()}
        else:
            cleaned[key] = _strip_titles(value)
    return cleaned


def schema_for_type(tp: Any) -> dict[str, Any]:
    """
    Generate a self-contained JSON schema for a Python type.

    Args:
        tp: Any type pydantic can describe (models, dataclasses, TypedDicts, ...)

    Returns:
        Schema with references inlined and titles removed. Types without
        properties produce an empty object schema.
    """
    schema = TypeAdapter(tp).json_schema()
    schema = _strip_titles(inline_refs(schema))

    if schema.get("type") == "object" and not schema.get("properties"):
        return copy.deepcopy(EMPTY_OBJECT_SCHEMA)
    return schema


def _collapse_nullable(schema: dict[str, Any]) -> dict[str, Any]:
    """Turn `anyOf: [X, {"type": "null"}]` into X plus `nullable: true`."""
    for key in ("anyOf", "oneOf"):
        variants = schema.get(key)
        if not isinstance(variants, list):
            continue
        non_null = [v for v in variants if not (isinstance(v, dict) and v.get("type") == "null")]
        if len(non_null) == 1 and len(non_null) < len(variants) and isinstance(non_null[0], dict):
            merged = {k: v for k, v in schema.items() if k != key}
            merged.update(non_null[0])
            merged["nullable"] = True
            return merged
    return schema


def clean_json_schema(schema: Any) -> Any:
    """
    Clean JSON Schema, removing unsupported fields and appending validation to description.

    Gemini has limited JSON Schema support - many standard fields cause
    400 errors (e.g., $ref, exclusiveMinimum).
    """
    if not isinstance(schema, dict):
        return schema

    if "$defs" in schema or "definitions" in schema:
        schema = inline_refs(schema)
    schema = _collapse_nullable(schema)

    # Fields that cause 400 errors downstream
    unsupported_keys = {
        "$schema",
        "$id",
        "$ref",
        "$defs",
        "definitions",
        "title",
        "example",
        "examples",
        "readOnly",
        "writeOnly",
        "default",
        "exclusiveMaximum",
        "exclusiveMinimum",
        "oneOf",
        "anyOf",
        "allOf",
        "const",
        "additionalItems",
        "contains",
        "patternProperties",
        "dependencies",
        "propertyNames",
        "if",
        "then",
        "else",
        "contentEncoding",
        "contentMediaType",
        "additionalProperties",
    }

    validation_fields = ("minLength", "maxLength", "minimum", "maximum", "minItems", "maxItems")

    validations = [f"{field}: {schema[field]}" for field in validation_fields if field in schema]

    cleaned: dict[str, Any] = {}
    for key, value in schema.items():
        if key in unsupported_keys or key in validation_fields:
            continue

        if key == "type" and isinstance(value, list):
            # Type arrays like ["string", "null"] become a single type + nullable flag
            has_null = any(isinstance(t, str) and t.strip().lower() == "null" for t in value)
            non_null_types = [
                t.strip() for t in value if isinstance(t, str) and t.strip().lower() != "null"
            ]
            cleaned[key] = non_null_types[0] if non_null_types else "string"
            if has_null:
                cleaned["nullable"] = True
            continue

        if key == "properties" and isinstance(value, dict):
            cleaned[key] = {name: clean_json_schema(prop) for name, prop in value.items()}
        elif key == "description" and validations:
            cleaned[key] = f"{value} ({', '.join(validations)})"
        elif isinstance(value, dict):
            cleaned[key] = clean_json_schema(value)
        elif isinstance(value, list):
            cleaned[key] = [clean_json_schema(item) if isinstance(item, dict) else item for item in value]
        else:
            cleaned[key] = value

    if validations and "description" not in cleaned:
        cleaned["description"] = f"Validation: {', '.join(validations)}"

    # Add type: object if properties exist but type is missing
    if "properties" in cleaned and "type" not in cleaned:
        cleaned["type"] = "object"

    return cleaned
