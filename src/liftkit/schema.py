"""Registry item schema validation.

Checks a registry item against the JSON-schema-like document published for
registry items: required fields, per-field types, enum membership and unknown
fields. This is deliberately a small subset of JSON Schema; nested
``properties``, ``oneOf`` and conditionals are not evaluated.
"""

from __future__ import annotations

from typing import Any, Mapping

from .types import RegistryItem, RegistryType, ValidationResult

DEFAULT_SCHEMA_VERSION = "http://json-schema.org/draft-07/schema#"

# Keys that carry metadata and are never validated or reported as unknown
_METADATA_FIELDS = {"$schema", "$id", "$ref", "metadata", "meta"}

# Always valid even when the schema does not declare them
_IMPLICIT_FIELDS = {"name", "type"}


def _is_metadata_field(name: str) -> bool:
    return name.startswith("$") or name in _METADATA_FIELDS


def _as_mapping(item: RegistryItem | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(item, RegistryItem):
        return item.raw or item.to_dict()
    return item


def _properties(schema: Mapping[str, Any]) -> dict[str, Any]:
    props = schema.get("properties")
    return props if isinstance(props, dict) else {}


def _required(schema: Mapping[str, Any]) -> list[str]:
    required = schema.get("required")
    return list(required) if isinstance(required, list) else []


def _check_field(field_name: str, field_schema: Mapping[str, Any], value: Any) -> list[str]:
    """Type and enum check for one declared field."""
    errors: list[str] = []
    expected = field_schema.get("type")

    if expected == "string":
        if not isinstance(value, str):
            errors.append(f"Field '{field_name}' must be a string")
    elif expected == "array":
        if not isinstance(value, list):
            errors.append(f"Field '{field_name}' must be an array")
        else:
            items = field_schema.get("items")
            if isinstance(items, dict) and items.get("type") == "string":
                for index, entry in enumerate(value):
                    if not isinstance(entry, str):
                        errors.append(
                            f"Array item at index {index} in field '{field_name}' must be a string"
                        )
    elif expected == "object":
        if not isinstance(value, dict):
            errors.append(f"Field '{field_name}' must be an object")

    allowed = field_schema.get("enum")
    if isinstance(allowed, list) and value not in allowed:
        errors.append(f"Field '{field_name}' must be one of: {', '.join(map(str, allowed))}")

    return errors


def validate_required_fields(schema: Mapping[str, Any], item: Mapping[str, Any]) -> list[str]:
    """One error per schema-required field absent from the item."""
    return [f"Missing required field: {name}" for name in _required(schema) if name not in item]


def validate_field_types(schema: Mapping[str, Any], item: Mapping[str, Any]) -> list[str]:
    """Type/enum errors for every schema-declared field present on the item."""
    errors: list[str] = []
    for field_name, field_schema in _properties(schema).items():
        if field_name not in item or _is_metadata_field(field_name):
            continue
        if not isinstance(field_schema, dict):
            continue
        errors.extend(_check_field(field_name, field_schema, item[field_name]))
    return errors


def find_unknown_fields(schema: Mapping[str, Any], item: Mapping[str, Any]) -> list[str]:
    """Warnings for item keys the schema does not declare."""
    declared = _properties(schema)
    return [
        f"Unknown field: {key}"
        for key in item
        if key not in _IMPLICIT_FIELDS and key not in declared and not _is_metadata_field(key)
    ]


def validate(schema: Mapping[str, Any], item: RegistryItem | Mapping[str, Any]) -> ValidationResult:
    """Validate a registry item against a schema.

    Warnings never affect validity.
    """
    data = _as_mapping(item)
    errors = validate_required_fields(schema, data) + validate_field_types(schema, data)
    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=find_unknown_fields(schema, data),
    )


class SchemaValidator:
    """A registry schema bound to validation and introspection helpers."""

    def __init__(self, schema: Mapping[str, Any]):
        self.schema = schema

    def validate(self, item: RegistryItem | Mapping[str, Any]) -> ValidationResult:
        return validate(self.schema, item)

    def get_info(self) -> dict[str, Any]:
        """Summarize the schema: version, required fields and property details."""
        required = _required(self.schema)
        details = []
        for name, prop in _properties(self.schema).items():
            prop = prop if isinstance(prop, dict) else {}
            details.append(
                {
                    "name": name,
                    "type": prop.get("type", "unknown"),
                    "description": prop.get("description"),
                    "required": name in required,
                    "enum": prop.get("enum"),
                    "items": prop.get("items"),
                }
            )
        return {
            "schema_version": self.schema.get("$schema", DEFAULT_SCHEMA_VERSION),
            "type": self.schema.get("type", "object"),
            "required": required,
            "properties": list(_properties(self.schema)),
            "property_details": details,
        }

    def get_types(self) -> list[str]:
        """Item kind tags declared by the schema."""
        type_prop = _properties(self.schema).get("type")
        if isinstance(type_prop, dict) and isinstance(type_prop.get("enum"), list):
            return list(type_prop["enum"])
        return []

    def get_file_types(self) -> list[str]:
        """File kind tags declared by the schema."""
        files = _properties(self.schema).get("files")
        try:
            enum = files["items"]["properties"]["type"]["enum"]
        except (KeyError, TypeError):
            return []
        return list(enum) if isinstance(enum, list) else []

    def generate_template(self, item_type: RegistryType = RegistryType.COMPONENT) -> dict[str, Any]:
        """Blank registry item of the given kind."""
        template: dict[str, Any] = {"name": "", "type": item_type.value, "files": []}
        if item_type == RegistryType.COMPONENT:
            template["dependencies"] = []
        return template
