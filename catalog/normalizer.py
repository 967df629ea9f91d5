"""
Schema normalization.

Everything handed to the translation stages is one canonical text form: a
2-space indented JSON object mapping field name -> type description. Callers
either supply that text directly (raw schema string) or a field tree built in
the schema editor, which is rendered here.

Scalar fields render as "<Type> - <description> (Required)". Object and Array
fields with children render as a nested object:

    {"type": "Object - <description>", "properties": {...}, "required": true}
    {"type": "Array - <description>", "items": {...}}
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from store.models import SchemaField

logger = logging.getLogger("mql_generator")

NESTED_KEYS = {
    "Object": ("properties", "Nested object"),
    "Array": ("items", "Array of objects"),
}

# keys under which the built-in templates and the field tree keep child fields
_CHILD_KEYS = ("properties", "items", "structure")


def _render_field(field: SchemaField) -> Union[str, Dict[str, Any]]:
    nested = NESTED_KEYS.get(field.type)
    if nested and field.children:
        child_key, default_description = nested
        node: Dict[str, Any] = {
            "type": f"{field.type} - {field.description or default_description}",
            child_key: build_schema_object(field.children),
        }
        if field.required:
            node["required"] = True
        return node

    text = field.type
    if field.description:
        text += f" - {field.description}"
    if field.required:
        text += " (Required)"
    return text


def build_schema_object(fields: Iterable[SchemaField]) -> Dict[str, Any]:
    schema_object: Dict[str, Any] = {}
    for field in fields:
        if not field.name:
            continue
        if field.name in schema_object:
            logger.warning("schema_duplicate_field", extra={"field": field.name})
        schema_object[field.name] = _render_field(field)
    return schema_object


def render_field_tree(fields: Iterable[SchemaField]) -> str:
    return json.dumps(build_schema_object(fields), indent=2, ensure_ascii=False)


def normalize_schema(schema: Union[str, List[SchemaField], None]) -> Optional[str]:
    """
    Returns canonical schema text, or None when nothing usable was supplied.
    Raw strings are passed through (trimmed); type tags are never checked.
    """
    if schema is None:
        return None
    if isinstance(schema, str):
        return schema.strip() or None

    fields = [f if isinstance(f, SchemaField) else SchemaField.model_validate(f) for f in schema]
    rendered = build_schema_object(fields)
    if not rendered:
        return None
    return json.dumps(rendered, indent=2, ensure_ascii=False)


def declared_fields(schema_text: Optional[str]) -> Set[str]:
    """
    Dotted field paths declared by a JSON schema text. Returns an empty set when
    the text is not a JSON object (free-form descriptions are allowed).
    """
    if not schema_text:
        return set()
    try:
        parsed = json.loads(schema_text)
    except json.JSONDecodeError:
        return set()
    if not isinstance(parsed, dict):
        return set()

    out: Set[str] = set()

    def walk(node: Dict[str, Any], prefix: str) -> None:
        for name, value in node.items():
            path = f"{prefix}{name}"
            out.add(path)
            if not isinstance(value, dict):
                continue
            for key in _CHILD_KEYS:
                children = value.get(key)
                if isinstance(children, dict):
                    walk(children, f"{path}.")

    walk(parsed, "")
    return out
