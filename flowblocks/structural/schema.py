# flowblocks/structural/schema.py
import re

VALID_PROPERTY_TYPES = (
    "text",
    "textarea",
    "number",
    "boolean",
    "select",
    "select_database",
)

# propertyType values that switch a database select into media-preview mode
VALID_MEDIA_TYPES = (
    "media_audio",
    "media_image",
    "media_video",
)

VALID_OUTPUT_MODES = ("fixed", "dynamic")

REQUIRED_BLOCK_FIELDS = ("id", "name", "category", "icon", "color", "inputs", "outputs", "properties")

REQUIRED_PORT_FIELDS = ("min", "max", "labels")

# Lexical guard only; a column named "update_count" trips it too.
FORBIDDEN_SQL_KEYWORDS = ("INSERT", "UPDATE", "DELETE", "DROP")

# max == -1 means "any number of edges"
UNLIMITED = -1

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
SLUG_RE = re.compile(r"^[a-z][a-z0-9_]*$")


# Loader-level check: anything that is not an object is rejected before validation
CATALOG_ROOT_SCHEMA = {"type": "object"}


_PORT_SCHEMA = {
    "type": "object",
    "required": list(REQUIRED_PORT_FIELDS),
    "properties": {
        "min": {"type": "integer", "minimum": 0},
        # -1 is the unlimited sentinel
        "max": {"type": "integer", "minimum": UNLIMITED},
        "labels": {"type": "array", "items": {"type": "string"}},
        "mode": {"enum": list(VALID_OUTPUT_MODES)},
    },
    "additionalProperties": True,
}

_OPTION_SCHEMA = {
    "anyOf": [
        {"type": "string"},
        {
            "type": "object",
            "required": ["value"],
            "properties": {
                "value": {},
                "label": {"type": "string"},
            },
            "additionalProperties": True,
        },
    ]
}

_OPTGROUP_SCHEMA = {
    "type": "object",
    "required": ["label", "options"],
    "properties": {
        "label": {"type": "string", "minLength": 1},
        "options": {"type": "array", "items": _OPTION_SCHEMA},
    },
    "additionalProperties": True,
}

_QUERY_GROUP_SCHEMA = {
    "type": "object",
    "required": ["label", "query", "valueField", "labelField"],
    "properties": {
        "label": {"type": "string", "minLength": 1},
        "query": {"type": "string", "pattern": "^\\s*[Ss][Ee][Ll][Ee][Cc][Tt]"},
        "valueField": {"type": "string", "minLength": 1},
        "labelField": {"type": "string", "minLength": 1},
        "previewField": {"type": "string"},
        "propertyType": {"enum": list(VALID_MEDIA_TYPES)},
    },
    "additionalProperties": True,
}

_PROPERTY_SCHEMA = {
    "type": "object",
    "required": ["key", "type"],
    "properties": {
        "key": {"type": "string", "minLength": 1},
        "label": {"type": "string"},
        "type": {"enum": list(VALID_PROPERTY_TYPES)},
        "required": {"type": "boolean"},
        "showPredefinedVariables": {"type": "boolean"},
        "searchable": {"type": "boolean"},
        "min": {"type": "number"},
        "max": {"type": "number"},
        "step": {"type": "number"},
        "options": {"type": "array", "items": _OPTION_SCHEMA},
        # Either select optgroups ({label, options}) or database query groups
        "groups": {"type": "array", "items": {"anyOf": [_OPTGROUP_SCHEMA, _QUERY_GROUP_SCHEMA]}},
        "query": {"type": "string"},
        "valueField": {"type": "string"},
        "labelField": {"type": "string"},
        "previewField": {"type": "string"},
        "propertyType": {"enum": list(VALID_MEDIA_TYPES)},
        "dependsOn": {"type": "string"},
        "dependencyOptional": {"type": "boolean"},
        "disabledPlaceholder": {"type": "string"},
    },
    "additionalProperties": True,
}

# Published for external editor tooling (see `flowblocks schema`).
# Deliberately looser than the checker: cross-field rules live in checker.py.
CATALOG_JSON_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Block definitions catalog",
    "type": "object",
    "required": ["blockTypes"],
    "properties": {
        "blockTypes": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": list(REQUIRED_BLOCK_FIELDS),
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "name": {"type": "string"},
                    "category": {"type": "string"},
                    "icon": {"type": "string"},
                    "color": {"type": "string"},
                    "inputs": _PORT_SCHEMA,
                    "outputs": _PORT_SCHEMA,
                    "properties": {"type": "array", "items": _PROPERTY_SCHEMA},
                },
                "additionalProperties": True,
            },
        },
        "systemVariables": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["key"],
                "properties": {
                    "key": {"type": "string"},
                    "description": {"type": "string"},
                },
                "additionalProperties": True,
            },
        },
    },
    "additionalProperties": True,
}
