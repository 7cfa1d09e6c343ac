import pytest
from jsonschema import Draft7Validator, ValidationError, validate

from flowblocks.structural import schema


def test_canonical_enumerations():
    assert schema.VALID_PROPERTY_TYPES == ("text", "textarea", "number", "boolean", "select", "select_database")
    assert schema.VALID_MEDIA_TYPES == ("media_audio", "media_image", "media_video")
    assert schema.VALID_OUTPUT_MODES == ("fixed", "dynamic")
    assert schema.REQUIRED_BLOCK_FIELDS == (
        "id", "name", "category", "icon", "color", "inputs", "outputs", "properties",
    )
    assert schema.REQUIRED_PORT_FIELDS == ("min", "max", "labels")


def test_published_schema_is_well_formed():
    Draft7Validator.check_schema(schema.CATALOG_JSON_SCHEMA)


def test_valid_catalog_conforms_to_published_schema(full_catalog):
    validate(instance=full_catalog, schema=schema.CATALOG_JSON_SCHEMA)


def test_published_schema_rejects_unknown_property_type(full_catalog):
    full_catalog["blockTypes"]["play_audio"]["properties"][0]["type"] = "color"
    with pytest.raises(ValidationError):
        validate(instance=full_catalog, schema=schema.CATALOG_JSON_SCHEMA)


@pytest.mark.parametrize("color,ok", [("#FF5722", True), ("#ff5722", True), ("#FFF", False), ("FF5722", False)])
def test_hex_color_pattern(color, ok):
    assert bool(schema.HEX_COLOR_RE.fullmatch(color)) is ok
