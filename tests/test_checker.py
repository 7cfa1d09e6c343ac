import copy

import pytest

from conftest import catalog_with, make_block
from flowblocks.structural.checker import find_duplicate_keys, validate


# ---- root ----

def test_empty_catalog_is_valid():
    report = validate({"blockTypes": {}})
    assert report.ok
    assert report.errors == []
    assert report.warnings == []


def test_missing_block_types():
    report = validate({})
    assert report.errors == ['Root: Missing required field "blockTypes"']


def test_block_types_wrong_shape():
    report = validate({"blockTypes": ["a", "b"]})
    assert report.errors == ['Root: "blockTypes" must be an object']


def test_non_mapping_input_raises():
    with pytest.raises(TypeError):
        validate(["not", "a", "catalog"])


def test_system_variables_must_be_array():
    report = validate({"blockTypes": {}, "systemVariables": {"key": "{{x}}"}})
    assert report.errors == ["systemVariables: Must be an array"]


def test_system_variable_rules():
    report = validate({
        "blockTypes": {},
        "systemVariables": [
            {"key": "{{caller_id}}", "description": "Caller"},
            {"description": "no key"},
            {"key": "bare"},
        ],
    })
    assert report.errors == ["systemVariables[1]: Missing required field 'key'"]
    assert report.warnings == [
        "systemVariables[2]: Missing 'description' field",
        "systemVariables[2]: Variable 'bare' should use {{variable}} format",
    ]


def test_system_variable_not_an_object():
    report = validate({"blockTypes": {}, "systemVariables": ["{{x}}", {"key": "{{y}}", "description": "Y"}]})
    assert report.errors == ["systemVariables[0]: System variable must be an object"]
    assert report.warnings == []


def test_root_checks_come_before_blocks():
    catalog = {
        "blockTypes": {"b1": make_block("b1", color="red")},
        "systemVariables": [{"key": "{{x}}"}],
    }
    report = validate(catalog)
    assert report.warnings[0].startswith("systemVariables[0]")
    assert report.warnings[1].startswith("blocks.b1")


# ---- blocks ----

def test_scenario_a_bad_color_is_only_a_warning():
    report = validate({"blockTypes": {"b1": make_block("b1", color="#ZZZZZZ")}})
    assert report.errors == []
    assert report.warnings == ["blocks.b1: 'color' should be a 6-digit hex color (e.g., #FF5722)"]


def test_missing_required_block_fields():
    report = validate({"blockTypes": {"b1": {"id": "b1", "name": "B1"}}})
    assert report.errors == [
        "blocks.b1: Missing required field 'category'",
        "blocks.b1: Missing required field 'icon'",
        "blocks.b1: Missing required field 'color'",
        "blocks.b1: Missing required field 'inputs'",
        "blocks.b1: Missing required field 'outputs'",
        "blocks.b1: Missing required field 'properties'",
    ]


def test_id_mismatch_is_warning():
    report = validate({"blockTypes": {"b1": make_block("other")}})
    assert report.ok
    assert report.warnings == ["blocks.b1: Block 'id' (other) doesn't match key 'b1'"]


def test_block_not_an_object():
    report = validate({"blockTypes": {"b1": "oops", "b2": make_block("b2")}})
    assert report.errors == ["blocks.b1: Block definition must be an object"]


def test_properties_must_be_array():
    report = validate({"blockTypes": {"b1": make_block("b1", properties={"key": "a"})}})
    assert report.errors == ["blocks.b1: 'properties' must be an array"]


def test_duplicate_keys_reported_once():
    report = validate(catalog_with(
        {"key": "a", "type": "text"},
        {"key": "a", "type": "text"},
        {"key": "b", "type": "text"},
    ))
    assert report.errors == ["blocks.b1: Duplicate property keys found: a"]


def test_duplicate_keys_listed_in_first_seen_order():
    props = [{"key": k} for k in ("b", "a", "b", "a", "a", "c")]
    assert find_duplicate_keys(props) == ["b", "a"]


# ---- ports ----

def test_scenario_d_max_below_min():
    report = validate({"blockTypes": {"b1": make_block("b1", inputs={"min": 2, "max": 1, "labels": ["a"]})}})
    assert report.errors == ["blocks.b1.inputs: 'max' (1) cannot be less than 'min' (2)"]


def test_unlimited_max_is_accepted():
    report = validate({"blockTypes": {"b1": make_block("b1", outputs={"min": 3, "max": -1, "labels": []})}})
    assert report.ok


def test_negative_min():
    report = validate({"blockTypes": {"b1": make_block("b1", inputs={"min": -1, "max": 1, "labels": []})}})
    assert report.errors == ["blocks.b1.inputs: 'min' cannot be negative"]


def test_port_missing_fields_and_types():
    report = validate({"blockTypes": {"b1": make_block("b1", inputs={"max": "2"})}})
    assert report.errors == [
        "blocks.b1.inputs: Missing required field 'min'",
        "blocks.b1.inputs: Missing required field 'labels'",
        "blocks.b1.inputs: 'min' must be a number",
        "blocks.b1.inputs: 'max' must be a number",
        "blocks.b1.inputs: 'labels' must be an array",
    ]


@pytest.mark.parametrize("port_kind", ["inputs", "outputs"])
def test_port_not_an_object(port_kind):
    report = validate({"blockTypes": {"b1": make_block("b1", **{port_kind: "two"})}})
    assert report.errors == [f"blocks.b1.{port_kind}: '{port_kind}' must be an object"]


def test_boolean_is_not_a_port_number():
    report = validate({"blockTypes": {"b1": make_block("b1", inputs={"min": True, "max": 1, "labels": []})}})
    assert report.errors == ["blocks.b1.inputs: 'min' must be a number"]


def test_mode_only_checked_on_outputs():
    block = make_block(
        "b1",
        inputs={"min": 0, "max": 1, "labels": [], "mode": "weird"},
        outputs={"min": 0, "max": 1, "labels": [], "mode": "weird"},
    )
    report = validate({"blockTypes": {"b1": block}})
    assert report.errors == ["blocks.b1.outputs: Invalid 'mode' 'weird'. Valid modes: fixed, dynamic"]


def test_dynamic_output_mode_is_valid():
    block = make_block("b1", outputs={"min": 1, "max": -1, "labels": [], "mode": "dynamic"})
    assert validate({"blockTypes": {"b1": block}}).ok


# ---- engine properties ----

def test_validation_is_deterministic(broken_catalog):
    assert validate(broken_catalog) == validate(broken_catalog)


def test_validation_does_not_mutate_input(broken_catalog):
    before = copy.deepcopy(broken_catalog)
    validate(broken_catalog)
    assert broken_catalog == before


def test_blocks_follow_mapping_order():
    catalog = {"blockTypes": {
        "zeta": make_block("zeta", color="bad"),
        "alpha": make_block("alpha", color="bad"),
    }}
    report = validate(catalog)
    assert [w.split(":")[0] for w in report.warnings] == ["blocks.zeta", "blocks.alpha"]
