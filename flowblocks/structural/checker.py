# flowblocks/structural/checker.py

from collections.abc import Mapping
from typing import Any, Dict, List

from .properties import check_property, is_number
from .report import ValidationReport
from .schema import (
    HEX_COLOR_RE,
    REQUIRED_BLOCK_FIELDS,
    REQUIRED_PORT_FIELDS,
    UNLIMITED,
    VALID_OUTPUT_MODES,
)
from flowblocks.utils.logger import get_logger

logger = get_logger("checker")


def validate(catalog: Mapping) -> ValidationReport:
    """
    Validate a block-definitions catalog and collect every finding in one pass.

    Traversal order (stable, so output is reproducible):
      1) root: blockTypes shape, systemVariables
      2) blockTypes entries in mapping order
      3) per block: required fields, id/color, inputs, outputs, properties

    The input is never mutated. Malformed content never raises; it ends up in
    the returned report. Only a non-mapping input raises TypeError, which a
    loader is expected to rule out beforehand.
    """
    if not isinstance(catalog, Mapping):
        raise TypeError(f"catalog must be a mapping, got {type(catalog).__name__}")

    report = ValidationReport()

    # 1) Root
    block_types = catalog.get("blockTypes")
    if block_types is None:
        report.add_error("Root", 'Missing required field "blockTypes"')
    elif not isinstance(block_types, Mapping):
        report.add_error("Root", '"blockTypes" must be an object')
        block_types = None

    if catalog.get("systemVariables") is not None:
        check_system_variables(catalog["systemVariables"], report)

    # 2) Blocks
    if block_types:
        for block_id, block in block_types.items():
            check_block(block, block_id, report)

    logger.debug(
        "validated %d block type(s): %d error(s), %d warning(s)",
        len(block_types or {}), len(report.errors), len(report.warnings),
    )
    return report


def check_system_variables(variables: Any, report: ValidationReport) -> None:
    if not isinstance(variables, list):
        report.add_error("systemVariables", "Must be an array")
        return

    for i, var in enumerate(variables):
        path = f"systemVariables[{i}]"
        if not isinstance(var, dict):
            report.add_error(path, "System variable must be an object")
            continue
        key = var.get("key")
        if not key:
            report.add_error(path, "Missing required field 'key'")
        if not var.get("description"):
            report.add_warning(path, "Missing 'description' field")
        if key and not (isinstance(key, str) and key.startswith("{{") and key.endswith("}}")):
            report.add_warning(path, f"Variable '{key}' should use {{{{variable}}}} format")


def check_block(block: Any, block_id: str, report: ValidationReport) -> None:
    path = f"blocks.{block_id}"

    if not isinstance(block, dict):
        report.add_error(path, "Block definition must be an object")
        return

    for name in REQUIRED_BLOCK_FIELDS:
        if name not in block:
            report.add_error(path, f"Missing required field '{name}'")

    # The map key is what the canvas uses; a differing id only confuses humans
    bid = block.get("id")
    if bid and bid != block_id:
        report.add_warning(path, f"Block 'id' ({bid}) doesn't match key '{block_id}'")

    color = block.get("color")
    if color and not (isinstance(color, str) and HEX_COLOR_RE.fullmatch(color)):
        report.add_warning(path, "'color' should be a 6-digit hex color (e.g., #FF5722)")

    for port_kind in ("inputs", "outputs"):
        if block.get(port_kind) is not None:
            check_ports(block[port_kind], block_id, port_kind, report)

    props = block.get("properties")
    if props is None:
        return
    if not isinstance(props, list):
        report.add_error(path, "'properties' must be an array")
        return

    duplicates = find_duplicate_keys(props)
    if duplicates:
        report.add_error(path, f"Duplicate property keys found: {', '.join(str(k) for k in duplicates)}")

    for index, prop in enumerate(props):
        check_property(prop, block_id, props, index, report)


def check_ports(spec: Any, block_id: str, port_kind: str, report: ValidationReport) -> None:
    """Port Spec rules shared by inputs and outputs; `mode` only applies to outputs."""
    path = f"blocks.{block_id}.{port_kind}"

    if not isinstance(spec, dict):
        report.add_error(path, f"'{port_kind}' must be an object")
        return

    for name in REQUIRED_PORT_FIELDS:
        if name not in spec:
            report.add_error(path, f"Missing required field '{name}'")

    lo, hi = spec.get("min"), spec.get("max")
    if not is_number(lo):
        report.add_error(path, "'min' must be a number")
    if not is_number(hi):
        report.add_error(path, "'max' must be a number")

    if is_number(lo) and is_number(hi):
        if lo < 0:
            report.add_error(path, "'min' cannot be negative")
        if hi != UNLIMITED and hi < lo:
            report.add_error(path, f"'max' ({hi}) cannot be less than 'min' ({lo})")

    if not isinstance(spec.get("labels"), list):
        report.add_error(path, "'labels' must be an array")

    mode = spec.get("mode")
    if port_kind == "outputs" and mode and mode not in VALID_OUTPUT_MODES:
        report.add_error(path, f"Invalid 'mode' '{mode}'. Valid modes: {', '.join(VALID_OUTPUT_MODES)}")


def find_duplicate_keys(props: List[Any]) -> List[Any]:
    """Distinct keys that occur more than once, in the order their repeat is first seen."""
    seen: List[Any] = []
    duplicates: List[Any] = []
    for prop in props:
        key = prop.get("key") if isinstance(prop, dict) else None
        if not key:
            continue
        if key in seen:
            if key not in duplicates:
                duplicates.append(key)
        else:
            seen.append(key)
    return duplicates


def count_properties(block_types: Dict[str, Any]) -> int:
    """Number of property entries across all well-formed blocks."""
    total = 0
    for block in block_types.values():
        if isinstance(block, dict) and isinstance(block.get("properties"), list):
            total += len(block["properties"])
    return total
