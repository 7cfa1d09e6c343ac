# flowblocks/structural/properties.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from .report import ValidationReport
from .schema import FORBIDDEN_SQL_KEYWORDS, VALID_MEDIA_TYPES, VALID_PROPERTY_TYPES


def is_number(value: Any) -> bool:
    """True for int/float values; JSON booleans are not numbers."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def property_path(block_id: str, prop: Any, index: int) -> str:
    """Dotted path of a property; falls back to the array index when it has no usable key."""
    key = prop.get("key") if isinstance(prop, dict) else None
    if key:
        return f"blocks.{block_id}.properties.{key}"
    return f"blocks.{block_id}.properties[{index}]"


def _check_bool(prop: Dict[str, Any], name: str, path: str, report: ValidationReport) -> None:
    if name in prop and not isinstance(prop[name], bool):
        report.add_error(path, f"'{name}' must be a boolean")


def _check_query(query: Any, path: str, report: ValidationReport) -> None:
    """Lexical SELECT-only check. Not a parser and not a security boundary."""
    if not isinstance(query, str) or not query:
        return
    upper = query.strip().upper()
    if not upper.startswith("SELECT"):
        report.add_error(path, "Query must be a SELECT statement")
    if any(word in upper for word in FORBIDDEN_SQL_KEYWORDS):
        report.add_error(path, "Query contains forbidden SQL commands")


def _check_media(source: Dict[str, Any], path: str, report: ValidationReport, hint: str = "") -> None:
    ptype = source.get("propertyType")
    if not ptype:
        return
    if ptype not in VALID_MEDIA_TYPES:
        report.add_error(
            path,
            f"Invalid 'propertyType' '{ptype}'. Valid types: {', '.join(VALID_MEDIA_TYPES)}",
        )
    if not source.get("previewField"):
        report.add_warning(path, f"'propertyType' is set but 'previewField' is missing{hint}")


# ---------------------------------------------------------------------------
# Per-type checks
# ---------------------------------------------------------------------------

def _check_text(prop, path, report, siblings, index):
    # placeholder/default are free-form
    _check_bool(prop, "showPredefinedVariables", path, report)


def _check_number(prop, path, report, siblings, index):
    for name in ("min", "max", "step", "default"):
        if name in prop and not is_number(prop[name]):
            report.add_error(path, f"'{name}' must be a number")

    lo, hi = prop.get("min"), prop.get("max")
    if is_number(lo) and is_number(hi) and lo > hi:
        report.add_error(path, f"'min' ({lo}) cannot be greater than 'max' ({hi})")


def _check_boolean(prop, path, report, siblings, index):
    _check_bool(prop, "default", path, report)


def _check_select(prop, path, report, siblings, index):
    options = prop.get("options")
    groups = prop.get("groups")

    # options OR groups (optgroups)
    if options is None and groups is None:
        report.add_error(path, "'select' type requires 'options' array or 'groups' array")
    elif options is not None and not isinstance(options, list):
        report.add_error(path, "'options' must be an array")
    elif groups is not None and not isinstance(groups, list):
        report.add_error(path, "'groups' must be an array")
    elif options is not None and len(options) == 0 and groups is None:
        report.add_warning(path, "'options' array is empty")

    if isinstance(groups, list):
        for idx, group in enumerate(groups):
            gpath = f"{path}.groups[{idx}]"
            if not isinstance(group, dict):
                report.add_error(gpath, "Group must be an object")
                continue
            if not group.get("label"):
                report.add_error(gpath, "Missing 'label' field")
            if not isinstance(group.get("options"), list):
                report.add_error(gpath, "Missing or invalid 'options' array")

    _check_bool(prop, "searchable", path, report)


def _check_select_database(prop, path, report, siblings, index):
    groups = prop.get("groups")

    if isinstance(groups, list):
        # optgroup mode: every group carries its own query
        for idx, group in enumerate(groups):
            gpath = f"{path}.groups[{idx}]"
            if not isinstance(group, dict):
                report.add_error(gpath, "Group must be an object")
                continue
            for name in ("label", "query", "valueField", "labelField"):
                if not group.get(name):
                    report.add_error(gpath, f"Missing '{name}' field")
            _check_query(group.get("query"), gpath, report)
            _check_media(group, gpath, report)
    else:
        if groups is not None:
            report.add_error(path, "'groups' must be an array")
        # single query mode
        if not prop.get("query"):
            report.add_error(path, "'select_database' type requires 'query' field or 'groups' array")
        if not prop.get("valueField"):
            report.add_error(path, "'select_database' type requires 'valueField' field")
        if not prop.get("labelField"):
            report.add_error(path, "'select_database' type requires 'labelField' field")

    query = prop.get("query")
    _check_query(query, path, report)
    _check_media(prop, path, report, hint=" (preview won't work)")
    _check_bool(prop, "searchable", path, report)

    depends_on = prop.get("dependsOn")
    if depends_on:
        _check_dependency(prop, depends_on, query, path, report, siblings, index)

    if prop.get("dependencyOptional"):
        if not depends_on:
            report.add_warning(path, "'dependencyOptional' is set but 'dependsOn' is not defined")
        fallback = prop.get("options")
        if not isinstance(fallback, list) or not fallback:
            report.add_warning(path, "'dependencyOptional' is true but no fallback 'options' array provided")

    if prop.get("disabledPlaceholder") and not depends_on:
        report.add_warning(
            path,
            "'disabledPlaceholder' is set but 'dependsOn' is not defined (placeholder won't be used)",
        )


def _check_dependency(
    prop: Dict[str, Any],
    depends_on: Any,
    query: Any,
    path: str,
    report: ValidationReport,
    siblings: List[Any],
    index: int,
) -> None:
    """
    Single-parent cascading select: the parent must be an earlier sibling.
    Position is a plain index comparison over the properties array.
    """
    parent_index: Optional[int] = None
    for i, other in enumerate(siblings):
        if isinstance(other, dict) and other.get("key") == depends_on:
            parent_index = i
            break

    if parent_index is None:
        report.add_error(path, f"'dependsOn' references non-existent property '{depends_on}'")
        return

    if parent_index >= index:
        report.add_error(path, f"'dependsOn' property '{depends_on}' must be defined before this property")

    placeholder = "{{" + str(depends_on) + "}}"
    if isinstance(query, str) and query and placeholder not in query:
        report.add_warning(path, f"'dependsOn' is set but query doesn't contain placeholder '{placeholder}'")


TYPE_CHECKS: Dict[str, Callable[..., None]] = {
    "text": _check_text,
    "textarea": _check_text,
    "number": _check_number,
    "boolean": _check_boolean,
    "select": _check_select,
    "select_database": _check_select_database,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def check_property(
    prop: Any,
    block_id: str,
    siblings: List[Any],
    index: int,
    report: ValidationReport,
) -> None:
    """
    Validate one property definition in place of its block.

    `siblings` is the full properties array and `index` this property's
    position in it (needed for dependsOn ordering).
    Findings are appended to `report`; nothing is raised.
    """
    path = property_path(block_id, prop, index)

    if not isinstance(prop, dict):
        report.add_error(path, "Property must be an object")
        return

    # Without key/type nothing further can be labelled meaningfully
    if not prop.get("key"):
        report.add_error(path, "Missing required field 'key'")
        return
    ptype = prop.get("type")
    if not ptype:
        report.add_error(path, "Missing required field 'type'")
        return

    if ptype not in VALID_PROPERTY_TYPES:
        report.add_error(path, f"Invalid type '{ptype}'. Valid types: {', '.join(VALID_PROPERTY_TYPES)}")

    check = TYPE_CHECKS.get(ptype) if isinstance(ptype, str) else None
    if check is not None:
        check(prop, path, report, siblings, index)
