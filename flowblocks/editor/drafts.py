# flowblocks/editor/drafts.py
"""
Save-time rules and catalog edits performed by the block-definition editor.

These are stricter than `validate` in some places (slug-shaped ids and keys,
labels required) and looser in others (no type-specific checks). All
functions work on plain catalog dicts and never mutate their arguments.
"""
from __future__ import annotations

import copy
import re
from typing import Any, Dict, List, Optional, Tuple

from flowblocks.structural.properties import is_number
from flowblocks.structural.schema import SLUG_RE, UNLIMITED
from flowblocks.utils.io import CatalogLoadError
from flowblocks.utils.logger import get_logger

logger = get_logger("editor")

NEW_BLOCK_TEMPLATE: Dict[str, Any] = {
    "id": "",
    "name": "",
    "category": "custom",
    "icon": "📦",
    "color": "#6366f1",
    "inputs": {"min": 1, "max": 1, "labels": ["input"]},
    "outputs": {"min": 1, "max": 1, "mode": "fixed", "labels": ["next"]},
    "properties": [],
}

NEW_PROPERTY_TEMPLATE: Dict[str, Any] = {
    "key": "",
    "label": "",
    "type": "text",
    "placeholder": "",
    "required": False,
}

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9_]")


def slugify_key(text: str) -> str:
    """Lowercase and replace anything outside [a-z0-9_] with '_', as typed into id/key fields."""
    return _NON_SLUG_CHARS.sub("_", text.lower())


def new_block(timestamp: int) -> Dict[str, Any]:
    block = copy.deepcopy(NEW_BLOCK_TEMPLATE)
    block["id"] = f"new_block_{timestamp}"
    block["name"] = "New Block"
    return block


def new_property() -> Dict[str, Any]:
    return copy.deepcopy(NEW_PROPERTY_TEMPLATE)


def duplicate_block(block_types: Dict[str, Any], block_id: str) -> Dict[str, Any]:
    """Deep copy of an existing block with `_copy` / `(Copy)` suffixes. Raises KeyError for unknown ids."""
    original = block_types[block_id]
    block = copy.deepcopy(original)
    block["id"] = f"{original.get('id', block_id)}_copy"
    block["name"] = f"{original.get('name', '')} (Copy)"
    return block


def _port_inverted(port: Any) -> bool:
    if not isinstance(port, dict):
        return False
    lo, hi = port.get("min"), port.get("max")
    if not is_number(lo) or not is_number(hi):
        return False
    return hi != UNLIMITED and lo > hi


def check_block_draft(block: Dict[str, Any]) -> List[str]:
    """
    Editor save check. Returns messages for the edit form; empty list means savable.
    Property positions are reported 1-based, as shown in the form.
    """
    errors: List[str] = []

    bid = block.get("id")
    if not bid:
        errors.append("Block ID is required")
    if not block.get("name"):
        errors.append("Block name is required")
    if not isinstance(bid, str) or not SLUG_RE.fullmatch(bid):
        errors.append(
            "Block ID must start with lowercase letter and contain only "
            "lowercase letters, numbers, and underscores"
        )

    if _port_inverted(block.get("inputs")):
        errors.append("Inputs min cannot be greater than max")
    if _port_inverted(block.get("outputs")):
        errors.append("Outputs min cannot be greater than max")

    for idx, prop in enumerate(block.get("properties") or [], start=1):
        if not isinstance(prop, dict):
            errors.append(f"Property {idx}: Must be an object")
            continue
        key = prop.get("key")
        if not key:
            errors.append(f"Property {idx}: Key is required")
        if not prop.get("label"):
            errors.append(f"Property {idx}: Label is required")
        if not isinstance(key, str) or not SLUG_RE.fullmatch(key):
            errors.append(f"Property {idx}: Key must be lowercase with underscores")

    return errors


def save_block(
    block_types: Dict[str, Any],
    block: Dict[str, Any],
    selected_id: Optional[str] = None,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Store `block` in a copy of `block_types`.

    `selected_id` is the id the block was opened under (None for a new
    block). Renaming drops the old entry. On any error the original mapping
    is returned together with the messages.
    """
    errors = check_block_draft(block)
    if errors:
        return block_types, errors

    bid = block["id"]
    if bid != selected_id and bid in block_types:
        return block_types, [f'Block ID "{bid}" already exists']

    updated = dict(block_types)
    if selected_id and selected_id != bid:
        updated.pop(selected_id, None)
        logger.info("renamed block %s -> %s", selected_id, bid)
    updated[bid] = copy.deepcopy(block)
    return updated, []


def delete_block(block_types: Dict[str, Any], block_id: str) -> Dict[str, Any]:
    updated = dict(block_types)
    del updated[block_id]
    return updated


def export_catalog(block_types: Dict[str, Any], system_variables: Optional[List[Any]] = None) -> Dict[str, Any]:
    return {
        "blockTypes": copy.deepcopy(block_types),
        "systemVariables": copy.deepcopy(system_variables or []),
    }


def import_catalog(data: Any) -> Dict[str, Any]:
    """Pull the blockTypes mapping out of an imported document."""
    if not isinstance(data, dict) or not isinstance(data.get("blockTypes"), dict):
        raise CatalogLoadError("Invalid format")
    logger.info("imported %d block(s)", len(data["blockTypes"]))
    return copy.deepcopy(data["blockTypes"])
