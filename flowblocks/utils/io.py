# utils/io.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union

import yaml
from jsonschema import ValidationError, validate

from flowblocks.structural.schema import CATALOG_ROOT_SCHEMA
from flowblocks.utils.logger import get_logger

logger = get_logger("io")

PathLike = Union[str, Path]


class CatalogLoadError(ValueError):
    """The catalog could not be read or is not an object at the top level."""


def to_path(p: PathLike) -> Path:
    """Convert string-like to pathlib.Path."""
    return p if isinstance(p, Path) else Path(p)


def ensure_parent(path: PathLike) -> Path:
    """Ensure parent directory exists for a file path."""
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def read_json(path: PathLike) -> Any:
    """Load JSON file with UTF-8."""
    with to_path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: PathLike, data: Any, indent: int = 2) -> Path:
    """Write JSON atomically, pretty-formatted."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
    tmp.replace(p)
    return p


def read_yaml(path: PathLike) -> Any:
    with to_path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_catalog(path: PathLike) -> dict:
    """
    Load a block-definitions catalog from .json or .yaml/.yml.

    Raises CatalogLoadError when the file is missing, cannot be parsed, or
    its top level is not an object. Everything below the top level is left
    to the validator.
    """
    p = to_path(path)
    if not p.is_file():
        raise CatalogLoadError(f"File not found: {p}")

    suf = p.suffix.lower()
    try:
        if suf in (".yaml", ".yml"):
            data = read_yaml(p)
        elif suf == ".json":
            data = read_json(p)
        else:
            raise CatalogLoadError(f"Unsupported extension: {suf} for {p}")
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Failed to parse JSON: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogLoadError(f"Failed to parse YAML: {e}") from e
    except UnicodeDecodeError as e:
        raise CatalogLoadError(f"Catalog is not UTF-8 text: {e}") from e

    try:
        validate(instance=data, schema=CATALOG_ROOT_SCHEMA)
    except ValidationError as e:
        raise CatalogLoadError(f"Catalog root must be an object: {e.message}") from e

    logger.info("loaded catalog %s (%d top-level keys)", p, len(data))
    return data
