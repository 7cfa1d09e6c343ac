import copy
import json
from pathlib import Path

import pytest

BENCH_DIR = Path(__file__).resolve().parent.parent / "bench" / "catalog"


def make_block(block_id="b1", **overrides):
    block = {
        "id": block_id,
        "name": block_id.upper(),
        "category": "custom",
        "icon": "x",
        "color": "#6366F1",
        "inputs": {"min": 0, "max": 1, "labels": []},
        "outputs": {"min": 0, "max": 1, "labels": []},
        "properties": [],
    }
    block.update(overrides)
    return block


def catalog_with(*properties, block_id="b1"):
    """Single-block catalog holding the given properties."""
    return {"blockTypes": {block_id: make_block(block_id, properties=list(properties))}}


@pytest.fixture
def full_catalog():
    with (BENCH_DIR / "C03_valid_full" / "catalog.json").open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def broken_catalog():
    with (BENCH_DIR / "C04_broken_gate" / "catalog.json").open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def block_factory():
    return lambda *args, **kwargs: copy.deepcopy(make_block(*args, **kwargs))
