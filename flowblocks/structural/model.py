# flowblocks/structural/model.py
"""
Typed view of a catalog that already passed `validate`.

Properties are a tagged variant on `type`: each property type gets its own
dataclass holding only the fields that type understands, so
"query is required for select_database" is a constructor argument rather
than an optional dict key.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from .schema import UNLIMITED


class CatalogModelError(ValueError):
    """Raised when a value cannot be turned into the typed model."""


@dataclass(frozen=True)
class SelectOption:
    value: Any
    label: str

    @classmethod
    def from_raw(cls, raw: Any) -> "SelectOption":
        # bare strings are shorthand for {value: s, label: s}
        if isinstance(raw, dict):
            value = raw.get("value")
            return cls(value=value, label=str(raw.get("label", value)))
        return cls(value=raw, label=str(raw))

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class OptionGroup:
    label: str
    options: List[SelectOption]


@dataclass(frozen=True)
class QuerySource:
    query: str
    value_field: str
    label_field: str
    preview_field: Optional[str] = None
    property_type: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "QuerySource":
        return cls(
            query=raw["query"],
            value_field=raw["valueField"],
            label_field=raw["labelField"],
            preview_field=raw.get("previewField"),
            property_type=raw.get("propertyType"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {"query": self.query, "valueField": self.value_field, "labelField": self.label_field}
        if self.preview_field:
            out["previewField"] = self.preview_field
        if self.property_type:
            out["propertyType"] = self.property_type
        return out


@dataclass(frozen=True)
class QueryGroup(QuerySource):
    label: str = ""

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "QueryGroup":
        return cls(
            label=raw["label"],
            query=raw["query"],
            value_field=raw["valueField"],
            label_field=raw["labelField"],
            preview_field=raw.get("previewField"),
            property_type=raw.get("propertyType"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, **super().to_dict()}


@dataclass(kw_only=True)
class PropertyBase:
    TYPES: ClassVar[tuple] = ()

    key: str
    label: str = ""
    type: str
    required: bool = False
    show_predefined_variables: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"key": self.key, "label": self.label, "type": self.type}
        if self.required:
            out["required"] = True
        if self.show_predefined_variables:
            out["showPredefinedVariables"] = True
        out.update(self._payload())
        out.update(self.extra)
        return out

    def _payload(self) -> Dict[str, Any]:
        return {}


@dataclass(kw_only=True)
class TextProperty(PropertyBase):
    TYPES: ClassVar[tuple] = ("text", "textarea")

    placeholder: Optional[str] = None
    default: Optional[str] = None

    def _payload(self):
        return _compact({"placeholder": self.placeholder, "default": self.default})


@dataclass(kw_only=True)
class NumberProperty(PropertyBase):
    TYPES: ClassVar[tuple] = ("number",)

    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    default: Optional[float] = None

    def _payload(self):
        return _compact({"min": self.min, "max": self.max, "step": self.step, "default": self.default})


@dataclass(kw_only=True)
class BooleanProperty(PropertyBase):
    TYPES: ClassVar[tuple] = ("boolean",)

    default: Optional[bool] = None

    def _payload(self):
        return _compact({"default": self.default})


@dataclass(kw_only=True)
class SelectProperty(PropertyBase):
    TYPES: ClassVar[tuple] = ("select",)

    options: List[SelectOption] = field(default_factory=list)
    groups: List[OptionGroup] = field(default_factory=list)
    searchable: bool = False

    def _payload(self):
        out: Dict[str, Any] = {}
        if self.groups:
            out["groups"] = [
                {"label": g.label, "options": [o.to_dict() for o in g.options]} for g in self.groups
            ]
        else:
            out["options"] = [o.to_dict() for o in self.options]
        if self.searchable:
            out["searchable"] = True
        return out


@dataclass(kw_only=True)
class DatabaseSelectProperty(PropertyBase):
    TYPES: ClassVar[tuple] = ("select_database",)

    source: Union[QuerySource, List[QueryGroup]]
    depends_on: Optional[str] = None
    dependency_optional: bool = False
    disabled_placeholder: Optional[str] = None
    options: List[SelectOption] = field(default_factory=list)
    searchable: bool = False

    @property
    def grouped(self) -> bool:
        return isinstance(self.source, list)

    def _payload(self):
        if self.grouped:
            out: Dict[str, Any] = {"groups": [g.to_dict() for g in self.source]}
        else:
            out = self.source.to_dict()
        out.update(_compact({
            "dependsOn": self.depends_on,
            "disabledPlaceholder": self.disabled_placeholder,
        }))
        if self.dependency_optional:
            out["dependencyOptional"] = True
        if self.options:
            out["options"] = [o.to_dict() for o in self.options]
        if self.searchable:
            out["searchable"] = True
        return out


Property = Union[TextProperty, NumberProperty, BooleanProperty, SelectProperty, DatabaseSelectProperty]

_VARIANTS = (TextProperty, NumberProperty, BooleanProperty, SelectProperty, DatabaseSelectProperty)
PROPERTY_CLASSES: Dict[str, type] = {t: cls for cls in _VARIANTS for t in cls.TYPES}


@dataclass(frozen=True)
class PortSpec:
    min: int
    max: int
    labels: List[str]
    mode: Optional[str] = None

    @property
    def unlimited(self) -> bool:
        return self.max == UNLIMITED

    @property
    def dynamic(self) -> bool:
        return self.mode == "dynamic"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"min": self.min, "max": self.max, "labels": list(self.labels)}
        if self.mode:
            out["mode"] = self.mode
        return out


@dataclass
class BlockType:
    id: str
    name: str
    category: str
    icon: str
    color: str
    inputs: PortSpec
    outputs: PortSpec
    properties: List[Property] = field(default_factory=list)

    def get_property(self, key: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.key == key:
                return prop
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "icon": self.icon,
            "color": self.color,
            "inputs": self.inputs.to_dict(),
            "outputs": self.outputs.to_dict(),
            "properties": [p.to_dict() for p in self.properties],
        }


@dataclass(frozen=True)
class SystemVariable:
    key: str
    description: str = ""

    @property
    def name(self) -> str:
        """Key without the surrounding braces."""
        return self.key.removeprefix("{{").removesuffix("}}")


@dataclass
class Catalog:
    block_types: Dict[str, BlockType] = field(default_factory=dict)
    system_variables: List[SystemVariable] = field(default_factory=list)

    def categories(self) -> Dict[str, List[str]]:
        """Block ids grouped by category, in catalog order."""
        grouped: Dict[str, List[str]] = {}
        for block_id, block in self.block_types.items():
            grouped.setdefault(block.category, []).append(block_id)
        return grouped

    def property_type_counts(self) -> Dict[str, int]:
        counts = Counter(p.type for b in self.block_types.values() for p in b.properties)
        return dict(counts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blockTypes": {bid: b.to_dict() for bid, b in self.block_types.items()},
            "systemVariables": [
                {"key": v.key, "description": v.description} for v in self.system_variables
            ],
        }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_COMMON_KEYS = {"key", "label", "type", "required", "showPredefinedVariables"}

# document field -> dataclass field, per variant
_FIELD_MAP: Dict[type, Dict[str, str]] = {
    TextProperty: {"placeholder": "placeholder", "default": "default"},
    NumberProperty: {"min": "min", "max": "max", "step": "step", "default": "default"},
    BooleanProperty: {"default": "default"},
    SelectProperty: {"searchable": "searchable"},
    DatabaseSelectProperty: {
        "dependsOn": "depends_on",
        "dependencyOptional": "dependency_optional",
        "disabledPlaceholder": "disabled_placeholder",
        "searchable": "searchable",
    },
}

# consumed by the variant but not through _FIELD_MAP
_STRUCTURED_KEYS: Dict[type, set] = {
    SelectProperty: {"options", "groups"},
    DatabaseSelectProperty: {
        "options", "groups", "query", "valueField", "labelField", "previewField", "propertyType",
    },
}


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def parse_property(raw: Dict[str, Any]) -> Property:
    if not isinstance(raw, dict):
        raise CatalogModelError(f"property must be an object, got {type(raw).__name__}")
    ptype = raw.get("type")
    cls = PROPERTY_CLASSES.get(ptype) if isinstance(ptype, str) else None
    if cls is None:
        raise CatalogModelError(f"unknown property type {ptype!r} for key {raw.get('key')!r}")

    kwargs: Dict[str, Any] = {
        "key": raw["key"],
        "label": raw.get("label", ""),
        "type": ptype,
        "required": bool(raw.get("required", False)),
        "show_predefined_variables": bool(raw.get("showPredefinedVariables", False)),
    }
    fields = _FIELD_MAP[cls]
    for doc_name, attr in fields.items():
        if doc_name in raw:
            kwargs[attr] = raw[doc_name]

    try:
        if cls is SelectProperty:
            kwargs["options"] = [SelectOption.from_raw(o) for o in raw.get("options") or []]
            kwargs["groups"] = [
                OptionGroup(label=g["label"], options=[SelectOption.from_raw(o) for o in g["options"]])
                for g in raw.get("groups") or []
            ]
        elif cls is DatabaseSelectProperty:
            if isinstance(raw.get("groups"), list):
                kwargs["source"] = [QueryGroup.from_raw(g) for g in raw["groups"]]
            else:
                kwargs["source"] = QuerySource.from_raw(raw)
            kwargs["options"] = [SelectOption.from_raw(o) for o in raw.get("options") or []]
    except (KeyError, TypeError) as e:
        raise CatalogModelError(f"property {raw.get('key')!r}: malformed {ptype} definition ({e})") from e

    known = _COMMON_KEYS | set(fields) | _STRUCTURED_KEYS.get(cls, set())
    kwargs["extra"] = {k: v for k, v in raw.items() if k not in known}
    return cls(**kwargs)


def parse_port(raw: Dict[str, Any]) -> PortSpec:
    try:
        return PortSpec(min=raw["min"], max=raw["max"], labels=list(raw["labels"]), mode=raw.get("mode"))
    except (KeyError, TypeError) as e:
        raise CatalogModelError(f"malformed port spec ({e})") from e


def parse_block(block_id: str, raw: Dict[str, Any]) -> BlockType:
    """The catalog key wins over raw['id']."""
    try:
        return BlockType(
            id=block_id,
            name=raw["name"],
            category=raw["category"],
            icon=raw["icon"],
            color=raw["color"],
            inputs=parse_port(raw["inputs"]),
            outputs=parse_port(raw["outputs"]),
            properties=[parse_property(p) for p in raw["properties"]],
        )
    except (KeyError, TypeError) as e:
        raise CatalogModelError(f"block {block_id!r}: missing or malformed field ({e})") from e


def parse_catalog(raw: Dict[str, Any]) -> Catalog:
    if not isinstance(raw, dict) or not isinstance(raw.get("blockTypes"), dict):
        raise CatalogModelError("catalog must be an object with a 'blockTypes' object")
    variables = [
        SystemVariable(key=v["key"], description=v.get("description", ""))
        for v in raw.get("systemVariables") or []
    ]
    return Catalog(
        block_types={bid: parse_block(bid, b) for bid, b in raw["blockTypes"].items()},
        system_variables=variables,
    )
