"""Type-map configuration loading."""

import json
import os
from collections.abc import Collection
from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin

from .types import WIRE_KINDS, StructField, StructLayout, TypeCategory

DEFAULT_TYPE_MAP = os.path.join(os.path.dirname(__file__), "data", "type-map.json")

# Configured tables in classification priority order. A base type listed in
# several tables resolves to the first one.
TABLE_PRIORITY = (
    TypeCategory.STRING,
    TypeCategory.MANAGED_HANDLE,
    TypeCategory.HANDLE,
    TypeCategory.PRIMITIVE,
    TypeCategory.STRUCT,
    TypeCategory.ENUM,
)


class ConfigError(RuntimeError):
    """Raised when the type map cannot be loaded or is invalid."""


@dataclass
class StringConversion(DataClassJsonMixin):
    """Native expressions converting an owned string type from/to the wire.

    `{value}` is replaced by the wire string expression (from_wire) or by the
    native variable (to_wire).
    """

    from_wire: str
    to_wire: str


@dataclass
class DialectConfig(DataClassJsonMixin):
    """Conventions of the declaration dialect and of the generated code."""

    suite_prefix: str = "AI"
    suite_suffix: str = "Suite"
    error_types: list[str] = field(default_factory=lambda: ["AIErr", "ASErr"])
    no_error: str = "kNoErr"
    strip_macros: list[str] = field(default_factory=lambda: ["AIAPI"])
    reserved_prefix: str = "_"
    namespace: str = "Flora"
    reserved_function_names: list[str] = field(
        default_factory=lambda: [
            "FractToFloat",
            "FloatToFract",
            "FixedToFloat",
            "FloatToFixed",
            "FixRatio",
            "FixMul",
            "FixDiv",
            "FixRound",
        ]
    )
    reserved_name_prefix: str = "AI_"
    sdk_include: str = "IllustratorSDK.h"
    registry_include: str = "HandleManager.hpp"
    registry_accessor: str = "HandleManager::{key}"
    errors_include: str = "SuiteError.hpp"
    string_buffer_size: int = 1024
    transport_import: str = "@/sdk/bridge"
    transport_function: str = "callCpp"
    callback_markers: list[str] = field(default_factory=lambda: ["Proc"])

    @property
    def error_type(self) -> str:
        """The canonical error-code type."""
        return self.error_types[0]

    def short_name(self, suite_name: str) -> str:
        short = suite_name
        if self.suite_prefix and short.startswith(self.suite_prefix):
            short = short[len(self.suite_prefix) :]
        if self.suite_suffix and short.endswith(self.suite_suffix):
            short = short[: -len(self.suite_suffix)]
        return short


DEFAULT_STRUCT_LAYOUTS: dict[str, StructLayout] = {
    "AIRealRect": StructLayout(
        name="AIRealRect",
        description="Rectangle structure for bounds and regions",
        fields=(
            StructField("left"),
            StructField("top"),
            StructField("right"),
            StructField("bottom"),
        ),
    ),
    "AIRealPoint": StructLayout(
        name="AIRealPoint",
        description="Point structure for coordinates",
        fields=(StructField("h"), StructField("v")),
    ),
    "AIRealMatrix": StructLayout(
        name="AIRealMatrix",
        description="Transformation matrix structure",
        fields=(
            StructField("a"),
            StructField("b"),
            StructField("c"),
            StructField("d"),
            StructField("tx"),
            StructField("ty"),
        ),
    ),
}

DEFAULT_STRING_CONVERSIONS: dict[str, StringConversion] = {
    "ai::UnicodeString": StringConversion(
        from_wire="ai::UnicodeString({value})", to_wire="{value}.as_UTF8()"
    ),
    "ai::FilePath": StringConversion(
        from_wire="ai::FilePath(ai::UnicodeString({value}))",
        to_wire="{value}.GetFullPath().as_UTF8()",
    ),
}


@dataclass
class TypeMapConfig(DataClassJsonMixin):
    """Declarative table partitioning native base types into categories.

    This is the single source of truth consulted by the classifier. The
    `struct_fields` entries are `{"StructName": [["field", "wire_kind"], ...]}`.
    """

    handles: dict[str, str] = field(default_factory=dict)
    managed_handles: dict[str, str] = field(default_factory=dict)
    primitives: dict[str, str] = field(default_factory=dict)
    structs: dict[str, str] = field(default_factory=dict)
    string_types: list[str] = field(default_factory=list)
    ignored_types: list[str] = field(default_factory=list)
    enums: list[str] = field(default_factory=list)
    boolean_types: list[str] = field(default_factory=lambda: ["AIBoolean", "ASBoolean"])
    optional_handle_names: list[str] = field(
        default_factory=lambda: ["prep", "prepArt", "paintOrder", "parent", "newParent"]
    )
    blocked_functions: list[str] = field(default_factory=list)
    struct_fields: dict[str, list[list[str]]] = field(default_factory=dict)
    string_conversions: dict[str, StringConversion] = field(default_factory=dict)
    dialect: DialectConfig = field(default_factory=DialectConfig)

    def __post_init__(self) -> None:
        for base, kind in self.primitives.items():
            if kind not in WIRE_KINDS:
                raise ConfigError(f"Primitive {base} maps to unknown wire kind '{kind}'")
        for name, fields in self.struct_fields.items():
            for entry in fields:
                if len(entry) != 2 or entry[1] not in WIRE_KINDS:
                    raise ConfigError(f"Invalid field entry {entry!r} for struct {name}")

    def struct_layout(self, name: str) -> StructLayout | None:
        """Look up the field layout of a struct, None if it is opaque."""
        if name in self.struct_fields:
            return StructLayout(
                name=name,
                description=f"{name} structure",
                fields=tuple(StructField(f, kind) for f, kind in self.struct_fields[name]),
            )
        return DEFAULT_STRUCT_LAYOUTS.get(name)

    def string_conversion(self, name: str) -> StringConversion:
        if name in self.string_conversions:
            return self.string_conversions[name]
        if name in DEFAULT_STRING_CONVERSIONS:
            return DEFAULT_STRING_CONVERSIONS[name]
        return StringConversion(from_wire=f"{name}({{value}})", to_wire="{value}.as_UTF8()")

    def table(self, category: TypeCategory) -> Collection[str]:
        """The configured names of a category's table."""
        tables: dict[TypeCategory, Collection[str]] = {
            TypeCategory.STRING: self.string_types,
            TypeCategory.MANAGED_HANDLE: self.managed_handles,
            TypeCategory.HANDLE: self.handles,
            TypeCategory.PRIMITIVE: self.primitives,
            TypeCategory.STRUCT: self.structs,
            TypeCategory.ENUM: self.enums,
        }
        return tables.get(category, ())

    def tables_for(self, base: str) -> list[TypeCategory]:
        """Every category whose table lists `base`, in priority order."""
        return [c for c in TABLE_PRIORITY if base in self.table(c)]

    def conflicts(self) -> dict[str, list[TypeCategory]]:
        """Base types listed in more than one table.

        The first category of each entry is the one the classifier picks.
        """
        names: set[str] = set()
        for category in TABLE_PRIORITY:
            names.update(self.table(category))
        result = {}
        for name in sorted(names):
            tables = self.tables_for(name)
            if len(tables) > 1:
                result[name] = tables
        return result


# Sections of a type map file and the JSON shape each must have
_SECTION_SHAPES = {
    "handles": dict,
    "managed_handles": dict,
    "primitives": dict,
    "structs": dict,
    "string_types": list,
    "ignored_types": list,
    "enums": list,
    "boolean_types": list,
    "optional_handle_names": list,
    "blocked_functions": list,
    "struct_fields": dict,
    "string_conversions": dict,
    "dialect": dict,
}


def _check_sections(data: dict) -> None:
    for section, shape in _SECTION_SHAPES.items():
        if section in data and not isinstance(data[section], shape):
            kind = "an object" if shape is dict else "a list"
            raise ConfigError(f"Section '{section}' must be {kind}")


def load_type_map(path: str | None = None) -> TypeMapConfig:
    """Load a type map from a JSON file, the bundled default if path is None."""
    path = path or DEFAULT_TYPE_MAP
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read type map {path}: {e.strerror}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in type map {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Type map {path} must contain a JSON object")

    try:
        _check_sections(data)
        return TypeMapConfig.from_dict(data)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid type map {path}: {e}") from e
