"""Type definitions for suite extraction and code generation."""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin


class TypeCategory(StrEnum):
    """Marshaling category of a native type."""

    HANDLE = "Handle"
    MANAGED_HANDLE = "ManagedHandle"
    PRIMITIVE = "Primitive"
    STRING = "String"
    STRUCT = "Struct"
    ENUM = "Enum"
    ERROR = "Error"
    VOID = "Void"
    UNKNOWN = "Unknown"


class StringKind(StrEnum):
    """Native representation of a String category type."""

    OWNED = auto()  # Constructed/exported through a string class
    C_STRING = auto()  # Raw char pointer


class Optionality(StrEnum):
    """Whether a handle parameter may be absent at the call site."""

    REQUIRED = auto()
    OPTIONAL = auto()
    UNKNOWN = auto()  # Not a handle, the question does not apply


class ParameterShape(StrEnum):
    """Declarator shape recognised by the extractor.

    Only SIMPLE parameters are extracted exactly; the others are flagged so
    the function can be excluded instead of mis-marshaled.
    """

    SIMPLE = auto()
    ARRAY = auto()
    FUNCTION_POINTER = auto()
    DEFAULT_VALUE = auto()


@dataclass(frozen=True)
class TypeClassification(DataClassJsonMixin):
    """Result of classifying a raw native type.

    `base_type` is the type with const/pointer/reference tokens removed and
    is what generated code uses to declare native locals.
    """

    raw: str
    base_type: str
    category: TypeCategory
    is_pointer: bool = False
    is_const: bool = False
    is_reference: bool = False
    registry_key: str | None = None
    wire_kind: str | None = None
    string_kind: StringKind | None = None

    @property
    def is_handle(self) -> bool:
        return self.category == TypeCategory.HANDLE

    @property
    def is_boolean(self) -> bool:
        return self.wire_kind == "bool"


@dataclass(frozen=True)
class ParameterDescriptor(DataClassJsonMixin):
    """A parameter of a suite function, in native call order."""

    name: str
    type: str
    is_pointer: bool = False
    is_const: bool = False
    is_reference: bool = False
    pointer_depth: int = 0
    shape: ParameterShape = ParameterShape.SIMPLE
    optionality: Optionality = Optionality.UNKNOWN
    classification: TypeClassification | None = None

    @property
    def is_output(self) -> bool:
        return self.is_pointer and not self.is_const

    @property
    def spelled_type(self) -> str:
        """The type as written, with the declarator sigils re-attached."""
        sigils = "*" * self.pointer_depth + ("&" if self.is_reference else "")
        return f"{self.type}{sigils}" if sigils else self.type

    @property
    def category(self) -> TypeCategory:
        if self.classification is None:
            return TypeCategory.UNKNOWN
        return self.classification.category

    @property
    def is_optional(self) -> bool:
        return self.optionality == Optionality.OPTIONAL


@dataclass(frozen=True)
class FunctionDescriptor(DataClassJsonMixin):
    """A function pointer slot of a suite."""

    name: str
    return_type: str
    suite_name: str
    params: tuple[ParameterDescriptor, ...] = ()

    @property
    def inputs(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.params if not p.is_output)

    @property
    def outputs(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.params if p.is_output)


@dataclass(frozen=True)
class SuiteDescriptor(DataClassJsonMixin):
    """A table of native function pointers."""

    name: str
    functions: tuple[FunctionDescriptor, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class StructField(DataClassJsonMixin):
    """A field of a well-known struct, with its wire kind."""

    name: str
    wire_kind: str = "double"


@dataclass(frozen=True)
class StructLayout(DataClassJsonMixin):
    """Field-by-field layout used for struct marshaling."""

    name: str
    fields: tuple[StructField, ...]
    description: str = ""

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True)
class GeneratedFile:
    """A file produced by a generator."""

    filename: str
    content: str


# Wire kinds accepted for primitives and struct fields. These are the C++
# types used to extract values from the JSON request.
WIRE_KINDS = frozenset(
    [
        "bool",
        "int8_t",
        "int16_t",
        "int32_t",
        "int64_t",
        "uint8_t",
        "uint16_t",
        "uint32_t",
        "uint64_t",
        "float",
        "double",
    ]
)
