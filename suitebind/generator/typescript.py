"""TypeScript client stub generator for suites."""

import re
from dataclasses import dataclass

from jinja2 import Environment, PackageLoader

from .classifier import TypeClassifier
from .model import FunctionModel, ResultShape, SuiteModel, build_suite_model
from .types import GeneratedFile, ParameterDescriptor, SuiteDescriptor, TypeCategory, TypeClassification
from .util import camel_to_words, describe_function, describe_value

env = Environment(
    loader=PackageLoader("suitebind.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("client.ts.j2")

NUMERIC_WIRE_TYPES = {
    TypeCategory.HANDLE: "number",
    TypeCategory.MANAGED_HANDLE: "number",
    TypeCategory.ENUM: "number",
    TypeCategory.ERROR: "number",
    TypeCategory.STRING: "string",
    TypeCategory.VOID: "void",
    TypeCategory.UNKNOWN: "unknown",
}

# Identifiers that cannot name a TypeScript parameter
RESERVED_WORDS = frozenset(
    "break case catch class const continue debugger default delete do else enum export "
    "extends false finally for function if import in instanceof new null return super "
    "switch this throw true try typeof var void while with".split()
)


def interface_name(base_type: str) -> str:
    """TypeScript identifier for a struct: "ai::Rect" -> "ai_Rect"."""
    return re.sub(r"\W+", "_", base_type)


def ts_type(classification: TypeClassification | None, optional: bool = False) -> str:
    """Map a classification to the client-side wire type."""
    if classification is None:
        return "unknown"
    category = classification.category
    if category == TypeCategory.PRIMITIVE:
        return "boolean" if classification.is_boolean else "number"
    if category == TypeCategory.STRUCT:
        return interface_name(classification.base_type)
    wire = NUMERIC_WIRE_TYPES[category]
    if optional and category == TypeCategory.HANDLE:
        return f"{wire} | null"
    return wire


def param_identifier(param: ParameterDescriptor) -> str:
    return f"{param.name}_" if param.name in RESERVED_WORDS else param.name


@dataclass
class ClientParam:
    name: str
    identifier: str
    type: str
    description: str

    @property
    def declaration(self) -> str:
        return f"{self.identifier}: {self.type}"

    @property
    def field(self) -> str:
        if self.name == self.identifier:
            return self.name
        return f"{self.name}: {self.identifier}"


@dataclass
class ClientFunction:
    name: str
    description: str
    params: list[ClientParam]
    shape: ResultShape
    return_type: str
    response_type: str
    unwrap: str | None
    return_description: str

    @property
    def param_list(self) -> str:
        return ", ".join(p.declaration for p in self.params)

    @property
    def call_params(self) -> str:
        if not self.params:
            return "{}"
        return "{ " + ", ".join(p.field for p in self.params) + " }"


def _record_type(fields: list[tuple[str, str]]) -> str:
    return "{ " + "; ".join(f"{name}: {type_}" for name, type_ in fields) + " }"


def _return_description(func: FunctionModel, fields: list[tuple[str, str]]) -> str:
    shape = func.shape
    if shape == ResultShape.NONE:
        return ""
    if shape == ResultShape.RECORD:
        return "An object containing: " + ", ".join(name for name, _ in fields)
    if shape == ResultShape.DIRECT and func.returns.is_handle:
        return f"Handle ID for the returned {func.returns.base_type}"
    name, type_ = fields[0]
    if shape == ResultShape.DIRECT and type_ != "boolean":
        return f"The {func.function.return_type} value"
    return describe_value(name, type_)


def client_function(func: FunctionModel) -> ClientFunction:
    params = [
        ClientParam(
            name=p.name,
            identifier=param_identifier(p),
            type=ts_type(p.classification, p.is_optional),
            description=describe_value(p.name, ts_type(p.classification)),
        )
        for p in func.inputs
    ]
    fields = [(f.name, ts_type(f.classification)) for f in func.result_fields]

    shape = func.shape
    if shape == ResultShape.NONE:
        return_type, response_type, unwrap = "void", None, None
    elif shape == ResultShape.RECORD:
        return_type = response_type = _record_type(fields)
        unwrap = None
    else:
        name, type_ = fields[0]
        return_type, response_type, unwrap = type_, _record_type(fields), name

    return ClientFunction(
        name=func.name,
        description=describe_function(func.name),
        params=params,
        shape=shape,
        return_type=return_type,
        response_type=response_type,
        unwrap=unwrap,
        return_description=_return_description(func, fields),
    )


def struct_interfaces(model: SuiteModel) -> list[dict]:
    """Interfaces for the structs referenced by the suite, sorted by name."""
    interfaces = []
    for name in model.referenced_structs:
        layout = model.config.struct_layout(name)
        if layout is None:
            interfaces.append(
                {
                    "name": interface_name(name),
                    "description": f"{camel_to_words(name)} (opaque)",
                    "fields": [("data", "unknown")],
                }
            )
            continue
        fields = [(f.name, "boolean" if f.wire_kind == "bool" else "number") for f in layout.fields]
        interfaces.append(
            {"name": interface_name(name), "description": layout.description or name, "fields": fields}
        )
    return interfaces


def render(model: SuiteModel) -> GeneratedFile:
    """Render a suite model to a TypeScript client module."""
    dialect = model.config.dialect
    content = template.render(
        model=model,
        dialect=dialect,
        structs=struct_interfaces(model),
        functions=[client_function(f) for f in model.functions],
    )
    return GeneratedFile(f"{model.name}.ts", content)


def generate(suite: SuiteDescriptor, classifier: TypeClassifier) -> GeneratedFile:
    return render(build_suite_model(suite, classifier))
