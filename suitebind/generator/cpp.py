"""Native (C++) wrapper generator for suites."""

from jinja2 import Environment, PackageLoader

from .classifier import TypeClassifier
from .config import TypeMapConfig
from .model import FunctionModel, ReturnConvention, SuiteModel, build_suite_model
from .types import (
    GeneratedFile,
    ParameterDescriptor,
    StringKind,
    SuiteDescriptor,
    TypeCategory,
    TypeClassification,
)

env = Environment(
    loader=PackageLoader("suitebind.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

header_template = env.get_template("wrapper.h.j2")
source_template = env.get_template("wrapper.cpp.j2")


def wrapper_basename(model: SuiteModel) -> str:
    return f"{model.config.dialect.namespace}{model.name}Wrapper"


def suite_global(model: SuiteModel) -> str:
    """Name of the extern suite pointer the host fills in."""
    return f"s{model.short_name}"


def _registry(classification: TypeClassification, config: TypeMapConfig) -> str:
    return config.dialect.registry_accessor.format(key=classification.registry_key)


def _request(param: ParameterDescriptor) -> str:
    return f'params["{param.name}"]'


def unmarshal_input(param: ParameterDescriptor, config: TypeMapConfig) -> list[str]:
    """Lines converting a request field into a native local."""
    c = param.classification
    name = param.name
    value = _request(param)
    category = param.category

    if category == TypeCategory.HANDLE:
        registry = _registry(c, config)
        if param.is_optional:
            return [
                f"// Input handle (optional): {name}",
                f"{c.base_type} {name}_val = nullptr;",
                f'if (params.contains("{name}") && !{value}.is_null()) {{',
                f"    int32_t {name}_id = {value}.get<int32_t>();",
                f"    if ({name}_id >= 0) {{",
                f"        {name}_val = {registry}.Get({name}_id);",
                "    }",
                "}",
            ]
        return [
            f"// Input handle: {name}",
            f"{c.base_type} {name}_val = {registry}.Get({value}.get<int32_t>());",
            f"if (!{name}_val) {{",
            f'    throw std::runtime_error("Invalid {c.base_type} handle for parameter \'{name}\'");',
            "}",
        ]

    if category == TypeCategory.MANAGED_HANDLE:
        return [
            f"// Input managed handle: {name}",
            f"auto* {name}_ptr = {_registry(c, config)}.Get({value}.get<int32_t>());",
            f"if (!{name}_ptr) {{",
            f'    throw std::runtime_error("Invalid {c.base_type} handle for parameter \'{name}\'");',
            "}",
        ]

    if category == TypeCategory.STRING:
        if c.string_kind == StringKind.C_STRING:
            return [
                f"std::string {name}_str = {value}.get<std::string>();",
                f"const char* {name} = {name}_str.c_str();",
            ]
        conversion = config.string_conversion(c.base_type)
        expr = conversion.from_wire.format(value=f"{value}.get<std::string>()")
        return [f"{c.base_type} {name} = {expr};"]

    if category == TypeCategory.PRIMITIVE:
        return [f"{c.base_type} {name} = static_cast<{c.base_type}>({value}.get<{c.wire_kind}>());"]

    if category == TypeCategory.STRUCT:
        layout = config.struct_layout(c.base_type)
        if layout is None:
            return [
                f"// WARNING: Unknown struct type {c.base_type}, fields not unmarshaled",
                f"{c.base_type} {name}{{}};",
            ]
        lines = [f"{c.base_type} {name}{{}};"]
        for f in layout.fields:
            lines.append(f'{name}.{f.name} = {value}["{f.name}"].get<{f.wire_kind}>();')
        return lines

    if category in (TypeCategory.ENUM, TypeCategory.ERROR):
        lines = []
        if category == TypeCategory.ERROR:
            lines.append(f"// WARNING: error code passed as input: {name}")
        lines.append(f"{c.base_type} {name} = static_cast<{c.base_type}>({value}.get<int32_t>());")
        return lines

    if category == TypeCategory.VOID:
        return [f"// WARNING: void parameter {name} is passed as null", f"void* {name} = nullptr;"]

    return [
        f"// WARNING: Unknown type {param.type}, using default initialization",
        f"{param.type} {name}{{}};",
    ]


def declare_output(param: ParameterDescriptor, config: TypeMapConfig) -> list[str]:
    """Lines declaring the native local an output parameter writes into."""
    c = param.classification
    name = param.name
    category = param.category

    if category == TypeCategory.HANDLE:
        return [f"{c.base_type} {name} = nullptr;"]
    if category == TypeCategory.STRING and c.string_kind == StringKind.C_STRING:
        if param.pointer_depth > 1:
            return [f"char* {name} = nullptr;"]
        return [f"char {name}[{config.dialect.string_buffer_size}];", f"{name}[0] = '\\0';"]
    if category in (TypeCategory.MANAGED_HANDLE, TypeCategory.STRING):
        return [f"{c.base_type} {name};"]
    if category == TypeCategory.ERROR:
        return [f"{c.base_type} {name} = {config.dialect.no_error};"]
    if category == TypeCategory.UNKNOWN:
        base = c.base_type if c is not None else param.type
        return [f"// WARNING: Unknown output type {param.type}", f"{base} {name}{{}};"]
    return [f"{c.base_type} {name}{{}};"]


def marshal_value(
    classification: TypeClassification | None,
    var: str,
    key: str,
    config: TypeMapConfig,
    *,
    buffer: bool = False,
) -> list[str]:
    """Lines storing native `var` into `response[key]`."""
    target = f'response["{key}"]'
    if classification is None:
        return [f"// WARNING: Unable to marshal unknown type: {key}"]

    c = classification
    category = c.category

    if category == TypeCategory.HANDLE:
        return [
            f"if ({var}) {{",
            f"    {target} = {_registry(c, config)}.Register({var});",
            "} else {",
            f"    {target} = -1;",
            "}",
        ]
    if category == TypeCategory.MANAGED_HANDLE:
        return [f"{target} = {_registry(c, config)}.Register(std::move({var}));"]
    if category == TypeCategory.STRING:
        if c.string_kind == StringKind.C_STRING:
            if buffer:
                return [f"{target} = std::string({var});"]
            return [f'{target} = {var} ? std::string({var}) : "";']
        conversion = config.string_conversion(c.base_type)
        return [f"{target} = {conversion.to_wire.format(value=var)};"]
    if category == TypeCategory.PRIMITIVE:
        if c.is_boolean:
            return [f"{target} = static_cast<bool>({var});"]
        return [f"{target} = {var};"]
    if category == TypeCategory.STRUCT:
        layout = config.struct_layout(c.base_type)
        if layout is None:
            return [
                f"// WARNING: Unknown struct type {c.base_type}, fields not marshaled",
                f"{target} = nlohmann::json::object();",
            ]
        lines = [f"{target} = {{"]
        for f in layout.fields:
            member = f"{var}.{f.name}"
            if f.wire_kind == "bool":
                member = f"static_cast<bool>({member})"
            lines.append(f'    {{"{f.name}", {member}}},')
        lines.append("};")
        return lines
    if category in (TypeCategory.ENUM, TypeCategory.ERROR):
        return [f"{target} = static_cast<int32_t>({var});"]
    return [f"// WARNING: Unable to marshal unknown type: {key}"]


def marshal_output(param: ParameterDescriptor, config: TypeMapConfig) -> list[str]:
    c = param.classification
    if param.category == TypeCategory.UNKNOWN:
        return [f"// WARNING: Unable to marshal unknown type: {param.name}"]
    buffer = c.string_kind == StringKind.C_STRING and param.pointer_depth == 1
    return marshal_value(c, param.name, param.name, config, buffer=buffer)


def call_argument(param: ParameterDescriptor) -> str:
    """Expression passed to the native function for `param`."""
    name = param.name
    category = param.category
    c = param.classification

    if param.is_output:
        if category == TypeCategory.STRING and c.string_kind == StringKind.C_STRING:
            # A char buffer decays to char*, a char** takes the pointer's address
            return name if param.pointer_depth == 1 else f"&{name}"
        return f"&{name}"

    if category == TypeCategory.HANDLE:
        return f"&{name}_val" if param.is_pointer else f"{name}_val"
    if category == TypeCategory.MANAGED_HANDLE:
        return f"{name}_ptr" if param.is_pointer else f"*{name}_ptr"
    if category == TypeCategory.STRING and c.string_kind == StringKind.C_STRING:
        return name
    return f"&{name}" if param.is_pointer else name


def call_lines(func: FunctionModel, model: SuiteModel) -> list[str]:
    """The native call, with the error check or return capture."""
    dialect = model.config.dialect
    args = ", ".join(call_argument(p) for p in func.params)
    call = f"{suite_global(model)}->{func.name}({args})"

    if func.convention == ReturnConvention.ERROR:
        return [
            f"{func.returns.base_type} err = {call};",
            f"if (err != {dialect.no_error}) {{",
            f'    throw SuiteError("{model.name}", "{func.name}", err);',
            "}",
        ]
    if func.convention == ReturnConvention.VOID:
        return [f"{call};"]
    return [f"{func.function.return_type} result = {call};"]


def function_body(func: FunctionModel, model: SuiteModel) -> list[str]:
    config = model.config
    lines = []
    for param in func.inputs:
        lines.extend(unmarshal_input(param, config))
    for param in func.outputs:
        lines.extend(declare_output(param, config))
    lines.append("")
    lines.extend(call_lines(func, model))
    lines.append("")
    lines.append("nlohmann::json response;")
    if func.convention == ReturnConvention.DIRECT:
        lines.extend(marshal_value(func.returns, "result", "result", config))
    for param in func.outputs:
        lines.extend(marshal_output(param, config))
    lines.append("return response;")
    return lines


def describe_param(param: ParameterDescriptor) -> str:
    detail = param.category
    if param.is_optional:
        detail = f"{detail}, optional"
    return f"{param.name} ({param.spelled_type}, {detail})"


def render(model: SuiteModel) -> list[GeneratedFile]:
    """Render a suite model to a wrapper header and source."""
    basename = wrapper_basename(model)
    context = {
        "model": model,
        "dialect": model.config.dialect,
        "basename": basename,
        "suite_global": suite_global(model),
        "function_body": lambda func: function_body(func, model),
        "describe_param": describe_param,
    }
    return [
        GeneratedFile(f"{basename}.h", header_template.render(**context)),
        GeneratedFile(f"{basename}.cpp", source_template.render(**context)),
    ]


def generate(suite: SuiteDescriptor, classifier: TypeClassifier) -> list[GeneratedFile]:
    return render(build_suite_model(suite, classifier))
