"""Tests for the marshaling model."""

from suitebind.generator import parse
from suitebind.generator.classifier import TypeClassifier
from suitebind.generator.config import TypeMapConfig
from suitebind.generator.model import (
    ResultShape,
    ReturnConvention,
    SkippedFunction,
    build_function_model,
    build_suite_model,
)


def _model(body, **tables):
    tables.setdefault("handles", {"AIWidgetHandle": "widgets"})
    tables.setdefault("primitives", {"ai::int32": "int32_t", "AIBoolean": "bool"})
    classifier = TypeClassifier(TypeMapConfig(**tables))
    (suite,) = parse(f"typedef struct {{ {body} }} AIWidgetSuite;", classifier)
    return build_suite_model(suite, classifier)


def describe_build_suite_model():
    def derives_short_name(expect, widget_model):
        expect(widget_model.name) == "AIWidgetSuite"
        expect(widget_model.short_name) == "Widget"

    def partitions_generated_and_skipped(expect, widget_model):
        expect(len(widget_model.functions)) == 18
        expect([s.name for s in widget_model.skipped]) == [
            "GetWidgetColor",
            "IterateWidgets",
            "GetWidgetCorners",
        ]

    def gives_a_reason_for_every_skip(expect, widget_model):
        reasons = {s.name: s.reason for s in widget_model.skipped}
        expect("ignored type AIColor" in reasons["GetWidgetColor"]) == True
        expect("callback" in reasons["IterateWidgets"]) == True
        expect("array" in reasons["GetWidgetCorners"]) == True

    def preserves_declaration_order(expect, widget_model):
        names = [f.name for f in widget_model.functions]
        expect(names[:3]) == ["GetWidgetCount", "GetFirstWidget", "NewWidget"]

    def collects_referenced_structs(expect, widget_model):
        expect(widget_model.referenced_structs) == ["AIRealMatrix", "AIRealRect", "AIWidgetFrame"]

    def prefixes_macro_colliding_names(expect, widget_function):
        expect(widget_function("FixedToFloat").symbol) == "AI_FixedToFloat"
        expect(widget_function("NewWidget").symbol) == "NewWidget"


def describe_return_convention():
    def uses_error_convention_for_error_codes(expect, widget_function):
        func = widget_function("GetWidgetCount")
        expect(func.convention) == ReturnConvention.ERROR
        expect(func.shape) == ResultShape.SINGLE

    def uses_void_convention(expect, widget_function):
        func = widget_function("ResetWidgets")
        expect(func.convention) == ReturnConvention.VOID
        expect(func.shape) == ResultShape.NONE

    def returns_handles_directly(expect, widget_function):
        func = widget_function("GetFirstWidget")
        expect(func.convention) == ReturnConvention.DIRECT
        expect(func.shape) == ResultShape.DIRECT
        expect(func.returns.registry_key) == "widgets"

    def returns_booleans_directly(expect, widget_function):
        func = widget_function("IsWidgetVisible")
        expect(func.convention) == ReturnConvention.DIRECT
        expect(func.returns.is_boolean) == True

    def returns_c_strings_directly(expect, widget_function):
        expect(widget_function("GetWidgetKind").convention) == ReturnConvention.DIRECT

    def combines_direct_value_and_outputs(expect):
        model = _model("ai::int32 (*CountChildren)(AIWidgetHandle widget, AIBoolean* deep);")
        (func,) = model.functions
        expect(func.shape) == ResultShape.RECORD
        expect([f.name for f in func.result_fields]) == ["result", "deep"]

    def excludes_unsupported_returns(expect):
        model = _model(
            """
            AIColor (*GetColor)(AIWidgetHandle widget);
            AIRealRect (*GetRect)(AIWidgetHandle widget);
            ai::int32* (*GetBuffer)(void);
            void* (*GetData)(void);
        """,
            structs={"AIRealRect": "object"},
        )
        expect(model.functions) == ()
        expect([s.name for s in model.skipped]) == ["GetColor", "GetRect", "GetBuffer", "GetData"]
        expect("return type" in model.skipped[0].reason) == True


def describe_result_shape():
    def groups_several_outputs_into_a_record(expect, widget_function):
        func = widget_function("GetWidgetTransform")
        expect(func.shape) == ResultShape.RECORD
        expect([f.name for f in func.result_fields]) == ["matrix", "scale"]

    def reports_no_result_without_outputs(expect, widget_function):
        func = widget_function("DisposeWidget")
        expect(func.shape) == ResultShape.NONE
        expect(func.result_fields) == []

    def keeps_parameter_order_between_inputs_and_outputs(expect, widget_function):
        func = widget_function("NewWidget")
        expect([p.name for p in func.inputs]) == ["paintOrder", "prep"]
        expect([p.name for p in func.outputs]) == ["newWidget"]


def describe_parameter_exclusions():
    def excludes_opaque_void_pointers(expect):
        model = _model("AIErr (*Attach)(AIWidgetHandle widget, void* data);")
        expect(model.skipped[0].reason) == "parameter 'data' is an opaque void pointer"

    def excludes_deep_pointers(expect):
        model = _model("AIErr (*GetAll)(AIWidgetHandle** widgets);")
        expect("pointer depth 2" in model.skipped[0].reason) == True

    def allows_char_double_pointer_outputs(expect):
        model = _model("AIErr (*GetLabel)(AIWidgetHandle widget, char** label);")
        expect(len(model.functions)) == 1

    def rejects_const_char_double_pointer_inputs(expect):
        model = _model("AIErr (*SetLabels)(const char** labels);")
        expect(model.functions) == ()

    def excludes_blocked_functions(expect):
        model = _model(
            """
            AIErr (*Hidden)(void);
            AIErr (*Qualified)(void);
            AIErr (*Shown)(void);
        """,
            blocked_functions=["Hidden", "AIWidgetSuite.Qualified"],
        )
        expect([f.name for f in model.functions]) == ["Shown"]
        expect(model.skipped[0].reason) == "blocked by configuration"

    def keeps_functions_with_unknown_parameters(expect, widget_function):
        func = widget_function("GetWidgetStyle")
        expect(func.outputs[0].category) == "Unknown"

    def excludes_default_valued_parameters(expect):
        model = _model("AIErr (*Step)(ai::int32 count = 1);")
        expect("default_value" in model.skipped[0].reason) == True


def describe_build_function_model():
    def returns_skipped_function_for_exclusions(expect, classifier):
        (suite,) = parse(
            "typedef struct { AIErr (*Paint)(AIColor* color); } AIWidgetSuite;", classifier
        )
        result = build_function_model(suite.functions[0], classifier)
        expect(isinstance(result, SkippedFunction)) == True
        expect(result.name) == "Paint"
