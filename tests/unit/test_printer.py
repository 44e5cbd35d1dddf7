"""Tests for rendering target IR as Python source."""

from __future__ import annotations

import pytest

from pylower import target_ir as tir
from pylower.diagnostics import TranslationError
from pylower.printer import PythonPrinter, print_module


def _name(name: str) -> tir.Name:
    return tir.Name(id=name)


def _render(node) -> str:
    return PythonPrinter().render(node)


class TestStatements:
    def test_empty_function_body_is_pass(self):
        assert _render(tir.FunctionDef(name="f", body=[])) == "def f():\n    pass"

    def test_vararg(self):
        func = tir.FunctionDef(
            name="f",
            args=tir.Arguments(args=[tir.Arg(arg="a")], vararg=tir.Arg(arg="rest")),
            body=[tir.Return(value=_name("rest"))],
        )
        assert _render(func) == "def f(a, *rest):\n    return rest"

    def test_static_method_decorator(self):
        func = tir.FunctionDef(
            name="make",
            body=[tir.Pass()],
            decorator_list=[_name("staticmethod")],
        )
        assert _render(func) == "@staticmethod\ndef make():\n    pass"

    def test_scope_declarations(self):
        func = tir.FunctionDef(
            name="f",
            body=[
                tir.Global(names=["a"]),
                tir.Nonlocal(names=["b", "c"]),
                tir.Return(),
            ],
        )
        assert _render(func) == "def f():\n    global a\n    nonlocal b, c\n    return"

    def test_class_with_base(self):
        class_def = tir.ClassDef(name="A", bases=[_name("B")], body=[])
        assert _render(class_def) == "class A(B):\n    pass"

    def test_for_range(self):
        loop = tir.For(
            target=_name("i"),
            iter=tir.call("range", [tir.Constant(value=3)]),
            body=[tir.Pass()],
        )
        assert _render(loop) == "for i in range(3):\n    pass"

    def test_try_except(self):
        try_stmt = tir.Try(
            body=[tir.ExprStmt(value=tir.call("f"))],
            handlers=[
                tir.ExceptHandler(exc_type=_name("Exception"), name="e", body=[tir.Pass()])
            ],
        )
        assert _render(try_stmt) == "try:\n    f()\nexcept Exception as e:\n    pass"

    def test_switch_test(self):
        test = tir.BoolOp(
            op=tir.BoolOperator.OR,
            values=[
                tir.Compare(
                    left=_name("x"),
                    ops=[tir.ComparisonOperator.EQ],
                    comparators=[tir.Constant(value=1)],
                ),
                tir.Compare(
                    left=_name("x"),
                    ops=[tir.ComparisonOperator.EQ],
                    comparators=[tir.Constant(value=2)],
                ),
            ],
        )
        assert _render(tir.If(test=test, body=[tir.Pass()])) == (
            "if x == 1 or x == 2:\n    pass"
        )

    def test_raise(self):
        assert _render(tir.Raise(exc=tir.call("Error"))) == "raise Error()"

    def test_import_alias(self):
        stmt = tir.ImportFrom(
            module="fable.seq", names=[tir.Alias(name="map", asname="map_1")]
        )
        assert _render(stmt) == "from fable.seq import map as map_1"


class TestExpressions:
    def test_lambda_with_unit_default(self):
        lam = tir.Lambda(
            args=tir.Arguments(args=[tir.Arg(arg="_", default=tir.none())]),
            body=tir.Constant(value=1),
        )
        assert _render(tir.ExprStmt(value=lam)) == "lambda _=None: 1"

    def test_emit_substitutes_arguments(self):
        emit = tir.Emit(value="$0 + $1", args=[_name("a"), tir.call("f")])
        assert _render(tir.ExprStmt(value=emit)) == "a + f()"

    def test_emit_missing_argument(self):
        emit = tir.Emit(value="$0 + $1", args=[_name("a")])
        with pytest.raises(TranslationError, match="missing argument"):
            _render(tir.ExprStmt(value=emit))

    def test_emit_that_does_not_parse(self):
        emit = tir.Emit(value="$0 +", args=[_name("a")])
        with pytest.raises(TranslationError, match="does not parse"):
            _render(tir.ExprStmt(value=emit))

    def test_unprintable_node(self):
        with pytest.raises(TranslationError, match="Cannot print expression node Arg"):
            PythonPrinter().expr(tir.Arg(arg="x"))


class TestModule:
    def test_tuple_assignment_compiles(self):
        assign = tir.Assign(
            targets=[tir.Tuple(elts=[_name("a"), _name("b")])],
            value=tir.Tuple(elts=[_name("b"), _name("a")]),
        )
        tree = PythonPrinter().module(
            tir.Module(
                body=[
                    tir.Assign(targets=[_name("a")], value=tir.Constant(value=1)),
                    tir.Assign(targets=[_name("b")], value=tir.Constant(value=2)),
                    assign,
                ]
            )
        )
        namespace: dict = {}
        exec(compile(tree, "<test>", "exec"), namespace)
        assert (namespace["a"], namespace["b"]) == (2, 1)

    def test_imports_are_separated_from_code(self):
        module = tir.Module(
            body=[
                tir.ImportFrom(module="fable.list", names=[tir.Alias(name="map")]),
                tir.Import(names=[tir.Alias(name="math")]),
                tir.FunctionDef(
                    name="f",
                    args=tir.Arguments(args=[tir.Arg(arg="x")]),
                    body=[
                        tir.Return(
                            value=tir.call(
                                tir.Attribute(value=_name("math"), attr="floor"),
                                [_name("x")],
                            )
                        )
                    ],
                ),
            ]
        )
        assert print_module(module) == (
            "from fable.list import map\n"
            "import math\n"
            "\n"
            "def f(x):\n"
            "    return math.floor(x)\n"
        )

    def test_statements_are_separated_by_blank_lines(self):
        module = tir.Module(
            body=[
                tir.Assign(targets=[_name("x")], value=tir.Constant(value=1)),
                tir.Assign(targets=[_name("y")], value=tir.Constant(value=2)),
            ]
        )
        assert print_module(module) == "x = 1\n\ny = 2\n"

    def test_empty_module(self):
        assert print_module(tir.Module()) == ""
