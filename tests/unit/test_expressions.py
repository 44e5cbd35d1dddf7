"""Tests for expression lowering: operators, members, closures and preludes."""

from __future__ import annotations

import pytest

from pylower import source_ir as src
from pylower import target_ir as tir
from pylower.context import Context
from pylower.diagnostics import TranslationError
from pylower.translator import (
    BINARY_OPERATORS,
    COMPARISON_OPERATORS,
    UNARY_OPERATORS,
    Translator,
)


def _id(name: str) -> src.Identifier:
    return src.Identifier(name=name)


def _num(value) -> src.NumericLiteral:
    return src.NumericLiteral(value=value)


def _call(name: str, *args) -> src.CallExpression:
    return src.CallExpression(callee=_id(name), arguments=list(args))


def _member(obj, prop: str) -> src.MemberExpression:
    return src.MemberExpression(object=obj, property=_id(prop))


def _translate(expr, translator: Translator | None = None):
    translator = translator or Translator()
    return translator.translate_expression(Context(), expr)


class TestLiterals:
    def test_number(self):
        assert _translate(_num(42)) == (tir.Constant(value=42), [])

    def test_string(self):
        value, _ = _translate(src.StringLiteral(value="hi"))
        assert value == tir.Constant(value="hi")

    def test_null_is_none(self):
        assert _translate(src.NullLiteral()) == (tir.none(), [])

    def test_this_is_self(self):
        assert _translate(src.ThisExpression()) == (tir.Name(id="self"), [])

    def test_identifier_is_cleaned(self):
        assert _translate(_id("lambda")) == (tir.Name(id="lambda_"), [])


class TestBinary:
    @pytest.mark.parametrize("operator, expected", list(BINARY_OPERATORS.items()))
    def test_arithmetic(self, operator, expected):
        value, prelude = _translate(
            src.BinaryExpression(operator=operator, left=_id("a"), right=_id("b"))
        )
        assert value == tir.BinOp(left=tir.Name(id="a"), op=expected, right=tir.Name(id="b"))
        assert prelude == []

    @pytest.mark.parametrize("operator, expected", list(COMPARISON_OPERATORS.items()))
    def test_comparison(self, operator, expected):
        value, _ = _translate(
            src.BinaryExpression(operator=operator, left=_id("a"), right=_id("b"))
        )
        assert value == tir.Compare(
            left=tir.Name(id="a"), ops=[expected], comparators=[tir.Name(id="b")]
        )

    def test_tables_cover_every_operator_token(self):
        assert set(BINARY_OPERATORS) == {
            "+", "-", "*", "/", "%", "**", "<<", ">>", "|", "^", "&"
        }
        assert set(COMPARISON_OPERATORS) == {
            "==", "===", "!=", "!==", "<", "<=", ">", ">=", "in"
        }
        assert set(UNARY_OPERATORS) == {"-", "+", "~", "!"}

    def test_instanceof_becomes_isinstance(self):
        value, _ = _translate(
            src.BinaryExpression(operator="instanceof", left=_id("a"), right=_id("B"))
        )
        assert value == tir.call("isinstance", [tir.Name(id="a"), tir.Name(id="B")])

    def test_unknown_operator_is_fatal(self):
        with pytest.raises(TranslationError, match="Unknown binary operator: >>>"):
            _translate(src.BinaryExpression(operator=">>>", left=_id("a"), right=_id("b")))


class TestLogical:
    def test_same_operator_is_flattened(self):
        inner = src.LogicalExpression(operator="&&", left=_id("a"), right=_id("b"))
        value, _ = _translate(
            src.LogicalExpression(operator="&&", left=inner, right=_id("c"))
        )
        assert value == tir.BoolOp(
            op=tir.BoolOperator.AND,
            values=[tir.Name(id="a"), tir.Name(id="b"), tir.Name(id="c")],
        )

    def test_mixed_operators_nest(self):
        inner = src.LogicalExpression(operator="||", left=_id("a"), right=_id("b"))
        value, _ = _translate(
            src.LogicalExpression(operator="&&", left=inner, right=_id("c"))
        )
        assert value.op == tir.BoolOperator.AND
        assert value.values[0] == tir.BoolOp(
            op=tir.BoolOperator.OR, values=[tir.Name(id="a"), tir.Name(id="b")]
        )

    def test_right_operand_prelude_is_guarded(self):
        assignment = src.AssignmentExpression(left=_member(_id("o"), "v"), right=_num(1))
        value, prelude = _translate(
            src.LogicalExpression(operator="||", left=_id("a"), right=assignment)
        )
        assert value == tir.BoolOp(
            op=tir.BoolOperator.OR, values=[tir.Name(id="a"), tir.call("lifted_1")]
        )
        (func,) = prelude
        assert func.name == "lifted_1"
        assert func.body == [
            tir.Assign(targets=[tir.Name(id="assign_value_0")], value=tir.Constant(value=1)),
            tir.Assign(
                targets=[tir.Attribute(value=tir.Name(id="o"), attr="v")],
                value=tir.Name(id="assign_value_0"),
            ),
            tir.Return(value=tir.Name(id="assign_value_0")),
        ]


class TestUnary:
    @pytest.mark.parametrize("operator, expected", list(UNARY_OPERATORS.items()))
    def test_operator_table(self, operator, expected):
        value, prelude = _translate(src.UnaryExpression(operator=operator, argument=_id("x")))
        assert value == tir.UnaryOp(op=expected, operand=tir.Name(id="x"))
        assert prelude == []

    def test_void_keeps_side_effect(self):
        value, prelude = _translate(src.UnaryExpression(operator="void", argument=_call("f")))
        assert value == tir.none()
        assert prelude == [tir.ExprStmt(value=tir.call("f"))]

    def test_void_drops_dead_operand(self):
        assert _translate(src.UnaryExpression(operator="void", argument=_num(0))) == (
            tir.none(),
            [],
        )

    def test_typeof_is_unsupported(self):
        with pytest.raises(TranslationError, match="Unknown unary operator: typeof"):
            _translate(src.UnaryExpression(operator="typeof", argument=_id("x")))


class TestAssignmentExpression:
    def test_identifier_target_is_named_expression(self):
        value, prelude = _translate(src.AssignmentExpression(left=_id("x"), right=_num(1)))
        assert value == tir.NamedExpr(target=tir.Name(id="x"), value=tir.Constant(value=1))
        assert prelude == []

    def test_member_target_uses_temporary(self):
        value, prelude = _translate(
            src.AssignmentExpression(left=_member(_id("o"), "v"), right=_call("f"))
        )
        assert value == tir.Name(id="assign_value_0")
        assert prelude == [
            tir.Assign(targets=[tir.Name(id="assign_value_0")], value=tir.call("f")),
            tir.Assign(
                targets=[tir.Attribute(value=tir.Name(id="o"), attr="v")],
                value=tir.Name(id="assign_value_0"),
            ),
        ]

    def test_compound_assignment_is_rejected(self):
        with pytest.raises(TranslationError, match="Compound assignment"):
            _translate(src.AssignmentExpression(operator="+=", left=_id("x"), right=_num(1)))

    def test_update_is_statement_only(self):
        with pytest.raises(TranslationError, match="only supported as a statement"):
            _translate(src.UpdateExpression(operator="++", argument=_id("i")))


class TestCalls:
    def test_call_arguments(self):
        value, _ = _translate(_call("f", _num(1), _id("x")))
        assert value == tir.call("f", [tir.Constant(value=1), tir.Name(id="x")])

    def test_new_is_a_plain_call(self):
        value, _ = _translate(src.NewExpression(callee=_id("Point"), arguments=[_num(0)]))
        assert value == tir.call("Point", [tir.Constant(value=0)])

    def test_super_call_targets_base_initializer(self):
        value, _ = _translate(src.CallExpression(callee=src.Super(), arguments=[_id("x")]))
        assert value == tir.Call(
            func=tir.Attribute(value=tir.call("super"), attr="__init__"),
            args=[tir.Name(id="x")],
        )


class TestMembers:
    def test_attribute(self):
        value, _ = _translate(_member(src.ThisExpression(), "name"))
        assert value == tir.Attribute(value=tir.Name(id="self"), attr="name")

    def test_length_becomes_len(self):
        value, _ = _translate(_member(_id("xs"), "length"))
        assert value == tir.call("len", [tir.Name(id="xs")])

    def test_message_becomes_str(self):
        value, _ = _translate(_member(_id("e"), "message"))
        assert value == tir.call("str", [tir.Name(id="e")])

    def test_index_of_becomes_index(self):
        value, _ = _translate(_member(_id("xs"), "indexOf"))
        assert value == tir.Attribute(value=tir.Name(id="xs"), attr="index")

    def test_math_registers_module_import(self):
        translator = Translator()
        value, _ = _translate(_member(_id("Math"), "floor"), translator)
        assert value == tir.Attribute(value=tir.Name(id="math"), attr="floor")
        assert translator.get_all_imports() == [tir.Import(names=[tir.Alias(name="math")])]

    def test_numeric_index_is_subscript(self):
        value, _ = _translate(
            src.MemberExpression(object=_id("xs"), property=_num(0), computed=True)
        )
        assert value == tir.Subscript(value=tir.Name(id="xs"), slice=tir.Constant(value=0))

    def test_string_key_is_getattr(self):
        value, _ = _translate(
            src.MemberExpression(
                object=_id("o"), property=src.StringLiteral(value="k"), computed=True
            )
        )
        assert value == tir.call("getattr", [tir.Name(id="o"), tir.Constant(value="k")])

    def test_expression_key_is_subscript(self):
        value, _ = _translate(
            src.MemberExpression(object=_id("xs"), property=_id("i"), computed=True)
        )
        assert value == tir.Subscript(value=tir.Name(id="xs"), slice=tir.Name(id="i"))

    def test_boolean_key_is_fatal(self):
        with pytest.raises(TranslationError, match="Unknown literal as member key"):
            _translate(
                src.MemberExpression(
                    object=_id("o"), property=src.BooleanLiteral(value=True), computed=True
                )
            )


class TestCollections:
    def test_array_is_tuple(self):
        value, _ = _translate(src.ArrayExpression(elements=[_num(1), _num(2)]))
        assert value == tir.Tuple(elts=[tir.Constant(value=1), tir.Constant(value=2)])

    def test_object_keys(self):
        value, _ = _translate(
            src.ObjectExpression(
                properties=[
                    src.ObjectProperty(key=_id("a"), value=_num(1)),
                    src.ObjectProperty(key=src.StringLiteral(value="b"), value=_num(2)),
                ]
            )
        )
        assert value == tir.Dict(
            keys=[tir.Constant(value="a"), tir.Constant(value="b")],
            values=[tir.Constant(value=1), tir.Constant(value=2)],
        )

    def test_object_method_is_lifted(self):
        method = src.ObjectMethod(
            key=_id("get"),
            body=src.BlockStatement(body=[src.ReturnStatement(argument=_num(1))]),
        )
        value, prelude = _translate(src.ObjectExpression(properties=[method]))
        assert value.values == [tir.Name(id="lifted_0")]
        assert prelude == [
            tir.FunctionDef(name="lifted_0", body=[tir.Return(value=tir.Constant(value=1))])
        ]


class TestClosures:
    def test_concise_arrow_is_lambda(self):
        arrow = src.ArrowFunctionExpression(
            params=[_id("x")],
            body=src.BinaryExpression(operator="+", left=_id("x"), right=_num(1)),
        )
        value, prelude = _translate(arrow)
        assert value == tir.Lambda(
            args=tir.Arguments(args=[tir.Arg(arg="x")]),
            body=tir.BinOp(
                left=tir.Name(id="x"), op=tir.Operator.ADD, right=tir.Constant(value=1)
            ),
        )
        assert prelude == []

    def test_parameterless_closure_gets_unit_parameter(self):
        value, _ = _translate(src.ArrowFunctionExpression(body=_num(1)))
        assert value.args == tir.Arguments(args=[tir.Arg(arg="_", default=tir.none())])

    def test_single_return_block_is_lambda(self):
        arrow = src.ArrowFunctionExpression(
            params=[_id("x")],
            body=src.BlockStatement(body=[src.ReturnStatement(argument=_id("x"))]),
        )
        value, _ = _translate(arrow)
        assert isinstance(value, tir.Lambda)

    def test_function_expression_with_single_call_is_lambda(self):
        func = src.FunctionExpression(
            body=src.BlockStatement(body=[src.ExpressionStatement(expression=_call("f"))])
        )
        value, _ = _translate(func)
        assert isinstance(value, tir.Lambda)
        assert value.body == tir.call("f")

    def test_multi_statement_body_is_lifted(self):
        arrow = src.ArrowFunctionExpression(
            body=src.BlockStatement(
                body=[
                    src.ExpressionStatement(expression=_call("f")),
                    src.ReturnStatement(argument=_num(1)),
                ]
            )
        )
        value, prelude = _translate(arrow)
        assert value == tir.Name(id="lifted_0")
        assert prelude == [
            tir.FunctionDef(
                name="lifted_0",
                args=tir.Arguments(args=[tir.Arg(arg="_", default=tir.none())]),
                body=[
                    tir.ExprStmt(value=tir.call("f")),
                    tir.Return(value=tir.Constant(value=1)),
                ],
            )
        ]

    def test_named_function_expression_keeps_its_name(self):
        func = src.FunctionExpression(
            id=_id("fact"),
            params=[_id("n")],
            body=src.BlockStatement(body=[src.ReturnStatement(argument=_id("n"))]),
        )
        value, prelude = _translate(func)
        assert value == tir.Name(id="fact")
        assert prelude == [
            tir.FunctionDef(
                name="fact",
                args=tir.Arguments(args=[tir.Arg(arg="n")]),
                body=[tir.Return(value=tir.Name(id="n"))],
            )
        ]


class TestConditionalAndSequence:
    def test_conditional(self):
        value, prelude = _translate(
            src.ConditionalExpression(test=_id("c"), consequent=_num(1), alternate=_num(2))
        )
        assert value == tir.IfExp(
            test=tir.Name(id="c"), body=tir.Constant(value=1), orelse=tir.Constant(value=2)
        )
        assert prelude == []

    def test_sequence_value_is_last_element(self):
        value, prelude = _translate(
            src.SequenceExpression(expressions=[_call("a"), _call("b")])
        )
        assert value == tir.call("b")
        assert prelude == [tir.ExprStmt(value=tir.call("a"))]

    def test_sequence_assignment_rebinds_in_place(self):
        assignment = src.AssignmentExpression(left=_id("x"), right=_num(5))
        add = src.BinaryExpression(operator="+", left=_id("x"), right=_num(1))
        value, prelude = _translate(src.SequenceExpression(expressions=[assignment, add]))
        assert prelude == [tir.Assign(targets=[tir.Name(id="x")], value=tir.Constant(value=5))]
        assert value == tir.BinOp(
            left=tir.Name(id="x"), op=tir.Operator.ADD, right=tir.Constant(value=1)
        )

    def test_guarded_sequence_declares_global(self):
        assignment = src.AssignmentExpression(left=_id("x"), right=_num(5))
        sequence = src.SequenceExpression(expressions=[assignment, _id("x")])
        value, prelude = _translate(
            src.ConditionalExpression(test=_id("c"), consequent=sequence, alternate=_num(0))
        )
        assert value.body == tir.call("lifted_0")
        (func,) = prelude
        assert func.body == [
            tir.Global(names=["x"]),
            tir.Assign(targets=[tir.Name(id="x")], value=tir.Constant(value=5)),
            tir.Return(value=tir.Name(id="x")),
        ]

    def test_guarded_sequence_in_function_declares_nonlocal(self):
        assignment = src.AssignmentExpression(left=_id("x"), right=_num(5))
        sequence = src.SequenceExpression(expressions=[assignment, _id("x")])
        _, prelude = Translator().translate_expression(
            Context().in_function(),
            src.LogicalExpression(operator="&&", left=_id("c"), right=sequence),
        )
        (func,) = prelude
        assert func.body[0] == tir.Nonlocal(names=["x"])

    def test_empty_sequence_is_fatal(self):
        with pytest.raises(TranslationError, match="Empty sequence expression"):
            _translate(src.SequenceExpression(expressions=[]))


class TestEmit:
    def test_void_template_is_its_argument(self):
        value, _ = _translate(src.EmitExpression(value="void $0", args=[_id("x")]))
        assert value == tir.Name(id="x")

    def test_other_templates_are_kept(self):
        value, _ = _translate(
            src.EmitExpression(value="$0 + $1", args=[_id("a"), _id("b")])
        )
        assert value == tir.Emit(
            value="$0 + $1", args=[tir.Name(id="a"), tir.Name(id="b")]
        )


class TestDispatch:
    def test_every_expression_kind_has_a_handler(self):
        assert set(Translator()._EXPR_DISPATCH) == set(src.EXPRESSION_NODES)

    def test_statement_in_expression_position_is_fatal(self):
        with pytest.raises(TranslationError, match="Unknown expression kind: EmptyStatement"):
            _translate(src.EmptyStatement())
