"""Tests for the return-strategy normalizer."""

from __future__ import annotations

from pylower import target_ir as tir
from pylower.context import ReturnStrategy
from pylower.normalize import bound_names, escapes, is_productive, transform_body


def _call_stmt(name: str) -> tir.ExprStmt:
    return tir.ExprStmt(value=tir.call(name))


class TestIsProductive:
    def test_constant_expression_is_dead(self):
        assert not is_productive(tir.ExprStmt(value=tir.Constant(value=1)))

    def test_name_expression_is_dead(self):
        assert not is_productive(tir.ExprStmt(value=tir.Name(id="x")))

    def test_empty_dict_is_dead(self):
        assert not is_productive(tir.ExprStmt(value=tir.Dict()))

    def test_call_is_productive(self):
        assert is_productive(_call_stmt("f"))

    def test_non_expression_statements_are_productive(self):
        assign = tir.Assign(targets=[tir.Name(id="x")], value=tir.Constant(value=1))
        assert is_productive(assign)
        assert is_productive(tir.Pass())


class TestTransformBody:
    def test_empty_return_slot_gets_bare_return(self):
        assert transform_body(ReturnStrategy.RETURN, []) == [tir.Return()]

    def test_pass_only_return_slot_gets_bare_return(self):
        assert transform_body(ReturnStrategy.RETURN, [tir.Pass()]) == [tir.Return()]

    def test_empty_non_return_slot_gets_pass(self):
        assert transform_body(ReturnStrategy.NO_RETURN, []) == [tir.Pass()]

    def test_dead_statements_are_stripped(self):
        body = [tir.ExprStmt(value=tir.Constant(value=1)), _call_stmt("f")]
        assert transform_body(ReturnStrategy.NO_RETURN, body) == [_call_stmt("f")]

    def test_all_dead_statements_leave_a_pass(self):
        body = [tir.ExprStmt(value=tir.Name(id="x"))]
        assert transform_body(ReturnStrategy.NO_RETURN, body) == [tir.Pass()]

    def test_pass_is_dropped_next_to_real_statements(self):
        body = [tir.Pass(), _call_stmt("f")]
        assert transform_body(ReturnStrategy.NO_RETURN, body) == [_call_stmt("f")]

    def test_no_break_strips_breaks(self):
        body = [_call_stmt("f"), tir.Break()]
        assert transform_body(ReturnStrategy.NO_BREAK, body) == [_call_stmt("f")]

    def test_no_break_with_only_break_becomes_pass(self):
        assert transform_body(ReturnStrategy.NO_BREAK, [tir.Break()]) == [tir.Pass()]

    def test_non_empty_body_is_kept(self):
        body = [tir.Return(value=tir.Name(id="x"))]
        assert transform_body(ReturnStrategy.RETURN, body) == body


def _assign(name: str, value=1) -> tir.Assign:
    return tir.Assign(targets=[tir.Name(id=name)], value=tir.Constant(value=value))


class TestBoundNames:
    def test_assignments_in_order_without_duplicates(self):
        body = [_assign("b"), _assign("a"), _assign("b", 2)]
        assert bound_names(body) == ["b", "a"]

    def test_named_expression_and_nested_blocks(self):
        walrus = tir.NamedExpr(target=tir.Name(id="w"), value=tir.Constant(value=1))
        body = [tir.If(test=walrus, body=[_assign("x")], orelse=[_assign("y")])]
        assert bound_names(body) == ["w", "x", "y"]

    def test_nested_scopes_are_not_entered(self):
        func = tir.FunctionDef(name="g", body=[_assign("inner")])
        lam = tir.Lambda(
            body=tir.NamedExpr(target=tir.Name(id="z"), value=tir.Constant(value=1))
        )
        body = [func, tir.ExprStmt(value=lam)]
        assert bound_names(body) == []

    def test_attribute_targets_are_ignored(self):
        target = tir.Attribute(value=tir.Name(id="self"), attr="v")
        assert bound_names([tir.Assign(targets=[target], value=tir.none())]) == []


class TestEscapes:
    def test_jump_nested_in_if(self):
        body = [tir.If(test=tir.Name(id="c"), body=[tir.Break()])]
        assert escapes(body, tir.Break)
        assert not escapes(body, tir.Continue)

    def test_jump_nested_in_try(self):
        body = [tir.Try(body=[_call_stmt("f")], finalbody=[tir.Continue()])]
        assert escapes(body, tir.Continue)

    def test_jump_inside_loop_stays_in_the_loop(self):
        body = [
            tir.While(test=tir.Name(id="c"), body=[tir.Break()]),
            tir.For(
                target=tir.Name(id="i"),
                iter=tir.call("range", [tir.Constant(value=3)]),
                body=[tir.Continue()],
            ),
        ]
        assert not escapes(body, tir.Break)
        assert not escapes(body, tir.Continue)

    def test_jump_inside_nested_function_is_ignored(self):
        func = tir.FunctionDef(
            name="g", body=[tir.If(test=tir.Name(id="c"), body=[tir.Break()])]
        )
        assert not escapes([func], tir.Break)
