"""Renders a target IR module as Python source via the stdlib ``ast``."""

from __future__ import annotations

import ast
import logging
import re
import sys
from typing import Callable

from . import target_ir as tir
from .diagnostics import TranslationError

logger = logging.getLogger(__name__)

_EMIT_HOLE = re.compile(r"\$(\d+)")

_BIN_OPS: dict[tir.Operator, type[ast.operator]] = {
    tir.Operator.ADD: ast.Add,
    tir.Operator.SUB: ast.Sub,
    tir.Operator.MULT: ast.Mult,
    tir.Operator.DIV: ast.Div,
    tir.Operator.MOD: ast.Mod,
    tir.Operator.POW: ast.Pow,
    tir.Operator.LSHIFT: ast.LShift,
    tir.Operator.RSHIFT: ast.RShift,
    tir.Operator.BIT_OR: ast.BitOr,
    tir.Operator.BIT_XOR: ast.BitXor,
    tir.Operator.BIT_AND: ast.BitAnd,
}

_UNARY_OPS: dict[tir.UnaryOperator, type[ast.unaryop]] = {
    tir.UnaryOperator.USUB: ast.USub,
    tir.UnaryOperator.UADD: ast.UAdd,
    tir.UnaryOperator.INVERT: ast.Invert,
    tir.UnaryOperator.NOT: ast.Not,
}

_BOOL_OPS: dict[tir.BoolOperator, type[ast.boolop]] = {
    tir.BoolOperator.AND: ast.And,
    tir.BoolOperator.OR: ast.Or,
}

_COMPARE_OPS: dict[tir.ComparisonOperator, type[ast.cmpop]] = {
    tir.ComparisonOperator.EQ: ast.Eq,
    tir.ComparisonOperator.NOT_EQ: ast.NotEq,
    tir.ComparisonOperator.LT: ast.Lt,
    tir.ComparisonOperator.LT_E: ast.LtE,
    tir.ComparisonOperator.GT: ast.Gt,
    tir.ComparisonOperator.GT_E: ast.GtE,
    tir.ComparisonOperator.IN: ast.In,
}


def _definition_fields() -> dict:
    # ``type_params`` is a required field of definitions from 3.12 on.
    if sys.version_info >= (3, 12):
        return {"type_params": []}
    return {}


class PythonPrinter:
    """Converts target IR nodes into stdlib ``ast`` nodes."""

    def __init__(self):
        self._EXPR_DISPATCH: dict[type, Callable[..., ast.expr]] = {
            tir.Constant: lambda n, ctx: ast.Constant(value=n.value),
            tir.Name: lambda n, ctx: ast.Name(id=n.id, ctx=ctx()),
            tir.Attribute: self._attribute,
            tir.Subscript: self._subscript,
            tir.Call: self._call,
            tir.BinOp: self._bin_op,
            tir.UnaryOp: self._unary_op,
            tir.BoolOp: self._bool_op,
            tir.Compare: self._compare,
            tir.Tuple: self._tuple,
            tir.Dict: self._dict,
            tir.Lambda: self._lambda,
            tir.IfExp: self._if_exp,
            tir.NamedExpr: self._named_expr,
            tir.Emit: self._emit,
        }
        self._STMT_DISPATCH: dict[type, Callable[..., ast.stmt]] = {
            tir.Assign: self._assign,
            tir.ExprStmt: lambda n: ast.Expr(value=self.expr(n.value)),
            tir.Return: self._return,
            tir.Pass: lambda n: ast.Pass(),
            tir.Break: lambda n: ast.Break(),
            tir.Continue: lambda n: ast.Continue(),
            tir.Raise: self._raise,
            tir.Global: lambda n: ast.Global(names=list(n.names)),
            tir.Nonlocal: lambda n: ast.Nonlocal(names=list(n.names)),
            tir.If: self._if,
            tir.While: self._while,
            tir.For: self._for,
            tir.Try: self._try,
            tir.FunctionDef: self._function_def,
            tir.ClassDef: self._class_def,
            tir.Import: self._import,
            tir.ImportFrom: self._import_from,
        }

    # ── expressions ──────────────────────────────────────────────

    def expr(self, node, ctx: type[ast.expr_context] = ast.Load) -> ast.expr:
        handler = self._EXPR_DISPATCH.get(type(node))
        if handler is None:
            raise TranslationError(f"Cannot print expression node {type(node).__name__}")
        return handler(node, ctx)

    def _exprs(self, nodes) -> list[ast.expr]:
        return [self.expr(n) for n in nodes]

    def _attribute(self, node: tir.Attribute, ctx) -> ast.expr:
        return ast.Attribute(value=self.expr(node.value), attr=node.attr, ctx=ctx())

    def _subscript(self, node: tir.Subscript, ctx) -> ast.expr:
        return ast.Subscript(
            value=self.expr(node.value), slice=self.expr(node.slice), ctx=ctx()
        )

    def _call(self, node: tir.Call, ctx) -> ast.expr:
        return ast.Call(func=self.expr(node.func), args=self._exprs(node.args), keywords=[])

    def _bin_op(self, node: tir.BinOp, ctx) -> ast.expr:
        return ast.BinOp(
            left=self.expr(node.left), op=_BIN_OPS[node.op](), right=self.expr(node.right)
        )

    def _unary_op(self, node: tir.UnaryOp, ctx) -> ast.expr:
        return ast.UnaryOp(op=_UNARY_OPS[node.op](), operand=self.expr(node.operand))

    def _bool_op(self, node: tir.BoolOp, ctx) -> ast.expr:
        return ast.BoolOp(op=_BOOL_OPS[node.op](), values=self._exprs(node.values))

    def _compare(self, node: tir.Compare, ctx) -> ast.expr:
        return ast.Compare(
            left=self.expr(node.left),
            ops=[_COMPARE_OPS[op]() for op in node.ops],
            comparators=self._exprs(node.comparators),
        )

    def _tuple(self, node: tir.Tuple, ctx) -> ast.expr:
        return ast.Tuple(elts=[self.expr(e, ctx) for e in node.elts], ctx=ctx())

    def _dict(self, node: tir.Dict, ctx) -> ast.expr:
        return ast.Dict(keys=self._exprs(node.keys), values=self._exprs(node.values))

    def _lambda(self, node: tir.Lambda, ctx) -> ast.expr:
        return ast.Lambda(args=self._arguments(node.args), body=self.expr(node.body))

    def _if_exp(self, node: tir.IfExp, ctx) -> ast.expr:
        return ast.IfExp(
            test=self.expr(node.test),
            body=self.expr(node.body),
            orelse=self.expr(node.orelse),
        )

    def _named_expr(self, node: tir.NamedExpr, ctx) -> ast.expr:
        return ast.NamedExpr(
            target=self.expr(node.target, ast.Store), value=self.expr(node.value)
        )

    def _emit(self, node: tir.Emit, ctx) -> ast.expr:
        rendered = [ast.unparse(ast.fix_missing_locations(self.expr(a))) for a in node.args]

        def fill(match: re.Match) -> str:
            index = int(match.group(1))
            if index >= len(rendered):
                raise TranslationError(
                    f"Emit template {node.value!r} references missing argument ${index}"
                )
            return f"({rendered[index]})"

        code = _EMIT_HOLE.sub(fill, node.value)
        try:
            return ast.parse(code, mode="eval").body
        except SyntaxError as e:
            raise TranslationError(f"Emit template does not parse: {code!r}") from e

    def _arguments(self, node: tir.Arguments) -> ast.arguments:
        return ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg=a.arg) for a in node.args],
            vararg=ast.arg(arg=node.vararg.arg) if node.vararg else None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[self.expr(a.default) for a in node.args if a.default is not None],
        )

    # ── statements ───────────────────────────────────────────────

    def stmt(self, node) -> ast.stmt:
        handler = self._STMT_DISPATCH.get(type(node))
        if handler is None:
            raise TranslationError(f"Cannot print statement node {type(node).__name__}")
        return handler(node)

    def stmts(self, nodes) -> list[ast.stmt]:
        return [self.stmt(n) for n in nodes] or [ast.Pass()]

    def _assign(self, node: tir.Assign) -> ast.stmt:
        return ast.Assign(
            targets=[self.expr(t, ast.Store) for t in node.targets],
            value=self.expr(node.value),
        )

    def _return(self, node: tir.Return) -> ast.stmt:
        return ast.Return(value=self.expr(node.value) if node.value is not None else None)

    def _raise(self, node: tir.Raise) -> ast.stmt:
        return ast.Raise(exc=self.expr(node.exc) if node.exc is not None else None, cause=None)

    def _if(self, node: tir.If) -> ast.stmt:
        return ast.If(
            test=self.expr(node.test),
            body=self.stmts(node.body),
            orelse=[self.stmt(s) for s in node.orelse],
        )

    def _while(self, node: tir.While) -> ast.stmt:
        return ast.While(
            test=self.expr(node.test),
            body=self.stmts(node.body),
            orelse=[self.stmt(s) for s in node.orelse],
        )

    def _for(self, node: tir.For) -> ast.stmt:
        return ast.For(
            target=self.expr(node.target, ast.Store),
            iter=self.expr(node.iter),
            body=self.stmts(node.body),
            orelse=[self.stmt(s) for s in node.orelse],
        )

    def _try(self, node: tir.Try) -> ast.stmt:
        handlers = [
            ast.ExceptHandler(
                type=self.expr(h.exc_type) if h.exc_type is not None else None,
                name=h.name,
                body=self.stmts(h.body),
            )
            for h in node.handlers
        ]
        return ast.Try(
            body=self.stmts(node.body),
            handlers=handlers,
            orelse=[self.stmt(s) for s in node.orelse],
            finalbody=[self.stmt(s) for s in node.finalbody],
        )

    def _function_def(self, node: tir.FunctionDef) -> ast.stmt:
        return ast.FunctionDef(
            name=node.name,
            args=self._arguments(node.args),
            body=self.stmts(node.body),
            decorator_list=self._exprs(node.decorator_list),
            returns=None,
            **_definition_fields(),
        )

    def _class_def(self, node: tir.ClassDef) -> ast.stmt:
        return ast.ClassDef(
            name=node.name,
            bases=self._exprs(node.bases),
            keywords=[],
            body=self.stmts(node.body),
            decorator_list=[],
            **_definition_fields(),
        )

    def _import(self, node: tir.Import) -> ast.stmt:
        return ast.Import(names=[ast.alias(name=a.name, asname=a.asname) for a in node.names])

    def _import_from(self, node: tir.ImportFrom) -> ast.stmt:
        return ast.ImportFrom(
            module=node.module,
            names=[ast.alias(name=a.name, asname=a.asname) for a in node.names],
            level=0,
        )

    # ── module ───────────────────────────────────────────────────

    def module(self, module: tir.Module) -> ast.Module:
        tree = ast.Module(body=[self.stmt(s) for s in module.body], type_ignores=[])
        return ast.fix_missing_locations(tree)

    def render(self, node) -> str:
        """Source text of a single target statement."""
        tree = ast.Module(body=[self.stmt(node)], type_ignores=[])
        return ast.unparse(ast.fix_missing_locations(tree))


def print_module(module: tir.Module) -> str:
    """Imports first, then a blank line, then every statement followed by a blank line."""
    printer = PythonPrinter()
    imports = [s for s in module.body if isinstance(s, (tir.Import, tir.ImportFrom))]
    body = [s for s in module.body if not isinstance(s, (tir.Import, tir.ImportFrom))]

    parts: list[str] = []
    if imports:
        parts.append("\n".join(printer.render(s) for s in imports) + "\n")
    parts.extend(printer.render(s) + "\n" for s in body)
    logger.debug("Printed %d imports and %d statements", len(imports), len(body))
    return "\n".join(parts)
