"""Lowers a source IR module into a target IR module.

One ``Translator`` is created per source file. It owns the file-scoped
mutable state (the import table and the synthetic-name counter); everything
else is threaded through an immutable ``Context``.

Expressions translate to an ``(expression, prelude)`` pair: the prelude is
the ordered list of statements that must run before the expression's value
is used. Statements translate to a list of target statements which the
return-strategy normalizer completes before they are installed in their
enclosing slot.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from . import constants
from . import source_ir as src
from . import target_ir as tir
from .config import TranslatorConfig
from .context import Context, ReturnStrategy, TailCallOpportunity
from .diagnostics import Diagnostics
from .imports import ImportTable
from .naming import SyntheticNames, clean_name, ident_for_import, rewrite_module_name
from .normalize import bound_names, escapes, is_productive, transform_body

logger = logging.getLogger(__name__)

ExprWithPrelude = tuple[tir.Expr, list[tir.Stmt]]

BINARY_OPERATORS: dict[str, tir.Operator] = {
    "+": tir.Operator.ADD,
    "-": tir.Operator.SUB,
    "*": tir.Operator.MULT,
    "/": tir.Operator.DIV,
    "%": tir.Operator.MOD,
    "**": tir.Operator.POW,
    "<<": tir.Operator.LSHIFT,
    ">>": tir.Operator.RSHIFT,
    "|": tir.Operator.BIT_OR,
    "^": tir.Operator.BIT_XOR,
    "&": tir.Operator.BIT_AND,
}

COMPARISON_OPERATORS: dict[str, tir.ComparisonOperator] = {
    "==": tir.ComparisonOperator.EQ,
    "===": tir.ComparisonOperator.EQ,
    "!=": tir.ComparisonOperator.NOT_EQ,
    "!==": tir.ComparisonOperator.NOT_EQ,
    "<": tir.ComparisonOperator.LT,
    "<=": tir.ComparisonOperator.LT_E,
    ">": tir.ComparisonOperator.GT,
    ">=": tir.ComparisonOperator.GT_E,
    "in": tir.ComparisonOperator.IN,
}

TYPE_TEST_OPERATORS: frozenset[str] = frozenset({"instanceof", "isinstance"})

LOGICAL_OPERATORS: dict[str, tir.BoolOperator] = {
    "&&": tir.BoolOperator.AND,
    "||": tir.BoolOperator.OR,
}

UNARY_OPERATORS: dict[str, tir.UnaryOperator] = {
    "-": tir.UnaryOperator.USUB,
    "+": tir.UnaryOperator.UADD,
    "~": tir.UnaryOperator.INVERT,
    "!": tir.UnaryOperator.NOT,
}

VOID_OPERATOR = "void"

UPDATE_OPERATORS: dict[str, tir.Operator] = {
    "++": tir.Operator.ADD,
    "--": tir.Operator.SUB,
}

# Non-computed member names with a dedicated lowering.
MEMBER_REWRITES: dict[str, Callable[[tir.Expr], tir.Expr]] = {
    "length": lambda obj: tir.call("len", [obj]),
    "message": lambda obj: tir.call("str", [obj]),
    "indexOf": lambda obj: tir.Attribute(value=obj, attr="index"),
}

RANGE_TEST_OPERATORS = frozenset({"<", "<="})


class Translator:
    """Per-file source IR → target IR translator."""

    def __init__(
        self,
        config: Optional[TranslatorConfig] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.config = config or TranslatorConfig()
        self.diagnostics = diagnostics or Diagnostics()
        self.imports = ImportTable()
        self.names = SyntheticNames()

        self._EXPR_DISPATCH: dict[type, Callable[..., ExprWithPrelude]] = {
            src.NumericLiteral: self._literal,
            src.StringLiteral: self._literal,
            src.BooleanLiteral: self._literal,
            src.NullLiteral: self._null,
            src.Identifier: self._identifier,
            src.ThisExpression: self._this,
            src.Super: self._super,
            src.BinaryExpression: self._binary,
            src.LogicalExpression: self._logical,
            src.UnaryExpression: self._unary,
            src.UpdateExpression: self._update_expression,
            src.AssignmentExpression: self._assignment_expression,
            src.CallExpression: self._call,
            src.NewExpression: self._call,
            src.MemberExpression: self._member,
            src.ArrayExpression: self._array,
            src.ObjectExpression: self._object,
            src.ArrowFunctionExpression: self._closure,
            src.FunctionExpression: self._closure,
            src.ConditionalExpression: self._conditional,
            src.SequenceExpression: self._sequence,
            src.EmitExpression: self._emit,
        }

        self._STMT_DISPATCH: dict[type, Callable[..., list[tir.Stmt]]] = {
            src.BlockStatement: self._block,
            src.EmptyStatement: self._empty,
            src.ReturnStatement: self._return,
            src.ThrowStatement: self._throw,
            src.VariableDeclaration: self._variable_declaration,
            src.ExpressionStatement: self._expression_statement,
            src.IfStatement: self._if,
            src.WhileStatement: self._while,
            src.ForStatement: self._for,
            src.TryStatement: self._try,
            src.SwitchStatement: self._switch,
            src.BreakStatement: self._break,
            src.ContinueStatement: self._continue,
            src.LabeledStatement: self._labeled,
            src.FunctionDeclaration: self._function_declaration,
            src.ClassDeclaration: self._class_declaration,
        }

    # ── helpers ──────────────────────────────────────────────────

    def _lift(self, body: list[tir.Stmt], args: Optional[tir.Arguments] = None):
        """Wrap *body* in a synthetic function; returns (name, definition)."""
        name = self.names.fresh(constants.LIFTED_FUNCTION_PREFIX)
        logger.debug("Lifting %d statements into %s", len(body), name)
        func = tir.FunctionDef(name=name, args=args or tir.Arguments(), body=body)
        return name, func

    def _guard(
        self, ctx: Context, value: tir.Expr, prelude: list[tir.Stmt]
    ) -> ExprWithPrelude:
        """Keep a conditionally evaluated prelude from running unconditionally.

        The lifted helper declares every source name it rebinds as
        ``nonlocal`` (or ``global`` at module level) so the assignment lands
        in the enclosing scope.
        """
        if all(isinstance(s, tir.FunctionDef) for s in prelude):
            return value, prelude
        body = prelude + [tir.Return(value=value)]
        rebound = [n for n in bound_names(body) if not self.names.is_synthetic(n)]
        if rebound:
            scope = tir.Nonlocal if ctx.function_scope else tir.Global
            body = [scope(names=rebound)] + body
        name, func = self._lift(body)
        return tir.call(name), [func]

    def _arguments(self, params: list, closure: bool = False) -> tir.Arguments:
        args: list[tir.Arg] = []
        vararg: Optional[tir.Arg] = None
        for param in params:
            if isinstance(param, src.Identifier):
                args.append(tir.Arg(arg=clean_name(param.name)))
            elif isinstance(param, src.RestElement):
                if vararg is None:
                    vararg = tir.Arg(arg=clean_name(param.argument.name))
                else:
                    self.diagnostics.warn_once(
                        "Only one rest parameter is supported; "
                        "additional rest parameters are dropped",
                        param.loc,
                    )
            else:
                self.diagnostics.error(
                    f"Unsupported parameter pattern: {type(param).__name__}",
                    getattr(param, "loc", None),
                )
        if closure and not args and vararg is None:
            args = [tir.Arg(arg=constants.UNIT_PARAM_NAME, default=tir.none())]
        return tir.Arguments(args=args, vararg=vararg)

    def _translate_many(
        self, ctx: Context, exprs: list[src.Node]
    ) -> tuple[list[tir.Expr], list[tir.Stmt]]:
        values: list[tir.Expr] = []
        prelude: list[tir.Stmt] = []
        for expr in exprs:
            value, stmts = self.translate_expression(ctx, expr)
            values.append(value)
            prelude.extend(stmts)
        return values, prelude

    def _translate_statements(
        self, ctx: Context, strategy: ReturnStrategy, stmts: list[src.Node]
    ) -> list[tir.Stmt]:
        result: list[tir.Stmt] = []
        for stmt in stmts:
            result.extend(self.translate_statement(ctx, strategy, stmt))
        return result

    def _branch(
        self, ctx: Context, strategy: ReturnStrategy, stmt: Optional[src.Node]
    ) -> list[tir.Stmt]:
        """Translate the body of an if/loop/try slot and normalize it."""
        if stmt is None:
            stmts: list[tir.Stmt] = []
        elif isinstance(stmt, src.BlockStatement):
            stmts = self._translate_statements(ctx, strategy, stmt.body)
        else:
            stmts = self.translate_statement(ctx, strategy, stmt)
        return transform_body(ReturnStrategy.NO_RETURN, stmts)

    # ── expressions ──────────────────────────────────────────────

    def translate_expression(self, ctx: Context, expr: src.Node) -> ExprWithPrelude:
        """Translate *expr* into a target expression plus its prelude."""
        handler = self._EXPR_DISPATCH.get(type(expr))
        if handler is None:
            self.diagnostics.error(
                f"Unknown expression kind: {type(expr).__name__}",
                getattr(expr, "loc", None),
            )
        return handler(ctx, expr)

    def _literal(self, ctx: Context, expr) -> ExprWithPrelude:
        return tir.Constant(value=expr.value), []

    def _null(self, ctx: Context, expr: src.NullLiteral) -> ExprWithPrelude:
        return tir.none(), []

    def _identifier(self, ctx: Context, expr: src.Identifier) -> ExprWithPrelude:
        return tir.Name(id=clean_name(expr.name)), []

    def _this(self, ctx: Context, expr: src.ThisExpression) -> ExprWithPrelude:
        return tir.Name(id=constants.SELF_NAME), []

    def _super(self, ctx: Context, expr: src.Super) -> ExprWithPrelude:
        return tir.call(constants.SUPER_NAME), []

    def _binary(self, ctx: Context, expr: src.BinaryExpression) -> ExprWithPrelude:
        left, left_prelude = self.translate_expression(ctx, expr.left)
        right, right_prelude = self.translate_expression(ctx, expr.right)
        prelude = left_prelude + right_prelude
        op = expr.operator
        if op in BINARY_OPERATORS:
            return tir.BinOp(left=left, op=BINARY_OPERATORS[op], right=right), prelude
        if op in COMPARISON_OPERATORS:
            compare = tir.Compare(
                left=left, ops=[COMPARISON_OPERATORS[op]], comparators=[right]
            )
            return compare, prelude
        if op in TYPE_TEST_OPERATORS:
            return tir.call("isinstance", [left, right]), prelude
        self.diagnostics.error(f"Unknown binary operator: {op}", expr.loc)

    def _logical(self, ctx: Context, expr: src.LogicalExpression) -> ExprWithPrelude:
        op = LOGICAL_OPERATORS.get(expr.operator)
        if op is None:
            self.diagnostics.error(f"Unknown logical operator: {expr.operator}", expr.loc)
        left, prelude = self.translate_expression(ctx, expr.left)
        right, right_prelude = self._guard(
            ctx, *self.translate_expression(ctx, expr.right)
        )
        prelude = prelude + right_prelude
        if isinstance(left, tir.BoolOp) and left.op == op:
            return tir.BoolOp(op=op, values=[*left.values, right]), prelude
        return tir.BoolOp(op=op, values=[left, right]), prelude

    def _unary(self, ctx: Context, expr: src.UnaryExpression) -> ExprWithPrelude:
        operand, prelude = self.translate_expression(ctx, expr.argument)
        if expr.operator == VOID_OPERATOR:
            if is_productive(tir.ExprStmt(value=operand)):
                prelude = prelude + [tir.ExprStmt(value=operand)]
            return tir.none(), prelude
        op = UNARY_OPERATORS.get(expr.operator)
        if op is None:
            self.diagnostics.error(f"Unknown unary operator: {expr.operator}", expr.loc)
        return tir.UnaryOp(op=op, operand=operand), prelude

    def _update_expression(
        self, ctx: Context, expr: src.UpdateExpression
    ) -> ExprWithPrelude:
        self.diagnostics.error(
            f"Update expression '{expr.operator}' is only supported as a statement",
            expr.loc,
        )

    def _assignment_expression(
        self, ctx: Context, expr: src.AssignmentExpression
    ) -> ExprWithPrelude:
        if expr.operator != "=":
            self.diagnostics.error(
                f"Compound assignment '{expr.operator}' in expression position",
                expr.loc,
            )
        value, prelude = self.translate_expression(ctx, expr.right)
        if isinstance(expr.left, src.Identifier):
            target = tir.Name(id=clean_name(expr.left.name))
            return tir.NamedExpr(target=target, value=value), prelude
        temp = tir.Name(id=self.names.fresh(constants.ASSIGN_VALUE_PREFIX))
        prelude = prelude + [tir.Assign(targets=[temp], value=value)]
        prelude += self._assign(ctx, expr.left, temp, expr.loc)
        return temp, prelude

    def _call(self, ctx: Context, expr) -> ExprWithPrelude:
        if isinstance(expr.callee, src.Super):
            func: tir.Expr = tir.Attribute(
                value=tir.call(constants.SUPER_NAME), attr=constants.INIT_METHOD_NAME
            )
            prelude: list[tir.Stmt] = []
        else:
            func, prelude = self.translate_expression(ctx, expr.callee)
        args, args_prelude = self._translate_many(ctx, expr.arguments)
        return tir.Call(func=func, args=args), prelude + args_prelude

    def _member_object(self, ctx: Context, obj: src.Node) -> ExprWithPrelude:
        if isinstance(obj, src.Identifier) and obj.name == constants.MATH_OBJECT:
            self.get_import_reference(ctx, constants.MODULE_IMPORT, constants.MATH_MODULE)
            return tir.Name(id=constants.MATH_MODULE), []
        return self.translate_expression(ctx, obj)

    def _member(self, ctx: Context, expr: src.MemberExpression) -> ExprWithPrelude:
        obj, prelude = self._member_object(ctx, expr.object)
        prop = expr.property
        if expr.computed:
            if isinstance(prop, src.NumericLiteral):
                return tir.Subscript(value=obj, slice=tir.Constant(value=prop.value)), prelude
            if isinstance(prop, src.StringLiteral):
                return tir.call("getattr", [obj, tir.Constant(value=prop.value)]), prelude
            if isinstance(prop, (src.BooleanLiteral, src.NullLiteral)):
                self.diagnostics.error(
                    f"Unknown literal as member key: {type(prop).__name__}", prop.loc
                )
            index, index_prelude = self.translate_expression(ctx, prop)
            return tir.Subscript(value=obj, slice=index), prelude + index_prelude

        if not isinstance(prop, src.Identifier):
            self.diagnostics.error(
                f"Unsupported member property: {type(prop).__name__}", expr.loc
            )
        rewrite = MEMBER_REWRITES.get(prop.name)
        if rewrite is not None:
            return rewrite(obj), prelude
        return tir.Attribute(value=obj, attr=clean_name(prop.name)), prelude

    def _array(self, ctx: Context, expr: src.ArrayExpression) -> ExprWithPrelude:
        elts, prelude = self._translate_many(ctx, expr.elements)
        return tir.Tuple(elts=elts), prelude

    def _property_key(self, ctx: Context, key: src.Node, computed: bool) -> ExprWithPrelude:
        if computed:
            return self.translate_expression(ctx, key)
        if isinstance(key, src.Identifier):
            return tir.Constant(value=key.name), []
        if isinstance(key, (src.StringLiteral, src.NumericLiteral)):
            return tir.Constant(value=key.value), []
        self.diagnostics.error(f"Unknown literal as object key: {type(key).__name__}", key.loc)

    def _object(self, ctx: Context, expr: src.ObjectExpression) -> ExprWithPrelude:
        keys: list[tir.Expr] = []
        values: list[tir.Expr] = []
        prelude: list[tir.Stmt] = []
        for prop in expr.properties:
            key, key_prelude = self._property_key(ctx, prop.key, prop.computed)
            prelude.extend(key_prelude)
            if isinstance(prop, src.ObjectMethod):
                method_ctx = ctx.without_tail_call().in_function()
                body = transform_body(
                    ReturnStrategy.RETURN,
                    self._translate_statements(
                        method_ctx, ReturnStrategy.RETURN, prop.body.body
                    ),
                )
                name, func = self._lift(body, self._arguments(prop.params))
                prelude.append(func)
                value: tir.Expr = tir.Name(id=name)
            else:
                value, value_prelude = self.translate_expression(ctx, prop.value)
                prelude.extend(value_prelude)
            keys.append(key)
            values.append(value)
        return tir.Dict(keys=keys, values=values), prelude

    def _inline_body(self, expr) -> Optional[src.Node]:
        """The expression an arrow or function expression reduces to, if any."""
        body = expr.body
        if not isinstance(body, src.BlockStatement):
            return body
        if len(body.body) != 1:
            return None
        (only,) = body.body
        if isinstance(only, src.ReturnStatement) and only.argument is not None:
            return only.argument
        if (
            isinstance(expr, src.FunctionExpression)
            and isinstance(only, src.ExpressionStatement)
            and not isinstance(only.expression, src.AssignmentExpression)
        ):
            return only.expression
        return None

    def _closure(self, ctx: Context, expr) -> ExprWithPrelude:
        closure_ctx = ctx.without_tail_call().in_function()
        args = self._arguments(expr.params, closure=True)
        inline = None if getattr(expr, "id", None) else self._inline_body(expr)

        if inline is not None:
            value, prelude = self.translate_expression(closure_ctx, inline)
            if not prelude:
                return tir.Lambda(args=args, body=value), []
            body = prelude + [tir.Return(value=value)]
        else:
            body = transform_body(
                ReturnStrategy.RETURN,
                self._translate_statements(
                    closure_ctx, ReturnStrategy.RETURN, expr.body.body
                ),
            )

        if getattr(expr, "id", None):
            func = tir.FunctionDef(name=clean_name(expr.id.name), args=args, body=body)
            return tir.Name(id=func.name), [func]
        name, func = self._lift(body, args)
        return tir.Name(id=name), [func]

    def _conditional(
        self, ctx: Context, expr: src.ConditionalExpression
    ) -> ExprWithPrelude:
        test, prelude = self.translate_expression(ctx, expr.test)
        body, body_prelude = self._guard(
            ctx, *self.translate_expression(ctx, expr.consequent)
        )
        orelse, orelse_prelude = self._guard(
            ctx, *self.translate_expression(ctx, expr.alternate)
        )
        if_exp = tir.IfExp(test=test, body=body, orelse=orelse)
        return if_exp, prelude + body_prelude + orelse_prelude

    def _sequence(self, ctx: Context, expr: src.SequenceExpression) -> ExprWithPrelude:
        if not expr.expressions:
            self.diagnostics.error("Empty sequence expression", expr.loc)
        *effects, last = expr.expressions
        prelude: list[tir.Stmt] = []
        for effect in effects:
            prelude.extend(self._expression_statement_for(ctx, effect))
        value, value_prelude = self.translate_expression(ctx, last)
        return value, prelude + value_prelude

    def _emit(self, ctx: Context, expr: src.EmitExpression) -> ExprWithPrelude:
        args, prelude = self._translate_many(ctx, expr.args)
        if expr.value == constants.VOID_EMIT_TEMPLATE:
            if not args:
                self.diagnostics.error("Emit template 'void $0' without argument", expr.loc)
            return args[0], prelude
        return tir.Emit(value=expr.value, args=args), prelude

    # ── assignment lowering ──────────────────────────────────────

    def _assign(
        self, ctx: Context, target: src.Node, value: tir.Expr, loc=None
    ) -> list[tir.Stmt]:
        """Store an already translated *value* into a source assignment target."""
        if isinstance(target, src.Identifier):
            return [tir.Assign(targets=[tir.Name(id=clean_name(target.name))], value=value)]
        if isinstance(target, src.MemberExpression):
            prop = target.property
            if target.computed and isinstance(prop, src.StringLiteral):
                obj, prelude = self.translate_expression(ctx, target.object)
                setattr_call = tir.call(
                    "setattr", [obj, tir.Constant(value=prop.value), value]
                )
                return prelude + [tir.ExprStmt(value=setattr_call)]
            if not target.computed and isinstance(prop, src.Identifier):
                obj, prelude = self.translate_expression(ctx, target.object)
                attribute = tir.Attribute(value=obj, attr=clean_name(prop.name))
                return prelude + [tir.Assign(targets=[attribute], value=value)]
        self.diagnostics.error(
            f"Unsupported assignment target: {type(target).__name__}",
            getattr(target, "loc", None) or loc,
        )

    def _assignment_statement(
        self, ctx: Context, expr: src.AssignmentExpression
    ) -> list[tir.Stmt]:
        value, prelude = self.translate_expression(ctx, expr.right)
        if expr.operator != "=":
            op = BINARY_OPERATORS.get(expr.operator[:-1])
            if op is None or not expr.operator.endswith("="):
                self.diagnostics.error(
                    f"Unknown assignment operator: {expr.operator}", expr.loc
                )
            current, current_prelude = self.translate_expression(ctx, expr.left)
            prelude = current_prelude + prelude
            value = tir.BinOp(left=current, op=op, right=value)
        return prelude + self._assign(ctx, expr.left, value, expr.loc)

    def _update_statement(
        self, ctx: Context, expr: src.UpdateExpression
    ) -> list[tir.Stmt]:
        op = UPDATE_OPERATORS.get(expr.operator)
        if op is None:
            self.diagnostics.error(f"Unknown update operator: {expr.operator}", expr.loc)
        current, prelude = self.translate_expression(ctx, expr.argument)
        value = tir.BinOp(left=current, op=op, right=tir.Constant(value=1))
        return prelude + self._assign(ctx, expr.argument, value, expr.loc)

    # ── statements ───────────────────────────────────────────────

    def translate_statement(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.Node
    ) -> list[tir.Stmt]:
        """Translate one source statement into zero or more target statements."""
        handler = self._STMT_DISPATCH.get(type(stmt))
        if handler is None:
            self.diagnostics.error(
                f"Unknown statement kind: {type(stmt).__name__}",
                getattr(stmt, "loc", None),
            )
        return handler(ctx, strategy, stmt)

    def _block(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.BlockStatement
    ) -> list[tir.Stmt]:
        stmts = self._translate_statements(ctx, strategy, stmt.body)
        if strategy == ReturnStrategy.RETURN:
            return transform_body(ReturnStrategy.NO_RETURN, stmts)
        return transform_body(strategy, stmts)

    def _empty(self, ctx: Context, strategy: ReturnStrategy, stmt) -> list[tir.Stmt]:
        return []

    def _tail_call(
        self, ctx: Context, strategy: ReturnStrategy, argument: src.Node
    ) -> Optional[list[tir.Stmt]]:
        opportunity = ctx.tail_call_opportunity
        if (
            opportunity is None
            or strategy != ReturnStrategy.RETURN
            or not isinstance(argument, src.CallExpression)
            or not opportunity.is_recursive_ref(argument.callee)
            or len(argument.arguments) != len(opportunity.args)
        ):
            return None
        values, prelude = self._translate_many(ctx, argument.arguments)
        opportunity.mark_used()
        if len(values) == 1:
            targets: list[tir.Expr] = [tir.Name(id=opportunity.args[0])]
            prelude.append(tir.Assign(targets=targets, value=values[0]))
        elif values:
            names = [tir.Name(id=arg) for arg in opportunity.args]
            prelude.append(
                tir.Assign(targets=[tir.Tuple(elts=names)], value=tir.Tuple(elts=values))
            )
        return prelude + [tir.Continue()]

    def _return(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.ReturnStatement
    ) -> list[tir.Stmt]:
        if stmt.argument is None:
            return [tir.Return()]
        tail_call = self._tail_call(ctx, strategy, stmt.argument)
        if tail_call is not None:
            return tail_call
        value, prelude = self.translate_expression(ctx, stmt.argument)
        if strategy == ReturnStrategy.NO_RETURN:
            return prelude + [tir.ExprStmt(value=value)]
        return prelude + [tir.Return(value=value)]

    def _throw(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.ThrowStatement
    ) -> list[tir.Stmt]:
        value, prelude = self.translate_expression(ctx, stmt.argument)
        return prelude + [tir.Raise(exc=value)]

    def _variable_declaration(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.VariableDeclaration
    ) -> list[tir.Stmt]:
        result: list[tir.Stmt] = []
        for declarator in stmt.declarations:
            target = tir.Name(id=clean_name(declarator.id.name))
            if declarator.init is None:
                if ctx.hoist_vars([target.id]):
                    result.append(tir.Assign(targets=[target], value=tir.none()))
                continue
            value, prelude = self.translate_expression(ctx, declarator.init)
            result.extend(prelude)
            result.append(tir.Assign(targets=[target], value=value))
        return result

    def _expression_statement_for(self, ctx: Context, expr: src.Node) -> list[tir.Stmt]:
        if isinstance(expr, src.AssignmentExpression):
            return self._assignment_statement(ctx, expr)
        if isinstance(expr, src.UpdateExpression):
            return self._update_statement(ctx, expr)
        if isinstance(expr, src.SequenceExpression):
            result: list[tir.Stmt] = []
            for element in expr.expressions:
                result.extend(self._expression_statement_for(ctx, element))
            return result
        value, prelude = self.translate_expression(ctx, expr)
        return prelude + [tir.ExprStmt(value=value)]

    def _expression_statement(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.ExpressionStatement
    ) -> list[tir.Stmt]:
        return self._expression_statement_for(ctx, stmt.expression)

    def _if(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.IfStatement
    ) -> list[tir.Stmt]:
        test, prelude = self.translate_expression(ctx, stmt.test)
        body = self._branch(ctx, strategy, stmt.consequent)
        orelse = self._branch(ctx, strategy, stmt.alternate) if stmt.alternate else []
        if orelse == [tir.Pass()]:
            orelse = []
        return prelude + [tir.If(test=test, body=body, orelse=orelse)]

    def _while(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.WhileStatement
    ) -> list[tir.Stmt]:
        test, prelude = self.translate_expression(ctx, stmt.test)
        body = self._branch(ctx.without_tail_call(), strategy, stmt.body)
        if not prelude:
            return [tir.While(test=test, body=body)]
        exit_check = tir.If(
            test=tir.UnaryOp(op=tir.UnaryOperator.NOT, operand=test), body=[tir.Break()]
        )
        loop_body = transform_body(
            ReturnStrategy.NO_RETURN, prelude + [exit_check] + body
        )
        return [tir.While(test=tir.Constant(value=True), body=loop_body)]

    def _is_unit_increment(self, update: Optional[src.Node], name: str) -> bool:
        if isinstance(update, src.UpdateExpression):
            return (
                update.operator == "++"
                and isinstance(update.argument, src.Identifier)
                and update.argument.name == name
            )
        if isinstance(update, src.AssignmentExpression):
            return (
                update.operator == "+="
                and isinstance(update.left, src.Identifier)
                and update.left.name == name
                and isinstance(update.right, src.NumericLiteral)
                and update.right.value == 1
            )
        return False

    def _for(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.ForStatement
    ) -> list[tir.Stmt]:
        init, test = stmt.init, stmt.test
        if not (
            isinstance(init, src.VariableDeclaration)
            and len(init.declarations) == 1
            and init.declarations[0].init is not None
        ):
            self.diagnostics.error(
                "Unsupported for loop: expected a single initialized declarator",
                stmt.loc,
            )
        declarator = init.declarations[0]
        loop_var = declarator.id.name
        if not (
            isinstance(test, src.BinaryExpression)
            and test.operator in RANGE_TEST_OPERATORS
            and isinstance(test.left, src.Identifier)
            and test.left.name == loop_var
        ):
            self.diagnostics.error(
                f"Unsupported for loop: expected test '{loop_var} <= bound'", stmt.loc
            )
        if not self._is_unit_increment(stmt.update, loop_var):
            self.diagnostics.error(
                f"Unsupported for loop: expected update '{loop_var}++'", stmt.loc
            )

        start, prelude = self.translate_expression(ctx, declarator.init)
        stop, stop_prelude = self.translate_expression(ctx, test.right)
        if test.operator == "<=":
            stop = tir.BinOp(left=stop, op=tir.Operator.ADD, right=tir.Constant(value=1))
        body = self._branch(ctx.without_tail_call(), strategy, stmt.body)
        loop = tir.For(
            target=tir.Name(id=clean_name(loop_var)),
            iter=tir.call("range", [start, stop]),
            body=body,
        )
        return prelude + stop_prelude + [loop]

    def _try(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.TryStatement
    ) -> list[tir.Stmt]:
        try_ctx = ctx.without_tail_call()
        body = self._branch(try_ctx, strategy, stmt.block)
        handlers: list[tir.ExceptHandler] = []
        if stmt.handler is not None:
            param = stmt.handler.param
            handlers.append(
                tir.ExceptHandler(
                    exc_type=tir.Name(id=constants.GENERIC_EXCEPTION_NAME),
                    name=clean_name(param.name) if param else None,
                    body=self._branch(try_ctx, strategy, stmt.handler.body),
                )
            )
        finalbody: list[tir.Stmt] = []
        if stmt.finalizer is not None:
            finalbody = self._branch(try_ctx, strategy, stmt.finalizer)
        if not handlers and not finalbody:
            self.diagnostics.error("Try statement without catch or finally", stmt.loc)
        return [tir.Try(body=body, handlers=handlers, finalbody=finalbody)]

    def _ordered_cases(self, stmt: src.SwitchStatement) -> list[src.SwitchCase]:
        """Cases with ``default`` moved to the end of the fold."""
        cases = list(stmt.cases)
        default_index = next(
            (i for i, case in enumerate(cases) if case.test is None), None
        )
        if default_index is None or default_index == len(cases) - 1:
            return cases
        self.diagnostics.warn_once(
            "Switch default case is not last; it is moved to the end", stmt.loc
        )
        default = cases[default_index]
        if not default.consequent:
            fallthrough = next(
                (c.consequent for c in cases[default_index + 1 :] if c.consequent), []
            )
            default = default.model_copy(update={"consequent": fallthrough})
        start = default_index
        while start > 0 and not cases[start - 1].consequent:
            start -= 1
        return cases[:start] + cases[default_index + 1 :] + [default]

    def _case_body(
        self, stmts: list[tir.Stmt], loc: Optional[src.SourceLocation]
    ) -> list[tir.Stmt]:
        """Normalize a case body so every break leaves the switch only.

        Statements after a top-level break are unreachable and dropped. A
        break nested in an if or try is kept inside a one-pass loop.
        """
        end = next(
            (i for i, s in enumerate(stmts) if isinstance(s, tir.Break)), len(stmts)
        )
        stmts = stmts[:end]
        if not escapes(stmts, tir.Break):
            return transform_body(ReturnStrategy.NO_BREAK, stmts)
        if escapes(stmts, tir.Continue):
            self.diagnostics.error(
                "Unsupported switch case: conditional break mixed with continue", loc
            )
        body = transform_body(ReturnStrategy.NO_RETURN, stmts)
        return [tir.While(test=tir.Constant(value=True), body=body + [tir.Break()])]

    def _switch(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.SwitchStatement
    ) -> list[tir.Stmt]:
        value, prelude = self.translate_expression(ctx, stmt.discriminant)
        if not isinstance(value, (tir.Name, tir.Constant)):
            temp = tir.Name(id=self.names.fresh(constants.MATCH_VALUE_PREFIX))
            prelude.append(tir.Assign(targets=[temp], value=value))
            value = temp

        case_ctx = ctx.without_tail_call()
        groups: list[tuple[Optional[list[tir.Expr]], list[tir.Stmt]]] = []
        pending: list[tir.Expr] = []
        for case in self._ordered_cases(stmt):
            if case.test is not None:
                test, test_prelude = self.translate_expression(ctx, case.test)
                prelude.extend(test_prelude)
                pending.append(
                    tir.Compare(
                        left=value, ops=[tir.ComparisonOperator.EQ], comparators=[test]
                    )
                )
            if not case.consequent:
                if case.test is None:
                    groups.append((None, [tir.Pass()]))
                continue
            body = self._case_body(
                self._translate_statements(case_ctx, strategy, case.consequent),
                stmt.loc,
            )
            groups.append((None if case.test is None else pending, body))
            pending = []

        chain: list[tir.Stmt] = []
        for tests, body in reversed(groups):
            if tests is None:
                chain = body
                continue
            test = tests[0] if len(tests) == 1 else tir.BoolOp(
                op=tir.BoolOperator.OR, values=tests
            )
            chain = [tir.If(test=test, body=body, orelse=chain)]
        return prelude + chain

    def _break(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.BreakStatement
    ) -> list[tir.Stmt]:
        if stmt.label is not None:
            self.diagnostics.warn_once("Labeled break is not supported; label dropped", stmt.loc)
        return [tir.Break()]

    def _continue(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.ContinueStatement
    ) -> list[tir.Stmt]:
        if stmt.label is not None:
            self.diagnostics.warn_once(
                "Labeled continue is not supported; label dropped", stmt.loc
            )
        return [tir.Continue()]

    def _labeled(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.LabeledStatement
    ) -> list[tir.Stmt]:
        self.diagnostics.warn_once("Statement labels are not supported; label dropped", stmt.loc)
        return self.translate_statement(ctx, strategy, stmt.body)

    def _function_declaration(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.FunctionDeclaration
    ) -> list[tir.Stmt]:
        return [
            self.translate_function(
                ctx, stmt.id.name, stmt.params, stmt.body, stmt.type_parameters
            )
        ]

    def _class_declaration(
        self, ctx: Context, strategy: ReturnStrategy, stmt: src.ClassDeclaration
    ) -> list[tir.Stmt]:
        return self.translate_class(
            ctx,
            stmt.body,
            name=stmt.id.name if stmt.id else None,
            super_class=stmt.super_class,
            type_parameters=stmt.type_parameters,
        )

    # ── functions and classes ────────────────────────────────────

    def translate_function(
        self,
        ctx: Context,
        name: str,
        params: list,
        body: src.BlockStatement,
        type_parameters: Union[list[str], tuple[str, ...]] = (),
    ) -> tir.FunctionDef:
        """Lower a function declaration, rewriting self tail calls into a loop."""
        func_name = clean_name(name)
        args = self._arguments(params)
        func_ctx = ctx.with_type_params(list(type_parameters))

        opportunity = None
        if args.vararg is None:
            opportunity = TailCallOpportunity(
                label=func_name,
                args=args.names(),
                is_recursive_ref=lambda e: (
                    isinstance(e, src.Identifier) and clean_name(e.name) == func_name
                ),
            )
        func_ctx = func_ctx.with_tail_call(opportunity).in_function()

        stmts = transform_body(
            ReturnStrategy.RETURN,
            self._translate_statements(func_ctx, ReturnStrategy.RETURN, body.body),
        )
        if opportunity is not None and opportunity.used:
            logger.debug("Rewrote tail calls of %s into a loop", func_name)
            if not isinstance(stmts[-1], (tir.Return, tir.Continue, tir.Raise)):
                stmts = stmts + [tir.Return()]
            stmts = [tir.While(test=tir.Constant(value=True), body=stmts)]
        return tir.FunctionDef(name=func_name, args=args, body=stmts)

    def _method(self, ctx: Context, method: src.ClassMethod) -> tir.FunctionDef:
        if method.kind not in (constants.METHOD_KIND, constants.CONSTRUCTOR_KIND):
            self.diagnostics.error(f"Unsupported method kind: {method.kind}", method.loc)
        key = method.key
        if method.computed or not isinstance(key, (src.Identifier, src.StringLiteral)):
            self.diagnostics.error("Unsupported method key", method.loc)

        is_constructor = method.kind == constants.CONSTRUCTOR_KIND
        if is_constructor:
            name = constants.INIT_METHOD_NAME
            strategy = ReturnStrategy.NO_RETURN
        else:
            name = clean_name(key.name if isinstance(key, src.Identifier) else key.value)
            strategy = ReturnStrategy.RETURN

        args = self._arguments(method.params)
        decorators: list[tir.Expr] = []
        if method.static:
            decorators.append(tir.Name(id=constants.STATIC_METHOD_DECORATOR))
        else:
            args.args.insert(0, tir.Arg(arg=constants.SELF_NAME))
        method_ctx = ctx.in_function()
        body = transform_body(
            strategy, self._translate_statements(method_ctx, strategy, method.body.body)
        )
        return tir.FunctionDef(
            name=name, args=args, body=body, decorator_list=decorators
        )

    def translate_class(
        self,
        ctx: Context,
        body: src.ClassBody,
        name: Optional[str] = None,
        super_class: Optional[src.Node] = None,
        type_parameters: Union[list[str], tuple[str, ...]] = (),
    ) -> list[tir.Stmt]:
        """Lower a class; returns the base-class prelude followed by the class."""
        class_name = (
            clean_name(name) if name else self.names.fresh(constants.ANONYMOUS_CLASS_PREFIX)
        )
        prelude: list[tir.Stmt] = []
        bases: list[tir.Expr] = []
        if super_class is not None:
            base, prelude = self.translate_expression(ctx, super_class)
            bases.append(base)

        class_ctx = ctx.with_type_params(list(type_parameters)).without_tail_call()
        members: list[tir.Stmt] = []
        for member in body.body:
            if not isinstance(member, src.ClassMethod):
                self.diagnostics.error(
                    f"Unsupported class member: {type(member).__name__}", member.loc
                )
            members.append(self._method(class_ctx, member))
        class_def = tir.ClassDef(name=class_name, bases=bases, body=members or [tir.Pass()])
        return prelude + [class_def]

    # ── imports and module assembly ──────────────────────────────

    def get_import_reference(
        self,
        ctx: Context,
        name: str,
        module: str,
        loc: Optional[src.SourceLocation] = None,
        local_name: Optional[str] = None,
    ) -> Optional[str]:
        """Local identifier bound to *name* imported from *module* (memoized)."""
        if name == constants.IMPORT_PLACEHOLDER:
            self.diagnostics.error(
                f"Unresolved import placeholder '{name}' from {module}", loc
            )
        entry = self.imports.get(module, name)
        if entry is None:
            alias = local_name
            if alias is None:
                alias = self.imports.unique_alias(ident_for_import(module, name))
            entry = self.imports.add(module, name, alias)
        return entry.alias

    def get_all_imports(self) -> list[tir.Stmt]:
        """Drain the import table into ordered import statements."""
        return self.imports.drain()

    def translate_imports(
        self, ctx: Context, specifiers: list, source_module: str
    ) -> list[tir.Stmt]:
        """Register an import declaration; returns local rebinding statements."""
        module = rewrite_module_name(
            source_module,
            self.config.library_module_pattern,
            self.config.library_namespace,
        )
        if not specifiers:
            self.get_import_reference(ctx, constants.MODULE_IMPORT, module)
            return []

        rebindings: list[tir.Stmt] = []
        for spec in specifiers:
            if isinstance(spec, src.ImportMemberSpecifier):
                name = clean_name(spec.imported.name)
            elif isinstance(spec, src.ImportDefaultSpecifier):
                name = constants.DEFAULT_IMPORT
            elif isinstance(spec, src.ImportNamespaceSpecifier):
                name = constants.NAMESPACE_IMPORT
            else:
                self.diagnostics.error(
                    f"Unknown import specifier: {type(spec).__name__}",
                    getattr(spec, "loc", None),
                )
            local = clean_name(spec.local.name)
            alias = self.get_import_reference(ctx, name, module, spec.loc, local_name=local)
            if alias is not None and alias != local:
                rebindings.append(
                    tir.Assign(targets=[tir.Name(id=local)], value=tir.Name(id=alias))
                )
        return rebindings

    def _module_declaration(self, ctx: Context, decl: src.Node) -> list[tir.Stmt]:
        if isinstance(decl, src.ImportDeclaration):
            return self.translate_imports(ctx, decl.specifiers, decl.source.value)
        if isinstance(decl, src.ExportNamedDeclaration):
            return self.translate_statement(ctx, ReturnStrategy.NO_RETURN, decl.declaration)
        if isinstance(decl, src.PrivateModuleDeclaration):
            return self.translate_statement(ctx, ReturnStrategy.NO_RETURN, decl.statement)
        self.diagnostics.error(
            f"Unknown module declaration: {type(decl).__name__}",
            getattr(decl, "loc", None),
        )

    def translate_program(
        self, program: Union[src.Program, list], ctx: Optional[Context] = None
    ) -> tir.Module:
        """Translate every module declaration and hoist all imports to the top."""
        ctx = ctx or Context()
        declarations = program.body if isinstance(program, src.Program) else program
        body: list[tir.Stmt] = []
        for decl in declarations:
            body.extend(self._module_declaration(ctx, decl))
        body = [s for s in body if is_productive(s) and not isinstance(s, tir.Pass)]
        imports = self.get_all_imports()
        logger.info(
            "Translated %d module declarations into %d statements (%d imports)",
            len(declarations),
            len(body),
            len(imports),
        )
        return tir.Module(body=imports + body)


def translate_module(
    program: src.Program,
    config: Optional[TranslatorConfig] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> tir.Module:
    """Translate *program* with a fresh per-file translator."""
    return Translator(config, diagnostics).translate_program(program)
