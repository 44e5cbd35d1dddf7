"""Return-strategy normalizer and scans over translated statement lists."""

from __future__ import annotations

import logging
from typing import Iterator

from pydantic import BaseModel

from . import target_ir as tir
from .context import ReturnStrategy

logger = logging.getLogger(__name__)


def is_productive(stmt: tir.Stmt) -> bool:
    """False for expression statements that cannot have an observable effect."""
    if not isinstance(stmt, tir.ExprStmt):
        return True
    value = stmt.value
    if isinstance(value, (tir.Constant, tir.Name)):
        return False
    if isinstance(value, tir.Dict) and not value.keys:
        return False
    return True


def transform_body(strategy: ReturnStrategy, body: list[tir.Stmt]) -> list[tir.Stmt]:
    """Strip dead statements and guarantee a non-empty block.

    ``RETURN`` completes an empty block with a bare return, ``NO_RETURN``
    with ``pass``; ``NO_BREAK`` first discards break markers and then
    follows the ``NO_RETURN`` rules.
    """
    if strategy == ReturnStrategy.NO_BREAK:
        without_breaks = [s for s in body if not isinstance(s, tir.Break)]
        return transform_body(ReturnStrategy.NO_RETURN, without_breaks)

    stmts = [s for s in body if is_productive(s)]
    if any(not isinstance(s, tir.Pass) for s in stmts):
        stmts = [s for s in stmts if not isinstance(s, tir.Pass)]
    else:
        stmts = []

    if stmts:
        return stmts
    if strategy == ReturnStrategy.RETURN:
        return [tir.Return()]
    return [tir.Pass()]


_NEW_SCOPE_NODES = (tir.FunctionDef, tir.ClassDef, tir.Lambda)
_LOOP_NODES = (tir.While, tir.For)


def _children(node: BaseModel) -> Iterator[BaseModel]:
    for field_name in type(node).model_fields:
        value = getattr(node, field_name)
        if isinstance(value, BaseModel):
            yield value
        elif isinstance(value, list):
            yield from (v for v in value if isinstance(v, BaseModel))


def bound_names(body: list[tir.Stmt]) -> list[str]:
    """Names that *body* binds in its own scope, in first-binding order.

    Nested function, class and lambda scopes are not entered; the names of
    nested definitions themselves are not reported.
    """
    names: dict[str, None] = {}

    def visit(node: BaseModel) -> None:
        if isinstance(node, _NEW_SCOPE_NODES):
            return
        if isinstance(node, tir.Assign):
            names.update((t.id, None) for t in node.targets if isinstance(t, tir.Name))
        elif isinstance(node, tir.NamedExpr):
            names[node.target.id] = None
        elif isinstance(node, tir.For) and isinstance(node.target, tir.Name):
            names[node.target.id] = None
        for child in _children(node):
            visit(child)

    for stmt in body:
        visit(stmt)
    return list(names)


def escapes(body: list[tir.Stmt], kind: type) -> bool:
    """True if *body* holds a *kind* jump not enclosed by a loop of its own."""

    def visit(node: BaseModel) -> bool:
        if isinstance(node, kind):
            return True
        if isinstance(node, _LOOP_NODES + _NEW_SCOPE_NODES):
            return False
        return any(visit(child) for child in _children(node))

    return any(visit(stmt) for stmt in body)
