"""Target IR: the Python-shaped module tree produced by the translator.

Statements and expressions are kept strictly apart: there is no
statement-shaped expression, which is the constraint the translator works
around with preludes and lifted functions.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class Operator(str, Enum):
    ADD = "+"
    SUB = "-"
    MULT = "*"
    DIV = "/"
    MOD = "%"
    POW = "**"
    LSHIFT = "<<"
    RSHIFT = ">>"
    BIT_OR = "|"
    BIT_XOR = "^"
    BIT_AND = "&"


class UnaryOperator(str, Enum):
    USUB = "-"
    UADD = "+"
    INVERT = "~"
    NOT = "not"


class BoolOperator(str, Enum):
    AND = "and"
    OR = "or"


class ComparisonOperator(str, Enum):
    EQ = "=="
    NOT_EQ = "!="
    LT = "<"
    LT_E = "<="
    GT = ">"
    GT_E = ">="
    IN = "in"


# ── expressions ──────────────────────────────────────────────────


class Constant(BaseModel):
    type: Literal["Constant"] = "Constant"
    value: Any = None


class Name(BaseModel):
    type: Literal["Name"] = "Name"
    id: str


class Attribute(BaseModel):
    type: Literal["Attribute"] = "Attribute"
    value: Expr
    attr: str


class Subscript(BaseModel):
    type: Literal["Subscript"] = "Subscript"
    value: Expr
    slice: Expr


class Call(BaseModel):
    type: Literal["Call"] = "Call"
    func: Expr
    args: list[Expr] = []


class BinOp(BaseModel):
    type: Literal["BinOp"] = "BinOp"
    left: Expr
    op: Operator
    right: Expr


class UnaryOp(BaseModel):
    type: Literal["UnaryOp"] = "UnaryOp"
    op: UnaryOperator
    operand: Expr


class BoolOp(BaseModel):
    type: Literal["BoolOp"] = "BoolOp"
    op: BoolOperator
    values: list[Expr]


class Compare(BaseModel):
    type: Literal["Compare"] = "Compare"
    left: Expr
    ops: list[ComparisonOperator]
    comparators: list[Expr]


class Tuple(BaseModel):
    type: Literal["Tuple"] = "Tuple"
    elts: list[Expr] = []


class Dict(BaseModel):
    type: Literal["Dict"] = "Dict"
    keys: list[Expr] = []
    values: list[Expr] = []


class Arg(BaseModel):
    arg: str
    default: Optional[Expr] = None


class Arguments(BaseModel):
    args: list[Arg] = []
    vararg: Optional[Arg] = None

    def names(self) -> list[str]:
        return [a.arg for a in self.args]


class Lambda(BaseModel):
    type: Literal["Lambda"] = "Lambda"
    args: Arguments = Field(default_factory=Arguments)
    body: Expr


class IfExp(BaseModel):
    type: Literal["IfExp"] = "IfExp"
    test: Expr
    body: Expr
    orelse: Expr


class NamedExpr(BaseModel):
    type: Literal["NamedExpr"] = "NamedExpr"
    target: Name
    value: Expr


class Emit(BaseModel):
    """Verbatim code template; ``$i`` is replaced by the i-th argument."""

    type: Literal["Emit"] = "Emit"
    value: str
    args: list[Expr] = []


# ── statements ───────────────────────────────────────────────────


class Assign(BaseModel):
    type: Literal["Assign"] = "Assign"
    targets: list[Expr]
    value: Expr


class ExprStmt(BaseModel):
    type: Literal["Expr"] = "Expr"
    value: Expr


class Return(BaseModel):
    type: Literal["Return"] = "Return"
    value: Optional[Expr] = None


class Pass(BaseModel):
    type: Literal["Pass"] = "Pass"


class Break(BaseModel):
    type: Literal["Break"] = "Break"


class Continue(BaseModel):
    type: Literal["Continue"] = "Continue"


class Raise(BaseModel):
    type: Literal["Raise"] = "Raise"
    exc: Optional[Expr] = None


class Global(BaseModel):
    type: Literal["Global"] = "Global"
    names: list[str]


class Nonlocal(BaseModel):
    type: Literal["Nonlocal"] = "Nonlocal"
    names: list[str]


class If(BaseModel):
    type: Literal["If"] = "If"
    test: Expr
    body: list[Stmt]
    orelse: list[Stmt] = []


class While(BaseModel):
    type: Literal["While"] = "While"
    test: Expr
    body: list[Stmt]
    orelse: list[Stmt] = []


class For(BaseModel):
    type: Literal["For"] = "For"
    target: Expr
    iter: Expr
    body: list[Stmt]
    orelse: list[Stmt] = []


class ExceptHandler(BaseModel):
    exc_type: Optional[Expr] = None
    name: Optional[str] = None
    body: list[Stmt]


class Try(BaseModel):
    type: Literal["Try"] = "Try"
    body: list[Stmt]
    handlers: list[ExceptHandler] = []
    orelse: list[Stmt] = []
    finalbody: list[Stmt] = []


class FunctionDef(BaseModel):
    type: Literal["FunctionDef"] = "FunctionDef"
    name: str
    args: Arguments = Field(default_factory=Arguments)
    body: list[Stmt]
    decorator_list: list[Expr] = []


class ClassDef(BaseModel):
    type: Literal["ClassDef"] = "ClassDef"
    name: str
    bases: list[Expr] = []
    body: list[Stmt]


class Alias(BaseModel):
    name: str
    asname: Optional[str] = None


class Import(BaseModel):
    type: Literal["Import"] = "Import"
    names: list[Alias]


class ImportFrom(BaseModel):
    type: Literal["ImportFrom"] = "ImportFrom"
    module: str
    names: list[Alias]


class Module(BaseModel):
    body: list[Stmt] = []


EXPR_NODES: tuple[type[BaseModel], ...] = (
    Constant,
    Name,
    Attribute,
    Subscript,
    Call,
    BinOp,
    UnaryOp,
    BoolOp,
    Compare,
    Tuple,
    Dict,
    Lambda,
    IfExp,
    NamedExpr,
    Emit,
)

STMT_NODES: tuple[type[BaseModel], ...] = (
    Assign,
    ExprStmt,
    Return,
    Pass,
    Break,
    Continue,
    Raise,
    Global,
    Nonlocal,
    If,
    While,
    For,
    Try,
    FunctionDef,
    ClassDef,
    Import,
    ImportFrom,
)

Expr = Annotated[Union[EXPR_NODES], Field(discriminator="type")]
Stmt = Annotated[Union[STMT_NODES], Field(discriminator="type")]

for _model in (*EXPR_NODES, *STMT_NODES, Arg, Arguments, ExceptHandler, Alias, Module):
    _model.model_rebuild()


# ── constructors ─────────────────────────────────────────────────


def none() -> Constant:
    return Constant(value=None)


def call(func: Union[str, BaseModel], args: Optional[list] = None) -> Call:
    """Call *func* (a name or an expression) with positional *args*."""
    if isinstance(func, str):
        func = Name(id=func)
    return Call(func=func, args=args or [])
