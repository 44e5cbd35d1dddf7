"""Source IR: the desugared JavaScript-family module tree consumed by the translator.

Every node carries a ``type`` tag so that the closed unions below can be
validated (and deserialized from JSON) as pydantic discriminated unions.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class SourceLocation(BaseModel):
    """Structured source span of a source IR node."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


class Node(BaseModel):
    loc: Optional[SourceLocation] = None


# ── literals ─────────────────────────────────────────────────────


class NumericLiteral(Node):
    type: Literal["NumericLiteral"] = "NumericLiteral"
    value: Union[int, float]


class StringLiteral(Node):
    type: Literal["StringLiteral"] = "StringLiteral"
    value: str


class BooleanLiteral(Node):
    type: Literal["BooleanLiteral"] = "BooleanLiteral"
    value: bool


class NullLiteral(Node):
    type: Literal["NullLiteral"] = "NullLiteral"


# ── expressions ──────────────────────────────────────────────────


class Identifier(Node):
    type: Literal["Identifier"] = "Identifier"
    name: str


class ThisExpression(Node):
    type: Literal["ThisExpression"] = "ThisExpression"


class Super(Node):
    type: Literal["Super"] = "Super"


class BinaryExpression(Node):
    type: Literal["BinaryExpression"] = "BinaryExpression"
    operator: str
    left: Expression
    right: Expression


class LogicalExpression(Node):
    type: Literal["LogicalExpression"] = "LogicalExpression"
    operator: str
    left: Expression
    right: Expression


class UnaryExpression(Node):
    type: Literal["UnaryExpression"] = "UnaryExpression"
    operator: str
    argument: Expression


class UpdateExpression(Node):
    type: Literal["UpdateExpression"] = "UpdateExpression"
    operator: str
    argument: Expression
    prefix: bool = False


class AssignmentExpression(Node):
    type: Literal["AssignmentExpression"] = "AssignmentExpression"
    operator: str = "="
    left: Expression
    right: Expression


class CallExpression(Node):
    type: Literal["CallExpression"] = "CallExpression"
    callee: Expression
    arguments: list[Expression] = []


class NewExpression(Node):
    type: Literal["NewExpression"] = "NewExpression"
    callee: Expression
    arguments: list[Expression] = []


class MemberExpression(Node):
    type: Literal["MemberExpression"] = "MemberExpression"
    object: Expression
    property: Expression
    computed: bool = False


class ArrayExpression(Node):
    type: Literal["ArrayExpression"] = "ArrayExpression"
    elements: list[Expression] = []


class ObjectProperty(Node):
    type: Literal["ObjectProperty"] = "ObjectProperty"
    key: Expression
    value: Expression
    computed: bool = False


class ObjectMethod(Node):
    type: Literal["ObjectMethod"] = "ObjectMethod"
    key: Expression
    params: list[Pattern] = []
    body: BlockStatement
    computed: bool = False


class ObjectExpression(Node):
    type: Literal["ObjectExpression"] = "ObjectExpression"
    properties: list[ObjectMember] = []


class ArrowFunctionExpression(Node):
    type: Literal["ArrowFunctionExpression"] = "ArrowFunctionExpression"
    params: list[Pattern] = []
    body: ArrowBody


class FunctionExpression(Node):
    type: Literal["FunctionExpression"] = "FunctionExpression"
    id: Optional[Identifier] = None
    params: list[Pattern] = []
    body: BlockStatement


class ConditionalExpression(Node):
    type: Literal["ConditionalExpression"] = "ConditionalExpression"
    test: Expression
    consequent: Expression
    alternate: Expression


class SequenceExpression(Node):
    type: Literal["SequenceExpression"] = "SequenceExpression"
    expressions: list[Expression]


class EmitExpression(Node):
    """Verbatim target code with ``$0..$n`` holes filled by *args*."""

    type: Literal["EmitExpression"] = "EmitExpression"
    value: str
    args: list[Expression] = []


# ── patterns ─────────────────────────────────────────────────────


class RestElement(Node):
    type: Literal["RestElement"] = "RestElement"
    argument: Identifier


# ── statements ───────────────────────────────────────────────────


class BlockStatement(Node):
    type: Literal["BlockStatement"] = "BlockStatement"
    body: list[Statement] = []


class EmptyStatement(Node):
    type: Literal["EmptyStatement"] = "EmptyStatement"


class ReturnStatement(Node):
    type: Literal["ReturnStatement"] = "ReturnStatement"
    argument: Optional[Expression] = None


class ThrowStatement(Node):
    type: Literal["ThrowStatement"] = "ThrowStatement"
    argument: Expression


class VariableDeclarator(Node):
    type: Literal["VariableDeclarator"] = "VariableDeclarator"
    id: Identifier
    init: Optional[Expression] = None


class VariableDeclaration(Node):
    type: Literal["VariableDeclaration"] = "VariableDeclaration"
    kind: str = "let"
    declarations: list[VariableDeclarator]


class ExpressionStatement(Node):
    type: Literal["ExpressionStatement"] = "ExpressionStatement"
    expression: Expression


class IfStatement(Node):
    type: Literal["IfStatement"] = "IfStatement"
    test: Expression
    consequent: Statement
    alternate: Optional[Statement] = None


class WhileStatement(Node):
    type: Literal["WhileStatement"] = "WhileStatement"
    test: Expression
    body: Statement


class ForStatement(Node):
    type: Literal["ForStatement"] = "ForStatement"
    init: Optional[ForInit] = None
    test: Optional[Expression] = None
    update: Optional[Expression] = None
    body: Statement


class CatchClause(Node):
    type: Literal["CatchClause"] = "CatchClause"
    param: Optional[Identifier] = None
    body: BlockStatement


class TryStatement(Node):
    type: Literal["TryStatement"] = "TryStatement"
    block: BlockStatement
    handler: Optional[CatchClause] = None
    finalizer: Optional[BlockStatement] = None


class SwitchCase(Node):
    type: Literal["SwitchCase"] = "SwitchCase"
    test: Optional[Expression] = None
    consequent: list[Statement] = []


class SwitchStatement(Node):
    type: Literal["SwitchStatement"] = "SwitchStatement"
    discriminant: Expression
    cases: list[SwitchCase] = []


class BreakStatement(Node):
    type: Literal["BreakStatement"] = "BreakStatement"
    label: Optional[Identifier] = None


class ContinueStatement(Node):
    type: Literal["ContinueStatement"] = "ContinueStatement"
    label: Optional[Identifier] = None


class LabeledStatement(Node):
    type: Literal["LabeledStatement"] = "LabeledStatement"
    label: Identifier
    body: Statement


class FunctionDeclaration(Node):
    type: Literal["FunctionDeclaration"] = "FunctionDeclaration"
    id: Identifier
    params: list[Pattern] = []
    body: BlockStatement
    type_parameters: list[str] = []


# ── classes ──────────────────────────────────────────────────────


class ClassMethod(Node):
    type: Literal["ClassMethod"] = "ClassMethod"
    kind: str = "method"
    key: Expression
    params: list[Pattern] = []
    body: BlockStatement
    computed: bool = False
    static: bool = False


class ClassProperty(Node):
    type: Literal["ClassProperty"] = "ClassProperty"
    key: Expression
    value: Optional[Expression] = None
    static: bool = False


class ClassBody(Node):
    type: Literal["ClassBody"] = "ClassBody"
    body: list[ClassMember] = []


class ClassDeclaration(Node):
    type: Literal["ClassDeclaration"] = "ClassDeclaration"
    id: Optional[Identifier] = None
    super_class: Optional[Expression] = None
    body: ClassBody = Field(default_factory=ClassBody)
    type_parameters: list[str] = []


# ── module declarations ──────────────────────────────────────────


class ImportMemberSpecifier(Node):
    type: Literal["ImportMemberSpecifier"] = "ImportMemberSpecifier"
    local: Identifier
    imported: Identifier


class ImportDefaultSpecifier(Node):
    type: Literal["ImportDefaultSpecifier"] = "ImportDefaultSpecifier"
    local: Identifier


class ImportNamespaceSpecifier(Node):
    type: Literal["ImportNamespaceSpecifier"] = "ImportNamespaceSpecifier"
    local: Identifier


class ImportDeclaration(Node):
    type: Literal["ImportDeclaration"] = "ImportDeclaration"
    specifiers: list[ImportSpecifier] = []
    source: StringLiteral


class ExportNamedDeclaration(Node):
    type: Literal["ExportNamedDeclaration"] = "ExportNamedDeclaration"
    declaration: Declaration


class PrivateModuleDeclaration(Node):
    type: Literal["PrivateModuleDeclaration"] = "PrivateModuleDeclaration"
    statement: Statement


class Program(Node):
    type: Literal["Program"] = "Program"
    body: list[ModuleDeclaration] = []


# ── closed unions ────────────────────────────────────────────────

EXPRESSION_NODES: tuple[type[Node], ...] = (
    NumericLiteral,
    StringLiteral,
    BooleanLiteral,
    NullLiteral,
    Identifier,
    ThisExpression,
    Super,
    BinaryExpression,
    LogicalExpression,
    UnaryExpression,
    UpdateExpression,
    AssignmentExpression,
    CallExpression,
    NewExpression,
    MemberExpression,
    ArrayExpression,
    ObjectExpression,
    ArrowFunctionExpression,
    FunctionExpression,
    ConditionalExpression,
    SequenceExpression,
    EmitExpression,
)

STATEMENT_NODES: tuple[type[Node], ...] = (
    BlockStatement,
    EmptyStatement,
    ReturnStatement,
    ThrowStatement,
    VariableDeclaration,
    ExpressionStatement,
    IfStatement,
    WhileStatement,
    ForStatement,
    TryStatement,
    SwitchStatement,
    BreakStatement,
    ContinueStatement,
    LabeledStatement,
    FunctionDeclaration,
    ClassDeclaration,
)

MODULE_DECLARATION_NODES: tuple[type[Node], ...] = (
    ImportDeclaration,
    ExportNamedDeclaration,
    PrivateModuleDeclaration,
)

Expression = Annotated[Union[EXPRESSION_NODES], Field(discriminator="type")]
Statement = Annotated[Union[STATEMENT_NODES], Field(discriminator="type")]
Pattern = Annotated[Union[Identifier, RestElement], Field(discriminator="type")]
ObjectMember = Annotated[
    Union[ObjectProperty, ObjectMethod], Field(discriminator="type")
]
ClassMember = Annotated[Union[ClassMethod, ClassProperty], Field(discriminator="type")]
ImportSpecifier = Annotated[
    Union[ImportMemberSpecifier, ImportDefaultSpecifier, ImportNamespaceSpecifier],
    Field(discriminator="type"),
]
Declaration = Annotated[
    Union[VariableDeclaration, FunctionDeclaration, ClassDeclaration],
    Field(discriminator="type"),
]
ModuleDeclaration = Annotated[
    Union[MODULE_DECLARATION_NODES], Field(discriminator="type")
]
ArrowBody = Annotated[
    Union[(BlockStatement, *EXPRESSION_NODES)], Field(discriminator="type")
]
ForInit = Annotated[
    Union[(VariableDeclaration, *EXPRESSION_NODES)], Field(discriminator="type")
]

for _model in (
    *EXPRESSION_NODES,
    *STATEMENT_NODES,
    *MODULE_DECLARATION_NODES,
    RestElement,
    ObjectProperty,
    ObjectMethod,
    VariableDeclarator,
    CatchClause,
    SwitchCase,
    ClassMethod,
    ClassProperty,
    ClassBody,
    ImportMemberSpecifier,
    ImportDefaultSpecifier,
    ImportNamespaceSpecifier,
    Program,
):
    _model.model_rebuild()
