"""JavaScript reader: tree-sitter JavaScript CST to source IR."""

from __future__ import annotations

import ast
import logging
from typing import Callable, Optional

from tree_sitter import Node, Tree

from . import source_ir as src
from .diagnostics import Diagnostics

logger = logging.getLogger(__name__)


class JavaScriptFrontend:
    """Reads a tree-sitter JavaScript parse tree into a source IR ``Program``.

    Only the subset of JavaScript that has a source IR counterpart is
    accepted; any other node kind is reported through ``Diagnostics.error``.
    """

    COMMENT_TYPES = frozenset({"comment", "hash_bang_line"})
    DECLARATION_TYPES = frozenset(
        {
            "lexical_declaration",
            "variable_declaration",
            "function_declaration",
            "class_declaration",
        }
    )

    def __init__(self, diagnostics: Optional[Diagnostics] = None):
        self.diagnostics = diagnostics or Diagnostics()
        self._source: bytes = b""
        self._STMT_DISPATCH: dict[str, Callable] = {
            "expression_statement": self._read_expression_statement,
            "lexical_declaration": self._read_var_declaration,
            "variable_declaration": self._read_var_declaration,
            "return_statement": self._read_return,
            "throw_statement": self._read_throw,
            "if_statement": self._read_if,
            "while_statement": self._read_while,
            "for_statement": self._read_for,
            "try_statement": self._read_try,
            "switch_statement": self._read_switch,
            "break_statement": self._read_break,
            "continue_statement": self._read_continue,
            "labeled_statement": self._read_labeled,
            "statement_block": self._read_block,
            "empty_statement": self._read_empty,
            "function_declaration": self._read_function_declaration,
            "class_declaration": self._read_class_declaration,
        }
        self._EXPR_DISPATCH: dict[str, Callable] = {
            "identifier": self._read_identifier,
            "shorthand_property_identifier": self._read_identifier,
            "undefined": self._read_null,
            "null": self._read_null,
            "true": self._read_boolean,
            "false": self._read_boolean,
            "number": self._read_number,
            "string": self._read_string,
            "template_string": self._read_template_string,
            "this": self._read_this,
            "super": self._read_super,
            "parenthesized_expression": self._read_parenthesized,
            "binary_expression": self._read_binary,
            "unary_expression": self._read_unary,
            "update_expression": self._read_update,
            "assignment_expression": self._read_assignment,
            "augmented_assignment_expression": self._read_assignment,
            "call_expression": self._read_call,
            "new_expression": self._read_new,
            "member_expression": self._read_member,
            "subscript_expression": self._read_subscript,
            "array": self._read_array,
            "object": self._read_object,
            "arrow_function": self._read_arrow_function,
            "function_expression": self._read_function_expression,
            "function": self._read_function_expression,
            "ternary_expression": self._read_ternary,
            "sequence_expression": self._read_sequence,
        }

    # ── helpers ──────────────────────────────────────────────────

    def _node_text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _loc(self, node: Node) -> src.SourceLocation:
        s, e = node.start_point, node.end_point
        return src.SourceLocation(
            start_line=s[0] + 1,
            start_col=s[1],
            end_line=e[0] + 1,
            end_col=e[1],
        )

    def _unsupported(self, node, what: str = "syntax"):
        self.diagnostics.error(f"Unsupported {what}: {node.type}", self._loc(node))

    def _named_children(self, node) -> list:
        return [
            c for c in node.children if c.is_named and c.type not in self.COMMENT_TYPES
        ]

    def _has_keyword(self, node, keyword: str) -> bool:
        return any(not c.is_named and c.type == keyword for c in node.children)

    # ── entry point ──────────────────────────────────────────────

    def lower(self, tree: Tree, source: bytes) -> src.Program:
        self._source = source
        root = tree.root_node
        body = [self._read_module_item(child) for child in self._named_children(root)]
        logger.info("Read %d module declarations", len(body))
        return src.Program(body=body, loc=self._loc(root))

    def _read_module_item(self, node):
        if node.type == "import_statement":
            return self._read_import(node)
        if node.type == "export_statement":
            return self._read_export(node)
        return src.PrivateModuleDeclaration(
            statement=self._read_stmt(node), loc=self._loc(node)
        )

    def _read_import(self, node) -> src.ImportDeclaration:
        source_node = node.child_by_field_name("source")
        specifiers: list = []
        clause = next((c for c in node.children if c.type == "import_clause"), None)
        for part in self._named_children(clause) if clause else []:
            if part.type == "identifier":
                specifiers.append(
                    src.ImportDefaultSpecifier(
                        local=self._read_identifier(part), loc=self._loc(part)
                    )
                )
            elif part.type == "namespace_import":
                local = next(c for c in part.children if c.type == "identifier")
                specifiers.append(
                    src.ImportNamespaceSpecifier(
                        local=self._read_identifier(local), loc=self._loc(part)
                    )
                )
            elif part.type == "named_imports":
                for spec in self._named_children(part):
                    name_node = spec.child_by_field_name("name")
                    alias_node = spec.child_by_field_name("alias") or name_node
                    specifiers.append(
                        src.ImportMemberSpecifier(
                            imported=src.Identifier(
                                name=self._module_export_name(name_node),
                                loc=self._loc(name_node),
                            ),
                            local=self._read_identifier(alias_node),
                            loc=self._loc(spec),
                        )
                    )
            else:
                self._unsupported(part, "import clause")
        return src.ImportDeclaration(
            specifiers=specifiers,
            source=self._read_string(source_node),
            loc=self._loc(node),
        )

    def _module_export_name(self, node) -> str:
        if node.type == "string":
            return self._read_string(node).value
        return self._node_text(node)

    def _read_export(self, node) -> src.ExportNamedDeclaration:
        declaration = node.child_by_field_name("declaration")
        if declaration is None or declaration.type not in self.DECLARATION_TYPES:
            self._unsupported(node, "export form")
        return src.ExportNamedDeclaration(
            declaration=self._read_stmt(declaration), loc=self._loc(node)
        )

    # ── statements ───────────────────────────────────────────────

    def _read_stmt(self, node):
        handler = self._STMT_DISPATCH.get(node.type)
        if handler is None:
            self._unsupported(node, "statement")
        return handler(node)

    def _read_statements(self, node) -> list:
        return [self._read_stmt(child) for child in self._named_children(node)]

    def _read_block(self, node) -> src.BlockStatement:
        return src.BlockStatement(body=self._read_statements(node), loc=self._loc(node))

    def _read_empty(self, node) -> src.EmptyStatement:
        return src.EmptyStatement(loc=self._loc(node))

    def _read_expression_statement(self, node) -> src.ExpressionStatement:
        (expr,) = self._named_children(node)
        return src.ExpressionStatement(
            expression=self._read_expr(expr), loc=self._loc(node)
        )

    def _read_var_declaration(self, node) -> src.VariableDeclaration:
        kind = node.children[0].type
        declarations = []
        for child in node.children:
            if child.type != "variable_declarator":
                continue
            name_node = child.child_by_field_name("name")
            value_node = child.child_by_field_name("value")
            if name_node.type != "identifier":
                self._unsupported(name_node, "destructuring pattern")
            declarations.append(
                src.VariableDeclarator(
                    id=self._read_identifier(name_node),
                    init=self._read_expr(value_node) if value_node else None,
                    loc=self._loc(child),
                )
            )
        return src.VariableDeclaration(
            kind=kind, declarations=declarations, loc=self._loc(node)
        )

    def _read_return(self, node) -> src.ReturnStatement:
        values = self._named_children(node)
        argument = self._read_expr(values[0]) if values else None
        return src.ReturnStatement(argument=argument, loc=self._loc(node))

    def _read_throw(self, node) -> src.ThrowStatement:
        (value,) = self._named_children(node)
        return src.ThrowStatement(argument=self._read_expr(value), loc=self._loc(node))

    def _read_if(self, node) -> src.IfStatement:
        alternative = node.child_by_field_name("alternative")
        alternate = None
        if alternative is not None:
            (else_body,) = self._named_children(alternative)
            alternate = self._read_stmt(else_body)
        return src.IfStatement(
            test=self._read_expr(node.child_by_field_name("condition")),
            consequent=self._read_stmt(node.child_by_field_name("consequence")),
            alternate=alternate,
            loc=self._loc(node),
        )

    def _read_while(self, node) -> src.WhileStatement:
        return src.WhileStatement(
            test=self._read_expr(node.child_by_field_name("condition")),
            body=self._read_stmt(node.child_by_field_name("body")),
            loc=self._loc(node),
        )

    def _for_clause(self, node):
        """Expression of a for-loop clause, unwrapping statement wrappers."""
        if node is None or not node.is_named or node.type == "empty_statement":
            return None
        if node.type == "expression_statement":
            (node,) = self._named_children(node)
        return self._read_expr(node)

    def _read_for(self, node) -> src.ForStatement:
        init_node = node.child_by_field_name("initializer")
        if init_node is not None and init_node.type in (
            "lexical_declaration",
            "variable_declaration",
        ):
            init = self._read_var_declaration(init_node)
        else:
            init = self._for_clause(init_node)
        update_node = node.child_by_field_name("increment") or node.child_by_field_name(
            "update"
        )
        return src.ForStatement(
            init=init,
            test=self._for_clause(node.child_by_field_name("condition")),
            update=self._for_clause(update_node),
            body=self._read_stmt(node.child_by_field_name("body")),
            loc=self._loc(node),
        )

    def _read_try(self, node) -> src.TryStatement:
        handler_node = node.child_by_field_name("handler")
        finalizer_node = node.child_by_field_name("finalizer")
        handler = None
        if handler_node is not None:
            param_node = handler_node.child_by_field_name("parameter")
            if param_node is not None and param_node.type != "identifier":
                self._unsupported(param_node, "catch pattern")
            handler = src.CatchClause(
                param=self._read_identifier(param_node) if param_node else None,
                body=self._read_block(handler_node.child_by_field_name("body")),
                loc=self._loc(handler_node),
            )
        finalizer = None
        if finalizer_node is not None:
            finalizer = self._read_block(finalizer_node.child_by_field_name("body"))
        return src.TryStatement(
            block=self._read_block(node.child_by_field_name("body")),
            handler=handler,
            finalizer=finalizer,
            loc=self._loc(node),
        )

    def _read_switch(self, node) -> src.SwitchStatement:
        cases = []
        for case_node in self._named_children(node.child_by_field_name("body")):
            value_node = case_node.child_by_field_name("value")
            statements = [
                self._read_stmt(child)
                for child in self._named_children(case_node)
                if value_node is None or child.id != value_node.id
            ]
            cases.append(
                src.SwitchCase(
                    test=self._read_expr(value_node) if value_node else None,
                    consequent=statements,
                    loc=self._loc(case_node),
                )
            )
        return src.SwitchStatement(
            discriminant=self._read_expr(node.child_by_field_name("value")),
            cases=cases,
            loc=self._loc(node),
        )

    def _label(self, node) -> Optional[src.Identifier]:
        label_node = node.child_by_field_name("label")
        if label_node is None:
            return None
        return src.Identifier(name=self._node_text(label_node), loc=self._loc(label_node))

    def _read_break(self, node) -> src.BreakStatement:
        return src.BreakStatement(label=self._label(node), loc=self._loc(node))

    def _read_continue(self, node) -> src.ContinueStatement:
        return src.ContinueStatement(label=self._label(node), loc=self._loc(node))

    def _read_labeled(self, node) -> src.LabeledStatement:
        return src.LabeledStatement(
            label=self._label(node),
            body=self._read_stmt(node.child_by_field_name("body")),
            loc=self._loc(node),
        )

    # ── functions and classes ────────────────────────────────────

    def _read_params(self, node) -> list:
        if node is None:
            return []
        if node.type == "identifier":
            return [self._read_identifier(node)]
        params: list = []
        for child in self._named_children(node):
            if child.type == "identifier":
                params.append(self._read_identifier(child))
            elif child.type == "rest_pattern":
                (argument,) = self._named_children(child)
                if argument.type != "identifier":
                    self._unsupported(argument, "rest pattern")
                params.append(
                    src.RestElement(
                        argument=self._read_identifier(argument), loc=self._loc(child)
                    )
                )
            else:
                self._unsupported(child, "parameter pattern")
        return params

    def _reject_async(self, node):
        if self._has_keyword(node, "async"):
            self._unsupported(node, "async function")

    def _read_function_declaration(self, node) -> src.FunctionDeclaration:
        self._reject_async(node)
        return src.FunctionDeclaration(
            id=self._read_identifier(node.child_by_field_name("name")),
            params=self._read_params(node.child_by_field_name("parameters")),
            body=self._read_block(node.child_by_field_name("body")),
            loc=self._loc(node),
        )

    def _read_method(self, node) -> src.ClassMethod:
        self._reject_async(node)
        name_node = node.child_by_field_name("name")
        key, computed = self._read_property_key(name_node)
        kind = "method"
        if self._has_keyword(node, "get"):
            kind = "get"
        elif self._has_keyword(node, "set"):
            kind = "set"
        elif isinstance(key, src.Identifier) and key.name == "constructor":
            kind = "constructor"
        return src.ClassMethod(
            kind=kind,
            key=key,
            params=self._read_params(node.child_by_field_name("parameters")),
            body=self._read_block(node.child_by_field_name("body")),
            computed=computed,
            static=self._has_keyword(node, "static"),
            loc=self._loc(node),
        )

    def _read_class_member(self, node):
        if node.type == "method_definition":
            return self._read_method(node)
        if node.type == "field_definition":
            key, _ = self._read_property_key(node.child_by_field_name("property"))
            value_node = node.child_by_field_name("value")
            return src.ClassProperty(
                key=key,
                value=self._read_expr(value_node) if value_node else None,
                static=self._has_keyword(node, "static"),
                loc=self._loc(node),
            )
        self._unsupported(node, "class member")

    def _read_class_declaration(self, node) -> src.ClassDeclaration:
        name_node = node.child_by_field_name("name")
        heritage = next((c for c in node.children if c.type == "class_heritage"), None)
        super_class = None
        if heritage is not None:
            (base,) = self._named_children(heritage)
            super_class = self._read_expr(base)
        body_node = node.child_by_field_name("body")
        members = [self._read_class_member(c) for c in self._named_children(body_node)]
        return src.ClassDeclaration(
            id=self._read_identifier(name_node) if name_node else None,
            super_class=super_class,
            body=src.ClassBody(body=members, loc=self._loc(body_node)),
            loc=self._loc(node),
        )

    # ── expressions ──────────────────────────────────────────────

    def _read_expr(self, node):
        handler = self._EXPR_DISPATCH.get(node.type)
        if handler is None:
            self._unsupported(node, "expression")
        return handler(node)

    def _read_identifier(self, node) -> src.Identifier:
        return src.Identifier(name=self._node_text(node), loc=self._loc(node))

    def _read_null(self, node) -> src.NullLiteral:
        return src.NullLiteral(loc=self._loc(node))

    def _read_boolean(self, node) -> src.BooleanLiteral:
        return src.BooleanLiteral(value=node.type == "true", loc=self._loc(node))

    def _read_number(self, node) -> src.NumericLiteral:
        text = self._node_text(node).replace("_", "")
        if text.endswith("n"):
            self._unsupported(node, "BigInt literal")
        try:
            value: int | float = int(text, 0)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                self._unsupported(node, "numeric literal")
        return src.NumericLiteral(value=value, loc=self._loc(node))

    def _read_string(self, node) -> src.StringLiteral:
        text = self._node_text(node)
        try:
            value = ast.literal_eval(text)
        except (ValueError, SyntaxError):
            value = "".join(
                self._node_text(c) for c in node.children if c.type == "string_fragment"
            )
        return src.StringLiteral(value=value, loc=self._loc(node))

    def _read_template_string(self, node) -> src.StringLiteral:
        if any(c.type == "template_substitution" for c in node.children):
            self._unsupported(node, "template substitution")
        return src.StringLiteral(value=self._node_text(node)[1:-1], loc=self._loc(node))

    def _read_this(self, node) -> src.ThisExpression:
        return src.ThisExpression(loc=self._loc(node))

    def _read_super(self, node) -> src.Super:
        return src.Super(loc=self._loc(node))

    def _read_parenthesized(self, node):
        (inner,) = self._named_children(node)
        return self._read_expr(inner)

    def _read_binary(self, node):
        operator = self._node_text(node.child_by_field_name("operator"))
        left = self._read_expr(node.child_by_field_name("left"))
        right = self._read_expr(node.child_by_field_name("right"))
        if operator in ("&&", "||"):
            return src.LogicalExpression(
                operator=operator, left=left, right=right, loc=self._loc(node)
            )
        return src.BinaryExpression(
            operator=operator, left=left, right=right, loc=self._loc(node)
        )

    def _read_unary(self, node) -> src.UnaryExpression:
        return src.UnaryExpression(
            operator=self._node_text(node.child_by_field_name("operator")),
            argument=self._read_expr(node.child_by_field_name("argument")),
            loc=self._loc(node),
        )

    def _read_update(self, node) -> src.UpdateExpression:
        operator_node = node.child_by_field_name("operator")
        return src.UpdateExpression(
            operator=self._node_text(operator_node),
            argument=self._read_expr(node.child_by_field_name("argument")),
            prefix=node.children[0].id == operator_node.id,
            loc=self._loc(node),
        )

    def _read_assignment(self, node) -> src.AssignmentExpression:
        operator_node = node.child_by_field_name("operator")
        left = node.child_by_field_name("left")
        if left.type == "parenthesized_expression":
            (left,) = self._named_children(left)
        return src.AssignmentExpression(
            operator=self._node_text(operator_node) if operator_node else "=",
            left=self._read_expr(left),
            right=self._read_expr(node.child_by_field_name("right")),
            loc=self._loc(node),
        )

    def _read_arguments(self, node) -> list:
        if node is None:
            return []
        args = []
        for child in self._named_children(node):
            if child.type == "spread_element":
                self._unsupported(child, "spread argument")
            args.append(self._read_expr(child))
        return args

    def _read_call(self, node) -> src.CallExpression:
        if node.child_by_field_name("optional_chain") is not None:
            self._unsupported(node, "optional call")
        arguments = node.child_by_field_name("arguments")
        if arguments.type == "template_string":
            self._unsupported(arguments, "tagged template")
        return src.CallExpression(
            callee=self._read_expr(node.child_by_field_name("function")),
            arguments=self._read_arguments(arguments),
            loc=self._loc(node),
        )

    def _read_new(self, node) -> src.NewExpression:
        return src.NewExpression(
            callee=self._read_expr(node.child_by_field_name("constructor")),
            arguments=self._read_arguments(node.child_by_field_name("arguments")),
            loc=self._loc(node),
        )

    def _read_member(self, node) -> src.MemberExpression:
        if node.child_by_field_name("optional_chain") is not None:
            self._unsupported(node, "optional member access")
        prop = node.child_by_field_name("property")
        return src.MemberExpression(
            object=self._read_expr(node.child_by_field_name("object")),
            property=src.Identifier(name=self._node_text(prop), loc=self._loc(prop)),
            computed=False,
            loc=self._loc(node),
        )

    def _read_subscript(self, node) -> src.MemberExpression:
        return src.MemberExpression(
            object=self._read_expr(node.child_by_field_name("object")),
            property=self._read_expr(node.child_by_field_name("index")),
            computed=True,
            loc=self._loc(node),
        )

    def _read_array(self, node) -> src.ArrayExpression:
        return src.ArrayExpression(
            elements=self._read_arguments(node), loc=self._loc(node)
        )

    def _read_property_key(self, node):
        """Returns ``(key, computed)`` for an object or class member name."""
        if node.type == "computed_property_name":
            (inner,) = self._named_children(node)
            return self._read_expr(inner), True
        if node.type == "string":
            return self._read_string(node), False
        if node.type == "number":
            return self._read_number(node), False
        if node.type == "private_property_identifier":
            self._unsupported(node, "private member")
        return src.Identifier(name=self._node_text(node), loc=self._loc(node)), False

    def _read_object(self, node) -> src.ObjectExpression:
        properties: list = []
        for child in self._named_children(node):
            if child.type == "pair":
                key, computed = self._read_property_key(child.child_by_field_name("key"))
                properties.append(
                    src.ObjectProperty(
                        key=key,
                        value=self._read_expr(child.child_by_field_name("value")),
                        computed=computed,
                        loc=self._loc(child),
                    )
                )
            elif child.type == "shorthand_property_identifier":
                properties.append(
                    src.ObjectProperty(
                        key=self._read_identifier(child),
                        value=self._read_identifier(child),
                        loc=self._loc(child),
                    )
                )
            elif child.type == "method_definition":
                method = self._read_method(child)
                if method.kind != "method":
                    self._unsupported(child, "object accessor")
                properties.append(
                    src.ObjectMethod(
                        key=method.key,
                        params=method.params,
                        body=method.body,
                        computed=method.computed,
                        loc=method.loc,
                    )
                )
            else:
                self._unsupported(child, "object member")
        return src.ObjectExpression(properties=properties, loc=self._loc(node))

    def _read_arrow_function(self, node) -> src.ArrowFunctionExpression:
        self._reject_async(node)
        params_node = node.child_by_field_name("parameters") or node.child_by_field_name(
            "parameter"
        )
        body_node = node.child_by_field_name("body")
        if body_node.type == "statement_block":
            body = self._read_block(body_node)
        else:
            body = self._read_expr(body_node)
        return src.ArrowFunctionExpression(
            params=self._read_params(params_node), body=body, loc=self._loc(node)
        )

    def _read_function_expression(self, node) -> src.FunctionExpression:
        self._reject_async(node)
        name_node = node.child_by_field_name("name")
        return src.FunctionExpression(
            id=self._read_identifier(name_node) if name_node else None,
            params=self._read_params(node.child_by_field_name("parameters")),
            body=self._read_block(node.child_by_field_name("body")),
            loc=self._loc(node),
        )

    def _read_ternary(self, node) -> src.ConditionalExpression:
        return src.ConditionalExpression(
            test=self._read_expr(node.child_by_field_name("condition")),
            consequent=self._read_expr(node.child_by_field_name("consequence")),
            alternate=self._read_expr(node.child_by_field_name("alternative")),
            loc=self._loc(node),
        )

    def _sequence_items(self, node) -> list:
        items = []
        for child in self._named_children(node):
            if child.type == "sequence_expression":
                items.extend(self._sequence_items(child))
            else:
                items.append(self._read_expr(child))
        return items

    def _read_sequence(self, node) -> src.SequenceExpression:
        return src.SequenceExpression(
            expressions=self._sequence_items(node), loc=self._loc(node)
        )
