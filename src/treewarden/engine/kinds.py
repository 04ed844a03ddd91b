"""
Node kind registry.

tree-sitter grammars name their node types freely and rename them between
releases (tree-sitter-javascript 0.21 turned `function` into
`function_expression`, for example). Rules never compare raw type strings;
they dispatch on `NodeKind`, and this module is the only place that knows the
grammar spelling.

Unrecognized type names map to `NodeKind.UNKNOWN`, which the walker traverses
generically.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class NodeKind(StrEnum):
    PROGRAM = "program"
    EXPRESSION_STATEMENT = "expression_statement"
    VARIABLE_STATEMENT = "variable_statement"
    VARIABLE_DECLARATOR = "variable_declarator"
    STATEMENT_BLOCK = "statement_block"
    EXPORT_STATEMENT = "export_statement"

    CALL_EXPRESSION = "call_expression"
    NEW_EXPRESSION = "new_expression"
    ARGUMENTS = "arguments"
    MEMBER_ACCESS = "member_access"
    IDENTIFIER = "identifier"

    NUMBER = "number"
    STRING = "string"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    UNDEFINED = "undefined"
    REGEX = "regex"
    TEMPLATE_STRING = "template_string"
    TEMPLATE_SUBSTITUTION = "template_substitution"

    FUNCTION_EXPRESSION = "function_expression"
    ARROW_FUNCTION = "arrow_function"
    FUNCTION_DECLARATION = "function_declaration"

    CLASS_DECLARATION = "class_declaration"
    CLASS_EXPRESSION = "class_expression"
    CLASS_HERITAGE = "class_heritage"
    EXTENDS_CLAUSE = "extends_clause"
    CLASS_BODY = "class_body"
    METHOD_DEFINITION = "method_definition"
    FIELD_DEFINITION = "field_definition"
    STATIC_BLOCK = "static_block"
    DECORATOR = "decorator"

    ARRAY = "array"
    OBJECT = "object"
    PAIR = "pair"
    SPREAD_ELEMENT = "spread_element"

    TYPE_ASSERTION = "type_assertion"  # <T>expr
    TYPE_CAST = "type_cast"  # expr as T, expr satisfies T, expr!
    PARENTHESIZED = "parenthesized"
    BINARY_EXPRESSION = "binary_expression"
    UNARY_EXPRESSION = "unary_expression"

    COMMENT = "comment"
    UNKNOWN = "unknown"


_ALIASES: dict[str, NodeKind] = {
    "program": NodeKind.PROGRAM,
    "expression_statement": NodeKind.EXPRESSION_STATEMENT,
    "lexical_declaration": NodeKind.VARIABLE_STATEMENT,
    "variable_declaration": NodeKind.VARIABLE_STATEMENT,
    "variable_declarator": NodeKind.VARIABLE_DECLARATOR,
    "statement_block": NodeKind.STATEMENT_BLOCK,
    "export_statement": NodeKind.EXPORT_STATEMENT,
    "call_expression": NodeKind.CALL_EXPRESSION,
    "new_expression": NodeKind.NEW_EXPRESSION,
    "arguments": NodeKind.ARGUMENTS,
    "member_expression": NodeKind.MEMBER_ACCESS,
    "identifier": NodeKind.IDENTIFIER,
    "number": NodeKind.NUMBER,
    "string": NodeKind.STRING,
    "true": NodeKind.TRUE,
    "false": NodeKind.FALSE,
    "null": NodeKind.NULL,
    "undefined": NodeKind.UNDEFINED,
    "regex": NodeKind.REGEX,
    "template_string": NodeKind.TEMPLATE_STRING,
    "template_substitution": NodeKind.TEMPLATE_SUBSTITUTION,
    # Grammars before 0.21 call function expressions `function`.
    "function": NodeKind.FUNCTION_EXPRESSION,
    "function_expression": NodeKind.FUNCTION_EXPRESSION,
    "generator_function": NodeKind.FUNCTION_EXPRESSION,
    "arrow_function": NodeKind.ARROW_FUNCTION,
    "function_declaration": NodeKind.FUNCTION_DECLARATION,
    "generator_function_declaration": NodeKind.FUNCTION_DECLARATION,
    "class_declaration": NodeKind.CLASS_DECLARATION,
    "abstract_class_declaration": NodeKind.CLASS_DECLARATION,
    "class": NodeKind.CLASS_EXPRESSION,
    "class_heritage": NodeKind.CLASS_HERITAGE,
    "extends_clause": NodeKind.EXTENDS_CLAUSE,
    "class_body": NodeKind.CLASS_BODY,
    "method_definition": NodeKind.METHOD_DEFINITION,
    "method_signature": NodeKind.METHOD_DEFINITION,
    "abstract_method_signature": NodeKind.METHOD_DEFINITION,
    "field_definition": NodeKind.FIELD_DEFINITION,
    "public_field_definition": NodeKind.FIELD_DEFINITION,
    "class_static_block": NodeKind.STATIC_BLOCK,
    "decorator": NodeKind.DECORATOR,
    "array": NodeKind.ARRAY,
    "object": NodeKind.OBJECT,
    "pair": NodeKind.PAIR,
    "spread_element": NodeKind.SPREAD_ELEMENT,
    "type_assertion": NodeKind.TYPE_ASSERTION,
    "as_expression": NodeKind.TYPE_CAST,
    "satisfies_expression": NodeKind.TYPE_CAST,
    "non_null_expression": NodeKind.TYPE_CAST,
    "parenthesized_expression": NodeKind.PARENTHESIZED,
    "binary_expression": NodeKind.BINARY_EXPRESSION,
    "unary_expression": NodeKind.UNARY_EXPRESSION,
    "comment": NodeKind.COMMENT,
}

KIND_ALIASES: Mapping[str, NodeKind] = MappingProxyType(_ALIASES)

# Declarations that open a fresh named scope. Generic traversal stops here
# unless a rule opts in.
SCOPE_BOUNDARIES: frozenset[NodeKind] = frozenset(
    {
        NodeKind.FUNCTION_DECLARATION,
        NodeKind.CLASS_DECLARATION,
    }
)

LITERAL_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.NUMBER,
        NodeKind.STRING,
        NodeKind.TRUE,
        NodeKind.FALSE,
        NodeKind.NULL,
        NodeKind.UNDEFINED,
        NodeKind.REGEX,
    }
)


def kind_for_type(type_name: str | None) -> NodeKind:
    if not type_name:
        return NodeKind.UNKNOWN
    return _ALIASES.get(type_name, NodeKind.UNKNOWN)


def kind_of(node: Any) -> NodeKind:
    """Return the `NodeKind` of a front-end node (UNKNOWN for None or unmapped types)."""

    if node is None:
        return NodeKind.UNKNOWN
    return kind_for_type(getattr(node, "type", None))
