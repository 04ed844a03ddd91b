"""
Constant / side-effect classification of expressions.

The classifier answers one question about an expression found outside a
controlled lifecycle: can it be evaluated eagerly without risk? It looks at
syntax shape only. The checks run in a fixed order and the first match wins;
reordering them changes results.

 1. absent expression                       -> safe
 2. literal (number, string, bool, null,
    undefined, regex)                       -> safe
 3. function / arrow function expression    -> safe (body runs later)
 4. array                                   -> safe iff every element is safe
 5. template string without substitutions   -> safe
 6. type assertion / cast wrapper           -> safe iff the wrapped expression is
 7. member access, identifier               -> safe (aliasing, not invocation)
 8. object                                  -> safe iff every `key: value` value is
 9. known-safe call text (`moment()`)       -> safe
10. `new Date(...)`                         -> safe
11. text matches the configured ignore pattern -> safe
12. literals combined with unary/binary operators -> safe
13. anything else                           -> unsafe

Known-safe calls are matched on source text, not meaning: `const m = moment;
m()` is not recognized.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from treewarden.engine.kinds import LITERAL_KINDS, NodeKind, kind_of
from treewarden.engine.nodes import field, first_member, function_name, function_target, members, node_text

SAFE_CALL_TEXTS: frozenset[str] = frozenset({"moment()"})
SAFE_CONSTRUCTORS: frozenset[str] = frozenset({"Date"})

_SAFE_CALLABLES = frozenset({NodeKind.FUNCTION_EXPRESSION, NodeKind.ARROW_FUNCTION})
_ALIASES = frozenset({NodeKind.MEMBER_ACCESS, NodeKind.IDENTIFIER})


class SideEffectClassifier:
    __slots__ = ("ignore",)

    def __init__(self, ignore: re.Pattern[str] | None = None) -> None:
        self.ignore = ignore

    def is_safe(self, expr: Any, source: bytes) -> bool:
        return next(self.unsafe_parts(expr, source), None) is None

    def unsafe_parts(self, expr: Any, source: bytes) -> Iterator[Any]:
        """
        Yield the sub-expressions of `expr` that make it unsafe, in source order.

        Arrays, objects and cast wrappers are expanded with an explicit stack,
        so nesting depth is bounded by memory rather than the recursion limit.
        """

        stack: list[Any] = [expr]
        while stack:
            node = stack.pop()
            verdict = self._classify(node, source)
            if verdict is True:
                continue
            if verdict is False:
                yield node
                continue
            stack.extend(reversed(verdict))

    def _classify(self, node: Any, source: bytes) -> bool | list[Any]:
        if node is None:
            return True

        kind = kind_of(node)
        if kind in LITERAL_KINDS:
            return True
        if kind in _SAFE_CALLABLES:
            return True
        if kind is NodeKind.ARRAY:
            return members(node)
        if kind is NodeKind.TEMPLATE_STRING and not _has_substitution(node):
            return True
        if kind is NodeKind.TYPE_ASSERTION:
            # `<T>expr`: the type arguments come first.
            inner = members(node)
            return [inner[-1]] if inner else True
        if kind is NodeKind.TYPE_CAST:
            return [first_member(node)]
        if kind in _ALIASES:
            return True
        if kind is NodeKind.OBJECT:
            return [field(p, "value") for p in members(node) if kind_of(p) is NodeKind.PAIR]

        text = node_text(node, source)
        if text in SAFE_CALL_TEXTS:
            return True
        if kind is NodeKind.CALL_EXPRESSION and function_target(node, source) in SAFE_CALL_TEXTS:
            return True
        if kind is NodeKind.NEW_EXPRESSION and function_name(node, source) in SAFE_CONSTRUCTORS:
            return True
        if self.ignore is not None and self.ignore.search(text):
            return True

        return is_constant_expression(node)


def is_constant_expression(node: Any) -> bool:
    """True for literals and unary/binary/parenthesized combinations of literals."""

    stack: list[Any] = [node]
    while stack:
        current = stack.pop()
        kind = kind_of(current)
        if kind in LITERAL_KINDS:
            continue
        if kind is NodeKind.BINARY_EXPRESSION:
            operands = [field(current, "left"), field(current, "right")]
        elif kind is NodeKind.UNARY_EXPRESSION:
            operands = [field(current, "argument")]
        elif kind is NodeKind.PARENTHESIZED:
            operands = [first_member(current)]
        else:
            return False
        if any(op is None for op in operands):
            return False
        stack.extend(operands)
    return True


def _has_substitution(node: Any) -> bool:
    return any(kind_of(c) is NodeKind.TEMPLATE_SUBSTITUTION for c in members(node))
