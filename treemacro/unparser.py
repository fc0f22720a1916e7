# -*- coding: utf-8; -*-
"""Render a node tree as one line of pseudocode. For error messages and debug output.

The output is a debugging aid, not a parseable format::

    unless(false, do_block("entered"))
    case(!(x@3), ->(true, $body), ->(false, nil))

Hygienic names render as `name@tag`, placeholders as `$target`, and
markers as `$MarkerClass<fields>(body)`.
"""

__all__ = ["unparse", "unparse_value", "unparse_operator", "unparse_marker_head"]

import json

from . import markers
from .colorizer import ColorScheme, maybe_colorize
from .nodes import Atom, BindingName, Call, Literal, Node, PendingScope, Placeholder


def unparse_value(value, *, color=False):
    """Render the value of a `Literal`."""
    def c(text, *colors):
        return maybe_colorize(text, *colors, color=color)
    T = type(value)
    if T is bool:
        return c("true" if value else "false", ColorScheme.ATOM)
    elif T in (int, float):
        return c(repr(value), ColorScheme.NUMBER)
    elif T is str:
        return c(json.dumps(value, ensure_ascii=False), ColorScheme.STRING)
    elif T is Atom:
        text = "nil" if value.name == "nil" else f":{value.name}"
        return c(text, ColorScheme.ATOM)
    elif T is tuple:
        first, second = value
        return f"{{{unparse_value(first, color=color)}, {unparse_value(second, color=color)}}}"
    raise TypeError(f"not a literal value: {type(value)} with value {repr(value)}")


def unparse_operator(op, *, color=False, registry=None):
    """Render a `str` operator symbol, highlighted according to `registry` (if given)."""
    if not color:
        return op
    opcolor = ColorScheme.OPERATOR
    if registry is not None:
        if registry.ismacro(op):
            opcolor = ColorScheme.MACRONAME
        elif registry.isterminal(op):
            opcolor = ColorScheme.TERMINAL
    return maybe_colorize(op, opcolor)


def unparse_marker_head(tree, *, color=False):
    """Render a marker without its body: `$MarkerClass<fields>`."""
    extras = ", ".join(f"{k}={getattr(tree, k)!r}" for k in tree._fields if k != "body")
    head = (maybe_colorize("$", ColorScheme.NODEMARKER, color=color) +
            maybe_colorize(type(tree).__name__, ColorScheme.NODEMARKERCLASS, color=color))
    if extras:
        head += f"<{extras}>"
    return head


def unparse(tree, *, color=False, registry=None):
    """Render `tree` as a one-line string.

    If `color=True`, colorize the output for printing into a terminal.

    If a `registry` is given, macro names and terminal primitives are
    highlighted differently from other operators.
    """
    def c(text, *colors):
        return maybe_colorize(text, *colors, color=color)

    def recurse(tree):
        T = type(tree)
        if T is Literal:
            return unparse_value(tree.value, color=color)
        elif T is Call:
            if isinstance(tree.op, Node):
                head = f"({recurse(tree.op)})"
            else:
                head = unparse_operator(tree.op, color=color, registry=registry)
            args = ", ".join(recurse(arg) for arg in tree.args)
            return f"{head}({args})"
        elif T is BindingName:
            text = c(tree.name, ColorScheme.BINDINGNAME)
            if tree.scope is None:
                return text
            tag = tree.scope.kind if isinstance(tree.scope, PendingScope) else str(tree.scope)
            return text + c(f"@{tag}", ColorScheme.HYGIENETAG)
        elif T is Placeholder:
            return c(f"${tree.target}", ColorScheme.PLACEHOLDER)
        elif isinstance(tree, markers.NodeMarker):
            head = unparse_marker_head(tree, color=color)
            if tree.body is None:
                return head
            return f"{head}({recurse(tree.body)})"
        raise TypeError(f"expected a Node, got {type(tree)} with value {repr(tree)}")

    return recurse(tree)
