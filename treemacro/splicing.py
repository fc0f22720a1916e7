# -*- coding: utf-8; -*-
"""Unquote substitution: fill in the placeholders of a quoted template."""

__all__ = ["substitute", "splice", "get_placeholders"]

from .core import UnresolvedPlaceholder
from .nodes import Placeholder, aslit, isliteralvalue, isnode
from .walkers import NodeTransformer, NodeVisitor


def substitute(tree, mapping):
    """Replace each `Placeholder` in `tree` with its value from `mapping`.

    `tree`: a quoted tree, as produced by `treemacro.quotes.quote`.
    `mapping`: target identifier -> node or literal value. Literal values
               are auto-wrapped as `Literal` nodes (and `None` as `nil`).
               Entries not referenced by `tree` are ignored.

    The substitution is deep (it reaches into nested call arguments and
    operators), and a single pass: a substituted-in node is not scanned again,
    so a value may itself contain placeholders without any risk of unbounded
    self-referential substitution.

    If a placeholder's target is missing from `mapping`, raise `UnresolvedPlaceholder`.
    That is always a bug in the macro definition, so it is never silently skipped.

    Returns the new tree; `tree` itself is not modified.
    """
    values = {}
    for target, value in mapping.items():
        if not (isnode(value) or value is None or isliteralvalue(value)):
            raise TypeError(f"substitution value for '{target}' must be a Node or a literal value, got {type(value)} with value {repr(value)}")
        values[target] = aslit(value)

    class Substitutor(NodeTransformer):
        def transform(self, tree):
            if type(tree) is Placeholder:
                try:
                    # No `self.visit` here; single pass.
                    return self.collect(values[tree.target])
                except KeyError:
                    available = sorted(values)
                    raise UnresolvedPlaceholder(f"no value for placeholder '${tree.target}'; available targets: {available}",
                                                target=tree.target, available=available) from None
            return self.generic_visit(tree)
    return Substitutor().visit(tree)


def splice(template, **mapping):
    """Shorthand: `splice(template, x=..., y=...)` is `substitute(template, {"x": ..., "y": ...})`."""
    return substitute(template, mapping)


def get_placeholders(tree):
    """Return a `list` of the `Placeholder` nodes in `tree`, in scan order."""
    class PlaceholderCollector(NodeVisitor):
        def examine(self, tree):
            if type(tree) is Placeholder:
                self.collect(tree)
            self.generic_visit(tree)
    w = PlaceholderCollector()
    w.visit(tree)
    return w.collected
