# -*- coding: utf-8; -*-
"""Hygiene: keep names introduced by a macro apart from names at its use site.

This is an explicit tagging pass. `quote` tags every `BindingName` that is
literal text of a template as `TEMPLATE` (or as `CALLER`, if the macro opted
out of hygiene for that name). Names that arrive through a placeholder keep
the scope they already had. When the expander splices a macro's output into
the tree, `sanitize` gives the `TEMPLATE` names a fresh tag unique to that
expansion, and the `CALLER` names the scope of the macro call site.

So a `meaning_to_life` introduced inside a macro is a different binding than
a `meaning_to_life` written at the call site, even though the names are the same.

A tree built by hand, without `quote`, contains no pending scopes, so
`sanitize` leaves it alone. Such a macro is unhygienic, like an old-school
macro that builds ASTs manually.
"""

__all__ = ["TEMPLATE", "CALLER", "sanitize", "same_binding",
           "get_pending_scopes", "max_scope", "check_no_pending_scopes", "flatten_scopes"]

from .core import InvariantViolation
from .nodes import CALLER, TEMPLATE, BindingName, Call, PendingScope
from .unparser import unparse
from .walkers import NodeTransformer, NodeVisitor


def sanitize(tree, tag, caller_scope=None):
    """Resolve the pending hygiene scopes in the macro output `tree`.

    `tag`: fresh positive `int`, unique to this expansion.
    `caller_scope`: scope of the macro call site; `None` for user source,
                    or the tag of the expansion that introduced the call.

    Names tagged `TEMPLATE` get `tag`; names tagged `CALLER` get `caller_scope`;
    all other names are left alone. Template calls get `tag` as their `"scope"`
    metadata, so that macro calls in the output know where they came from.
    """
    if type(tag) is not int or tag < 1:
        raise ValueError(f"hygiene tag must be a positive int, got {type(tag)} with value {repr(tag)}")
    if not (caller_scope is None or (type(caller_scope) is int and caller_scope > 0)):
        raise ValueError(f"caller scope must be None or a positive int, got {type(caller_scope)} with value {repr(caller_scope)}")

    class Sanitizer(NodeTransformer):
        def transform(self, tree):
            T = type(tree)
            if T is BindingName:
                if tree.scope is TEMPLATE:
                    return tree.replace(scope=tag)
                elif tree.scope is CALLER:
                    return tree.replace(scope=caller_scope)
                return tree
            elif T is Call:
                tree = self.generic_visit(tree)
                if tree.metadata.get("scope") is TEMPLATE:
                    metadata = dict(tree.metadata)
                    metadata["scope"] = tag
                    return tree.replace(metadata=metadata)
                return tree
            return self.generic_visit(tree)
    return Sanitizer().visit(tree)


def same_binding(a, b):
    """Return whether binding names `a` and `b` denote the same logical binding."""
    return (type(a) is BindingName and type(b) is BindingName and
            a.name == b.name and a.scope == b.scope)


def get_pending_scopes(tree):
    """Return a `list` of nodes in `tree` that still carry a pending scope."""
    class PendingScopeCollector(NodeVisitor):
        def examine(self, tree):
            if type(tree) is BindingName and isinstance(tree.scope, PendingScope):
                self.collect(tree)
            elif type(tree) is Call and isinstance(tree.metadata.get("scope"), PendingScope):
                self.collect(tree)
            self.generic_visit(tree)
    w = PendingScopeCollector()
    w.visit(tree)
    return w.collected


def max_scope(tree):
    """Return the largest hygiene tag used anywhere in `tree`, or `0` if none.

    Both names and the `"scope"` metadata of calls are considered.
    """
    class ScopeCollector(NodeVisitor):
        def examine(self, tree):
            if type(tree) is BindingName and type(tree.scope) is int:
                self.collect(tree.scope)
            elif type(tree) is Call and type(tree.metadata.get("scope")) is int:
                self.collect(tree.metadata["scope"])
            self.generic_visit(tree)
    w = ScopeCollector()
    w.visit(tree)
    return max(w.collected, default=0)


def check_no_pending_scopes(tree):
    """Raise `InvariantViolation` if a quoted template escaped sanitization inside `tree`."""
    pending = get_pending_scopes(tree)
    if pending:
        report = "\n".join(f"    {unparse(node)}" for node in pending)
        raise InvariantViolation(f"unsanitized hygiene scopes remaining:\n{report}",
                                 node=pending[0])


def flatten_scopes(tree, *, sep="_"):
    """Rename hygienic names into plain, unique names. Return the new tree.

    For an evaluator that does not understand scope tags. `x@3` becomes
    `x_3` (with scope `None`), unless that name is already taken in `tree`,
    in which case the separator is repeated until the name is free.
    """
    class NameCollector(NodeVisitor):
        def examine(self, tree):
            if type(tree) is BindingName:
                self.collect(tree)
            self.generic_visit(tree)
    w = NameCollector()
    w.visit(tree)
    taken = {node.name for node in w.collected if node.scope is None}

    renames = {}
    for node in w.collected:
        key = (node.name, node.scope)
        if node.scope is None or key in renames:
            continue
        if isinstance(node.scope, PendingScope):
            raise InvariantViolation(f"cannot flatten unsanitized name {unparse(node)}", node=node)
        s = sep
        candidate = f"{node.name}{s}{node.scope}"
        while candidate in taken:
            s += sep
            candidate = f"{node.name}{s}{node.scope}"
        taken.add(candidate)
        renames[key] = candidate

    class Flattener(NodeTransformer):
        def transform(self, tree):
            if type(tree) is BindingName and tree.scope is not None:
                return BindingName(renames[(tree.name, tree.scope)])
            return self.generic_visit(tree)
    return Flattener().visit(tree)
