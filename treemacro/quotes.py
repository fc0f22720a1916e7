# -*- coding: utf-8; -*-
"""Quasiquotes. Build templates for your macros out of ordinary nodes.

The functions `quote`, `u` and `unhygienic` are the primary API::

    from treemacro.nodes import call, name
    from treemacro.quotes import quote, u

    template = quote(call("let", name("tmp"), u("value"),
                          call("+", name("tmp"), name("tmp"))))

    # later, in the transformer:
    return substitute(template, {"value": the_argument_tree})

Inside the template, `u(target)` marks an injection point. `quote` turns each
one into a `Placeholder(target)`, to be filled in by `treemacro.splicing.substitute`.

Every `BindingName` that is literal text of the template is tagged for
hygiene: when the expander splices the macro output into the tree, it gets
a fresh scope tag, so it cannot capture (or be captured by) a name at the
macro use site. To opt out for a specific name, wrap it as `unhygienic("x")`,
or pass `unhygienic=["x"]` to `quote`; such names resolve in the scope of
the macro call site.
"""

__all__ = ["QuoteMarker", "Unquote", "Unhygienic",
           "u", "unhygienic", "quote"]

from .core import DuplicateUnquoteTarget
from .markers import NodeMarker, check_no_markers_remaining
from .nodes import CALLER, TEMPLATE, BindingName, Call, Literal, Placeholder
from .walkers import NodeTransformer


class QuoteMarker(NodeMarker):
    """Base class for markers used by quasiquotes. Compiled away by `quote`."""


class Unquote(QuoteMarker):
    """Inject a value here, at substitution time. Emitted by `u`.

    `target`: `str`, the identifier the value will be looked up by.
    `body`: optional node, for documentation only; shown in diagnostics.
    """
    _fields = ("target", "body")

    def __init__(self, target=None, body=None):
        if not isinstance(target, str) or not target:
            raise TypeError(f"unquote target must be a non-empty str, got {type(target)} with value {repr(target)}")
        super().__init__(body)
        self._init(target=target)


class Unhygienic(QuoteMarker):
    """Resolve this name in the scope of the macro call site. Emitted by `unhygienic`."""

    def __init__(self, body=None):
        if type(body) is not BindingName:
            raise TypeError(f"`unhygienic` expects a BindingName, got {type(body)} with value {repr(body)}")
        if body.scope is not None:
            raise ValueError(f"`unhygienic` expects an unscoped name, got {repr(body)}")
        super().__init__(body)


def u(target, body=None):
    """Mark an injection point in a template. See `quote`."""
    return Unquote(target, body)


def unhygienic(x):
    """Mark a name in a template as caller-scoped. `x` is a `str` or a `BindingName`."""
    if isinstance(x, str):
        x = BindingName(x)
    return Unhygienic(x)


def quote(template, *, unhygienic=()):
    """Quasiquote compiler. Turn `template` into a quoted tree.

    Each `u(target)` becomes `Placeholder(target)`. Each target may appear
    at most once in a template; a duplicate raises `DuplicateUnquoteTarget`.
    (Placeholders already present in `template`, e.g. from quoting a
    quoted tree again, take part in this check.)

    Each `BindingName` without a scope is tagged `TEMPLATE`, except names
    listed in `unhygienic` or wrapped in an `Unhygienic` marker, which are
    tagged `CALLER`. Names that already have a scope are left alone. Each
    `Call` gets `TEMPLATE` as its `"scope"` metadata, unless it already
    has a scope.

    Pure; `template` is not modified. (Nodes are immutable anyway.)
    """
    unhygienic_names = frozenset(unhygienic)
    for x in unhygienic_names:
        if not isinstance(x, str):
            raise TypeError(f"`unhygienic` names must be str, got {type(x)} with value {repr(x)}")

    class Quoter(NodeTransformer):
        def transform(self, tree):
            T = type(tree)
            if T is Unquote or T is Placeholder:
                target = tree.target
                if target in self.state.targets:
                    raise DuplicateUnquoteTarget(f"unquote target '{target}' used more than once in the same template",
                                                 target=target)
                self.state.targets.add(target)
                return Placeholder(target)
            elif T is Unhygienic:
                return tree.body.replace(scope=CALLER)
            elif T is BindingName:
                if tree.scope is not None:
                    return tree
                scope = CALLER if tree.name in unhygienic_names else TEMPLATE
                return tree.replace(scope=scope)
            elif T is Call:
                tree = self.generic_visit(tree)
                if "scope" in tree.metadata:
                    return tree
                metadata = dict(tree.metadata)
                metadata["scope"] = TEMPLATE
                return tree.replace(metadata=metadata)
            elif T is Literal:
                return tree
            return self.generic_visit(tree)
    quoted = Quoter(targets=set()).visit(template)
    check_no_markers_remaining(quoted, cls=QuoteMarker, context="after quoting")
    return quoted
