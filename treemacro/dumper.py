# -*- coding: utf-8; -*-
"""Dump a node tree into a string, drawn as a tree.

The operator of each call is the root of its subtree, and the arguments
are its ordered children::

    unless
    ├── false
    └── do_block
        └── "entered"

Leaves (literals, names, placeholders) are rendered with `unparse`.
"""

__all__ = ["dump"]

from . import markers
from .colorizer import ColorScheme, maybe_colorize
from .nodes import Call, Node
from .unparser import unparse, unparse_marker_head, unparse_operator


def dump(tree, *, color=False, include_metadata=False, registry=None):
    """Return a formatted dump of `tree`, as a string.

    If `include_metadata=True`, each call's metadata (if any) is shown
    after its operator.

    If you're printing the result into a terminal, consider `color=True`.
    If a `registry` is given, macro names and terminal primitives are highlighted.
    """
    if not isinstance(tree, Node):
        raise TypeError(f"expected Node, got {tree.__class__.__name__!r}")

    def c(text, *colors):
        return maybe_colorize(text, *colors, color=color)

    lines = []

    def label(tree):
        if type(tree) is Call:
            if isinstance(tree.op, Node):
                text = c("(call)", ColorScheme.OPERATOR)
            else:
                text = unparse_operator(tree.op, color=color, registry=registry)
            if include_metadata and tree.metadata:
                meta = ", ".join(f"{k}={v!r}" for k, v in tree.metadata.items())
                text += "  " + c(f"{{{meta}}}", ColorScheme.METADATA)
            return text
        elif isinstance(tree, markers.NodeMarker):
            # The body becomes a child.
            return unparse_marker_head(tree, color=color)
        return unparse(tree, color=color, registry=registry)

    def children(tree):
        if type(tree) is Call:
            out = []
            if isinstance(tree.op, Node):
                out.append(("(op) ", tree.op))
            out.extend(("", arg) for arg in tree.args)
            return out
        elif isinstance(tree, markers.NodeMarker) and tree.body is not None:
            return [("", tree.body)]
        return []

    def recurse(tree, prefix, connector, prefix_for_children):
        lines.append(prefix + connector + label(tree))
        kids = children(tree)
        for k, (heading, child) in enumerate(kids):
            last = (k == len(kids) - 1)
            branch = c("└── " if last else "├── ", ColorScheme.TREELINES) + heading
            extension = "    " if last else c("│   ", ColorScheme.TREELINES)
            recurse(child, prefix_for_children, branch, prefix_for_children + extension)

    recurse(tree, "", "", "")
    return "\n".join(lines)
