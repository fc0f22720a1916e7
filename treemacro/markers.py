# -*- coding: utf-8; -*-
"""Node markers for internal communication.

*Internal* here means they are never part of a finished tree; macros and
the quasiquote system use them to work together.
"""

__all__ = ["NodeMarker", "get_markers", "check_no_markers_remaining"]

from . import core, unparser, walkers
from .nodes import Node


class NodeMarker(Node):
    """Base class for node markers.

    Markers are node-like objects meant for communication between
    co-operating, related parts of the system. The quasiquote system uses
    them to mark unquote targets and unhygienic names in a template.

    We inherit from `Node`, so that a marker can sit anywhere a node can,
    e.g. as an argument of a `Call`.

    It is a postcondition of a completed operation that no markers remain.
    """
    _fields = ("body",)

    def __init__(self, body=None):
        """body: the actual node that is annotated by this marker"""
        if body is not None and not isinstance(body, Node):
            raise TypeError(f"marker body must be a Node or None, got {type(body)} with value {repr(body)}")
        self._init(body=body)


def get_markers(tree, cls=NodeMarker):
    """Return a `list` of any `cls` instances found in `tree`. For output validation."""
    class NodeMarkerCollector(walkers.NodeVisitor):
        def examine(self, tree):
            if isinstance(tree, cls):
                self.collect(tree)
            self.generic_visit(tree)
    w = NodeMarkerCollector()
    w.visit(tree)
    return w.collected


def check_no_markers_remaining(tree, *, cls=None, context="after expansion"):
    """Check that `tree` has no markers remaining.

    If a class `cls` is provided, only check for markers that `isinstance(cls)`.

    If there are any, raise `InvariantViolation`. No return value.
    """
    cls = cls or NodeMarker
    remaining_markers = get_markers(tree, cls)
    if remaining_markers:
        report = "\n".join(f"    {unparser.unparse(node)}" for node in remaining_markers)
        raise core.InvariantViolation(f"markers remaining {context}:\n{report}",
                                      node=remaining_markers[0])
