# -*- coding: utf-8; -*-
"""General utilities. Can be useful for writing both macros as well as the expander."""

__all__ = ["get_line", "format_location", "format_transformer", "format_context"]

from .colorizer import colorize, ColorScheme
from .dumper import dump
from .nodes import Call, iter_children
from .unparser import unparse


def get_line(tree):
    """Extract the source line number from `tree`.

    Source positions live in the `"line"` key of call metadata, if the tree
    builder (e.g. an external parser) provided them. `tree` is searched
    recursively (depth first) until one is found.

    If there is no line number anywhere inside `tree`, the return value is `None`.
    """
    if type(tree) is Call and "line" in tree.metadata:
        return tree.metadata["line"]
    for child in iter_children(tree):
        line = get_line(child)
        if line is not None:
            return line
    return None


def format_location(filename, tree, *, color=False):
    """Format a source location in a standard way, for error messages.

    `filename`: name of the source the tree came from, or an arbitrary label.
    `tree`: node to render, and to get the source line number from.

    Example output::

        <tree>:None: unless(false, do_block("entered"))
    """
    if color:
        filename = colorize(filename, ColorScheme.SOURCEFILENAME)
    return f"{filename}:{get_line(tree)}: {unparse(tree, color=color)}"


def format_transformer(function):
    """Format the fully qualified name of a transformer function, for error messages."""
    if not (hasattr(function, "__module__") and hasattr(function, "__qualname__")):
        return repr(function)
    if not function.__module__:
        return function.__qualname__
    return f"{function.__module__}.{function.__qualname__}"


def format_context(tree, *, n=5, color=False):
    """Format up to the first `n` lines of the `dump` of `tree`."""
    lines = dump(tree, color=color).split("\n")
    code = "\n".join(lines[:n])
    if len(lines) > n:
        code += "\n" + (colorize("...", ColorScheme.GREYEDOUT) if color else "...")
    return code
