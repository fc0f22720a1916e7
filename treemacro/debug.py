# -*- coding: utf-8; -*-
"""Macro debugging utilities."""

__all__ = ["step_expansion", "format_registry"]

import functools
import io
import sys
import textwrap

from .colorizer import setcolor, ColorScheme, maybe_colorize
from .core import ExpansionDepthExceeded
from .dumper import dump
from .expander import DEFAULT_MAX_DEPTH, MacroExpander, find_macro_calls, global_postprocess
from .unparser import unparse
from .utils import format_transformer


def step_expansion(tree, registry, *, mode="unparse", detailed=False,
                   file=None, color=True, max_depth=DEFAULT_MAX_DEPTH, filename="<tree>"):
    """Macroexpand `tree`, showing each step of the expansion.

    A step expands each outermost macro invocation once (see `expand_once`).
    The tree is printed before expansion and after each step, to `file`
    (default `sys.stderr`). Return the fully expanded tree.

    `mode`: `"unparse"` (default) shows each tree as one line of pseudocode;
            `"dump"` draws it as a tree.

    `detailed`: if `True`, also report each individual macro application
                within each step, showing the invocation and its result.

    At most `max_depth` steps are taken; a tree that still has macro
    invocations left after that raises `ExpansionDepthExceeded`.
    """
    if mode not in ("unparse", "dump"):
        raise ValueError(f"unknown mode {repr(mode)}; expected 'unparse' or 'dump'")
    file = file or sys.stderr

    expander = MacroExpander(registry, max_depth=max_depth, filename=filename)
    if mode == "dump":
        formatter = functools.partial(dump, color=color, registry=expander.registry)
    else:
        formatter = functools.partial(unparse, color=color, registry=expander.registry)

    def c(*colors):
        return setcolor(*colors) if color else ""
    CS = ColorScheme
    tag = id(tree)
    indent = 2

    print(f"{c(CS.HEADING1)}Tree {c(CS.HEADING2)}0x{tag:x} ({filename}) {c(CS.HEADING1)}before macro expansion:{c()}",
          file=file)
    print(textwrap.indent(formatter(tree), indent * ' '), file=file)

    step = 0
    def doit():
        nonlocal step
        nonlocal tree
        while find_macro_calls(tree, expander.registry):
            if step >= max_depth:
                raise ExpansionDepthExceeded(f"{filename}: macro invocations still remaining after {max_depth} expansion steps",
                                             limit=max_depth)
            step += 1
            tree = expander.visit_once(tree)
            print(f"{c(CS.HEADING1)}Tree {c(CS.HEADING2)}0x{tag:x} ({filename}) {c(CS.HEADING1)}after step {step}:{c()}",
                  file=file)
            print(textwrap.indent(formatter(tree), indent * ' '), file=file)

    if detailed:
        def print_step(invocation, expansion, macroname, transformer):
            print(f"{c(CS.HEADING1)}Tree {c(CS.HEADING2)}0x{tag:x} ({filename}) {c(CS.HEADING1)}processing step {step + 1}:",
                  file=file)
            print(textwrap.indent(f"{c(CS.HEADING2)}Applying {c(CS.MACRONAME)}{macroname}{c(CS.HEADING2)} ({format_transformer(transformer)}):{c()}", indent * ' '),
                  file=file)
            print(textwrap.indent(formatter(invocation), (indent + 2) * ' '), file=file)
            print(textwrap.indent(f"{c(CS.HEADING2)}Result:{c()}", indent * ' '), file=file)
            print(textwrap.indent(formatter(expansion), (indent + 2) * ' '), file=file)

        with expander.debughook(print_step):
            doit()
    else:
        doit()

    plural = "s" if step != 1 else ""
    print(f"{c(CS.HEADING1)}Tree {c(CS.HEADING2)}0x{tag:x} ({filename}) {c(CS.HEADING1)}macro expansion complete after {step} step{plural}.{c()}",
          file=file)
    return global_postprocess(tree, registry=expander.registry)


def format_registry(registry, *, color=False):
    """Return a human-readable report of the macros and terminal primitives in `registry`.

    If `color=True`, colorize the output for printing into a terminal.

    If you want to access them programmatically, see `registry.names()`
    and `registry.clauses(name)`.
    """
    def c(*colors):
        return setcolor(*colors) if color else ""

    CS = ColorScheme
    with io.StringIO() as output:
        output.write(f"{c(CS.HEADING1)}Macros:{c()}\n")
        if not len(registry):
            output.write(maybe_colorize("    <no macros>\n", CS.GREYEDOUT, color=color))
        else:
            for name in registry.names():
                for clause in registry.clauses(name):
                    k = maybe_colorize(name, CS.MACRONAME, color=color)
                    output.write(f"    {k}{clause.pattern!r}: {format_transformer(clause.transformer)}\n")
        output.write(f"{c(CS.HEADING1)}Terminal primitives:{c()}\n")
        if not registry.terminals:
            output.write(maybe_colorize("    <none>\n", CS.GREYEDOUT, color=color))
        else:
            for name in sorted(registry.terminals):
                output.write(f"    {maybe_colorize(name, CS.TERMINAL, color=color)}\n")
        return output.getvalue()
