# -*- coding: utf-8; -*-
"""Find and expand macros.

The expander walks the tree top-down (pre-order). When it finds a call whose
operator names a registered macro, it looks up the first matching clause,
applies the transformer to the argument trees (unevaluated), runs the output
through the hygiene sanitizer, splices it in place of the call, and then
scans the replacement again, since a macro's output commonly contains further
macro calls. Calls to terminal primitives, and any other calls, are kept;
their arguments are scanned. Expansion is done when no macro calls remain.

Each Matched -> Substituted transition nests one level deeper along the
current root-to-node path. Past `max_depth` levels, expansion fails with
`ExpansionDepthExceeded`, so a macro that keeps producing calls to itself
is reported instead of hanging.
"""

__all__ = ["DEFAULT_MAX_DEPTH", "ExpansionState",
           "MacroExpander", "MacroCollector",
           "expand_macros", "expand_once", "find_macro_calls", "global_postprocess"]

from contextlib import contextmanager
from enum import Enum

from .core import (ExpansionContext, ExpansionDepthExceeded, InvariantViolation,
                   MacroApplicationError, MacroExpansionError, NoMatchingClause)
from .hygiene import check_no_pending_scopes, get_pending_scopes, max_scope, sanitize
from .markers import check_no_markers_remaining
from .nodes import BindingName, Call, Literal, Node
from .splicing import get_placeholders
from .unparser import unparse
from .utils import format_location, format_transformer
from .walkers import NodeTransformer, NodeVisitor

DEFAULT_MAX_DEPTH = 100


class ExpansionState(Enum):
    """What the expander is doing. See `MacroExpander.phase`."""
    SCANNING = "scanning"
    MATCHED = "matched"
    SUBSTITUTED = "substituted"
    TERMINAL = "terminal"
    FAILED = "failed"


class MacroExpander(NodeTransformer):
    """The macro expander.

    Constructor parameters:

        registry:  a `MacroRegistry`. The expander works on a frozen snapshot of it.
        max_depth: limit for nested expansions along one root-to-node path.
        filename:  label of the source the tree came from, for error reporting.

    An instance owns one `ExpansionContext` (hygiene tag counter, transition
    count). Don't share an instance between threads; make one per thread.
    """

    def __init__(self, registry, *, max_depth=DEFAULT_MAX_DEPTH, filename="<tree>"):
        super().__init__(depth=0, path=())
        self.context = ExpansionContext(registry.snapshot(), max_depth=max_depth)
        self.registry = self.context.registry
        self.filename = filename
        self.recursive = True
        self.phase = ExpansionState.SCANNING
        self._debughook = None  # see `treemacro.debug.step_expansion`

    @property
    def transitions(self):
        """Number of Matched -> Substituted transitions performed so far."""
        return self.context.transitions

    def visit_recursively(self, tree):
        """Entry point. Expand macros in `tree`, in recursive mode.

        That is, iterate the expansion process until no macros are left.

        A transformer may call this on its arguments, to expand them inside-out.
        Only pass trees that contain no unsanitized template output; see `_prepare`.
        """
        self._prepare(tree)
        with self._recursive_mode(True):
            return self.visit(tree)

    def visit_once(self, tree):
        """Entry point. Expand macros in `tree`, in non-recursive mode.

        That is, expand each outermost macro call once, and don't look
        at the results again.
        """
        self._prepare(tree)
        with self._recursive_mode(False):
            return self.visit(tree)

    def _prepare(self, tree):
        """Get ready to expand `tree`.

        A tree may come out of an earlier expansion with its own context, such
        as the result of `expand_once`. Reserve the hygiene tags already used
        in it, so that new expansions never reuse them.

        Pending hygiene scopes mean a template (or a transformer's output that
        is still being built) is being expanded before it was sanitized. Its
        template names would end up split between the tags of unrelated
        expansions, so this is refused with `InvariantViolation`. A transformer
        that expands inside-out should expand its argument trees first, and
        substitute the results into its template afterwards.
        """
        pending = get_pending_scopes(tree)
        if pending:
            raise InvariantViolation(f"{self.filename}: cannot expand a tree with unsanitized hygiene scopes; first one: {unparse(pending[0])}",
                                     node=pending[0])
        self.context.skip_past(max_scope(tree))

    @contextmanager
    def _recursive_mode(self, isrecursive):
        """Context manager. Change recursive mode, restoring the old mode when the context exits."""
        wasrecursive = self.recursive
        try:
            self.recursive = isrecursive
            yield
        finally:
            self.recursive = wasrecursive

    @contextmanager
    def debughook(self, hook):
        """Context manager. Temporarily set a debug hook, restoring the old one when the context exits.

        The debug hook, if one is installed, is called whenever a macro expands.

        The hook receives the following arguments, passed positionally in this order:
            invocation:  Call, the macro invocation before expansion.
            expansion:   Node, the sanitized replacement after expanding once.
            macroname:   str, name of the macro that was applied.
            transformer: callable, the transformer of the clause that matched.
        """
        oldhook = self._debughook
        try:
            self._debughook = hook
            yield
        finally:
            self._debughook = oldhook

    def transform(self, tree):
        T = type(tree)
        if T is Literal or T is BindingName:
            return tree
        elif T is Call:
            if self.registry.ismacro(tree.op):
                return self.expand(tree)
            if self.registry.isterminal(tree.op):
                self.phase = ExpansionState.TERMINAL
            else:
                self.phase = ExpansionState.SCANNING
            return self.generic_visit(tree)
        self.phase = ExpansionState.FAILED
        raise InvariantViolation(f"{self.filename}: unexpected {T.__name__} in tree being expanded: {unparse(tree)}",
                                 node=tree)

    def expand(self, invocation):
        """Expand the macro invocation `invocation` (a `Call`), and return the replacement."""
        macroname = invocation.op
        self.phase = ExpansionState.MATCHED
        clause = self.registry.lookup(macroname, invocation.args)
        if clause is None:
            self.phase = ExpansionState.FAILED
            patterns = [c.pattern for c in self.registry.clauses(macroname)]
            tried = ", ".join(f"{macroname}{p!r}" for p in patterns)
            raise NoMatchingClause(f"{format_location(self.filename, invocation)}\nno clause of macro '{macroname}' matches the arguments; tried: {tried}",
                                   node=invocation, macroname=macroname, patterns=patterns)

        depth = self.state.depth + 1
        path = self.state.path + ((macroname, invocation),)
        if depth > self.context.max_depth:
            self.phase = ExpansionState.FAILED
            rendered = tuple((name, unparse(node)) for name, node in path)
            shown = rendered[-5:]
            lines = [f"    {name}: {code}" for name, code in shown]
            if len(rendered) > len(shown):
                lines.insert(0, f"    ... ({len(rendered) - len(shown)} more)")
            report = "\n".join(lines)
            raise ExpansionDepthExceeded(f"{self.filename}: macro expansion nested deeper than {self.context.max_depth} levels; most recent expansions last:\n{report}",
                                         path=rendered, limit=self.context.max_depth)

        expansion = self._apply_macro(clause, invocation)

        scope = invocation.metadata.get("scope")
        caller_scope = scope if type(scope) is int else None
        expansion = sanitize(expansion, self.context.fresh_tag(), caller_scope)
        self.context.transitions += 1
        self.phase = ExpansionState.SUBSTITUTED
        if self._debughook:
            self._debughook(invocation, expansion, macroname, clause.transformer)

        if self.recursive:
            with self.withstate(depth=depth, path=path):
                expansion = self.visit(expansion)
        return expansion

    def _apply_macro(self, clause, invocation):
        """Call the transformer of `clause` on the arguments of `invocation`.

        If something goes wrong, generate a standardized macro use site report.
        """
        macroname = clause.name
        try:
            expansion = clause.transformer(*invocation.args, invocation=invocation, expander=self)
            if not isinstance(expansion, Node):
                raise TypeError(f"expected transformer to return a Node, got {type(expansion)} with value {repr(expansion)}")
        except Exception as err:
            self.phase = ExpansionState.FAILED
            msg = f"{format_location(self.filename, invocation)}\nin macro invocation for '{macroname}' (clause {clause.index}, {format_transformer(clause.transformer)})"
            if isinstance(err, MacroApplicationError) and err.__cause__:
                # Telescope nested use site reports, by keeping the original
                # traceback and `__cause__`, but combining the messages.
                #
                # When a transformer expands its arguments inside-out, the
                # innermost macro raises first. So when the next outer one
                # catches the exception, it should add its own message to the
                # beginning, to make the report read in an outside-in order,
                # similarly to a Python traceback.
                oldmsg = err.args[0]
                oldmsg_lines = oldmsg.split("\n")
                hint = "An exception occurred during macro expansion.\n\nMacro use site (most recent macro application last):"
                hint_lines = hint.split("\n")
                if oldmsg_lines[0] == hint_lines[0]:
                    oldmsg = "\n".join(oldmsg_lines[len(hint_lines):])
                msg = f"{hint}\n{msg}\n{oldmsg}"
                raise MacroApplicationError(msg).with_traceback(err.__traceback__) from err.__cause__
            elif isinstance(err, (MacroExpansionError, RecursionError)):
                raise
            # Not nested; tack on a `MacroApplicationError` with
            # use site info to whatever exception we originally got.
            raise MacroApplicationError(msg) from err
        return expansion


class MacroCollector(NodeVisitor):
    """Scan `tree` for macro invocations, with respect to the given `registry`.

    Collect a list of `(macroname, node)`, in scan order. Usage::

        mc = MacroCollector(registry)
        mc.visit(tree)
        print(mc.collected)
        # ...do something to tree...
        mc.clear()
        mc.visit(tree)
        print(mc.collected)
    """
    def __init__(self, registry):
        super().__init__()
        self.registry = registry

    def clear(self):
        self.reset()

    def examine(self, tree):
        if type(tree) is Call and self.registry.ismacro(tree.op):
            self.collect((tree.op, tree))
        self.generic_visit(tree)


def find_macro_calls(tree, registry):
    """Return a `list` of `(macroname, node)` for each macro invocation remaining in `tree`."""
    mc = MacroCollector(registry)
    mc.visit(tree)
    return mc.collected

# --------------------------------------------------------------------------------

def global_postprocess(tree, *, registry=None):
    """Check the postconditions of a top-level expansion. Return `tree`.

    No markers, placeholders or unsanitized hygiene scopes may remain.
    If `registry` is given, also no macro invocations may remain (fixpoint).

    Raise `InvariantViolation` if a check fails.
    """
    check_no_markers_remaining(tree)
    placeholders = get_placeholders(tree)
    if placeholders:
        report = ", ".join(unparse(node) for node in placeholders)
        raise InvariantViolation(f"placeholders remaining after expansion: {report}",
                                 node=placeholders[0])
    check_no_pending_scopes(tree)
    if registry is not None:
        remaining = find_macro_calls(tree, registry)
        if remaining:
            report = "\n".join(f"    {unparse(node)}" for _, node in remaining)
            raise InvariantViolation(f"macro invocations remaining after expansion:\n{report}",
                                     node=remaining[0][1])
    return tree


def _run(visit, tree, expander):
    if not isinstance(tree, Node):
        raise TypeError(f"expected a Node, got {type(tree)} with value {repr(tree)}")
    try:
        return visit(tree)
    except RecursionError as err:
        if not expander.transitions:
            msg = f"{expander.filename}: input tree is nested too deeply to walk (Python recursion limit reached before any macro was applied)"
        else:
            msg = f"{expander.filename}: Python recursion limit reached after {expander.transitions} macro applications; the tree or a macro's output is nested too deeply, or a transformer recursed without bound"
        raise ExpansionDepthExceeded(msg, limit=expander.context.max_depth) from err


def expand_macros(tree, registry, *, max_depth=DEFAULT_MAX_DEPTH, filename="<tree>"):
    """Expand `tree` with the macros of `registry`, until no macros remain. Top-level entry point.

    `max_depth`: limit for nested expansions along one root-to-node path.
    `filename`: label of the source the tree came from, for error reporting.

    Return the fully expanded tree. Either the whole expansion succeeds,
    or an exception is raised; there are no partial results.

    The walk is recursive, so the nesting depth of `tree` itself is bounded by
    the Python recursion limit (see `sys.setrecursionlimit`). A tree nested
    deeper than that raises `ExpansionDepthExceeded`, even if it has no macros.
    """
    expander = MacroExpander(registry, max_depth=max_depth, filename=filename)
    expansion = _run(expander.visit_recursively, tree, expander)
    return global_postprocess(expansion, registry=expander.registry)


def expand_once(tree, registry, *, filename="<tree>"):
    """Expand each outermost macro invocation in `tree` once. Top-level entry point.

    The results are not scanned again, so they may contain further macro
    invocations. Useful for seeing what a macro does, one layer at a time.
    """
    expander = MacroExpander(registry, filename=filename)
    expansion = _run(expander.visit_once, tree, expander)
    return global_postprocess(expansion)
