# -*- coding: utf-8; -*-
"""Expander core; the error types, and the per-expansion state."""

__all__ = ["MacroExpansionError", "DuplicateUnquoteTarget", "UnresolvedPlaceholder",
           "NoMatchingClause", "ExpansionDepthExceeded", "InvariantViolation",
           "RegistryFrozenError", "MacroApplicationError",
           "ExpansionContext"]

import itertools


class MacroExpansionError(Exception):
    """Base class for errors specific to macro expansion.

    For errors detected in a transformer, we recommend raising:

     - `SyntaxError` with a descriptive message, if the macro was invoked
       with arguments whose tree shape it did not expect (when the patterns
       registered for it were not specific enough to catch this).

     - `TypeError` or `ValueError` as appropriate, for other problems with
       the arguments.

     - `MacroExpansionError`, or a custom descendant of it, if something else
       macro-related went wrong.

    The expander reports foreign exceptions raised by a transformer as a
    `MacroApplicationError`, with the original exception as its `__cause__`.
    Errors of the types defined here propagate unchanged.
    """


class DuplicateUnquoteTarget(MacroExpansionError):
    """The same unquote target appears twice in one quoted template."""
    def __init__(self, msg, *, target=None):
        super().__init__(msg)
        self.target = target


class UnresolvedPlaceholder(MacroExpansionError):
    """A placeholder in a quoted template has no value in the substitution mapping."""
    def __init__(self, msg, *, target=None, available=()):
        super().__init__(msg)
        self.target = target
        self.available = tuple(available)


class NoMatchingClause(MacroExpansionError):
    """A call names a registered macro, but no clause matches the shape of its arguments.

    `node` is the offending call, `macroname` the name of the macro, and
    `patterns` the patterns that were tried, in order.
    """
    def __init__(self, msg, *, node=None, macroname=None, patterns=()):
        super().__init__(msg)
        self.node = node
        self.macroname = macroname
        self.patterns = tuple(patterns)


class ExpansionDepthExceeded(MacroExpansionError):
    """Too many nested expansions along one root-to-node path.

    `path` is a tuple of `(macroname, rendered invocation)`, outermost first.
    `limit` is the depth limit that was in effect.
    """
    def __init__(self, msg, *, path=(), limit=None):
        super().__init__(msg)
        self.path = tuple(path)
        self.limit = limit


class InvariantViolation(MacroExpansionError):
    """An internal invariant broke. This is a bug, either in the engine or in a macro."""
    def __init__(self, msg, *, node=None):
        super().__init__(msg)
        self.node = node


class RegistryFrozenError(MacroExpansionError):
    """Attempted to register a macro into a frozen registry."""


class MacroApplicationError(MacroExpansionError):
    """A transformer raised an exception that is not a `MacroExpansionError`.

    The expander uses this type to automatically telescope use site reports
    for nested macro invocations (which occur when a transformer opts to
    expand its arguments inside-out). The linked ("direct cause") exception
    contains the actually relevant, client code traceback.
    """

# --------------------------------------------------------------------------------

class ExpansionContext:
    """State of one top-level expansion.

    Created per top-level expansion call; discarded when it finishes or fails.
    Each context owns its own hygiene tag counter, so independent expansions
    may run concurrently in separate threads, as long as they share only
    the (frozen) registry.

    `registry`:  a frozen `MacroRegistry` snapshot.
    `max_depth`: limit for nested expansions along one root-to-node path.
    """
    def __init__(self, registry, *, max_depth):
        if not registry.frozen:
            raise ValueError("ExpansionContext needs a frozen registry; use `registry.snapshot()`")
        if type(max_depth) is not int or max_depth < 1:
            raise ValueError(f"`max_depth` must be a positive int, got {type(max_depth)} with value {repr(max_depth)}")
        self.registry = registry
        self.max_depth = max_depth
        self.transitions = 0  # Matched -> Substituted, in total
        self._tags = itertools.count(start=1)
        self.last_tag = 0

    def fresh_tag(self):
        """Allocate a hygiene tag. Tags are strictly increasing, never reused."""
        self.last_tag = next(self._tags)
        return self.last_tag

    def skip_past(self, tag):
        """Make sure all tags allocated from now on are greater than `tag`.

        Used to avoid the tags already present in a tree that came out of
        an earlier expansion (e.g. `expand_once`), which had its own context.
        """
        if tag > self.last_tag:
            self._tags = itertools.count(start=tag + 1)
            self.last_tag = tag
