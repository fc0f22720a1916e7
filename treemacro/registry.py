# -*- coding: utf-8; -*-
"""Macro registry and structural matcher.

A macro is a name plus an ordered list of clauses. Each clause pairs a
`Pattern` (shape of the arguments) with a transformer (a function from the
argument trees to a new tree). When a call to the macro is found, the
clauses are tried in registration order; the first match wins::

    registry = MacroRegistry(terminals=["case"])

    @registry.macro("say", [argop("+", arity=2)])
    def say_sum(expr, **kw):
        ...

    @registry.macro("say", [argop("*", arity=2)])
    def say_product(expr, **kw):
        ...

Matching is purely structural (operator symbols, arities, node variants).
Arguments are never evaluated; at expansion time there are no values yet.

A transformer is called as `transformer(*args, invocation=..., expander=...)`,
so it must accept (and is free to ignore) those named arguments; `**kw` will do.
"""

__all__ = ["DEFAULT_TERMINALS", "Pattern", "Clause", "MacroRegistry",
           "arity", "shape", "anyargs", "argop", "isvariant"]

import threading
from collections import namedtuple

from .core import RegistryFrozenError
from .nodes import BindingName, Call, Literal, Node, Placeholder
from .utils import format_transformer

DEFAULT_TERMINALS = ("case",)

_variants = (Literal, Call, Placeholder, BindingName)


class _ArgMatcher:
    """A named predicate on one argument node. The name is for diagnostics."""
    def __init__(self, predicate, description):
        self.predicate = predicate
        self.description = description

    def __call__(self, tree):
        return self.predicate(tree)

    def __repr__(self):
        return self.description


def argop(opname, arity=None):
    """Argument matcher: the argument is a `Call` with operator `opname` (and the given arity, if any)."""
    if not isinstance(opname, str):
        raise TypeError(f"operator must be str, got {type(opname)} with value {repr(opname)}")
    def match(tree):
        return (type(tree) is Call and tree.op == opname and
                (arity is None or tree.arity == arity))
    description = opname if arity is None else f"{opname}/{arity}"
    return _ArgMatcher(match, description)


def isvariant(cls):
    """Argument matcher: the argument is a node of variant `cls` (e.g. `Literal`)."""
    if cls not in _variants:
        raise TypeError(f"expected one of {[c.__name__ for c in _variants]}, got {repr(cls)}")
    return _ArgMatcher(lambda tree: type(tree) is cls, cls.__name__)


_anything = _ArgMatcher(lambda tree: True, "_")


def _tomatcher(m):
    if m is None:
        return _anything
    elif isinstance(m, _ArgMatcher):
        return m
    elif isinstance(m, str):
        return argop(m)
    elif isinstance(m, type) and issubclass(m, Node):
        return isvariant(m)
    elif callable(m):
        return _ArgMatcher(m, getattr(m, "__name__", repr(m)))
    raise TypeError(f"expected an argument matcher (None, str, node variant or callable), got {type(m)} with value {repr(m)}")


class Pattern:
    """Structural pattern for the arguments of a macro call.

    `arity`: `int`, or `None` to accept any number of arguments.
    `shape`: sequence of per-argument matchers, or `None`. Each matcher is one of:
      - `None`: anything;
      - a `str`: the argument is a `Call` with that operator (see `argop`);
      - a node variant class: the argument is a node of that variant (see `isvariant`);
      - a callable `Node -> bool`.
    A `shape` implies `arity=len(shape)`.
    """
    def __init__(self, arity=None, shape=None):
        if shape is not None:
            shape = tuple(_tomatcher(m) for m in shape)
            if arity is None:
                arity = len(shape)
            elif arity != len(shape):
                raise ValueError(f"arity {arity} does not agree with shape of length {len(shape)}")
        if arity is not None and (type(arity) is not int or arity < 0):
            raise ValueError(f"arity must be a non-negative int or None, got {type(arity)} with value {repr(arity)}")
        self.arity = arity
        self.shape = shape

    def matches(self, args):
        """Return whether the argument trees `args` fit this pattern."""
        if self.arity is not None and len(args) != self.arity:
            return False
        if self.shape is not None:
            return all(m(arg) for m, arg in zip(self.shape, args))
        return True

    def __repr__(self):
        if self.shape is not None:
            return f"({', '.join(repr(m) for m in self.shape)})"
        if self.arity is not None:
            return f"(/{self.arity})"
        return "(...)"


def arity(n):
    """Pattern: exactly `n` arguments, of any shape."""
    return Pattern(arity=n)

def shape(*matchers):
    """Pattern: one argument per matcher, each satisfying its matcher."""
    return Pattern(shape=matchers)

def anyargs():
    """Pattern: any arguments at all."""
    return Pattern()


def _topattern(pattern):
    if isinstance(pattern, Pattern):
        return pattern
    elif pattern is None:
        return anyargs()
    elif type(pattern) is int:
        return arity(pattern)
    elif isinstance(pattern, (list, tuple)):
        return Pattern(shape=pattern)
    raise TypeError(f"expected a Pattern, an int arity, a sequence of matchers or None, got {type(pattern)} with value {repr(pattern)}")


Clause = namedtuple("Clause", ["name", "pattern", "transformer", "index"])
Clause.__doc__ = """One (pattern, transformer) rule of a macro. `index` is its position in the macro's clause list."""


class MacroRegistry:
    """Macro name -> ordered clauses. Plus the set of terminal primitives.

    Terminal primitives are the forms of the core language the expansion
    bottoms out in. They are never macros.

    Build the registry first, then expand. Each expansion works on a frozen
    `snapshot()`, so registering new macros does not affect an expansion
    that is already running. Registration and snapshotting are serialized
    by a lock (single writer, many readers).
    """
    def __init__(self, terminals=DEFAULT_TERMINALS):
        terminals = frozenset(terminals)
        for t in terminals:
            if not isinstance(t, str):
                raise TypeError(f"terminal primitive names must be str, got {type(t)} with value {repr(t)}")
        self.terminals = terminals
        self._clauses = {}  # name -> tuple of Clause; tuples, so snapshots can share them
        self._frozen = False
        self._lock = threading.Lock()

    def register(self, name, pattern, transformer):
        """Append the clause `(pattern, transformer)` to macro `name`.

        `pattern` is a `Pattern`, or shorthand for one: an `int` arity,
        a sequence of argument matchers, or `None` for any arguments.

        Return the new `Clause`.
        """
        if not isinstance(name, str) or not name:
            raise TypeError(f"macro name must be a non-empty str, got {type(name)} with value {repr(name)}")
        if not callable(transformer):
            raise TypeError(f"transformer must be callable, got {type(transformer)} with value {repr(transformer)}")
        pattern = _topattern(pattern)
        if name in self.terminals:
            raise ValueError(f"'{name}' is a terminal primitive; it cannot be a macro")
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"cannot register macro '{name}': registry is frozen")
            existing = self._clauses.get(name, ())
            clause = Clause(name, pattern, transformer, len(existing))
            self._clauses[name] = existing + (clause,)
        return clause

    def macro(self, name, pattern=None):
        """Decorator form of `register`. Returns the transformer unchanged."""
        def register_transformer(transformer):
            self.register(name, pattern, transformer)
            return transformer
        return register_transformer

    def ismacro(self, op):
        """Return whether `op` names a macro with at least one clause."""
        return isinstance(op, str) and op in self._clauses

    def isterminal(self, op):
        """Return whether `op` names a terminal primitive."""
        return isinstance(op, str) and op in self.terminals

    def lookup(self, name, args):
        """Return the first clause of macro `name` whose pattern matches `args`, or `None`."""
        for clause in self._clauses.get(name, ()):
            if clause.pattern.matches(args):
                return clause
        return None

    def clauses(self, name):
        """Return the clauses of macro `name`, in order. Empty if not a macro."""
        return self._clauses.get(name, ())

    def names(self):
        """Return the names of all registered macros, sorted."""
        return sorted(self._clauses)

    def freeze(self):
        """Disallow further registrations. Idempotent. Returns `self`."""
        with self._lock:
            self._frozen = True
        return self

    @property
    def frozen(self):
        return self._frozen

    def snapshot(self):
        """Return a frozen copy of this registry. A frozen registry is its own snapshot."""
        with self._lock:
            if self._frozen:
                return self
            other = MacroRegistry(self.terminals)
            other._clauses = dict(self._clauses)
        return other.freeze()

    def __contains__(self, name):
        return self.ismacro(name)

    def __len__(self):
        return len(self._clauses)

    def __repr__(self):
        entries = ", ".join(f"{name}: [{', '.join(f'{clause.pattern!r} -> {format_transformer(clause.transformer)}' for clause in self._clauses[name])}]"
                            for name in self.names())
        frozen = ", frozen" if self._frozen else ""
        return f"MacroRegistry({{{entries}}}, terminals={sorted(self.terminals)}{frozen})"
