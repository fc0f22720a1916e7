# -*- coding: utf-8; -*-
"""The node model. Every expression is a tree of these.

There are exactly four node variants:

  - `Literal`:     an atomic value (or a pair of them). Self-representing.
  - `Call`:        `(op, args, metadata)`, the shape all compound expressions reduce to.
  - `Placeholder`: an injection point in a quoted template. See `treemacro.quotes`.
  - `BindingName`: an identifier, with a hygiene scope tag. See `treemacro.hygiene`.

Nodes are immutable. To "edit" a node, build a new one, e.g. with `replace`.
This makes it safe to share subtrees between templates and expansions.

Consumers dispatch on `type(tree)` over the variants above. Internal markers
(`treemacro.markers`) also derive from `Node`, but they are never allowed
to survive a finished operation.
"""

__all__ = ["Node", "Atom", "NIL", "Literal", "Call", "Placeholder", "BindingName",
           "PendingScope", "TEMPLATE", "CALLER",
           "isliteralvalue", "isnode", "iter_children",
           "lit", "aslit", "call", "name"]

from types import MappingProxyType


class Node:
    """Base class for syntax tree nodes.

    `_fields` lists the fields that take part in structural equality.
    `_attributes` lists the fields that don't (bookkeeping, like `lineno` in `ast`).
    """
    _fields = ()
    _attributes = ()

    def _init(self, **fields):
        for k, v in fields.items():
            object.__setattr__(self, k, v)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable; cannot set '{name}' (use `replace`)")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable; cannot delete '{name}'")

    def replace(self, **changes):
        """Return a copy of this node, with the given fields replaced."""
        kwargs = {k: getattr(self, k) for k in self._fields + self._attributes}
        for k in changes:
            if k not in kwargs:
                raise TypeError(f"{type(self).__name__} has no field '{k}'")
        kwargs.update(changes)
        return type(self)(**kwargs)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, k) == getattr(other, k) for k in self._fields)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((type(self).__name__,) + tuple(getattr(self, k) for k in self._fields))

    def __repr__(self):
        fields = ", ".join(f"{k}={getattr(self, k)!r}" for k in self._fields)
        return f"{type(self).__name__}({fields})"


class Atom:
    """A symbol value, like `:ok` or `nil`. Usable inside literals."""
    __slots__ = ("name",)

    def __init__(self, name):
        if not isinstance(name, str) or not name:
            raise TypeError(f"Atom name must be a non-empty str, got {type(name)} with value {repr(name)}")
        object.__setattr__(self, "name", name)

    def __setattr__(self, name, value):
        raise AttributeError("Atom is immutable")

    def __eq__(self, other):
        if type(other) is not Atom:
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(("Atom", self.name))

    def __repr__(self):
        return f"Atom({self.name!r})"

NIL = Atom("nil")


class PendingScope:
    """Hygiene scope sentinel. Only exists between `quote` and `sanitize`."""
    __slots__ = ("kind",)

    def __init__(self, kind):
        object.__setattr__(self, "kind", kind)

    def __setattr__(self, name, value):
        raise AttributeError("PendingScope is immutable")

    def __repr__(self):
        return self.kind.upper()

    def __reduce__(self):  # keep the sentinels singletons across copy/pickle
        return self.kind.upper()

# Introduced by a quoted template; gets a fresh tag when sanitized.
TEMPLATE = PendingScope("template")
# Explicitly unhygienic; gets the scope of the macro call site when sanitized.
CALLER = PendingScope("caller")


_atomic_types = (bool, int, float, str, Atom)

def isliteralvalue(value):
    """Return whether `value` can be the value of a `Literal`."""
    if type(value) in _atomic_types:
        return True
    if type(value) is tuple and len(value) == 2:
        return all(isliteralvalue(x) for x in value)
    return False

def _literal_key(value):
    # `True == 1 == 1.0` in Python, but these are different literals.
    if type(value) is tuple:
        return (tuple, tuple(_literal_key(x) for x in value))
    return (type(value), value)


class Literal(Node):
    """An atomic value: `int`, `float`, `bool`, `str`, `Atom`, or a 2-tuple of such.

    Literals are self-representing. A literal never contains a node.
    """
    _fields = ("value",)

    def __init__(self, value):
        if not isliteralvalue(value):
            raise TypeError(f"not a literal value: {type(value)} with value {repr(value)}")
        self._init(value=value)

    def __eq__(self, other):
        if type(other) is not Literal:
            return NotImplemented
        return _literal_key(self.value) == _literal_key(other.value)

    def __hash__(self):
        return hash(("Literal", _literal_key(self.value)))


class Call(Node):
    """A compound expression: operator, arguments, metadata.

    `op`: a `str` symbol, or a `Node`.
    `args`: iterable of `Node`; stored as a tuple, so the arity is fixed.
    `metadata`: opaque mapping for source position and context bookkeeping.
                Not part of structural equality. The key `"scope"` is
                reserved for the hygiene system.
    """
    _fields = ("op", "args")
    _attributes = ("metadata",)

    def __init__(self, op, args=(), metadata=None):
        if not (isinstance(op, str) or isinstance(op, Node)):
            raise TypeError(f"Call operator must be a str symbol or a Node, got {type(op)} with value {repr(op)}")
        args = tuple(args)
        for arg in args:
            if not isinstance(arg, Node):
                raise TypeError(f"Call arguments must be Nodes, got {type(arg)} with value {repr(arg)}")
        self._init(op=op, args=args, metadata=MappingProxyType(dict(metadata or {})))

    @property
    def arity(self):
        return len(self.args)


class Placeholder(Node):
    """An injection point in a quoted template, to be filled in by `substitute`."""
    _fields = ("target",)

    def __init__(self, target):
        if not isinstance(target, str):
            raise TypeError(f"Placeholder target must be str, got {type(target)} with value {repr(target)}")
        self._init(target=target)


class BindingName(Node):
    """An identifier.

    `scope` is the hygiene tag. `None` is the caller (user source) scope;
    a positive `int` N means the name was introduced by macro expansion
    number N. Two names denote the same binding iff both name and scope match.
    """
    _fields = ("name", "scope")

    def __init__(self, name, scope=None):
        if not isinstance(name, str) or not name:
            raise TypeError(f"BindingName name must be a non-empty str, got {type(name)} with value {repr(name)}")
        if not (scope is None or isinstance(scope, PendingScope) or
                (type(scope) is int and scope > 0)):
            raise TypeError(f"BindingName scope must be None, a positive int or a pending scope, got {type(scope)} with value {repr(scope)}")
        self._init(name=name, scope=scope)

# --------------------------------------------------------------------------------

def isnode(x):
    """Return whether `x` is a syntax tree node (including markers)."""
    return isinstance(x, Node)


def iter_children(tree):
    """Yield the direct child nodes of `tree`, in scan order."""
    if type(tree) is Call:
        if isinstance(tree.op, Node):
            yield tree.op
        yield from tree.args
    else:
        for k in tree._fields:
            v = getattr(tree, k)
            if isinstance(v, Node):
                yield v


def lit(value):
    """Shorthand: `Literal(value)`."""
    return Literal(value)


def aslit(value):
    """Wrap a Python literal value into a `Literal`. Pass nodes through as-is."""
    if isinstance(value, Node):
        return value
    if value is None:
        return Literal(NIL)
    return Literal(value)


def call(op, *args, **metadata):
    """Shorthand: `call("+", a, b, line=3)` -> `Call("+", (a, b), {"line": 3})`.

    Arguments that are not nodes are auto-wrapped with `aslit`.
    """
    return Call(op, [aslit(arg) for arg in args], metadata)


def name(identifier, scope=None):
    """Shorthand: `BindingName(identifier, scope)`."""
    return BindingName(identifier, scope)
